#!/usr/bin/env python3
"""
Template Compiler & Matcher

- Compiles "{slot}" patterns into anchored, case-insensitive regexes
- Slot types carry their own capture patterns (amount, asset, address, chain, slippage)
- Normalizes captured values (alias tables, case, percent stripping)
- Writes slot values into an intent object through dotted field mappings
- Scores every matching pattern and keeps the best candidate

Pure functions of the template definitions and the input text; the only
state is the per-store cache of compiled regexes.
"""

from __future__ import annotations

import copy
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import ValidationError  # pyright: ignore[reportMissingImports]

from lucidwallet.models.intent import IntentSpec
from .errors import IntentResolutionError, TemplateFileError
from .templates import SlotSpec, Template

logger = logging.getLogger(__name__)


CHAIN_ALIASES: Dict[str, str] = {
    "eth": "evm",
    "ethereum": "evm",
    "evm": "evm",
    "mainnet": "evm",
    "sepolia": "sepolia",
    "arbitrum": "arbitrum",
    "arb": "arbitrum",
    "polygon": "polygon",
    "matic": "polygon",
}

ASSET_ALIASES: Dict[str, str] = {
    "eth": "ETH",
    "ether": "ETH",
    "usdc": "USDC",
    "usdt": "USDT",
    "dai": "DAI",
}

_SLOT_PATTERNS: Dict[str, str] = {
    "amount": r"[0-9]+(?:\.[0-9]+)?",
    "asset": r"[A-Za-z0-9]+",
    "address": r"0x[a-fA-F0-9]{40}",
    "chain": r"[A-Za-z0-9_-]+",
    "slippage": r"[0-9]+(?:\.[0-9]+)?%?",
}

_PLACEHOLDER = re.compile(r"\{([a-zA-Z0-9_]+)\}")
_WS = re.compile(r"\s+")

SlotValue = Union[str, float]


# -----------------------------
# Data classes
# -----------------------------
@dataclass(frozen=True)
class CompiledPattern:
    template_id: str
    source: str
    regex: "re.Pattern[str]"


@dataclass(frozen=True)
class CompiledTemplate:
    template: Template
    patterns: Tuple[CompiledPattern, ...]


@dataclass
class TemplateMatch:
    template_id: str
    pattern: str
    intent: IntentSpec
    score: float
    slots: Dict[str, SlotValue] = field(default_factory=dict)


# -----------------------------
# Compilation
# -----------------------------
def slot_regex_for(slot_name: str, spec: SlotSpec) -> str:
    body = _SLOT_PATTERNS.get(spec.type, r".+")
    return rf"(?P<{slot_name}>{body})"


def _escape_literal(chunk: str) -> str:
    # Runs of template whitespace become "one or more whitespace".
    return r"\s+".join(re.escape(part) for part in _WS.split(chunk))


def compile_pattern(pattern: str, slots: Mapping[str, SlotSpec]) -> "re.Pattern[str]":
    output: List[str] = []
    cursor = 0
    seen: set = set()
    for m in _PLACEHOLDER.finditer(pattern):
        output.append(_escape_literal(pattern[cursor:m.start()]))
        slot_name = m.group(1)
        spec = slots.get(slot_name)
        if spec is None:
            raise TemplateFileError(f"slot_not_defined:{slot_name}")
        if not slot_name.isidentifier():
            raise TemplateFileError(f"slot_name_invalid:{slot_name}")
        if slot_name in seen:
            raise TemplateFileError(f"duplicate_slot:{slot_name}")
        seen.add(slot_name)
        output.append(rf"\s*{slot_regex_for(slot_name, spec)}\s*")
        cursor = m.end()
    output.append(_escape_literal(pattern[cursor:]))

    body = "".join(output)
    try:
        return re.compile(rf"^\s*{body}\s*[.!?。！？]*$", re.IGNORECASE)
    except re.error as e:
        raise TemplateFileError(f"pattern_invalid:{pattern}") from e


def compile_template(template: Template) -> CompiledTemplate:
    return CompiledTemplate(
        template=template,
        patterns=tuple(
            CompiledPattern(template_id=template.id, source=p, regex=compile_pattern(p, template.slots))
            for p in template.patterns
        ),
    )


def compile_templates(templates: Sequence[Template]) -> List[CompiledTemplate]:
    return [compile_template(t) for t in templates]


# -----------------------------
# Slot normalization
# -----------------------------
def resolve_alias(raw: str, *tables: Optional[Mapping[str, str]]) -> str:
    key = raw.strip().lower()
    for table in tables:
        if table and key in table:
            return table[key]
    return raw


def normalize_slot_value(spec: SlotSpec, raw_value: str) -> SlotValue:
    if spec.type == "asset":
        return resolve_alias(raw_value, spec.aliases, ASSET_ALIASES).upper()
    if spec.type == "chain":
        resolved = resolve_alias(raw_value, spec.aliases, CHAIN_ALIASES).strip().lower()
        return CHAIN_ALIASES.get(resolved, resolved)

    resolved = resolve_alias(raw_value, spec.aliases)
    if spec.type == "amount":
        return resolved.replace(",", "")
    if spec.type == "address":
        return resolved.lower()
    if spec.type == "slippage":
        try:
            value = float(resolved.replace("%", ""))
        except ValueError:
            raise IntentResolutionError("invalid_slippage")
        if not math.isfinite(value):
            raise IntentResolutionError("invalid_slippage")
        return value
    return resolved


# -----------------------------
# Intent assembly
# -----------------------------
def set_path(target: Dict[str, Any], key: str, value: Any) -> None:
    parts = key.split(".")
    cursor = target
    for part in parts[:-1]:
        if not isinstance(cursor.get(part), dict):
            cursor[part] = {}
        cursor = cursor[part]
    cursor[parts[-1]] = value


def build_intent_dict(template: Template, slot_values: Mapping[str, SlotValue]) -> Dict[str, Any]:
    output: Dict[str, Any] = copy.deepcopy(dict(template.defaults))
    for key, value in template.mapping.items():
        placeholder = _PLACEHOLDER.fullmatch(value) if isinstance(value, str) else None
        if placeholder:
            slot_name = placeholder.group(1)
            if slot_name not in slot_values:
                continue
            set_path(output, key, slot_values[slot_name])
        else:
            set_path(output, key, copy.deepcopy(value))
    return output


def score_candidate(template: Template, matched: int) -> float:
    total = len(template.slots)
    return template.confidence + (matched / total if total > 0 else 0.0)


# -----------------------------
# Matching
# -----------------------------
def match_templates(text: str, compiled: Sequence[CompiledTemplate]) -> Optional[TemplateMatch]:
    """
    Try every pattern of every template; return the highest-scoring candidate.

    Ties keep the earliest candidate in file order.
    """
    best: Optional[TemplateMatch] = None
    for ct in compiled:
        template = ct.template
        for cp in ct.patterns:
            m = cp.regex.match(text)
            if not m:
                continue
            groups = m.groupdict()
            slot_values: Dict[str, SlotValue] = {}
            for slot_name, spec in template.slots.items():
                raw_value = groups.get(slot_name)
                if not raw_value:
                    continue
                slot_values[slot_name] = normalize_slot_value(spec, raw_value)

            try:
                intent = IntentSpec.model_validate(build_intent_dict(template, slot_values))
            except ValidationError as e:
                logger.warning(
                    "Template %s matched but produced an invalid intent (pattern=%r): %s",
                    template.id,
                    cp.source,
                    e,
                )
                continue

            score = score_candidate(template, len(slot_values))
            logger.debug("Template candidate: id=%s pattern=%r score=%.3f", template.id, cp.source, score)
            if best is None or score > best.score:
                best = TemplateMatch(
                    template_id=template.id,
                    pattern=cp.source,
                    intent=intent,
                    score=score,
                    slots=slot_values,
                )
    return best
