"""
Natural-language template definitions: loading, validation and caching.

A template file looks like:

    {"templates": [{"id": "...", "intent_type": "send" | "swap",
                    "language": "en" | "zh" | "any",
                    "patterns": ["send {amount} {asset} to {recipient}", ...],
                    "slots": {"amount": {"type": "amount"}, ...},
                    "mapping": {"action_type": "send", "asset_in": "{asset}", ...},
                    "defaults": {...}, "confidence": 0.8}]}

Malformed files fail fast with a TemplateFileError whose code names the
first offending field.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .errors import TemplateFileError

logger = logging.getLogger(__name__)

SLOT_TYPES = ("amount", "asset", "address", "chain", "slippage")
INTENT_TYPES = ("send", "swap")
DEFAULT_CONFIDENCE = 0.6

DEFAULT_TEMPLATE_FILE = Path(__file__).resolve().parent.parent / "data" / "nl_templates" / "send_swap.json"


@dataclass(frozen=True)
class SlotSpec:
    type: str
    aliases: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Template:
    id: str
    intent_type: str
    patterns: Tuple[str, ...]
    slots: Mapping[str, SlotSpec]
    mapping: Mapping[str, Any]
    defaults: Mapping[str, Any] = field(default_factory=dict)
    confidence: float = DEFAULT_CONFIDENCE
    language: str = "any"


def _safe_hash(s: str) -> str:
    return hashlib.sha256(s.encode("utf-8", "ignore")).hexdigest()


def _parse_slots(index: int, raw: Dict[str, Any]) -> Dict[str, SlotSpec]:
    slots: Dict[str, SlotSpec] = {}
    for name, spec in raw.items():
        if not isinstance(spec, dict) or spec.get("type") not in SLOT_TYPES:
            raise TemplateFileError(f"template_{index}_slot_{name}_type")
        aliases = spec.get("aliases") or {}
        if not isinstance(aliases, dict):
            raise TemplateFileError(f"template_{index}_slot_{name}_aliases")
        slots[name] = SlotSpec(
            type=spec["type"],
            aliases={str(k).strip().lower(): str(v) for k, v in aliases.items()},
        )
    return slots


def parse_template_file(raw: Any) -> List[Template]:
    """Validate the decoded JSON of a template file and build Template objects."""
    if not isinstance(raw, dict):
        raise TemplateFileError("root_not_object")
    entries = raw.get("templates")
    if not isinstance(entries, list):
        raise TemplateFileError("missing_templates")

    templates: List[Template] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise TemplateFileError(f"template_{index}_not_object")
        if not entry.get("id") or not isinstance(entry.get("id"), str):
            raise TemplateFileError(f"template_{index}_id")
        if entry.get("intent_type") not in INTENT_TYPES:
            raise TemplateFileError(f"template_{index}_intent_type")
        patterns = entry.get("patterns")
        if not isinstance(patterns, list) or not patterns or not all(isinstance(p, str) for p in patterns):
            raise TemplateFileError(f"template_{index}_patterns")
        if not isinstance(entry.get("slots"), dict):
            raise TemplateFileError(f"template_{index}_slots")
        if not isinstance(entry.get("mapping"), dict):
            raise TemplateFileError(f"template_{index}_mapping")
        defaults = entry.get("defaults") or {}
        if not isinstance(defaults, dict):
            raise TemplateFileError(f"template_{index}_defaults")
        confidence = entry.get("confidence", DEFAULT_CONFIDENCE)
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            raise TemplateFileError(f"template_{index}_confidence")

        templates.append(
            Template(
                id=entry["id"],
                intent_type=entry["intent_type"],
                patterns=tuple(patterns),
                slots=_parse_slots(index, entry["slots"]),
                mapping=dict(entry["mapping"]),
                defaults=dict(defaults),
                confidence=float(confidence),
                language=str(entry.get("language") or "any"),
            )
        )
    return templates


class TemplateStore:
    """
    Loads template files once and caches them by resolved path.

    Owned by the caller (one per process, per resolver or per test); there is
    no module-level cache. A changed file on disk is picked up by `reload()`.
    """

    def __init__(self, default_path: Optional[Union[str, Path]] = None):
        env_path = os.getenv("LUCIDWALLET_NL_TEMPLATE_FILE", "").strip()
        self.default_path = Path(default_path or env_path or DEFAULT_TEMPLATE_FILE)
        self._lock = threading.Lock()
        self._templates: Dict[str, List[Template]] = {}
        self._file_hashes: Dict[str, str] = {}
        # Compiled matchers keyed by path, filled by the compiler.
        self.compiled: Dict[str, Any] = {}

    def load(self, path: Optional[Union[str, Path]] = None) -> List[Template]:
        key = str(Path(path or self.default_path).resolve())
        with self._lock:
            cached = self._templates.get(key)
            if cached is not None:
                return cached
            templates = self._read(key)
            self._templates[key] = templates
            self.compiled.pop(key, None)
            return templates

    def reload(self, path: Optional[Union[str, Path]] = None) -> List[Template]:
        key = str(Path(path or self.default_path).resolve())
        with self._lock:
            self._templates.pop(key, None)
            self.compiled.pop(key, None)
        return self.load(key)

    def cache_key(self, path: Optional[Union[str, Path]] = None) -> str:
        return str(Path(path or self.default_path).resolve())

    def file_hash(self, path: Optional[Union[str, Path]] = None) -> Optional[str]:
        return self._file_hashes.get(self.cache_key(path))

    def _read(self, key: str) -> List[Template]:
        p = Path(key)
        if not p.exists():
            logger.error("Template file not found: %s", key)
            raise TemplateFileError("file_not_found")
        text = p.read_text(encoding="utf-8")
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.error("Invalid JSON in %s: %s", key, e)
            raise TemplateFileError("invalid_json") from e

        templates = parse_template_file(data)
        self._file_hashes[key] = _safe_hash(text)
        logger.info("Loaded %d NL templates from %s", len(templates), key)
        return templates
