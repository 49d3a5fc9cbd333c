#!/usr/bin/env python3
"""
Two-stage natural-language intent resolver.

Stage 1 asks the configured language model for an IntentSpec. Stage 2 matches
the normalized text against the compiled templates. Stage 1 is skipped when
no API key is configured; any stage-1 failure falls through to stage 2.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from lucidwallet.config import LLMConfig
from lucidwallet.logging_setup import ensure_logger
from lucidwallet.models.intent import IntentSpec
from .compiler import CompiledTemplate, compile_templates, match_templates
from .errors import IntentResolutionError, NlpError
from .llm_client import OpenAIIntentClient
from .normalizer import normalize_text
from .templates import TemplateStore

logger = ensure_logger(__name__)

STAGE_LLM = "llm"
STAGE_TEMPLATE = "template"

STATUS_OK = "ok"
STATUS_NOT_CONFIGURED = "not_configured"
STATUS_FAILED = "failed"
STATUS_NO_MATCH = "no_match"


@dataclass(frozen=True)
class StageOutcome:
    stage: str
    status: str
    intent: Optional[IntentSpec] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK


class IntentResolver:
    """
    Turns free text into an IntentSpec.

    The template store is owned by the resolver (or passed in), so tests and
    processes each decide their own cache lifetime.
    """

    def __init__(
        self,
        llm_config: Optional[LLMConfig] = None,
        template_store: Optional[TemplateStore] = None,
        llm_client: Optional[OpenAIIntentClient] = None,
    ):
        self.llm_config = llm_config or LLMConfig.from_env()
        self.template_store = template_store or TemplateStore()
        if llm_client is None and self.llm_config.is_configured:
            llm_client = OpenAIIntentClient(self.llm_config)
        self.llm_client = llm_client

    def compiled_templates(self, template_file: Optional[Union[str, Path]] = None) -> List[CompiledTemplate]:
        store = self.template_store
        templates = store.load(template_file)
        key = store.cache_key(template_file)
        compiled = store.compiled.get(key)
        if compiled is None:
            compiled = compile_templates(templates)
            store.compiled[key] = compiled
        return compiled

    async def run_llm_stage(self, text: str) -> StageOutcome:
        if self.llm_client is None:
            return StageOutcome(STAGE_LLM, STATUS_NOT_CONFIGURED, error=NlpError("nlp_not_configured"))
        try:
            intent = await self.llm_client.parse(text)
        except NlpError as e:
            status = STATUS_NOT_CONFIGURED if e.not_configured else STATUS_FAILED
            return StageOutcome(STAGE_LLM, status, error=e)
        except Exception as e:
            # Caller-supplied clients may raise anything; the stage still just fails.
            error = NlpError(f"nlp_failed:{e.__class__.__name__}:{e}")
            error.__cause__ = e
            return StageOutcome(STAGE_LLM, STATUS_FAILED, error=error)
        return StageOutcome(STAGE_LLM, STATUS_OK, intent=intent)

    def run_template_stage(self, text: str, template_file: Optional[Union[str, Path]] = None) -> StageOutcome:
        match = match_templates(text, self.compiled_templates(template_file))
        if match is None:
            return StageOutcome(STAGE_TEMPLATE, STATUS_NO_MATCH)
        logger.info("Intent matched template %s (score=%.3f)", match.template_id, match.score)
        return StageOutcome(STAGE_TEMPLATE, STATUS_OK, intent=match.intent)

    async def resolve(self, text: str, template_file: Optional[Union[str, Path]] = None) -> IntentSpec:
        normalized = normalize_text(text or "")
        if not normalized:
            raise IntentResolutionError("empty_input")

        llm = await self.run_llm_stage(normalized)
        if llm.ok:
            logger.info("Intent resolved by LLM: action_type=%s", llm.intent.action_type)
            return llm.intent
        if llm.status != STATUS_NOT_CONFIGURED:
            logger.warning("intent.llm_fallback reason=%s", llm.error)

        tpl = self.run_template_stage(normalized, template_file)
        if tpl.ok:
            return tpl.intent

        llm_error = llm.error if llm.status == STATUS_FAILED else None
        logger.info("No template matched input %r", normalized)
        raise IntentResolutionError("template_not_matched", llm_error=llm_error) from llm_error

    async def aclose(self) -> None:
        """Close the model client's HTTP pool, if one was opened."""
        if self.llm_client is not None:
            await self.llm_client.aclose()

    async def __aenter__(self) -> "IntentResolver":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
