from .errors import IntentResolutionError, NlpError, TemplateFileError
from .normalizer import normalize_text
from .templates import DEFAULT_TEMPLATE_FILE, SlotSpec, Template, TemplateStore, parse_template_file
from .compiler import (
    ASSET_ALIASES,
    CHAIN_ALIASES,
    CompiledTemplate,
    TemplateMatch,
    compile_pattern,
    compile_templates,
    match_templates,
)
from .llm_client import OpenAIIntentClient
from .resolver import IntentResolver, StageOutcome
from .structured import parse_intent

__all__ = [
    "IntentResolutionError",
    "NlpError",
    "TemplateFileError",
    "normalize_text",
    "DEFAULT_TEMPLATE_FILE",
    "SlotSpec",
    "Template",
    "TemplateStore",
    "parse_template_file",
    "ASSET_ALIASES",
    "CHAIN_ALIASES",
    "CompiledTemplate",
    "TemplateMatch",
    "compile_pattern",
    "compile_templates",
    "match_templates",
    "OpenAIIntentClient",
    "IntentResolver",
    "StageOutcome",
    "parse_intent",
]
