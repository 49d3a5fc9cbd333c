from __future__ import annotations

from typing import Optional


class IntentResolutionError(Exception):
    """
    Raised before any plan exists when a request cannot be turned into an intent.

    `reason` is the short machine code (e.g. "empty_input",
    "template_not_matched"); the string form carries the
    `intent_parse_failed:` prefix.
    """

    def __init__(self, reason: str, *, llm_error: Optional[Exception] = None):
        self.reason = reason
        self.code = f"intent_parse_failed:{reason}"
        self.llm_error = llm_error
        super().__init__(self.code)


class TemplateFileError(ValueError):
    def __init__(self, reason: str):
        self.reason = reason
        self.code = f"nl_template_invalid:{reason}"
        super().__init__(self.code)


class NlpError(Exception):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)

    @property
    def not_configured(self) -> bool:
        return self.reason.startswith("nlp_not_configured")
