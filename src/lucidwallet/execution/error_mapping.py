from __future__ import annotations

from pydantic import ValidationError  # pyright: ignore[reportMissingImports]

from lucidwallet.models.step_result import ErrorCode
from lucidwallet.tools.registry import ToolNotFoundError

# Substring -> code, checked in order against the lowercased message.
_MESSAGE_CODES = (
    ("balance", ErrorCode.INSUFFICIENT_BALANCE),
    ("allowance", ErrorCode.INSUFFICIENT_ALLOWANCE),
    ("slippage", ErrorCode.SLIPPAGE_TOO_HIGH),
    ("nonce", ErrorCode.NONCE_CONFLICT),
)


def classify_message(message: str) -> str:
    normalized = (message or "").lower()
    for needle, code in _MESSAGE_CODES:
        if needle in normalized:
            return code.value
    return ErrorCode.REVERT.value


def classify_error(exc: BaseException) -> str:
    """
    Map a step failure to the code recorded on its StepResult.

    A structured `code` attribute (ToolError, PolicyViolation) wins; schema
    and unknown-tool failures are reverts; anything else is classified by
    message.
    """
    if isinstance(exc, (ValidationError, ToolNotFoundError)):
        return ErrorCode.REVERT.value
    code = getattr(exc, "code", None)
    if code:
        return str(getattr(code, "value", code))
    if isinstance(getattr(exc, "original_exc", None), ValidationError):
        return ErrorCode.REVERT.value
    return classify_message(getattr(exc, "reason", None) or str(exc))
