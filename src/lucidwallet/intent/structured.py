"""
Structured (JSON) intents: the path for callers that already know the fields.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Union

from pydantic import ValidationError  # pyright: ignore[reportMissingImports]

from lucidwallet.models.intent import IntentSpec
from .errors import IntentResolutionError


def parse_intent(raw: Union[str, bytes, Dict[str, Any]]) -> IntentSpec:
    """
    Parse a JSON string (or an already-decoded dict) into an IntentSpec.

    Raises IntentResolutionError with reasons "empty_input", "invalid_json",
    "not_an_object" or "invalid_fields:<field>".
    """
    if isinstance(raw, (str, bytes)):
        if not raw.strip():
            raise IntentResolutionError("empty_input")
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise IntentResolutionError("invalid_json") from e

    if not isinstance(raw, dict):
        raise IntentResolutionError("not_an_object")

    try:
        return IntentSpec.model_validate(raw)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or "intent"
        raise IntentResolutionError(f"invalid_fields:{field}") from e
