#!/usr/bin/env python3
"""
OpenAI-compatible client for intent extraction.

Sends the user's text to a chat-completions endpoint with a JSON
schema response format, then validates the returned object twice: first
against the IntentSpec JSON schema (jsonschema), then as an IntentSpec model.
Every failure is raised as NlpError with a short reason code.
"""

import json
import logging
from typing import Any, Dict, Optional

import httpx
from jsonschema import Draft7Validator  # pyright: ignore[reportMissingModuleSource]
from pydantic import ValidationError  # pyright: ignore[reportMissingImports]

from lucidwallet.config import LLMConfig
from lucidwallet.models.intent import INTENT_SPEC_JSON_SCHEMA, IntentSpec
from .errors import NlpError

logger = logging.getLogger(__name__)

_MAX_ERROR_BODY = 200

_VALIDATOR = Draft7Validator(INTENT_SPEC_JSON_SCHEMA)


def _schema_errors(payload: Any) -> Optional[str]:
    errors = sorted(_VALIDATOR.iter_errors(payload), key=lambda e: list(e.path))
    if not errors:
        return None
    first = errors[0]
    path = ".".join(str(p) for p in first.path) or "$"
    return f"{path}: {first.message}"


class OpenAIIntentClient:
    """Asks the configured model for an IntentSpec."""

    def __init__(self, config: Optional[LLMConfig] = None, http_client: Optional[httpx.AsyncClient] = None):
        self.config = config or LLMConfig.from_env()
        self._http = http_client

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            timeout = self.config.timeout
            self._http = httpx.AsyncClient(
                timeout=httpx.Timeout(
                    connect=min(timeout, 5.0),
                    read=timeout,
                    write=min(timeout, 5.0),
                    pool=min(timeout, 5.0),
                )
            )
        return self._http

    def build_payload(self, text: str) -> Dict[str, Any]:
        return {
            "model": self.config.model,
            "temperature": self.config.temperature,
            "messages": [
                {"role": "system", "content": self.config.system_prompt},
                {"role": "user", "content": text},
            ],
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": "IntentSpec",
                    "schema": INTENT_SPEC_JSON_SCHEMA,
                },
            },
        }

    async def parse(self, text: str) -> IntentSpec:
        if not self.config.is_configured:
            raise NlpError("nlp_not_configured")

        url = f"{self.config.api_base.rstrip('/')}/chat/completions"
        try:
            response = await self._client().post(
                url, json=self.build_payload(text), headers=self.config.get_headers()
            )
        except httpx.HTTPError as e:
            logger.warning("LLM request to %s failed: %s: %s", url, e.__class__.__name__, e)
            raise NlpError(f"nlp_failed:transport:{e.__class__.__name__}") from e

        if response.status_code >= 400:
            body = response.text[:_MAX_ERROR_BODY]
            raise NlpError(f"nlp_failed:{response.status_code}:{body}")

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            content = None
        if not content:
            raise NlpError("nlp_failed:empty_response")
        if not isinstance(content, str):
            raise NlpError(f"nlp_failed:invalid_json:content is {type(content).__name__}, not str")

        try:
            payload = json.loads(content)
        except json.JSONDecodeError as e:
            raise NlpError(f"nlp_failed:invalid_json:{e.msg}") from e

        schema_error = _schema_errors(payload)
        if schema_error:
            raise NlpError(f"nlp_failed:schema:{schema_error}")

        try:
            return IntentSpec.model_validate(payload)
        except ValidationError as e:
            raise NlpError(f"nlp_failed:schema:{e.errors()[0].get('msg', 'invalid')}") from e

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None
