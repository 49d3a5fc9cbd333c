"""
LLM configuration for the natural-language intent resolver.

Only OpenAI-compatible chat-completions endpoints are used. When no API key
is configured the resolver skips the model stage and matches templates only.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


DEFAULT_API_BASE = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o"


@dataclass(frozen=True)
class LLMConfig:
    """Configuration for the intent-parsing model."""

    api_key: Optional[str] = None
    api_base: str = DEFAULT_API_BASE
    model: str = DEFAULT_MODEL

    # Request configuration
    timeout: float = 30.0
    temperature: float = 0.0

    system_prompt: str = (
        "You are a wallet intent parser. Convert the user's request into an "
        "IntentSpec JSON object. Output JSON only, no explanations."
    )

    # Extra headers, e.g. an organization id
    extra_headers: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    @classmethod
    def from_env(cls) -> "LLMConfig":
        """Create configuration from environment variables."""
        return cls(
            api_key=os.getenv("LUCIDWALLET_OPENAI_API_KEY") or None,
            api_base=os.getenv("LUCIDWALLET_OPENAI_API_BASE", DEFAULT_API_BASE).rstrip("/"),
            model=os.getenv("LUCIDWALLET_OPENAI_MODEL", DEFAULT_MODEL),
            timeout=float(os.getenv("LUCIDWALLET_LLM_TIMEOUT", "30")),
        )

    def get_headers(self) -> Dict[str, str]:
        """Get HTTP headers for API requests."""
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        headers.update({k: str(v) for k, v in self.extra_headers.items()})
        return headers

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, masking the key."""
        return {
            "api_key": "***" if self.api_key else None,
            "api_base": self.api_base,
            "model": self.model,
            "timeout": self.timeout,
            "temperature": self.temperature,
        }
