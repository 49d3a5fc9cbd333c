from __future__ import annotations

from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field  # pyright: ignore[reportMissingImports]


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ConsentScope(BaseModel):
    """
    Authorization envelope for one signing session.

    Frozen: the signer reads it on every request and nothing may widen it
    after the user granted it.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    chain: str
    spender_allowlist: List[str] = Field(default_factory=list)
    tokens: List[str] = Field(default_factory=list)
    max_amount: str
    expiry: int = Field(..., description="Unix epoch milliseconds")
    risk_level: RiskLevel = RiskLevel.LOW
