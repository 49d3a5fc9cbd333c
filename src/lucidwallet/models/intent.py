"""
IntentSpec: the structured description of a requested value-moving action.

An IntentSpec is produced once per request (by the natural-language resolver
or from structured JSON) and is immutable thereafter.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field  # pyright: ignore[reportMissingImports]


class ActionType(str, Enum):
    SEND = "send"
    SWAP = "swap"
    APPROVE = "approve"
    REVOKE = "revoke"
    DEPOSIT = "deposit"
    STAKE = "stake"
    WITHDRAW = "withdraw"
    UNSTAKE = "unstake"
    BATCH = "batch"
    REBALANCE = "rebalance"
    SCHEDULE = "schedule"


class IntentConstraints(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    slippage: Optional[float] = None
    deadline: Optional[float] = None


class IntentSpec(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", use_enum_values=True)

    action_type: ActionType
    chain: str
    asset_in: Optional[str] = None
    asset_out: Optional[str] = None
    amount: str = Field(..., description="Decimal string in display units")
    constraints: Optional[IntentConstraints] = None
    target_protocol: Optional[str] = None
    recipient: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize without the fields that were never set."""
        return self.model_dump(exclude_none=True)


# JSON schema handed to the language model as a structured-output constraint,
# and used to validate whatever comes back.
INTENT_SPEC_JSON_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "action_type": {
            "type": "string",
            "enum": [a.value for a in ActionType],
        },
        "chain": {"type": "string"},
        "asset_in": {"type": "string"},
        "asset_out": {"type": "string"},
        "amount": {"type": "string"},
        "constraints": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "slippage": {"type": "number"},
                "deadline": {"type": "number"},
            },
        },
        "target_protocol": {"type": "string"},
        "recipient": {"type": "string"},
    },
    "required": ["action_type", "chain", "amount"],
}
