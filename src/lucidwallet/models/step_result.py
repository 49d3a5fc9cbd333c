from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict  # pyright: ignore[reportMissingImports]


class ErrorCode(str, Enum):
    """Canonical codes for economic / on-chain step failures."""

    INSUFFICIENT_BALANCE = "insufficient_balance"
    INSUFFICIENT_ALLOWANCE = "insufficient_allowance"
    SLIPPAGE_TOO_HIGH = "slippage_too_high"
    NONCE_CONFLICT = "nonce_conflict"
    REVERT = "revert"


class StepStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class StepError(BaseModel):
    code: str
    message: str


class AssetChange(BaseModel):
    asset: str
    delta: str


class StepResult(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    step_id: str
    status: StepStatus
    simulation: Optional[Dict[str, Any]] = None
    tx_hash: Optional[str] = None
    receipt: Optional[Dict[str, Any]] = None
    asset_changes: Optional[List[AssetChange]] = None
    error: Optional[StepError] = None

    @property
    def ok(self) -> bool:
        return self.status == StepStatus.SUCCESS.value
