"""
Data models for the intent-to-execution pipeline.
"""

from .intent import ActionType, IntentConstraints, IntentSpec, INTENT_SPEC_JSON_SCHEMA
from .plan import (
    AllowanceRequirement,
    Plan,
    PlanConstraints,
    PlanStep,
    RequiredPermissions,
    RetryPolicy,
)
from .step_result import AssetChange, ErrorCode, StepError, StepResult, StepStatus
from .consent import ConsentScope, RiskLevel

__all__ = [
    "ActionType",
    "IntentConstraints",
    "IntentSpec",
    "INTENT_SPEC_JSON_SCHEMA",
    "AllowanceRequirement",
    "Plan",
    "PlanConstraints",
    "PlanStep",
    "RequiredPermissions",
    "RetryPolicy",
    "AssetChange",
    "ErrorCode",
    "StepError",
    "StepResult",
    "StepStatus",
    "ConsentScope",
    "RiskLevel",
]
