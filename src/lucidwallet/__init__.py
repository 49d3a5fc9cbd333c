"""
lucidwallet: intent-to-execution core for an agent wallet.

Free text or structured JSON -> IntentSpec -> Plan -> ordered tool calls,
with every signature gated by a ConsentScope-bound signer.
"""

from .models import (
    ActionType,
    ConsentScope,
    ErrorCode,
    IntentConstraints,
    IntentSpec,
    Plan,
    PlanStep,
    RiskLevel,
    StepResult,
    StepStatus,
)
from .intent import IntentResolutionError, IntentResolver, TemplateStore, parse_intent
from .planning import PlanBuilder, PlanDefaults
from .execution import ExecutionEngine, ExecutionResult, ExecutionState, ExecutionStateMachine
from .tools import ToolBase, ToolContext, ToolError, ToolRegistry, default_registry
from .wallet import AuditLog, PolicySigner, PolicyViolation, SignRequest, SignResult

__version__ = "0.1.0"

__all__ = [
    "ActionType",
    "ConsentScope",
    "ErrorCode",
    "IntentConstraints",
    "IntentSpec",
    "Plan",
    "PlanStep",
    "RiskLevel",
    "StepResult",
    "StepStatus",
    "IntentResolutionError",
    "IntentResolver",
    "TemplateStore",
    "parse_intent",
    "PlanBuilder",
    "PlanDefaults",
    "ExecutionEngine",
    "ExecutionResult",
    "ExecutionState",
    "ExecutionStateMachine",
    "ToolBase",
    "ToolContext",
    "ToolError",
    "ToolRegistry",
    "default_registry",
    "AuditLog",
    "PolicySigner",
    "PolicyViolation",
    "SignRequest",
    "SignResult",
]
