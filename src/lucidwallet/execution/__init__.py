from .state_machine import (
    ALLOWED_TRANSITIONS,
    ExecutionState,
    ExecutionStateMachine,
    InvalidTransitionError,
    StepPhase,
)
from .wiring import OUTPUT_WIRING, OutputWire, resolve_step_input
from .error_mapping import classify_error, classify_message
from .engine import RECOVERY_OPTIONS, ExecutionEngine, ExecutionResult

__all__ = [
    "ALLOWED_TRANSITIONS",
    "ExecutionState",
    "ExecutionStateMachine",
    "InvalidTransitionError",
    "StepPhase",
    "OUTPUT_WIRING",
    "OutputWire",
    "resolve_step_input",
    "classify_error",
    "classify_message",
    "RECOVERY_OPTIONS",
    "ExecutionEngine",
    "ExecutionResult",
]
