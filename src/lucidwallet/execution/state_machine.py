"""
Execution lifecycle state machine.

    DRAFT -> PLANNED -> APPROVED -> EXECUTING -> CONFIRMED -> DONE
                                              |
                                              +-> FAILED
    any non-terminal state --abort()--> ABORTED

Transitions are forward-only; anything else raises InvalidTransitionError.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, FrozenSet, List, Tuple

from lucidwallet.models.step_result import StepResult

logger = logging.getLogger(__name__)


class ExecutionState(str, Enum):
    DRAFT = "DRAFT"
    PLANNED = "PLANNED"
    APPROVED = "APPROVED"
    EXECUTING = "EXECUTING"
    CONFIRMED = "CONFIRMED"
    DONE = "DONE"
    FAILED = "FAILED"
    ABORTED = "ABORTED"


class StepPhase(str, Enum):
    PREPARE = "PREPARE"
    SIMULATE = "SIMULATE"
    SIGN = "SIGN"
    SEND = "SEND"
    CONFIRM = "CONFIRM"
    VERIFY = "VERIFY"


ALLOWED_TRANSITIONS: Dict[ExecutionState, FrozenSet[ExecutionState]] = {
    ExecutionState.DRAFT: frozenset({ExecutionState.PLANNED}),
    ExecutionState.PLANNED: frozenset({ExecutionState.APPROVED}),
    ExecutionState.APPROVED: frozenset({ExecutionState.EXECUTING}),
    ExecutionState.EXECUTING: frozenset({ExecutionState.CONFIRMED, ExecutionState.FAILED}),
    ExecutionState.CONFIRMED: frozenset({ExecutionState.DONE}),
    ExecutionState.DONE: frozenset(),
    ExecutionState.FAILED: frozenset(),
    ExecutionState.ABORTED: frozenset(),
}

TERMINAL_STATES: FrozenSet[ExecutionState] = frozenset(
    {ExecutionState.DONE, ExecutionState.FAILED, ExecutionState.ABORTED}
)

# Phase a step enters when its tool is dispatched.
TOOL_PHASES: Dict[str, StepPhase] = {
    "chain_read": StepPhase.PREPARE,
    "quote_route": StepPhase.PREPARE,
    "build_tx": StepPhase.PREPARE,
    "simulate_tx": StepPhase.SIMULATE,
    "simulate_transfer": StepPhase.SIMULATE,
    "sign_tx": StepPhase.SIGN,
    "send_tx": StepPhase.SEND,
    "wait_confirm": StepPhase.CONFIRM,
}


class InvalidTransitionError(RuntimeError):
    def __init__(self, current: ExecutionState, target: ExecutionState):
        self.current = current
        self.target = target
        super().__init__(f"invalid_transition:{current.value}->{target.value}")


class ExecutionStateMachine:
    """Tracks one execution: lifecycle state, step phase and recorded results."""

    def __init__(self) -> None:
        self.state = ExecutionState.DRAFT
        self.step_phase = StepPhase.PREPARE
        self.history: List[Tuple[ExecutionState, ExecutionState]] = []
        self.results: List[StepResult] = []

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def can_transition(self, target: ExecutionState) -> bool:
        return target in ALLOWED_TRANSITIONS[self.state]

    def transition(self, target: ExecutionState) -> None:
        target = ExecutionState(target)
        if not self.can_transition(target):
            raise InvalidTransitionError(self.state, target)
        self.history.append((self.state, target))
        logger.debug("execution state %s -> %s", self.state.value, target.value)
        self.state = target

    def abort(self) -> None:
        if self.is_terminal:
            raise InvalidTransitionError(self.state, ExecutionState.ABORTED)
        self.history.append((self.state, ExecutionState.ABORTED))
        logger.info("execution aborted from %s", self.state.value)
        self.state = ExecutionState.ABORTED

    def enter_phase(self, phase: StepPhase) -> None:
        self.step_phase = StepPhase(phase)

    def record_result(self, result: StepResult) -> None:
        self.results.append(result)
