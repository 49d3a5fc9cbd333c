#!/usr/bin/env python3
"""
Execution Engine

Runs a plan's steps strictly in order against the tool registry:

1. resolve the step input (static input + wired outputs of earlier steps)
2. dispatch to the tool (input / output validated by the tool's models)
3. post-validate chain reads against the plan's requirements
4. record a StepResult, or stop at the first failure

Execution failures never raise: they end up as the last, failed StepResult
and the FAILED state. There are no retries and no compensation for steps
that already ran.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel  # pyright: ignore[reportMissingImports]

from lucidwallet.logging_setup import ensure_logger
from lucidwallet.models.intent import IntentSpec
from lucidwallet.models.plan import Plan, PlanStep
from lucidwallet.models.step_result import ErrorCode, StepError, StepResult, StepStatus
from lucidwallet.planning.plan_builder import PlanBuilder
from lucidwallet.tools.base import SignerProtocol, ToolContext
from lucidwallet.tools.registry import ToolError, ToolRegistry
from lucidwallet.tools.stubs import default_registry
from .error_mapping import classify_error
from .state_machine import TOOL_PHASES, ExecutionState, ExecutionStateMachine, StepPhase
from .wiring import OUTPUT_WIRING, OutputWire, resolve_step_input

logger = ensure_logger(__name__)

RECOVERY_OPTIONS = ["retry", "adjust_slippage", "adjust_amount"]


@dataclass
class ExecutionResult:
    plan: Plan
    results: List[StepResult] = field(default_factory=list)
    state: ExecutionState = ExecutionState.DRAFT

    @property
    def ok(self) -> bool:
        return self.state == ExecutionState.DONE

    @property
    def failed_step(self) -> Optional[StepResult]:
        for result in self.results:
            if not result.ok:
                return result
        return None


def _as_int(value: Any) -> Optional[int]:
    """Integer strings only; decimal display amounts are not compared."""
    if value is None:
        return None
    text = str(value).strip()
    if not text or "." in text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def verify_chain_read(step_input: Mapping[str, Any], output: Mapping[str, Any]) -> None:
    required_amount = _as_int(step_input.get("required_amount"))
    balance = _as_int(output.get("balance"))
    if required_amount is not None and balance is not None and balance < required_amount:
        raise ToolError("chain_read", "insufficient_balance", code=ErrorCode.INSUFFICIENT_BALANCE.value)

    required_allowance = _as_int(step_input.get("required_allowance"))
    allowance = _as_int(output.get("allowance"))
    if required_allowance is not None and allowance is not None and allowance < required_allowance:
        raise ToolError("chain_read", "insufficient_allowance", code=ErrorCode.INSUFFICIENT_ALLOWANCE.value)


def build_step_result(step: PlanStep, output: Mapping[str, Any]) -> StepResult:
    if step.tool == "simulate_tx":
        return StepResult(step_id=step.step_id, status=StepStatus.SUCCESS, simulation=dict(output))
    if step.tool == "send_tx":
        return StepResult(step_id=step.step_id, status=StepStatus.SUCCESS, tx_hash=output.get("tx_hash"))
    if step.tool == "wait_confirm":
        return StepResult(step_id=step.step_id, status=StepStatus.SUCCESS, receipt=output.get("receipt"))
    return StepResult(step_id=step.step_id, status=StepStatus.SUCCESS)


class ExecutionEngine:
    """
    Plans and executes intents.

    The engine itself holds only collaborators (signer, registry, planner);
    every `execute()` call gets its own state machine and output map, so one
    engine can serve concurrent executions.
    """

    def __init__(
        self,
        signer: Optional[SignerProtocol],
        registry: Optional[ToolRegistry] = None,
        plan_builder: Optional[PlanBuilder] = None,
        wiring: Optional[List[OutputWire]] = None,
    ):
        self.signer = signer
        self.registry = registry or default_registry()
        self.plan_builder = plan_builder or PlanBuilder()
        self.wiring = wiring or OUTPUT_WIRING

    def plan(self, intent: Union[IntentSpec, Dict[str, Any]]) -> Plan:
        if isinstance(intent, dict):
            intent = IntentSpec.model_validate(intent)
        return self.plan_builder.build(intent)

    def get_recovery_options(self) -> List[str]:
        return list(RECOVERY_OPTIONS)

    async def _run_step(
        self,
        step: PlanStep,
        step_input: Dict[str, Any],
        context: ToolContext,
        machine: ExecutionStateMachine,
    ) -> Dict[str, Any]:
        tool = self.registry.get(step.tool)
        machine.enter_phase(TOOL_PHASES.get(step.tool, StepPhase.PREPARE))

        output_model = await tool.execute(step_input, context)
        output = output_model.model_dump() if isinstance(output_model, BaseModel) else dict(output_model)

        if step.tool == "chain_read":
            machine.enter_phase(StepPhase.VERIFY)
            verify_chain_read(step_input, output)
        return output

    async def execute(self, intent: Union[IntentSpec, Dict[str, Any]]) -> ExecutionResult:
        if isinstance(intent, dict):
            intent = IntentSpec.model_validate(intent)

        plan = self.plan(intent)
        machine = ExecutionStateMachine()
        machine.transition(ExecutionState.PLANNED)
        outputs: Dict[str, Dict[str, Any]] = {}

        context = ToolContext(chain=intent.chain, request_id=plan.plan_id, signer=self.signer)

        machine.transition(ExecutionState.APPROVED)
        machine.transition(ExecutionState.EXECUTING)
        logger.info("Executing plan %s (%d steps)", plan.plan_id, len(plan.steps))

        for idx, step in enumerate(plan.steps, 1):
            step_input = resolve_step_input(step.step_id, step.input, outputs, self.wiring)
            started = time.perf_counter()
            try:
                output = await self._run_step(step, step_input, context, machine)
            except Exception as exc:
                code = classify_error(exc)
                message = getattr(exc, "reason", None) or str(exc)
                machine.record_result(
                    StepResult(
                        step_id=step.step_id,
                        status=StepStatus.FAILED,
                        error=StepError(code=code, message=message),
                    )
                )
                machine.transition(ExecutionState.FAILED)
                logger.warning(
                    "Plan %s failed at step %d/%d (%s): code=%s message=%s",
                    plan.plan_id,
                    idx,
                    len(plan.steps),
                    step.step_id,
                    code,
                    message,
                )
                return ExecutionResult(plan=plan, results=list(machine.results), state=machine.state)

            outputs[step.step_id] = output
            machine.record_result(build_step_result(step, output))
            logger.debug(
                "Step %d/%d (%s) succeeded in %.3fs",
                idx,
                len(plan.steps),
                step.step_id,
                time.perf_counter() - started,
            )

        machine.transition(ExecutionState.CONFIRMED)
        machine.transition(ExecutionState.DONE)
        logger.info("Plan %s done", plan.plan_id)
        return ExecutionResult(plan=plan, results=list(machine.results), state=machine.state)
