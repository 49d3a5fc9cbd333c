from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field  # pyright: ignore[reportMissingImports]


class RetryPolicy(BaseModel):
    max_retries: int = 0
    backoff_ms: int = 0


class PlanStep(BaseModel):
    """
    One unit of work bound to a named tool.

    `preconditions` name the postconditions of earlier steps this step relies
    on. They are markers only; ordering in `Plan.steps` is what the executor
    honours.
    """

    step_id: str
    tool: str
    input: Dict[str, Any] = Field(default_factory=dict)
    preconditions: List[str] = Field(default_factory=list)
    postconditions: List[str] = Field(default_factory=list)
    retry_policy: Optional[RetryPolicy] = None


class PlanConstraints(BaseModel):
    slippage: Optional[float] = None
    deadline: Optional[float] = None
    max_gas: Optional[str] = None
    max_total_fee: Optional[str] = None
    timeout_ms: Optional[int] = None


class AllowanceRequirement(BaseModel):
    token: str
    spender: str
    amount: str


class RequiredPermissions(BaseModel):
    allowance: List[AllowanceRequirement] = Field(default_factory=list)
    signatures: int = 0


class Plan(BaseModel):
    plan_id: str
    steps: List[PlanStep] = Field(default_factory=list)
    constraints: Optional[PlanConstraints] = None
    required_permissions: Optional[RequiredPermissions] = None

    def step_ids(self) -> List[str]:
        return [s.step_id for s in self.steps]

    def get_step(self, step_id: str) -> Optional[PlanStep]:
        for step in self.steps:
            if step.step_id == step_id:
                return step
        return None
