#!/usr/bin/env python3
"""
Plan Builder

Expands an IntentSpec into an ordered, conditional step graph:

    chain_read
      [approve subchain]   build -> simulate -> sign -> send -> wait_confirm
      [transfer subchain]  (send intents)
      [swap subchain]      quote_route -> build -> simulate -> sign -> send -> wait_confirm

Each step's preconditions name the postcondition of the step before it, so the
array order is also the dependency order. Static inputs hold placeholders
(`0xSIGNED`, `0x0`) that the execution engine replaces with the outputs of
earlier steps at run time.
"""

from __future__ import annotations

import logging
import os
import time
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from lucidwallet.models.intent import ActionType, IntentSpec
from lucidwallet.models.plan import (
    AllowanceRequirement,
    Plan,
    PlanConstraints,
    PlanStep,
    RequiredPermissions,
)
from .units import (
    UnitConversionError,
    decimals_for,
    encode_erc20_approve,
    encode_erc20_transfer,
    is_hex_address,
    is_native,
    to_base_units,
)

logger = logging.getLogger(__name__)

APPROVE_SWAP_PROTOCOL = "approve+swap"

SIGNED_PLACEHOLDER = "0xSIGNED"
TX_HASH_PLACEHOLDER = "0x0"
APPROVE_DATA_PLACEHOLDER = "0xAPPROVE"


class PlanBuildError(ValueError):
    """Raised when an intent cannot be expanded into a plan."""

    def __init__(self, reason: str):
        self.reason = reason
        self.code = reason
        super().__init__(reason)


@dataclass(frozen=True)
class PlanDefaults:
    """Addresses the planner fills in where the intent does not name them."""

    wallet_address: str = "0xWALLET"
    spender: str = "0xSWAP_CONTRACT"
    token_contract: str = "0xTOKEN_CONTRACT"

    @classmethod
    def from_env(cls) -> "PlanDefaults":
        return cls(
            wallet_address=os.getenv("LUCIDWALLET_WALLET_ADDRESS", "0xWALLET"),
            spender=os.getenv("LUCIDWALLET_SPENDER_ADDRESS", "0xSWAP_CONTRACT"),
            token_contract=os.getenv("LUCIDWALLET_TOKEN_CONTRACT", "0xTOKEN_CONTRACT"),
        )


def new_plan_id() -> str:
    return f"plan_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


def _step(step_id: str, tool: str, input: Dict[str, Any], pre: List[str], post: List[str]) -> PlanStep:
    return PlanStep(step_id=step_id, tool=tool, input=input, preconditions=pre, postconditions=post)


def _tx_subchain(
    kind: str,
    tx: Dict[str, str],
    sign_extra: Dict[str, Any],
    gate: str,
    postconditions: List[str],
) -> List[PlanStep]:
    """
    build -> simulate -> sign -> send -> wait_confirm for one transaction.

    `postconditions` holds the five markers in order; each step is gated on
    the marker of the step before it, the first on `gate`.
    """
    built, simulated, signed, sent, confirmed = postconditions
    return [
        _step(f"build_{kind}_tx", "build_tx", dict(tx), [gate], [built]),
        _step(f"simulate_{kind}_tx", "simulate_tx", dict(tx), [built], [simulated]),
        _step(f"sign_{kind}_tx", "sign_tx", {**tx, **sign_extra}, [simulated], [signed]),
        _step(f"send_{kind}_tx", "send_tx", {"signed_tx": SIGNED_PLACEHOLDER}, [signed], [sent]),
        _step(f"wait_confirm_{kind}", "wait_confirm", {"tx_hash": TX_HASH_PLACEHOLDER}, [sent], [confirmed]),
    ]


class PlanBuilder:
    def __init__(self, defaults: Optional[PlanDefaults] = None):
        self.defaults = defaults or PlanDefaults()

    @staticmethod
    def needs_approval(intent: IntentSpec) -> bool:
        return intent.action_type == ActionType.APPROVE.value or intent.target_protocol == APPROVE_SWAP_PROTOCOL

    def _base_units(self, intent: IntentSpec) -> str:
        try:
            return to_base_units(intent.amount, decimals_for(intent.asset_in or ""))
        except UnitConversionError as e:
            raise PlanBuildError(e.reason) from e

    def _chain_read(self, intent: IntentSpec, approval: bool) -> PlanStep:
        payload: Dict[str, Any] = {
            "address": self.defaults.wallet_address,
            "required_amount": intent.amount,
        }
        if intent.asset_in and not is_native(intent.asset_in, intent.chain):
            payload["token"] = intent.asset_in
        if approval:
            payload["spender"] = self.defaults.spender
            payload["required_allowance"] = intent.amount
        return _step("chain_read", "chain_read", payload, [], ["has_balance"])

    def _approve_steps(self, intent: IntentSpec) -> List[PlanStep]:
        spender = self.defaults.spender
        if is_hex_address(spender):
            data = encode_erc20_approve(spender, self._base_units(intent))
        else:
            data = APPROVE_DATA_PLACEHOLDER
        tx = {"to": self.defaults.token_contract, "data": data, "value": "0"}
        sign_extra = {
            "chain": intent.chain,
            "token": intent.asset_in or "",
            "amount": intent.amount,
            "spender": spender,
        }
        return _tx_subchain(
            "approve",
            tx,
            sign_extra,
            gate="has_balance",
            postconditions=["has_approve_tx", "approve_simulated", "approve_signed", "approve_sent", "approve_confirmed"],
        )

    def _transfer_steps(self, intent: IntentSpec, gate: str) -> List[PlanStep]:
        if not intent.recipient:
            raise PlanBuildError("missing_recipient")
        asset = intent.asset_in or ""
        base_units = self._base_units(intent)
        if not asset or is_native(asset, intent.chain):
            tx = {"to": intent.recipient, "data": "0x", "value": base_units}
        else:
            # Token transfers carry the recipient in calldata, so it must be a raw address.
            if not is_hex_address(intent.recipient):
                raise PlanBuildError("invalid_recipient")
            data = encode_erc20_transfer(intent.recipient, base_units)
            tx = {"to": self.defaults.token_contract, "data": data, "value": "0"}
        sign_extra = {"chain": intent.chain, "token": asset, "amount": intent.amount}
        return _tx_subchain(
            "transfer",
            tx,
            sign_extra,
            gate=gate,
            postconditions=["has_transfer_tx", "transfer_simulated", "transfer_signed", "transfer_sent", "transfer_confirmed"],
        )

    def _swap_steps(self, intent: IntentSpec, gate: str) -> List[PlanStep]:
        quote_input: Dict[str, Any] = {
            "asset_in": intent.asset_in or "",
            "asset_out": intent.asset_out or "",
            "amount_in": intent.amount,
        }
        if intent.constraints and intent.constraints.slippage is not None:
            quote_input["slippage"] = intent.constraints.slippage
        quote = _step("quote_route", "quote_route", quote_input, [gate], ["has_quote"])

        tx = {"to": self.defaults.spender, "data": "0x", "value": "0"}
        sign_extra = {
            "chain": intent.chain,
            "token": intent.asset_in or "",
            "amount": intent.amount,
            "spender": self.defaults.spender,
        }
        return [quote] + _tx_subchain(
            "swap",
            tx,
            sign_extra,
            gate="has_quote",
            postconditions=["has_tx", "simulated", "signed", "sent", "confirmed"],
        )

    def build(self, intent: IntentSpec) -> Plan:
        approval = self.needs_approval(intent)
        steps: List[PlanStep] = [self._chain_read(intent, approval)]
        gate = "has_balance"

        if approval:
            steps.extend(self._approve_steps(intent))
            gate = "approve_confirmed"

        is_swap = intent.action_type == ActionType.SWAP.value
        if intent.action_type == ActionType.SEND.value:
            steps.extend(self._transfer_steps(intent, gate))
        elif is_swap:
            steps.extend(self._swap_steps(intent, gate))

        allowance: List[AllowanceRequirement] = []
        if approval:
            allowance.append(
                AllowanceRequirement(token=intent.asset_in or "", spender=self.defaults.spender, amount=intent.amount)
            )

        constraints = None
        if intent.constraints is not None:
            constraints = PlanConstraints(**intent.constraints.model_dump(exclude_none=True))

        plan = Plan(
            plan_id=new_plan_id(),
            steps=steps,
            constraints=constraints,
            required_permissions=RequiredPermissions(
                allowance=allowance,
                signatures=2 if approval and is_swap else 1,
            ),
        )
        logger.info(
            "Built plan %s: action=%s steps=%d approval=%s",
            plan.plan_id,
            intent.action_type,
            len(plan.steps),
            approval,
        )
        return plan
