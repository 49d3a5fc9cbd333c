#!/usr/bin/env python3
"""
Integration-style tests for the execution engine with the stub tool set and
a real PolicySigner.
"""

from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError

from lucidwallet.execution.engine import ExecutionEngine, verify_chain_read
from lucidwallet.execution.error_mapping import classify_error, classify_message
from lucidwallet.execution.state_machine import ExecutionState
from lucidwallet.execution.wiring import OUTPUT_WIRING, resolve_step_input
from lucidwallet.models.consent import ConsentScope
from lucidwallet.models.intent import IntentSpec
from lucidwallet.tools.base import ToolBase
from lucidwallet.tools.registry import ToolError, ToolNotFoundError, ToolRegistry
from lucidwallet.tools.stubs import (
    ChainReadTool,
    SendTxTool,
    SimulationOutput,
    TxInput,
    default_registry,
    default_tools,
)
from lucidwallet.wallet.signer import PolicySigner, PolicyViolation, PolicyCode

ADDR = "0x1111111111111111111111111111111111111111"


def _send(**fields):
    base = {"action_type": "send", "chain": "evm", "asset_in": "ETH", "amount": "0.1", "recipient": ADDR}
    base.update(fields)
    return IntentSpec.model_validate(base)


def _approve_swap(amount="200"):
    return IntentSpec(
        action_type="swap",
        chain="evm",
        asset_in="USDC",
        asset_out="ETH",
        amount=amount,
        target_protocol="approve+swap",
        constraints={"slippage": 0.5},
    )


@pytest.fixture
def engine(signer):
    return ExecutionEngine(signer)


# ============================================================================
# Full runs
# ============================================================================

class TestSuccessfulExecution:
    async def test_send_runs_every_step(self, engine):
        outcome = await engine.execute(_send())

        assert outcome.state == ExecutionState.DONE
        assert outcome.ok
        assert len(outcome.results) == len(outcome.plan.steps) == 6
        assert all(r.status == "success" for r in outcome.results)
        assert [r.step_id for r in outcome.results] == outcome.plan.step_ids()

    async def test_approve_swap_runs_every_step(self, engine):
        outcome = await engine.execute(_approve_swap())
        assert outcome.state == ExecutionState.DONE
        assert len(outcome.results) == 12
        assert outcome.failed_step is None

    async def test_tx_hash_threads_into_receipt(self, engine):
        outcome = await engine.execute(_approve_swap())
        by_id = {r.step_id: r for r in outcome.results}

        for kind in ("approve", "swap"):
            tx_hash = by_id[f"send_{kind}_tx"].tx_hash
            assert tx_hash.startswith("0xhash_")
            assert by_id[f"wait_confirm_{kind}"].receipt == {"tx_hash": tx_hash}

        assert by_id["simulate_swap_tx"].simulation["success"] is True
        assert by_id["quote_route"].tx_hash is None

    async def test_signed_tx_reaches_send(self, signer):
        registry = default_registry()
        send_tool = SendTxTool()
        seen = []
        original_run = send_tool.run

        async def spy(payload, context):
            seen.append(payload.signed_tx)
            return await original_run(payload, context)

        send_tool.run = spy
        registry.register(send_tool)

        await ExecutionEngine(signer, registry=registry).execute(_send())
        assert len(seen) == 1
        assert seen[0] != "0xSIGNED"
        assert len(seen[0]) == 66

    async def test_context_carries_chain_and_plan_id(self, signer):
        captured = []

        class RecordingRead(ChainReadTool):
            async def run(self, payload, context):
                captured.append(context)
                return await super().run(payload, context)

        registry = default_registry()
        registry.register(RecordingRead())
        outcome = await ExecutionEngine(signer, registry=registry).execute(_send())

        assert captured[0].chain == "evm"
        assert captured[0].request_id == outcome.plan.plan_id
        assert captured[0].signer is signer

    async def test_executions_are_independent(self, engine):
        first = await engine.execute(_send())
        second = await engine.execute(_send())
        assert first.plan.plan_id != second.plan.plan_id
        assert len(first.results) == len(second.results) == 6

    async def test_accepts_dict_intent(self, engine):
        outcome = await engine.execute(_send().model_dump())
        assert outcome.state == ExecutionState.DONE


# ============================================================================
# Failures
# ============================================================================

class TestFailedExecution:
    async def test_insufficient_balance_stops_at_first_step(self, signer):
        registry = default_registry()
        registry.register(ChainReadTool(balance="10"))
        outcome = await ExecutionEngine(signer, registry=registry).execute(_approve_swap())

        assert outcome.state == ExecutionState.FAILED
        assert len(outcome.results) == 1
        assert outcome.results[0].status == "failed"
        assert outcome.results[0].error.code == "insufficient_balance"

    async def test_insufficient_allowance(self, signer):
        registry = default_registry()
        registry.register(ChainReadTool(allowance="5"))
        outcome = await ExecutionEngine(signer, registry=registry).execute(_approve_swap())
        assert outcome.results[0].error.code == "insufficient_allowance"

    async def test_decimal_requirement_is_not_compared(self, signer):
        registry = default_registry()
        registry.register(ChainReadTool(balance="0"))
        outcome = await ExecutionEngine(signer, registry=registry).execute(_send(amount="0.1"))
        assert outcome.results[0].status == "success"

    async def test_policy_violation_surfaces_its_code(self):
        scope = ConsentScope(
            chain="evm",
            spender_allowlist=["0xSWAP_CONTRACT"],
            tokens=["ETH"],
            max_amount="1000",
            expiry=2**62,
        )
        outcome = await ExecutionEngine(PolicySigner(scope)).execute(_approve_swap())

        failed = outcome.results[-1]
        assert outcome.state == ExecutionState.FAILED
        assert failed.step_id == "sign_approve_tx"
        assert failed.error.code == "token_not_allowed"
        assert len(outcome.results) == 4

    async def test_amount_over_scope(self, engine):
        outcome = await engine.execute(_send(amount="5000"))
        assert outcome.failed_step.step_id == "sign_transfer_tx"
        assert outcome.failed_step.error.code == "amount_exceeds_scope"

    async def test_missing_signer(self):
        outcome = await ExecutionEngine(None).execute(_send())
        assert outcome.failed_step.step_id == "sign_transfer_tx"
        assert outcome.failed_step.error.message == "signer_not_available"
        assert outcome.failed_step.error.code == "revert"

    async def test_unknown_tool_is_revert(self, signer):
        registry = ToolRegistry()
        for tool in default_tools():
            if tool.name != "quote_route":
                registry.register(tool)
        outcome = await ExecutionEngine(signer, registry=registry).execute(_approve_swap())
        failed = outcome.failed_step
        assert failed.step_id == "quote_route"
        assert failed.error.code == "revert"
        assert failed.error.message == "tool_not_found:quote_route"

    async def test_handler_message_is_classified(self, signer):
        class FlakySimulator(ToolBase):
            name = "simulate_tx"
            input_model = TxInput
            output_model = SimulationOutput

            async def run(self, payload, context):
                raise RuntimeError("Slippage exceeded tolerance")

        registry = default_registry()
        registry.register(FlakySimulator())
        outcome = await ExecutionEngine(signer, registry=registry).execute(_send())
        assert outcome.failed_step.step_id == "simulate_transfer_tx"
        assert outcome.failed_step.error.code == "slippage_too_high"
        assert len(outcome.results) == 3

    async def test_no_step_runs_after_failure(self, signer):
        registry = default_registry()
        registry.register(ChainReadTool(balance="10"))
        later = registry.get("quote_route")
        later.run = AsyncMock()
        await ExecutionEngine(signer, registry=registry).execute(_approve_swap())
        later.run.assert_not_called()


# ============================================================================
# Pieces
# ============================================================================

class TestEnginePieces:
    def test_plan_and_recovery_options(self, engine):
        plan = engine.plan(_send())
        assert plan.steps[0].tool == "chain_read"
        assert engine.get_recovery_options() == ["retry", "adjust_slippage", "adjust_amount"]

    def test_wiring_table(self):
        pairs = {(w.producer, w.consumer) for w in OUTPUT_WIRING}
        for kind in ("approve", "swap", "transfer"):
            assert (f"build_{kind}_tx", f"simulate_{kind}_tx") in pairs
            assert (f"build_{kind}_tx", f"sign_{kind}_tx") in pairs
            assert (f"sign_{kind}_tx", f"send_{kind}_tx") in pairs
            assert (f"send_{kind}_tx", f"wait_confirm_{kind}") in pairs

    def test_resolve_step_input_merges_named_fields(self):
        outputs = {"build_swap_tx": {"to": "0xR", "data": "0xdd", "value": "0", "gas_limit": "21000"}}
        resolved = resolve_step_input("sign_swap_tx", {"chain": "evm", "to": "old", "amount": "1"}, outputs)
        assert resolved == {"chain": "evm", "to": "0xR", "data": "0xdd", "value": "0", "amount": "1"}

    def test_resolve_step_input_without_producer(self):
        static = {"tx_hash": "0x0"}
        assert resolve_step_input("wait_confirm_swap", static, {}) == static

    def test_verify_chain_read_integer_only(self):
        verify_chain_read({"required_amount": "1.5"}, {"balance": "1"})
        with pytest.raises(ToolError):
            verify_chain_read({"required_amount": "2"}, {"balance": "1"})
        verify_chain_read({"required_allowance": "2"}, {"balance": "5"})


class TestErrorClassification:
    @pytest.mark.parametrize(
        "message, code",
        [
            ("Insufficient balance for transfer", "insufficient_balance"),
            ("ERC20: transfer amount exceeds allowance", "insufficient_allowance"),
            ("slippage too high", "slippage_too_high"),
            ("nonce too low", "nonce_conflict"),
            ("execution reverted", "revert"),
        ],
    )
    def test_message_substrings(self, message, code):
        assert classify_message(message) == code
        assert classify_error(RuntimeError(message)) == code

    def test_structured_code_wins(self):
        err = ToolError("x", "nonce mismatch", code="insufficient_balance")
        assert classify_error(err) == "insufficient_balance"
        assert classify_error(PolicyViolation(PolicyCode.CONSENT_EXPIRED)) == "consent_expired"

    def test_not_found_and_validation_are_revert(self):
        assert classify_error(ToolNotFoundError("balance_reader")) == "revert"
        try:
            IntentSpec.model_validate({"balance": 1})
        except ValidationError as exc:
            assert classify_error(exc) == "revert"
            assert classify_error(ToolError("chain_read", "schema_validation_failed: balance", exc)) == "revert"
