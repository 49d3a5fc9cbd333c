#!/usr/bin/env python3
"""
Unit tests for planning.plan_builder and planning.units.
"""

import pytest

from lucidwallet.models.intent import IntentSpec
from lucidwallet.planning.plan_builder import PlanBuildError, PlanBuilder, PlanDefaults
from lucidwallet.planning.units import (
    UnitConversionError,
    decimals_for,
    encode_erc20_approve,
    encode_erc20_transfer,
    native_asset,
    to_base_units,
)

ADDR = "0x1111111111111111111111111111111111111111"
HEX_SPENDER = "0x2222222222222222222222222222222222222222"

TRANSFER_IDS = [
    "build_transfer_tx",
    "simulate_transfer_tx",
    "sign_transfer_tx",
    "send_transfer_tx",
    "wait_confirm_transfer",
]
APPROVE_IDS = [
    "build_approve_tx",
    "simulate_approve_tx",
    "sign_approve_tx",
    "send_approve_tx",
    "wait_confirm_approve",
]
SWAP_IDS = [
    "quote_route",
    "build_swap_tx",
    "simulate_swap_tx",
    "sign_swap_tx",
    "send_swap_tx",
    "wait_confirm_swap",
]


def _intent(**fields):
    base = {"action_type": "send", "chain": "evm", "asset_in": "ETH", "amount": "0.1", "recipient": ADDR}
    base.update(fields)
    return IntentSpec.model_validate(base)


def _approve_swap():
    return _intent(
        action_type="swap",
        asset_in="USDC",
        asset_out="ETH",
        amount="200",
        recipient=None,
        target_protocol="approve+swap",
        constraints={"slippage": 0.5},
    )


@pytest.fixture
def builder():
    return PlanBuilder()


def _assert_gated_in_order(plan):
    for prev, step in zip(plan.steps, plan.steps[1:]):
        assert step.preconditions, step.step_id
        assert step.preconditions[0] in prev.postconditions, step.step_id


# ============================================================================
# Send
# ============================================================================

class TestSendPlan:
    def test_native_send_shape(self, builder):
        plan = builder.build(_intent())

        assert plan.step_ids() == ["chain_read"] + TRANSFER_IDS
        chain_read = plan.steps[0]
        assert chain_read.preconditions == []
        assert chain_read.postconditions == ["has_balance"]
        assert chain_read.input == {"address": "0xWALLET", "required_amount": "0.1"}

        build = plan.get_step("build_transfer_tx")
        assert build.input == {"to": ADDR, "data": "0x", "value": "100000000000000000"}

        sign = plan.get_step("sign_transfer_tx")
        assert sign.tool == "sign_tx"
        assert sign.input["chain"] == "evm"
        assert sign.input["token"] == "ETH"
        assert sign.input["amount"] == "0.1"
        assert "spender" not in sign.input

        assert [s.postconditions[0] for s in plan.steps[1:]] == [
            "has_transfer_tx",
            "transfer_simulated",
            "transfer_signed",
            "transfer_sent",
            "transfer_confirmed",
        ]
        _assert_gated_in_order(plan)

    def test_send_has_no_approval(self, builder):
        plan = builder.build(_intent())
        assert not any(s.step_id.endswith("approve_tx") for s in plan.steps)
        assert plan.required_permissions.allowance == []
        assert plan.required_permissions.signatures == 1

    def test_token_send_uses_erc20_transfer(self, builder):
        plan = builder.build(_intent(asset_in="USDC", amount="2"))

        assert plan.steps[0].input["token"] == "USDC"
        build = plan.get_step("build_transfer_tx")
        assert build.input["to"] == "0xTOKEN_CONTRACT"
        assert build.input["value"] == "0"
        assert build.input["data"] == (
            "0xa9059cbb" + "0" * 24 + "1" * 40 + format(2_000_000, "x").rjust(64, "0")
        )

    def test_native_asset_depends_on_chain(self, builder):
        plan = builder.build(_intent(chain="polygon", asset_in="MATIC", amount="1"))
        assert "token" not in plan.steps[0].input
        assert plan.get_step("build_transfer_tx").input["value"] == str(10**18)

    def test_missing_recipient(self, builder):
        with pytest.raises(PlanBuildError) as exc_info:
            builder.build(_intent(recipient=None))
        assert exc_info.value.code == "missing_recipient"

    def test_token_send_to_name_is_rejected(self, builder):
        with pytest.raises(PlanBuildError) as exc_info:
            builder.build(_intent(asset_in="USDC", amount="5", recipient="bob.eth"))
        assert exc_info.value.code == "invalid_recipient"

    def test_native_send_to_name_is_kept(self, builder):
        plan = builder.build(_intent(recipient="bob.eth"))
        assert plan.get_step("build_transfer_tx").input["to"] == "bob.eth"

    def test_too_many_decimals(self, builder):
        with pytest.raises(PlanBuildError) as exc_info:
            builder.build(_intent(asset_in="USDC", amount="0.0000001"))
        assert exc_info.value.code == "amount_precision_exceeded"


# ============================================================================
# Swap / approve
# ============================================================================

class TestSwapPlan:
    def test_plain_swap(self, builder):
        plan = builder.build(_intent(action_type="swap", asset_in="ETH", asset_out="USDC", amount="1", recipient=None))

        assert plan.step_ids() == ["chain_read"] + SWAP_IDS
        quote = plan.get_step("quote_route")
        assert quote.preconditions == ["has_balance"]
        assert quote.postconditions == ["has_quote"]
        assert "slippage" not in quote.input
        assert plan.required_permissions.signatures == 1
        assert plan.required_permissions.allowance == []
        _assert_gated_in_order(plan)

    def test_approve_then_swap(self, builder):
        plan = builder.build(_approve_swap())

        assert plan.step_ids() == ["chain_read"] + APPROVE_IDS + SWAP_IDS
        assert plan.get_step("quote_route").preconditions == ["approve_confirmed"]
        assert plan.get_step("quote_route").input["slippage"] == 0.5

        chain_read = plan.steps[0]
        assert chain_read.input["spender"] == "0xSWAP_CONTRACT"
        assert chain_read.input["required_allowance"] == "200"
        assert chain_read.input["token"] == "USDC"

        build_approve = plan.get_step("build_approve_tx")
        assert build_approve.input == {"to": "0xTOKEN_CONTRACT", "data": "0xAPPROVE", "value": "0"}
        sign_approve = plan.get_step("sign_approve_tx")
        assert sign_approve.input["spender"] == "0xSWAP_CONTRACT"

        perms = plan.required_permissions
        assert perms.signatures == 2
        assert len(perms.allowance) == 1
        assert perms.allowance[0].model_dump() == {"token": "USDC", "spender": "0xSWAP_CONTRACT", "amount": "200"}
        assert plan.constraints.slippage == 0.5
        _assert_gated_in_order(plan)

    def test_approve_only(self, builder):
        plan = builder.build(_intent(action_type="approve", asset_in="USDC", amount="5", recipient=None))
        assert plan.step_ids() == ["chain_read"] + APPROVE_IDS
        assert plan.required_permissions.signatures == 1
        assert len(plan.required_permissions.allowance) == 1

    def test_hex_spender_encodes_approve(self):
        builder = PlanBuilder(PlanDefaults(spender=HEX_SPENDER))
        plan = builder.build(_approve_swap())
        data = plan.get_step("build_approve_tx").input["data"]
        assert data.startswith("0x095ea7b3")
        assert data == encode_erc20_approve(HEX_SPENDER, "200000000")

    def test_other_actions_only_read(self, builder):
        plan = builder.build(_intent(action_type="stake", recipient=None))
        assert plan.step_ids() == ["chain_read"]


class TestPlanIdentity:
    def test_idempotent_except_plan_id(self, builder):
        intent = _approve_swap()
        first = builder.build(intent)
        second = builder.build(intent)
        assert first.plan_id != second.plan_id
        assert first.plan_id.startswith("plan_")
        assert first.model_dump(exclude={"plan_id"}) == second.model_dump(exclude={"plan_id"})

    def test_defaults_from_env(self, monkeypatch):
        monkeypatch.setenv("LUCIDWALLET_WALLET_ADDRESS", "0xME")
        monkeypatch.setenv("LUCIDWALLET_SPENDER_ADDRESS", "0xROUTER")
        defaults = PlanDefaults.from_env()
        assert defaults.wallet_address == "0xME"
        assert defaults.spender == "0xROUTER"
        assert defaults.token_contract == "0xTOKEN_CONTRACT"


# ============================================================================
# Units
# ============================================================================

class TestUnits:
    @pytest.mark.parametrize(
        "amount, decimals, expected",
        [
            ("0.1", 18, "100000000000000000"),
            ("1.5", 6, "1500000"),
            ("200", 6, "200000000"),
            ("0", 18, "0"),
            ("123456789012.123456789012345678", 18, "123456789012123456789012345678"),
        ],
    )
    def test_to_base_units(self, amount, decimals, expected):
        assert to_base_units(amount, decimals) == expected

    @pytest.mark.parametrize("amount", ["abc", "-1", "NaN", ""])
    def test_invalid_amounts(self, amount):
        with pytest.raises(UnitConversionError) as exc_info:
            to_base_units(amount, 18)
        assert exc_info.value.reason == "invalid_amount"

    def test_decimals_table(self):
        assert decimals_for("usdc") == 6
        assert decimals_for("WBTC") == 8
        assert decimals_for("UNKNOWN") == 18

    def test_native_assets(self):
        assert native_asset("evm") == "ETH"
        assert native_asset("arbitrum") == "ETH"
        assert native_asset("polygon") == "MATIC"

    def test_transfer_rejects_non_hex_recipient(self):
        with pytest.raises(UnitConversionError):
            encode_erc20_transfer("alice", "1")
