"""
Stub capability tools.

Deterministic stand-ins for the balance / allowance reader, route quoter,
transaction builder, simulator, signer bridge, broadcaster and confirmation
poller. Live-chain tools implement the same names and models and can be
registered in their place without touching the engine.
"""

from __future__ import annotations

import secrets
import time
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel  # pyright: ignore[reportMissingImports]

from lucidwallet.tools.base import ToolBase, ToolContext
from lucidwallet.tools.registry import ToolError, ToolRegistry
from lucidwallet.wallet.signer import SignRequest


# ----------------------------------------------------------------------
# IO models
# ----------------------------------------------------------------------


class ChainReadInput(BaseModel):
    address: str
    token: Optional[str] = None
    spender: Optional[str] = None
    required_amount: Optional[str] = None
    required_allowance: Optional[str] = None


class ChainReadOutput(BaseModel):
    balance: str
    nonce: Optional[int] = None
    allowance: Optional[str] = None


class QuoteRouteInput(BaseModel):
    asset_in: str
    asset_out: str
    amount_in: str
    slippage: Optional[float] = None


class QuoteRouteOutput(BaseModel):
    amount_out: str
    route: List[str]


class TxInput(BaseModel):
    to: str
    data: str
    value: Optional[str] = None


class BuiltTx(BaseModel):
    to: str
    data: str
    value: Optional[str] = None
    gas_limit: Optional[str] = None


class SimulationOutput(BaseModel):
    success: bool
    gas_used: Optional[str] = None
    error: Optional[str] = None


class SignedTx(BaseModel):
    signed_tx: str


class SendTxOutput(BaseModel):
    tx_hash: str


class WaitConfirmInput(BaseModel):
    tx_hash: str


class WaitConfirmOutput(BaseModel):
    status: Literal["confirmed", "failed"]
    receipt: Optional[Dict[str, Any]] = None


class SimulateTransferInput(BaseModel):
    chain: str
    asset: str
    amount: str
    to: str


class SimulateTransferOutput(BaseModel):
    tx_hash: str
    summary: str
    fee_estimate: str


# ----------------------------------------------------------------------
# Tools
# ----------------------------------------------------------------------


class ChainReadTool(ToolBase):
    name = "chain_read"
    description = "Read wallet balance, nonce and (optionally) token allowance."
    input_model = ChainReadInput
    output_model = ChainReadOutput
    cost_estimate = "low"

    def __init__(self, balance: str = "1000000", allowance: Optional[str] = "1000000", nonce: int = 0):
        self.balance = balance
        self.allowance = allowance
        self.nonce = nonce

    async def run(self, payload: ChainReadInput, context: ToolContext) -> Dict[str, Any]:
        out: Dict[str, Any] = {"balance": self.balance, "nonce": self.nonce}
        if self.allowance is not None:
            out["allowance"] = self.allowance
        return out


class QuoteRouteTool(ToolBase):
    name = "quote_route"
    description = "Quote a swap route between two assets."
    input_model = QuoteRouteInput
    output_model = QuoteRouteOutput
    cost_estimate = "medium"

    async def run(self, payload: QuoteRouteInput, context: ToolContext) -> Dict[str, Any]:
        return {"amount_out": payload.amount_in, "route": ["stub"]}


class BuildTxTool(ToolBase):
    name = "build_tx"
    description = "Assemble an unsigned transaction."
    input_model = TxInput
    output_model = BuiltTx
    cost_estimate = "medium"

    async def run(self, payload: TxInput, context: ToolContext) -> Dict[str, Any]:
        return {**payload.model_dump(exclude_none=True), "gas_limit": "21000"}


class SimulateTxTool(ToolBase):
    name = "simulate_tx"
    description = "Dry-run a transaction against current chain state."
    input_model = TxInput
    output_model = SimulationOutput
    cost_estimate = "medium"

    async def run(self, payload: TxInput, context: ToolContext) -> Dict[str, Any]:
        return {"success": True, "gas_used": "0"}


class SignTxTool(ToolBase):
    name = "sign_tx"
    description = "Pass a transaction to the policy-bound signer."
    input_model = SignRequest
    output_model = SignedTx
    cost_estimate = "low"
    requires_signature = True
    is_retryable = False
    required_permissions = ["sign"]

    async def run(self, payload: SignRequest, context: ToolContext) -> Any:
        if context.signer is None:
            raise ToolError(self.name, "signer_not_available")
        return await context.signer.sign(payload)


class SendTxTool(ToolBase):
    name = "send_tx"
    description = "Broadcast a signed transaction."
    input_model = SignedTx
    output_model = SendTxOutput
    cost_estimate = "low"

    async def run(self, payload: SignedTx, context: ToolContext) -> Dict[str, Any]:
        base = payload.signed_tx[2:] if payload.signed_tx.startswith("0x") else payload.signed_tx
        prefix = base[:12].ljust(12, "0")
        return {"tx_hash": f"0xhash_{prefix}"}


class WaitConfirmTool(ToolBase):
    name = "wait_confirm"
    description = "Poll until a transaction is confirmed."
    input_model = WaitConfirmInput
    output_model = WaitConfirmOutput
    cost_estimate = "low"

    async def run(self, payload: WaitConfirmInput, context: ToolContext) -> Dict[str, Any]:
        return {"status": "confirmed", "receipt": {"tx_hash": payload.tx_hash}}


class SimulateTransferTool(ToolBase):
    name = "simulate_transfer"
    description = "Simulate a plain transfer and summarize it."
    input_model = SimulateTransferInput
    output_model = SimulateTransferOutput
    cost_estimate = "low"

    async def run(self, payload: SimulateTransferInput, context: ToolContext) -> Dict[str, Any]:
        amount = payload.amount.strip()
        if not amount or amount == "0":
            raise ToolError(self.name, "invalid_amount")
        stamp = format(int(time.time() * 1000), "x")
        tx_hash = f"0x{stamp}{secrets.token_hex(8)}".ljust(66, "0")[:66]
        return {
            "tx_hash": tx_hash,
            "summary": f"Simulated send {payload.amount} {payload.asset} to {payload.to} on {payload.chain}.",
            "fee_estimate": "21000",
        }


def default_tools() -> List[ToolBase]:
    return [
        ChainReadTool(),
        QuoteRouteTool(),
        BuildTxTool(),
        SimulateTxTool(),
        SignTxTool(),
        SendTxTool(),
        WaitConfirmTool(),
        SimulateTransferTool(),
    ]


def default_registry() -> ToolRegistry:
    """A fresh registry holding the stub tool set."""
    registry = ToolRegistry()
    for tool in default_tools():
        registry.register(tool)
    return registry
