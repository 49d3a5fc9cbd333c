"""
Asset decimals, base-unit conversion and ERC-20 calldata encoding.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation, localcontext
from typing import Dict

TOKEN_DECIMALS: Dict[str, int] = {
    "ETH": 18,
    "USDC": 6,
    "USDT": 6,
    "DAI": 18,
    "WBTC": 8,
    "MATIC": 18,
}
DEFAULT_DECIMALS = 18

NATIVE_ASSETS: Dict[str, str] = {
    "evm": "ETH",
    "sepolia": "ETH",
    "arbitrum": "ETH",
    "polygon": "MATIC",
}

# Function selectors
ERC20_TRANSFER_SELECTOR = "a9059cbb"
ERC20_APPROVE_SELECTOR = "095ea7b3"

_HEX_ADDRESS = re.compile(r"^0x[0-9a-fA-F]{40}$")


class UnitConversionError(ValueError):
    def __init__(self, reason: str, amount: str = ""):
        self.reason = reason
        self.code = reason
        super().__init__(f"{reason}:{amount}" if amount else reason)


def decimals_for(symbol: str) -> int:
    return TOKEN_DECIMALS.get((symbol or "").upper(), DEFAULT_DECIMALS)


def native_asset(chain: str) -> str:
    return NATIVE_ASSETS.get((chain or "").lower(), "ETH")


def is_native(symbol: str, chain: str) -> bool:
    return (symbol or "").upper() == native_asset(chain)


def is_hex_address(value: str) -> bool:
    return bool(value and _HEX_ADDRESS.match(value))


def to_base_units(amount: str, decimals: int) -> str:
    """
    Convert a display-unit decimal string to an integer base-unit string.

    "0.1" with 18 decimals -> "100000000000000000". Amounts with more
    fractional digits than the asset supports are rejected rather than
    rounded.
    """
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise UnitConversionError("invalid_amount", str(amount))
    if not value.is_finite() or value < 0:
        raise UnitConversionError("invalid_amount", str(amount))

    with localcontext() as ctx:
        ctx.prec = 100
        scaled = value.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise UnitConversionError("amount_precision_exceeded", str(amount))
    return str(int(scaled))


def _word(value: int) -> str:
    return format(value, "x").rjust(64, "0")


def _address_word(address: str) -> str:
    if not is_hex_address(address):
        raise UnitConversionError("invalid_address", address)
    return address[2:].lower().rjust(64, "0")


def encode_erc20_transfer(recipient: str, base_units: str) -> str:
    return "0x" + ERC20_TRANSFER_SELECTOR + _address_word(recipient) + _word(int(base_units))


def encode_erc20_approve(spender: str, base_units: str) -> str:
    return "0x" + ERC20_APPROVE_SELECTOR + _address_word(spender) + _word(int(base_units))
