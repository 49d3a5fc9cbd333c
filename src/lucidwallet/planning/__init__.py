from .plan_builder import APPROVE_SWAP_PROTOCOL, PlanBuildError, PlanBuilder, PlanDefaults, new_plan_id
from .units import (
    NATIVE_ASSETS,
    TOKEN_DECIMALS,
    UnitConversionError,
    decimals_for,
    encode_erc20_approve,
    encode_erc20_transfer,
    native_asset,
    to_base_units,
)

__all__ = [
    "APPROVE_SWAP_PROTOCOL",
    "PlanBuildError",
    "PlanBuilder",
    "PlanDefaults",
    "new_plan_id",
    "NATIVE_ASSETS",
    "TOKEN_DECIMALS",
    "UnitConversionError",
    "decimals_for",
    "encode_erc20_approve",
    "encode_erc20_transfer",
    "native_asset",
    "to_base_units",
]
