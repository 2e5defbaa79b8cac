"""Arbitrage-aware dynamic fee hook for AMM pools."""

from arb_fee_hook.core.interfaces import PoolHooks, PriceCurveEngine
from arb_fee_hook.core.trade import ArbDirection, BalanceDelta, Currency, PoolKey
from arb_fee_hook.core.amm import ConstantProductEngine
from arb_fee_hook.config import DEFAULT_HOOK_SETTINGS, HookSettings
from arb_fee_hook.hook import ArbitrageFeeHook, PoolConfigured

__all__ = [
    "PoolHooks",
    "PriceCurveEngine",
    "ArbDirection",
    "BalanceDelta",
    "Currency",
    "PoolKey",
    "ConstantProductEngine",
    "DEFAULT_HOOK_SETTINGS",
    "HookSettings",
    "ArbitrageFeeHook",
    "PoolConfigured",
]
