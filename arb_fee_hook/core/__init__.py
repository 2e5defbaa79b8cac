"""Core types, engine interfaces and the reference engine."""

from arb_fee_hook.core.errors import (
    ArbHookError,
    AuthorizationError,
    ConfigurationError,
    CurrencyNotSettled,
    InvariantViolation,
    ProfitInvariantViolation,
    ValidationError,
)
from arb_fee_hook.core.trade import (
    ArbDirection,
    ArbExecution,
    ArbQuoteResult,
    BalanceDelta,
    Currency,
    PoolKey,
    SwapParams,
    SwapQuote,
)
from arb_fee_hook.core.interfaces import PoolHooks, PriceCurveEngine
from arb_fee_hook.core.pool_state import Inventory, PoolMetricsTracker, PoolRegistry, PoolState
from arb_fee_hook.core.amm import ConstantProductEngine, SwapResult

__all__ = [
    "ArbHookError",
    "AuthorizationError",
    "ConfigurationError",
    "CurrencyNotSettled",
    "InvariantViolation",
    "ProfitInvariantViolation",
    "ValidationError",
    "ArbDirection",
    "ArbExecution",
    "ArbQuoteResult",
    "BalanceDelta",
    "Currency",
    "PoolKey",
    "SwapParams",
    "SwapQuote",
    "PoolHooks",
    "PriceCurveEngine",
    "Inventory",
    "PoolMetricsTracker",
    "PoolRegistry",
    "PoolState",
    "ConstantProductEngine",
    "SwapResult",
]
