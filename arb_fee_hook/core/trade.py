"""Trade and pool value types."""

import hashlib
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from arb_fee_hook.core.interfaces import PoolHooks

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class ArbDirection(Enum):
    """Direction of the first arbitrage leg, relative to the own pool."""
    SELL_INTO_POOL = "sell_into_pool"  # own pool overprices base: sell base into it
    BUY_FROM_POOL = "buy_from_pool"    # own pool underprices base: buy base from it


@dataclass(frozen=True)
class Currency:
    """An asset held by a pool."""
    address: str
    symbol: str
    decimals: int = 18

    def __post_init__(self) -> None:
        if not self.address:
            raise ValueError("currency address must not be empty")
        if self.decimals < 0:
            raise ValueError(f"decimals must be >= 0, got {self.decimals}")


@dataclass(frozen=True)
class PoolKey:
    """Identifies a pool: its currency pair, fee mode and hooks.

    Currencies must be sorted by address. A pool managed by the
    arbitrage fee hook must set ``dynamic_fee``; its static ``fee`` is then
    only the fallback used when no override is returned.
    """
    currency0: Currency
    currency1: Currency
    fee: Decimal = Decimal("0.003")
    dynamic_fee: bool = False
    hooks: Optional["PoolHooks"] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.currency0.address >= self.currency1.address:
            raise ValueError(
                f"currencies must be sorted: {self.currency0.address} >= "
                f"{self.currency1.address}"
            )
        if self.fee < 0 or self.fee >= 1:
            raise ValueError(f"fee must be in [0, 1), got {self.fee}")

    @property
    def pool_id(self) -> str:
        """Deterministic identifier derived from the key's fields."""
        hooks_address = getattr(self.hooks, "address", "") if self.hooks else ""
        raw = "|".join(
            (
                self.currency0.address,
                self.currency1.address,
                str(self.fee),
                "dynamic" if self.dynamic_fee else "static",
                hooks_address,
            )
        )
        return "0x" + hashlib.sha256(raw.encode()).hexdigest()

    @property
    def decimals_delta(self) -> int:
        """Decimal-scale difference between the two currencies."""
        return self.currency0.decimals - self.currency1.decimals

    def currency(self, index: int) -> Currency:
        if index not in (0, 1):
            raise ValueError(f"currency index must be 0 or 1, got {index}")
        return self.currency0 if index == 0 else self.currency1

    def same_pair(self, other: "PoolKey") -> bool:
        """True if both keys trade the same two currencies."""
        return (self.currency0, self.currency1) == (other.currency0, other.currency1)


@dataclass(frozen=True)
class SwapParams:
    """Exact-input swap request."""
    zero_for_one: bool             # True: currency0 in, currency1 out
    amount_in: Decimal
    price_limit: Optional[Decimal] = None  # token1 per token0
    simulated: bool = False

    def __post_init__(self) -> None:
        if self.amount_in <= 0:
            raise ValueError(f"amount_in must be > 0, got {self.amount_in}")


@dataclass(frozen=True)
class BalanceDelta:
    """Signed balance change from the caller's point of view.

    Negative amounts are owed by the caller to the engine, positive
    amounts are owed to the caller.
    """
    amount0: Decimal = Decimal("0")
    amount1: Decimal = Decimal("0")

    def __add__(self, other: "BalanceDelta") -> "BalanceDelta":
        return BalanceDelta(self.amount0 + other.amount0, self.amount1 + other.amount1)

    def __neg__(self) -> "BalanceDelta":
        return BalanceDelta(-self.amount0, -self.amount1)

    def amount(self, index: int) -> Decimal:
        return self.amount0 if index == 0 else self.amount1

    def output(self, zero_for_one: bool) -> Decimal:
        """Amount received by an exact-input swap in the given direction."""
        return self.amount1 if zero_for_one else self.amount0

    def input(self, zero_for_one: bool) -> Decimal:
        """Amount paid (as a positive number) by an exact-input swap."""
        return -(self.amount0 if zero_for_one else self.amount1)


@dataclass(frozen=True)
class SwapQuote:
    """Outcome of a simulated swap. Produces no persisted state change."""
    amount_in: Decimal
    amount_out: Decimal
    gas_estimate: int
    price_after: Decimal
    fee_rate: Decimal


@dataclass(frozen=True)
class ArbQuoteResult:
    """Best candidate found by the refinement loop.

    Prices are quote-asset per base-asset, in the engine's units.
    """
    amount_in: Decimal
    direction: ArbDirection
    gross_profit: Decimal
    pool_price: Decimal       # own pool, after the simulated leg A
    reference_price: Decimal  # reference pool, after the simulated leg B
    gas_estimate: int
    rounds: int = 0
    convergence: tuple[Decimal, ...] = ()

    @property
    def price_gap(self) -> Decimal:
        return abs(self.pool_price - self.reference_price)

    @property
    def equilibrium_midpoint(self) -> Decimal:
        return (self.pool_price + self.reference_price) / 2


@dataclass(frozen=True)
class ArbExecution:
    """Result of a committed two-leg arbitrage."""
    amount_in: Decimal
    zero_for_one: bool
    leg_a: BalanceDelta
    leg_b: BalanceDelta
    profit0: Decimal
    profit1: Decimal
    pool_price: Decimal
    reference_price: Decimal

    @property
    def net(self) -> BalanceDelta:
        return self.leg_a + self.leg_b

    def value_at(self, price: Decimal) -> Decimal:
        """Net profit in currency1 terms at ``price`` (currency1 per currency0)."""
        return self.profit0 * price + self.profit1
