"""Per-pool state, the pool registry and trade bookkeeping."""

import copy
from dataclasses import dataclass, field, fields
from decimal import Decimal
from typing import Iterator, Optional

from arb_fee_hook.core.errors import ConfigurationError, InvariantViolation
from arb_fee_hook.core.trade import ArbDirection, BalanceDelta
from arb_fee_hook.fees.illiquidity import IlliquidityEstimator


@dataclass
class Inventory:
    """Pool-side balances of both currencies, including collected fees."""
    amount0: Decimal = Decimal("0")
    amount1: Decimal = Decimal("0")

    def apply(self, delta: BalanceDelta) -> None:
        """Apply a pool-side change (positive = the pool gained)."""
        amount0 = self.amount0 + delta.amount0
        amount1 = self.amount1 + delta.amount1
        if amount0 < 0 or amount1 < 0:
            raise InvariantViolation(
                "inventory would become negative",
                {"amount0": str(amount0), "amount1": str(amount1)},
            )
        self.amount0 = amount0
        self.amount1 = amount1

    def value(self, price: Decimal) -> Decimal:
        """Total value in currency1 terms at ``price`` (currency1 per currency0)."""
        return self.amount0 * price + self.amount1


@dataclass
class PoolState:
    """Everything the hook remembers about one managed pool.

    Raw prices are currency1 per currency0 as reported by the engine.
    Quote prices are quote asset per base asset, selected by ``quote_asset``.
    Volumes are in quote-asset terms.
    """
    pool_id: str
    creator: str
    owner: str
    min_fee: Decimal
    decimals_delta: int = 0
    configured: bool = False
    quote_asset: int = 1
    reference_pool_id: Optional[str] = None
    last_price_before: Decimal = Decimal("0")
    last_price_after: Decimal = Decimal("0")
    total_volume: Decimal = Decimal("0")
    net_volume: Decimal = Decimal("0")
    illiquidity: Decimal = Decimal("0")
    reference_illiquidity: Decimal = Decimal("0")
    trade_count: int = 0
    inventory: Inventory = field(default_factory=Inventory)
    # Arbitrage bookkeeping
    arb_count: int = 0
    captured_profit0: Decimal = Decimal("0")
    captured_profit1: Decimal = Decimal("0")
    last_convergence: Decimal = Decimal("0")

    @property
    def base_is_currency0(self) -> bool:
        return self.quote_asset == 1

    @property
    def illiquidity_defined(self) -> bool:
        """The running average only exists once the pool has traded."""
        return self.trade_count > 0

    def quote_price(self, raw_price: Decimal) -> Decimal:
        if self.base_is_currency0:
            return raw_price
        return Decimal("1") / raw_price if raw_price else Decimal("0")

    def raw_price(self, quote_price: Decimal) -> Decimal:
        # The conversion is its own inverse
        return self.quote_price(quote_price)

    def human_price(self, raw_price: Decimal) -> Decimal:
        """Raw price rescaled to whole-token units."""
        return raw_price * Decimal(10) ** self.decimals_delta

    def sells_base(self, zero_for_one: bool) -> bool:
        return zero_for_one == self.base_is_currency0

    def zero_for_one_for(self, direction: ArbDirection) -> bool:
        """Swap direction of the own-pool leg for an arbitrage direction."""
        sells_base = direction is ArbDirection.SELL_INTO_POOL
        return sells_base == self.base_is_currency0

    def quote_volume(self, delta: BalanceDelta) -> Decimal:
        return abs(delta.amount(self.quote_asset))

    def to_quote_volume(self, amount: Decimal, zero_for_one: bool, raw_price: Decimal) -> Decimal:
        """Value an input amount in quote terms at ``raw_price``."""
        if self.sells_base(zero_for_one):
            return amount * self.quote_price(raw_price)
        return amount

    def total_value(self, raw_price: Decimal) -> Decimal:
        return self.inventory.value(raw_price)


class PoolRegistry:
    """Key-addressed store of pool states, owned by one hook instance."""

    def __init__(self) -> None:
        self._states: dict[str, PoolState] = {}

    def __contains__(self, pool_id: str) -> bool:
        return pool_id in self._states

    def __len__(self) -> int:
        return len(self._states)

    def __iter__(self) -> Iterator[PoolState]:
        return iter(self._states.values())

    def register(self, state: PoolState) -> None:
        if state.pool_id in self._states:
            raise ConfigurationError("pool already registered", pool_id=state.pool_id)
        self._states[state.pool_id] = state

    def get(self, pool_id: str) -> PoolState:
        try:
            return self._states[pool_id]
        except KeyError:
            raise ConfigurationError("pool not managed by this hook", pool_id=pool_id) from None

    def snapshot(self) -> dict[str, PoolState]:
        return {pool_id: copy.deepcopy(state) for pool_id, state in self._states.items()}

    def restore(self, snapshot: dict[str, PoolState]) -> None:
        """Restore a snapshot in place so live references stay valid."""
        for pool_id in list(self._states):
            if pool_id not in snapshot:
                del self._states[pool_id]
        for pool_id, saved in snapshot.items():
            state = self._states.get(pool_id)
            if state is None:
                self._states[pool_id] = saved
                continue
            for f in fields(state):
                setattr(state, f.name, getattr(saved, f.name))


class PoolMetricsTracker:
    """Mutates pool state once per completed trade or liquidity change."""

    def __init__(self, estimator: Optional[IlliquidityEstimator] = None):
        self.estimator = estimator or IlliquidityEstimator()

    def record_price_before(self, state: PoolState, raw_price: Decimal) -> None:
        state.last_price_before = raw_price

    def record_trade(
        self,
        state: PoolState,
        zero_for_one: bool,
        delta: BalanceDelta,
        raw_price_after: Decimal,
    ) -> Decimal:
        """Fold one completed trade into the running statistics.

        Args:
            state: Pool state to update
            zero_for_one: Direction of the trade
            delta: Trader's balance delta (negated onto the inventory)
            raw_price_after: Engine price after the trade

        Returns:
            The illiquidity sample observed for this trade
        """
        state.inventory.apply(-delta)
        volume = state.quote_volume(delta)
        impact = self.estimator.price_impact(
            state.quote_price(state.last_price_before),
            state.quote_price(raw_price_after),
        )
        sample = self.estimator.observe(impact, volume)
        state.illiquidity = self.estimator.fold(state.illiquidity, sample, state.trade_count)

        state.total_volume += volume
        if state.sells_base(zero_for_one):
            state.net_volume -= volume
        else:
            state.net_volume += volume
        state.trade_count += 1
        state.last_price_after = raw_price_after
        return sample

    def record_liquidity(self, state: PoolState, delta: BalanceDelta) -> None:
        state.inventory.apply(delta)

    def record_reference_trade(
        self,
        state: PoolState,
        quote_price_before: Decimal,
        quote_price_after: Decimal,
        quote_volume: Decimal,
    ) -> None:
        """Fold an executed reference-pool leg into the reference estimate."""
        impact = self.estimator.price_impact(quote_price_before, quote_price_after)
        sample = self.estimator.observe(impact, quote_volume)
        state.reference_illiquidity = self.estimator.fold(
            state.reference_illiquidity, sample, state.arb_count
        )

    def record_arbitrage(self, state: PoolState, profit0: Decimal, profit1: Decimal) -> None:
        state.arb_count += 1
        state.captured_profit0 += profit0
        state.captured_profit1 += profit1
