"""Constant product engine with hook callbacks and flash accounting."""

from contextlib import contextmanager
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterator, Optional

from arb_fee_hook.core.errors import CurrencyNotSettled
from arb_fee_hook.core.interfaces import PoolHooks, PriceCurveEngine
from arb_fee_hook.core.trade import BalanceDelta, Currency, PoolKey, SwapParams, SwapQuote

_ZERO = Decimal("0")
_ONE = Decimal("1")


@dataclass
class ConstantProductPool:
    """Reserves of one pool plus the fees collected for its LPs.

    Uses the fee-on-input model with fees kept in separate buckets:
    - Swap uses fee-adjusted input: (x + γ·Δx)(y - Δy) = k
    - Fee portion goes to accumulated fees, NOT reserves
    - Result: k stays constant; donations land in the fee buckets too
    """
    key: PoolKey
    reserve0: Decimal = _ZERO
    reserve1: Decimal = _ZERO
    accumulated_fees0: Decimal = _ZERO
    accumulated_fees1: Decimal = _ZERO

    @property
    def k(self) -> Decimal:
        """The constant product invariant."""
        return self.reserve0 * self.reserve1

    @property
    def price(self) -> Decimal:
        """Spot price, currency1 per currency0, before fees."""
        if self.reserve0 == 0:
            return _ZERO
        return self.reserve1 / self.reserve0

    @property
    def liquidity(self) -> Decimal:
        return self.k.sqrt()

    @property
    def holdings(self) -> tuple[Decimal, Decimal]:
        """Everything the pool holds: reserves plus fee buckets."""
        return (
            self.reserve0 + self.accumulated_fees0,
            self.reserve1 + self.accumulated_fees1,
        )

    def capture(self) -> tuple[Decimal, Decimal, Decimal, Decimal]:
        return (self.reserve0, self.reserve1, self.accumulated_fees0, self.accumulated_fees1)

    def load(self, saved: tuple[Decimal, Decimal, Decimal, Decimal]) -> None:
        self.reserve0, self.reserve1, self.accumulated_fees0, self.accumulated_fees1 = saved

    def swap(
        self,
        zero_for_one: bool,
        amount_in: Decimal,
        fee_rate: Decimal,
        price_limit: Optional[Decimal],
    ) -> tuple[Decimal, Decimal, Decimal]:
        """Exact-input swap, stopping at ``price_limit`` if it is reached.

        Uses Uniswap v2 fee-on-input: γ = 1 - f. When the limit binds,
        only the input needed to reach it is consumed.

        Returns:
            (amount_in consumed, amount_out, fee_amount)

        Raises:
            ValueError: If the limit is already at or behind the current price
        """
        gamma = _ONE - fee_rate
        net_in = amount_in * gamma
        k = self.k

        if zero_for_one:
            if price_limit is not None:
                if price_limit >= self.price or price_limit <= 0:
                    raise ValueError(f"price limit {price_limit} already exceeded at {self.price}")
                max_net = (k / price_limit).sqrt() - self.reserve0
                if net_in > max_net:
                    net_in = max_net
                    amount_in = net_in / gamma
            new_reserve0 = self.reserve0 + net_in
            new_reserve1 = k / new_reserve0
            amount_out = self.reserve1 - new_reserve1
            fee_amount = amount_in - net_in
            self.reserve0, self.reserve1 = new_reserve0, new_reserve1
            self.accumulated_fees0 += fee_amount
        else:
            if price_limit is not None:
                if price_limit <= self.price:
                    raise ValueError(f"price limit {price_limit} already exceeded at {self.price}")
                max_net = (k * price_limit).sqrt() - self.reserve1
                if net_in > max_net:
                    net_in = max_net
                    amount_in = net_in / gamma
            new_reserve1 = self.reserve1 + net_in
            new_reserve0 = k / new_reserve1
            amount_out = self.reserve0 - new_reserve0
            fee_amount = amount_in - net_in
            self.reserve0, self.reserve1 = new_reserve0, new_reserve1
            self.accumulated_fees1 += fee_amount

        return amount_in, amount_out, fee_amount


@dataclass(frozen=True)
class SwapResult:
    """What a swap did to the caller and the pool."""
    delta: BalanceDelta
    fee_rate: Decimal
    fee_amount: Decimal
    price_before: Decimal
    price_after: Decimal
    gas_used: int


@dataclass
class _EngineSnapshot:
    pools: dict[str, tuple[Decimal, Decimal, Decimal, Decimal]]
    deltas: dict[Currency, Decimal]
    balances: dict[str, dict[Currency, Decimal]]
    hooks: list[tuple[PoolHooks, Any]] = field(default_factory=list)


class ConstantProductEngine(PriceCurveEngine):
    """Reference x·y=k engine implementing the PriceCurveEngine surface.

    Swaps accrue signed deltas per currency (caller's view) which must be
    brought back to zero with ``settle``/``take`` before the outermost
    operation ends. Simulations run the full swap, hooks included, and
    restore engine and hook state in place afterwards.
    """

    # Gas model
    SWAP_GAS = 90_000
    HOOK_GAS = 30_000
    DONATE_GAS = 40_000

    # Deltas smaller than this count as settled
    SETTLEMENT_TOLERANCE = Decimal("1e-12")

    def __init__(self) -> None:
        self._pools: dict[str, ConstantProductPool] = {}
        self._deltas: dict[Currency, Decimal] = {}
        self.balances: dict[str, dict[Currency, Decimal]] = {}

    # ------------------------------------------------------------------
    # Pool lifecycle
    # ------------------------------------------------------------------

    def initialize(
        self, key: PoolKey, reserve0: Decimal, reserve1: Decimal, sender: str
    ) -> str:
        """Create a pool and seed it with liquidity from ``sender``.

        Returns:
            The new pool's id
        """
        if reserve0 <= 0 or reserve1 <= 0:
            raise ValueError("initial reserves must be positive")
        pool_id = key.pool_id
        if pool_id in self._pools:
            raise ValueError(f"pool {pool_id} already initialized")

        price = reserve1 / reserve0
        if key.hooks is not None:
            key.hooks.before_initialize(sender, key, price)
        self._pools[pool_id] = ConstantProductPool(key=key)
        if key.hooks is not None:
            key.hooks.after_initialize(sender, key, price)
        self.modify_liquidity(key, reserve0, reserve1, sender)
        return pool_id

    def modify_liquidity(
        self, key: PoolKey, amount0: Decimal, amount1: Decimal, sender: str
    ) -> BalanceDelta:
        """Add (positive) or remove (negative) reserves.

        Returns:
            Pool-side delta that was applied
        """
        pool = self._pool(key.pool_id)
        if pool.reserve0 + amount0 < 0 or pool.reserve1 + amount1 < 0:
            raise ValueError("cannot remove more than the pool's reserves")
        pool.reserve0 += amount0
        pool.reserve1 += amount1
        delta = BalanceDelta(amount0, amount1)
        if key.hooks is not None:
            key.hooks.after_modify_liquidity(sender, key, delta)
        return delta

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _pool(self, pool_id: str) -> ConstantProductPool:
        try:
            return self._pools[pool_id]
        except KeyError:
            raise ValueError(f"unknown pool {pool_id}") from None

    def get_price(self, pool_id: str) -> Decimal:
        return self._pool(pool_id).price

    def get_liquidity(self, pool_id: str) -> Decimal:
        return self._pool(pool_id).liquidity

    def get_reserves(self, pool_id: str) -> tuple[Decimal, Decimal]:
        pool = self._pool(pool_id)
        return pool.reserve0, pool.reserve1

    def get_holdings(self, pool_id: str) -> tuple[Decimal, Decimal]:
        return self._pool(pool_id).holdings

    def outstanding(self, currency: Currency) -> Decimal:
        return self._deltas.get(currency, _ZERO)

    def balance_of(self, account: str, currency: Currency) -> Decimal:
        return self.balances.get(account, {}).get(currency, _ZERO)

    # ------------------------------------------------------------------
    # Swaps
    # ------------------------------------------------------------------

    def _swap(self, key: PoolKey, params: SwapParams, sender: str) -> SwapResult:
        pool = self._pool(key.pool_id)
        hooks = key.hooks

        fee_rate = key.fee
        if hooks is not None:
            override = hooks.before_swap(sender, key, params)
            if override is not None:
                fee_rate = override
        if fee_rate < 0 or fee_rate >= 1:
            raise ValueError(f"fee must be in [0, 1), got {fee_rate}")

        price_before = pool.price
        amount_in, amount_out, fee_amount = pool.swap(
            params.zero_for_one, params.amount_in, fee_rate, params.price_limit
        )
        if params.zero_for_one:
            delta = BalanceDelta(-amount_in, amount_out)
        else:
            delta = BalanceDelta(amount_out, -amount_in)
        self._accrue(key.currency0, delta.amount0)
        self._accrue(key.currency1, delta.amount1)
        price_after = pool.price

        if hooks is not None:
            hooks.after_swap(sender, key, params, delta)

        return SwapResult(
            delta=delta,
            fee_rate=fee_rate,
            fee_amount=fee_amount,
            price_before=price_before,
            price_after=price_after,
            gas_used=self.SWAP_GAS + (self.HOOK_GAS if hooks is not None else 0),
        )

    def simulate_swap(
        self, key: PoolKey, zero_for_one: bool, amount_in: Decimal
    ) -> SwapQuote:
        with self._sandbox():
            result = self._swap(
                key, SwapParams(zero_for_one, amount_in, simulated=True), sender=""
            )
        return SwapQuote(
            amount_in=result.delta.input(zero_for_one),
            amount_out=result.delta.output(zero_for_one),
            gas_estimate=result.gas_used,
            price_after=result.price_after,
            fee_rate=result.fee_rate,
        )

    def execute_swap(
        self,
        key: PoolKey,
        zero_for_one: bool,
        amount_in: Decimal,
        price_limit: Optional[Decimal],
        sender: str = "",
    ) -> BalanceDelta:
        sender = sender or getattr(key.hooks, "address", "")
        result = self._swap(key, SwapParams(zero_for_one, amount_in, price_limit), sender)
        return result.delta

    def swap(
        self,
        key: PoolKey,
        zero_for_one: bool,
        amount_in: Decimal,
        sender: str,
        price_limit: Optional[Decimal] = None,
    ) -> SwapResult:
        """Router-style entry: swap, then settle the trader's side.

        The whole operation is atomic: if anything raises, every pool,
        balance and hook state change is rolled back.
        """
        with self.transaction():
            result = self._swap(key, SwapParams(zero_for_one, amount_in, price_limit), sender)
            paid = key.currency0 if zero_for_one else key.currency1
            received = key.currency1 if zero_for_one else key.currency0
            self.settle(paid, result.delta.input(zero_for_one))
            self.take(received, result.delta.output(zero_for_one), sender)
            self.assert_settled()
        return result

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    def _accrue(self, currency: Currency, amount: Decimal) -> None:
        if amount:
            self._deltas[currency] = self._deltas.get(currency, _ZERO) + amount

    def settle(self, currency: Currency, amount: Decimal, payer: Optional[str] = None) -> None:
        if amount < 0:
            raise ValueError(f"settle amount must be >= 0, got {amount}")
        if payer is not None:
            held = self.balance_of(payer, currency)
            if held < amount:
                raise ValueError(f"{payer} holds {held} {currency.symbol}, cannot pay {amount}")
            self.balances[payer][currency] = held - amount
        self._accrue(currency, amount)

    def take(self, currency: Currency, amount: Decimal, recipient: str) -> None:
        if amount < 0:
            raise ValueError(f"take amount must be >= 0, got {amount}")
        self._accrue(currency, -amount)
        account = self.balances.setdefault(recipient, {})
        account[currency] = account.get(currency, _ZERO) + amount

    def donate(self, key: PoolKey, amount0: Decimal, amount1: Decimal) -> BalanceDelta:
        if amount0 < 0 or amount1 < 0:
            raise ValueError("donations must be non-negative")
        pool = self._pool(key.pool_id)
        pool.accumulated_fees0 += amount0
        pool.accumulated_fees1 += amount1
        delta = BalanceDelta(-amount0, -amount1)
        self._accrue(key.currency0, delta.amount0)
        self._accrue(key.currency1, delta.amount1)
        return delta

    def assert_settled(self) -> None:
        """Raise if any currency still carries a non-zero delta."""
        unsettled = {
            currency.symbol: str(amount)
            for currency, amount in self._deltas.items()
            if abs(amount) > self.SETTLEMENT_TOLERANCE
        }
        if unsettled:
            raise CurrencyNotSettled("currency deltas not settled", unsettled)
        self._deltas.clear()

    # ------------------------------------------------------------------
    # Rollback
    # ------------------------------------------------------------------

    def _hooks(self) -> list[PoolHooks]:
        seen: dict[int, PoolHooks] = {}
        for pool in self._pools.values():
            if pool.key.hooks is not None:
                seen.setdefault(id(pool.key.hooks), pool.key.hooks)
        return list(seen.values())

    def _capture(self) -> _EngineSnapshot:
        return _EngineSnapshot(
            pools={pool_id: pool.capture() for pool_id, pool in self._pools.items()},
            deltas=dict(self._deltas),
            balances={account: dict(held) for account, held in self.balances.items()},
            hooks=[(hooks, hooks.snapshot()) for hooks in self._hooks()],
        )

    def _restore(self, snapshot: _EngineSnapshot) -> None:
        for pool_id in list(self._pools):
            if pool_id not in snapshot.pools:
                del self._pools[pool_id]
        for pool_id, saved in snapshot.pools.items():
            self._pools[pool_id].load(saved)
        self._deltas.clear()
        self._deltas.update(snapshot.deltas)
        self.balances.clear()
        self.balances.update(snapshot.balances)
        for hooks, saved in snapshot.hooks:
            hooks.restore(saved)

    @contextmanager
    def _sandbox(self) -> Iterator[None]:
        """Every change made inside is undone on exit."""
        snapshot = self._capture()
        try:
            yield
        finally:
            self._restore(snapshot)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Changes made inside are undone only if the block raises."""
        snapshot = self._capture()
        try:
            yield
        except BaseException:
            self._restore(snapshot)
            raise
