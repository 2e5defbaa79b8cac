"""Interfaces between the hook and the AMM price-curve engine."""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, ContextManager, Optional

from arb_fee_hook.core.trade import BalanceDelta, Currency, PoolKey, SwapParams, SwapQuote


class PriceCurveEngine(ABC):
    """The AMM engine the hook trades against.

    The engine owns curve math, liquidity accounting and asset transfer.
    The hook only consumes this surface. ``simulate_swap`` must leave no
    persisted state behind, whatever the swap (and its hooks) did.
    """

    @abstractmethod
    def get_price(self, pool_id: str) -> Decimal:
        """Current price of the pool, currency1 per currency0."""
        pass

    @abstractmethod
    def get_liquidity(self, pool_id: str) -> Decimal:
        """Current active liquidity of the pool."""
        pass

    @abstractmethod
    def simulate_swap(
        self, key: PoolKey, zero_for_one: bool, amount_in: Decimal
    ) -> SwapQuote:
        """Run an exact-input swap and roll every effect back.

        Returns:
            SwapQuote with the output amount, gas estimate and the price
            the pool would have after the swap
        """
        pass

    @abstractmethod
    def execute_swap(
        self,
        key: PoolKey,
        zero_for_one: bool,
        amount_in: Decimal,
        price_limit: Optional[Decimal],
    ) -> BalanceDelta:
        """Run an exact-input swap, stopping early at ``price_limit``.

        Returns:
            BalanceDelta owed between the caller and the engine
        """
        pass

    @abstractmethod
    def settle(self, currency: Currency, amount: Decimal, payer: Optional[str] = None) -> None:
        """Pay ``amount`` of ``currency`` to the engine."""
        pass

    @abstractmethod
    def take(self, currency: Currency, amount: Decimal, recipient: str) -> None:
        """Claim ``amount`` of ``currency`` from the engine."""
        pass

    @abstractmethod
    def donate(self, key: PoolKey, amount0: Decimal, amount1: Decimal) -> BalanceDelta:
        """Give amounts to the pool's liquidity providers; the caller owes them."""
        pass

    @abstractmethod
    def transaction(self) -> ContextManager[None]:
        """Scope whose engine and hook changes are undone if it raises."""
        pass


class PoolHooks(ABC):
    """Callbacks an engine invokes around pool operations.

    Mirrors on-chain hook constraints: a hook only runs when the engine
    calls it during a pool operation.
    """

    address: str = ""

    def before_initialize(self, sender: str, key: PoolKey, price: Decimal) -> None:
        """Called before a pool is created. Raise to reject the pool."""
        pass

    def after_initialize(self, sender: str, key: PoolKey, price: Decimal) -> None:
        """Called once after a pool is created."""
        pass

    def after_modify_liquidity(self, sender: str, key: PoolKey, delta: BalanceDelta) -> None:
        """Called after liquidity is added (positive) or removed (negative)."""
        pass

    @abstractmethod
    def before_swap(self, sender: str, key: PoolKey, params: SwapParams) -> Optional[Decimal]:
        """Called before each swap.

        Returns:
            Fee override for this swap, or None to use the key's fee
        """
        pass

    @abstractmethod
    def after_swap(
        self, sender: str, key: PoolKey, params: SwapParams, delta: BalanceDelta
    ) -> None:
        """Called after each swap with the caller's balance delta."""
        pass

    def snapshot(self) -> Any:
        """Capture hook state so the engine can roll a swap back."""
        return None

    def restore(self, snapshot: Any) -> None:
        """Return to a state captured by ``snapshot``."""
        pass
