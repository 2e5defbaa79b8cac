"""Uninformed retail flow, expressed as swaps against a specific pool."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import numpy as np

from arb_fee_hook.core.pool_state import PoolState
from arb_fee_hook.core.trade import SwapParams


@dataclass(frozen=True)
class RetailOrder:
    """One retail swap in pool terms."""
    params: SwapParams
    sells_base: bool
    quote_size: Decimal  # notional in the quote asset


class RetailFlow:
    """Poisson arrivals with lognormal quote-asset notionals.

    Buyers of the base asset pay the notional in the quote asset; sellers
    pay the base amount worth the notional at the current pool price.
    """

    def __init__(
        self,
        arrival_rate: float = 1.0,
        mean_size: float = 1.0,
        size_sigma: float = 1.2,
        buy_prob: float = 0.5,
        seed: Optional[int] = None,
    ):
        if arrival_rate < 0:
            raise ValueError(f"arrival_rate must be >= 0, got {arrival_rate}")
        if mean_size <= 0:
            raise ValueError(f"mean_size must be > 0, got {mean_size}")
        if not (0 <= buy_prob <= 1):
            raise ValueError(f"buy_prob must be in [0, 1], got {buy_prob}")
        self.arrival_rate = arrival_rate
        self.mean_size = mean_size
        self.size_sigma = max(size_sigma, 0.01)
        self.buy_prob = buy_prob
        self._rng = np.random.default_rng(seed)

    def notionals(self) -> tuple[np.ndarray, np.ndarray]:
        """Sizes and buy flags for one step's arrivals."""
        count = int(self._rng.poisson(self.arrival_rate))
        # lognormal parameterised so the mean notional is ``mean_size``
        mu = np.log(self.mean_size) - 0.5 * self.size_sigma ** 2
        sizes = self._rng.lognormal(mu, self.size_sigma, size=count)
        buys = self._rng.random(count) < self.buy_prob
        return sizes, buys

    def orders(self, state: PoolState, raw_price: Decimal) -> list[RetailOrder]:
        """Draw this step's orders against the pool described by ``state``."""
        quote_price = state.quote_price(raw_price)
        sizes, buys = self.notionals()
        orders = []
        for size, buys_base in zip(sizes, buys):
            notional = Decimal(repr(float(size)))
            sells_base = not bool(buys_base)
            amount_in = notional / quote_price if sells_base else notional
            orders.append(
                RetailOrder(
                    params=SwapParams(
                        zero_for_one=sells_base == state.base_is_currency0,
                        amount_in=amount_in,
                    ),
                    sells_base=sells_base,
                    quote_size=notional,
                )
            )
        return orders
