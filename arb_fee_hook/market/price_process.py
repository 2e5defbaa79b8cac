"""Fair-price path for the reference venue.

Prices are drawn in quote-asset terms (quote per base) and mapped onto the
engine's raw token1-per-token0 price through the pool's quote-asset
selector, so the same path drives pools with either token ordering.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import numpy as np

from arb_fee_hook.core.pool_state import PoolState


@dataclass(frozen=True)
class FairPrice:
    timestamp: int
    quote: Decimal  # quote asset per base asset
    raw: Decimal    # engine units, token1 per token0


class ReferencePriceProcess:
    """Log-normal random walk of the base asset's fair value.

    The whole path is drawn up front from one generator, so a seed pins
    every price regardless of how the caller consumes it.
    """

    def __init__(
        self,
        initial_price: float,
        drift: float = 0.0,
        volatility: float = 0.001,
        dt: float = 1.0,
        seed: Optional[int] = None,
    ):
        if initial_price <= 0:
            raise ValueError(f"initial_price must be > 0, got {initial_price}")
        if volatility < 0:
            raise ValueError(f"volatility must be >= 0, got {volatility}")
        self.initial_price = initial_price
        self.drift = drift
        self.volatility = volatility
        self.dt = dt
        self.seed = seed

    def log_returns(self, n_steps: int) -> np.ndarray:
        rng = np.random.default_rng(self.seed)
        shocks = rng.standard_normal(max(n_steps - 1, 0))
        mean = (self.drift - 0.5 * self.volatility ** 2) * self.dt
        return mean + self.volatility * np.sqrt(self.dt) * shocks

    def quote_path(self, n_steps: int) -> list[Decimal]:
        """``n_steps`` fair prices, the first one being ``initial_price``."""
        if n_steps <= 0:
            return []
        levels = self.initial_price * np.exp(
            np.concatenate(([0.0], np.cumsum(self.log_returns(n_steps))))
        )
        return [Decimal(repr(float(level))) for level in levels]

    def path(self, state: PoolState, n_steps: int) -> list[FairPrice]:
        """Fair prices for the pool described by ``state``."""
        return [
            FairPrice(timestamp, quote, state.raw_price(quote))
            for timestamp, quote in enumerate(self.quote_path(n_steps))
        ]
