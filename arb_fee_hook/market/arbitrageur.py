"""External arbitrageur keeping the reference pool at the fair price."""

import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from arb_fee_hook.core.amm import ConstantProductEngine, SwapResult
from arb_fee_hook.core.trade import PoolKey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReferenceArbResult:
    zero_for_one: bool
    amount_in: Decimal
    profit: Decimal   # currency1, valued at the fair price
    swap: SwapResult


class ReferenceArbitrageur:
    """Closed-form profit-maximizing trades against a constant product pool.

    For reserves (x, y), k = xy, fee f (fee-on-input), γ = 1 - f and fair
    price p (currency1 per currency0):
    - Pool underprices currency0: pay Δy = (sqrt(k·γ·p) - y) / γ
    - Pool overprices currency0: pay Δx = (sqrt(k·γ / p) - x) / γ
    """

    def __init__(self, engine: ConstantProductEngine, address: str):
        self.engine = engine
        self.address = address

    def optimal_trade(self, key: PoolKey, fair_price: Decimal) -> Optional[tuple[bool, Decimal]]:
        """Direction and gross input of the optimal trade, or None."""
        x, y = (float(r) for r in self.engine.get_reserves(key.pool_id))
        k = x * y
        gamma = 1.0 - float(key.fee)
        p = float(fair_price)
        if gamma <= 0.0 or p <= 0.0 or x <= 0.0:
            return None

        spot = y / x
        if spot < p:
            amount = (math.sqrt(k * gamma * p) - y) / gamma
            zero_for_one = False
        elif spot > p:
            amount = (math.sqrt(k * gamma / p) - x) / gamma
            zero_for_one = True
        else:
            return None

        if amount <= 0:
            return None
        return zero_for_one, Decimal(str(amount))

    def execute(self, key: PoolKey, fair_price: Decimal) -> Optional[ReferenceArbResult]:
        trade = self.optimal_trade(key, fair_price)
        if trade is None:
            return None
        zero_for_one, amount_in = trade

        result = self.engine.swap(key, zero_for_one, amount_in, sender=self.address)
        received = result.delta.output(zero_for_one)
        if zero_for_one:
            profit = received - amount_in * fair_price
        else:
            profit = received * fair_price - amount_in
        logger.debug(
            "Reference arb %s in=%s profit=%s",
            "0->1" if zero_for_one else "1->0", amount_in, profit,
        )
        return ReferenceArbResult(zero_for_one, amount_in, profit, result)
