"""Two-leg arbitrage execution and settlement."""

import logging
from decimal import Decimal
from typing import Optional

from arb_fee_hook.core.errors import ProfitInvariantViolation
from arb_fee_hook.core.interfaces import PriceCurveEngine
from arb_fee_hook.core.pool_state import PoolState
from arb_fee_hook.core.trade import ArbExecution, ArbQuoteResult, PoolKey

logger = logging.getLogger(__name__)


class ArbExecutor:
    """Commits an approved arbitrage against the engine.

    Leg A trades the own pool, leg B trades the reference pool in the
    opposite direction with leg A's realized output. Both legs are bounded
    by the equilibrium midpoint so neither pool is pushed past it. Net
    deltas are then settled (negative) or taken as profit (positive).
    """

    def __init__(self, engine: PriceCurveEngine, recipient: str):
        self.engine = engine
        self.recipient = recipient

    @staticmethod
    def limit_ahead(current_price: Decimal, limit: Decimal, zero_for_one: bool) -> bool:
        """True if a swap in this direction can move toward ``limit``."""
        if zero_for_one:
            return limit < current_price
        return limit > current_price

    def execute(
        self,
        state: PoolState,
        pool_key: PoolKey,
        reference_key: PoolKey,
        quote: ArbQuoteResult,
    ) -> Optional[ArbExecution]:
        """Run both legs and settle.

        Returns:
            ArbExecution, or None if the midpoint bound leaves nothing to trade

        Raises:
            ProfitInvariantViolation: If the netted result is worth less than
                zero; the approved quote promised otherwise
        """
        zero_for_one = state.zero_for_one_for(quote.direction)
        limit = state.raw_price(quote.equilibrium_midpoint)
        pool_price = self.engine.get_price(pool_key.pool_id)
        reference_price = self.engine.get_price(reference_key.pool_id)

        if not (
            self.limit_ahead(pool_price, limit, zero_for_one)
            and self.limit_ahead(reference_price, limit, not zero_for_one)
        ):
            logger.debug(
                "Midpoint %s is behind pool %s or reference %s; nothing to execute",
                limit, pool_price, reference_price,
            )
            return None

        leg_a = self.engine.execute_swap(pool_key, zero_for_one, quote.amount_in, limit)
        realized_out = leg_a.output(zero_for_one)
        if realized_out <= 0:
            raise ProfitInvariantViolation(
                "leg A paid in without output",
                expected=quote.amount_in,
                actual=realized_out,
            )
        leg_b = self.engine.execute_swap(reference_key, not zero_for_one, realized_out, limit)

        net = leg_a + leg_b
        pool_price_after = self.engine.get_price(pool_key.pool_id)
        net_value = net.amount0 * pool_price_after + net.amount1
        if net_value < 0:
            raise ProfitInvariantViolation(
                "arbitrage executed at a loss",
                expected=quote.gross_profit,
                actual=net_value,
                details={"amount0": str(net.amount0), "amount1": str(net.amount1)},
            )

        for index in (0, 1):
            amount = net.amount(index)
            currency = pool_key.currency(index)
            if amount < 0:
                self.engine.settle(currency, -amount)
            elif amount > 0:
                self.engine.take(currency, amount, self.recipient)

        return ArbExecution(
            amount_in=leg_a.input(zero_for_one),
            zero_for_one=zero_for_one,
            leg_a=leg_a,
            leg_b=leg_b,
            profit0=net.amount0,
            profit1=net.amount1,
            pool_price=pool_price_after,
            reference_price=self.engine.get_price(reference_key.pool_id),
        )
