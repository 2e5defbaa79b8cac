"""Profitability gate: is the arbitrage worth its gas and does it help?"""

import logging
from decimal import Decimal
from typing import Optional

from arb_fee_hook.core.trade import ArbQuoteResult

logger = logging.getLogger(__name__)


class ArbProfitabilityGate:
    """Nets gas out of gross profit and checks that the price gap narrows.

    Gas is paid in the native asset, which is always currency0. Profit is
    denominated in the settlement asset, the input currency of the first
    leg; when that is currency1 the gas cost is converted at the pool price.
    """

    def __init__(self, gas_price: Decimal):
        if gas_price < 0:
            raise ValueError(f"gas_price must be >= 0, got {gas_price}")
        self.gas_price = gas_price

    def gas_cost(
        self,
        gas_estimate: int,
        zero_for_one: bool,
        final_price: Decimal,
        decimals_delta: int = 0,
    ) -> Decimal:
        """Gas cost expressed in the settlement asset.

        Args:
            gas_estimate: Gas units for both legs
            zero_for_one: Direction of the first leg (True settles in currency0)
            final_price: Whole-token price, currency1 per currency0
            decimals_delta: decimals0 - decimals1
        """
        native_cost = Decimal(gas_estimate) * self.gas_price
        if zero_for_one:
            return native_cost
        return native_cost * final_price / Decimal(10) ** decimals_delta

    def evaluate(
        self,
        gross_profit: Decimal,
        gas_estimate: int,
        zero_for_one: bool,
        final_price: Decimal,
        decimals_delta: int = 0,
    ) -> Decimal:
        """Net profit after gas, floored at zero."""
        cost = self.gas_cost(gas_estimate, zero_for_one, final_price, decimals_delta)
        return max(Decimal("0"), gross_profit - cost)

    @staticmethod
    def price_gap_improved(prior_gap: Decimal, new_gap: Decimal) -> bool:
        return abs(new_gap) < abs(prior_gap)

    def approve(
        self,
        quote: ArbQuoteResult,
        prior_gap: Decimal,
        zero_for_one: bool,
        final_price: Decimal,
        decimals_delta: int = 0,
    ) -> Optional[Decimal]:
        """Net profit if the arbitrage should run, None otherwise.

        Both a positive net profit and a strictly narrowed gap are required.
        """
        net_profit = self.evaluate(
            quote.gross_profit, quote.gas_estimate, zero_for_one, final_price, decimals_delta
        )
        if net_profit <= 0:
            logger.debug(
                "Arbitrage declined: gross %s does not cover gas for %d units",
                quote.gross_profit, quote.gas_estimate,
            )
            return None
        if not self.price_gap_improved(prior_gap, quote.price_gap):
            logger.debug(
                "Arbitrage declined: gap %s would not narrow from %s",
                quote.price_gap, prior_gap,
            )
            return None
        return net_profit
