"""Pre-trade path: pool statistics in, fee override out."""

from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from arb_fee_hook.fees.composer import FeeComposer
from arb_fee_hook.fees.inventory import InventoryExposureCalculator
from arb_fee_hook.fees.pin import PINEstimator

if TYPE_CHECKING:
    from arb_fee_hook.core.pool_state import PoolState


class DynamicFeeModel:
    """Prices toxicity, expected impact and inventory risk into one fee."""

    def __init__(
        self,
        composer: FeeComposer,
        pin_estimator: Optional[PINEstimator] = None,
        exposure_calculator: Optional[InventoryExposureCalculator] = None,
    ):
        self.composer = composer
        self.pin_estimator = pin_estimator or PINEstimator()
        self.exposure_calculator = exposure_calculator or InventoryExposureCalculator()

    def fee_for(
        self,
        state: "PoolState",
        zero_for_one: bool,
        amount_in: Decimal,
        raw_price: Decimal,
    ) -> Decimal:
        """Fee for an incoming exact-input trade.

        A pool that has never traded has no illiquidity average yet and
        is charged its minimum fee.
        """
        if not state.illiquidity_defined:
            return state.min_fee

        hypothetical_volume = state.to_quote_volume(amount_in, zero_for_one, raw_price)
        pin = self.pin_estimator.estimate(
            state.total_volume,
            state.net_volume,
            hypothetical_volume,
            state.sells_base(zero_for_one),
            traded=True,
        )
        expected_impact = self.composer.expected_price_impact(
            state.illiquidity, hypothetical_volume
        )
        exposure = self.exposure_calculator.exposure(
            state.inventory.amount0,
            state.inventory.amount1,
            raw_price,
            zero_for_one,
        )
        return self.composer.compose_fee(pin, state.min_fee, expected_impact, exposure)
