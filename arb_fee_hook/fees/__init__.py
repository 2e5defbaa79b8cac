"""Dynamic fee components."""

from arb_fee_hook.fees.illiquidity import IlliquidityEstimator
from arb_fee_hook.fees.pin import PINEstimator
from arb_fee_hook.fees.inventory import InventoryExposureCalculator
from arb_fee_hook.fees.composer import FeeComposer
from arb_fee_hook.fees.model import DynamicFeeModel

__all__ = [
    "IlliquidityEstimator",
    "PINEstimator",
    "InventoryExposureCalculator",
    "FeeComposer",
    "DynamicFeeModel",
]
