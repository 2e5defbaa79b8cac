"""Market simulation components."""

from arb_fee_hook.market.price_process import FairPrice, ReferencePriceProcess
from arb_fee_hook.market.retail import RetailFlow, RetailOrder
from arb_fee_hook.market.arbitrageur import ReferenceArbitrageur, ReferenceArbResult

__all__ = [
    "FairPrice",
    "ReferencePriceProcess",
    "RetailFlow",
    "RetailOrder",
    "ReferenceArbitrageur",
    "ReferenceArbResult",
]
