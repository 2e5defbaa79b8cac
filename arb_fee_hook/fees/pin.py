"""Order-flow imbalance (PIN) estimate."""

from decimal import Decimal

from arb_fee_hook.core.errors import InvariantViolation

_ONE = Decimal("1")


class PINEstimator:
    """Signed, bounded measure of how one-sided recent flow has been.

    Includes the hypothetical next trade, so a pool that has only ever
    seen buys and is about to see another buy reports +1.
    """

    def estimate(
        self,
        total_volume: Decimal,
        net_volume: Decimal,
        hypothetical_volume: Decimal,
        sells_base: bool,
        traded: bool = False,
    ) -> Decimal:
        """Compute the imbalance including the incoming trade.

        Args:
            total_volume: Cumulative unsigned volume so far
            net_volume: Cumulative signed volume (buys of base positive)
            hypothetical_volume: Volume of the incoming trade
            sells_base: True if the incoming trade sells the base asset
            traded: True if the pool has already completed a trade

        Returns:
            PIN in [-1, 1]

        Raises:
            InvariantViolation: If the denominator is zero on a pool that
                has already traded
        """
        denominator = total_volume + hypothetical_volume
        if denominator == 0:
            if traded:
                raise InvariantViolation(
                    "zero PIN denominator on a pool that has traded",
                    {"total_volume": str(total_volume)},
                )
            return Decimal("0")

        if sells_base:
            numerator = net_volume - hypothetical_volume
        else:
            numerator = net_volume + hypothetical_volume
        pin = numerator / denominator
        return max(-_ONE, min(_ONE, pin))
