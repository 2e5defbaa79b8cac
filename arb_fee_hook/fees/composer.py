"""Fee composition from toxicity, impact and inventory signals."""

from decimal import Decimal

from arb_fee_hook.core.errors import ValidationError


class FeeComposer:
    """Combines the three risk signals into a single fee override.

    fee = min_fee + impact * exposure * |pin| / divisor, clamped at max_fee.
    All signals are fractions, so the default divisor of 1 leaves the
    surcharge in fee units (0.003 = 30 bps).
    """

    def __init__(self, max_fee: Decimal, divisor: Decimal = Decimal("1")):
        if divisor <= 0:
            raise ValidationError(f"fee divisor must be > 0, got {divisor}")
        if max_fee <= 0:
            raise ValidationError(f"max fee must be > 0, got {max_fee}")
        self.max_fee = max_fee
        self.divisor = divisor

    @staticmethod
    def expected_price_impact(illiquidity: Decimal, hypothetical_volume: Decimal) -> Decimal:
        """Linear impact forecast for a trade of the given quote volume."""
        if illiquidity <= 0 or hypothetical_volume <= 0:
            return Decimal("0")
        return illiquidity * hypothetical_volume

    def compose_fee(
        self,
        pin: Decimal,
        min_fee: Decimal,
        expected_price_impact: Decimal,
        inventory_exposure: Decimal,
    ) -> Decimal:
        if pin == 0:
            return min_fee
        surcharge = (
            max(expected_price_impact, Decimal("0"))
            * max(inventory_exposure, Decimal("0"))
            * abs(pin)
            / self.divisor
        )
        return min(min_fee + surcharge, self.max_fee)
