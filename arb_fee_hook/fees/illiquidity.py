"""Illiquidity estimation: price impact per unit of traded volume."""

from decimal import Decimal


class IlliquidityEstimator:
    """Converts (price impact, volume) observations into a running average.

    Illiquidity is the relative price move caused per unit of quote-asset
    volume. With the running average ``I``, a trade of quote volume ``v``
    is expected to move the price by roughly ``I * v``.
    """

    @staticmethod
    def price_impact(price_before: Decimal, price_after: Decimal) -> Decimal:
        """Relative absolute price move. Zero when there is no prior price."""
        if price_before <= 0:
            return Decimal("0")
        return abs(price_after - price_before) / price_before

    @staticmethod
    def observe(price_impact_ratio: Decimal, volume: Decimal) -> Decimal:
        """Illiquidity of one observation; zero when volume is zero."""
        if volume <= 0:
            return Decimal("0")
        return price_impact_ratio / volume

    @staticmethod
    def fold(previous_average: Decimal, new_sample: Decimal, sample_count: int) -> Decimal:
        """Equal-weighted running mean after adding ``new_sample``.

        ``sample_count`` is the number of samples already in
        ``previous_average``. The first sample sets the average directly.
        """
        if sample_count <= 0:
            return new_sample
        return (previous_average * sample_count + new_sample) / (sample_count + 1)
