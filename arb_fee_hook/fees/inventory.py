"""Inventory exposure: how concentrated the pool is in one asset."""

from decimal import Decimal


class InventoryExposureCalculator:
    """Share of pool value held in the asset the pool is about to receive."""

    def exposure(
        self,
        inventory0: Decimal,
        inventory1: Decimal,
        price: Decimal,
        zero_for_one: bool,
    ) -> Decimal:
        """Normalized exposure in [0, 1].

        Args:
            inventory0: Pool balance of currency0
            inventory1: Pool balance of currency1
            price: Currency1 per currency0
            zero_for_one: True if the incoming trade sells currency0 into the pool

        Returns:
            Currency0's share of total value for a zero-for-one trade,
            currency1's share otherwise; zero for an empty pool
        """
        value0 = inventory0 * price
        total = value0 + inventory1
        if total <= 0:
            return Decimal("0")
        share = value0 / total if zero_for_one else inventory1 / total
        return max(Decimal("0"), min(Decimal("1"), share))
