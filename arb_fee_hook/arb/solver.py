"""Closed-form equilibrium solver for two-pool arbitrage.

Under a linear impact model a trade of quote volume ``v`` moves a pool's
price from ``P`` to ``P * (1 ± I * v)``. Applying the first leg to the own
pool, feeding its output into the reference pool in the opposite direction,
and setting the two resulting prices equal gives a quadratic in the leg-A
input ``x``:

    sell into own pool (Pa > Pb), x in base units:
        A = Pa²·Pb·Ia·Ib
        B = -(Pa·Pb·Ib + Pa²·Ia)
        C = Pa - Pb

    buy from own pool (Pa < Pb), x in quote units:
        A = Pa²·Ia²
        B = 2·Pa²·Ia + Pb²·Ib - Pa·Pb·Ia
        C = Pa² - Pa·Pb

The equilibrium is the first crossing, i.e. the smallest non-negative
root. For the buy direction the roots have opposite signs and this is
(-B + √(B² - 4AC)) / 2A; for the sell direction both roots are positive.
There B < 0, so (-B + √(B² - 4AC)) / 2A is the larger root: the second
crossing of the two linear price paths, reached only after the own pool
has been pushed well below the reference. Taking it overshoots the
equilibrium by orders of magnitude (Pa = 101, Pb = 100, Ia = Ib = 0.01
gives roots near 0.0049 and 1.985), so the sell side uses the smaller root.
"""

import logging
from decimal import Decimal, localcontext
from typing import Optional

from arb_fee_hook.core.trade import ArbDirection

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")
_PRECISION = 50


class ArbEquilibriumSolver:
    """Estimates the trade size that equalizes two pool prices."""

    @staticmethod
    def direction_for(pool_price: Decimal, reference_price: Decimal) -> Optional[ArbDirection]:
        """Equalizing direction, or None when the prices already match."""
        if pool_price > reference_price:
            return ArbDirection.SELL_INTO_POOL
        if pool_price < reference_price:
            return ArbDirection.BUY_FROM_POOL
        return None

    @staticmethod
    def coefficients(
        pool_price: Decimal,
        reference_price: Decimal,
        pool_illiquidity: Decimal,
        reference_illiquidity: Decimal,
        direction: ArbDirection,
    ) -> tuple[Decimal, Decimal, Decimal]:
        pa, pb = pool_price, reference_price
        ia, ib = pool_illiquidity, reference_illiquidity
        if direction is ArbDirection.SELL_INTO_POOL:
            return (
                pa * pa * pb * ia * ib,
                -(pa * pb * ib + pa * pa * ia),
                pa - pb,
            )
        return (
            pa * pa * ia * ia,
            2 * pa * pa * ia + pb * pb * ib - pa * pb * ia,
            pa * pa - pa * pb,
        )

    def solve(
        self,
        pool_price: Decimal,
        reference_price: Decimal,
        pool_illiquidity: Decimal,
        reference_illiquidity: Decimal,
        direction: ArbDirection,
    ) -> Decimal:
        """Leg-A input that equalizes post-trade prices.

        Args:
            pool_price: Own pool price (quote per base)
            reference_price: Reference pool price (quote per base)
            pool_illiquidity: Illiquidity estimate of the own pool
            reference_illiquidity: Illiquidity estimate of the reference pool
            direction: Which leg-A direction closes the gap

        Returns:
            Non-negative input amount; zero when no equilibrium exists
        """
        if pool_price <= 0 or reference_price <= 0 or pool_price == reference_price:
            return _ZERO

        # A single missing estimate borrows the other one
        ia, ib = pool_illiquidity, reference_illiquidity
        if ia == 0 and ib != 0:
            ia = ib
        elif ib == 0 and ia != 0:
            ib = ia

        with localcontext() as ctx:
            ctx.prec = _PRECISION
            a, b, c = self.coefficients(pool_price, reference_price, ia, ib, direction)
            if a == 0:
                return _ZERO

            discriminant = b * b - 4 * a * c
            if discriminant < 0:
                logger.debug(
                    "No real equilibrium: pa=%s pb=%s ia=%s ib=%s",
                    pool_price, reference_price, ia, ib,
                )
                return _ZERO

            # Numerically stable pair of roots
            root = discriminant.sqrt()
            q = -(b + root) / 2 if b >= 0 else -(b - root) / 2
            if q == 0:
                return _ZERO
            roots = (q / a, c / q)

        candidates = [r for r in roots if r >= 0]
        if not candidates:
            return _ZERO
        return +min(candidates)
