"""Iterative quote refinement against the engine's true curve."""

import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Optional

from arb_fee_hook.arb.solver import ArbEquilibriumSolver
from arb_fee_hook.core.interfaces import PriceCurveEngine
from arb_fee_hook.core.pool_state import PoolState
from arb_fee_hook.core.trade import ArbDirection, ArbQuoteResult, PoolKey, SwapQuote
from arb_fee_hook.fees.illiquidity import IlliquidityEstimator

logger = logging.getLogger(__name__)

DEFAULT_ROUNDS = 3


@dataclass(frozen=True)
class RefinementRound:
    """What one round solved, observed and re-estimated."""
    index: int
    amount_in: Decimal
    leg_a: SwapQuote
    leg_b: SwapQuote
    pool_illiquidity: Decimal       # estimate after this round
    reference_illiquidity: Decimal  # estimate after this round

    @property
    def gross_profit(self) -> Decimal:
        return self.leg_b.amount_out - self.amount_in


class ArbRefinementLoop:
    """Solve, simulate both legs, re-estimate illiquidity, repeat.

    The solver's linear model is only an approximation of the real curve.
    Each round re-derives both illiquidity estimates from the simulated
    price moves, so later rounds solve against what the curve actually
    did. The loop always runs its full round budget; there is no
    tolerance-based early exit. The distance between consecutive inputs is
    recorded for observability only.
    """

    def __init__(
        self,
        engine: PriceCurveEngine,
        solver: Optional[ArbEquilibriumSolver] = None,
        rounds: int = DEFAULT_ROUNDS,
        estimator: Optional[IlliquidityEstimator] = None,
    ):
        if rounds < 1:
            raise ValueError(f"rounds must be >= 1, got {rounds}")
        self.engine = engine
        self.solver = solver or ArbEquilibriumSolver()
        self.rounds = rounds
        self.estimator = estimator or IlliquidityEstimator()
        self.history: list[RefinementRound] = []

    def run(
        self,
        state: PoolState,
        pool_key: PoolKey,
        reference_key: PoolKey,
        direction: ArbDirection,
    ) -> Optional[ArbQuoteResult]:
        """Find the most profitable candidate within the round budget.

        Args:
            state: Own pool state (prices, estimates, quote-asset selector)
            pool_key: Own pool
            reference_key: Reference pool trading the same pair
            direction: Direction of leg A on the own pool

        Returns:
            ArbQuoteResult for the best profitable candidate, or None
        """
        self.history = []
        pool_price = state.quote_price(self.engine.get_price(pool_key.pool_id))
        reference_price = state.quote_price(self.engine.get_price(reference_key.pool_id))
        pool_illiquidity = state.illiquidity
        reference_illiquidity = state.reference_illiquidity
        zero_for_one = state.zero_for_one_for(direction)
        sells_base = direction is ArbDirection.SELL_INTO_POOL

        best: Optional[ArbQuoteResult] = None
        previous: Optional[Decimal] = None
        convergence: list[Decimal] = []

        for index in range(self.rounds):
            amount_in = self.solver.solve(
                pool_price, reference_price, pool_illiquidity, reference_illiquidity, direction
            )
            if previous is not None:
                convergence.append(abs(amount_in - previous))
            if amount_in <= 0:
                logger.debug("Round %d: solver found no input", index)
                break

            leg_a = self.engine.simulate_swap(pool_key, zero_for_one, amount_in)
            if leg_a.amount_out <= 0:
                logger.debug("Round %d: leg A yields nothing for %s", index, amount_in)
                break
            leg_b = self.engine.simulate_swap(reference_key, not zero_for_one, leg_a.amount_out)

            pool_after = state.quote_price(leg_a.price_after)
            reference_after = state.quote_price(leg_b.price_after)
            if leg_b.amount_out > amount_in:
                profit = leg_b.amount_out - amount_in
                if best is None or profit > best.gross_profit:
                    best = ArbQuoteResult(
                        amount_in=amount_in,
                        direction=direction,
                        gross_profit=profit,
                        pool_price=pool_after,
                        reference_price=reference_after,
                        gas_estimate=leg_a.gas_estimate + leg_b.gas_estimate,
                    )

            # Leg volumes in quote terms: the quote side of each leg
            if sells_base:
                pool_volume, reference_volume = leg_a.amount_out, leg_a.amount_out
            else:
                pool_volume, reference_volume = amount_in, leg_b.amount_out
            pool_illiquidity = self._reestimate(
                pool_illiquidity, pool_price, pool_after, pool_volume
            )
            reference_illiquidity = self._reestimate(
                reference_illiquidity, reference_price, reference_after, reference_volume
            )

            self.history.append(
                RefinementRound(
                    index=index,
                    amount_in=amount_in,
                    leg_a=leg_a,
                    leg_b=leg_b,
                    pool_illiquidity=pool_illiquidity,
                    reference_illiquidity=reference_illiquidity,
                )
            )
            logger.debug(
                "Round %d: in=%s out=%s profit=%s ia=%s ib=%s",
                index, amount_in, leg_b.amount_out, leg_b.amount_out - amount_in,
                pool_illiquidity, reference_illiquidity,
            )
            previous = amount_in

        if best is None:
            return None
        return replace(best, rounds=len(self.history), convergence=tuple(convergence))

    def _reestimate(
        self,
        current: Decimal,
        price_before: Decimal,
        price_after: Decimal,
        volume: Decimal,
    ) -> Decimal:
        """Illiquidity implied by a simulated move; keeps ``current`` if none."""
        impact = self.estimator.price_impact(price_before, price_after)
        observed = self.estimator.observe(impact, volume)
        return observed if observed > 0 else current
