"""Self-arbitrage pipeline: solve, refine, gate, execute."""

from arb_fee_hook.arb.solver import ArbEquilibriumSolver
from arb_fee_hook.arb.refinement import ArbRefinementLoop, RefinementRound
from arb_fee_hook.arb.gate import ArbProfitabilityGate
from arb_fee_hook.arb.executor import ArbExecutor
from arb_fee_hook.arb.guard import GuardState, ReentrancyGuard

__all__ = [
    "ArbEquilibriumSolver",
    "ArbRefinementLoop",
    "RefinementRound",
    "ArbProfitabilityGate",
    "ArbExecutor",
    "GuardState",
    "ReentrancyGuard",
]
