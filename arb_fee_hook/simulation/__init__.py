"""Market harness and worked scenarios."""

from arb_fee_hook.simulation.runner import (
    Market,
    SimulationResult,
    SimulationRunner,
    StepResult,
    build_market,
)
from arb_fee_hook.simulation.scenarios import (
    SCENARIOS,
    ScenarioOutcome,
    run_buy_scenario,
    run_sell_scenario,
)

__all__ = [
    "Market",
    "SimulationResult",
    "SimulationRunner",
    "StepResult",
    "build_market",
    "SCENARIOS",
    "ScenarioOutcome",
    "run_buy_scenario",
    "run_sell_scenario",
]
