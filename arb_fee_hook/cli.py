"""Command-line interface for the hook's scenarios and market simulation."""

import argparse
import logging
import sys
from dataclasses import replace
from decimal import Decimal

from arb_fee_hook import logging_config
from arb_fee_hook.config import SIMULATION_SETTINGS, load_hook_settings
from arb_fee_hook.core.errors import ArbHookError
from arb_fee_hook.simulation.runner import SimulationRunner
from arb_fee_hook.simulation.scenarios import SCENARIOS


def simulate_command(args: argparse.Namespace) -> int:
    """Run the market harness and print a summary."""
    settings = SIMULATION_SETTINGS
    overrides = {
        "n_steps": args.steps,
        "gbm_sigma": args.volatility,
        "retail_arrival_rate": args.retail_rate,
        "retail_mean_size": args.retail_size,
        "min_fee": args.min_fee,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if overrides:
        settings = replace(settings, **overrides)

    hook_settings = load_hook_settings()
    if args.rounds is not None:
        hook_settings = replace(hook_settings, refinement_rounds=args.rounds)

    print(f"Running {settings.n_steps} steps (seed={args.seed})...")
    result = SimulationRunner(settings, hook_settings, seed=args.seed).run()

    print(f"\nRetail volume:     {result.retail_volume:.2f}")
    print(f"Retail fees:       {result.retail_fees:.4f}")
    print(f"Arbitrages:        {result.arb_count}")
    print(f"Captured value:    {result.captured_value:.4f}")
    print(f"Mean price gap:    {result.mean_price_gap:.4f}")
    print(f"Max price gap:     {result.max_price_gap:.4f}")
    if result.failed_trades:
        print(f"Rolled back:       {result.failed_trades}")
    return 0


def scenario_command(args: argparse.Namespace) -> int:
    """Run one worked scenario and print what the hook did."""
    hook_settings = load_hook_settings()
    kwargs = {"hook_settings": hook_settings}
    if args.amount is not None:
        kwargs["amount_in"] = Decimal(args.amount)
    outcome = SCENARIOS[args.name](**kwargs)

    print(f"Scenario: {outcome.name}")
    print(f"Trade fee:         {outcome.trade.fee_rate}")
    print(f"Gap after trade:   {outcome.gap_before:.6f}")
    print(f"Gap after arb:     {outcome.gap_after:.6f}")
    if outcome.execution is None:
        print("No arbitrage executed")
        return 0
    execution = outcome.execution
    print(f"Arb input:         {execution.amount_in:.8f}")
    print(f"Profit WETH:       {execution.profit0:.8f}")
    print(f"Profit DAI:        {execution.profit1:.8f}")
    print(f"Captured (DAI):    {outcome.captured_value:.6f}")
    print(f"Convergence:       {outcome.state.last_convergence:.8f}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Arbitrage-aware dynamic fee hook - scenarios and simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  arb-hook scenario sell
  arb-hook scenario buy --amount 2
  arb-hook simulate --steps 500 --seed 7
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    simulate_parser = subparsers.add_parser("simulate", help="Run the market simulation")
    simulate_parser.add_argument("--steps", type=int, default=None, help="Simulation steps")
    simulate_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    simulate_parser.add_argument(
        "--volatility", type=float, default=None, help="Per-step GBM volatility"
    )
    simulate_parser.add_argument(
        "--retail-rate", type=float, default=None, help="Retail arrival rate per step"
    )
    simulate_parser.add_argument(
        "--retail-size", type=float, default=None, help="Mean retail size in the quote asset"
    )
    simulate_parser.add_argument(
        "--min-fee", type=float, default=None, help="Minimum fee of the hooked pool"
    )
    simulate_parser.add_argument(
        "--rounds", type=int, default=None, help="Refinement rounds per arbitrage"
    )
    simulate_parser.set_defaults(func=simulate_command)

    scenario_parser = subparsers.add_parser("scenario", help="Run a worked scenario")
    scenario_parser.add_argument("name", choices=sorted(SCENARIOS), help="Scenario to run")
    scenario_parser.add_argument(
        "--amount", default=None, help="Trader input (DAI for sell, WETH for buy)"
    )
    scenario_parser.set_defaults(func=scenario_command)

    args = parser.parse_args()
    logging_config.setup(logging.DEBUG if args.verbose else logging.INFO)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except (ArbHookError, ValueError) as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
