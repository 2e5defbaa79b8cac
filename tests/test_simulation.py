"""Tests for the market harness, configuration loading and the CLI."""

import sys
from dataclasses import replace
from decimal import Decimal

import pytest

from arb_fee_hook import cli
from arb_fee_hook.config import (
    DEFAULT_HOOK_SETTINGS,
    SIMULATION_SETTINGS,
    HookSettings,
    load_hook_settings,
)
from arb_fee_hook.market.arbitrageur import ReferenceArbitrageur
from arb_fee_hook.market.price_process import ReferencePriceProcess
from arb_fee_hook.market.retail import RetailFlow
from arb_fee_hook.simulation.runner import REFERENCE_ARBITRAGEUR, SimulationRunner
from tests.fixtures.pools import make_state

SHORT_RUN = replace(SIMULATION_SETTINGS, n_steps=25)


class TestReferencePriceProcess:
    def test_path_starts_at_initial_price(self):
        path = ReferencePriceProcess(initial_price=2500.0, seed=1).path(make_state(), 10)
        assert len(path) == 10
        assert path[0].quote == Decimal("2500.0")
        assert [p.timestamp for p in path] == list(range(10))
        assert all(p.quote > 0 for p in path)

    def test_raw_price_follows_quote_asset(self):
        process = ReferencePriceProcess(initial_price=2500.0, seed=1)
        base_first = process.path(make_state(quote_asset=1), 5)
        base_second = process.path(make_state(quote_asset=0), 5)

        assert all(p.raw == p.quote for p in base_first)
        assert [p.quote for p in base_second] == [p.quote for p in base_first]
        assert base_second[0].raw == Decimal("1") / Decimal("2500.0")

    def test_seeded_paths_repeat(self):
        a = ReferencePriceProcess(initial_price=2500.0, seed=7).quote_path(20)
        b = ReferencePriceProcess(initial_price=2500.0, seed=7).quote_path(20)
        assert a == b

    def test_zero_volatility_is_flat(self):
        path = ReferencePriceProcess(initial_price=2500.0, volatility=0.0, seed=2).quote_path(5)
        assert path == [Decimal("2500.0")] * 5

    def test_invalid_parameters(self):
        with pytest.raises(ValueError):
            ReferencePriceProcess(initial_price=0.0)
        with pytest.raises(ValueError):
            ReferencePriceProcess(initial_price=1.0, volatility=-0.1)


class TestRetailFlow:
    """Orders come out as swaps in the pool's own token ordering."""

    def _orders(self, flow, state, price=Decimal("2500"), steps=20):
        return [order for _ in range(steps) for order in flow.orders(state, price)]

    def test_orders_have_positive_size(self):
        flow = RetailFlow(arrival_rate=5.0, mean_size=2000.0, seed=3)
        orders = self._orders(flow, make_state())
        assert orders
        assert all(order.quote_size > 0 for order in orders)
        assert all(order.params.amount_in > 0 for order in orders)

    def test_buyers_pay_quote_asset(self):
        flow = RetailFlow(arrival_rate=5.0, mean_size=100.0, buy_prob=1.0, seed=3)
        orders = self._orders(flow, make_state(quote_asset=1), steps=10)
        assert orders
        assert all(not order.sells_base for order in orders)
        # base is currency0, so buying it pays currency1
        assert all(order.params.zero_for_one is False for order in orders)
        assert all(order.params.amount_in == order.quote_size for order in orders)

    def test_sellers_pay_base_at_pool_price(self):
        flow = RetailFlow(arrival_rate=5.0, mean_size=100.0, buy_prob=0.0, seed=3)
        orders = self._orders(flow, make_state(quote_asset=1), steps=10)
        assert orders
        assert all(order.params.zero_for_one is True for order in orders)
        assert all(
            order.params.amount_in == order.quote_size / Decimal("2500") for order in orders
        )

    def test_direction_flips_with_quote_asset(self):
        flow = RetailFlow(arrival_rate=5.0, mean_size=100.0, buy_prob=1.0, seed=3)
        # base is currency1 here; a raw price of 1/2500 is 2500 quote per base
        orders = self._orders(flow, make_state(quote_asset=0), price=Decimal("1") / Decimal("2500"))
        assert orders
        assert all(order.params.zero_for_one is True for order in orders)

    def test_invalid_parameters(self):
        with pytest.raises(ValueError):
            RetailFlow(arrival_rate=-1.0)
        with pytest.raises(ValueError):
            RetailFlow(buy_prob=1.5)
        with pytest.raises(ValueError):
            RetailFlow(mean_size=0.0)


class TestReferenceArbitrageur:
    """Closed-form trades push the reference pool to the fee band around fair."""

    def test_pool_moves_to_fee_adjusted_fair_price(self, market, decimal_assert):
        arbitrageur = ReferenceArbitrageur(market.engine, REFERENCE_ARBITRAGEUR)
        fair = Decimal("2600")
        result = arbitrageur.execute(market.reference_key, fair)

        assert result is not None
        assert result.zero_for_one is False
        assert result.profit > 0
        gamma = Decimal("1") - market.reference_key.fee
        decimal_assert.assert_relative(market.reference_price, fair * gamma, Decimal("1e-6"))

    def test_no_trade_at_fair_price(self, market):
        arbitrageur = ReferenceArbitrageur(market.engine, REFERENCE_ARBITRAGEUR)
        assert arbitrageur.execute(market.reference_key, market.reference_price) is None


class TestSimulationRunner:
    @pytest.fixture(scope="class")
    def result(self):
        return SimulationRunner(SHORT_RUN, seed=11).run()

    def test_records_every_step(self, result):
        assert len(result.steps) == SHORT_RUN.n_steps
        assert [s.timestamp for s in result.steps] == list(range(SHORT_RUN.n_steps))

    def test_summary_is_consistent(self, result):
        assert result.arb_count == sum(s.arbitrages for s in result.steps)
        assert result.failed_trades == sum(s.failed_trades for s in result.steps)
        assert result.retail_fees >= 0
        assert result.mean_price_gap >= 0
        assert result.max_price_gap >= result.mean_price_gap

    def test_seeded_runs_repeat(self, result):
        again = SimulationRunner(SHORT_RUN, seed=11).run()
        assert [s.pool_price for s in again.steps] == [s.pool_price for s in result.steps]
        assert again.arb_count == result.arb_count


class TestConfig:
    def test_no_overrides_returns_base(self):
        assert load_hook_settings(environ={}) is DEFAULT_HOOK_SETTINGS

    def test_environment_overrides(self):
        settings = load_hook_settings(
            environ={
                "ARB_HOOK_REFINEMENT_ROUNDS": "5",
                "ARB_HOOK_GAS_PRICE": "0.00000001",
                "ARB_HOOK_MAX_FEE": "0.05",
            }
        )
        assert settings.refinement_rounds == 5
        assert settings.gas_price == Decimal("0.00000001")
        assert settings.max_fee == Decimal("0.05")
        assert settings.default_min_fee == DEFAULT_HOOK_SETTINGS.default_min_fee

    def test_invalid_settings_rejected(self):
        with pytest.raises(ValueError):
            replace(DEFAULT_HOOK_SETTINGS, refinement_rounds=0)
        with pytest.raises(ValueError):
            replace(DEFAULT_HOOK_SETTINGS, default_min_fee=Decimal("0.2"))
        with pytest.raises(ValueError):
            HookSettings(
                max_fee=Decimal("0.1"),
                default_min_fee=Decimal("0.003"),
                refinement_rounds=3,
                gas_price=Decimal("-1"),
                fee_divisor=Decimal("1"),
                donate_profit=True,
            )


class TestCLI:
    @pytest.fixture(autouse=True)
    def keep_logging(self, monkeypatch):
        """Leave pytest's log capture handlers in place."""
        monkeypatch.setattr(cli.logging_config, "setup", lambda level=None: None)

    def test_scenario_command(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["arb-hook", "scenario", "buy"])
        assert cli.main() == 0
        out = capsys.readouterr().out
        assert "Scenario: buy" in out
        assert "Captured (DAI)" in out

    def test_simulate_command(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["arb-hook", "simulate", "--steps", "5", "--seed", "2"])
        assert cli.main() == 0
        assert "Arbitrages:" in capsys.readouterr().out

    def test_no_command_prints_help(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["arb-hook"])
        assert cli.main() == 1
