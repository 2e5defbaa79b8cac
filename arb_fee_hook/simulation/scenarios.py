"""Worked two-pool scenarios: one sell-side and one buy-side dislocation."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from arb_fee_hook.config import DEFAULT_HOOK_SETTINGS, HookSettings
from arb_fee_hook.core.amm import SwapResult
from arb_fee_hook.core.pool_state import PoolState
from arb_fee_hook.core.trade import ArbExecution
from arb_fee_hook.simulation.runner import RETAIL_TRADER, Market, build_market

SCENARIO_PRICE = Decimal("2500")
POOL_RESERVE0 = Decimal("100")
REFERENCE_RESERVE0 = Decimal("1000")
POOL_MIN_FEE = Decimal("0.001")
REFERENCE_FEE = Decimal("0.0005")


@dataclass
class ScenarioOutcome:
    name: str
    trade: SwapResult
    gap_before: Decimal   # right after the trade, before any arbitrage
    gap_after: Decimal
    execution: Optional[ArbExecution]
    state: PoolState
    market: Market

    @property
    def captured_value(self) -> Decimal:
        """Executed profit in DAI at the final pool price."""
        if self.execution is None:
            return Decimal("0")
        return self.execution.value_at(self.execution.pool_price)


def scenario_market(hook_settings: HookSettings = DEFAULT_HOOK_SETTINGS) -> Market:
    """100 WETH / 250k DAI hooked pool against a ten times deeper reference."""
    return build_market(
        price=SCENARIO_PRICE,
        pool_reserve0=POOL_RESERVE0,
        reference_reserve0=REFERENCE_RESERVE0,
        min_fee=POOL_MIN_FEE,
        reference_fee=REFERENCE_FEE,
        hook_settings=hook_settings,
    )


def _run(
    name: str,
    zero_for_one: bool,
    amount_in: Decimal,
    hook_settings: HookSettings,
) -> ScenarioOutcome:
    market = scenario_market(hook_settings)
    reference_before = market.reference_price
    trade = market.engine.swap(market.pool_key, zero_for_one, amount_in, sender=RETAIL_TRADER)
    return ScenarioOutcome(
        name=name,
        trade=trade,
        gap_before=abs(trade.price_after - reference_before),
        gap_after=market.price_gap,
        execution=market.hook.last_execution,
        state=market.hook.pool_state(market.pool_key.pool_id),
        market=market,
    )


def run_sell_scenario(
    amount_in: Decimal = Decimal("2500"),
    hook_settings: HookSettings = DEFAULT_HOOK_SETTINGS,
) -> ScenarioOutcome:
    """A trader buys WETH with DAI; the pool overprices WETH and the hook sells into it."""
    return _run("sell", False, amount_in, hook_settings)


def run_buy_scenario(
    amount_in: Decimal = Decimal("1"),
    hook_settings: HookSettings = DEFAULT_HOOK_SETTINGS,
) -> ScenarioOutcome:
    """A trader sells WETH; the pool underprices WETH and the hook buys from it."""
    return _run("buy", True, amount_in, hook_settings)


SCENARIOS = {
    "sell": run_sell_scenario,
    "buy": run_buy_scenario,
}
