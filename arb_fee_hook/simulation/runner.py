"""Market harness: the hooked pool, its reference pool and the flow between them."""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

import numpy as np

from arb_fee_hook.config import (
    DEFAULT_HOOK_SETTINGS,
    SIMULATION_SETTINGS,
    HookSettings,
    SimulationSettings,
)
from arb_fee_hook.core.amm import ConstantProductEngine, SwapResult
from arb_fee_hook.core.errors import ProfitInvariantViolation
from arb_fee_hook.core.trade import Currency, PoolKey
from arb_fee_hook.hook import ArbitrageFeeHook
from arb_fee_hook.market.arbitrageur import ReferenceArbitrageur
from arb_fee_hook.market.price_process import ReferencePriceProcess
from arb_fee_hook.market.retail import RetailFlow, RetailOrder

logger = logging.getLogger(__name__)

WETH = Currency("0x0000000000000000000000000000000000000001", "WETH", 18)
DAI = Currency("0x6b175474e89094c44da98b954eedeac495271d0f", "DAI", 18)

CREATOR = "0x00000000000000000000000000000000000c0ffe"
RETAIL_TRADER = "0x000000000000000000000000000000000000bee5"
REFERENCE_ARBITRAGEUR = "0x00000000000000000000000000000000000a7b17"


@dataclass
class Market:
    """A hooked pool configured against a plain reference pool."""
    engine: ConstantProductEngine
    hook: ArbitrageFeeHook
    pool_key: PoolKey
    reference_key: PoolKey

    @property
    def pool_price(self) -> Decimal:
        return self.engine.get_price(self.pool_key.pool_id)

    @property
    def reference_price(self) -> Decimal:
        return self.engine.get_price(self.reference_key.pool_id)

    @property
    def price_gap(self) -> Decimal:
        return abs(self.pool_price - self.reference_price)


def build_market(
    price: Decimal,
    pool_reserve0: Decimal,
    reference_reserve0: Decimal,
    min_fee: Decimal,
    reference_fee: Decimal,
    hook_settings: HookSettings = DEFAULT_HOOK_SETTINGS,
    currency0: Currency = WETH,
    currency1: Currency = DAI,
) -> Market:
    """Create, seed and configure both pools at the same starting price."""
    engine = ConstantProductEngine()
    hook = ArbitrageFeeHook(engine, owner=CREATOR, settings=hook_settings)
    reference_key = PoolKey(currency0, currency1, fee=reference_fee)
    pool_key = PoolKey(currency0, currency1, fee=min_fee, dynamic_fee=True, hooks=hook)

    engine.initialize(reference_key, reference_reserve0, reference_reserve0 * price, CREATOR)
    engine.initialize(pool_key, pool_reserve0, pool_reserve0 * price, CREATOR)
    hook.configure_pool(pool_key.pool_id, 1, pool_key, reference_key, caller=CREATOR)
    hook.update_min_fee(pool_key.pool_id, min_fee, caller=CREATOR)
    return Market(engine, hook, pool_key, reference_key)


@dataclass
class StepResult:
    timestamp: int
    fair_price: Decimal
    pool_price: Decimal
    reference_price: Decimal
    retail_trades: int
    arbitrages: int
    failed_trades: int


@dataclass
class SimulationResult:
    seed: Optional[int]
    steps: list[StepResult] = field(default_factory=list)
    retail_volume: Decimal = Decimal("0")   # quote asset
    retail_fees: Decimal = Decimal("0")     # quote asset
    arb_count: int = 0
    captured_value: Decimal = Decimal("0")  # quote asset at the final pool price
    failed_trades: int = 0

    @property
    def mean_price_gap(self) -> float:
        if not self.steps:
            return 0.0
        gaps = np.array([float(abs(s.pool_price - s.reference_price)) for s in self.steps])
        return float(gaps.mean())

    @property
    def max_price_gap(self) -> float:
        if not self.steps:
            return 0.0
        return float(max(abs(s.pool_price - s.reference_price) for s in self.steps))


class SimulationRunner:
    """Drives retail flow through the hooked pool while the reference tracks GBM."""

    def __init__(
        self,
        settings: SimulationSettings = SIMULATION_SETTINGS,
        hook_settings: HookSettings = DEFAULT_HOOK_SETTINGS,
        seed: Optional[int] = None,
    ):
        self.settings = settings
        self.hook_settings = hook_settings
        self.seed = seed

    def _build(self) -> tuple[Market, ReferencePriceProcess, RetailFlow, ReferenceArbitrageur]:
        s = self.settings
        market = build_market(
            price=Decimal(str(s.initial_price)),
            pool_reserve0=Decimal(str(s.pool_reserve0)),
            reference_reserve0=Decimal(str(s.reference_reserve0)),
            min_fee=Decimal(str(s.min_fee)),
            reference_fee=Decimal(str(s.reference_fee)),
            hook_settings=self.hook_settings,
        )
        prices = ReferencePriceProcess(
            initial_price=s.initial_price,
            drift=s.gbm_mu,
            volatility=s.gbm_sigma,
            dt=s.gbm_dt,
            seed=self.seed,
        )
        # Offset so retail draws are independent of the price path
        retail = RetailFlow(
            arrival_rate=s.retail_arrival_rate,
            mean_size=s.retail_mean_size,
            size_sigma=s.retail_size_sigma,
            buy_prob=s.retail_buy_prob,
            seed=None if self.seed is None else self.seed + 1,
        )
        arbitrageur = ReferenceArbitrageur(market.engine, REFERENCE_ARBITRAGEUR)
        return market, prices, retail, arbitrageur

    def run(self) -> SimulationResult:
        market, prices, retail, arbitrageur = self._build()
        state = market.hook.pool_state(market.pool_key.pool_id)
        result = SimulationResult(seed=self.seed)

        for fair in prices.path(state, self.settings.n_steps):
            timestamp = fair.timestamp
            arbitrageur.execute(market.reference_key, fair.raw)

            arbs_before = state.arb_count
            orders = retail.orders(state, market.pool_price)
            failed = 0
            for order in orders:
                try:
                    swap = self._trade(market, order)
                except ProfitInvariantViolation as e:
                    logger.warning("Step %d: trade rolled back: %s %s", timestamp, e, e.details)
                    failed += 1
                    continue
                result.retail_volume += order.quote_size
                result.retail_fees += self._fee_value(swap)

            result.failed_trades += failed
            result.steps.append(
                StepResult(
                    timestamp=timestamp,
                    fair_price=fair.quote,
                    pool_price=market.pool_price,
                    reference_price=market.reference_price,
                    retail_trades=len(orders) - failed,
                    arbitrages=state.arb_count - arbs_before,
                    failed_trades=failed,
                )
            )

        result.arb_count = state.arb_count
        result.captured_value = (
            state.captured_profit0 * market.pool_price + state.captured_profit1
        )
        logger.info(
            "Simulation done: %d steps, %d arbitrages, captured %s, mean gap %.4f",
            len(result.steps), result.arb_count, result.captured_value, result.mean_price_gap,
        )
        return result

    @staticmethod
    def _trade(market: Market, order: RetailOrder) -> SwapResult:
        params = order.params
        return market.engine.swap(
            market.pool_key, params.zero_for_one, params.amount_in, sender=RETAIL_TRADER
        )

    @staticmethod
    def _fee_value(swap: SwapResult) -> Decimal:
        """Fee charged, in quote terms at the pre-trade price."""
        if swap.delta.amount0 < 0:
            return swap.fee_amount * swap.price_before
        return swap.fee_amount
