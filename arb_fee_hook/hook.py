"""The arbitrage-aware dynamic fee hook.

Wires the pre-trade path (statistics in, fee override out) and the
post-trade path (bookkeeping, then a guarded solve/refine/gate/execute
pipeline that re-equilibrates the pool against its reference pool).
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Optional

from arb_fee_hook.arb.executor import ArbExecutor
from arb_fee_hook.arb.gate import ArbProfitabilityGate
from arb_fee_hook.arb.guard import ReentrancyGuard
from arb_fee_hook.arb.refinement import ArbRefinementLoop
from arb_fee_hook.arb.solver import ArbEquilibriumSolver
from arb_fee_hook.config import DEFAULT_HOOK_SETTINGS, HookSettings
from arb_fee_hook.core.errors import (
    ArbHookError,
    AuthorizationError,
    ConfigurationError,
    ProfitInvariantViolation,
    ValidationError,
)
from arb_fee_hook.core.interfaces import PoolHooks, PriceCurveEngine
from arb_fee_hook.core.pool_state import PoolMetricsTracker, PoolRegistry, PoolState
from arb_fee_hook.core.trade import (
    ZERO_ADDRESS,
    ArbExecution,
    BalanceDelta,
    PoolKey,
    SwapParams,
)
from arb_fee_hook.fees.composer import FeeComposer
from arb_fee_hook.fees.model import DynamicFeeModel

logger = logging.getLogger(__name__)

HOOK_ADDRESS = "0x00000000000000000000000000000000000a4b1c"


@dataclass(frozen=True)
class PoolConfigured:
    """Emitted once when a pool is linked to its reference pool."""
    pool_id: str
    reference_pool_id: str
    quote_asset: int
    caller: str


class ArbitrageFeeHook(PoolHooks):
    """Dynamic fee plus self-arbitrage for every pool that registers it.

    Pools must be created with the dynamic-fee flag and configured by
    their creator before they can trade.
    """

    def __init__(
        self,
        engine: PriceCurveEngine,
        owner: str,
        settings: HookSettings = DEFAULT_HOOK_SETTINGS,
        address: str = HOOK_ADDRESS,
    ):
        self._check_address(owner)
        self.engine = engine
        self.owner = owner
        self.settings = settings
        self.address = address

        self.registry = PoolRegistry()
        self._reference_keys: dict[str, PoolKey] = {}
        self.tracker = PoolMetricsTracker()
        self.fee_model = DynamicFeeModel(FeeComposer(settings.max_fee, settings.fee_divisor))
        self.solver = ArbEquilibriumSolver()
        self.refinement = ArbRefinementLoop(engine, self.solver, settings.refinement_rounds)
        self.gate = ArbProfitabilityGate(settings.gas_price)
        self.executor = ArbExecutor(engine, recipient=address)
        self.guard = ReentrancyGuard()

        self._listeners: list[Callable[[PoolConfigured], None]] = []
        self.last_execution: Optional[ArbExecution] = None

    # ------------------------------------------------------------------
    # Engine callbacks
    # ------------------------------------------------------------------

    def before_initialize(self, sender: str, key: PoolKey, price: Decimal) -> None:
        if not key.dynamic_fee:
            raise ConfigurationError("pool must enable the dynamic fee flag", pool_id=key.pool_id)

    def after_initialize(self, sender: str, key: PoolKey, price: Decimal) -> None:
        self.registry.register(
            PoolState(
                pool_id=key.pool_id,
                creator=sender,
                owner=sender,
                min_fee=self.settings.default_min_fee,
                decimals_delta=key.decimals_delta,
            )
        )
        logger.debug("Registered pool %s created by %s", key.pool_id, sender)

    def after_modify_liquidity(self, sender: str, key: PoolKey, delta: BalanceDelta) -> None:
        self.tracker.record_liquidity(self.registry.get(key.pool_id), delta)

    def before_swap(self, sender: str, key: PoolKey, params: SwapParams) -> Optional[Decimal]:
        state = self._configured_state(key.pool_id)
        raw_price = self.engine.get_price(key.pool_id)
        self.tracker.record_price_before(state, raw_price)
        return self.fee_model.fee_for(state, params.zero_for_one, params.amount_in, raw_price)

    def after_swap(
        self, sender: str, key: PoolKey, params: SwapParams, delta: BalanceDelta
    ) -> None:
        state = self._configured_state(key.pool_id)
        self.tracker.record_trade(
            state, params.zero_for_one, delta, self.engine.get_price(key.pool_id)
        )
        with self.guard.enter() as entered:
            if not entered or params.simulated:
                return
            try:
                with self.engine.transaction():
                    self._arbitrage(state, key)
            except ProfitInvariantViolation:
                raise
            except (ArbHookError, ValueError) as e:
                # The opportunity is forfeited; the triggering trade stands
                logger.debug("Arbitrage on %s aborted: %s", state.pool_id[:10], e)

    def snapshot(self) -> Any:
        return self.registry.snapshot(), self.last_execution

    def restore(self, snapshot: Any) -> None:
        states, self.last_execution = snapshot
        self.registry.restore(states)

    # ------------------------------------------------------------------
    # Arbitrage pipeline
    # ------------------------------------------------------------------

    def _arbitrage(self, state: PoolState, key: PoolKey) -> Optional[ArbExecution]:
        if not state.illiquidity_defined:
            return None
        reference_key = self._reference_keys[state.pool_id]
        pool_price = state.quote_price(self.engine.get_price(key.pool_id))
        reference_price = state.quote_price(self.engine.get_price(reference_key.pool_id))

        direction = self.solver.direction_for(pool_price, reference_price)
        if direction is None:
            return None

        quote = self.refinement.run(state, key, reference_key, direction)
        if quote is None:
            logger.debug("No profitable candidate for pool %s", state.pool_id)
            return None
        if quote.convergence:
            state.last_convergence = quote.convergence[-1]

        zero_for_one = state.zero_for_one_for(direction)
        final_price = state.human_price(state.raw_price(quote.pool_price))
        net_profit = self.gate.approve(
            quote,
            abs(pool_price - reference_price),
            zero_for_one,
            final_price,
            state.decimals_delta,
        )
        if net_profit is None:
            return None

        execution = self.executor.execute(state, key, reference_key, quote)
        if execution is None:
            return None

        self.tracker.record_reference_trade(
            state,
            reference_price,
            state.quote_price(execution.reference_price),
            state.quote_volume(execution.leg_b),
        )
        self.tracker.record_arbitrage(state, execution.profit0, execution.profit1)
        if self.settings.donate_profit:
            self._donate(state, key, execution)

        logger.info(
            "Arbitrage on %s: %s in, profit (%s, %s), prices %s / %s",
            state.pool_id[:10],
            execution.amount_in,
            execution.profit0,
            execution.profit1,
            execution.pool_price,
            execution.reference_price,
        )
        self.last_execution = execution
        return execution

    def _donate(self, state: PoolState, key: PoolKey, execution: ArbExecution) -> None:
        """Hand the positive side of the captured profit to the pool's LPs."""
        amount0 = max(execution.profit0, Decimal("0"))
        amount1 = max(execution.profit1, Decimal("0"))
        if amount0 == 0 and amount1 == 0:
            return
        delta = self.engine.donate(key, amount0, amount1)
        if amount0 > 0:
            self.engine.settle(key.currency0, amount0, payer=self.address)
        if amount1 > 0:
            self.engine.settle(key.currency1, amount1, payer=self.address)
        self.tracker.record_liquidity(state, -delta)

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def subscribe(self, listener: Callable[[PoolConfigured], None]) -> None:
        self._listeners.append(listener)

    def pool_state(self, pool_id: str) -> PoolState:
        return self.registry.get(pool_id)

    def configure_pool(
        self,
        pool_id: str,
        quote_asset: int,
        primary_key: PoolKey,
        reference_key: PoolKey,
        caller: str,
    ) -> None:
        """Link a pool to its reference pool. Creator only, exactly once."""
        state = self.registry.get(pool_id)
        if caller != state.creator:
            raise AuthorizationError("only the pool creator can configure it", caller=caller)
        if state.configured:
            raise ConfigurationError("pool already configured", pool_id=pool_id)
        if quote_asset not in (0, 1):
            raise ValidationError(f"quote_asset must be 0 or 1, got {quote_asset}")
        if primary_key.pool_id != pool_id:
            raise ConfigurationError("primary key does not identify this pool", pool_id=pool_id)
        if not primary_key.same_pair(reference_key):
            raise ConfigurationError(
                "reference pool trades a different pair",
                pool_id=pool_id,
                details={"reference_pool_id": reference_key.pool_id},
            )
        if reference_key.pool_id == pool_id:
            raise ConfigurationError("a pool cannot be its own reference", pool_id=pool_id)
        if reference_key.pool_id in self.registry and not self.registry.get(reference_key.pool_id).configured:
            raise ConfigurationError(
                "reference pool is managed by this hook but not configured",
                pool_id=pool_id,
                details={"reference_pool_id": reference_key.pool_id},
            )
        try:
            self.engine.get_liquidity(reference_key.pool_id)
        except ValueError as e:
            raise ConfigurationError(
                f"reference pool is not initialized: {e}", pool_id=pool_id
            ) from e

        state.quote_asset = quote_asset
        state.reference_pool_id = reference_key.pool_id
        state.configured = True
        self._reference_keys[pool_id] = reference_key

        event = PoolConfigured(pool_id, reference_key.pool_id, quote_asset, caller)
        for listener in self._listeners:
            listener(event)
        logger.info(
            "Pool %s configured against %s (quote asset %d)",
            pool_id[:10], reference_key.pool_id[:10], quote_asset,
        )

    def update_min_fee(self, pool_id: str, new_min_fee: Decimal, caller: str) -> None:
        state = self.registry.get(pool_id)
        if caller != state.owner:
            raise AuthorizationError("only the pool owner can change the fee", caller=caller)
        if not (0 <= new_min_fee <= self.settings.max_fee):
            raise ValidationError(
                f"min fee must be in [0, {self.settings.max_fee}], got {new_min_fee}"
            )
        state.min_fee = new_min_fee
        logger.info("Pool %s min fee set to %s", pool_id[:10], new_min_fee)

    def transfer_pool_owner(self, pool_id: str, new_owner: str, caller: str) -> None:
        state = self.registry.get(pool_id)
        if caller != state.owner:
            raise AuthorizationError("only the pool owner can transfer it", caller=caller)
        self._check_address(new_owner)
        state.owner = new_owner
        logger.info("Pool %s ownership moved to %s", pool_id[:10], new_owner)

    def transfer_owner(self, new_owner: str, caller: str) -> None:
        if caller != self.owner:
            raise AuthorizationError("only the hook owner can transfer it", caller=caller)
        self._check_address(new_owner)
        self.owner = new_owner
        logger.info("Hook ownership moved to %s", new_owner)

    # ------------------------------------------------------------------

    def _configured_state(self, pool_id: str) -> PoolState:
        state = self.registry.get(pool_id)
        if not state.configured:
            raise ConfigurationError("pool is not configured", pool_id=pool_id)
        return state

    @staticmethod
    def _check_address(address: str) -> None:
        if not address or address == ZERO_ADDRESS:
            raise ValidationError(f"invalid owner address: {address!r}")
