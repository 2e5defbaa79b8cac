"""Shared configuration for the hook and the market simulation."""

from dataclasses import dataclass, replace
from decimal import Decimal
import os
from typing import Mapping, Optional

from arb_fee_hook.arb.refinement import DEFAULT_ROUNDS


@dataclass(frozen=True)
class HookSettings:
    max_fee: Decimal
    default_min_fee: Decimal
    refinement_rounds: int
    gas_price: Decimal      # native asset (currency0) per gas unit
    fee_divisor: Decimal
    donate_profit: bool

    def __post_init__(self) -> None:
        if not (0 <= self.max_fee < 1):
            raise ValueError(f"max_fee must be in [0, 1), got {self.max_fee}")
        if not (0 <= self.default_min_fee <= self.max_fee):
            raise ValueError(
                f"default_min_fee must be in [0, {self.max_fee}], got {self.default_min_fee}"
            )
        if self.refinement_rounds < 1:
            raise ValueError(f"refinement_rounds must be >= 1, got {self.refinement_rounds}")
        if self.gas_price < 0:
            raise ValueError(f"gas_price must be >= 0, got {self.gas_price}")
        if self.fee_divisor <= 0:
            raise ValueError(f"fee_divisor must be > 0, got {self.fee_divisor}")


DEFAULT_HOOK_SETTINGS = HookSettings(
    max_fee=Decimal("0.1"),
    default_min_fee=Decimal("0.003"),
    refinement_rounds=DEFAULT_ROUNDS,
    gas_price=Decimal("0.000000002"),
    fee_divisor=Decimal("1"),
    donate_profit=True,
)


@dataclass(frozen=True)
class SimulationSettings:
    n_steps: int
    initial_price: float
    pool_reserve0: float
    reference_reserve0: float
    min_fee: float
    reference_fee: float
    gbm_mu: float
    gbm_sigma: float
    gbm_dt: float
    retail_arrival_rate: float
    retail_mean_size: float   # quote asset
    retail_size_sigma: float
    retail_buy_prob: float


SIMULATION_SETTINGS = SimulationSettings(
    n_steps=200,
    initial_price=2500.0,
    pool_reserve0=100.0,
    reference_reserve0=1000.0,
    min_fee=0.001,
    reference_fee=0.0005,
    gbm_mu=0.0,
    gbm_sigma=0.001,
    gbm_dt=1.0,
    retail_arrival_rate=0.8,
    retail_mean_size=2000.0,
    retail_size_sigma=1.2,
    retail_buy_prob=0.5,
)


def load_hook_settings(
    base: HookSettings = DEFAULT_HOOK_SETTINGS,
    environ: Optional[Mapping[str, str]] = None,
) -> HookSettings:
    """Apply ARB_HOOK_* environment overrides to ``base``."""
    env = os.environ if environ is None else environ
    overrides: dict = {}
    if "ARB_HOOK_REFINEMENT_ROUNDS" in env:
        overrides["refinement_rounds"] = int(env["ARB_HOOK_REFINEMENT_ROUNDS"])
    if "ARB_HOOK_GAS_PRICE" in env:
        overrides["gas_price"] = Decimal(env["ARB_HOOK_GAS_PRICE"])
    if "ARB_HOOK_MAX_FEE" in env:
        overrides["max_fee"] = Decimal(env["ARB_HOOK_MAX_FEE"])
    return replace(base, **overrides) if overrides else base
