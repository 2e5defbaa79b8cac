"""Test fixtures for the arbitrage fee hook."""

from tests.fixtures.pools import (
    MIN_FEE,
    OWNER,
    PRICE,
    STRANGER,
    TRADER,
    USDC,
    FailingHooks,
    ScriptedEngine,
    hooked_key,
    make_state,
    reference_key,
    seed_pools,
)

__all__ = [
    "MIN_FEE",
    "OWNER",
    "PRICE",
    "STRANGER",
    "TRADER",
    "USDC",
    "FailingHooks",
    "ScriptedEngine",
    "hooked_key",
    "make_state",
    "reference_key",
    "seed_pools",
]
