"""Pytest configuration and shared fixtures for the arbitrage fee hook tests.

This module provides:
- Pytest markers for test categorization
- Engine, hook and configured-market fixtures
- Decimal assertion helpers
"""

from decimal import Decimal

import pytest

from arb_fee_hook.core.amm import ConstantProductEngine
from arb_fee_hook.hook import ArbitrageFeeHook
from arb_fee_hook.simulation.runner import Market
from arb_fee_hook.simulation.scenarios import scenario_market
from tests.fixtures.pools import OWNER, seed_pools


# ============================================================================
# Pytest Hooks
# ============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "economic: Profitability and price-equalization properties"
    )
    config.addinivalue_line(
        "markers", "edge_case: Degenerate inputs and zero-value guards"
    )
    config.addinivalue_line(
        "markers", "integration: Tests running the full engine and hook together"
    )
    config.addinivalue_line("markers", "slow: Tests taking more than 5 seconds to run")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on location and name."""
    for item in items:
        if "edge_case" in item.nodeid or "degenerate" in item.name:
            item.add_marker(pytest.mark.edge_case)

        if any(keyword in item.nodeid for keyword in ["pipeline", "scenario", "simulation"]):
            item.add_marker(pytest.mark.integration)
            item.add_marker(pytest.mark.economic)


# ============================================================================
# Engine and Hook Fixtures
# ============================================================================


@pytest.fixture
def engine() -> ConstantProductEngine:
    return ConstantProductEngine()


@pytest.fixture
def hook(engine: ConstantProductEngine) -> ArbitrageFeeHook:
    """Hook with default settings, owned by the pool creator."""
    return ArbitrageFeeHook(engine, owner=OWNER)


@pytest.fixture
def pools(engine, hook):
    """Hooked pool and reference pool, initialized but not configured.

    Returns:
        (hooked pool key, reference pool key)
    """
    return seed_pools(engine, hook)


@pytest.fixture
def market() -> Market:
    """Configured scenario market: 100 WETH / 250k DAI against a 10x deeper reference."""
    return scenario_market()


# ============================================================================
# Tolerance Fixtures
# ============================================================================


@pytest.fixture
def decimal_tolerance() -> Decimal:
    """Tolerance for Decimal bookkeeping comparisons.

    Returns:
        Decimal("1e-12")
    """
    return Decimal("1e-12")


# ============================================================================
# Custom Assertions
# ============================================================================


class DecimalAssertions:
    """Assertion helpers with readable failure messages."""

    @staticmethod
    def assert_close(
        actual: Decimal,
        expected: Decimal,
        tolerance: Decimal = Decimal("1e-12"),
        name: str = "value",
    ) -> None:
        diff = abs(actual - expected)
        assert diff <= tolerance, (
            f"{name} mismatch: expected {expected}, got {actual}, "
            f"diff {diff} exceeds tolerance {tolerance}"
        )

    @staticmethod
    def assert_relative(
        actual: Decimal,
        expected: Decimal,
        tolerance: Decimal = Decimal("1e-9"),
        name: str = "value",
    ) -> None:
        if expected == 0:
            assert actual == 0, f"{name}: expected 0, got {actual}"
            return
        relative = abs(actual - expected) / abs(expected)
        assert relative <= tolerance, (
            f"{name} relative diff {relative} exceeds {tolerance}. "
            f"Expected {expected}, got {actual}"
        )


@pytest.fixture
def decimal_assert() -> DecimalAssertions:
    return DecimalAssertions()
