"""Tests for pool registration and the administrative surface of the hook."""

import logging
from decimal import Decimal

import pytest

from arb_fee_hook.core.errors import AuthorizationError, ConfigurationError, ValidationError
from arb_fee_hook.core.trade import ZERO_ADDRESS, PoolKey
from arb_fee_hook.hook import ArbitrageFeeHook, PoolConfigured
from arb_fee_hook.simulation.runner import DAI, WETH
from tests.fixtures.pools import MIN_FEE, OWNER, STRANGER, TRADER, USDC, hooked_key


class TestRegistration:
    """Pools register themselves through the initialize callbacks."""

    def test_pool_without_dynamic_fee_is_rejected(self, engine, hook):
        key = hooked_key(hook, dynamic_fee=False)
        with pytest.raises(ConfigurationError):
            engine.initialize(key, Decimal("100"), Decimal("250000"), sender=OWNER)
        with pytest.raises(ValueError):
            engine.get_price(key.pool_id)

    def test_initialize_registers_state(self, hook, pools):
        pool, _ = pools
        state = hook.pool_state(pool.pool_id)
        assert state.creator == OWNER
        assert state.owner == OWNER
        assert state.min_fee == hook.settings.default_min_fee
        assert state.configured is False
        assert state.inventory.amount0 == Decimal("100")
        assert state.inventory.amount1 == Decimal("250000")

    def test_unconfigured_pool_cannot_trade(self, engine, hook, pools):
        pool, _ = pools
        with pytest.raises(ConfigurationError):
            engine.swap(pool, True, Decimal("1"), sender=TRADER)
        assert engine.get_reserves(pool.pool_id) == (Decimal("100"), Decimal("250000"))

    def test_owner_must_be_valid(self, engine):
        with pytest.raises(ValidationError):
            ArbitrageFeeHook(engine, owner=ZERO_ADDRESS)


class TestConfigurePool:
    """Creator-only, exactly-once linking to a reference pool."""

    def test_configure_links_reference(self, hook, pools):
        pool, ref = pools
        hook.configure_pool(pool.pool_id, 1, pool, ref, caller=OWNER)
        state = hook.pool_state(pool.pool_id)
        assert state.configured
        assert state.reference_pool_id == ref.pool_id
        assert state.quote_asset == 1

    def test_only_creator(self, hook, pools):
        pool, ref = pools
        with pytest.raises(AuthorizationError) as exc_info:
            hook.configure_pool(pool.pool_id, 1, pool, ref, caller=STRANGER)
        assert exc_info.value.caller == STRANGER

    def test_only_once(self, hook, pools):
        pool, ref = pools
        hook.configure_pool(pool.pool_id, 1, pool, ref, caller=OWNER)
        with pytest.raises(ConfigurationError):
            hook.configure_pool(pool.pool_id, 1, pool, ref, caller=OWNER)

    def test_pair_mismatch(self, engine, hook, pools):
        pool, _ = pools
        other = PoolKey(WETH, USDC, fee=Decimal("0.0005"))
        engine.initialize(other, Decimal("1000"), Decimal("2500000"), sender=OWNER)
        with pytest.raises(ConfigurationError):
            hook.configure_pool(pool.pool_id, 1, pool, other, caller=OWNER)

    def test_pool_cannot_reference_itself(self, hook, pools):
        pool, _ = pools
        with pytest.raises(ConfigurationError):
            hook.configure_pool(pool.pool_id, 1, pool, pool, caller=OWNER)

    def test_reference_must_exist(self, hook, pools):
        pool, _ = pools
        missing = PoolKey(WETH, DAI, fee=Decimal("0.01"))
        with pytest.raises(ConfigurationError):
            hook.configure_pool(pool.pool_id, 1, pool, missing, caller=OWNER)

    def test_unconfigured_sibling_cannot_be_reference(self, engine, hook, pools):
        """A pool on this hook that cannot trade yet would break every arbitrage."""
        pool, _ = pools
        sibling = hooked_key(hook, fee=Decimal("0.003"))
        engine.initialize(sibling, Decimal("1000"), Decimal("2500000"), sender=OWNER)

        with pytest.raises(ConfigurationError):
            hook.configure_pool(pool.pool_id, 1, pool, sibling, caller=OWNER)
        assert not hook.pool_state(pool.pool_id).configured

    def test_configured_sibling_can_be_reference(self, engine, hook, pools):
        pool, ref = pools
        sibling = hooked_key(hook, fee=Decimal("0.003"))
        engine.initialize(sibling, Decimal("1000"), Decimal("2500000"), sender=OWNER)
        hook.configure_pool(sibling.pool_id, 1, sibling, ref, caller=OWNER)

        hook.configure_pool(pool.pool_id, 1, pool, sibling, caller=OWNER)
        assert hook.pool_state(pool.pool_id).reference_pool_id == sibling.pool_id

    def test_primary_key_must_match_pool(self, hook, pools):
        pool, ref = pools
        with pytest.raises(ConfigurationError):
            hook.configure_pool(pool.pool_id, 1, ref, ref, caller=OWNER)

    def test_quote_asset_validated(self, hook, pools):
        pool, ref = pools
        with pytest.raises(ValidationError):
            hook.configure_pool(pool.pool_id, 2, pool, ref, caller=OWNER)
        assert not hook.pool_state(pool.pool_id).configured

    def test_unknown_pool(self, hook, pools):
        _, ref = pools
        with pytest.raises(ConfigurationError):
            hook.configure_pool("0xmissing", 1, ref, ref, caller=OWNER)

    def test_subscribers_notified_and_logged(self, hook, pools, caplog):
        pool, ref = pools
        events = []
        hook.subscribe(events.append)
        with caplog.at_level(logging.INFO, logger="arb_fee_hook.hook"):
            hook.configure_pool(pool.pool_id, 1, pool, ref, caller=OWNER)

        assert events == [PoolConfigured(pool.pool_id, ref.pool_id, 1, OWNER)]
        assert any("configured" in record.getMessage() for record in caplog.records)


class TestOwnership:
    """Minimum fee and ownership changes."""

    def test_update_min_fee(self, hook, pools):
        pool, _ = pools
        hook.update_min_fee(pool.pool_id, MIN_FEE, caller=OWNER)
        assert hook.pool_state(pool.pool_id).min_fee == MIN_FEE

    def test_update_min_fee_bounds(self, hook, pools):
        pool, _ = pools
        with pytest.raises(ValidationError):
            hook.update_min_fee(pool.pool_id, hook.settings.max_fee + Decimal("0.0001"), caller=OWNER)
        with pytest.raises(ValidationError):
            hook.update_min_fee(pool.pool_id, Decimal("-0.001"), caller=OWNER)
        hook.update_min_fee(pool.pool_id, hook.settings.max_fee, caller=OWNER)

    def test_update_min_fee_owner_only(self, hook, pools):
        pool, _ = pools
        with pytest.raises(AuthorizationError):
            hook.update_min_fee(pool.pool_id, MIN_FEE, caller=STRANGER)

    def test_transfer_pool_owner(self, hook, pools):
        pool, _ = pools
        hook.transfer_pool_owner(pool.pool_id, STRANGER, caller=OWNER)
        hook.update_min_fee(pool.pool_id, MIN_FEE, caller=STRANGER)
        with pytest.raises(AuthorizationError):
            hook.update_min_fee(pool.pool_id, MIN_FEE, caller=OWNER)
        # Creator rights stay with the creator
        assert hook.pool_state(pool.pool_id).creator == OWNER

    @pytest.mark.parametrize("target", ["", ZERO_ADDRESS])
    def test_transfer_pool_owner_rejects_invalid_target(self, hook, pools, target):
        pool, _ = pools
        with pytest.raises(ValidationError):
            hook.transfer_pool_owner(pool.pool_id, target, caller=OWNER)

    def test_transfer_pool_owner_owner_only(self, hook, pools):
        pool, _ = pools
        with pytest.raises(AuthorizationError):
            hook.transfer_pool_owner(pool.pool_id, STRANGER, caller=STRANGER)

    def test_transfer_owner(self, hook):
        hook.transfer_owner(STRANGER, caller=OWNER)
        assert hook.owner == STRANGER
        with pytest.raises(AuthorizationError):
            hook.transfer_owner(OWNER, caller=OWNER)

    @pytest.mark.parametrize("target", ["", ZERO_ADDRESS])
    def test_transfer_owner_rejects_invalid_target(self, hook, target):
        with pytest.raises(ValidationError):
            hook.transfer_owner(target, caller=OWNER)
