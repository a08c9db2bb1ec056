"""Tests for the LiquidityPool facade."""

import random

import pytest

from cpamm.config import FirstDepositPolicy, PoolConfig, RatioPolicy
from cpamm.errors import PoolErrorKind
from cpamm.events import EventKind, EventLog
from cpamm.gateway import POOL_CUSTODY, LedgerTransferGateway
from cpamm.pool import LiquidityPool
from cpamm.state import Asset, PoolStatus
from tests.conftest import (
    ALICE,
    BOB,
    CAROL,
    FUNDED_BALANCE,
    MockGateway,
    MockGatewayConfig,
    make_ledgers,
)


class TestConcreteScenarios:
    """Deposit, swap, then partial withdrawal from a 1000/1000 pool."""

    def test_scenario_a_deposit_then_swap(self, pool):
        added = pool.add_liquidity(ALICE, 1000, 1000)
        assert added.is_ok
        assert added.shares == 1000
        assert pool.get_total_shares() == 1000

        swapped = pool.swap_a_for_b(BOB, 100)
        assert swapped.is_ok
        assert swapped.amount_out == 90
        assert pool.get_reserves() == (1100, 910)

    def test_scenario_b_partial_withdrawal(self, seeded_pool):
        seeded_pool.swap_a_for_b(BOB, 100)

        removed = seeded_pool.remove_liquidity(ALICE, 500)

        assert removed.is_ok
        assert (removed.amount_a, removed.amount_b) == (550, 455)
        assert seeded_pool.get_shares_of(ALICE) == 500
        assert seeded_pool.get_total_shares() == 500
        assert seeded_pool.get_reserves() == (550, 455)


class TestAddLiquidity:
    def test_first_deposit_initializes(self, pool):
        assert pool.status is PoolStatus.UNINITIALIZED

        result = pool.add_liquidity(ALICE, 300, 700)

        assert result.is_ok
        assert pool.status is PoolStatus.ACTIVE
        assert pool.get_reserves() == (300, 700)
        assert pool.get_total_shares() == 300
        assert pool.get_shares_of(ALICE) == 300

    def test_moves_custody(self, pool, ledgers):
        pool.add_liquidity(ALICE, 300, 700)
        assert ledgers[Asset.A].balance_of(ALICE) == FUNDED_BALANCE - 300
        assert ledgers[Asset.B].balance_of(ALICE) == FUNDED_BALANCE - 700
        assert ledgers[Asset.A].balance_of(POOL_CUSTODY) == 300
        assert ledgers[Asset.B].balance_of(POOL_CUSTODY) == 700

    def test_second_provider(self, seeded_pool):
        result = seeded_pool.add_liquidity(BOB, 500, 500)
        assert result.shares == 500
        assert seeded_pool.get_total_shares() == 1500
        assert seeded_pool.get_shares_of(BOB) == 500

    @pytest.mark.parametrize("amount_a,amount_b", [(0, 10), (10, 0), (-10, 10)])
    def test_invalid_amount(self, pool, amount_a, amount_b):
        result = pool.add_liquidity(ALICE, amount_a, amount_b)
        assert result.error is PoolErrorKind.INVALID_AMOUNT
        assert pool.status is PoolStatus.UNINITIALIZED

    def test_strict_ratio_policy(self, gateway):
        pool = LiquidityPool(gateway, config=PoolConfig(ratio_policy=RatioPolicy.STRICT))
        pool.add_liquidity(ALICE, 1000, 2000)

        rejected = pool.add_liquidity(BOB, 100, 100)
        accepted = pool.add_liquidity(BOB, 100, 200)

        assert rejected.error is PoolErrorKind.INVALID_AMOUNT
        assert accepted.is_ok
        assert accepted.shares == 100

    def test_geometric_mean_policy(self, gateway):
        pool = LiquidityPool(
            gateway, config=PoolConfig(first_deposit_policy=FirstDepositPolicy.GEOMETRIC_MEAN)
        )
        assert pool.add_liquidity(ALICE, 100, 400).shares == 200

    def test_overflow_is_arithmetic_error(self, gateway):
        pool = LiquidityPool(gateway, config=PoolConfig(balance_max=1500))
        pool.add_liquidity(ALICE, 1000, 1000)

        result = pool.add_liquidity(BOB, 600, 600)

        assert result.error is PoolErrorKind.ARITHMETIC
        assert pool.get_reserves() == (1000, 1000)


class TestRemoveLiquidity:
    def test_round_trip_returns_deposit(self, pool, ledgers):
        added = pool.add_liquidity(ALICE, 1234, 5678)

        removed = pool.remove_liquidity(ALICE, added.shares)

        assert (removed.amount_a, removed.amount_b) == (1234, 5678)
        assert pool.get_shares_of(ALICE) == 0
        assert pool.get_reserves() == (0, 0)
        assert ledgers[Asset.A].balance_of(ALICE) == FUNDED_BALANCE
        assert ledgers[Asset.B].balance_of(ALICE) == FUNDED_BALANCE

    def test_drained_pool_accepts_new_first_deposit(self, seeded_pool):
        seeded_pool.remove_liquidity(ALICE, 1000)
        assert seeded_pool.status is PoolStatus.ACTIVE
        assert seeded_pool.get_total_shares() == 0

        result = seeded_pool.add_liquidity(BOB, 50, 80)

        assert result.shares == 50
        assert seeded_pool.get_reserves() == (50, 80)

    def test_insufficient_shares(self, seeded_pool):
        result = seeded_pool.remove_liquidity(ALICE, 1001)
        assert result.error is PoolErrorKind.INSUFFICIENT_SHARES
        assert seeded_pool.get_shares_of(ALICE) == 1000

    def test_other_providers_shares_not_usable(self, seeded_pool):
        result = seeded_pool.remove_liquidity(BOB, 1)
        assert result.error is PoolErrorKind.INSUFFICIENT_SHARES

    def test_remainder_stays_with_holders(self, seeded_pool):
        seeded_pool.add_liquidity(BOB, 1000, 1000)
        seeded_pool.swap_a_for_b(CAROL, 333)
        reserves_before = seeded_pool.get_reserves()

        removed = seeded_pool.remove_liquidity(BOB, 1)

        # Floor rounding never pays out more than the exact share
        assert removed.amount_a * 2000 <= reserves_before[0]
        assert removed.amount_b * 2000 <= reserves_before[1]


class TestSwap:
    def test_b_for_a(self, seeded_pool, ledgers):
        result = seeded_pool.swap_b_for_a(BOB, 100)
        assert result.amount_out == 90
        assert seeded_pool.get_reserves() == (910, 1100)
        assert ledgers[Asset.A].balance_of(BOB) == FUNDED_BALANCE + 90
        assert ledgers[Asset.B].balance_of(BOB) == FUNDED_BALANCE - 100

    def test_uninitialized_pool(self, pool):
        result = pool.swap(BOB, Asset.A, 100)
        assert result.error is PoolErrorKind.ARITHMETIC

    def test_zero_amount(self, seeded_pool):
        assert seeded_pool.swap(BOB, Asset.A, 0).error is PoolErrorKind.INVALID_AMOUNT

    def test_product_never_decreases(self, seeded_pool):
        rng = random.Random(5)
        for _ in range(200):
            k_before = seeded_pool.get_reserves()[0] * seeded_pool.get_reserves()[1]
            seeded_pool.swap(BOB, rng.choice(list(Asset)), rng.randint(1, 2000))
            reserve_a, reserve_b = seeded_pool.get_reserves()
            assert reserve_a * reserve_b >= k_before
            seeded_pool.snapshot().check_invariants()

    def test_quote_does_not_mutate(self, seeded_pool):
        quoted = seeded_pool.quote(Asset.A, 100)
        assert quoted.amount_out == 90
        assert seeded_pool.get_reserves() == (1000, 1000)

    def test_quote_matches_swap(self, seeded_pool):
        quoted = seeded_pool.quote(Asset.B, 250)
        executed = seeded_pool.swap(BOB, Asset.B, 250)
        assert quoted.amount_out == executed.amount_out


class TestAtomicity:
    """A declined transfer leaves pool and balances exactly as they were."""

    def test_second_pull_fails_refunds_first(self):
        ledgers = make_ledgers(ALICE)
        # alice cannot afford the B leg
        ledgers[Asset.B].transfer(ALICE, BOB, FUNDED_BALANCE)
        pool = LiquidityPool(LedgerTransferGateway(ledgers))

        result = pool.add_liquidity(ALICE, 1000, 1000)

        assert result.error is PoolErrorKind.TRANSFER_FAILED
        assert pool.status is PoolStatus.UNINITIALIZED
        assert pool.get_reserves() == (0, 0)
        assert ledgers[Asset.A].balance_of(ALICE) == FUNDED_BALANCE
        assert ledgers[Asset.A].balance_of(POOL_CUSTODY) == 0

    def test_failed_swap_pull(self, seeded_pool, ledgers):
        ledgers[Asset.A].transfer(BOB, CAROL, FUNDED_BALANCE)

        result = seeded_pool.swap_a_for_b(BOB, 100)

        assert result.error is PoolErrorKind.TRANSFER_FAILED
        assert seeded_pool.get_reserves() == (1000, 1000)
        assert ledgers[Asset.B].balance_of(BOB) == FUNDED_BALANCE

    def test_failed_swap_push_returns_input(self):
        gateway = MockGateway()
        pool = LiquidityPool(gateway)
        pool.add_liquidity(ALICE, 1000, 1000)
        # calls 1 and 2 were the deposit; decline the payout leg of the swap
        gateway.config.fail_on_call = 4

        result = pool.swap_a_for_b(BOB, 100)

        assert result.error is PoolErrorKind.TRANSFER_FAILED
        assert pool.get_reserves() == (1000, 1000)
        # pull A, declined push B, compensating push A
        assert gateway.calls[2:] == [
            ("pull", BOB, Asset.A, 100),
            ("push", BOB, Asset.B, 90),
            ("push", BOB, Asset.A, 100),
        ]

    def test_failed_rollback_still_reports_transfer_failure(self):
        gateway = MockGateway()
        pool = LiquidityPool(gateway)
        pool.add_liquidity(ALICE, 1000, 1000)
        gateway.config.fail_pushes = True

        result = pool.swap_a_for_b(BOB, 100)

        assert result.error is PoolErrorKind.TRANSFER_FAILED
        assert pool.get_reserves() == (1000, 1000)

    def test_failed_second_push_on_withdrawal(self):
        gateway = MockGateway()
        pool = LiquidityPool(gateway)
        pool.add_liquidity(ALICE, 1000, 1000)
        gateway.calls.clear()
        gateway.config.fail_on_call = 2

        result = pool.remove_liquidity(ALICE, 400)

        assert result.error is PoolErrorKind.TRANSFER_FAILED
        assert pool.get_shares_of(ALICE) == 1000
        assert pool.get_reserves() == (1000, 1000)
        assert gateway.calls == [
            ("push", ALICE, Asset.A, 400),
            ("push", ALICE, Asset.B, 400),
            ("pull", ALICE, Asset.A, 400),
        ]

    def test_validation_failure_makes_no_transfer(self):
        gateway = MockGateway(MockGatewayConfig())
        pool = LiquidityPool(gateway)
        pool.add_liquidity(ALICE, 0, 10)
        pool.remove_liquidity(ALICE, 5)
        assert gateway.calls == []


class TestEvents:
    def test_empty_event_log_is_used(self):
        """A fresh EventLog passed to the constructor receives the events."""
        log = EventLog()
        pool = LiquidityPool(MockGateway(), events=log)

        pool.add_liquidity(ALICE, 1000, 1000)

        assert len(log) == 1
        assert log.events[0].kind is EventKind.LIQUIDITY_ADDED
        assert log.events[0].participant == ALICE

    def test_custom_sink_receives_every_operation(self):
        log = EventLog()
        pool = LiquidityPool(MockGateway(), events=log)

        pool.add_liquidity(ALICE, 1000, 1000)
        pool.swap_b_for_a(BOB, 100)
        pool.remove_liquidity(ALICE, 10)

        assert [event.kind for event in log.events] == [
            EventKind.LIQUIDITY_ADDED,
            EventKind.SWAPPED,
            EventKind.LIQUIDITY_REMOVED,
        ]
        assert log.events[1].amounts == {"b_in": 100, "a_out": 90}

    def test_events_recorded_in_order(self, seeded_pool, event_log):
        seeded_pool.swap_a_for_b(BOB, 100)
        seeded_pool.remove_liquidity(ALICE, 500)

        kinds = [event.kind for event in event_log.events]
        assert kinds == [EventKind.LIQUIDITY_ADDED, EventKind.SWAPPED, EventKind.LIQUIDITY_REMOVED]
        assert event_log.events[1].participant == BOB
        assert event_log.events[1].amounts == {"a_in": 100, "b_out": 90}
        assert event_log.events[2].amounts == {"amount_a": 550, "amount_b": 455, "shares": 500}

    def test_failed_operation_records_nothing(self, seeded_pool, event_log):
        seeded_pool.remove_liquidity(BOB, 10)
        seeded_pool.swap(BOB, Asset.A, 0)
        assert len(event_log) == 1

    def test_default_sink(self, gateway):
        pool = LiquidityPool(gateway)
        assert pool.add_liquidity(ALICE, 10, 10).is_ok


class TestSnapshot:
    def test_snapshot_is_a_copy(self, seeded_pool):
        snapshot = seeded_pool.snapshot()
        snapshot.reserve_a = 0
        snapshot.positions.clear()
        assert seeded_pool.get_reserves() == (1000, 1000)
        assert seeded_pool.get_shares_of(ALICE) == 1000

    def test_event_log_by_kind(self, seeded_pool, event_log):
        seeded_pool.swap_a_for_b(BOB, 10)
        assert len(event_log.by_kind(EventKind.SWAPPED)) == 1
        assert isinstance(event_log, EventLog)
