"""Tests for the in-process pool service."""

import pytest

from cpamm import service as service_module
from cpamm.config import FirstDepositPolicy, RatioPolicy
from cpamm.events import EventKind
from cpamm.service import PoolService, get_default_service
from cpamm.state import Asset
from tests.conftest import ALICE, make_ledgers


class TestPoolService:
    def test_run_records_events(self):
        service = PoolService(make_ledgers(ALICE))

        result = service.run(lambda pool: pool.add_liquidity(ALICE, 10, 20))

        assert result.shares == 10
        assert [event.kind for event in service.event_log.events] == [EventKind.LIQUIDITY_ADDED]
        assert service.gateway.custody_balance(Asset.B) == 20

    def test_run_ledger(self):
        service = PoolService(make_ledgers(ALICE, balance=7))
        assert service.run_ledger(Asset.A, lambda ledger: ledger.balance_of(ALICE)) == 7


class TestDefaultService:
    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("CPAMM_FIRST_DEPOSIT_POLICY", "geometric_mean")
        monkeypatch.setenv("CPAMM_RATIO_POLICY", "strict")
        monkeypatch.setenv("CPAMM_INITIAL_SUPPLY", "500")

        service = service_module._create_default_service()

        assert service.pool.config.first_deposit_policy is FirstDepositPolicy.GEOMETRIC_MEAN
        assert service.pool.config.ratio_policy is RatioPolicy.STRICT
        assert service.ledgers[Asset.A].balance_of("owner") == 500

    def test_defaults(self, monkeypatch):
        for name in ("CPAMM_FIRST_DEPOSIT_POLICY", "CPAMM_RATIO_POLICY", "CPAMM_INITIAL_SUPPLY"):
            monkeypatch.delenv(name, raising=False)

        service = service_module._create_default_service()

        assert service.pool.config.first_deposit_policy is FirstDepositPolicy.MIN
        assert service.pool.config.ratio_policy is RatioPolicy.ACCEPT
        assert service.ledgers[Asset.B].total_supply == 0

    def test_invalid_policy_rejected(self, monkeypatch):
        monkeypatch.setenv("CPAMM_RATIO_POLICY", "sometimes")
        with pytest.raises(ValueError):
            service_module._create_default_service()

    def test_get_default_service_is_lazy_singleton(self, monkeypatch):
        monkeypatch.setattr(service_module, "_default_service", None)
        first = get_default_service()
        assert first is get_default_service()
