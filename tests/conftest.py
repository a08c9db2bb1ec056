"""Pytest configuration and fixtures."""

from dataclasses import dataclass, field

import pytest

from cpamm.events import EventLog
from cpamm.gateway import LedgerTransferGateway
from cpamm.ledger import TokenLedger
from cpamm.pool import LiquidityPool
from cpamm.state import Asset

ALICE = "alice"
BOB = "bob"
CAROL = "carol"

# Starting balance of every funded account, per asset
FUNDED_BALANCE = 1_000_000


# =============================================================================
# Mock classes for dependency injection
# =============================================================================


@dataclass
class MockGatewayConfig:
    """Configuration for mock gateway behavior."""

    # Fail the N-th call (1-based, counting pulls and pushes together)
    fail_on_call: int | None = None
    # Fail every pull / every push
    fail_pulls: bool = False
    fail_pushes: bool = False


@dataclass
class MockGateway:
    """TransferGateway that records calls and fails on demand.

    Usage:
        # Always succeed
        gateway = MockGateway()

        # Decline the second transfer of the next operation
        gateway = MockGateway(MockGatewayConfig(fail_on_call=2))
    """

    config: MockGatewayConfig = field(default_factory=MockGatewayConfig)
    calls: list[tuple[str, str, Asset, int]] = field(default_factory=list)

    def pull(self, account: str, asset: Asset, amount: int) -> bool:
        return self._call("pull", account, asset, amount)

    def push(self, account: str, asset: Asset, amount: int) -> bool:
        return self._call("push", account, asset, amount)

    def _call(self, direction: str, account: str, asset: Asset, amount: int) -> bool:
        self.calls.append((direction, account, asset, amount))
        if self.config.fail_on_call is not None and len(self.calls) == self.config.fail_on_call:
            return False
        if direction == "pull" and self.config.fail_pulls:
            return False
        if direction == "push" and self.config.fail_pushes:
            return False
        return True


def make_ledgers(*accounts: str, balance: int = FUNDED_BALANCE) -> dict[Asset, TokenLedger]:
    """Create one ledger per asset with each account funded from the owner."""
    ledgers = {}
    for asset in Asset:
        ledger = TokenLedger(
            name=f"Asset {asset.value}",
            symbol=asset.value,
            initial_supply=balance * max(len(accounts), 1),
        )
        for account in accounts:
            ledger.transfer(ledger.owner, account, balance)
        ledgers[asset] = ledger
    return ledgers


# =============================================================================
# Pytest fixtures
# =============================================================================


@pytest.fixture
def ledgers() -> dict[Asset, TokenLedger]:
    """Ledgers for assets A and B with alice, bob and carol funded."""
    return make_ledgers(ALICE, BOB, CAROL)


@pytest.fixture
def gateway(ledgers: dict[Asset, TokenLedger]) -> LedgerTransferGateway:
    return LedgerTransferGateway(ledgers)


@pytest.fixture
def event_log() -> EventLog:
    return EventLog()


@pytest.fixture
def pool(gateway: LedgerTransferGateway, event_log: EventLog) -> LiquidityPool:
    """An empty pool backed by the funded ledgers."""
    return LiquidityPool(gateway, events=event_log)


@pytest.fixture
def seeded_pool(pool: LiquidityPool) -> LiquidityPool:
    """Pool initialized by alice with 1000 A / 1000 B (1000 shares)."""
    result = pool.add_liquidity(ALICE, 1000, 1000)
    assert result.is_ok
    return pool


@pytest.fixture
def mock_gateway() -> MockGateway:
    return MockGateway()
