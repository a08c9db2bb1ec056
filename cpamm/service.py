"""In-process pool service: one pool, its asset ledgers and a call lock."""

from __future__ import annotations

import os
import threading
from collections.abc import Callable
from typing import TypeVar

import structlog

from cpamm.config import FirstDepositPolicy, PoolConfig, RatioPolicy
from cpamm.events import EventKind, EventLog, LoggingEventSink
from cpamm.gateway import LedgerTransferGateway
from cpamm.ledger import TokenLedger
from cpamm.pool import LiquidityPool
from cpamm.state import Asset

logger = structlog.get_logger()

T = TypeVar("T")


class FanOutEventSink:
    """Forward each event to an in-memory log and to structlog."""

    def __init__(self, log: EventLog) -> None:
        self.log = log
        self._logging = LoggingEventSink()

    def record(self, kind: EventKind, participant: str, amounts: dict[str, int]) -> None:
        self.log.record(kind, participant, amounts)
        self._logging.record(kind, participant, amounts)


class PoolService:
    """A LiquidityPool together with the ledgers that custody its assets.

    Pool and ledger calls are serialized through a single lock, so one
    operation runs to completion before the next starts even when the
    caller is multi-threaded (e.g. FastAPI's sync endpoint thread pool).
    """

    def __init__(
        self,
        ledgers: dict[Asset, TokenLedger],
        config: PoolConfig | None = None,
    ) -> None:
        self.ledgers = ledgers
        self.gateway = LedgerTransferGateway(ledgers)
        self.event_log = EventLog()
        self.pool = LiquidityPool(
            self.gateway,
            events=FanOutEventSink(self.event_log),
            config=config or PoolConfig(),
        )
        self._lock = threading.Lock()

    def run(self, call: Callable[[LiquidityPool], T]) -> T:
        """Run call(pool) with exclusive access to the pool."""
        with self._lock:
            return call(self.pool)

    def run_ledger(self, asset: Asset, call: Callable[[TokenLedger], T]) -> T:
        """Run call(ledger) with exclusive access to the asset's ledger."""
        with self._lock:
            return call(self.ledgers[asset])


def _create_default_service() -> PoolService:
    """Create the default service from environment variables.

    - CPAMM_FIRST_DEPOSIT_POLICY: "min" (default) or "geometric_mean"
    - CPAMM_RATIO_POLICY: "accept" (default) or "strict"
    - CPAMM_INITIAL_SUPPLY: supply credited to each ledger's owner (default: 0)
    """
    config = PoolConfig(
        first_deposit_policy=FirstDepositPolicy(
            os.environ.get("CPAMM_FIRST_DEPOSIT_POLICY", FirstDepositPolicy.MIN.value)
        ),
        ratio_policy=RatioPolicy(os.environ.get("CPAMM_RATIO_POLICY", RatioPolicy.ACCEPT.value)),
    )
    initial_supply = int(os.environ.get("CPAMM_INITIAL_SUPPLY", "0"))
    ledgers = {
        asset: TokenLedger(
            name=f"Asset {asset.value}",
            symbol=asset.value,
            initial_supply=initial_supply,
        )
        for asset in Asset
    }
    logger.info(
        "pool_service_created",
        first_deposit_policy=config.first_deposit_policy.value,
        ratio_policy=config.ratio_policy.value,
        initial_supply=initial_supply,
    )
    return PoolService(ledgers, config)


_default_service: PoolService | None = None


def get_default_service() -> PoolService:
    """Get the process-wide service, creating it on first use."""
    global _default_service
    if _default_service is None:
        _default_service = _create_default_service()
    return _default_service


__all__ = ["FanOutEventSink", "PoolService", "get_default_service"]
