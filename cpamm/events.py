"""Event sinks for pool observers.

Recording is fire-and-forget and never affects pool state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, runtime_checkable

import structlog

logger = structlog.get_logger()


class EventKind(str, Enum):
    LIQUIDITY_ADDED = "LiquidityAdded"
    LIQUIDITY_REMOVED = "LiquidityRemoved"
    SWAPPED = "Swapped"


@dataclass(frozen=True)
class PoolEvent:
    """A committed pool operation."""

    kind: EventKind
    participant: str
    amounts: dict[str, int] = field(default_factory=dict)


@runtime_checkable
class EventSink(Protocol):
    def record(self, kind: EventKind, participant: str, amounts: dict[str, int]) -> None: ...


class EventLog:
    """EventSink that keeps every event in memory, in order."""

    def __init__(self) -> None:
        self.events: list[PoolEvent] = []

    def record(self, kind: EventKind, participant: str, amounts: dict[str, int]) -> None:
        self.events.append(PoolEvent(kind=kind, participant=participant, amounts=dict(amounts)))

    def by_kind(self, kind: EventKind) -> list[PoolEvent]:
        return [event for event in self.events if event.kind is kind]

    def __len__(self) -> int:
        return len(self.events)


class LoggingEventSink:
    """EventSink that emits each event as a structlog record."""

    def record(self, kind: EventKind, participant: str, amounts: dict[str, int]) -> None:
        logger.info("pool_event", kind=kind.value, participant=participant, **amounts)


class NullEventSink:
    def record(self, kind: EventKind, participant: str, amounts: dict[str, int]) -> None:
        pass


__all__ = [
    "EventKind",
    "PoolEvent",
    "EventSink",
    "EventLog",
    "LoggingEventSink",
    "NullEventSink",
]
