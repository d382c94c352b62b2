"""Event sinks that collect engine events for telemetry and replay.

The orchestrator forwards every event to its listeners; a journal is simply a
listener that remembers a bounded window of them.
"""

from __future__ import annotations

from collections import deque
from typing import Protocol

from urban_balance.shared.events import EventType, GameEvent  # noqa: TC001


class EventSink(Protocol):
    """Protocol describing how emitted events are collected."""

    def record(self, event: GameEvent) -> None:
        """Store *event*."""

    def history(self) -> tuple[GameEvent, ...]:
        """Return the stored events, oldest first."""


class InMemoryEventJournal:
    """Bounded in-memory implementation of :class:`EventSink`."""

    def __init__(self, max_events: int = 100) -> None:
        if max_events < 1:
            msg = "Journal capacity must be positive."
            raise ValueError(msg)
        self._events: deque[GameEvent] = deque(maxlen=max_events)

    def __call__(self, event: GameEvent) -> None:
        self.record(event)

    def record(self, event: GameEvent) -> None:
        self._events.append(event)

    def history(self) -> tuple[GameEvent, ...]:
        return tuple(self._events)

    def of_type(self, event_type: EventType) -> tuple[GameEvent, ...]:
        """Return stored events of a single type."""
        return tuple(event for event in self._events if event.event_type is event_type)

    def clear(self) -> None:
        self._events.clear()


__all__ = ["EventSink", "InMemoryEventJournal"]
