"""Tests for the in-memory event journal."""

import pytest

from urban_balance.game_logic.journal import InMemoryEventJournal
from urban_balance.shared.events import ErrorCode, EventType, GameEvent


def test_journal_keeps_a_bounded_window() -> None:
    journal = InMemoryEventJournal(max_events=2)

    journal(GameEvent(event_type=EventType.GAME_STARTED))
    journal(GameEvent(event_type=EventType.TURN_STARTED, player_id="alice", floor=1))
    journal.record(
        GameEvent(event_type=EventType.ERROR, code=ErrorCode.NOT_YOUR_TURN)
    )

    history = journal.history()
    assert [event.event_type for event in history] == [
        EventType.TURN_STARTED,
        EventType.ERROR,
    ]
    assert len(journal.of_type(EventType.ERROR)) == 1

    journal.clear()
    assert journal.history() == ()


def test_journal_requires_positive_capacity() -> None:
    with pytest.raises(ValueError, match="positive"):
        InMemoryEventJournal(max_events=0)


def test_only_error_events_carry_error_metadata() -> None:
    with pytest.raises(ValueError, match="error code"):
        GameEvent(event_type=EventType.ERROR)
    with pytest.raises(ValueError, match="error metadata"):
        GameEvent(event_type=EventType.GAME_RESET, fatal=True)
