"""Structured events emitted by the engine and forwarded by the orchestrator."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, model_validator
from pydantic.config import ConfigDict


class EventType(StrEnum):
    """Closed set of outbound engine events."""

    GAME_STARTED = "GAME_STARTED"
    TURN_STARTED = "TURN_STARTED"
    PROPOSAL_MADE = "PROPOSAL_MADE"
    COUNTER_MADE = "COUNTER_MADE"
    PROPOSAL_ACCEPTED = "PROPOSAL_ACCEPTED"
    PROPOSAL_PASSED = "PROPOSAL_PASSED"
    FLOOR_FINALIZED = "FLOOR_FINALIZED"
    CARD_DRAWN = "CARD_DRAWN"
    RECALL_USED = "RECALL_USED"
    GAME_OVER = "GAME_OVER"
    GAME_RESET = "GAME_RESET"
    ERROR = "ERROR"


class ErrorCode(StrEnum):
    """Machine-readable reasons attached to ``ERROR`` events."""

    UNKNOWN_ACTION = "UNKNOWN_ACTION"
    DUPLICATE_PLAYER_ID = "DUPLICATE_PLAYER_ID"
    GAME_NOT_IN_PROGRESS = "GAME_NOT_IN_PROGRESS"
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    NOT_LEAD_PLAYER = "NOT_LEAD_PLAYER"
    NOT_RESPONDING_PLAYER = "NOT_RESPONDING_PLAYER"
    PROPOSAL_ALREADY_MADE = "PROPOSAL_ALREADY_MADE"
    NO_PROPOSAL_TO_COUNTER = "NO_PROPOSAL_TO_COUNTER"
    CARD_NOT_IN_HAND = "CARD_NOT_IN_HAND"
    DUPLICATE_CARD = "DUPLICATE_CARD"
    CARD_NOT_PLACEABLE = "CARD_NOT_PLACEABLE"
    NO_PROPOSAL_TO_ACCEPT = "NO_PROPOSAL_TO_ACCEPT"
    NO_RECALL_TOKENS = "NO_RECALL_TOKENS"
    INVALID_RECALL_FLOOR = "INVALID_RECALL_FLOOR"
    FLOOR_NOT_AGREED = "FLOOR_NOT_AGREED"
    RECALL_CUTOFF_EXCEEDED = "RECALL_CUTOFF_EXCEEDED"
    DECK_EMPTY = "DECK_EMPTY"
    HAND_FULL = "HAND_FULL"
    INVARIANT_VIOLATION = "INVARIANT_VIOLATION"


class GameEvent(BaseModel):
    """Represents a single immutable event produced by one engine transition."""

    model_config = ConfigDict(frozen=True)

    event_type: EventType
    message: str | None = None
    player_id: str | None = Field(default=None, min_length=1)
    floor: int | None = Field(default=None, ge=1)
    code: ErrorCode | None = None
    fatal: bool = False
    payload: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _ensure_error_metadata(self) -> GameEvent:
        """Only ``ERROR`` events carry an error code and a fatal flag."""
        if self.event_type is EventType.ERROR:
            if self.code is None:
                msg = "ERROR events require an error code."
                raise ValueError(msg)
        elif self.code is not None or self.fatal:
            msg = "Only ERROR events may carry error metadata."
            raise ValueError(msg)
        return self

    @property
    def is_error(self) -> bool:
        """Return ``True`` for ``ERROR`` events."""
        return self.event_type is EventType.ERROR


__all__ = ["ErrorCode", "EventType", "GameEvent"]
