"""Shared enumerations used across the game engine."""

from __future__ import annotations

from enum import StrEnum


class PlayerRole(StrEnum):
    """Asymmetric roles with opposite score interests."""

    DEVELOPER = "developer"
    COMMUNITY = "community"

    @property
    def opponent(self) -> PlayerRole:
        """Return the role sitting across the table."""
        if self is PlayerRole.DEVELOPER:
            return PlayerRole.COMMUNITY
        return PlayerRole.DEVELOPER


class ControllerKind(StrEnum):
    """Who issues intents for a seat."""

    HUMAN = "human"
    AI = "ai"


class Seat(StrEnum):
    """Fixed seat positions; seat A owns proposal slot A."""

    A = "a"
    B = "b"

    @property
    def index(self) -> int:
        """Position of the seat inside ``GameState.players``."""
        return 0 if self is Seat.A else 1

    @property
    def other(self) -> Seat:
        """Return the opposite seat."""
        return Seat.B if self is Seat.A else Seat.A


class FloorStatus(StrEnum):
    """Negotiation lifecycle of a single floor."""

    PENDING = "pending"
    AGREED = "agreed"
    SKIPPED = "skipped"
    REOPENED = "reopened"


class CommittedBy(StrEnum):
    """Which party's proposal ended up on a finalized floor."""

    PLAYER_A = "player_a"
    PLAYER_B = "player_b"
    AUTO = "auto"
    NONE = "none"

    @classmethod
    def for_seat(cls, seat: Seat) -> CommittedBy:
        """Return the commit marker matching *seat*."""
        return cls.PLAYER_A if seat is Seat.A else cls.PLAYER_B


class GamePhase(StrEnum):
    """Top-level phases of a match."""

    TITLE = "title"
    PLAYING = "playing"
    GAME_OVER = "game_over"


class GameOutcome(StrEnum):
    """Possible winners once a match has ended."""

    BALANCED = "balanced"
    DEVELOPER = "developer"
    COMMUNITY = "community"


class GameOverReason(StrEnum):
    """Terminal conditions checked after each finalized floor."""

    BUILDING_COMPLETE = "Building complete"
    NO_CARDS_LEFT = "No cards left"
    BALANCE_IMPOSSIBLE = "Balance impossible"


__all__ = [
    "CommittedBy",
    "ControllerKind",
    "FloorStatus",
    "GameOutcome",
    "GameOverReason",
    "GamePhase",
    "PlayerRole",
    "Seat",
]
