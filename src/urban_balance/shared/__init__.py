"""Shared enums, events and cross-cutting helpers for the game engine."""

from urban_balance.shared.enums import (
    CommittedBy,
    ControllerKind,
    FloorStatus,
    GameOutcome,
    GameOverReason,
    GamePhase,
    PlayerRole,
    Seat,
)
from urban_balance.shared.events import ErrorCode, EventType, GameEvent
from urban_balance.shared.rng import DeterministicRandomService
from urban_balance.shared.value_objects import FloorMarker, FloorRequirement

__all__ = [
    "CommittedBy",
    "ControllerKind",
    "DeterministicRandomService",
    "ErrorCode",
    "EventType",
    "FloorMarker",
    "FloorRequirement",
    "FloorStatus",
    "GameEvent",
    "GameOutcome",
    "GameOverReason",
    "GamePhase",
    "PlayerRole",
    "Seat",
]
