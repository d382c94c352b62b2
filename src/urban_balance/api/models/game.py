"""Pydantic models for the local game HTTP and WebSocket contract."""

# ruff: noqa: TC001

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

from urban_balance.game_logic.actions import GameAction
from urban_balance.game_logic.configuration import MatchOverrides
from urban_balance.game_logic.timers import TurnTick
from urban_balance.shared.enums import PlayerRole, Seat
from urban_balance.shared.events import GameEvent


class CreateGameRequest(BaseModel):
    """Client request to open a new human-versus-AI match."""

    human_role: PlayerRole
    seed: int | None = None
    human_seat: Seat | None = None
    strategy: str | None = None
    overrides: MatchOverrides | None = None


class GameStateResponse(BaseModel):
    """Full read-only snapshot of a match."""

    type: Literal["game_state"] = "game_state"
    session_id: str
    state: dict[str, Any]
    remaining_seconds: int | None = None


class ActionResultResponse(BaseModel):
    """Outcome of a single submitted intent."""

    type: Literal["action_result"] = "action_result"
    session_id: str
    accepted: bool
    events: list[GameEvent] = Field(default_factory=list)
    state: dict[str, Any]


class EventResponse(BaseModel):
    """Engine event streamed to WebSocket clients."""

    type: Literal["event"] = "event"
    event: GameEvent


class TurnTickResponse(BaseModel):
    """Turn timer countdown streamed to WebSocket clients."""

    type: Literal["turn_tick"] = "turn_tick"
    tick: TurnTick


class ErrorResponse(BaseModel):
    """Generic error payload."""

    type: Literal["error"] = "error"
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ActionRequest(BaseModel):
    """Intent submission over the WebSocket."""

    type: Literal["action"]
    action: GameAction


class StateRequest(BaseModel):
    """Ad-hoc snapshot request."""

    type: Literal["state"]


class HeartbeatRequest(BaseModel):
    """Heartbeat message for connection keep-alive."""

    type: Literal["heartbeat"]
    nonce: str | None = None


class HeartbeatResponse(BaseModel):
    type: Literal["heartbeat"] = "heartbeat"
    nonce: str | None = None


InboundWsMessage = Annotated[
    ActionRequest | StateRequest | HeartbeatRequest,
    Field(discriminator="type"),
]

__all__ = [
    "ActionRequest",
    "ActionResultResponse",
    "CreateGameRequest",
    "ErrorResponse",
    "EventResponse",
    "GameStateResponse",
    "HeartbeatRequest",
    "HeartbeatResponse",
    "InboundWsMessage",
    "StateRequest",
    "TurnTickResponse",
]
