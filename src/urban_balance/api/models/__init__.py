"""API request and response models."""

from urban_balance.api.models.game import (
    ActionRequest,
    ActionResultResponse,
    CreateGameRequest,
    ErrorResponse,
    EventResponse,
    GameStateResponse,
    HeartbeatRequest,
    HeartbeatResponse,
    InboundWsMessage,
    StateRequest,
    TurnTickResponse,
)

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
