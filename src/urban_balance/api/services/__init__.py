"""Service layer used by the API routers."""

from urban_balance.api.services.game_session import (
    GameSessionRecord,
    GameSessionService,
    SessionNotFoundError,
)

__all__ = ["GameSessionRecord", "GameSessionService", "SessionNotFoundError"]
