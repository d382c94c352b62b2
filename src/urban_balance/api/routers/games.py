"""HTTP and WebSocket endpoints for local matches."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any

from fastapi import (
    APIRouter,
    Body,
    Depends,
    HTTPException,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from pydantic import BaseModel, TypeAdapter, ValidationError

from urban_balance.api.dependencies import get_game_session_service
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
from urban_balance.api.services import (  # noqa: TC001
    GameSessionService,
    SessionNotFoundError,
)
from urban_balance.game_logic.timers import TurnTick  # noqa: TC001
from urban_balance.shared.events import GameEvent  # noqa: TC001

logger = logging.getLogger(__name__)

router = APIRouter(tags=["games"])

INBOUND_WS_MESSAGE_ADAPTER = TypeAdapter(InboundWsMessage)


def _snapshot(service: GameSessionService, session_id: str) -> GameStateResponse:
    record = service.get(session_id)
    return GameStateResponse(
        session_id=session_id,
        state=service.serialize_state(session_id),
        remaining_seconds=record.orchestrator.remaining_seconds,
    )


def _not_found(exc: SessionNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.post("/games", status_code=status.HTTP_201_CREATED)
async def create_game(
    request: CreateGameRequest,
    service: GameSessionService = Depends(get_game_session_service),  # noqa: B008
) -> GameStateResponse:
    """Open a new match against the AI and deal the opening hands."""
    try:
        record = service.create_session(request)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    return _snapshot(service, record.session_id)


@router.get("/games/{session_id}")
async def get_game(
    session_id: str,
    service: GameSessionService = Depends(get_game_session_service),  # noqa: B008
) -> GameStateResponse:
    """Return the current read-only snapshot of a match."""
    try:
        return _snapshot(service, session_id)
    except SessionNotFoundError as exc:
        raise _not_found(exc) from exc


@router.post("/games/{session_id}/actions")
async def submit_action(
    session_id: str,
    payload: dict[str, Any] = Body(...),  # noqa: B008
    service: GameSessionService = Depends(get_game_session_service),  # noqa: B008
) -> ActionResultResponse:
    """Submit one intent; rejected intents come back with an ``ERROR`` event."""
    try:
        result = service.submit(session_id, payload)
    except SessionNotFoundError as exc:
        raise _not_found(exc) from exc
    events = list(result.events) if result is not None else []
    return ActionResultResponse(
        session_id=session_id,
        accepted=result is not None and not result.rejected,
        events=events,
        state=service.serialize_state(session_id),
    )


@router.get("/games/{session_id}/events")
async def list_events(
    session_id: str,
    service: GameSessionService = Depends(get_game_session_service),  # noqa: B008
) -> list[GameEvent]:
    """Return the recent event history of a match."""
    try:
        return list(service.get(session_id).journal.history())
    except SessionNotFoundError as exc:
        raise _not_found(exc) from exc


@router.delete("/games/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_game(
    session_id: str,
    service: GameSessionService = Depends(get_game_session_service),  # noqa: B008
) -> None:
    """Stop a match and forget it."""
    try:
        service.get(session_id)
    except SessionNotFoundError as exc:
        raise _not_found(exc) from exc
    await service.close_session(session_id)


@router.websocket("/ws/games/{session_id}")
async def game_stream(
    websocket: WebSocket,
    session_id: str,
    service: GameSessionService = Depends(get_game_session_service),  # noqa: B008
) -> None:
    """Stream events and timer ticks for a match and accept intents."""
    try:
        record = service.get(session_id)
    except SessionNotFoundError:
        await websocket.close(
            code=status.WS_1008_POLICY_VIOLATION, reason="Unknown session"
        )
        return

    await websocket.accept()
    outbox: asyncio.Queue[BaseModel] = asyncio.Queue()

    def on_event(event: GameEvent) -> None:
        outbox.put_nowait(EventResponse(event=event))

    def on_tick(tick: TurnTick) -> None:
        outbox.put_nowait(TurnTickResponse(tick=tick))

    async def pump() -> None:
        while True:
            model = await outbox.get()
            await websocket.send_json(model.model_dump(mode="json"))

    orchestrator = record.orchestrator
    outbox.put_nowait(_snapshot(service, session_id))
    orchestrator.add_listener(on_event)
    orchestrator.add_tick_listener(on_tick)
    sender = asyncio.create_task(pump())

    try:
        while True:
            try:
                data = await websocket.receive_json()
            except WebSocketDisconnect:  # pragma: no cover - network event
                break

            try:
                message = INBOUND_WS_MESSAGE_ADAPTER.validate_python(data)
            except ValidationError as exc:
                outbox.put_nowait(
                    ErrorResponse(
                        message="Invalid payload",
                        detail={"errors": exc.errors(include_url=False)},
                    )
                )
                continue

            if isinstance(message, ActionRequest):
                orchestrator.dispatch(message.action)
            elif isinstance(message, StateRequest):
                outbox.put_nowait(_snapshot(service, session_id))
            elif isinstance(message, HeartbeatRequest):
                outbox.put_nowait(HeartbeatResponse(nonce=message.nonce))
    finally:
        orchestrator.remove_listener(on_event)
        orchestrator.remove_tick_listener(on_tick)
        sender.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sender
        logger.debug("WebSocket for session %s closed", session_id)


__all__ = ["router"]
