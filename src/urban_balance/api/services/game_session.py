"""Game session service exposed to the API layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from urban_balance.game_logic import (
    AIDecisionProcedure,
    GameEngine,
    GameOrchestrator,
    InMemoryEventJournal,
    build_match_configuration,
    get_strategy,
)
from urban_balance.settings import get_settings
from urban_balance.shared import DeterministicRandomService

if TYPE_CHECKING:
    from urban_balance.api.models.game import CreateGameRequest
    from urban_balance.game_logic.catalog import CardCatalog
    from urban_balance.game_logic.configuration import RulesConfiguration
    from urban_balance.game_logic.engine import ActionResult


class SessionNotFoundError(LookupError):
    """Raised when an unknown session identifier is requested."""


@dataclass(slots=True)
class GameSessionRecord:
    """A running match together with its event journal."""

    session_id: str
    orchestrator: GameOrchestrator
    journal: InMemoryEventJournal


class GameSessionService:
    """Manage in-memory matches and delegate intents to their orchestrators."""

    def __init__(
        self,
        *,
        configuration: RulesConfiguration,
        catalog: CardCatalog | None = None,
        strategy_name: str = "balanced",
        tick_resolution_seconds: float = 1.0,
    ) -> None:
        self._configuration = configuration
        self._catalog = catalog
        self._strategy_name = strategy_name
        self._tick_resolution = tick_resolution_seconds
        self._sessions: dict[str, GameSessionRecord] = {}

    @classmethod
    def create_default(cls) -> GameSessionService:
        """Return a service configured from the environment."""
        return cls(
            configuration=build_match_configuration(),
            strategy_name=get_settings().ai_strategy,
        )

    def create_session(self, request: CreateGameRequest) -> GameSessionRecord:
        """Open a new match and start it immediately."""
        configuration = self._configuration.for_match(request.overrides)
        strategy = get_strategy(request.strategy or self._strategy_name)
        orchestrator = GameOrchestrator(
            GameEngine(catalog=self._catalog, configuration=configuration),
            ai=AIDecisionProcedure(strategy),
            rng_service=DeterministicRandomService(request.seed),
            tick_resolution_seconds=self._tick_resolution,
        )
        journal = InMemoryEventJournal(configuration.max_event_history)
        orchestrator.add_listener(journal)

        record = GameSessionRecord(
            session_id=uuid4().hex[:8], orchestrator=orchestrator, journal=journal
        )
        self._sessions[record.session_id] = record
        orchestrator.start_game(
            request.human_role, seed=request.seed, human_seat=request.human_seat
        )
        return record

    def get(self, session_id: str) -> GameSessionRecord:
        record = self._sessions.get(session_id)
        if record is None:
            msg = f"Session '{session_id}' does not exist."
            raise SessionNotFoundError(msg)
        return record

    def submit(self, session_id: str, action: object) -> ActionResult | None:
        """Forward *action* to the session's orchestrator."""
        return self.get(session_id).orchestrator.dispatch(action)

    def serialize_state(self, session_id: str) -> dict[str, Any]:
        return self.get(session_id).orchestrator.state.model_dump(mode="json")

    async def close_session(self, session_id: str) -> None:
        record = self._sessions.pop(session_id, None)
        if record is not None:
            await record.orchestrator.close()


__all__ = ["GameSessionRecord", "GameSessionService", "SessionNotFoundError"]
