"""Real-time orchestration around the pure game engine.

The orchestrator is the single entry point for intents. It feeds them to the
engine one at a time, re-emits every resulting event to listeners, and owns
the wall-clock concerns: the human turn timer and the delayed AI turn. All
deferred work funnels back through :meth:`GameOrchestrator.dispatch` and is
re-validated against the live state right before it runs.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

from urban_balance.game_logic.actions import DrawCard, PassProposal, StartGame
from urban_balance.game_logic.ai import (
    AIDecisionProcedure,
    DecisionSnapshot,
    intent_to_action,
)
from urban_balance.game_logic.engine import ActionResult, GameEngine
from urban_balance.game_logic.state import GameState, PlayerState  # noqa: TC001
from urban_balance.game_logic.timers import TurnTick, TurnTimer
from urban_balance.shared.enums import ControllerKind, GamePhase, PlayerRole, Seat
from urban_balance.shared.events import EventType, GameEvent
from urban_balance.shared.rng import DeterministicRandomService

logger = logging.getLogger(__name__)

EventListener = Callable[[GameEvent], None]
TickListener = Callable[[TurnTick], None]


class GameNotStartedError(RuntimeError):
    """Raised when a running game is required but none has been started."""


@dataclass(frozen=True, slots=True)
class ScheduledTurn:
    """Identity of the turn a deferred action was scheduled for."""

    player_id: str
    floor: int
    turn_serial: int


class GameOrchestrator:
    """Sequence engine calls, drive the AI and run turn timers."""

    def __init__(
        self,
        engine: GameEngine | None = None,
        *,
        ai: AIDecisionProcedure | None = None,
        rng_service: DeterministicRandomService | None = None,
        tick_resolution_seconds: float = 1.0,
        initial_state: GameState | None = None,
    ) -> None:
        self._engine = engine or GameEngine()
        self._config = self._engine.configuration
        self._ai = ai or AIDecisionProcedure()
        self._rng = rng_service or DeterministicRandomService()
        self._tick_resolution = tick_resolution_seconds
        self._state = initial_state or self._engine.initial_state()

        self._listeners: list[EventListener] = []
        self._tick_listeners: list[TickListener] = []
        self._queue: deque[object] = deque()
        self._draining = False

        self._turn_serial = 0
        self._halted_serial: int | None = None
        self._pending_ai: ScheduledTurn | None = None
        self._ai_handle: asyncio.TimerHandle | None = None
        self._turn_timer: TurnTimer | None = None
        self._timer_task: asyncio.Task[None] | None = None
        self._last_tick: TurnTick | None = None

    @property
    def state(self) -> GameState:
        """Read-only snapshot of the current game state."""
        return self._state

    @property
    def engine(self) -> GameEngine:
        return self._engine

    @property
    def pending_ai_turn(self) -> ScheduledTurn | None:
        """The AI turn waiting to fire, if any."""
        return self._pending_ai

    @property
    def remaining_seconds(self) -> int | None:
        """Seconds left on the running turn timer."""
        if self._timer_task is None or self._last_tick is None:
            return None
        return self._last_tick.remaining_seconds

    def add_listener(self, listener: EventListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: EventListener) -> None:
        with contextlib.suppress(ValueError):
            self._listeners.remove(listener)

    def add_tick_listener(self, listener: TickListener) -> None:
        if listener not in self._tick_listeners:
            self._tick_listeners.append(listener)

    def remove_tick_listener(self, listener: TickListener) -> None:
        with contextlib.suppress(ValueError):
            self._tick_listeners.remove(listener)

    def human_player(self) -> PlayerState:
        """Return the human seat of the running game."""
        if self._state.game_phase is GamePhase.TITLE:
            msg = "No game has been started."
            raise GameNotStartedError(msg)
        for player in self._state.players:
            if player.controller is ControllerKind.HUMAN:
                return player
        msg = "The running game has no human player."
        raise GameNotStartedError(msg)

    def start_game(
        self,
        human_role: PlayerRole,
        *,
        seed: int | None = None,
        human_seat: Seat | None = None,
    ) -> ActionResult | None:
        """Start a new match; the seed defaults to one drawn from the service RNG."""
        return self.dispatch(
            StartGame(
                human_role=human_role,
                seed=seed if seed is not None else self._rng.next_seed(),
                human_seat=human_seat,
            )
        )

    def dispatch(self, action: object) -> ActionResult | None:
        """Apply *action* and every reaction it triggers.

        Actions submitted while another is being processed (for example from
        inside a listener) are queued and run afterwards; ``None`` is returned
        for them.
        """
        self._queue.append(action)
        if self._draining:
            return None
        self._draining = True
        first: ActionResult | None = None
        try:
            while self._queue:
                result = self._apply(self._queue.popleft())
                if first is None:
                    first = result
        finally:
            self._draining = False
        return first

    def advance_ai(self) -> ActionResult | None:
        """Run the pending AI turn immediately instead of waiting for its delay."""
        scheduled = self._pending_ai
        if scheduled is None:
            return None
        self._cancel_ai()
        return self._execute_ai(scheduled)

    async def close(self) -> None:
        """Cancel outstanding timers and scheduled AI turns."""
        task = self._timer_task
        self._cancel_all()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def _apply(self, action: object) -> ActionResult:
        result = self._engine.handle_action(self._state, action)
        self._state = result.state
        for event in result.events:
            self._emit(event)
        self._react(result)
        return result

    def _emit(self, event: GameEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:  # noqa: BLE001
                logger.exception("Event listener failed on %s", event.event_type)

    def _react(self, result: ActionResult) -> None:
        turn_event: GameEvent | None = None
        floor_finalized = False
        for event in result.events:
            match event.event_type:
                case EventType.ERROR if event.fatal:
                    logger.error("Halting scheduled actions: %s", event.message)
                    self._halt_turn()
                case EventType.GAME_OVER | EventType.GAME_RESET:
                    self._cancel_all()
                case EventType.TURN_STARTED:
                    self._turn_serial += 1
                    turn_event = event
                case EventType.FLOOR_FINALIZED:
                    floor_finalized = True
                case _:
                    pass

        if self._state.game_phase is not GamePhase.PLAYING:
            return
        if floor_finalized and self._config.refill_hands:
            self._refill_hands()
        if turn_event is not None:
            self._arm_turn(turn_event)

    def _refill_hands(self) -> None:
        for player in self._state.players:
            held = sum(card.stack for card in player.hand)
            for _ in range(self._config.starting_hand_size - held):
                if not self._state.deck:
                    return
                if self._apply(DrawCard(player_id=player.id)).rejected:
                    break

    def _arm_turn(self, event: GameEvent) -> None:
        self._cancel_ai()
        self._cancel_timer()
        player = self._state.player_by_id(event.player_id or "")
        if player is None or event.floor is None:
            return
        scheduled = ScheduledTurn(
            player_id=player.id, floor=event.floor, turn_serial=self._turn_serial
        )
        loop = _running_loop()
        if player.is_ai:
            self._pending_ai = scheduled
            if loop is None:
                return
            delay = (
                self._config.ai_counter_delay_seconds
                if event.payload.get("prompt") == "respond"
                else self._config.ai_turn_delay_seconds
            )
            self._ai_handle = loop.call_later(delay, self._fire_ai, scheduled)
            return
        if loop is not None and self._config.turn_duration_seconds > 0:
            self._timer_task = loop.create_task(self._run_turn_timer(scheduled))

    def _fire_ai(self, scheduled: ScheduledTurn) -> None:
        if self._pending_ai is not scheduled:
            return
        self._pending_ai = None
        self._ai_handle = None
        self._execute_ai(scheduled)

    def _execute_ai(self, scheduled: ScheduledTurn) -> ActionResult | None:
        if not self._is_fresh(scheduled):
            logger.debug("Dropping stale AI turn %s", scheduled)
            return None
        snapshot = DecisionSnapshot.from_state(
            self._state, scheduled.player_id, self._config
        )
        if snapshot is None:
            return None
        intent = self._ai.decide(snapshot, self._rng)
        result = self.dispatch(intent_to_action(intent, scheduled.player_id))
        if (
            result is not None
            and result.rejected
            and result.error is not None
            and not result.error.fatal
            and self._is_fresh(scheduled)
        ):
            logger.warning(
                "AI intent %s rejected (%s); passing instead",
                intent.kind,
                result.error.message,
            )
            result = self.dispatch(PassProposal(player_id=scheduled.player_id))
        return result

    async def _run_turn_timer(self, scheduled: ScheduledTurn) -> None:
        timer = TurnTimer(
            scheduled.player_id,
            scheduled.floor,
            duration_seconds=self._config.turn_duration_seconds,
            warning_seconds=self._config.timer_warning_seconds,
            tick_resolution_seconds=self._tick_resolution,
        )
        self._turn_timer = timer
        async for tick in timer.countdown():
            self._last_tick = tick
            for listener in list(self._tick_listeners):
                try:
                    listener(tick)
                except Exception:  # noqa: BLE001
                    logger.exception("Tick listener failed")

        if not timer.expired or not self._is_fresh(scheduled):
            return
        self._turn_timer = None
        self._timer_task = None
        logger.info(
            "Turn timer expired for %s on floor %s; passing",
            scheduled.player_id,
            scheduled.floor,
        )
        self.dispatch(PassProposal(player_id=scheduled.player_id))

    def _is_fresh(self, scheduled: ScheduledTurn) -> bool:
        state = self._state
        current = state.current_player
        return (
            state.game_phase is GamePhase.PLAYING
            and scheduled.turn_serial == self._turn_serial
            and scheduled.turn_serial != self._halted_serial
            and scheduled.floor == state.current_floor
            and current is not None
            and current.id == scheduled.player_id
        )

    def _halt_turn(self) -> None:
        self._halted_serial = self._turn_serial
        self._cancel_all()

    def _cancel_ai(self) -> None:
        if self._ai_handle is not None:
            self._ai_handle.cancel()
            self._ai_handle = None
        self._pending_ai = None

    def _cancel_timer(self) -> None:
        if self._turn_timer is not None:
            self._turn_timer.stop()
            self._turn_timer = None
        if self._timer_task is not None and not self._timer_task.done():
            self._timer_task.cancel()
        self._timer_task = None
        self._last_tick = None

    def _cancel_all(self) -> None:
        self._cancel_ai()
        self._cancel_timer()


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


__all__ = [
    "EventListener",
    "GameNotStartedError",
    "GameOrchestrator",
    "ScheduledTurn",
    "TickListener",
]
