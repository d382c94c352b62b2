"""Pure state-transition engine for the tower negotiation game."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ValidationError
from pydantic.config import ConfigDict

from urban_balance.game_logic.actions import (
    GAME_ACTION_ADAPTER,
    AcceptProposal,
    CounterPropose,
    DrawCard,
    PassProposal,
    ProposeCard,
    ResetGame,
    StartGame,
    UseRecall,
)
from urban_balance.game_logic.catalog import (
    CardCatalog,
    CardInstance,
    get_default_catalog,
    stack_into_hand,
)
from urban_balance.game_logic.configuration import (
    RulesConfiguration,
    get_default_rules_configuration,
)
from urban_balance.game_logic.errors import (
    ActionValidationError,
    InvariantViolationError,
)
from urban_balance.game_logic.negotiation import (
    FloorResolution,
    basket_impact,
    lead_seat_for_floor,
    resolve_acceptance,
    resolve_pass,
)
from urban_balance.game_logic.scoring import evaluate_game_end
from urban_balance.game_logic.state import (
    BuildingLedger,
    FloorState,
    GameState,
    PlacedCard,
    PlayerState,
)
from urban_balance.shared.enums import (
    ControllerKind,
    FloorStatus,
    GamePhase,
    PlayerRole,
    Seat,
)
from urban_balance.shared.events import ErrorCode, EventType, GameEvent
from urban_balance.shared.rng import DeterministicRandomService

logger = logging.getLogger(__name__)

Transition = tuple[GameState, list[GameEvent]]


class ActionResult(BaseModel):
    """New state and the events produced by a single transition."""

    model_config = ConfigDict(frozen=True)

    state: GameState
    events: tuple[GameEvent, ...]

    @property
    def rejected(self) -> bool:
        """Return ``True`` when the action was refused."""
        return any(event.is_error for event in self.events)

    @property
    def error(self) -> GameEvent | None:
        for event in self.events:
            if event.is_error:
                return event
        return None


class GameEngine:
    """Apply inbound actions to immutable game state.

    :meth:`handle_action` never raises. Rejected actions return the very same
    state object together with a single ``ERROR`` event.
    """

    def __init__(
        self,
        *,
        catalog: CardCatalog | None = None,
        configuration: RulesConfiguration | None = None,
    ) -> None:
        self._catalog = catalog or get_default_catalog()
        self._configuration = configuration or get_default_rules_configuration()
        self._handlers: dict[type, Callable[[GameState, Any], Transition]] = {
            StartGame: self._start_game,
            ResetGame: self._reset_game,
            ProposeCard: self._propose_card,
            CounterPropose: self._counter_propose,
            AcceptProposal: self._accept_proposal,
            PassProposal: self._pass_proposal,
            UseRecall: self._use_recall,
            DrawCard: self._draw_card,
        }

    @property
    def catalog(self) -> CardCatalog:
        return self._catalog

    @property
    def configuration(self) -> RulesConfiguration:
        return self._configuration

    def initial_state(self) -> GameState:
        """Return the Title-phase state a fresh session starts from."""
        return GameState()

    def handle_action(self, state: GameState, action: object) -> ActionResult:
        """Apply *action* to *state* and return the resulting transition."""
        if isinstance(action, Mapping):
            try:
                action = GAME_ACTION_ADAPTER.validate_python(action)
            except ValidationError as exc:
                return self._reject(
                    state,
                    ActionValidationError(
                        ErrorCode.UNKNOWN_ACTION,
                        f"Unrecognized action payload: {exc.error_count()} error(s)",
                    ),
                    action=None,
                )

        handler = self._handlers.get(type(action))
        if handler is None:
            return self._reject(
                state,
                ActionValidationError(
                    ErrorCode.UNKNOWN_ACTION,
                    f"Unknown action type: {type(action).__name__}",
                ),
                action=None,
            )

        try:
            new_state, events = handler(state, action)
        except ActionValidationError as exc:
            return self._reject(state, exc, action=action)
        except (InvariantViolationError, ValueError) as exc:
            logger.exception(
                "Invariant violated while applying %s", type(action).__name__
            )
            error = GameEvent(
                event_type=EventType.ERROR,
                code=ErrorCode.INVARIANT_VIOLATION,
                message=str(exc),
                player_id=getattr(action, "player_id", None),
                fatal=True,
                payload={"action": getattr(action, "type", None)},
            )
            return ActionResult(state=state, events=(error,))
        return ActionResult(state=new_state, events=tuple(events))

    def _reject(
        self, state: GameState, exc: ActionValidationError, *, action: object
    ) -> ActionResult:
        logger.debug("Rejected action (%s): %s", exc.code, exc.reason)
        error = GameEvent(
            event_type=EventType.ERROR,
            code=exc.code,
            message=exc.reason,
            player_id=getattr(action, "player_id", None),
            payload={"action": getattr(action, "type", None)},
        )
        return ActionResult(state=state, events=(error,))

    # Lifecycle ---------------------------------------------------------------

    def _start_game(self, state: GameState, action: StartGame) -> Transition:  # noqa: ARG002
        if action.human_player_id == action.opponent_player_id:
            msg = f"Both players cannot use the id {action.human_player_id!r}"
            raise ActionValidationError(ErrorCode.DUPLICATE_PLAYER_ID, msg)
        config = self._configuration
        rng = DeterministicRandomService(action.seed)
        human_seat = action.human_seat
        if human_seat is None:
            human_seat = Seat.A if rng.coin_flip() else Seat.B
        deck = list(self._catalog.build_deck(rng))

        hands: dict[Seat, tuple[CardInstance, ...]] = {Seat.A: (), Seat.B: ()}
        for _ in range(config.starting_hand_size):
            for seat in (Seat.A, Seat.B):
                if not deck:
                    break
                hands[seat], _slot = stack_into_hand(hands[seat], deck.pop())

        human = PlayerState(
            id=action.human_player_id,
            display_name=action.human_name,
            role=action.human_role,
            controller=ControllerKind.HUMAN,
            seat=human_seat,
            hand=hands[human_seat],
            recall_tokens=config.initial_recall_tokens,
        )
        opponent = PlayerState(
            id=action.opponent_player_id,
            display_name=action.opponent_name,
            role=action.human_role.opponent,
            controller=action.opponent_controller,
            seat=human_seat.other,
            hand=hands[human_seat.other],
            recall_tokens=config.initial_recall_tokens,
        )
        players = (human, opponent) if human_seat is Seat.A else (opponent, human)

        started = GameState(
            game_phase=GamePhase.PLAYING,
            players=players,
            floors=tuple(
                FloorState(floor_number=number)
                for number in range(1, config.max_stories + 1)
            ),
            deck=tuple(deck),
            ledger=BuildingLedger(baseline_score=self._catalog.baseline_score),
        )
        started = self._begin_turn(started, 1)
        events = [
            GameEvent(
                event_type=EventType.GAME_STARTED,
                message="Game started",
                payload={
                    "seed": action.seed,
                    "human_seat": human_seat.value,
                    "roles": {player.id: player.role.value for player in players},
                    "baseline_score": started.ledger.baseline_score,
                    "deck_size": len(started.deck),
                },
            ),
            self._turn_started_event(started),
        ]
        return started, events

    def _reset_game(self, state: GameState, action: ResetGame) -> Transition:  # noqa: ARG002
        return GameState(), [
            GameEvent(event_type=EventType.GAME_RESET, message="Game reset")
        ]

    # Negotiation -------------------------------------------------------------

    def _propose_card(self, state: GameState, action: ProposeCard) -> Transition:
        player = self._require_turn_holder(state, action.player_id)
        lead = self._lead_seat(state.current_floor)
        if player.seat is not lead:
            msg = f"Only the lead player can open floor {state.current_floor}"
            raise ActionValidationError(ErrorCode.NOT_LEAD_PLAYER, msg)
        floor = self._require_open_floor(state)
        if floor.proposal_for(player.seat) is not None:
            msg = "You have already made a proposal for this floor"
            raise ActionValidationError(ErrorCode.PROPOSAL_ALREADY_MADE, msg)

        basket = self._take_basket(player, action.instance_ids, floor.floor_number)
        updated = state.with_floor(floor.with_proposal(player.seat, basket))
        updated = updated.with_player(player.without_cards(action.instance_ids))
        updated = self._hand_turn_to(updated, player.seat.other)
        return updated, [
            GameEvent(
                event_type=EventType.PROPOSAL_MADE,
                message=f"{player.display_name} proposed {_describe(basket)}",
                player_id=player.id,
                floor=floor.floor_number,
                payload=_basket_payload(basket),
            ),
            self._turn_started_event(updated),
        ]

    def _counter_propose(self, state: GameState, action: CounterPropose) -> Transition:
        player = self._require_turn_holder(state, action.player_id)
        lead = self._lead_seat(state.current_floor)
        if player.seat is lead:
            msg = "Only the responding player can make a counter-proposal"
            raise ActionValidationError(ErrorCode.NOT_RESPONDING_PLAYER, msg)
        floor = self._require_open_floor(state)
        if floor.proposal_for(player.seat) is not None:
            msg = "You have already made a proposal for this floor"
            raise ActionValidationError(ErrorCode.PROPOSAL_ALREADY_MADE, msg)
        if floor.proposal_for(player.seat.other) is None:
            msg = "There is no initial proposal to counter"
            raise ActionValidationError(ErrorCode.NO_PROPOSAL_TO_COUNTER, msg)

        basket = self._take_basket(player, action.instance_ids, floor.floor_number)
        updated = state.with_floor(floor.with_proposal(player.seat, basket))
        updated = updated.with_player(player.without_cards(action.instance_ids))
        updated = self._hand_turn_to(updated, lead)
        return updated, [
            GameEvent(
                event_type=EventType.COUNTER_MADE,
                message=f"{player.display_name} countered with {_describe(basket)}",
                player_id=player.id,
                floor=floor.floor_number,
                payload=_basket_payload(basket),
            ),
            self._turn_started_event(updated),
        ]

    def _accept_proposal(self, state: GameState, action: AcceptProposal) -> Transition:
        player = self._require_turn_holder(state, action.player_id)
        floor = self._require_open_floor(state)
        lead = self._lead_seat(state.current_floor)
        own = floor.proposal_for(player.seat)
        other = floor.proposal_for(player.seat.other)
        if player.seat is lead:
            acceptable = own is not None and other is not None
            reason = "There is no counter-proposal to accept"
        else:
            acceptable = own is None and other is not None
            reason = "There is no proposal to accept"
        if not acceptable:
            raise ActionValidationError(ErrorCode.NO_PROPOSAL_TO_ACCEPT, reason)

        resolution = resolve_acceptance(floor, player.seat)
        accepted = GameEvent(
            event_type=EventType.PROPOSAL_ACCEPTED,
            message=(
                f"{player.display_name} accepted "
                f"{_describe(resolution.winner or ())}"
            ),
            player_id=player.id,
            floor=floor.floor_number,
            payload=_basket_payload(resolution.winner or ()),
        )
        updated, events = self._finalize_floor(state, floor, resolution)
        return updated, [accepted, *events]

    def _pass_proposal(self, state: GameState, action: PassProposal) -> Transition:
        player = self._require_turn_holder(state, action.player_id)
        floor = self._require_open_floor(state)
        filled = len(floor.filled_seats())
        resolution = resolve_pass(floor, state.current_score)
        outcome = {0: "skipped", 1: "uncontested", 2: "mediated"}[filled]
        passed = GameEvent(
            event_type=EventType.PROPOSAL_PASSED,
            message=f"{player.display_name} passed",
            player_id=player.id,
            floor=floor.floor_number,
            payload={"outcome": outcome},
        )
        updated, events = self._finalize_floor(state, floor, resolution)
        return updated, [passed, *events]

    def _finalize_floor(
        self, state: GameState, floor: FloorState, resolution: FloorResolution
    ) -> Transition:
        score_before = state.current_score
        ledger = state.ledger
        if resolution.winner:
            owner = state.player_in_seat(resolution.winner_seat).role
            ledger = ledger.place(
                floor.floor_number, PlacedCard.from_basket(resolution.winner), owner
            )
        finalized = floor.finalize(resolution.winner, resolution.committed_by)
        updated = state.with_floor(finalized).model_copy(
            update={
                "ledger": ledger,
                "discard": (*state.discard, *resolution.discarded),
            }
        )
        events = [
            GameEvent(
                event_type=EventType.FLOOR_FINALIZED,
                message=f"Floor {floor.floor_number} {finalized.status.value}",
                floor=floor.floor_number,
                payload={
                    "status": finalized.status.value,
                    "committed_by": finalized.committed_by.value,
                    "winner_cards": [
                        placed.card.instance_id for placed in finalized.winner_cards
                    ],
                    "score_delta": updated.current_score - score_before,
                    "score": updated.current_score,
                },
            )
        ]

        next_floor = self._next_open_floor(updated, floor.floor_number)
        updated = updated.model_copy(update={"current_floor": next_floor})
        verdict = evaluate_game_end(updated, self._configuration.balance_threshold)
        if verdict is not None:
            updated = updated.model_copy(
                update={
                    "game_phase": GamePhase.GAME_OVER,
                    "game_over_reason": verdict.reason,
                    "winner": verdict.winner,
                }
            )
            events.append(
                GameEvent(
                    event_type=EventType.GAME_OVER,
                    message=verdict.reason.value,
                    payload={
                        "reason": verdict.reason.value,
                        "winner": verdict.winner.value,
                        "final_score": verdict.final_score,
                    },
                )
            )
            return updated, events

        updated = self._begin_turn(updated, next_floor)
        events.append(self._turn_started_event(updated))
        return updated, events

    # Recall and draw ---------------------------------------------------------

    def _use_recall(self, state: GameState, action: UseRecall) -> Transition:
        config = self._configuration
        self._require_playing(state)
        player = self._require_player(state, action.player_id)
        if player.recall_tokens <= 0:
            msg = "No recall tokens remaining"
            raise ActionValidationError(ErrorCode.NO_RECALL_TOKENS, msg)
        floor = state.floor(action.floor_number)
        if floor is None or action.floor_number >= state.current_floor:
            msg = f"Floor {action.floor_number} cannot be recalled"
            raise ActionValidationError(ErrorCode.INVALID_RECALL_FLOOR, msg)
        if action.floor_number >= config.recall_max_floor:
            msg = f"Floors from {config.recall_max_floor} upward cannot be recalled"
            raise ActionValidationError(ErrorCode.RECALL_CUTOFF_EXCEEDED, msg)
        if floor.status is not FloorStatus.AGREED:
            msg = f"Floor {action.floor_number} has not been agreed"
            raise ActionValidationError(ErrorCode.FLOOR_NOT_AGREED, msg)

        ledger, removed = state.ledger.retract(floor.floor_number)
        if not removed:
            msg = f"Agreed floor {floor.floor_number} has no ledger entry"
            raise InvariantViolationError(msg)
        penalty = (
            config.recall_score_penalty
            if player.role is PlayerRole.COMMUNITY
            else -config.recall_score_penalty
        )
        ledger = ledger.apply_penalty(penalty)

        updated = self._return_outstanding_proposals(state)
        updated = updated.with_floor(floor.reopen()).model_copy(
            update={
                "ledger": ledger,
                "discard": (
                    *updated.discard,
                    *(placed.card for placed in floor.winner_cards),
                ),
            }
        )
        recaller = updated.player_by_id(player.id)
        if recaller is None:
            msg = f"Player {player.id} vanished during recall"
            raise InvariantViolationError(msg)
        updated = updated.with_player(
            recaller.model_copy(update={"recall_tokens": recaller.recall_tokens - 1})
        )
        updated = self._begin_turn(updated, floor.floor_number)
        return updated, [
            GameEvent(
                event_type=EventType.RECALL_USED,
                message=f"{player.display_name} recalled floor {floor.floor_number}",
                player_id=player.id,
                floor=floor.floor_number,
                payload={
                    "removed_impact": sum(use.impact for use in removed),
                    "penalty": penalty,
                    "score": updated.current_score,
                    "recall_tokens": player.recall_tokens - 1,
                },
            ),
            self._turn_started_event(updated),
        ]

    def _draw_card(self, state: GameState, action: DrawCard) -> Transition:
        self._require_playing(state)
        player = self._require_player(state, action.player_id)
        if not state.deck:
            raise ActionValidationError(ErrorCode.DECK_EMPTY, "Deck is empty")
        if len(player.hand) >= self._configuration.max_hand_size:
            raise ActionValidationError(ErrorCode.HAND_FULL, "Hand is full")

        drawn = state.deck[-1]
        hand, slot = stack_into_hand(player.hand, drawn)
        updated = state.with_player(player.model_copy(update={"hand": hand}))
        updated = updated.model_copy(update={"deck": state.deck[:-1]})
        return updated, [
            GameEvent(
                event_type=EventType.CARD_DRAWN,
                message=f"{player.display_name} drew a card",
                player_id=player.id,
                payload={
                    "instance_id": slot.instance_id,
                    "drawn_instance_id": drawn.instance_id,
                    "card_id": drawn.card_id,
                    "stack": slot.stack,
                    "deck_remaining": len(updated.deck),
                },
            )
        ]

    # Helpers -----------------------------------------------------------------

    def _require_playing(self, state: GameState) -> None:
        if state.game_phase is not GamePhase.PLAYING:
            msg = "Game is not in progress"
            raise ActionValidationError(ErrorCode.GAME_NOT_IN_PROGRESS, msg)

    def _require_player(self, state: GameState, player_id: str) -> PlayerState:
        player = state.player_by_id(player_id)
        if player is None:
            msg = f"Player {player_id} is not part of this game"
            raise ActionValidationError(ErrorCode.PLAYER_NOT_FOUND, msg)
        return player

    def _require_turn_holder(self, state: GameState, player_id: str) -> PlayerState:
        self._require_playing(state)
        player = self._require_player(state, player_id)
        if player.seat.index != state.current_player_index:
            msg = "It's not your turn"
            raise ActionValidationError(ErrorCode.NOT_YOUR_TURN, msg)
        return player

    def _require_open_floor(self, state: GameState) -> FloorState:
        floor = state.floor(state.current_floor)
        if floor is None or not floor.is_open:
            msg = f"Current floor {state.current_floor} is not open for negotiation"
            raise InvariantViolationError(msg)
        return floor

    def _take_basket(
        self, player: PlayerState, instance_ids: tuple[str, ...], floor_number: int
    ) -> tuple[CardInstance, ...]:
        if len(set(instance_ids)) != len(instance_ids):
            msg = "A card can only appear once in a proposal"
            raise ActionValidationError(ErrorCode.DUPLICATE_CARD, msg)
        basket: list[CardInstance] = []
        for instance_id in instance_ids:
            card = player.find_card(instance_id)
            if card is None:
                msg = f"Card {instance_id} is not in player's hand"
                raise ActionValidationError(ErrorCode.CARD_NOT_IN_HAND, msg)
            if not card.can_place(floor_number, self._configuration.max_stories):
                msg = f"{card.name} cannot be placed on floor {floor_number}"
                raise ActionValidationError(ErrorCode.CARD_NOT_PLACEABLE, msg)
            basket.append(card)
        return tuple(basket)

    def _lead_seat(self, floor_number: int) -> Seat:
        return lead_seat_for_floor(floor_number, self._configuration.lead_block_size)

    def _hand_turn_to(self, state: GameState, seat: Seat) -> GameState:
        return state.model_copy(update={"current_player_index": seat.index})

    def _begin_turn(self, state: GameState, floor_number: int) -> GameState:
        """Move to *floor_number* and give the turn to its lead player."""
        lead = self._lead_seat(floor_number)
        players = tuple(
            player.model_copy(update={"is_lead_player": player.seat is lead})
            for player in state.players
        )
        return state.model_copy(
            update={
                "players": players,
                "current_floor": floor_number,
                "current_player_index": lead.index,
            }
        )

    def _next_open_floor(self, state: GameState, after: int) -> int:
        for floor in state.floors[after:]:
            if floor.is_open:
                return floor.floor_number
        return state.max_stories + 1

    def _return_outstanding_proposals(self, state: GameState) -> GameState:
        """Hand back baskets standing on the current floor before a rewind."""
        floor = state.floor(state.current_floor)
        if floor is None or not floor.filled_seats():
            return state
        updated = state
        for seat in floor.filled_seats():
            owner = updated.player_in_seat(seat)
            hand = owner.hand
            for card in floor.proposal_for(seat) or ():
                hand, _slot = stack_into_hand(hand, card)
            updated = updated.with_player(owner.model_copy(update={"hand": hand}))
        cleared = floor.model_copy(update={"proposal_a": None, "proposal_b": None})
        return updated.with_floor(cleared)

    def _turn_started_event(self, state: GameState) -> GameEvent:
        player = state.current_player
        if player is None:
            msg = "Turn started without players"
            raise InvariantViolationError(msg)
        floor = state.floor(state.current_floor)
        if floor is None:
            msg = f"Turn started on missing floor {state.current_floor}"
            raise InvariantViolationError(msg)
        filled = floor.filled_seats()
        if not filled:
            prompt = "propose"
        elif len(filled) == 1 and player.seat not in filled:
            prompt = "respond"
        else:
            prompt = "resolve"
        return GameEvent(
            event_type=EventType.TURN_STARTED,
            message=f"Floor {floor.floor_number}: {player.display_name} to {prompt}",
            player_id=player.id,
            floor=floor.floor_number,
            payload={
                "seat": player.seat.value,
                "controller": player.controller.value,
                "is_ai": player.is_ai,
                "is_lead": player.is_lead_player,
                "prompt": prompt,
            },
        )


def _describe(basket: tuple[CardInstance, ...]) -> str:
    return ", ".join(card.name for card in basket) or "nothing"


def _basket_payload(basket: tuple[CardInstance, ...]) -> dict[str, Any]:
    return {
        "instance_ids": [card.instance_id for card in basket],
        "card_ids": [card.card_id for card in basket],
        "impact": basket_impact(basket),
    }


__all__ = ["ActionResult", "GameEngine"]
