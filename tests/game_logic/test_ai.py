"""Tests for the AI decision procedure and strategies."""

from __future__ import annotations

import pytest
from builders import (
    ALICE,
    BOB,
    MINUS_EIGHT,
    MINUS_FIVE,
    PLUS_FIVE,
    PLUS_SIX,
    PLUS_THREE,
    ROOFTOP,
    RULES,
    instance,
    make_state,
)

from urban_balance.game_logic.actions import (
    AcceptProposal,
    CounterPropose,
    PassProposal,
    ProposeCard,
)
from urban_balance.game_logic.ai import (
    AcceptCounterIntent,
    AcceptIntent,
    AggressiveStrategy,
    AIDecisionProcedure,
    BalancedStrategy,
    CounterIntent,
    DecisionSnapshot,
    Intent,
    PassIntent,
    ProposeIntent,
    RejectCounterIntent,
    Strategy,
    get_strategy,
    intent_to_action,
)
from urban_balance.game_logic.catalog import CardInstance
from urban_balance.game_logic.state import BuildingLedger, FloorState, GameState
from urban_balance.shared.enums import Seat
from urban_balance.shared.rng import DeterministicRandomService


class FixedDraw:
    """Random source returning the same draw every time."""

    def __init__(self, value: float) -> None:
        self.value = value
        self.calls = 0

    def draw(self) -> float:
        self.calls += 1
        return self.value


def snapshot_for(state: GameState, player_id: str = BOB) -> DecisionSnapshot:
    snapshot = DecisionSnapshot.from_state(state, player_id, RULES)
    assert snapshot is not None
    return snapshot


def decide(
    state: GameState,
    rng: FixedDraw,
    player_id: str = BOB,
    *,
    strategy: Strategy | None = None,
) -> Intent:
    procedure = AIDecisionProcedure(strategy)
    snapshot = snapshot_for(state, player_id)
    return procedure.decide(snapshot, rng)  # type: ignore[arg-type]


def responder_state(
    opening: FloorState, hand_b: tuple[CardInstance, ...]
) -> GameState:
    return make_state(hand_b=hand_b, floors=[opening], current_seat=Seat.B)


def test_snapshot_describes_the_current_floor() -> None:
    state = make_state(
        hand_b=(instance(PLUS_FIVE),),
        floors=[FloorState(floor_number=1, proposal_a=(instance(PLUS_THREE),))],
        current_seat=Seat.B,
        ledger=BuildingLedger(baseline_score=-2),
    )

    snapshot = snapshot_for(state)

    assert not snapshot.is_lead
    assert snapshot.net_score == -2
    assert snapshot.own_proposal is None
    assert snapshot.opponent_proposal == (instance(PLUS_THREE),)
    assert snapshot.max_stories == RULES.max_stories
    assert snapshot.balance_threshold == RULES.balance_threshold


def test_snapshot_is_empty_outside_a_running_game() -> None:
    assert DecisionSnapshot.from_state(GameState(), BOB, RULES) is None
    assert DecisionSnapshot.from_state(make_state(), "carol", RULES) is None


def test_lead_opens_with_card_closest_to_balance() -> None:
    state = make_state(
        hand_b=(instance(PLUS_SIX), instance(MINUS_FIVE), instance(PLUS_THREE)),
        current_floor=6,
        ledger=BuildingLedger(baseline_score=4),
    )
    rng = FixedDraw(0.0)

    intent = decide(state, rng)

    assert isinstance(intent, ProposeIntent)
    assert intent.cards == (instance(MINUS_FIVE),)
    assert rng.calls == 0


def test_lead_passes_without_placeable_cards() -> None:
    state = make_state(hand_b=(instance(ROOFTOP),), current_floor=6)

    intent = decide(state, FixedDraw(0.0))

    assert isinstance(intent, PassIntent)


def test_responder_accepts_reasonable_proposal_on_low_draw() -> None:
    state = responder_state(
        FloorState(floor_number=1, proposal_a=(instance(PLUS_THREE),)),
        (instance(MINUS_FIVE),),
    )
    rng = FixedDraw(0.1)

    intent = decide(state, rng)

    assert isinstance(intent, AcceptIntent)
    assert rng.calls == 1


def test_responder_counters_with_clearly_better_card() -> None:
    state = responder_state(
        FloorState(floor_number=1, proposal_a=(instance(PLUS_SIX),)),
        (instance(MINUS_FIVE), instance(PLUS_THREE)),
    )

    intent = decide(state, FixedDraw(0.95))

    assert isinstance(intent, CounterIntent)
    assert intent.cards == (instance(PLUS_THREE),)


def test_responder_passes_without_better_alternative() -> None:
    state = responder_state(
        FloorState(floor_number=1, proposal_a=(instance(PLUS_SIX),)),
        (instance(MINUS_EIGHT),),
    )

    intent = decide(state, FixedDraw(0.95))

    assert isinstance(intent, PassIntent)


def test_responder_rejects_proposal_far_from_balance() -> None:
    state = responder_state(
        FloorState(floor_number=1, proposal_a=(instance(MINUS_EIGHT, stack=2),)),
        (instance(PLUS_THREE),),
    )

    intent = decide(state, FixedDraw(0.0))

    assert isinstance(intent, CounterIntent)


def test_lead_accepts_counter_within_tolerance() -> None:
    state = make_state(
        floors=[
            FloorState(
                floor_number=1,
                proposal_a=(instance(PLUS_FIVE),),
                proposal_b=(instance(MINUS_FIVE),),
            )
        ],
        ledger=BuildingLedger(baseline_score=4),
    )

    intent = decide(state, FixedDraw(0.0), ALICE)

    assert isinstance(intent, AcceptCounterIntent)


def test_lead_rejects_counter_that_moves_away_from_balance() -> None:
    state = make_state(
        floors=[
            FloorState(
                floor_number=1,
                proposal_a=(instance(PLUS_FIVE),),
                proposal_b=(instance(MINUS_FIVE),),
            )
        ],
        ledger=BuildingLedger(baseline_score=-4),
    )

    intent = decide(state, FixedDraw(0.0), ALICE)

    assert isinstance(intent, RejectCounterIntent)


def test_waiting_lead_has_nothing_to_decide() -> None:
    state = make_state(
        floors=[FloorState(floor_number=1, proposal_a=(instance(PLUS_FIVE),))],
    )

    intent = decide(state, FixedDraw(0.0), ALICE)

    assert isinstance(intent, PassIntent)


def test_aggressive_strategy_pulls_toward_own_side() -> None:
    state = make_state(
        hand_b=(instance(MINUS_FIVE), instance(MINUS_EIGHT), instance(PLUS_THREE)),
        current_floor=6,
    )
    intent = decide(state, FixedDraw(0.0), strategy=AggressiveStrategy())

    assert isinstance(intent, ProposeIntent)
    assert intent.cards == (instance(MINUS_EIGHT),)


def test_decisions_are_reproducible_with_seeded_rng() -> None:
    state = responder_state(
        FloorState(floor_number=1, proposal_a=(instance(PLUS_THREE),)),
        (instance(MINUS_FIVE), instance(PLUS_FIVE)),
    )
    snapshot = snapshot_for(state)
    procedure = AIDecisionProcedure()

    first = procedure.decide(snapshot, DeterministicRandomService(5))
    second = procedure.decide(snapshot, DeterministicRandomService(5))

    assert first == second


def test_intents_translate_into_engine_actions() -> None:
    cards = (instance(PLUS_THREE), instance(MINUS_FIVE))

    propose = intent_to_action(ProposeIntent(cards=cards), BOB)
    assert propose == ProposeCard(
        player_id=BOB, card_instance_id="plus-three#1", bundle=("minus-five#1",)
    )
    counter = intent_to_action(CounterIntent(cards=cards[:1]), BOB)
    assert counter == CounterPropose(player_id=BOB, card_instance_id="plus-three#1")
    assert intent_to_action(AcceptIntent(), BOB) == AcceptProposal(player_id=BOB)
    assert intent_to_action(AcceptCounterIntent(), BOB) == AcceptProposal(
        player_id=BOB
    )
    assert intent_to_action(RejectCounterIntent(), BOB) == PassProposal(
        player_id=BOB
    )
    assert intent_to_action(PassIntent(), BOB) == PassProposal(player_id=BOB)


def test_get_strategy_by_name() -> None:
    assert isinstance(get_strategy("balanced"), BalancedStrategy)
    assert isinstance(get_strategy("Aggressive"), AggressiveStrategy)
    with pytest.raises(ValueError, match="Unknown AI strategy"):
        get_strategy("random")
