"""Computer opponent: decision snapshot, pluggable strategies and intents.

The decision procedure is a pure function of a :class:`DecisionSnapshot` and
an injected :class:`DeterministicRandomService`; it never touches the engine.
The orchestrator converts the returned intent into an engine action.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar, Literal

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from urban_balance.game_logic.actions import (
    AcceptProposal,
    CounterPropose,
    PassProposal,
    PlayerAction,
    ProposeCard,
)
from urban_balance.game_logic.catalog import CardInstance  # noqa: TC001
from urban_balance.game_logic.negotiation import basket_impact, lead_seat_for_floor
from urban_balance.game_logic.state import FloorState, PlayerState  # noqa: TC001
from urban_balance.shared.enums import GamePhase, PlayerRole

if TYPE_CHECKING:
    from collections.abc import Sequence

    from urban_balance.game_logic.configuration import RulesConfiguration
    from urban_balance.game_logic.state import GameState
    from urban_balance.shared.rng import DeterministicRandomService

logger = logging.getLogger(__name__)

Basket = tuple[CardInstance, ...]


class DecisionSnapshot(BaseModel):
    """Everything the AI may look at when choosing its next intent."""

    model_config = ConfigDict(frozen=True)

    player: PlayerState
    floor: FloorState
    net_score: int
    max_stories: int
    balance_threshold: int
    is_lead: bool
    own_proposal: Basket | None = None
    opponent_proposal: Basket | None = None

    @classmethod
    def from_state(
        cls, state: GameState, player_id: str, configuration: RulesConfiguration
    ) -> DecisionSnapshot | None:
        """Build a snapshot for *player_id*, or ``None`` if it has nothing to decide."""
        if state.game_phase is not GamePhase.PLAYING:
            return None
        player = state.player_by_id(player_id)
        floor = state.floor(state.current_floor)
        if player is None or floor is None:
            return None
        lead = lead_seat_for_floor(floor.floor_number, configuration.lead_block_size)
        return cls(
            player=player,
            floor=floor,
            net_score=state.current_score,
            max_stories=state.max_stories,
            balance_threshold=configuration.balance_threshold,
            is_lead=player.seat is lead,
            own_proposal=floor.proposal_for(player.seat),
            opponent_proposal=floor.proposal_for(player.seat.other),
        )

    def placeable(self, hand: Sequence[CardInstance]) -> list[CardInstance]:
        """Filter *hand* to cards that may legally go on the current floor."""
        return [
            card
            for card in hand
            if card.can_place(self.floor.floor_number, self.max_stories)
        ]


class _Intent(BaseModel):
    model_config = ConfigDict(frozen=True)

    reason: str = ""


class ProposeIntent(_Intent):
    kind: Literal["propose"] = "propose"
    cards: Basket = Field(..., min_length=1)


class CounterIntent(_Intent):
    kind: Literal["counter"] = "counter"
    cards: Basket = Field(..., min_length=1)


class AcceptIntent(_Intent):
    kind: Literal["accept"] = "accept"


class AcceptCounterIntent(_Intent):
    kind: Literal["accept_counter"] = "accept_counter"


class RejectCounterIntent(_Intent):
    kind: Literal["reject_counter"] = "reject_counter"


class PassIntent(_Intent):
    kind: Literal["pass"] = "pass"


Intent = (
    ProposeIntent
    | CounterIntent
    | AcceptIntent
    | AcceptCounterIntent
    | RejectCounterIntent
    | PassIntent
)


def intent_to_action(intent: Intent, player_id: str) -> PlayerAction:
    """Translate an AI intent into the engine action that carries it out.

    Rejecting a counter is expressed as a pass, which hands the floor to the
    mediator.
    """
    if isinstance(intent, ProposeIntent):
        first, *rest = intent.cards
        return ProposeCard(
            player_id=player_id,
            card_instance_id=first.instance_id,
            bundle=tuple(card.instance_id for card in rest),
        )
    if isinstance(intent, CounterIntent):
        first, *rest = intent.cards
        return CounterPropose(
            player_id=player_id,
            card_instance_id=first.instance_id,
            bundle=tuple(card.instance_id for card in rest),
        )
    if isinstance(intent, AcceptIntent | AcceptCounterIntent):
        return AcceptProposal(player_id=player_id)
    return PassProposal(player_id=player_id)


class Strategy(ABC):
    """Abstract base class for AI negotiation strategies.

    Subclasses decide how proposals are valued; card selection is shared and
    ranks the legally placeable cards by :meth:`evaluate_proposal`.
    """

    name: ClassVar[str] = "strategy"

    @abstractmethod
    def evaluate_proposal(
        self, cards: Sequence[CardInstance], snapshot: DecisionSnapshot
    ) -> float:
        """Score a basket from this strategy's point of view.

        Args:
            cards: Basket being considered.
            snapshot: Current decision snapshot.

        Returns:
            A value where higher is better.
        """

    @abstractmethod
    def should_accept_proposal(
        self, opponent_proposal: Basket, snapshot: DecisionSnapshot, draw: float
    ) -> bool:
        """Decide whether to accept the opponent's opening proposal.

        Args:
            opponent_proposal: The basket standing in the opponent's slot.
            snapshot: Current decision snapshot.
            draw: Uniform random draw in ``[0, 1)``.

        Returns:
            ``True`` to accept.
        """

    @abstractmethod
    def should_accept_counter(
        self, own_proposal: Basket, counter: Basket, snapshot: DecisionSnapshot
    ) -> bool:
        """Decide whether to accept the opponent's counter-proposal."""

    def rank(
        self, hand: Sequence[CardInstance], snapshot: DecisionSnapshot
    ) -> list[tuple[float, CardInstance]]:
        """Return placeable cards with their values, best first."""
        scored = [
            (self.evaluate_proposal((card,), snapshot), card)
            for card in snapshot.placeable(hand)
        ]
        scored.sort(key=lambda entry: entry[0], reverse=True)
        return scored

    def select_initial_proposal(
        self, hand: Sequence[CardInstance], snapshot: DecisionSnapshot
    ) -> Basket | None:
        """Pick the opening basket, or ``None`` when nothing is placeable."""
        ranked = self.rank(hand, snapshot)
        if not ranked:
            return None
        return (ranked[0][1],)

    def select_counter_proposal(
        self,
        hand: Sequence[CardInstance],
        opponent_proposal: Basket,
        snapshot: DecisionSnapshot,
    ) -> Basket | None:
        """Return a basket that clearly beats the opponent's, if one exists."""
        ranked = self.rank(hand, snapshot)
        if not ranked:
            return None
        opponent_value = self.evaluate_proposal(opponent_proposal, snapshot)
        best_value, best_card = ranked[0]
        if best_value > opponent_value + self.counter_margin():
            return (best_card,)
        return None

    def counter_margin(self) -> float:
        return 1.0


class BalancedStrategy(Strategy):
    """Steer the net score toward zero."""

    name: ClassVar[str] = "balanced"

    ACCEPTANCE_BAR_RATIO: ClassVar[float] = 0.75
    ACCEPTANCE_PROBABILITY: ClassVar[float] = 0.8
    COUNTER_MARGIN: ClassVar[float] = 1.0
    COUNTER_TOLERANCE: ClassVar[float] = 2.0

    def target_score(self, snapshot: DecisionSnapshot) -> int:  # noqa: ARG002
        return 0

    def evaluate_proposal(
        self, cards: Sequence[CardInstance], snapshot: DecisionSnapshot
    ) -> float:
        projected = snapshot.net_score + basket_impact(cards)
        return -float(abs(projected - self.target_score(snapshot)))

    def should_accept_proposal(
        self, opponent_proposal: Basket, snapshot: DecisionSnapshot, draw: float
    ) -> bool:
        value = self.evaluate_proposal(opponent_proposal, snapshot)
        bar = -snapshot.balance_threshold * self.ACCEPTANCE_BAR_RATIO
        return value > bar and draw < self.ACCEPTANCE_PROBABILITY

    def should_accept_counter(
        self, own_proposal: Basket, counter: Basket, snapshot: DecisionSnapshot
    ) -> bool:
        own_value = self.evaluate_proposal(own_proposal, snapshot)
        counter_value = self.evaluate_proposal(counter, snapshot)
        return counter_value >= own_value - self.COUNTER_TOLERANCE

    def counter_margin(self) -> float:
        return self.COUNTER_MARGIN


class AggressiveStrategy(BalancedStrategy):
    """Pull the score just past the balance window on the AI's own side."""

    name: ClassVar[str] = "aggressive"

    ACCEPTANCE_PROBABILITY: ClassVar[float] = 0.6
    COUNTER_MARGIN: ClassVar[float] = 3.0
    COUNTER_TOLERANCE: ClassVar[float] = 0.0

    def target_score(self, snapshot: DecisionSnapshot) -> int:
        overshoot = snapshot.balance_threshold + 1
        if snapshot.player.role is PlayerRole.DEVELOPER:
            return overshoot
        return -overshoot


STRATEGIES: dict[str, type[Strategy]] = {
    BalancedStrategy.name: BalancedStrategy,
    AggressiveStrategy.name: AggressiveStrategy,
}


def get_strategy(name: str) -> Strategy:
    """Instantiate the strategy registered under *name*.

    Raises:
        ValueError: If no strategy uses that name.
    """
    try:
        strategy_type = STRATEGIES[name.lower()]
    except KeyError:
        known = ", ".join(sorted(STRATEGIES))
        msg = f"Unknown AI strategy '{name}'. Available: {known}"
        raise ValueError(msg) from None
    return strategy_type()


class AIDecisionProcedure:
    """Choose the AI's next intent for the floor under negotiation."""

    def __init__(self, strategy: Strategy | None = None) -> None:
        self._strategy = strategy or BalancedStrategy()

    @property
    def strategy(self) -> Strategy:
        return self._strategy

    def decide(
        self, snapshot: DecisionSnapshot, rng: DeterministicRandomService
    ) -> Intent:
        """Return the intent for *snapshot*; unmatched situations pass."""
        intent = self._dispatch(snapshot, rng)
        logger.debug(
            "AI %s on floor %s chose %s (%s)",
            snapshot.player.id,
            snapshot.floor.floor_number,
            intent.kind,
            intent.reason,
        )
        return intent

    def _dispatch(
        self, snapshot: DecisionSnapshot, rng: DeterministicRandomService
    ) -> Intent:
        strategy = self._strategy
        hand = snapshot.player.hand
        own = snapshot.own_proposal
        opponent = snapshot.opponent_proposal

        if snapshot.is_lead and own is None and opponent is None:
            basket = strategy.select_initial_proposal(hand, snapshot)
            if basket is None:
                return PassIntent(reason="no placeable card")
            return ProposeIntent(cards=basket, reason="opening proposal")

        if not snapshot.is_lead and own is None and opponent is not None:
            if strategy.should_accept_proposal(opponent, snapshot, rng.draw()):
                return AcceptIntent(reason="proposal is acceptable")
            counter = strategy.select_counter_proposal(hand, opponent, snapshot)
            if counter is not None:
                return CounterIntent(cards=counter, reason="better alternative")
            return PassIntent(reason="no better alternative")

        if snapshot.is_lead and own is not None and opponent is not None:
            if strategy.should_accept_counter(own, opponent, snapshot):
                return AcceptCounterIntent(reason="counter is close enough")
            return RejectCounterIntent(reason="leave it to the mediator")

        return PassIntent(reason="nothing to decide")


__all__ = [
    "STRATEGIES",
    "AIDecisionProcedure",
    "AcceptCounterIntent",
    "AcceptIntent",
    "AggressiveStrategy",
    "BalancedStrategy",
    "CounterIntent",
    "DecisionSnapshot",
    "Intent",
    "PassIntent",
    "ProposeIntent",
    "RejectCounterIntent",
    "Strategy",
    "get_strategy",
    "intent_to_action",
]
