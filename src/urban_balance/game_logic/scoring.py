"""Net score evaluation and terminal-condition checks."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel
from pydantic.config import ConfigDict

from urban_balance.shared.enums import GameOutcome, GameOverReason

if TYPE_CHECKING:
    from collections.abc import Iterable

    from urban_balance.game_logic.catalog import CardInstance
    from urban_balance.game_logic.state import GameState


class GameEndVerdict(BaseModel):
    """Outcome reported once a terminal condition holds."""

    model_config = ConfigDict(frozen=True)

    reason: GameOverReason
    winner: GameOutcome
    final_score: int


def determine_winner(score: int, balance_threshold: int) -> GameOutcome:
    """Map a final score onto the winning side."""
    if abs(score) <= balance_threshold:
        return GameOutcome.BALANCED
    if score > balance_threshold:
        return GameOutcome.DEVELOPER
    return GameOutcome.COMMUNITY


def remaining_impact_bounds(cards: Iterable[CardInstance]) -> tuple[int, int]:
    """Return ``(max_positive, max_negative)`` over the remaining cards."""
    positive = 0
    negative = 0
    for card in cards:
        if card.impact > 0:
            positive += card.impact
        elif card.impact < 0:
            negative += card.impact
    return positive, negative


def is_balance_impossible(
    score: int, cards: Iterable[CardInstance], balance_threshold: int
) -> bool:
    """Return ``True`` when no remaining plays can reach the balance window.

    Every remaining card is assumed buildable, which overestimates what can be
    reached; a ``True`` result is therefore never a false positive.
    """
    remaining = tuple(cards)
    if not remaining:
        return False
    max_positive, max_negative = remaining_impact_bounds(remaining)
    return (
        score + max_negative > balance_threshold
        or score + max_positive < -balance_threshold
    )


def evaluate_game_end(
    state: GameState, balance_threshold: int
) -> GameEndVerdict | None:
    """Return the verdict if *state* satisfies any terminal condition."""
    score = state.current_score
    reason: GameOverReason | None = None
    if state.current_floor > state.max_stories and state.floors[-1].is_finalized:
        reason = GameOverReason.BUILDING_COMPLETE
    elif not state.deck and all(not player.hand for player in state.players):
        reason = GameOverReason.NO_CARDS_LEFT
    elif is_balance_impossible(score, state.remaining_cards(), balance_threshold):
        reason = GameOverReason.BALANCE_IMPOSSIBLE

    if reason is None:
        return None
    return GameEndVerdict(
        reason=reason,
        winner=determine_winner(score, balance_threshold),
        final_score=score,
    )


__all__ = [
    "GameEndVerdict",
    "determine_winner",
    "evaluate_game_end",
    "is_balance_impossible",
    "remaining_impact_bounds",
]
