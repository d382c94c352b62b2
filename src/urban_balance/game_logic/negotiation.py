"""Per-floor negotiation protocol: lead rotation, acceptance and mediation."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from urban_balance.game_logic.catalog import CardInstance  # noqa: TC001
from urban_balance.shared.enums import CommittedBy, Seat

if TYPE_CHECKING:
    from collections.abc import Iterable

    from urban_balance.game_logic.state import FloorState


class FloorResolution(BaseModel):
    """How a floor was settled and which baskets are left over."""

    model_config = ConfigDict(frozen=True)

    winner_seat: Seat | None
    winner: tuple[CardInstance, ...] | None
    committed_by: CommittedBy
    discarded: tuple[CardInstance, ...] = Field(default_factory=tuple)

    @property
    def is_skip(self) -> bool:
        return self.winner is None


def lead_seat_for_floor(floor_number: int, block_size: int) -> Seat:
    """Seat A leads odd blocks of ``block_size`` floors, seat B the even ones."""
    block = math.ceil(floor_number / block_size)
    return Seat.A if block % 2 == 1 else Seat.B


def basket_impact(basket: Iterable[CardInstance]) -> int:
    """Total score contribution of a proposal basket."""
    return sum(card.impact for card in basket)


def mediate(
    score: int,
    proposal_a: tuple[CardInstance, ...],
    proposal_b: tuple[CardInstance, ...],
) -> Seat:
    """Pick the proposal leaving the score closer to zero; ties go to slot A."""
    after_a = abs(score + basket_impact(proposal_a))
    after_b = abs(score + basket_impact(proposal_b))
    return Seat.A if after_a <= after_b else Seat.B


def _resolution_for(
    floor: FloorState, winner_seat: Seat, committed_by: CommittedBy
) -> FloorResolution:
    loser = floor.proposal_for(winner_seat.other)
    return FloorResolution(
        winner_seat=winner_seat,
        winner=floor.proposal_for(winner_seat),
        committed_by=committed_by,
        discarded=loser or (),
    )


def resolve_acceptance(floor: FloorState, accepting_seat: Seat) -> FloorResolution:
    """Settle *floor* in favour of the basket across from *accepting_seat*."""
    winner_seat = accepting_seat.other
    return _resolution_for(floor, winner_seat, CommittedBy.for_seat(winner_seat))


def resolve_pass(floor: FloorState, score: int) -> FloorResolution:
    """Settle *floor* after the turn holder passes."""
    filled = floor.filled_seats()
    if len(filled) == 2:  # noqa: PLR2004
        winner_seat = mediate(score, floor.proposal_a or (), floor.proposal_b or ())
        return _resolution_for(floor, winner_seat, CommittedBy.AUTO)
    if len(filled) == 1:
        (winner_seat,) = filled
        return _resolution_for(floor, winner_seat, CommittedBy.for_seat(winner_seat))
    return FloorResolution(winner_seat=None, winner=None, committed_by=CommittedBy.NONE)


__all__ = [
    "FloorResolution",
    "basket_impact",
    "lead_seat_for_floor",
    "mediate",
    "resolve_acceptance",
    "resolve_pass",
]
