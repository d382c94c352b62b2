"""Immutable state containers owned by the game engine."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, PositiveInt, computed_field, model_validator
from pydantic.config import ConfigDict

from urban_balance.game_logic.catalog import CardInstance  # noqa: TC001
from urban_balance.shared.enums import (
    CommittedBy,
    ControllerKind,
    FloorStatus,
    GameOutcome,
    GameOverReason,
    GamePhase,
    PlayerRole,
    Seat,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

Basket = tuple[CardInstance, ...]


class PlacedCard(BaseModel):
    """A card that won its floor, together with the number of units built."""

    model_config = ConfigDict(frozen=True)

    card: CardInstance
    units: PositiveInt

    @property
    def impact(self) -> int:
        return self.card.definition.net_score_impact * self.units

    @property
    def footprint(self) -> int:
        return self.card.definition.footprint * self.units

    @classmethod
    def from_basket(cls, basket: Iterable[CardInstance]) -> tuple[PlacedCard, ...]:
        """Convert a proposal basket into placed cards."""
        return tuple(cls(card=card, units=card.stack) for card in basket)


class PlayerState(BaseModel):
    """Represents one of the two seats at the table."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    display_name: str = Field(..., min_length=1)
    role: PlayerRole
    controller: ControllerKind
    seat: Seat
    hand: tuple[CardInstance, ...] = Field(default_factory=tuple)
    recall_tokens: int = Field(default=0, ge=0)
    is_lead_player: bool = False

    @property
    def is_ai(self) -> bool:
        return self.controller is ControllerKind.AI

    def find_card(self, instance_id: str) -> CardInstance | None:
        """Return the hand slot holding *instance_id*, if any."""
        for card in self.hand:
            if card.instance_id == instance_id:
                return card
        return None

    def without_cards(self, instance_ids: Iterable[str]) -> PlayerState:
        """Return a copy with the given hand slots removed."""
        removed = set(instance_ids)
        hand = tuple(card for card in self.hand if card.instance_id not in removed)
        return self.model_copy(update={"hand": hand})


class FloorState(BaseModel):
    """Negotiation record for a single floor of the building."""

    model_config = ConfigDict(frozen=True)

    floor_number: PositiveInt
    status: FloorStatus = FloorStatus.PENDING
    proposal_a: Basket | None = None
    proposal_b: Basket | None = None
    winner_cards: tuple[PlacedCard, ...] = Field(default_factory=tuple)
    committed_by: CommittedBy = CommittedBy.NONE

    @model_validator(mode="after")
    def _validate_lifecycle(self) -> FloorState:
        """Proposal slots and winners must agree with the floor status."""
        if not self.is_open and (
            self.proposal_a is not None or self.proposal_b is not None
        ):
            msg = f"Floor {self.floor_number} is finalized but still holds proposals."
            raise ValueError(msg)
        if bool(self.winner_cards) != (self.status is FloorStatus.AGREED):
            msg = f"Floor {self.floor_number} winner cards do not match its status."
            raise ValueError(msg)
        for basket in (self.proposal_a, self.proposal_b):
            if basket is not None and not basket:
                msg = "A proposal basket must contain at least one card."
                raise ValueError(msg)
        return self

    @property
    def is_open(self) -> bool:
        """Return ``True`` while the floor can still be negotiated."""
        return self.status in {FloorStatus.PENDING, FloorStatus.REOPENED}

    @property
    def is_finalized(self) -> bool:
        return self.status in {FloorStatus.AGREED, FloorStatus.SKIPPED}

    def proposal_for(self, seat: Seat) -> Basket | None:
        """Return the basket standing in *seat*'s slot."""
        return self.proposal_a if seat is Seat.A else self.proposal_b

    def with_proposal(self, seat: Seat, basket: Basket) -> FloorState:
        """Return a copy with *basket* placed in *seat*'s slot."""
        field = "proposal_a" if seat is Seat.A else "proposal_b"
        return self.model_copy(update={field: basket})

    def filled_seats(self) -> tuple[Seat, ...]:
        """Seats whose proposal slot currently holds a basket."""
        return tuple(seat for seat in Seat if self.proposal_for(seat) is not None)

    def finalize(
        self, winner: Basket | None, committed_by: CommittedBy
    ) -> FloorState:
        """Return a finalized copy, clearing both proposal slots."""
        if winner:
            return FloorState(
                floor_number=self.floor_number,
                status=FloorStatus.AGREED,
                winner_cards=PlacedCard.from_basket(winner),
                committed_by=committed_by,
            )
        return FloorState(
            floor_number=self.floor_number,
            status=FloorStatus.SKIPPED,
            committed_by=CommittedBy.NONE,
        )

    def reopen(self) -> FloorState:
        """Return a copy ready for renegotiation after a recall."""
        return FloorState(floor_number=self.floor_number, status=FloorStatus.REOPENED)


class LedgerUse(BaseModel):
    """One placed card recorded in the building ledger."""

    model_config = ConfigDict(frozen=True)

    instance_id: str
    card_id: str
    name: str
    category: str
    footprint: int = Field(ge=0)
    units: PositiveInt
    impact: int
    owner: PlayerRole | None = None


class FloorLedger(BaseModel):
    """Aggregate footprint and score for one floor."""

    model_config = ConfigDict(frozen=True)

    floor_number: PositiveInt
    uses: tuple[LedgerUse, ...] = Field(..., min_length=1)

    @property
    def footprint_used(self) -> int:
        return sum(use.footprint for use in self.uses)

    @property
    def score(self) -> int:
        return sum(use.impact for use in self.uses)


class BuildingLedger(BaseModel):
    """Append/retract record of everything built so far.

    Retracting a floor removes exactly what placing it added, so
    ``ledger.place(n, cards).retract(n)[0] == ledger`` for any floor ``n``
    that was empty beforehand.
    """

    model_config = ConfigDict(frozen=True)

    baseline_score: int = 0
    score_penalties_total: int = 0
    floors: tuple[FloorLedger, ...] = Field(default_factory=tuple)

    def net_score(self) -> int:
        """Fold the ledger into the current net score."""
        return (
            self.baseline_score
            + self.score_penalties_total
            + sum(floor.score for floor in self.floors)
        )

    def floor(self, floor_number: int) -> FloorLedger | None:
        for entry in self.floors:
            if entry.floor_number == floor_number:
                return entry
        return None

    @property
    def footprint_used(self) -> int:
        return sum(floor.footprint_used for floor in self.floors)

    def place(
        self,
        floor_number: int,
        cards: Iterable[PlacedCard],
        owner: PlayerRole | None = None,
    ) -> BuildingLedger:
        """Return a ledger with *cards* recorded on *floor_number*."""
        uses = tuple(
            LedgerUse(
                instance_id=placed.card.instance_id,
                card_id=placed.card.card_id,
                name=placed.card.name,
                category=placed.card.definition.category,
                footprint=placed.footprint,
                units=placed.units,
                impact=placed.impact,
                owner=owner,
            )
            for placed in cards
        )
        if not uses:
            return self
        existing = self.floor(floor_number)
        merged = FloorLedger(
            floor_number=floor_number,
            uses=(*existing.uses, *uses) if existing is not None else uses,
        )
        others = tuple(f for f in self.floors if f.floor_number != floor_number)
        ordered = tuple(sorted((*others, merged), key=lambda f: f.floor_number))
        return self.model_copy(update={"floors": ordered})

    def retract(
        self, floor_number: int
    ) -> tuple[BuildingLedger, tuple[LedgerUse, ...]]:
        """Remove every use recorded on *floor_number*."""
        existing = self.floor(floor_number)
        if existing is None:
            return self, ()
        others = tuple(f for f in self.floors if f.floor_number != floor_number)
        return self.model_copy(update={"floors": others}), existing.uses

    def apply_penalty(self, delta: int) -> BuildingLedger:
        """Return a ledger with *delta* added to the penalty total."""
        return self.model_copy(
            update={"score_penalties_total": self.score_penalties_total + delta}
        )


class GameState(BaseModel):
    """Root game state, replaced wholesale on every engine transition."""

    model_config = ConfigDict(frozen=True)

    game_phase: GamePhase = GamePhase.TITLE
    players: tuple[PlayerState, ...] = Field(default_factory=tuple)
    floors: tuple[FloorState, ...] = Field(default_factory=tuple)
    deck: tuple[CardInstance, ...] = Field(default_factory=tuple)
    discard: tuple[CardInstance, ...] = Field(default_factory=tuple)
    ledger: BuildingLedger = Field(default_factory=BuildingLedger)
    current_floor: PositiveInt = 1
    current_player_index: int = Field(default=0, ge=0, le=1)
    game_over_reason: GameOverReason | None = None
    winner: GameOutcome | None = None

    @model_validator(mode="after")
    def _validate_roster(self) -> GameState:
        """A started game always has exactly two players in seat order."""
        if self.game_phase is GamePhase.TITLE:
            return self
        if len(self.players) != 2:  # noqa: PLR2004
            msg = "A started game requires exactly two players."
            raise ValueError(msg)
        if tuple(player.seat for player in self.players) != (Seat.A, Seat.B):
            msg = "Players must be ordered by seat."
            raise ValueError(msg)
        if len({player.id for player in self.players}) != 2:  # noqa: PLR2004
            msg = "Player identifiers must be unique."
            raise ValueError(msg)
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def current_score(self) -> int:
        """Net score derived from the building ledger."""
        return self.ledger.net_score()

    @property
    def max_stories(self) -> int:
        return len(self.floors)

    @property
    def current_player(self) -> PlayerState | None:
        if not self.players:
            return None
        return self.players[self.current_player_index]

    def player_by_id(self, player_id: str) -> PlayerState | None:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def player_in_seat(self, seat: Seat) -> PlayerState:
        return self.players[seat.index]

    def floor(self, floor_number: int) -> FloorState | None:
        if 1 <= floor_number <= len(self.floors):
            return self.floors[floor_number - 1]
        return None

    def remaining_cards(self) -> tuple[CardInstance, ...]:
        """Cards still in circulation: the deck plus both hands."""
        held = tuple(card for player in self.players for card in player.hand)
        return (*self.deck, *held)

    def with_player(self, player: PlayerState) -> GameState:
        """Return a copy with *player* replacing the occupant of its seat."""
        players = list(self.players)
        players[player.seat.index] = player
        return self.model_copy(update={"players": tuple(players)})

    def with_floor(self, floor: FloorState) -> GameState:
        """Return a copy with *floor* replacing the floor of the same number."""
        floors = list(self.floors)
        floors[floor.floor_number - 1] = floor
        return self.model_copy(update={"floors": tuple(floors)})


__all__ = [
    "Basket",
    "BuildingLedger",
    "FloorLedger",
    "FloorState",
    "GameState",
    "LedgerUse",
    "PlacedCard",
    "PlayerState",
]
