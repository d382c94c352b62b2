"""Card definitions, card instances and the default catalog."""

from __future__ import annotations

from functools import cache
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, PositiveInt, model_validator
from pydantic.config import ConfigDict

from urban_balance.shared.value_objects import FloorRequirement

if TYPE_CHECKING:
    from collections.abc import Iterable

    from urban_balance.shared.rng import DeterministicRandomService


class CardDefinition(BaseModel):
    """Static, immutable description of a card type."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    footprint: int = Field(default=0, ge=0)
    cost: int = Field(default=0, ge=0)
    cash_flow: int = 0
    net_score_impact: int
    requires_floor: FloorRequirement | None = None
    quantity: PositiveInt = 1

    def can_place(self, floor_number: int, max_stories: int) -> bool:
        """Return ``True`` if the card may be built on *floor_number*."""
        if self.requires_floor is None:
            return True
        return self.requires_floor.allows(floor_number, max_stories)


class CardInstance(BaseModel):
    """A concrete card (or stack of identical cards) moving through the game."""

    model_config = ConfigDict(frozen=True)

    instance_id: str = Field(..., min_length=1)
    definition: CardDefinition
    stack: PositiveInt = 1

    @property
    def card_id(self) -> str:
        return self.definition.id

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def impact(self) -> int:
        """Score contribution of the whole stack."""
        return self.definition.net_score_impact * self.stack

    @property
    def footprint(self) -> int:
        """Area used by the whole stack."""
        return self.definition.footprint * self.stack

    def can_place(self, floor_number: int, max_stories: int) -> bool:
        """Return ``True`` if the stack may be built on *floor_number*."""
        return self.definition.can_place(floor_number, max_stories)


class CardCatalog(BaseModel):
    """Static input table supplied to the engine at initialization."""

    model_config = ConfigDict(frozen=True)

    playable: tuple[CardDefinition, ...] = Field(..., min_length=1)
    mandatory: tuple[CardDefinition, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _validate_unique_ids(self) -> CardCatalog:
        """Card identifiers must be unique across the whole catalog."""
        identifiers = [card.id for card in (*self.playable, *self.mandatory)]
        if len(set(identifiers)) != len(identifiers):
            msg = "Card catalog contains duplicate card identifiers."
            raise ValueError(msg)
        return self

    @property
    def baseline_score(self) -> int:
        """Fixed score offset contributed by the mandatory impacts."""
        return sum(card.net_score_impact for card in self.mandatory)

    def get(self, card_id: str) -> CardDefinition | None:
        """Return the definition registered under *card_id*, if any."""
        for card in (*self.playable, *self.mandatory):
            if card.id == card_id:
                return card
        return None

    def build_deck(self, rng: DeterministicRandomService) -> tuple[CardInstance, ...]:
        """Return one instance per copy of every playable card, shuffled."""
        instances = [
            CardInstance(instance_id=f"{card.id}#{copy}", definition=card)
            for card in self.playable
            for copy in range(1, card.quantity + 1)
        ]
        return rng.shuffle(instances)


def stack_into_hand(
    hand: Iterable[CardInstance], card: CardInstance
) -> tuple[tuple[CardInstance, ...], CardInstance]:
    """Add *card* to *hand*, merging it into an existing slot of the same type.

    Returns the new hand together with the slot that now holds the card.
    """
    slots = list(hand)
    for index, slot in enumerate(slots):
        if slot.card_id == card.card_id:
            merged = slot.model_copy(update={"stack": slot.stack + card.stack})
            slots[index] = merged
            return tuple(slots), merged
    slots.append(card)
    return tuple(slots), card


def _ground_or(*floors: int) -> FloorRequirement:
    return FloorRequirement(markers=("ground", *floors))


_COMMUNITY_FLOORS = FloorRequirement(markers=(1, 2))

_PLAYABLE_CARDS: tuple[CardDefinition, ...] = (
    CardDefinition(
        id="affordable-rental-unit",
        name="1 unit - Affordable Rental",
        category="Housing",
        footprint=600,
        cost=600_000,
        cash_flow=41_724,
        net_score_impact=-10,
        quantity=4,
    ),
    CardDefinition(
        id="affordable-condo-unit",
        name="1 unit - Affordable Condo",
        category="Housing",
        footprint=600,
        cost=600_000,
        cash_flow=184_614,
        net_score_impact=-9,
        quantity=4,
    ),
    CardDefinition(
        id="market-rental-unit",
        name="1 unit - Market Rate Rental",
        category="Housing",
        footprint=700,
        cost=700_000,
        cash_flow=52_500,
        net_score_impact=9,
        quantity=3,
    ),
    CardDefinition(
        id="market-condo-unit",
        name="1 unit - Market Rate Condo",
        category="Housing",
        footprint=700,
        cost=700_000,
        cash_flow=400_001,
        net_score_impact=18,
        quantity=3,
    ),
    CardDefinition(
        id="art-gallery",
        name="Art Gallery",
        category="Community Facility",
        footprint=7_000,
        cost=8_400_000,
        cash_flow=336_000,
        net_score_impact=-123,
        requires_floor=_COMMUNITY_FLOORS,
    ),
    CardDefinition(
        id="dance-studio",
        name="Dance Studio",
        category="Community Facility",
        footprint=5_000,
        cost=6_000_000,
        cash_flow=240_000,
        net_score_impact=-122,
        requires_floor=_COMMUNITY_FLOORS,
    ),
    CardDefinition(
        id="vocational-school",
        name="Vocational School",
        category="Community Facility",
        footprint=7_000,
        cost=7_000_000,
        cash_flow=504_000,
        net_score_impact=-97,
        requires_floor=_COMMUNITY_FLOORS,
    ),
    CardDefinition(
        id="daycare",
        name="Daycare",
        category="Community Facility",
        footprint=8_000,
        cost=8_000_000,
        cash_flow=576_000,
        net_score_impact=-97,
        requires_floor=_COMMUNITY_FLOORS,
    ),
    CardDefinition(
        id="performance-space",
        name="Small Performance Space",
        category="Community Facility",
        footprint=6_000,
        cost=7_200_000,
        cash_flow=288_000,
        net_score_impact=-163,
        requires_floor=_COMMUNITY_FLOORS,
    ),
    CardDefinition(
        id="multipurpose-community-space",
        name="Multipurpose Community Space",
        category="Community Facility",
        footprint=5_000,
        cost=5_000_000,
        cash_flow=240_000,
        net_score_impact=-28,
        requires_floor=_COMMUNITY_FLOORS,
    ),
    CardDefinition(
        id="arcade",
        name="Arcade",
        category="Community Facility",
        footprint=5_000,
        cost=6_000_000,
        cash_flow=240_000,
        net_score_impact=-40,
        requires_floor=_COMMUNITY_FLOORS,
    ),
    CardDefinition(
        id="vendor-market",
        name="Vendor Market",
        category="Retail/Commercial",
        footprint=10_000,
        cost=8_500_000,
        cash_flow=480_000,
        net_score_impact=-53,
        requires_floor=_ground_or(1),
    ),
    CardDefinition(
        id="big-box-store",
        name="Big Box / Chain Store",
        category="Retail/Commercial",
        footprint=7_500,
        cost=6_375_000,
        cash_flow=900_000,
        net_score_impact=84,
        requires_floor=_ground_or(1),
    ),
    CardDefinition(
        id="grocery-store",
        name="Grocery Store",
        category="Retail/Commercial",
        footprint=3_000,
        cost=2_550_000,
        cash_flow=360_000,
        net_score_impact=-57,
        requires_floor=_ground_or(1),
    ),
    CardDefinition(
        id="restaurant",
        name="Restaurant",
        category="Retail/Commercial",
        footprint=3_000,
        cost=3_000_000,
        cash_flow=252_000,
        net_score_impact=-8,
        requires_floor=FloorRequirement(markers=("ground", 1, "roof")),
    ),
    CardDefinition(
        id="night-club",
        name="Night Club",
        category="Retail/Commercial",
        footprint=7_000,
        cost=7_000_000,
        cash_flow=588_000,
        net_score_impact=-7,
        requires_floor=_ground_or(1),
    ),
    CardDefinition(
        id="bank",
        name="Bank",
        category="Retail/Commercial",
        footprint=5_000,
        cost=5_000_000,
        cash_flow=480_000,
        net_score_impact=5,
        requires_floor=_ground_or(1),
    ),
    CardDefinition(
        id="roof-garden-bar",
        name="Roof Garden / Bar",
        category="Amenity",
        footprint=6_500,
        cost=6_500_000,
        net_score_impact=-21,
        requires_floor=FloorRequirement(markers=("roof",)),
    ),
    CardDefinition(
        id="public-plaza-bikes",
        name="Public Plaza w/ Bike Parking",
        category="Amenity",
        footprint=4_000,
        cost=4_000_000,
        net_score_impact=-15,
        requires_floor=FloorRequirement(markers=("ground",)),
    ),
    CardDefinition(
        id="hotel-room",
        name="Hotel (per room)",
        category="Hospitality",
        footprint=45_000,
        cost=45_000_000,
        cash_flow=5_400_000,
        net_score_impact=-20,
        quantity=2,
    ),
    CardDefinition(
        id="recording-studio",
        name="Recording Studio",
        category="Specialty",
        footprint=5_000,
        cost=6_000_000,
        cash_flow=125_000,
        net_score_impact=-120,
        requires_floor=_COMMUNITY_FLOORS,
    ),
)

_MANDATORY_CARDS: tuple[CardDefinition, ...] = (
    CardDefinition(
        id="energy-efficient-systems",
        name="Energy Efficient Systems",
        category="System",
        cost=35_000,
        cash_flow=1_200,
        net_score_impact=-8,
    ),
    CardDefinition(
        id="onsite-renewable-energy",
        name="Onsite Renewable Energy",
        category="System",
        cost=15_000,
        cash_flow=1_200,
        net_score_impact=-7,
    ),
)


@cache
def get_default_catalog() -> CardCatalog:
    """Return the cached catalog shipped with the game."""
    return CardCatalog(playable=_PLAYABLE_CARDS, mandatory=_MANDATORY_CARDS)


__all__ = [
    "CardCatalog",
    "CardDefinition",
    "CardInstance",
    "get_default_catalog",
    "stack_into_hand",
]
