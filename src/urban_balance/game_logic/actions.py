"""Inbound intent messages accepted by the game engine."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter
from pydantic.config import ConfigDict

from urban_balance.shared.enums import ControllerKind, PlayerRole, Seat


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True)


class _PlayerAction(_Action):
    player_id: str = Field(..., min_length=1)


class StartGame(_Action):
    """Deal a fresh match; any running match is discarded first.

    The seed drives deck shuffling and, when ``human_seat`` is unset, the
    seat draw, so replaying the same action always deals the same game.
    """

    type: Literal["START_GAME"] = "START_GAME"
    human_role: PlayerRole
    seed: int = 0
    human_seat: Seat | None = None
    human_player_id: str = Field(default="human", min_length=1)
    human_name: str = Field(default="You", min_length=1)
    opponent_player_id: str = Field(default="ai", min_length=1)
    opponent_name: str = Field(default="City Planner AI", min_length=1)
    opponent_controller: ControllerKind = ControllerKind.AI


class ResetGame(_Action):
    type: Literal["RESET_GAME"] = "RESET_GAME"


class ProposeCard(_PlayerAction):
    """Lead player's opening proposal, optionally bundling extra cards."""

    type: Literal["PROPOSE_CARD"] = "PROPOSE_CARD"
    card_instance_id: str = Field(..., min_length=1)
    bundle: tuple[str, ...] = Field(default_factory=tuple)

    @property
    def instance_ids(self) -> tuple[str, ...]:
        return (self.card_instance_id, *self.bundle)


class CounterPropose(_PlayerAction):
    """Responder's alternative to the standing proposal."""

    type: Literal["COUNTER_PROPOSE"] = "COUNTER_PROPOSE"
    card_instance_id: str = Field(..., min_length=1)
    bundle: tuple[str, ...] = Field(default_factory=tuple)

    @property
    def instance_ids(self) -> tuple[str, ...]:
        return (self.card_instance_id, *self.bundle)


class AcceptProposal(_PlayerAction):
    type: Literal["ACCEPT_PROPOSAL"] = "ACCEPT_PROPOSAL"


class PassProposal(_PlayerAction):
    type: Literal["PASS_PROPOSAL"] = "PASS_PROPOSAL"


class UseRecall(_PlayerAction):
    type: Literal["USE_RECALL"] = "USE_RECALL"
    floor_number: int


class DrawCard(_PlayerAction):
    type: Literal["DRAW_CARD"] = "DRAW_CARD"


GameAction = Annotated[
    StartGame
    | ResetGame
    | ProposeCard
    | CounterPropose
    | AcceptProposal
    | PassProposal
    | UseRecall
    | DrawCard,
    Field(discriminator="type"),
]

GAME_ACTION_ADAPTER: TypeAdapter[GameAction] = TypeAdapter(GameAction)

PlayerAction = (
    ProposeCard | CounterPropose | AcceptProposal | PassProposal | UseRecall | DrawCard
)


__all__ = [
    "GAME_ACTION_ADAPTER",
    "AcceptProposal",
    "CounterPropose",
    "DrawCard",
    "GameAction",
    "PassProposal",
    "PlayerAction",
    "ProposeCard",
    "ResetGame",
    "StartGame",
    "UseRecall",
]
