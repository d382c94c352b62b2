"""Immutable value objects shared across the game logic."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

FloorMarker = int | Literal["ground", "roof"]


class FloorRequirement(BaseModel):
    """Placement constraint restricting where a card may be built.

    Markers are either explicit floor numbers or the symbolic ``"ground"``
    (floor 1) and ``"roof"`` (the top floor of the building).
    """

    model_config = ConfigDict(frozen=True)

    markers: tuple[FloorMarker, ...] = Field(..., min_length=1)

    @field_validator("markers")
    @classmethod
    def _validate_markers(
        cls, markers: tuple[FloorMarker, ...]
    ) -> tuple[FloorMarker, ...]:
        for marker in markers:
            if isinstance(marker, int) and marker < 1:
                msg = "Floor numbers in a placement constraint start at 1."
                raise ValueError(msg)
        return markers

    def allows(self, floor_number: int, max_stories: int) -> bool:
        """Return ``True`` when the card may be placed on *floor_number*."""
        for marker in self.markers:
            if marker == "ground" and floor_number == 1:
                return True
            if marker == "roof" and floor_number == max_stories:
                return True
            if isinstance(marker, int) and marker == floor_number:
                return True
        return False


__all__ = ["FloorMarker", "FloorRequirement"]
