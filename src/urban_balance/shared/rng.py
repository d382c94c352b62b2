"""Seeded randomness for deck shuffles, seat draws and AI dice rolls."""

from __future__ import annotations

from collections.abc import Iterable  # noqa: TC003
from random import Random
from typing import TypeVar

_T = TypeVar("_T")


class DeterministicRandomService:
    """Seeded source of every random decision a match makes.

    Two services built from the same seed produce the same deck order, seat
    draw and AI rolls, which keeps matches replayable.
    """

    def __init__(self, seed: int | None = None) -> None:
        self._random = Random(seed)  # noqa: S311

    def shuffle(self, items: Iterable[_T]) -> tuple[_T, ...]:
        """Return *items* as a tuple in seeded random order."""
        cards = list(items)
        self._random.shuffle(cards)
        return tuple(cards)

    def draw(self) -> float:
        """Return a uniform draw in ``[0, 1)``."""
        return self._random.random()

    def coin_flip(self) -> bool:
        return self.draw() < 0.5  # noqa: PLR2004

    def next_seed(self) -> int:
        """Derive a fresh 32-bit seed from the current stream."""
        return self._random.getrandbits(32)


__all__ = ["DeterministicRandomService"]
