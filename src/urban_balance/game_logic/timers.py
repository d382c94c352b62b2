"""Countdown for a single human turn."""

from __future__ import annotations

import asyncio
import contextlib
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from pydantic import BaseModel

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


class TurnTick(BaseModel):
    """One second of a turn countdown, as shown to the player."""

    player_id: str
    floor: int
    remaining_seconds: int
    expiring: bool
    deadline: datetime


class TurnTimer:
    """Counts one player's turn down to zero unless stopped first.

    A timer is bound to a single turn: the orchestrator builds a new one for
    every human turn and stops it as soon as the turn changes hands.
    ``expired`` only becomes ``True`` after the zero tick has been consumed.
    """

    def __init__(
        self,
        player_id: str,
        floor: int,
        *,
        duration_seconds: int = 30,
        warning_seconds: int = 10,
        tick_resolution_seconds: float = 1.0,
    ) -> None:
        if duration_seconds < 0:
            msg = "Turn duration must be non-negative."
            raise ValueError(msg)
        if tick_resolution_seconds < 0:
            msg = "Tick resolution must be non-negative."
            raise ValueError(msg)

        self.player_id = player_id
        self.floor = floor
        self._duration = duration_seconds
        self._warning = warning_seconds
        self._resolution = tick_resolution_seconds
        self._stop = asyncio.Event()
        self._expired = False

    @property
    def expired(self) -> bool:
        return self._expired

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        self._stop.set()

    async def countdown(self) -> AsyncIterator[TurnTick]:
        """Yield a tick per second from the full duration down to zero."""
        deadline = datetime.now(tz=UTC) + timedelta(seconds=self._duration)
        for remaining in range(self._duration, -1, -1):
            yield TurnTick(
                player_id=self.player_id,
                floor=self.floor,
                remaining_seconds=remaining,
                expiring=remaining < self._warning,
                deadline=deadline,
            )
            if self.stopped:
                return
            if remaining:
                with contextlib.suppress(TimeoutError):
                    await asyncio.wait_for(self._stop.wait(), self._resolution)
                if self.stopped:
                    return
        self._expired = True


__all__ = ["TurnTick", "TurnTimer"]
