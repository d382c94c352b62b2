"""Exceptions raised inside engine transitions.

Neither exception escapes :meth:`GameEngine.handle_action`; both are turned
into ``ERROR`` events there.
"""

from __future__ import annotations

from urban_balance.shared.events import ErrorCode


class ActionValidationError(Exception):
    """Raised when an action's precondition does not hold."""

    def __init__(self, code: ErrorCode, reason: str) -> None:
        super().__init__(reason)
        self.code = code
        self.reason = reason


class InvariantViolationError(Exception):
    """Raised when state that passed validation turns out to be inconsistent."""

    code = ErrorCode.INVARIANT_VIOLATION


__all__ = ["ActionValidationError", "InvariantViolationError"]
