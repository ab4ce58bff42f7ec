"""
Server error hierarchy.

Every failure carries a machine-readable code, the human-readable message
sent back to clients, and the HTTP status the API layer answers with.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

__all__ = [
    "AuthenticationError",
    "IllegalMoveError",
    "InvalidRequestError",
    "OperationResult",
    "SequenceError",
    "TabServerError",
    "TurnError",
    "UnknownGameError",
]


class TabServerError(Exception):
    code: str = "TAB_ERROR"
    status: int = 400

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message}


class AuthenticationError(TabServerError):
    """Unknown nick, wrong password, or a nick re-registered with another password."""

    code = "AUTHENTICATION"
    status = 401


class InvalidRequestError(TabServerError):
    """Malformed arguments: bad group, even size, non-integer cell."""

    code = "INVALID_REQUEST"


class UnknownGameError(TabServerError):
    code = "UNKNOWN_GAME"
    status = 404


class TurnError(TabServerError):
    """The caller is not the player to move, or the game is over."""

    code = "NOT_YOUR_TURN"


class SequenceError(TabServerError):
    """Action out of order: rolling twice, moving before rolling, passing early."""

    code = "OUT_OF_SEQUENCE"


class IllegalMoveError(TabServerError):
    code = "ILLEGAL_MOVE"


@dataclass(slots=True)
class OperationResult:
    success: bool
    error: Optional[str] = None
    data: dict[str, Any] = field(default_factory=dict)
    status: int = 200

    @classmethod
    def ok(cls, **data: Any) -> "OperationResult":
        return cls(True, None, data)

    @classmethod
    def fail(cls, exc: TabServerError) -> "OperationResult":
        return cls(False, exc.message, {}, exc.status)
