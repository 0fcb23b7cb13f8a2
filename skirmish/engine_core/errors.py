"""
Engine errors.

Gameplay data degrades silently; only structurally invalid requests
raise, and they raise RejectedAction so the surrounding layer can turn
them into a client error instead of a crash.
"""

from __future__ import annotations
from enum import Enum


class RejectionCode(str, Enum):
    INSUFFICIENT_SP = "INSUFFICIENT_SP"
    UNKNOWN_CARD = "UNKNOWN_CARD"


class EngineError(Exception):
    """Base class for engine errors."""


class RejectedAction(EngineError):
    """A request the engine refuses to resolve."""

    def __init__(self, code: RejectionCode, message: str, details: dict | None = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def __repr__(self) -> str:
        return f"RejectedAction({self.code.value}, {self.message!r})"
