"""
Turn events - Structured diagnostics returned with every turn.

Every interesting step of a resolution (rolls, blocks, upserts, field
hits, expiries) is recorded as a TurnEvent. The log travels back with
the TurnResult and is mirrored to the module logger at DEBUG.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class TurnEvent:
    phase: str  # "field", "pre_damage", "damage", "ledger", "ai", "piles", ...
    kind: str
    side: str | None = None
    detail: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"phase": self.phase, "kind": self.kind, "side": self.side, "detail": self.detail}


@dataclass
class EventLog:
    events: list[TurnEvent] = field(default_factory=list)

    def emit(self, phase: str, kind: str, side: Any = None, **detail: Any) -> TurnEvent:
        side_name = getattr(side, "value", side)
        event = TurnEvent(phase=phase, kind=kind, side=side_name, detail=detail)
        self.events.append(event)
        logger.debug("[%s][%s] %s %s", phase, kind, side_name or "-", detail)
        return event

    def of_kind(self, kind: str) -> list[TurnEvent]:
        return [e for e in self.events if e.kind == kind]

    def to_list(self) -> list[dict[str, Any]]:
        return [e.to_dict() for e in self.events]

    def __len__(self) -> int:
        return len(self.events)
