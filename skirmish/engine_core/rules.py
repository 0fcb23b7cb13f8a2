"""
Engine rules - Tunable game constants.
"""

from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class EngineRules:
    hand_size: int = 3
    start_hand_size: int = 5
    max_field_slots: int = 3
    skip_sp_gain: float = 2
    defend_sp_gain: float = 1


DEFAULT_RULES = EngineRules()
