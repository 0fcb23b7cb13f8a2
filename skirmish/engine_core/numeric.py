"""
Numeric helpers shared by the engine.

Gameplay data arrives loosely typed; every numeric read goes through
these so missing or garbage values degrade to a default instead of
raising mid-turn.
"""

from __future__ import annotations
import math
from typing import Any


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def to_number(value: Any, default: float = 0.0) -> float:
    """Coerce a loosely typed value to a finite float."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return default
    else:
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def to_int(value: Any, default: int = 0) -> int:
    """Coerce to int, truncating toward negative infinity like a floor."""
    number = to_number(value, float(default))
    return int(math.floor(number))


def is_number(value: Any) -> bool:
    """True for real finite numbers (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not (math.isnan(value) or math.isinf(value))


def tidy(value: float) -> int | float:
    """Return an int when the float has no fractional part (for wire output)."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value
