"""
Chance - Activation and dodge probabilities.

All randomness is drawn from an injected random.Random so tests can
script outcomes.
"""

from __future__ import annotations
import random

from .numeric import clamp, to_number


def base_chance(activation_chance: float, chance_up: float, chance_down: float) -> float:
    """Activation chance shifted by the owner's Lucky and the opponent's Unluck."""
    return clamp(activation_chance + chance_up - chance_down, 0, 100)


def intelligence_bonus(base: float, intelligence: float) -> float:
    """
    Scale a chance by intelligence.

    Every 10 points of intelligence adds 1% of the base chance.
    """
    bonus = clamp(to_number(intelligence) / 1000, 0, 1)
    return clamp(base + base * bonus, 0, 100)


def final_chance(
    activation_chance: float,
    chance_up: float,
    chance_down: float,
    intelligence: float,
) -> float:
    return intelligence_bonus(base_chance(activation_chance, chance_up, chance_down), intelligence)


def roll(rng: random.Random, chance_pct: float) -> bool:
    """One draw against a percentage chance."""
    return rng.random() * 100 < clamp(chance_pct, 0, 100)


def dodge_probability(
    attacker_speed: float,
    defender_speed: float,
    defender_chance_up: float = 0.0,
    attacker_chance_down: float = 0.0,
) -> float:
    """Speed advantage in percentage points, shifted by Lucky/Unluck."""
    p = clamp((to_number(defender_speed) - to_number(attacker_speed)) / 100, 0, 1)
    return clamp(p + (defender_chance_up - attacker_chance_down) / 100, 0, 1)


def will_dodge(
    rng: random.Random,
    attacker_speed: float,
    defender_speed: float,
    defender_chance_up: float = 0.0,
    attacker_chance_down: float = 0.0,
) -> bool:
    p = dodge_probability(attacker_speed, defender_speed, defender_chance_up, attacker_chance_down)
    return rng.random() < p
