"""
Bots module - Enemy AI implementations.

Provides:
- EnemyPolicy: Interface for enemy decision-making
- ScoredEnemyPolicy: Authored priorities, combos and thresholds
- AIConfig: Configurable play styles
"""

from .policy import EnemyPolicy, EnemyDecision, ScoredEnemyPolicy, RandomEnemyPolicy
from .personality import AIConfig, PERSONALITIES, get_personality

__all__ = [
    "EnemyPolicy",
    "EnemyDecision",
    "ScoredEnemyPolicy",
    "RandomEnemyPolicy",
    "AIConfig",
    "PERSONALITIES",
    "get_personality",
]
