"""
Skirmish - Card Battler Turn Engine

A stateless, rules-driven engine that resolves one combat turn between a
player and an AI-controlled enemy. The engine takes the full prior turn
state and provides:
- Ability normalization
- Precedence-ordered pre-damage resolution
- A persistent effect ledger
- Multi-turn on-field scheduling
- Damage, instant death and revive
- An enemy decision policy
"""

__version__ = "0.1.0"
