"""
Starter Content - A small card set and one training enemy.

Used by the default catalog and as a sample deck. Card structure:
- spCost, potency, defense
- type: Physical / Supernatural (damage type), or a utility type
- abilities (normalized at play time)
"""

STARTER_CARDS = [
    {
        "id": "slash",
        "name": "Slash",
        "rating": "C",
        "spCost": 1,
        "potency": 5,
        "defense": 0,
        "type": "Physical",
        "abilities": [],
    },
    {
        "id": "spirit-bolt",
        "name": "Spirit Bolt",
        "rating": "C",
        "spCost": 1,
        "potency": 6,
        "defense": 0,
        "type": "Supernatural",
        "abilities": [],
    },
    {
        "id": "brace",
        "name": "Brace",
        "rating": "C",
        "spCost": 1,
        "potency": 0,
        "defense": 4,
        "type": "Utility",
        "abilities": [
            {"type": "Guard", "duration": 1, "activationChance": 60, "precedence": 1},
        ],
    },
    {
        "id": "war-cry",
        "name": "War Cry",
        "rating": "B",
        "spCost": 2,
        "potency": 0,
        "defense": 0,
        "type": "Utility",
        "abilities": [
            {"type": "Stats Up", "power": 3, "duration": 2, "activationChance": 80, "precedence": 2},
        ],
    },
    {
        "id": "hex",
        "name": "Hex",
        "rating": "B",
        "spCost": 2,
        "potency": 2,
        "defense": 0,
        "type": "Supernatural",
        "abilities": [
            {
                "type": "Stats Down",
                "power": 2,
                "duration": 2,
                "activationChance": 70,
                "precedence": 2,
                "target": "durability",
            },
        ],
    },
    {
        "id": "piercing-thrust",
        "name": "Piercing Thrust",
        "rating": "B",
        "spCost": 2,
        "potency": 8,
        "defense": 0,
        "type": "Physical",
        "abilities": [
            {"type": "Durability Negation", "activationChance": 100, "precedence": 3},
        ],
    },
    {
        "id": "flurry",
        "name": "Flurry",
        "rating": "A",
        "spCost": 3,
        "potency": 4,
        "defense": 0,
        "type": "Physical",
        "abilities": [
            {"type": "Multi-Hit", "key": "flurry", "activationChance": 100, "multiHit": {"turns": 3}},
            {
                "type": "Unluck",
                "power": 10,
                "duration": 1,
                "activationChance": 100,
                "linkedTo": "flurry",
                "schedule": {"type": "list", "turns": [2]},
            },
        ],
    },
    {
        "id": "glacial-seal",
        "name": "Glacial Seal",
        "rating": "A",
        "spCost": 3,
        "potency": 0,
        "defense": 0,
        "type": "Supernatural",
        "abilities": [
            {"type": "Freeze", "duration": 1, "activationChance": 35, "precedence": 4},
        ],
    },
    {
        "id": "second-wind",
        "name": "Second Wind",
        "rating": "S",
        "spCost": 3,
        "potency": 0,
        "defense": 2,
        "type": "Utility",
        "abilities": [
            {"type": "Revive", "power": 50, "duration": 3, "activationChance": 100, "precedence": 1},
        ],
    },
]

STARTER_ENEMIES = [
    {
        "id": "training-golem",
        "name": "Training Golem",
        "description": "Slow, sturdy, and fond of bracing.",
        "stats": {
            "attackPower": 8,
            "physicalPower": 12,
            "supernaturalPower": 6,
            "durability": 14,
            "vitality": 2,
            "intelligence": 1,
            "speed": 3,
            "sp": 3,
            "maxSp": 5,
        },
        "moveSet": ["slash", "brace", "hex", "piercing-thrust", "flurry"],
        "personality": "cautious",
        "aiConfig": {
            "cardPriority": [
                {"cardId": "flurry", "priority": 5},
                {"cardId": "piercing-thrust", "priority": 3},
                {"cardId": "slash", "priority": 2},
                {"cardId": "hex", "priority": 2},
                {"cardId": "brace", "priority": 1},
            ],
            "combos": [
                {"cards": ["hex", "piercing-thrust"], "priority": 4},
            ],
        },
    },
]

STARTER_CONTENT = {
    "cards": STARTER_CARDS,
    "enemies": STARTER_ENEMIES,
}
