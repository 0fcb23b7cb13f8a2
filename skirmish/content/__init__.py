"""
Content - Bundled card and enemy definitions.
"""

from .starter import STARTER_CARDS, STARTER_ENEMIES, STARTER_CONTENT

__all__ = ["STARTER_CARDS", "STARTER_ENEMIES", "STARTER_CONTENT"]
