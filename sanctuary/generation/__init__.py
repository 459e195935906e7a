"""
Generation module - Randomizer, bravery and relic generation.

All generators read one shared draw stream in a fixed order:
randomizer -> bravery -> relics.
"""

from .engine import SeedGenerator
from .result import (
    BadSeedRecord,
    BraveryAssignment,
    GameModes,
    GenerationResult,
    RandomizerMapping,
    RelicPlacement,
    RelicSlot,
)

__all__ = [
    "SeedGenerator",
    "BadSeedRecord",
    "BraveryAssignment",
    "GameModes",
    "GenerationResult",
    "RandomizerMapping",
    "RelicPlacement",
    "RelicSlot",
]
