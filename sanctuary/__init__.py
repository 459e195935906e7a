"""
Monster Sanctuary seed generation.

Reproduces, for any seed, the randomizer mapping, bravery monsters and
relic placement the game itself would generate.

Modules:
- state: UnityEngine.Random emulation
- content: reference tables (monsters, areas, relics)
- generation: randomizer, bravery and relic generators
- simulation: multi-process batch generation
- storage: seed database and filter files
"""

from .generation.engine import SeedGenerator
from .generation.result import GameModes, GenerationResult

__version__ = "1.0.0"

__all__ = ["SeedGenerator", "GameModes", "GenerationResult"]
