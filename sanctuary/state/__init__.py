"""
State module - the game's random number generator.

Contains:
- Xorshift128 core matching UnityEngine.Random
- UnityRandom wrapper with Range/value semantics and draw counting
"""

from .rng import DrawSource, Xorshift128, UnityRandom

__all__ = ["DrawSource", "Xorshift128", "UnityRandom"]
