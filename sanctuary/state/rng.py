"""
UnityEngine.Random emulation - Exact replication of the game's generator.

Monster Sanctuary draws every randomizer, bravery and relic decision from
the global UnityEngine.Random, a Xorshift128 generator with 32-bit state.

Seeding (Random.InitState):
    x = seed
    y = x * 1812433253 + 1
    z = y * 1812433253 + 1
    w = z * 1812433253 + 1

Draws (one raw step each):
- Range(int min, int max): min + next % (max - min); min == max consumes nothing
- value: (next & 0x7FFFFF) / 8388607 in float32, so [0, 1] inclusive
- Range(float min, float max): min * t + (1 - t) * max in float32

Any draw made by the game that the generators below do not need still has
to be consumed with skip(), otherwise every later draw for the seed drifts.
"""

from typing import Optional, Protocol, Tuple

import numpy as np


MASK_32 = 0xFFFFFFFF
INIT_MULTIPLIER = 1812433253

# Random.value keeps the low 23 bits and divides by 2^23 - 1
_MANTISSA_MASK = 0x7FFFFF
_INV_MANTISSA = np.float32(1.0 / 8388607.0)
_ONE = np.float32(1.0)


class DrawSource(Protocol):
    """The draw contract the generation procedures are written against."""

    def init_state(self, seed: int) -> None: ...

    def range(self, low: int, high: int) -> int: ...

    def range_float(self, low: float, high: float) -> float: ...

    def next_unit_float(self) -> float: ...

    def skip(self, count: int) -> None: ...


class Xorshift128:
    """
    Xorshift128 PRNG - matches UnityEngine.Random's internal generator.

    State is four unsigned 32-bit words (x, y, z, w).
    """

    def __init__(self, seed: int = 0, state: Optional[Tuple[int, int, int, int]] = None):
        """
        Initialize from a seed or from an explicit state tuple.

        Args:
            seed: Integer seed, reduced to unsigned 32 bits
            state: If provided, (x, y, z, w) copied verbatim (used by copy())
        """
        if state is not None:
            self.x, self.y, self.z, self.w = (v & MASK_32 for v in state)
        else:
            self.init_state(seed)

    def init_state(self, seed: int) -> None:
        """Random.InitState: derive all four words from the seed."""
        self.x = seed & MASK_32
        self.y = (self.x * INIT_MULTIPLIER + 1) & MASK_32
        self.z = (self.y * INIT_MULTIPLIER + 1) & MASK_32
        self.w = (self.z * INIT_MULTIPLIER + 1) & MASK_32

    def next_uint(self) -> int:
        """Generate next unsigned 32-bit value.

        ```c
        t = x ^ (x << 11);
        x = y; y = z; z = w;
        return w = w ^ (w >> 19) ^ (t ^ (t >> 8));
        ```
        """
        t = (self.x ^ (self.x << 11)) & MASK_32
        self.x, self.y, self.z = self.y, self.z, self.w
        self.w = (self.w ^ (self.w >> 19) ^ (t ^ (t >> 8))) & MASK_32
        return self.w

    def get_state(self) -> Tuple[int, int, int, int]:
        return (self.x, self.y, self.z, self.w)

    def copy(self) -> 'Xorshift128':
        return Xorshift128(state=self.get_state())


class UnityRandom:
    """
    UnityEngine.Random wrapper used by every generation procedure.

    Tracks how many raw steps were consumed since the last reseed, which is
    what parity checks compare when a seed drifts.

    Unity method signatures matched:
    - Random.InitState(int seed) -> init_state(seed)
    - Random.Range(int min, int max) -> range(min, max), max exclusive
    - Random.value -> value(), [0, 1] inclusive
    - Random.Range(float min, float max) -> range_float(min, max)
    """

    def __init__(self, seed: int = 0):
        self._rng = Xorshift128(seed)
        self.initial_seed = seed
        self.counter = 0

    def init_state(self, seed: int) -> None:
        """Reset all state purely as a function of seed."""
        self._rng.init_state(seed)
        self.initial_seed = seed
        self.counter = 0

    def range(self, low: int, high: int) -> int:
        """
        Random int in [low, high).

        Unity: RangedRandom(Rand& r, int min, int max)
            min < max -> min + r.Get() % (max - min)
            min > max -> min - r.Get() % (min - max)
            otherwise -> min, no draw
        """
        if low < high:
            self.counter += 1
            return low + self._rng.next_uint() % (high - low)
        if low > high:
            self.counter += 1
            return low - self._rng.next_uint() % (low - high)
        return low

    def value(self) -> float:
        """Random.value: float32 in [0, 1], both ends reachable."""
        self.counter += 1
        return float(self._value32())

    def range_float(self, low: float, high: float) -> float:
        """
        Random float between low and high.

        Unity: RangedRandom(Rand& r, float min, float max)
            t = Random01(r); return min * t + (1 - t) * max;
        """
        self.counter += 1
        t = self._value32()
        return float(np.float32(low) * t + (_ONE - t) * np.float32(high))

    def next_unit_float(self) -> float:
        """The Range(0f, 1f) draw every scoring loop in the game uses."""
        return self.range_float(0.0, 1.0)

    def skip(self, count: int) -> None:
        """Consume count raw steps without exposing their values."""
        for _ in range(count):
            self._rng.next_uint()
        self.counter += count

    def _value32(self) -> np.float32:
        bits = self._rng.next_uint() & _MANTISSA_MASK
        return np.float32(bits) * _INV_MANTISSA

    def get_state(self) -> Tuple[int, int, int, int]:
        return self._rng.get_state()

    def copy(self) -> 'UnityRandom':
        """Create a copy with same state and counter."""
        new = UnityRandom.__new__(UnityRandom)
        new._rng = self._rng.copy()
        new.initial_seed = self.initial_seed
        new.counter = self.counter
        return new

    # ============ ALIASES ============

    def seed(self, value: int) -> None:
        """Alias for init_state."""
        self.init_state(value)

    def next_int(self, low: int, high: int) -> int:
        """Alias for range."""
        return self.range(low, high)
