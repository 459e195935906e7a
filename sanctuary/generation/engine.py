"""
Seed Generator - Runs the enabled game modes for one seed.

The game seeds UnityEngine.Random once and then runs, on that single
stream: randomizer, bravery, relics. A mode that is off makes no draws,
so turning the randomizer on changes the bravery result for the same seed.

Every call builds a fresh rng and fresh scratch state; a SeedGenerator
can be reused for any number of seeds and shared by nothing else.
"""

import logging
import random
from typing import Callable, Optional

from ..content.tables import ReferenceTables, get_reference_tables
from ..state.rng import DrawSource, UnityRandom
from .bravery import BraveryRules, solve_bravery
from .randomizer import RandomizerRules, generate_randomizer_mapping
from .relics import place_relics
from .result import BadSeedRecord, GameModes, GenerationResult

logger = logging.getLogger(__name__)

# The game's own random seed range
MAX_RANDOM_SEED = 1_000_000

BadSeedSink = Callable[[BadSeedRecord], None]


class SeedGenerator:
    """
    Deterministic seed -> GenerationResult.

    Usage:
        generator = SeedGenerator()
        result = generator.generate(1234, randomizer=True, relics=True)
    """

    def __init__(
        self,
        tables: Optional[ReferenceTables] = None,
        bad_seed_sink: Optional[BadSeedSink] = None,
        rng_factory: Callable[[int], DrawSource] = UnityRandom,
    ):
        """
        Args:
            tables: Reference tables (process-wide cached tables if omitted)
            bad_seed_sink: Called once per unsolvable seed
            rng_factory: Builds a seeded draw source
        """
        self.tables = tables if tables is not None else get_reference_tables()
        self.randomizer_rules = RandomizerRules.from_tables(self.tables)
        self.bravery_rules = BraveryRules.from_tables(self.tables)
        self.bad_seed_sink = bad_seed_sink
        self._rng_factory = rng_factory

    def generate(
        self,
        seed: int,
        randomizer: bool = False,
        bravery: bool = False,
        relics: bool = False,
    ) -> Optional[GenerationResult]:
        """
        Generate every enabled mode for seed.

        Returns None when bravery is enabled and the seed can't be solved;
        the bad seed is logged and handed to the sink.
        """
        modes = GameModes(randomizer=randomizer, bravery=bravery, relics=relics)
        rng = self._rng_factory(seed)

        mapping = None
        if randomizer:
            mapping = generate_randomizer_mapping(rng, self.tables, self.randomizer_rules)

        assignment = None
        warnings = ()
        if bravery:
            outcome = solve_bravery(rng, self.tables, self.bravery_rules, mapping, seed=seed)
            if outcome.assignment is None:
                self._report_bad_seed(BadSeedRecord(seed=seed, modes_label=modes.label))
                return None
            assignment = outcome.assignment
            warnings = outcome.warnings

        placement = None
        if relics:
            placement = place_relics(rng, self.tables, assignment)

        return GenerationResult(
            seed=seed,
            modes=modes,
            randomizer=mapping,
            bravery=assignment,
            relics=placement,
            warnings=warnings,
        )

    def generate_random(
        self,
        randomizer: bool = False,
        bravery: bool = False,
        relics: bool = False,
    ) -> Optional[GenerationResult]:
        """Generate for a seed picked uniformly from [0, 1_000_000)."""
        seed = random.randrange(MAX_RANDOM_SEED)
        return self.generate(seed, randomizer=randomizer, bravery=bravery, relics=relics)

    def _report_bad_seed(self, record: BadSeedRecord) -> None:
        logger.warning("Bad seed found: %d - Game modes: %s", record.seed, record.modes_label)
        if self.bad_seed_sink is not None:
            self.bad_seed_sink(record)
