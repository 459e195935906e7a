"""
SeedGenerator tests: mode ordering, determinism and bad-seed reporting.
"""

import json

import pytest

from sanctuary.generation import bravery as bravery_module
from sanctuary.generation.bravery import solve_bravery
from sanctuary.generation.engine import MAX_RANDOM_SEED, SeedGenerator
from sanctuary.generation.randomizer import generate_randomizer_mapping
from sanctuary.generation.relics import place_relics
from sanctuary.generation.result import BadSeedRecord, GameModes
from sanctuary.state.rng import UnityRandom


ALL_MODES = [
    (r, b, l)
    for r in (False, True)
    for b in (False, True)
    for l in (False, True)
    if r or b or l
]


class TestDeterminism:

    @pytest.mark.parametrize("modes", ALL_MODES)
    def test_same_seed_same_result(self, generator, modes):
        r, b, l = modes
        first = generator.generate(31, randomizer=r, bravery=b, relics=l)
        second = generator.generate(31, randomizer=r, bravery=b, relics=l)
        assert first == second

    def test_fresh_generator_matches_reused(self, tables, generator, sample_seeds):
        for seed in sample_seeds:
            generator.generate(seed + 1, randomizer=True, bravery=True, relics=True)
        fresh = SeedGenerator(tables)
        for seed in sample_seeds[:3]:
            assert generator.generate(seed, True, True, True) == fresh.generate(seed, True, True, True)

    def test_modes_recorded(self, generator):
        result = generator.generate(8, randomizer=True, relics=True)
        assert result.modes == GameModes(randomizer=True, relics=True)
        assert result.bravery is None
        assert result.randomizer is not None
        assert result.relics is not None


class TestDrawOrder:

    def test_randomizer_is_drawn_first(self, generator, sample_seeds):
        for seed in sample_seeds:
            alone = generator.generate(seed, randomizer=True).randomizer
            with_relics = generator.generate(seed, randomizer=True, relics=True).randomizer
            assert alone == with_relics
            full = generator.generate(seed, randomizer=True, bravery=True)
            if full is not None:
                assert full.randomizer == alone

    def test_relics_alone_start_at_seed(self, tables, generator):
        result = generator.generate(77, relics=True)
        assert result.relics == place_relics(UnityRandom(77), tables)

    def test_bravery_follows_randomizer(self, tables, generator):
        rng = UnityRandom(1234)
        mapping = generate_randomizer_mapping(rng, tables)
        outcome = solve_bravery(rng, tables, mapping=mapping)
        result = generator.generate(1234, randomizer=True, bravery=True)
        if outcome.assignment is None:
            assert result is None
        else:
            assert result.bravery == outcome.assignment

    def test_randomizer_changes_bravery(self, generator, sample_seeds):
        differs = 0
        for seed in sample_seeds:
            plain = generator.generate(seed, bravery=True)
            mixed = generator.generate(seed, randomizer=True, bravery=True)
            if plain is not None and mixed is not None and plain.bravery != mixed.bravery:
                differs += 1
        assert differs > 0


class TestBadSeeds:

    def test_reported_once(self, unsolvable_tables, bad_seeds, monkeypatch):
        monkeypatch.setattr(bravery_module, "MAX_TRIES", 50)
        generator = SeedGenerator(unsolvable_tables, bad_seed_sink=bad_seeds.append)
        assert generator.generate(12, randomizer=True, bravery=True, relics=True) is None
        assert bad_seeds == [BadSeedRecord(seed=12, modes_label="Randomizer | Bravery | Relic")]

    def test_no_sink(self, unsolvable_tables, monkeypatch, caplog):
        monkeypatch.setattr(bravery_module, "MAX_TRIES", 50)
        generator = SeedGenerator(unsolvable_tables)
        with caplog.at_level("WARNING"):
            assert generator.generate(3, bravery=True) is None
        assert "Bad seed found: 3" in caplog.text

    def test_modes_without_bravery_never_bad(self, unsolvable_tables, bad_seeds):
        generator = SeedGenerator(unsolvable_tables, bad_seed_sink=bad_seeds.append)
        assert generator.generate(12, randomizer=True, relics=True) is not None
        assert bad_seeds == []

    def test_record_line(self):
        record = BadSeedRecord(seed=5, modes_label="Bravery")
        assert record.line() == "Seed: 5 - Game modes: Bravery"


class TestResult:

    def test_to_dict_is_json(self, generator, sample_seeds):
        for seed in sample_seeds:
            result = generator.generate(seed, True, True, True)
            if result is None:
                continue
            data = json.loads(json.dumps(result.to_dict()))
            assert data["seed"] == seed
            assert len(data["relics"]) == len(generator.tables.areas)
            assert len(data["bravery"]["army"]) == 7
            return
        pytest.fail("no solvable seed in sample")

    def test_all_monsters(self, generator, sample_seeds):
        for seed in sample_seeds:
            result = generator.generate(seed, bravery=True)
            if result is not None:
                monsters = result.bravery.all_monsters()
                assert result.bravery.bex in monsters
                assert set(result.bravery.starters) <= set(monsters)

    def test_label(self):
        assert GameModes(True, False, True).label == "Randomizer | Relic"
        assert not GameModes().any()

    def test_generate_random_range(self, generator, monkeypatch):
        seen = []
        monkeypatch.setattr(
            "sanctuary.generation.engine.random.randrange",
            lambda n: seen.append(n) or 4242,
        )
        result = generator.generate_random(relics=True)
        assert result.seed == 4242
        assert seen == [MAX_RANDOM_SEED]
