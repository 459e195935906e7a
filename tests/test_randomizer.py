"""
Randomizer mapping tests.

Every mapping must be a bijection over the randomizable ids, honour the
per-area candidate rules and pass all four reachability checks.
"""

import pytest

from sanctuary.generation.randomizer import (
    RandomizerRules,
    determine_random_mapping,
    draw_replacement,
    generate_randomizer_mapping,
    mapping_is_reachable,
)
from sanctuary.generation.result import RandomizerMapping
from sanctuary.state.rng import UnityRandom


@pytest.fixture(scope="module")
def rules(tables):
    return RandomizerRules.from_tables(tables)


@pytest.fixture(scope="module")
def mappings(tables, rules):
    return {
        seed: generate_randomizer_mapping(UnityRandom(seed), tables, rules)
        for seed in (0, 1, 2, 42, 1234, 65535, 999999)
    }


class TestBijection:

    def test_domain_and_image(self, tables, mappings):
        domain = set(tables.randomizable_ids)
        for mapping in mappings.values():
            assert set(mapping.replacements) == domain
            assert set(mapping.replacements.values()) == domain

    def test_koi_gets_swimmer(self, tables, mappings):
        for mapping in mappings.values():
            assert mapping.replacement(tables.koi_id) in tables.swimming_set

    def test_fixed_monsters_unmapped(self, tables, mappings):
        for mapping in mappings.values():
            for monster_id in (0, 1, 2, 3, 110):
                assert mapping.replacement(monster_id) == monster_id


class TestCandidateRules:

    def test_no_improved_flying_early(self, tables, rules, mappings):
        for mapping in mappings.values():
            for monster_id in rules.no_improved_flying:
                if monster_id in mapping.replacements:
                    assert not tables.has_ability(mapping.replacement(monster_id), "ImprovedFlying")

    def test_no_swimmers_early(self, tables, rules, mappings):
        for mapping in mappings.values():
            for monster_id in rules.no_swimming:
                if monster_id == tables.koi_id:
                    continue
                assert mapping.replacement(monster_id) not in tables.swimming_set

    def test_tanuki_restricted(self, tables, rules):
        assert tables.tanuki_id in rules.no_improved_flying
        assert tables.tanuki_id in rules.no_swimming


class TestReachability:

    def test_every_mapping_reachable(self, tables, rules, mappings):
        for mapping in mappings.values():
            assert mapping_is_reachable(mapping, tables, rules)

    def test_identity_mapping_reachable(self, tables, rules):
        """The vanilla game is beatable."""
        identity = RandomizerMapping({m: m for m in tables.randomizable_ids})
        assert mapping_is_reachable(identity, tables, rules)

    def test_four_checks(self, rules):
        assert [c.ability for c in rules.checks] == [
            "Mount", "MountOrFlying", "ImprovedFlying", "SecretVision",
        ]
        assert rules.checks[-1].full_monster_lists


class TestDraws:

    def test_deterministic(self, tables, rules):
        a = generate_randomizer_mapping(UnityRandom(777), tables, rules)
        b = generate_randomizer_mapping(UnityRandom(777), tables, rules)
        assert a == b

    def test_different_seeds_differ(self, mappings):
        assert mappings[0] != mappings[1]

    def test_single_attempt_is_none_or_valid(self, tables, rules):
        for seed in range(20):
            mapping = determine_random_mapping(UnityRandom(seed), tables, rules)
            if mapping is not None:
                assert mapping_is_reachable(mapping, tables, rules)

    def test_exhausted_pool_returns_none_without_drawing(self, tables):
        rng = UnityRandom(5)
        swimmers = list(tables.swimming_monsters)
        assert draw_replacement(rng, tables, swimmers, True, False) is None
        assert rng.counter == 0

    def test_replacement_comes_from_pool(self, tables):
        rng = UnityRandom(5)
        pool = [4, 5, 6]
        for _ in range(20):
            assert draw_replacement(rng, tables, pool, False, False) in pool
