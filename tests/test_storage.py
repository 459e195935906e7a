"""
Seed database tests against a temporary SQLite file.
"""

import pytest
from sqlalchemy import func, select

from sanctuary.generation.engine import SeedGenerator
from sanctuary.simulation.batch import iter_mode_combinations
from sanctuary.storage.database import ROLE_COLUMNS, SeedDatabase, column_name
from sanctuary.storage.filters import BraveryFilter, FilterList, RandomizerFilter, RelicsFilter


SEEDS = range(6)


@pytest.fixture(scope="module")
def stored(tables, tmp_path_factory):
    """A database holding every mode combination for a few seeds."""
    path = tmp_path_factory.mktemp("db") / "seeds.db"
    db = SeedDatabase(f"sqlite:///{path}", tables)
    db.create_schema()
    db.populate_reference()

    generator = SeedGenerator(tables)
    results = []
    for seed in SEEDS:
        for modes in iter_mode_combinations():
            result = generator.generate(
                seed, randomizer=modes.randomizer, bravery=modes.bravery, relics=modes.relics
            )
            if result is not None:
                results.append(result)
    db.insert_results(results)
    return db, results


def _count(db, table):
    with db.engine.connect() as conn:
        return conn.execute(select(func.count()).select_from(table)).scalar_one()


class TestSchema:

    def test_column_name(self):
        assert column_name("Goblin Hood") == "GoblinHood"
        assert column_name("Champion's Rune") == "ChampionsRune"

    def test_role_columns(self):
        assert len(ROLE_COLUMNS) == 7 + 3 + 7
        assert ROLE_COLUMNS[:3] == ["Familiar", "Start1", "Start2"]

    def test_reference_rows(self, tables, stored):
        db, _ = stored
        assert _count(db, db.monster_table) == len(tables.monsters)
        assert _count(db, db.relic_table) == len(tables.relics)
        assert _count(db, db.area_table) == len(tables.areas)


class TestWriting:

    def test_one_game_row_per_result(self, stored):
        db, results = stored
        assert _count(db, db.game_table) == len(results)

    def test_randomizer_row_shared_with_bravery_game(self, stored):
        db, results = stored
        with_randomizer = [r for r in results if r.randomizer is not None]
        seeds = {r.seed for r in with_randomizer}
        assert _count(db, db.randomizer_table) == len(seeds)

    def test_clear(self, tables, tmp_path):
        db = SeedDatabase(f"sqlite:///{tmp_path / 'clear.db'}", tables)
        db.create_schema()
        db.populate_reference()
        db.insert_results([SeedGenerator(tables).generate(1, randomizer=True, relics=True)])
        db.clear()
        assert _count(db, db.game_table) == 0
        assert _count(db, db.monster_table) == 0


class TestFind:

    def test_round_trip(self, stored):
        db, results = stored
        expected = [r for r in results if r.modes.randomizer and r.modes.bravery]
        found = db.find(FilterList(), randomizer=True, bravery=True, relics=True)
        assert [r.seed for r in found] == [r.seed for r in expected]
        for got, want in zip(found, expected):
            assert got.randomizer == want.randomizer
            assert got.bravery == want.bravery
            assert got.relics == want.relics

    def test_mode_flags_are_exact(self, stored):
        db, _ = stored
        found = db.find(FilterList(), randomizer=False, bravery=True, relics=True)
        assert found
        assert all(not r.modes.randomizer and r.modes.bravery for r in found)

    def test_randomizer_filter(self, stored):
        db, results = stored
        target = next(r for r in results if r.modes.randomizer and not r.modes.bravery)
        monster_id, replacement = next(iter(target.randomizer))
        filters = FilterList(randomizer=RandomizerFilter(monsters={monster_id: replacement}))
        found = db.find(filters, randomizer=True, bravery=False, relics=True)
        assert target.seed in [r.seed for r in found]
        assert all(r.randomizer.replacement(monster_id) == replacement for r in found)

    def test_bravery_start_filter(self, stored):
        db, results = stored
        target = next(r for r in results if r.modes.bravery and not r.modes.randomizer)
        starter = target.bravery.starters[1]
        filters = FilterList(bravery=BraveryFilter(start=[starter]))
        found = db.find(filters, randomizer=False, bravery=True, relics=True)
        assert target.seed in [r.seed for r in found]
        assert all(starter in r.bravery.starters for r in found)

    def test_relic_area_filter(self, stored):
        db, results = stored
        target = next(r for r in results if r.modes.relics and not r.modes.bravery)
        slot = target.relics.slots[0]
        filters = FilterList(relics=RelicsFilter(areas={slot.area_id: slot.relic_id}))
        found = db.find(filters, randomizer=True, bravery=False, relics=True)
        assert target.seed in [r.seed for r in found]
        assert all(r.relics.relic_for_area(slot.area_id).relic_id == slot.relic_id for r in found)

    def test_no_match(self, stored):
        db, _ = stored
        filters = FilterList(bravery=BraveryFilter(familiar=99))
        assert db.find(filters, randomizer=False, bravery=True, relics=True) == []

    def test_limit_and_offset(self, stored):
        db, _ = stored
        everything = db.find(FilterList(), randomizer=True, bravery=False, relics=True)
        page = db.find(FilterList(), randomizer=True, bravery=False, relics=True, limit=2, offset=1)
        assert [r.seed for r in page] == [r.seed for r in everything[1:3]]
