"""
Reference table tests: loading, lookups, fixed identities and faults.
"""

import pytest

from sanctuary.content.tables import (
    FAMILIAR_COUNT,
    ReferenceTables,
    get_reference_tables,
    normalize_name,
)
from sanctuary.errors import ReferenceDataError


class TestLoading:

    def test_table_sizes(self, tables):
        assert len(tables.monsters) == 111
        assert len(tables.areas) == 13
        assert len(tables.relics) == 32
        assert len(tables.monster_types) == 18

    def test_ids_match_positions(self, tables):
        for position, monster in enumerate(tables.monsters):
            assert monster.id == position
        for position, area in enumerate(tables.areas):
            assert area.id == position

    def test_cached(self):
        assert get_reference_tables() is get_reference_tables()

    def test_randomizable_domain(self, tables):
        domain = tables.randomizable_ids
        assert domain[0] == FAMILIAR_COUNT == 4
        assert domain[-1] == 109
        assert len(domain) == 106

    def test_every_randomizable_monster_lives_in_one_area(self, tables):
        placed = [m for area in tables.areas for m in area.monsters]
        assert sorted(placed) == list(tables.randomizable_ids)

    def test_check_lists_are_subsets(self, tables):
        for area in tables.areas:
            assert set(area.randomizer_check_list) <= set(area.monsters)

    def test_swimming_list_drops_empty_slot(self, tables):
        assert -1 not in tables.swimming_monsters
        assert tables.swimming_monsters == (43, 49, 67, 87)


class TestFixedIdentities:

    def test_koi_and_tanuki(self, tables):
        assert tables.koi_id == 49
        assert tables.tanuki_id == 50

    def test_terminal_area(self, tables):
        assert tables.area(tables.terminal_area_id).name == "Forgotten World"

    def test_instantiate_draws_resolved_by_name(self, tables):
        vaero = tables.find_monster("Vaero")
        assert tables.instantiate_draws[vaero.id] == 1
        assert tables.instantiate_draws.get(tables.find_monster("Blob").id, 0) == 0
        assert len(tables.instantiate_draws) == 15


class TestLookups:

    def test_normalize_name(self):
        assert normalize_name("Warrior's Brand") == "warriorsbrand"
        assert normalize_name("  Goblin  Hood ") == "goblinhood"

    def test_find_by_name(self, tables):
        assert tables.find_monster("mad eye").name == "Mad Eye"
        assert tables.find_area("BLUECAVES").name == "Blue Caves"
        assert tables.find_relic("warriors brand").name == "Warrior's Brand"
        assert tables.find_monster("Missingno") is None

    def test_out_of_range_lookups_raise(self, tables):
        with pytest.raises(ReferenceDataError):
            tables.monster(111)
        with pytest.raises(ReferenceDataError):
            tables.area(-1)
        with pytest.raises(ReferenceDataError):
            tables.relic(99)
        with pytest.raises(ReferenceDataError):
            tables.scene(4800)
        with pytest.raises(ReferenceDataError):
            tables.ability_group("Teleport")

    def test_has_ability(self, tables):
        assert tables.has_ability(tables.find_monster("Yowie").id, "BreakWall")
        assert tables.has_ability(tables.find_monster("Nightwing").id, "ImprovedFlying")
        assert tables.has_ability(tables.find_monster("Vaero").id, "MountOrFlying")
        assert not tables.has_ability(tables.find_monster("Blob").id, "Mount")

    def test_lookups_by_id(self, tables):
        assert tables.monster(5).name == "Yowie"
        assert tables.monster_type(1).name == "Bird"
        with pytest.raises(ReferenceDataError):
            tables.monster_type(len(tables.monster_types))

    def test_mount_or_flying_is_mount_plus_flying(self, tables):
        merged = tables.ability_group("MountOrFlying").explore_actions
        assert merged == (tables.ability_group("Mount").explore_actions
                          | tables.ability_group("Flying").explore_actions)

    def test_scenes_belong_to_their_area(self, tables):
        for area in tables.areas:
            for scene_id in area.area_data:
                assert tables.scene(scene_id).area_id == area.id

    def test_monster_name_none(self, tables):
        assert tables.monster_name(None) == "(none)"


class TestFaults:

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ReferenceDataError):
            ReferenceTables.load(tmp_path / "nowhere")

    def test_malformed_json(self, data_copy):
        path = data_copy()
        with open(f"{path}/Relics.json", "w", encoding="utf-8") as f:
            f.write("[{")
        with pytest.raises(ReferenceDataError):
            ReferenceTables.load(path)

    def test_dangling_scene(self, data_copy):
        def edit(areas):
            areas[0]["areaData"].append(999)
            return areas
        with pytest.raises(ReferenceDataError):
            ReferenceTables.load(data_copy({"MonsterAreas.json": edit}))

    def test_missing_fixed_monster(self, data_copy):
        def edit(monsters):
            monsters[50]["name"] = "Raccoon"
            return monsters
        with pytest.raises(ReferenceDataError, match="Tanuki"):
            ReferenceTables.load(data_copy({"MonsterJournalList.json": edit}))

    def test_unknown_instantiate_monster(self, data_copy):
        with pytest.raises(ReferenceDataError):
            ReferenceTables.load(data_copy({
                "InstantiateDraws.json": lambda rows: rows + [{"monster": "Nobody", "draws": 1}],
            }))

    def test_missing_field(self, data_copy):
        def edit(relics):
            del relics[0]["monsterTypeRestriction"]
            return relics
        with pytest.raises(ReferenceDataError):
            ReferenceTables.load(data_copy({"Relics.json": edit}))

    def test_listed_mount_or_flying_is_rebuilt(self, data_copy):
        def edit(groups):
            return groups + [{"name": "MountOrFlying", "exploreActions": [0]}]
        tables = ReferenceTables.load(data_copy({"ExploreAbilities.json": edit}))
        assert tables.ability_group("MountOrFlying").explore_actions == frozenset({3, 4, 5, 6, 19})

    def test_missing_flying_group(self, data_copy):
        def edit(groups):
            return [g for g in groups if g["name"] != "Flying"]
        with pytest.raises(ReferenceDataError):
            ReferenceTables.load(data_copy({"ExploreAbilities.json": edit}))
