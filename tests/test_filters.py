"""
Filter file parsing tests.
"""

import json
import os

import pytest

from sanctuary.errors import FilterError
from sanctuary.storage.filters import parse_filters


EXAMPLE = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "filters", "example.json")


@pytest.fixture
def write_filter(tmp_path):
    def _write(data, name="wanted.json"):
        path = tmp_path / name
        path.write_text(data if isinstance(data, str) else json.dumps(data), encoding="utf-8")
        return path
    return _write


class TestParsing:

    def test_example_file(self, tables):
        filters = parse_filters(EXAMPLE, True, True, True, tables)
        blob, koi = tables.find_monster("Blob").id, tables.find_monster("Koi").id
        catzerker = tables.find_monster("Catzerker").id
        assert filters.randomizer.monsters == {blob: koi}
        assert filters.randomizer.areas == {tables.area_named("Mountain Path").id: [catzerker]}
        assert filters.bravery.start == [catzerker]
        assert filters.bravery.areas == {tables.area_named("Blue Caves").id: tables.find_monster("Yowie").id}
        assert filters.relics.available == [tables.find_relic("Ancient Rune").id]

    def test_only_requested_sections(self, tables):
        filters = parse_filters(EXAMPLE, False, True, False, tables)
        assert filters.randomizer is None
        assert filters.relics is None
        assert filters.bravery is not None

    def test_names_are_normalized(self, tables, write_filter):
        path = write_filter({"Bravery": {"Bex": "mad eye", "Familiar": "SpectralEagle"}})
        filters = parse_filters(path, False, True, False, tables)
        assert filters.bravery.bex == tables.find_monster("Mad Eye").id
        assert filters.bravery.familiar == 1

    def test_unknown_names_skipped(self, tables, write_filter):
        path = write_filter({
            "Randomizer": {"Monsters": {"Blob": "Nobody", "Yowie": "Blob"}},
            "Bravery": {"Start": ["Nobody", "Blob"], "Areas": {"Nowhere": "Blob"}},
        })
        filters = parse_filters(path, True, True, False, tables)
        assert filters.randomizer.monsters == {5: 4}
        assert filters.bravery.start == [4]
        assert filters.bravery.areas == {}

    def test_relic_areas_section(self, tables, write_filter):
        path = write_filter({
            "Bravery": {"Areas": {"Sun Palace": "Blob"}},
            "Relics": {"Areas": {"Sun Palace": "Demonic Pact"}},
        })
        filters = parse_filters(path, False, True, True, tables)
        sun_palace = tables.area_named("Sun Palace").id
        assert filters.relics.areas == {sun_palace: tables.find_relic("Demonic Pact").id}
        assert filters.bravery.areas == {sun_palace: 4}

    def test_empty_file(self, tables, write_filter):
        filters = parse_filters(write_filter({}), True, True, True, tables)
        assert filters.randomizer.monsters == {}
        assert filters.bravery.start == []
        assert filters.relics.available == []


class TestErrors:

    def test_missing_file(self, tables, tmp_path):
        with pytest.raises(FilterError):
            parse_filters(tmp_path / "missing.json", True, False, False, tables)

    def test_malformed_json(self, tables, write_filter):
        with pytest.raises(FilterError):
            parse_filters(write_filter("{not json"), True, False, False, tables)

    def test_wrong_shape(self, tables, write_filter):
        with pytest.raises(FilterError):
            parse_filters(write_filter({"Bravery": {"Start": "Blob"}}), False, True, False, tables)

    def test_top_level_list(self, tables, write_filter):
        with pytest.raises(FilterError):
            parse_filters(write_filter([1, 2]), True, False, False, tables)
