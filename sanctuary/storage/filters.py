"""
Seed filters - what a player wants from a seed, read from a JSON file.

Example (every section and key optional):

    {
        "Randomizer": {
            "Monsters": {"Spectral Wolf": "Koi"},
            "Areas": {"Mountain Path": ["Catzerker", "Yowie"]}
        },
        "Bravery": {
            "Available": ["Catzerker"], "Familiar": "Spectral Eagle",
            "Start": ["Blob"], "Swimming": "Koi", "Bex": "Vasuki",
            "Cryomancer": "Akhlut", "Cryomancer Required": "Ninki",
            "End of Time": ["Ascendant"], "Monster Army": ["Mad Lord"],
            "Areas": {"Blue Caves": "Yowie"}
        },
        "Relics": {
            "Available": ["Ancient Rune"],
            "Areas": {"Sun Palace": "Demonic Pact"}
        }
    }

Names are matched after normalize_name(); names that match nothing are
skipped with a debug log line.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..content.tables import ReferenceTables
from ..errors import FilterError

logger = logging.getLogger(__name__)


@dataclass
class RandomizerFilter:
    monsters: Dict[int, int] = field(default_factory=dict)      # original -> replacement
    areas: Dict[int, List[int]] = field(default_factory=dict)   # area -> wanted monsters


@dataclass
class BraveryFilter:
    available: List[int] = field(default_factory=list)
    familiar: Optional[int] = None
    start: List[int] = field(default_factory=list)
    swimming: Optional[int] = None
    bex: Optional[int] = None
    cryomancer: Optional[int] = None
    cryomancer_required: Optional[int] = None
    end_of_time: List[int] = field(default_factory=list)
    army: List[int] = field(default_factory=list)
    areas: Dict[int, int] = field(default_factory=dict)


@dataclass
class RelicsFilter:
    available: List[int] = field(default_factory=list)
    areas: Dict[int, int] = field(default_factory=dict)


@dataclass
class FilterList:
    randomizer: Optional[RandomizerFilter] = None
    bravery: Optional[BraveryFilter] = None
    relics: Optional[RelicsFilter] = None
    path: Optional[str] = None


class _Resolver:
    """Name -> id lookups that log and skip unknown names."""

    def __init__(self, tables: ReferenceTables, source: str):
        self.tables = tables
        self.source = source

    def monster(self, name: Any) -> Optional[int]:
        monster = self.tables.find_monster(name) if isinstance(name, str) else None
        if monster is None:
            logger.debug("%s: unknown monster %r skipped", self.source, name)
            return None
        return monster.id

    def area(self, name: Any) -> Optional[int]:
        area = self.tables.find_area(name) if isinstance(name, str) else None
        if area is None:
            logger.debug("%s: unknown area %r skipped", self.source, name)
            return None
        return area.id

    def relic(self, name: Any) -> Optional[int]:
        relic = self.tables.find_relic(name) if isinstance(name, str) else None
        if relic is None:
            logger.debug("%s: unknown relic %r skipped", self.source, name)
            return None
        return relic.id

    def monsters(self, names: Any) -> List[int]:
        ids = (self.monster(n) for n in _as_list(names, self.source))
        return [i for i in ids if i is not None]


def _as_list(value: Any, source: str) -> List[Any]:
    if not isinstance(value, list):
        raise FilterError(f"{source}: expected a list, got {type(value).__name__}")
    return value


def _as_dict(value: Any, source: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise FilterError(f"{source}: expected an object, got {type(value).__name__}")
    return value


def _parse_randomizer(section: Dict[str, Any], names: _Resolver) -> RandomizerFilter:
    result = RandomizerFilter()

    for original, replacement in _as_dict(section.get("Monsters", {}), "Randomizer.Monsters").items():
        original_id, replacement_id = names.monster(original), names.monster(replacement)
        if original_id is not None and replacement_id is not None:
            result.monsters[original_id] = replacement_id

    for area_name, wanted in _as_dict(section.get("Areas", {}), "Randomizer.Areas").items():
        area_id = names.area(area_name)
        wanted_ids = names.monsters(wanted)
        if area_id is not None and wanted_ids:
            result.areas[area_id] = wanted_ids

    return result


def _parse_bravery(section: Dict[str, Any], names: _Resolver) -> BraveryFilter:
    result = BraveryFilter()

    if "Available" in section:
        result.available = names.monsters(section["Available"])
    if "Familiar" in section:
        result.familiar = names.monster(section["Familiar"])
    if "Start" in section:
        result.start = names.monsters(section["Start"])
    if "Swimming" in section:
        result.swimming = names.monster(section["Swimming"])
    if "Bex" in section:
        result.bex = names.monster(section["Bex"])
    if "Cryomancer" in section:
        result.cryomancer = names.monster(section["Cryomancer"])
    if "Cryomancer Required" in section:
        result.cryomancer_required = names.monster(section["Cryomancer Required"])
    if "End of Time" in section:
        result.end_of_time = names.monsters(section["End of Time"])
    if "Monster Army" in section:
        result.army = names.monsters(section["Monster Army"])

    for area_name, monster_name in _as_dict(section.get("Areas", {}), "Bravery.Areas").items():
        area_id, monster_id = names.area(area_name), names.monster(monster_name)
        if area_id is not None and monster_id is not None:
            result.areas[area_id] = monster_id

    return result


def _parse_relics(section: Dict[str, Any], names: _Resolver) -> RelicsFilter:
    result = RelicsFilter()

    if "Available" in section:
        ids = (names.relic(n) for n in _as_list(section["Available"], "Relics.Available"))
        result.available = [i for i in ids if i is not None]

    for area_name, relic_name in _as_dict(section.get("Areas", {}), "Relics.Areas").items():
        area_id, relic_id = names.area(area_name), names.relic(relic_name)
        if area_id is not None and relic_id is not None:
            result.areas[area_id] = relic_id

    return result


def parse_filters(
    path: Union[str, Path],
    randomizer: bool,
    bravery: bool,
    relics: bool,
    tables: ReferenceTables,
) -> FilterList:
    """
    Read a filter file. Only sections for the requested modes are parsed.

    Raises:
        FilterError: unreadable file, malformed JSON, or a section of the
            wrong shape
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise FilterError(f"Cannot read filter {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise FilterError(f"Malformed filter {path}: {e}") from e

    data = _as_dict(data, str(path))
    names = _Resolver(tables, str(path))
    filters = FilterList(path=str(path))

    if randomizer:
        filters.randomizer = _parse_randomizer(_as_dict(data.get("Randomizer", {}), "Randomizer"), names)
    if bravery:
        filters.bravery = _parse_bravery(_as_dict(data.get("Bravery", {}), "Bravery"), names)
    if relics:
        filters.relics = _parse_relics(_as_dict(data.get("Relics", {}), "Relics"), names)

    return filters
