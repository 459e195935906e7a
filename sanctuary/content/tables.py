"""
Reference tables - the static game data every generator reads.

All tables are loaded from the JSON files shipped in sanctuary/data/json and
validated once. Ids are positions: Monster.id is the monster's index in the
journal, MapArea.id its index in the area list, and so on. Generators only
ever hold ids, never table rows.

Fixed identities the game hard-codes (Koi, Tanuki, the areas named by the
reachability rules, the terminal area) are resolved by name at load time so
a renamed or reordered table fails loudly instead of drifting silently.
"""

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple, Union

from ..errors import ReferenceDataError

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent.parent / "data" / "json"

# Journal layout: the first entries are the spectral familiars, the last
# entry is never randomized.
FAMILIAR_COUNT = 4

# Names the generators refer to
KOI = "Koi"
TANUKI = "Tanuki"

MOUNTAIN_PATH = "Mountain Path"
BLUE_CAVES = "Blue Caves"
STRONGHOLD_DUNGEON = "Stronghold Dungeon"
ANCIENT_WOODS = "Ancient Woods"
SNOWY_PEAKS = "Snowy Peaks"
SUN_PALACE = "Sun Palace"
HORIZON_BEACH = "Horizon Beach"
MAGMA_CHAMBER = "Magma Chamber"
MYSTICAL_WORKSHOP = "Mystical Workshop"
FORGOTTEN_WORLD = "Forgotten World"

# Ability groups (ExploreAbilities.json names)
BREAK_WALL = "BreakWall"
MOUNT = "Mount"
FLYING = "Flying"
IMPROVED_FLYING = "ImprovedFlying"
SECRET_VISION = "SecretVision"
MOUNT_OR_FLYING = "MountOrFlying"
IGNITE = "Ignite"
LIGHT = "Light"
CRUSH = "Crush"
BIG_ROCK = "BigRock"
GRAPPLING = "Grappling"
BLOB_FORM = "BlobForm"
LEVITATE = "Levitate"


def normalize_name(name: str) -> str:
    """Lower-case, whitespace and apostrophes removed ("Mad Eye" -> "madeye")."""
    return "".join(name.split()).replace("'", "").lower()


# =============================================================================
# Table rows
# =============================================================================

@dataclass(frozen=True)
class MonsterType:
    id: int
    name: str


@dataclass(frozen=True)
class ExploreAction:
    id: int
    name: str


@dataclass(frozen=True)
class AbilityGroup:
    """A named set of explore actions, e.g. BreakWall = Claws/Ram/Slash."""
    name: str
    explore_actions: FrozenSet[int]


@dataclass(frozen=True)
class Monster:
    id: int
    name: str
    explore_action: int
    monster_types: Tuple[int, ...]


@dataclass(frozen=True)
class MapArea:
    """
    A map area.

    monsters is every monster found in the area; randomizer_check_list is the
    subset the randomizer's reachability checks look at; area_data lists the
    scene ids that can hold the area's relic chest.
    """
    id: int
    name: str
    monsters: Tuple[int, ...]
    randomizer_check_list: Tuple[int, ...]
    area_data: Tuple[int, ...]


@dataclass(frozen=True)
class AreaSceneData:
    area_id: int
    scene_id: int
    scene_name: str
    chests: Tuple[int, ...]


@dataclass(frozen=True)
class Relic:
    id: int
    name: str
    monster_type_restriction: int  # 0 = unrestricted

    @property
    def is_restricted(self) -> bool:
        return self.monster_type_restriction != 0


# =============================================================================
# Loading helpers
# =============================================================================

def _read_json(data_dir: Path, filename: str) -> Any:
    path = data_dir / filename
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        raise ReferenceDataError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ReferenceDataError(f"Malformed JSON in {path}: {e}") from e


def _field(entry: Any, key: str, filename: str) -> Any:
    if not isinstance(entry, dict) or key not in entry:
        raise ReferenceDataError(f"{filename}: entry {entry!r} has no '{key}'")
    return entry[key]


def _check_positions(rows: Iterable[Any], filename: str) -> None:
    for position, row in enumerate(rows):
        if row.id != position:
            raise ReferenceDataError(
                f"{filename}: id {row.id} found at position {position}"
            )


# =============================================================================
# Reference tables
# =============================================================================

class ReferenceTables:
    """
    Immutable view over every game table.

    Build with ReferenceTables.load() (or the cached get_reference_tables());
    the constructor validates cross references and raises ReferenceDataError
    on the first inconsistency.
    """

    def __init__(
        self,
        monsters: List[Monster],
        monster_types: List[MonsterType],
        explore_actions: List[ExploreAction],
        ability_groups: List[AbilityGroup],
        areas: List[MapArea],
        scenes: List[AreaSceneData],
        relics: List[Relic],
        swimming_monsters: List[int],
        instantiate_draws: Dict[int, int],
    ):
        self.monsters: Tuple[Monster, ...] = tuple(monsters)
        self.monster_types: Tuple[MonsterType, ...] = tuple(monster_types)
        self.explore_actions: Tuple[ExploreAction, ...] = tuple(explore_actions)
        self.ability_groups: Dict[str, AbilityGroup] = {g.name: g for g in ability_groups}
        self.ability_groups[MOUNT_OR_FLYING] = self._mount_or_flying()
        self.areas: Tuple[MapArea, ...] = tuple(areas)
        self.relics: Tuple[Relic, ...] = tuple(relics)
        self.swimming_monsters: Tuple[int, ...] = tuple(swimming_monsters)
        self.swimming_set: FrozenSet[int] = frozenset(swimming_monsters)
        self.instantiate_draws: Dict[int, int] = dict(instantiate_draws)
        self._scenes: Dict[int, AreaSceneData] = {s.scene_id: s for s in scenes}

        self._validate()

        # monster id -> names of every group its explore action belongs to
        self._abilities: Dict[int, FrozenSet[str]] = {
            m.id: frozenset(
                g.name for g in self.ability_groups.values()
                if m.explore_action in g.explore_actions
            )
            for m in self.monsters
        }

        self._monsters_by_name = {normalize_name(m.name): m for m in self.monsters}
        self._areas_by_name = {normalize_name(a.name): a for a in self.areas}
        self._relics_by_name = {normalize_name(r.name): r for r in self.relics}

        self.koi_id = self._require_monster(KOI).id
        self.tanuki_id = self._require_monster(TANUKI).id
        self.terminal_area_id = self.area_named(FORGOTTEN_WORLD).id

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    @classmethod
    def load(cls, data_dir: Optional[Union[str, Path]] = None) -> "ReferenceTables":
        """Load and validate all tables from data_dir (default: shipped data)."""
        data_dir = Path(data_dir) if data_dir is not None else DATA_DIR
        logger.debug("Loading reference tables from %s", data_dir)

        monster_types = [
            MonsterType(id=_field(e, "id", "MonsterTypes.json"), name=_field(e, "name", "MonsterTypes.json"))
            for e in _read_json(data_dir, "MonsterTypes.json")
        ]
        explore_actions = [
            ExploreAction(id=_field(e, "id", "ExploreActions.json"), name=_field(e, "name", "ExploreActions.json"))
            for e in _read_json(data_dir, "ExploreActions.json")
        ]
        ability_groups = [
            AbilityGroup(
                name=_field(e, "name", "ExploreAbilities.json"),
                explore_actions=frozenset(_field(e, "exploreActions", "ExploreAbilities.json")),
            )
            for e in _read_json(data_dir, "ExploreAbilities.json")
        ]

        monsters = []
        for e in _read_json(data_dir, "MonsterJournalList.json"):
            monsters.append(Monster(
                id=_field(e, "id", "MonsterJournalList.json"),
                name=_field(e, "name", "MonsterJournalList.json"),
                explore_action=_field(e, "exploreAction", "MonsterJournalList.json"),
                monster_types=tuple(_field(e, "monsterTypes", "MonsterJournalList.json")),
            ))

        areas = []
        for e in _read_json(data_dir, "MonsterAreas.json"):
            areas.append(MapArea(
                id=_field(e, "id", "MonsterAreas.json"),
                name=_field(e, "name", "MonsterAreas.json"),
                monsters=tuple(_field(e, "monsters", "MonsterAreas.json")),
                randomizer_check_list=tuple(_field(e, "randomizerCheckList", "MonsterAreas.json")),
                area_data=tuple(_field(e, "areaData", "MonsterAreas.json")),
            ))

        scenes = []
        for e in _read_json(data_dir, "AreaData.json"):
            scenes.append(AreaSceneData(
                area_id=_field(e, "areaId", "AreaData.json"),
                scene_id=_field(e, "sceneId", "AreaData.json"),
                scene_name=_field(e, "sceneName", "AreaData.json"),
                chests=tuple(_field(e, "chests", "AreaData.json")),
            ))

        relics = [
            Relic(
                id=_field(e, "id", "Relics.json"),
                name=_field(e, "name", "Relics.json"),
                monster_type_restriction=_field(e, "monsterTypeRestriction", "Relics.json"),
            )
            for e in _read_json(data_dir, "Relics.json")
        ]

        # -1 marks an empty slot in the game's list
        swimming = [
            monster_id for monster_id in _read_json(data_dir, "SwimmingMonsterList.json")
            if monster_id != -1 and 0 <= monster_id < len(monsters)
        ]

        by_name = {normalize_name(m.name): m.id for m in monsters}
        instantiate_draws: Dict[int, int] = {}
        for e in _read_json(data_dir, "InstantiateDraws.json"):
            name = _field(e, "monster", "InstantiateDraws.json")
            if normalize_name(name) not in by_name:
                raise ReferenceDataError(f"InstantiateDraws.json: unknown monster '{name}'")
            instantiate_draws[by_name[normalize_name(name)]] = int(_field(e, "draws", "InstantiateDraws.json"))

        tables = cls(
            monsters=monsters,
            monster_types=monster_types,
            explore_actions=explore_actions,
            ability_groups=ability_groups,
            areas=areas,
            scenes=scenes,
            relics=relics,
            swimming_monsters=swimming,
            instantiate_draws=instantiate_draws,
        )
        logger.debug(
            "Loaded %d monsters, %d areas, %d relics",
            len(tables.monsters), len(tables.areas), len(tables.relics),
        )
        return tables

    def _validate(self) -> None:
        _check_positions(self.monsters, "MonsterJournalList.json")
        _check_positions(self.monster_types, "MonsterTypes.json")
        _check_positions(self.explore_actions, "ExploreActions.json")
        _check_positions(self.areas, "MonsterAreas.json")
        _check_positions(self.relics, "Relics.json")

        if len(self.monsters) <= FAMILIAR_COUNT + 1:
            raise ReferenceDataError("Monster journal is too short")

        n_monsters = len(self.monsters)
        for monster in self.monsters:
            if not 0 <= monster.explore_action < len(self.explore_actions):
                raise ReferenceDataError(
                    f"Monster {monster.name} has unknown explore action {monster.explore_action}"
                )
            for type_id in monster.monster_types:
                if not 0 <= type_id < len(self.monster_types):
                    raise ReferenceDataError(f"Monster {monster.name} has unknown type {type_id}")

        for group in self.ability_groups.values():
            for action in group.explore_actions:
                if not 0 <= action < len(self.explore_actions):
                    raise ReferenceDataError(f"Ability {group.name} has unknown action {action}")

        for area in self.areas:
            for monster_id in area.monsters + area.randomizer_check_list:
                if not 0 <= monster_id < n_monsters:
                    raise ReferenceDataError(f"Area {area.name} references unknown monster {monster_id}")
            if not area.area_data:
                raise ReferenceDataError(f"Area {area.name} has no scenes")
            for scene_id in area.area_data:
                scene = self._scenes.get(scene_id)
                if scene is None:
                    raise ReferenceDataError(f"Area {area.name} references unknown scene {scene_id}")
                if scene.area_id != area.id:
                    raise ReferenceDataError(
                        f"Scene {scene.scene_name} belongs to area {scene.area_id}, not {area.id}"
                    )
                if not scene.chests:
                    raise ReferenceDataError(f"Scene {scene.scene_name} has no chests")

        for relic in self.relics:
            if not 0 <= relic.monster_type_restriction < len(self.monster_types):
                raise ReferenceDataError(
                    f"Relic {relic.name} has unknown type restriction {relic.monster_type_restriction}"
                )

        domain = set(self.randomizable_ids)
        if not self.swimming_monsters:
            raise ReferenceDataError("Swimming monster list is empty")
        for monster_id in self.swimming_monsters:
            if monster_id not in domain:
                raise ReferenceDataError(f"Swimming monster {monster_id} is not randomizable")

    def _mount_or_flying(self) -> AbilityGroup:
        """Mount and Flying merged; the game never lists this group itself."""
        missing = [n for n in (MOUNT, FLYING) if n not in self.ability_groups]
        if missing:
            raise ReferenceDataError(f"Ability groups missing from ExploreAbilities.json: {missing}")
        return AbilityGroup(
            name=MOUNT_OR_FLYING,
            explore_actions=self.ability_groups[MOUNT].explore_actions
            | self.ability_groups[FLYING].explore_actions,
        )

    def _require_monster(self, name: str) -> Monster:
        monster = self.find_monster(name)
        if monster is None:
            raise ReferenceDataError(f"Monster '{name}' is missing from the journal")
        return monster

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    @property
    def randomizable_ids(self) -> range:
        """Journal ids the randomizer remaps (familiars and last entry excluded)."""
        return range(FAMILIAR_COUNT, len(self.monsters) - 1)

    def monster(self, monster_id: int) -> Monster:
        if not 0 <= monster_id < len(self.monsters):
            raise ReferenceDataError(f"Unknown monster id {monster_id}")
        return self.monsters[monster_id]

    def monster_type(self, type_id: int) -> MonsterType:
        if not 0 <= type_id < len(self.monster_types):
            raise ReferenceDataError(f"Unknown monster type id {type_id}")
        return self.monster_types[type_id]

    def area(self, area_id: int) -> MapArea:
        if not 0 <= area_id < len(self.areas):
            raise ReferenceDataError(f"Unknown area id {area_id}")
        return self.areas[area_id]

    def relic(self, relic_id: int) -> Relic:
        if not 0 <= relic_id < len(self.relics):
            raise ReferenceDataError(f"Unknown relic id {relic_id}")
        return self.relics[relic_id]

    def scene(self, scene_id: int) -> AreaSceneData:
        try:
            return self._scenes[scene_id]
        except KeyError:
            raise ReferenceDataError(f"Unknown scene id {scene_id}") from None

    def area_named(self, name: str) -> MapArea:
        area = self.find_area(name)
        if area is None:
            raise ReferenceDataError(f"Area '{name}' is missing from the area table")
        return area

    def find_monster(self, name: str) -> Optional[Monster]:
        return self._monsters_by_name.get(normalize_name(name))

    def find_area(self, name: str) -> Optional[MapArea]:
        return self._areas_by_name.get(normalize_name(name))

    def find_relic(self, name: str) -> Optional[Relic]:
        return self._relics_by_name.get(normalize_name(name))

    def ability_group(self, name: str) -> AbilityGroup:
        try:
            return self.ability_groups[name]
        except KeyError:
            raise ReferenceDataError(f"Unknown ability group '{name}'") from None

    def has_ability(self, monster_id: int, group: str) -> bool:
        """True if the monster's explore action belongs to the ability group."""
        return group in self._abilities[monster_id]

    def monster_name(self, monster_id: Optional[int]) -> str:
        return self.monster(monster_id).name if monster_id is not None else "(none)"


@lru_cache(maxsize=None)
def _cached_tables(data_dir: Optional[str]) -> ReferenceTables:
    return ReferenceTables.load(data_dir)


def get_reference_tables(data_dir: Optional[Union[str, Path]] = None) -> ReferenceTables:
    """Process-wide cached tables, one instance per data directory."""
    return _cached_tables(str(data_dir) if data_dir is not None else None)
