"""
Randomizer Mode - Monster replacement mapping

Replicates how the game builds its randomizer mapping.

Key mechanics:
1. The pool holds every randomizable journal id (4..109)
2. Koi is mapped first, to a monster drawn from the swimming list
3. Every other id, in journal order, draws pool[Range(0, len(pool))]
   until the candidate is acceptable, then removes it from the pool
4. Four reachability checks run on the finished mapping; any failure
   throws the whole mapping away and starts over from step 1

Candidate rules:
- Monsters living in Blue Caves or Mountain Path (and Tanuki) may not be
  replaced by an ImprovedFlying monster
- Monsters living in the early areas (and Tanuki) may not be replaced by
  a swimming monster

RNG Usage:
- One Range(0, n) for the swimming pick, one per candidate drawn
- No draws are made by the reachability checks
"""

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple

from ..content.tables import (
    ANCIENT_WOODS,
    BLUE_CAVES,
    HORIZON_BEACH,
    IMPROVED_FLYING,
    MAGMA_CHAMBER,
    MOUNT,
    MOUNT_OR_FLYING,
    MOUNTAIN_PATH,
    MYSTICAL_WORKSHOP,
    SECRET_VISION,
    SNOWY_PEAKS,
    STRONGHOLD_DUNGEON,
    SUN_PALACE,
    ReferenceTables,
)
from ..state.rng import DrawSource
from .result import RandomizerMapping

logger = logging.getLogger(__name__)


# Areas whose monsters can't become ImprovedFlying monsters
NO_IMPROVED_FLYING_AREAS = (BLUE_CAVES, MOUNTAIN_PATH)

# Areas whose monsters can't become swimming monsters
NO_SWIMMING_AREAS = (
    BLUE_CAVES, MOUNTAIN_PATH, ANCIENT_WOODS, STRONGHOLD_DUNGEON,
    SNOWY_PEAKS, SUN_PALACE, MAGMA_CHAMBER, MYSTICAL_WORKSHOP,
)

# (ability, areas searched through their randomizer check lists)
CHECK_LIST_RULES = (
    (MOUNT, (BLUE_CAVES, MOUNTAIN_PATH, STRONGHOLD_DUNGEON, ANCIENT_WOODS,
             SNOWY_PEAKS, SUN_PALACE)),
    (MOUNT_OR_FLYING, (BLUE_CAVES, MOUNTAIN_PATH, STRONGHOLD_DUNGEON, ANCIENT_WOODS)),
    (IMPROVED_FLYING, (STRONGHOLD_DUNGEON, ANCIENT_WOODS, SNOWY_PEAKS, SUN_PALACE,
                       MAGMA_CHAMBER, HORIZON_BEACH)),
)


@dataclass(frozen=True)
class ReachabilityCheck:
    """At least one effective monster in these areas must have the ability."""
    ability: str
    area_ids: Tuple[int, ...]
    full_monster_lists: bool = False


@dataclass(frozen=True)
class RandomizerRules:
    """Area names resolved to ids once per table set."""
    no_improved_flying: FrozenSet[int]
    no_swimming: FrozenSet[int]
    checks: Tuple[ReachabilityCheck, ...]

    @classmethod
    def from_tables(cls, tables: ReferenceTables) -> "RandomizerRules":
        def monsters_in(names) -> FrozenSet[int]:
            found = set()
            for name in names:
                found.update(tables.area_named(name).monsters)
            found.add(tables.tanuki_id)
            return frozenset(found)

        checks = [
            ReachabilityCheck(ability, tuple(tables.area_named(n).id for n in names))
            for ability, names in CHECK_LIST_RULES
        ]
        # Secret vision looks at every monster outside the terminal area
        checks.append(ReachabilityCheck(
            SECRET_VISION,
            tuple(a.id for a in tables.areas if a.id != tables.terminal_area_id),
            full_monster_lists=True,
        ))
        return cls(
            no_improved_flying=monsters_in(NO_IMPROVED_FLYING_AREAS),
            no_swimming=monsters_in(NO_SWIMMING_AREAS),
            checks=tuple(checks),
        )


def check_passes(
    mapping: RandomizerMapping,
    tables: ReferenceTables,
    check: ReachabilityCheck,
) -> bool:
    for area_id in check.area_ids:
        area = tables.areas[area_id]
        monsters = area.monsters if check.full_monster_lists else area.randomizer_check_list
        for monster_id in monsters:
            if tables.has_ability(mapping.replacement(monster_id), check.ability):
                return True
    return False


def mapping_is_reachable(
    mapping: RandomizerMapping,
    tables: ReferenceTables,
    rules: RandomizerRules,
) -> bool:
    return all(check_passes(mapping, tables, check) for check in rules.checks)


def _acceptable(
    candidate: int,
    tables: ReferenceTables,
    allow_improved_flying: bool,
    allow_swimming: bool,
) -> bool:
    if not allow_improved_flying and tables.has_ability(candidate, IMPROVED_FLYING):
        return False
    if not allow_swimming and candidate in tables.swimming_set:
        return False
    return True


def draw_replacement(
    rng: DrawSource,
    tables: ReferenceTables,
    pool: List[int],
    allow_improved_flying: bool,
    allow_swimming: bool,
) -> Optional[int]:
    """
    Draw pool[Range(0, len(pool))] until the candidate is acceptable.

    Returns None without drawing when nothing in the pool is acceptable.
    """
    if not any(_acceptable(m, tables, allow_improved_flying, allow_swimming) for m in pool):
        return None

    while True:
        candidate = pool[rng.range(0, len(pool))]
        if _acceptable(candidate, tables, allow_improved_flying, allow_swimming):
            return candidate


def determine_random_mapping(
    rng: DrawSource,
    tables: ReferenceTables,
    rules: Optional[RandomizerRules] = None,
) -> Optional[RandomizerMapping]:
    """
    One mapping attempt.

    Returns the mapping, or None when it fails a reachability check or the
    pool runs out of acceptable candidates.
    """
    if rules is None:
        rules = RandomizerRules.from_tables(tables)

    domain = tables.randomizable_ids
    pool = list(domain)

    swimming = tables.swimming_monsters[rng.range(0, len(tables.swimming_monsters))]
    pool.remove(swimming)
    replacements: Dict[int, int] = {tables.koi_id: swimming}

    for monster_id in domain:
        if monster_id == tables.koi_id:
            continue

        replacement = draw_replacement(
            rng,
            tables,
            pool,
            allow_improved_flying=monster_id not in rules.no_improved_flying,
            allow_swimming=monster_id not in rules.no_swimming,
        )
        if replacement is None:
            logger.debug("Randomizer pool exhausted at monster %d", monster_id)
            return None

        pool.remove(replacement)
        replacements[monster_id] = replacement

    mapping = RandomizerMapping(replacements)
    if not mapping_is_reachable(mapping, tables, rules):
        return None
    return mapping


def generate_randomizer_mapping(
    rng: DrawSource,
    tables: ReferenceTables,
    rules: Optional[RandomizerRules] = None,
) -> RandomizerMapping:
    """Retry determine_random_mapping until a mapping passes every check."""
    if rules is None:
        rules = RandomizerRules.from_tables(tables)

    attempts = 1
    mapping = determine_random_mapping(rng, tables, rules)
    while mapping is None:
        attempts += 1
        mapping = determine_random_mapping(rng, tables, rules)

    logger.debug("Randomizer mapping found after %d attempt(s)", attempts)
    return mapping
