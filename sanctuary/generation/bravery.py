"""
Bravery Mode - One monster per area plus the fixed trade roles

Replicates the game's bravery generation draw for draw.

Setup (in order):
1. Swimming monster: swimming_list[Range(0, n)]
2. Bex: random monster, ImprovedFlying allowed, no swimmers, no familiars
3. Familiar Range(0, 4) and two starters (no ImprovedFlying, no swimmers).
   Some starters consume extra draws when the game instantiates them.

Area loop (in area-table order):
- Every area monster (after randomizer replacement) not used yet draws a
  Range(0f, 1f) score; the highest score wins
- Tanuki (the joker) replaces the winner when the area had no candidate,
  or when Tanuki is unused and Range(0f, 1f) < 0.1f, and then another
  Range(0f, 1f) beats the winning score

Five reachability rules must hold after the loop; otherwise the loop is
retried. Every 100 failed tries the familiar and starters are re-rolled,
and once tries exceed 10,000 the seed is given up on.

Success then derives, in order: Cryomancer, Cryomancer-required, the
seven army monsters, three End of Time monsters, and one discarded
Range(0, 1000) draw.
"""

import logging
from dataclasses import dataclass, field
from itertools import chain
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from ..content.tables import (
    ANCIENT_WOODS,
    BIG_ROCK,
    BLOB_FORM,
    BLUE_CAVES,
    BREAK_WALL,
    CRUSH,
    FAMILIAR_COUNT,
    GRAPPLING,
    HORIZON_BEACH,
    IGNITE,
    IMPROVED_FLYING,
    LEVITATE,
    LIGHT,
    MAGMA_CHAMBER,
    MOUNT,
    MOUNT_OR_FLYING,
    MOUNTAIN_PATH,
    SECRET_VISION,
    SNOWY_PEAKS,
    STRONGHOLD_DUNGEON,
    SUN_PALACE,
    ReferenceTables,
)
from ..state.rng import DrawSource
from .result import BraveryAssignment, RandomizerMapping

logger = logging.getLogger(__name__)


# 0.1f as the game compares it
JOKER_CHANCE = float(np.float32(0.1))

STARTER_REROLL_INTERVAL = 100
MAX_TRIES = 10000

# Range(0, 1000) made after End of Time, value unused
SHIFT_OFFSET_DRAWS = 1

ARMY_ABILITIES = (IGNITE, LIGHT, CRUSH, BIG_ROCK, GRAPPLING, BLOB_FORM, LEVITATE)


# =============================================================================
# Scratch state
# =============================================================================

@dataclass
class BraveryScratch:
    """Everything decided so far during one bravery generation."""
    familiar: int = 0
    starters: List[int] = field(default_factory=list)
    swimming: Optional[int] = None
    bex: Optional[int] = None
    cryomancer: Optional[int] = None
    cryomancer_required: Optional[int] = None
    area_monsters: Dict[int, int] = field(default_factory=dict)
    end_of_time: List[int] = field(default_factory=list)
    army: List[Optional[int]] = field(default_factory=list)

    def is_taken(self, monster_id: int) -> bool:
        """True if monster_id already fills any role."""
        if monster_id == self.familiar or monster_id in self.starters:
            return True
        if monster_id in (self.swimming, self.cryomancer, self.bex):
            return True
        if monster_id in self.area_monsters.values():
            return True
        return monster_id in self.end_of_time or monster_id in self.army

    def to_assignment(self) -> BraveryAssignment:
        return BraveryAssignment(
            familiar=self.familiar,
            starters=(self.starters[0], self.starters[1]),
            swimming=self.swimming,
            bex=self.bex,
            cryomancer=self.cryomancer,
            cryomancer_required=self.cryomancer_required,
            end_of_time=tuple(self.end_of_time),
            army=tuple(self.army),
            area_monsters=dict(self.area_monsters),
        )


@dataclass
class BraveryOutcome:
    """assignment is None when the seed was given up on after `tries` tries."""
    assignment: Optional[BraveryAssignment]
    tries: int
    warnings: Tuple[str, ...] = ()


# =============================================================================
# Reachability rules
# =============================================================================

@dataclass(frozen=True)
class PartyRule:
    """
    Someone in the party must carry the ability.

    The party is the area monsters of area_ids, plus optionally the two
    starters, the familiar and Bex.
    """
    ability: str
    area_ids: Tuple[int, ...]
    starters: bool = True
    familiar: bool = False
    bex: bool = False


@dataclass(frozen=True)
class BraveryRules:
    break_wall: PartyRule
    mount: PartyRule
    mount_or_flying: PartyRule
    improved_flying: PartyRule
    secret_vision: PartyRule
    endgame_area_ids: Tuple[int, ...]

    @property
    def all(self) -> Tuple[PartyRule, ...]:
        return (self.break_wall, self.mount, self.mount_or_flying,
                self.improved_flying, self.secret_vision)

    @classmethod
    def from_tables(cls, tables: ReferenceTables) -> "BraveryRules":
        def ids(*names: str) -> Tuple[int, ...]:
            return tuple(tables.area_named(name).id for name in names)

        endgame = tuple(a.id for a in tables.areas if a.id != tables.terminal_area_id)
        return cls(
            break_wall=PartyRule(BREAK_WALL, ids(BLUE_CAVES, MOUNTAIN_PATH), familiar=True),
            mount=PartyRule(MOUNT, ids(BLUE_CAVES, MOUNTAIN_PATH, STRONGHOLD_DUNGEON,
                                       ANCIENT_WOODS, SNOWY_PEAKS, SUN_PALACE)),
            mount_or_flying=PartyRule(MOUNT_OR_FLYING, ids(BLUE_CAVES, MOUNTAIN_PATH,
                                                           STRONGHOLD_DUNGEON, ANCIENT_WOODS),
                                      familiar=True),
            improved_flying=PartyRule(IMPROVED_FLYING, ids(STRONGHOLD_DUNGEON, ANCIENT_WOODS,
                                                           SNOWY_PEAKS, SUN_PALACE,
                                                           HORIZON_BEACH, MAGMA_CHAMBER),
                                      starters=False),
            secret_vision=PartyRule(SECRET_VISION, endgame, bex=True),
            endgame_area_ids=endgame,
        )


def _party(scratch: BraveryScratch, rule: PartyRule) -> Iterable[int]:
    if rule.starters:
        yield from scratch.starters
    if rule.familiar:
        yield scratch.familiar
    for area_id in rule.area_ids:
        monster_id = scratch.area_monsters.get(area_id)
        if monster_id is not None:
            yield monster_id
    if rule.bex and scratch.bex is not None:
        yield scratch.bex


def party_has_ability(
    scratch: BraveryScratch,
    tables: ReferenceTables,
    rule: PartyRule,
    exclude: Optional[int] = None,
) -> bool:
    """True if a party member other than `exclude` has the rule's ability."""
    return any(
        m != exclude and tables.has_ability(m, rule.ability)
        for m in _party(scratch, rule)
    )


def rules_hold(scratch: BraveryScratch, tables: ReferenceTables, rules: BraveryRules) -> bool:
    return all(party_has_ability(scratch, tables, rule) for rule in rules.all)


# =============================================================================
# Draws
# =============================================================================

def draw_random_monster(
    rng: DrawSource,
    tables: ReferenceTables,
    scratch: BraveryScratch,
    allow_improved_flying: bool,
    allow_swimming: bool,
    allow_familiar: bool,
) -> int:
    """
    Range(0 or 4, len - 1) until the monster is allowed and unused.

    The last journal entry can never be drawn.
    """
    low = 0 if allow_familiar else FAMILIAR_COUNT
    high = len(tables.monsters) - 1
    while True:
        monster_id = rng.range(low, high)
        if not allow_improved_flying and tables.has_ability(monster_id, IMPROVED_FLYING):
            continue
        if not allow_swimming and monster_id in tables.swimming_set:
            continue
        if scratch.is_taken(monster_id):
            continue
        return monster_id


def determine_start_monsters(
    rng: DrawSource,
    tables: ReferenceTables,
    scratch: BraveryScratch,
) -> None:
    scratch.starters = []
    scratch.familiar = rng.range(0, FAMILIAR_COUNT)

    for _ in range(2):
        monster_id = draw_random_monster(rng, tables, scratch, False, False, False)
        scratch.starters.append(monster_id)
        # Instantiating some monsters makes the game draw again
        rng.skip(tables.instantiate_draws.get(monster_id, 0))


def assign_area_monsters(
    rng: DrawSource,
    tables: ReferenceTables,
    rules: BraveryRules,
    scratch: BraveryScratch,
    mapping: Optional[RandomizerMapping] = None,
) -> bool:
    """One pass of the area loop. Returns True if every rule holds."""
    scratch.area_monsters.clear()
    tanuki = tables.tanuki_id

    for area in tables.areas:
        best = None
        best_score = -1.0

        for monster_id in area.monsters:
            candidate = mapping.replacement(monster_id) if mapping is not None else monster_id
            if not scratch.is_taken(candidate):
                score = rng.next_unit_float()
                if score > best_score:
                    best, best_score = candidate, score

        # Short-circuit order decides how many draws are made
        if (
            (best is None or (not scratch.is_taken(tanuki) and rng.next_unit_float() < JOKER_CHANCE))
            and (best is None or rng.next_unit_float() > best_score)
        ):
            best = tanuki

        scratch.area_monsters[area.id] = best

    return rules_hold(scratch, tables, rules)


def _breaks_rule_when_removed(
    monster_id: int,
    scratch: BraveryScratch,
    tables: ReferenceTables,
    rules: BraveryRules,
) -> bool:
    has = tables.has_ability
    if has(monster_id, BREAK_WALL) and not party_has_ability(scratch, tables, rules.break_wall, monster_id):
        return True
    # The game checks the break wall party for ImprovedFlying monsters too
    if has(monster_id, IMPROVED_FLYING) and not party_has_ability(scratch, tables, rules.break_wall, monster_id):
        return True
    if has(monster_id, SECRET_VISION) and not party_has_ability(scratch, tables, rules.secret_vision, monster_id):
        return True
    if has(monster_id, MOUNT) and not party_has_ability(scratch, tables, rules.mount, monster_id):
        return True
    return False


def determine_cryomancer_required(
    rng: DrawSource,
    tables: ReferenceTables,
    rules: BraveryRules,
    scratch: BraveryScratch,
) -> Optional[int]:
    """
    Pick the monster the Cryomancer asks for.

    Candidates are the area monsters, the starters, then Bex. Candidates the
    party can't spare are skipped without a draw.
    """
    best = None
    best_score = -1.0

    for candidate in chain(scratch.area_monsters.values(), scratch.starters, [scratch.bex]):
        if _breaks_rule_when_removed(candidate, scratch, tables, rules):
            continue
        score = rng.next_unit_float()
        if score <= best_score:
            continue
        best, best_score = candidate, score

    return best


def has_endgame_ability(
    scratch: BraveryScratch,
    tables: ReferenceTables,
    rules: BraveryRules,
    ability: str,
) -> bool:
    """Can the party still have `ability` once the required monster is traded away."""
    required = scratch.cryomancer_required
    candidates = chain(
        scratch.starters,
        (scratch.area_monsters[a] for a in rules.endgame_area_ids if a in scratch.area_monsters),
        [scratch.bex],
    )
    return any(m != required and tables.has_ability(m, ability) for m in candidates)


def determine_army(
    rng: DrawSource,
    tables: ReferenceTables,
    rules: BraveryRules,
    scratch: BraveryScratch,
    seed: Optional[int] = None,
) -> List[str]:
    """Fill the seven army slots. Returns a warning per empty slot."""
    warnings = []

    for ability in ARMY_ABILITIES:
        if has_endgame_ability(scratch, tables, rules, ability):
            scratch.army.append(draw_random_monster(rng, tables, scratch, True, False, True))
            continue

        best = None
        best_score = -1.0
        for monster_id in tables.randomizable_ids:
            if tables.has_ability(monster_id, ability) and not scratch.is_taken(monster_id):
                score = rng.next_unit_float()
                if score > best_score:
                    best, best_score = monster_id, score

        if best is None:
            message = f"No monster army monster with {ability}"
            logger.warning("[%s] %s", seed, message)
            warnings.append(message)
        scratch.army.append(best)

    return warnings


# =============================================================================
# Entry point
# =============================================================================

def solve_bravery(
    rng: DrawSource,
    tables: ReferenceTables,
    rules: Optional[BraveryRules] = None,
    mapping: Optional[RandomizerMapping] = None,
    seed: Optional[int] = None,
) -> BraveryOutcome:
    """
    Run bravery generation on an already seeded rng.

    Args:
        rng: Draw source, positioned after the randomizer draws (if any)
        tables: Reference tables
        rules: Resolved reachability rules (built from tables if omitted)
        mapping: Randomizer mapping when randomizer mode is active
        seed: Only used in log lines

    Returns:
        BraveryOutcome with the assignment, or with assignment=None when
        the retry ceiling was exceeded
    """
    if rules is None:
        rules = BraveryRules.from_tables(tables)

    scratch = BraveryScratch()
    scratch.swimming = tables.swimming_monsters[rng.range(0, len(tables.swimming_monsters))]
    scratch.bex = draw_random_monster(rng, tables, scratch, True, False, False)
    determine_start_monsters(rng, tables, scratch)

    tries = 0
    while not assign_area_monsters(rng, tables, rules, scratch, mapping):
        tries += 1
        if tries % STARTER_REROLL_INTERVAL == 0:
            determine_start_monsters(rng, tables, scratch)
        if tries > MAX_TRIES:
            logger.debug("[%s] Bravery gave up after %d tries", seed, tries)
            return BraveryOutcome(assignment=None, tries=tries)

    logger.debug("[%s] Bravery areas assigned after %d retries", seed, tries)

    scratch.cryomancer = draw_random_monster(rng, tables, scratch, True, False, True)
    scratch.cryomancer_required = determine_cryomancer_required(rng, tables, rules, scratch)
    warnings = determine_army(rng, tables, rules, scratch, seed)

    for _ in range(3):
        scratch.end_of_time.append(draw_random_monster(rng, tables, scratch, True, True, True))

    rng.skip(SHIFT_OFFSET_DRAWS)

    return BraveryOutcome(
        assignment=scratch.to_assignment(),
        tries=tries,
        warnings=tuple(warnings),
    )
