"""
Relic Mode - One relic per area, hidden in a random chest

For each area in table order:
1. relic = relics[Range(0, n)], redrawn while it is already placed
2. With bravery active, a type-restricted relic is redrawn unless the
   area's bravery monster or a player monster has that type
3. scene = area.area_data[Range(0, n)], chest = scene.chests[Range(0, n)]
"""

import logging
from typing import Dict, Optional, Set, Tuple

from ..content.tables import AreaSceneData, MapArea, ReferenceTables, Relic
from ..errors import ReferenceDataError
from ..state.rng import DrawSource
from .result import BraveryAssignment, RelicPlacement, RelicSlot

logger = logging.getLogger(__name__)


def obtainable_types(
    tables: ReferenceTables,
    area: MapArea,
    bravery: BraveryAssignment,
) -> Set[int]:
    """Monster types available when the area's relic is found."""
    types: Set[int] = set()
    area_monster = bravery.area_monsters.get(area.id)
    if area_monster is not None:
        types.update(tables.monster(area_monster).monster_types)
    for monster_id in bravery.player_monsters:
        types.update(tables.monster(monster_id).monster_types)
    return types


def _allowed(relic: Relic, placed: Set[int], types: Optional[Set[int]]) -> bool:
    if relic.id in placed:
        return False
    if types is not None and relic.is_restricted:
        return relic.monster_type_restriction in types
    return True


def draw_relic(
    rng: DrawSource,
    tables: ReferenceTables,
    area: MapArea,
    placed: Set[int],
    bravery: Optional[BraveryAssignment] = None,
) -> Relic:
    types = obtainable_types(tables, area, bravery) if bravery is not None else None

    if not any(_allowed(r, placed, types) for r in tables.relics):
        raise ReferenceDataError(f"No relic left that can be placed in {area.name}")

    while True:
        relic = tables.relics[rng.range(0, len(tables.relics))]
        if _allowed(relic, placed, types):
            return relic


def draw_chest(rng: DrawSource, tables: ReferenceTables, area: MapArea) -> Tuple[AreaSceneData, int]:
    """Scene first, then a chest inside it."""
    scene = tables.scene(area.area_data[rng.range(0, len(area.area_data))])
    return scene, scene.chests[rng.range(0, len(scene.chests))]


def place_relics(
    rng: DrawSource,
    tables: ReferenceTables,
    bravery: Optional[BraveryAssignment] = None,
) -> RelicPlacement:
    """
    Place one distinct relic per area.

    Raises:
        ReferenceDataError: the relic table can't cover every area
    """
    placed: Set[int] = set()
    slots = []
    chosen: Dict[int, str] = {}

    for area in tables.areas:
        relic = draw_relic(rng, tables, area, placed, bravery)
        placed.add(relic.id)
        chosen[area.id] = relic.name

        scene, chest_id = draw_chest(rng, tables, area)
        slots.append(RelicSlot(
            area_id=area.id,
            relic_id=relic.id,
            scene_id=scene.scene_id,
            scene_name=scene.scene_name,
            chest_id=chest_id,
        ))

    logger.debug("Relics placed: %s", chosen)
    return RelicPlacement(slots=tuple(slots))
