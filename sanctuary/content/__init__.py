"""
Content module - static game data.

Monsters, areas, scenes, relics and explore abilities, loaded from the
JSON files under sanctuary/data/json.
"""

from .tables import (
    FAMILIAR_COUNT,
    AbilityGroup,
    AreaSceneData,
    ExploreAction,
    MapArea,
    Monster,
    MonsterType,
    ReferenceTables,
    Relic,
    get_reference_tables,
    normalize_name,
)

__all__ = [
    "FAMILIAR_COUNT",
    "AbilityGroup",
    "AreaSceneData",
    "ExploreAction",
    "MapArea",
    "Monster",
    "MonsterType",
    "ReferenceTables",
    "Relic",
    "get_reference_tables",
    "normalize_name",
]
