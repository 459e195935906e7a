"""
Plain-text seed report, the format players share alongside a seed.
"""

from pathlib import Path
from typing import List, Optional, Union

from .content.tables import ReferenceTables
from .generation.result import GenerationResult


def format_report(
    result: GenerationResult,
    tables: ReferenceTables,
    filter_path: Optional[str] = None,
) -> str:
    name = tables.monster_name
    lines: List[str] = [
        f"Seed: {result.seed}",
        f"Game modes: {result.modes.label}",
    ]
    if filter_path is not None:
        lines.append(f"Filter: {filter_path}")
    lines.append("")

    bravery = result.bravery
    if bravery is not None:
        lines.append("Bravery monsters:")
        starters = " - ".join(name(m) for m in bravery.player_monsters)
        lines.append(f"  Starters: {starters}")
        lines.append("")
        for area_id, monster_id in bravery.area_monsters.items():
            lines.append(f"  {tables.area(area_id).name}  ->  {name(monster_id)}")
        lines.append("")
        lines.append(f"  Cryomancer: {name(bravery.cryomancer_required)} -> {name(bravery.cryomancer)}")
        lines.append(f"  Bex: {name(bravery.bex)}")
        lines.append(f"  Swimming Monster / Sun Tower: {name(bravery.swimming)}")
        lines.append("")
        for i, monster_id in enumerate(bravery.army, start=1):
            lines.append(f"  Trade #{i}: {name(monster_id)}")
        lines.append(f"  End of Time: {' - '.join(name(m) for m in bravery.end_of_time)}")
        lines.append("")

    if result.randomizer is not None:
        lines.append("Randomizer mapping:")
        for area in tables.areas:
            lines.append(f"  {area.name}:")
            for monster_id in area.monsters:
                replacement = result.randomizer.replacement(monster_id)
                lines.append(f"    [{name(monster_id)}]  -->  {name(replacement)}")
            lines.append("")

    if result.relics is not None:
        lines.append("Relics:")
        for slot in result.relics.slots:
            lines.append(
                f"  {tables.area(slot.area_id).name}  ->  {tables.relic(slot.relic_id).name}"
                f"    ({slot.scene_name} - chest {slot.chest_id})"
            )

    return "\n".join(lines) + "\n"


def write_report(
    result: GenerationResult,
    tables: ReferenceTables,
    seeds_dir: Union[str, Path] = "seeds",
    filter_path: Optional[str] = None,
) -> Path:
    """
    Write <seeds_dir>/<seed>.txt, or <seeds_dir>/<filter name>/<seed>.txt
    when the seed was found through a filter file.
    """
    directory = Path(seeds_dir)
    if filter_path is not None:
        directory = directory / Path(filter_path).stem
    directory.mkdir(parents=True, exist_ok=True)

    path = directory / f"{result.seed}.txt"
    path.write_text(format_report(result, tables, filter_path), encoding="utf-8")
    return path
