"""
Generation results.

Everything here is plain immutable data holding ids into the reference
tables, so results pickle cleanly across worker processes and can be
rebuilt from database rows.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple


@dataclass(frozen=True)
class GameModes:
    """Which generators ran for a seed."""
    randomizer: bool = False
    bravery: bool = False
    relics: bool = False

    @property
    def label(self) -> str:
        """Human label used in reports and the bad-seed log."""
        names = []
        if self.randomizer:
            names.append("Randomizer")
        if self.bravery:
            names.append("Bravery")
        if self.relics:
            names.append("Relic")
        return " | ".join(names)

    def any(self) -> bool:
        return self.randomizer or self.bravery or self.relics


@dataclass(frozen=True)
class RandomizerMapping:
    """Bijection over the randomizable monster ids."""
    replacements: Dict[int, int]

    def replacement(self, monster_id: int) -> int:
        """Effective monster for monster_id (identity outside the domain)."""
        return self.replacements.get(monster_id, monster_id)

    def __len__(self) -> int:
        return len(self.replacements)

    def __iter__(self) -> Iterator[Tuple[int, int]]:
        return iter(sorted(self.replacements.items()))


@dataclass(frozen=True)
class BraveryAssignment:
    """
    Every monster bravery mode hands out.

    area_monsters is keyed by area id in area-table order. An army slot is
    None when no monster carrying that ability was left.
    """
    familiar: int
    starters: Tuple[int, int]
    swimming: int
    bex: int
    cryomancer: int
    cryomancer_required: Optional[int]
    end_of_time: Tuple[int, ...]
    army: Tuple[Optional[int], ...]
    area_monsters: Dict[int, int]

    @property
    def player_monsters(self) -> Tuple[int, ...]:
        """Familiar followed by the two starters."""
        return (self.familiar,) + self.starters

    def all_monsters(self) -> List[int]:
        """Every assigned monster id, each role once."""
        monsters = list(self.player_monsters)
        monsters.extend(self.area_monsters.values())
        monsters.extend([self.swimming, self.bex, self.cryomancer])
        if self.cryomancer_required is not None:
            monsters.append(self.cryomancer_required)
        monsters.extend(self.end_of_time)
        monsters.extend(m for m in self.army if m is not None)
        return monsters


@dataclass(frozen=True)
class RelicSlot:
    area_id: int
    relic_id: int
    scene_id: int
    scene_name: str
    chest_id: int


@dataclass(frozen=True)
class RelicPlacement:
    """One relic slot per area, in area-table order."""
    slots: Tuple[RelicSlot, ...]

    def relic_for_area(self, area_id: int) -> Optional[RelicSlot]:
        for slot in self.slots:
            if slot.area_id == area_id:
                return slot
        return None

    @property
    def relic_ids(self) -> List[int]:
        return [slot.relic_id for slot in self.slots]


@dataclass(frozen=True)
class GenerationResult:
    seed: int
    modes: GameModes
    randomizer: Optional[RandomizerMapping] = None
    bravery: Optional[BraveryAssignment] = None
    relics: Optional[RelicPlacement] = None
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly view keyed by ids (string keys for maps)."""
        data: Dict[str, Any] = {
            "seed": self.seed,
            "modes": {
                "randomizer": self.modes.randomizer,
                "bravery": self.modes.bravery,
                "relics": self.modes.relics,
            },
        }
        if self.randomizer is not None:
            data["randomizer"] = {str(k): v for k, v in self.randomizer}
        if self.bravery is not None:
            b = self.bravery
            data["bravery"] = {
                "familiar": b.familiar,
                "starters": list(b.starters),
                "swimming": b.swimming,
                "bex": b.bex,
                "cryomancer": b.cryomancer,
                "cryomancer_required": b.cryomancer_required,
                "end_of_time": list(b.end_of_time),
                "army": list(b.army),
                "areas": {str(k): v for k, v in b.area_monsters.items()},
            }
        if self.relics is not None:
            data["relics"] = [
                {
                    "area": s.area_id,
                    "relic": s.relic_id,
                    "scene": s.scene_id,
                    "scene_name": s.scene_name,
                    "chest": s.chest_id,
                }
                for s in self.relics.slots
            ]
        if self.warnings:
            data["warnings"] = list(self.warnings)
        return data


@dataclass(frozen=True)
class BadSeedRecord:
    """A seed whose bravery assignment could not be solved."""
    seed: int
    modes_label: str

    def line(self) -> str:
        return f"Seed: {self.seed} - Game modes: {self.modes_label}"
