"""
Seed database - every generated game stored for filter searches.

Layout (SQLAlchemy Core, SQLite by default):

    MonsterType, ExploreAction, Relic, Monster, Area, AreaData
        reference tables, copied from the JSON data
    RandomizerMapping   one column per randomizable monster (its replacement)
    BraveryMapping      role columns plus one column per area
    RelicsMapping       <Area>Relic, <Area>Scene, <Area>Chest per area
    Game                seed, mode flags and the three mapping ids

Mapping columns are named after the monster or area with spaces and
apostrophes removed ("Goblin Hood" -> GoblinHood).

The randomizer mapping doesn't depend on bravery, so the randomizer +
bravery game of a seed points at the row written for its randomizer-only
game.
"""

import json
import logging
import threading
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    and_,
    create_engine,
    event,
    insert,
    or_,
    select,
)
from sqlalchemy.engine import Connection, Engine

from ..content.tables import ReferenceTables
from ..generation.bravery import ARMY_ABILITIES
from ..generation.result import (
    BraveryAssignment,
    GameModes,
    GenerationResult,
    RandomizerMapping,
    RelicPlacement,
    RelicSlot,
)
from .filters import FilterList

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100

ROLE_COLUMNS = (
    ["Familiar", "Start1", "Start2", "Swimming", "Bex", "Cryomancer", "CryomancerRequired"]
    + [f"EndOfTime{i}" for i in range(1, 4)]
    + [f"Army{i}" for i in range(1, len(ARMY_ABILITIES) + 1)]
)


def column_name(name: str) -> str:
    """Table column for a monster or area name."""
    return name.replace(" ", "").replace("'", "")


class SeedDatabase:
    """
    Stores and searches generated games.

    Usage:
        db = SeedDatabase("sqlite:///seeds.db", tables)
        db.create_schema()
        db.insert_results(results)
        games = db.find(filters, randomizer=True, bravery=False, relics=True)
    """

    def __init__(self, url: str, tables: ReferenceTables, engine: Optional[Engine] = None):
        self.tables = tables
        self.engine = engine if engine is not None else create_engine(url, future=True)
        self._lock = threading.Lock()
        self._last_randomizer_row: Optional[Tuple[int, int]] = None  # (seed, row id)

        if self.engine.dialect.name == "sqlite" and ":memory:" not in url:
            @event.listens_for(self.engine, "connect")
            def _set_wal(dbapi_connection, _record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.close()

        self.metadata = MetaData()
        self._define_tables()

    # =========================================================================
    # Schema
    # =========================================================================

    def _define_tables(self) -> None:
        md = self.metadata
        t = self.tables

        self.monster_type_table = Table(
            "MonsterType", md,
            Column("Id", Integer, primary_key=True, autoincrement=False),
            Column("Name", String, nullable=False),
        )
        self.explore_action_table = Table(
            "ExploreAction", md,
            Column("Id", Integer, primary_key=True, autoincrement=False),
            Column("Name", String, nullable=False),
        )
        self.relic_table = Table(
            "Relic", md,
            Column("Id", Integer, primary_key=True, autoincrement=False),
            Column("Name", String, nullable=False),
            Column("MonsterTypeRestriction", Integer, ForeignKey("MonsterType.Id")),
        )
        self.monster_table = Table(
            "Monster", md,
            Column("Id", Integer, primary_key=True, autoincrement=False),
            Column("Name", String, nullable=False),
            Column("ExploreAction", Integer, ForeignKey("ExploreAction.Id")),
            Column("MonsterTypes", Text),
        )
        self.area_table = Table(
            "Area", md,
            Column("Id", Integer, primary_key=True, autoincrement=False),
            Column("Name", String, nullable=False),
            Column("Monsters", Text),
            Column("RandomizerCheckList", Text),
        )
        self.area_data_table = Table(
            "AreaData", md,
            Column("SceneId", Integer, primary_key=True, autoincrement=False),
            Column("AreaId", Integer, ForeignKey("Area.Id")),
            Column("SceneName", String, nullable=False),
            Column("ChestList", Text),
        )

        self.randomizer_table = Table(
            "RandomizerMapping", md,
            Column("Id", Integer, primary_key=True),
            *(Column(column_name(t.monsters[i].name), Integer) for i in t.randomizable_ids),
        )
        self.bravery_table = Table(
            "BraveryMapping", md,
            Column("Id", Integer, primary_key=True),
            *(Column(name, Integer) for name in ROLE_COLUMNS),
            *(Column(column_name(a.name), Integer) for a in t.areas),
        )
        relic_columns = []
        for area in t.areas:
            prefix = column_name(area.name)
            relic_columns += [
                Column(prefix + "Relic", Integer),
                Column(prefix + "Scene", Integer),
                Column(prefix + "Chest", Integer),
            ]
        self.relics_table = Table(
            "RelicsMapping", md,
            Column("Id", Integer, primary_key=True),
            *relic_columns,
        )
        self.game_table = Table(
            "Game", md,
            Column("Id", Integer, primary_key=True),
            Column("Seed", Integer, nullable=False, index=True),
            Column("IsRandomizer", Boolean, nullable=False),
            Column("IsBravery", Boolean, nullable=False),
            Column("IsRelic", Boolean, nullable=False),
            Column("RandomizerMappingId", Integer, ForeignKey("RandomizerMapping.Id")),
            Column("BraveryMappingId", Integer, ForeignKey("BraveryMapping.Id")),
            Column("RelicsMappingId", Integer, ForeignKey("RelicsMapping.Id")),
        )

    def create_schema(self) -> None:
        self.metadata.create_all(self.engine)

    def clear(self) -> None:
        """Delete every row, dependants first."""
        with self._lock, self.engine.begin() as conn:
            for table in reversed(self.metadata.sorted_tables):
                conn.execute(table.delete())
        self._last_randomizer_row = None

    def populate_reference(self) -> None:
        t = self.tables
        with self._lock, self.engine.begin() as conn:
            conn.execute(insert(self.monster_type_table), [
                {"Id": mt.id, "Name": mt.name} for mt in t.monster_types
            ])
            conn.execute(insert(self.explore_action_table), [
                {"Id": ea.id, "Name": ea.name} for ea in t.explore_actions
            ])
            conn.execute(insert(self.relic_table), [
                {"Id": r.id, "Name": r.name, "MonsterTypeRestriction": r.monster_type_restriction}
                for r in t.relics
            ])
            conn.execute(insert(self.monster_table), [
                {
                    "Id": m.id,
                    "Name": m.name,
                    "ExploreAction": m.explore_action,
                    "MonsterTypes": json.dumps(list(m.monster_types)),
                }
                for m in t.monsters
            ])
            conn.execute(insert(self.area_table), [
                {
                    "Id": a.id,
                    "Name": a.name,
                    "Monsters": json.dumps(list(a.monsters)),
                    "RandomizerCheckList": json.dumps(list(a.randomizer_check_list)),
                }
                for a in t.areas
            ])
            scenes = [t.scene(scene_id) for a in t.areas for scene_id in a.area_data]
            conn.execute(insert(self.area_data_table), [
                {
                    "SceneId": s.scene_id,
                    "AreaId": s.area_id,
                    "SceneName": s.scene_name,
                    "ChestList": json.dumps(list(s.chests)),
                }
                for s in scenes
            ])

    # =========================================================================
    # Writing
    # =========================================================================

    def insert_results(self, results: Iterable[GenerationResult]) -> int:
        """Insert games in one transaction. Returns the number of games written."""
        count = 0
        with self._lock, self.engine.begin() as conn:
            for result in results:
                self._insert_one(conn, result)
                count += 1
        logger.debug("Inserted %d games", count)
        return count

    def _insert_one(self, conn: Connection, result: GenerationResult) -> None:
        randomizer_id = None
        if result.randomizer is not None:
            last = self._last_randomizer_row
            if result.modes.bravery and last is not None and last[0] == result.seed:
                randomizer_id = last[1]
            else:
                randomizer_id = self._insert_row(conn, self.randomizer_table, self._randomizer_row(result.randomizer))
                self._last_randomizer_row = (result.seed, randomizer_id)

        bravery_id = None
        if result.bravery is not None:
            bravery_id = self._insert_row(conn, self.bravery_table, self._bravery_row(result.bravery))

        relics_id = None
        if result.relics is not None:
            relics_id = self._insert_row(conn, self.relics_table, self._relics_row(result.relics))

        conn.execute(insert(self.game_table).values(
            Seed=result.seed,
            IsRandomizer=result.modes.randomizer,
            IsBravery=result.modes.bravery,
            IsRelic=result.modes.relics,
            RandomizerMappingId=randomizer_id,
            BraveryMappingId=bravery_id,
            RelicsMappingId=relics_id,
        ))

    @staticmethod
    def _insert_row(conn: Connection, table: Table, values: Dict[str, Optional[int]]) -> int:
        return conn.execute(insert(table).values(**values)).inserted_primary_key[0]

    def _randomizer_row(self, mapping: RandomizerMapping) -> Dict[str, Optional[int]]:
        monsters = self.tables.monsters
        return {column_name(monsters[m].name): r for m, r in mapping}

    def _bravery_row(self, bravery: BraveryAssignment) -> Dict[str, Optional[int]]:
        values = [bravery.familiar, *bravery.starters, bravery.swimming, bravery.bex,
                  bravery.cryomancer, bravery.cryomancer_required,
                  *bravery.end_of_time, *bravery.army]
        row: Dict[str, Optional[int]] = dict(zip(ROLE_COLUMNS, values))
        for area_id, monster_id in bravery.area_monsters.items():
            row[column_name(self.tables.areas[area_id].name)] = monster_id
        return row

    def _relics_row(self, placement: RelicPlacement) -> Dict[str, Optional[int]]:
        row: Dict[str, Optional[int]] = {}
        for slot in placement.slots:
            prefix = column_name(self.tables.areas[slot.area_id].name)
            row[prefix + "Relic"] = slot.relic_id
            row[prefix + "Scene"] = slot.scene_id
            row[prefix + "Chest"] = slot.chest_id
        return row

    # =========================================================================
    # Searching
    # =========================================================================

    def find(
        self,
        filters: FilterList,
        randomizer: bool,
        bravery: bool,
        relics: bool,
        limit: int = DEFAULT_LIMIT,
        offset: Optional[int] = None,
    ) -> List[GenerationResult]:
        """
        Games with these randomizer and bravery flags that match every filter.

        With relics=False the relic flag is left open, so randomizer-only
        searches also return randomizer + relic games.
        """
        game = self.game_table
        joined = game
        columns = list(self._labelled(game))

        if randomizer:
            joined = joined.join(self.randomizer_table, self.randomizer_table.c.Id == game.c.RandomizerMappingId)
            columns += self._labelled(self.randomizer_table)
        if bravery:
            joined = joined.join(self.bravery_table, self.bravery_table.c.Id == game.c.BraveryMappingId)
            columns += self._labelled(self.bravery_table)
        if relics:
            joined = joined.join(self.relics_table, self.relics_table.c.Id == game.c.RelicsMappingId)
            columns += self._labelled(self.relics_table)

        clauses = [game.c.IsRandomizer == randomizer, game.c.IsBravery == bravery]
        if relics:
            clauses.append(game.c.IsRelic.is_(True))
        clauses += self._filter_clauses(filters)

        stmt = select(*columns).select_from(joined).where(and_(*clauses)).order_by(game.c.Id).limit(limit)
        if offset is not None:
            stmt = stmt.offset(offset)

        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()

        logger.debug("Filter matched %d games", len(rows))
        return [self._result_from_row(row, randomizer, bravery, relics) for row in rows]

    @staticmethod
    def _labelled(table: Table):
        return [c.label(f"{table.name}_{c.name}") for c in table.columns]

    def _filter_clauses(self, filters: FilterList) -> list:
        t = self.tables
        clauses = []

        rf = filters.randomizer
        if rf is not None:
            rc = self.randomizer_table.c
            for monster_id, replacement_id in rf.monsters.items():
                name = column_name(t.monsters[monster_id].name)
                if name in rc:
                    clauses.append(rc[name] == replacement_id)
            for area_id, wanted in rf.areas.items():
                names = [column_name(t.monsters[m].name) for m in t.areas[area_id].monsters]
                names = [n for n in names if n in rc]
                if not names:
                    continue
                for wanted_id in wanted:
                    clauses.append(or_(*(rc[n] == wanted_id for n in names)))

        bf = filters.bravery
        if bf is not None:
            bc = self.bravery_table.c
            area_columns = [bc[column_name(a.name)] for a in t.areas]
            for wanted_id in bf.available:
                every = [bc[n] for n in ROLE_COLUMNS] + area_columns
                clauses.append(or_(*(c == wanted_id for c in every)))
            if bf.familiar is not None:
                clauses.append(bc.Familiar == bf.familiar)
            for wanted_id in bf.start:
                clauses.append(or_(bc.Start1 == wanted_id, bc.Start2 == wanted_id))
            if bf.swimming is not None:
                clauses.append(bc.Swimming == bf.swimming)
            if bf.bex is not None:
                clauses.append(bc.Bex == bf.bex)
            if bf.cryomancer is not None:
                clauses.append(bc.Cryomancer == bf.cryomancer)
            if bf.cryomancer_required is not None:
                clauses.append(bc.CryomancerRequired == bf.cryomancer_required)
            for wanted_id in bf.end_of_time:
                clauses.append(or_(*(bc[f"EndOfTime{i}"] == wanted_id for i in range(1, 4))))
            for wanted_id in bf.army:
                clauses.append(or_(*(bc[f"Army{i}"] == wanted_id
                                     for i in range(1, len(ARMY_ABILITIES) + 1))))
            for area_id, monster_id in bf.areas.items():
                clauses.append(bc[column_name(t.areas[area_id].name)] == monster_id)

        lf = filters.relics
        if lf is not None:
            lc = self.relics_table.c
            for relic_id in lf.available:
                clauses.append(or_(*(lc[column_name(a.name) + "Relic"] == relic_id for a in t.areas)))
            for area_id, relic_id in lf.areas.items():
                clauses.append(lc[column_name(t.areas[area_id].name) + "Relic"] == relic_id)

        return clauses

    def _result_from_row(self, row, randomizer: bool, bravery: bool, relics: bool) -> GenerationResult:
        t = self.tables
        modes = GameModes(
            randomizer=bool(row["Game_IsRandomizer"]),
            bravery=bool(row["Game_IsBravery"]),
            relics=bool(row["Game_IsRelic"]),
        )

        mapping = None
        if randomizer:
            replacements = {}
            for monster_id in t.randomizable_ids:
                value = row[f"RandomizerMapping_{column_name(t.monsters[monster_id].name)}"]
                if value is not None:
                    replacements[monster_id] = value
            mapping = RandomizerMapping(replacements)

        assignment = None
        if bravery:
            roles = [row[f"BraveryMapping_{name}"] for name in ROLE_COLUMNS]
            assignment = BraveryAssignment(
                familiar=roles[0],
                starters=(roles[1], roles[2]),
                swimming=roles[3],
                bex=roles[4],
                cryomancer=roles[5],
                cryomancer_required=roles[6],
                end_of_time=tuple(roles[7:10]),
                army=tuple(roles[10:]),
                area_monsters={
                    a.id: row[f"BraveryMapping_{column_name(a.name)}"] for a in t.areas
                },
            )

        placement = None
        if relics:
            slots = []
            for area in t.areas:
                prefix = "RelicsMapping_" + column_name(area.name)
                relic_id = row[prefix + "Relic"]
                if relic_id is None:
                    continue
                scene = t.scene(row[prefix + "Scene"])
                slots.append(RelicSlot(
                    area_id=area.id,
                    relic_id=relic_id,
                    scene_id=scene.scene_id,
                    scene_name=scene.scene_name,
                    chest_id=row[prefix + "Chest"],
                ))
            placement = RelicPlacement(slots=tuple(slots))

        return GenerationResult(
            seed=row["Game_Seed"],
            modes=modes,
            randomizer=mapping,
            bravery=assignment,
            relics=placement,
        )
