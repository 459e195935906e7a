"""
Shared pytest fixtures for the seed generator test suite.

This module provides reusable fixtures for:
- Reference tables (loaded once per session)
- Seed generators with a collecting bad-seed sink
- Modified copies of the reference data for fault and edge-case tests
"""

import json
import os
import shutil
import sys
from typing import Any, Callable, Dict, List

import pytest

# Ensure project root is in path
_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _project_root)

from sanctuary.content.tables import DATA_DIR, ReferenceTables, get_reference_tables
from sanctuary.generation.engine import SeedGenerator
from sanctuary.generation.result import BadSeedRecord


# =============================================================================
# Reference data
# =============================================================================


@pytest.fixture(scope="session")
def tables() -> ReferenceTables:
    """The shipped reference tables."""
    return get_reference_tables()


@pytest.fixture
def data_copy(tmp_path) -> Callable[..., str]:
    """
    Copy the shipped JSON data into tmp_path, applying edits.

    Usage:
        path = data_copy({"Relics.json": lambda relics: relics[:3]})
    """
    def _copy(edits: Dict[str, Callable[[Any], Any]] = None) -> str:
        target = tmp_path / "json"
        shutil.copytree(DATA_DIR, target)
        for filename, edit in (edits or {}).items():
            path = target / filename
            data = json.loads(path.read_text(encoding="utf-8"))
            path.write_text(json.dumps(edit(data)), encoding="utf-8")
        return str(target)

    return _copy


def without_ability(group: str) -> Callable[[List[dict]], List[dict]]:
    """ExploreAbilities.json edit that empties one ability group."""
    def _edit(groups):
        for entry in groups:
            if entry["name"] == group:
                entry["exploreActions"] = []
        return groups
    return _edit


@pytest.fixture
def unsolvable_tables(data_copy) -> ReferenceTables:
    """Tables where no monster can break walls, so bravery never succeeds."""
    return ReferenceTables.load(data_copy({"ExploreAbilities.json": without_ability("BreakWall")}))


# =============================================================================
# Generators
# =============================================================================


@pytest.fixture
def generator(tables) -> SeedGenerator:
    return SeedGenerator(tables)


@pytest.fixture
def bad_seeds() -> List[BadSeedRecord]:
    return []


@pytest.fixture
def collecting_generator(tables, bad_seeds) -> SeedGenerator:
    """Generator whose bad seeds are appended to the bad_seeds fixture."""
    return SeedGenerator(tables, bad_seed_sink=bad_seeds.append)


@pytest.fixture
def sample_seeds() -> List[int]:
    return [0, 1, 7, 42, 1234, 99999, 123456, 999999]
