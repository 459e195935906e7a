"""
Storage module - SQLite seed database and filter files.
"""

from .database import SeedDatabase, column_name
from .filters import BraveryFilter, FilterList, RandomizerFilter, RelicsFilter, parse_filters

__all__ = [
    "SeedDatabase",
    "column_name",
    "BraveryFilter",
    "FilterList",
    "RandomizerFilter",
    "RelicsFilter",
    "parse_filters",
]
