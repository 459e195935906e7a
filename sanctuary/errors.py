"""
Exception hierarchy for seed generation.

Only configuration problems are exceptions. An unsolvable bravery seed is
an ordinary outcome: the engine returns None and reports a bad seed.
"""


class SanctuaryError(Exception):
    """Base class for every error raised by this package."""


class ReferenceDataError(SanctuaryError):
    """Reference tables are missing, malformed or internally inconsistent."""


class FilterError(SanctuaryError):
    """A seed filter file could not be read or has the wrong shape."""
