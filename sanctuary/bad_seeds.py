"""
Bad-seed log - one line per seed bravery could not solve.

Line format: "Seed: <seed> - Game modes: <label>"
"""

import logging
import re
import threading
from pathlib import Path
from typing import List, Union

from .generation.result import BadSeedRecord

logger = logging.getLogger(__name__)

_LINE = re.compile(r"^Seed: (-?\d+) - Game modes: (.*)$")


class BadSeedLog:
    """Append-only text log. One writer per process; appends are locked."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.Lock()

    def append(self, record: BadSeedRecord) -> None:
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(record.line() + "\n")

    __call__ = append

    def truncate(self) -> None:
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text("", encoding="utf-8")

    def records(self) -> List[BadSeedRecord]:
        """Parse the log back; unknown lines are skipped."""
        if not self.path.exists():
            return []
        records = []
        for line in self.path.read_text(encoding="utf-8").splitlines():
            match = _LINE.match(line)
            if match is None:
                if line.strip():
                    logger.debug("Skipping unrecognised bad-seed line: %r", line)
                continue
            records.append(BadSeedRecord(seed=int(match.group(1)), modes_label=match.group(2)))
        return records
