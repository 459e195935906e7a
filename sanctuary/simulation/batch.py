"""
Batch Seed Generation - Many seeds across worker processes.

Every seed is independent, so seeds are split into batches and handed to
a ProcessPoolExecutor. Each worker loads the reference tables once (pool
initializer) and keeps its own SeedGenerator.

Bad seeds found in a worker are returned with the batch; only the parent
process writes the bad-seed log.

Usage:
    with SeedBatchRunner(BatchConfig(n_workers=4)) as runner:
        result = runner.run(range(100_000), iter_mode_combinations())
"""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple

from ..bad_seeds import BadSeedLog
from ..content.tables import get_reference_tables
from ..generation.engine import SeedGenerator
from ..generation.result import BadSeedRecord, GameModes, GenerationResult

logger = logging.getLogger(__name__)


def iter_mode_combinations() -> Iterator[GameModes]:
    """The mode combinations a full seed database holds."""
    yield GameModes(randomizer=True, bravery=False, relics=True)
    yield GameModes(randomizer=False, bravery=True, relics=True)
    yield GameModes(randomizer=True, bravery=True, relics=True)


# =============================================================================
# Configuration and results
# =============================================================================

@dataclass
class BatchConfig:
    n_workers: int = 0        # 0 = auto-detect (cpu_count - 1)
    batch_size: int = 1000    # Seeds per task sent to a worker
    data_dir: Optional[str] = None

    def __post_init__(self):
        if self.n_workers <= 0:
            self.n_workers = max(1, (os.cpu_count() or 2) - 1)
        if self.batch_size <= 0:
            raise ValueError("batch_size must be positive")


@dataclass
class BatchResult:
    total_tasks: int
    completed_tasks: int
    total_time_ms: float
    results: List[GenerationResult] = field(default_factory=list)
    bad_seeds: List[BadSeedRecord] = field(default_factory=list)

    @property
    def tasks_per_second(self) -> float:
        if self.total_time_ms <= 0:
            return 0.0
        return self.completed_tasks / (self.total_time_ms / 1000)


# (task index, seed, modes)
_SeedTask = Tuple[int, int, GameModes]
_TaskOutput = Tuple[int, Optional[GenerationResult], List[BadSeedRecord]]


# =============================================================================
# Worker functions (run in separate processes)
# =============================================================================

_worker_generator: Optional[SeedGenerator] = None


def _worker_init(data_dir: Optional[str]) -> None:
    """Load tables once per worker process."""
    global _worker_generator
    _worker_generator = SeedGenerator(get_reference_tables(data_dir))


def _run_batch(tasks: List[_SeedTask]) -> List[_TaskOutput]:
    generator = _worker_generator
    if generator is None:
        raise RuntimeError("Worker used before _worker_init")

    outputs = []
    for index, seed, modes in tasks:
        bad: List[BadSeedRecord] = []
        generator.bad_seed_sink = bad.append
        result = generator.generate(
            seed, randomizer=modes.randomizer, bravery=modes.bravery, relics=modes.relics
        )
        outputs.append((index, result, bad))
    return outputs


# =============================================================================
# Runner
# =============================================================================

class SeedBatchRunner:
    """Generate many (seed, modes) pairs, in parallel when n_workers > 1."""

    def __init__(
        self,
        config: Optional[BatchConfig] = None,
        bad_seed_log: Optional[BadSeedLog] = None,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ):
        self.config = config or BatchConfig()
        self.bad_seed_log = bad_seed_log
        self.progress_callback = progress_callback
        self._executor: Optional[ProcessPoolExecutor] = None

    def _initialize(self) -> None:
        if self._executor is None and self.config.n_workers > 1:
            self._executor = ProcessPoolExecutor(
                max_workers=self.config.n_workers,
                initializer=_worker_init,
                initargs=(self.config.data_dir,),
            )

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "SeedBatchRunner":
        self._initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()
        return False

    def run(self, seeds: Iterable[int], modes: Iterable[GameModes]) -> BatchResult:
        """
        Generate every seed under every mode combination.

        Results come back ordered by seed, then by the order of `modes`.
        Unsolvable seeds are missing from results and listed in bad_seeds.
        """
        mode_list = list(modes)
        tasks: List[_SeedTask] = []
        for seed in seeds:
            for combo in mode_list:
                tasks.append((len(tasks), seed, combo))

        start = time.perf_counter()
        if self.config.n_workers > 1:
            self._initialize()
            outputs = self._run_parallel(tasks)
        else:
            outputs = self._run_inline(tasks)

        outputs.sort(key=lambda output: output[0])
        results = [r for _, r, _ in outputs if r is not None]
        bad_seeds = [record for _, _, records in outputs for record in records]

        if self.bad_seed_log is not None:
            for record in bad_seeds:
                self.bad_seed_log.append(record)

        total_time_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "Generated %d/%d games (%d bad) in %.1fs",
            len(results), len(tasks), len(bad_seeds), total_time_ms / 1000,
        )
        return BatchResult(
            total_tasks=len(tasks),
            completed_tasks=len(outputs),
            total_time_ms=total_time_ms,
            results=results,
            bad_seeds=bad_seeds,
        )

    def _batches(self, tasks: Sequence[_SeedTask]) -> Iterator[List[_SeedTask]]:
        size = self.config.batch_size
        for i in range(0, len(tasks), size):
            yield list(tasks[i:i + size])

    def _report(self, done: int, total: int) -> None:
        if self.progress_callback is not None:
            self.progress_callback(done, total)

    def _run_inline(self, tasks: List[_SeedTask]) -> List[_TaskOutput]:
        _worker_init(self.config.data_dir)
        outputs: List[_TaskOutput] = []
        for batch in self._batches(tasks):
            outputs.extend(_run_batch(batch))
            self._report(len(outputs), len(tasks))
        return outputs

    def _run_parallel(self, tasks: List[_SeedTask]) -> List[_TaskOutput]:
        futures = [self._executor.submit(_run_batch, batch) for batch in self._batches(tasks)]
        outputs: List[_TaskOutput] = []
        for future in as_completed(futures):
            outputs.extend(future.result())
            self._report(len(outputs), len(tasks))
        return outputs
