"""
Simulation module - batch seed generation across processes.
"""

from .batch import BatchConfig, BatchResult, SeedBatchRunner, iter_mode_combinations

__all__ = ["BatchConfig", "BatchResult", "SeedBatchRunner", "iter_mode_combinations"]
