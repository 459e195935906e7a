"""
Runtime settings.

Values come from, in increasing priority: the defaults below, a .env file
(python-dotenv), SANCTUARY_* environment variables, and CLI flags applied
by the caller with dataclasses.replace().
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

ENV_PREFIX = "SANCTUARY_"


@dataclass(frozen=True)
class Settings:
    data_dir: Optional[str] = None     # None = data shipped with the package
    seeds_dir: str = "seeds"
    database: str = "seeds.db"
    workers: int = 0                   # 0 = cpu_count - 1
    batch_size: int = 1000
    log_level: str = "INFO"

    @property
    def database_url(self) -> str:
        if "://" in self.database:
            return self.database
        return f"sqlite:///{self.database}"

    @property
    def bad_seeds_path(self) -> Path:
        return Path(self.seeds_dir) / "bad_seeds.txt"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(ENV_PREFIX + name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from None


def load_settings(env_file: Optional[Union[str, Path]] = None) -> Settings:
    """Read .env (if present) and the environment into a Settings."""
    load_dotenv(env_file)
    defaults = Settings()
    return Settings(
        data_dir=os.environ.get(ENV_PREFIX + "DATA_DIR") or defaults.data_dir,
        seeds_dir=os.environ.get(ENV_PREFIX + "SEEDS_DIR") or defaults.seeds_dir,
        database=os.environ.get(ENV_PREFIX + "DATABASE") or defaults.database,
        workers=_env_int("WORKERS", defaults.workers),
        batch_size=_env_int("BATCH_SIZE", defaults.batch_size),
        log_level=(os.environ.get(ENV_PREFIX + "LOG_LEVEL") or defaults.log_level).upper(),
    )
