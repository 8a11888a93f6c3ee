from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from replisync.filters import PathFilter, build_path_filter


DEFAULT_WORKERS = 1
USAGE = "Usage: replisync <source_path> <replica_path> <interval_seconds> <log_path>"


@dataclass(slots=True)
class SyncConfig:
    source: str
    replica: str
    interval_seconds: int
    log_path: str
    include_patterns: tuple[str, ...] = ()
    exclude_patterns: tuple[str, ...] = ()
    workers: int = DEFAULT_WORKERS

    @property
    def source_path(self) -> Path:
        return Path(self.source).expanduser().absolute()

    @property
    def replica_path(self) -> Path:
        return Path(self.replica).expanduser().absolute()

    @property
    def log_file_path(self) -> Path:
        return Path(self.log_path).expanduser().absolute()

    @property
    def path_filter(self) -> PathFilter:
        return build_path_filter(self.include_patterns, self.exclude_patterns)


def parse_interval(value: str | int) -> int:
    text = str(value).strip()
    # int() alone would also take "+5", "1_0" and non-ASCII digits.
    if not (text.isascii() and text.isdigit()):
        raise ValueError(f"Interval must be a positive whole number of seconds, got {value!r}.")
    interval = int(text)
    if interval <= 0:
        raise ValueError(f"Interval must be a positive whole number of seconds, got {value!r}.")
    return interval


def build_config(
    source: str,
    replica: str,
    interval: str | int,
    log_path: str,
    *,
    include_patterns: list[str] | tuple[str, ...] | None = None,
    exclude_patterns: list[str] | tuple[str, ...] | None = None,
    workers: int = DEFAULT_WORKERS,
) -> SyncConfig:
    """Validate startup arguments.

    Raises ``FileNotFoundError`` when the source directory is missing and
    ``ValueError`` for a bad interval or worker count.
    """
    config = SyncConfig(
        source=source,
        replica=replica,
        interval_seconds=parse_interval(interval),
        log_path=log_path,
        include_patterns=tuple(include_patterns or ()),
        exclude_patterns=tuple(exclude_patterns or ()),
        workers=workers,
    )
    if workers < 1:
        raise ValueError(f"Workers must be at least 1, got {workers}.")
    if not config.source_path.is_dir():
        raise FileNotFoundError(
            f"Source directory does not exist at {config.source_path}. Exiting..."
        )
    return config


def prepare_replica(config: SyncConfig) -> bool:
    """Create the replica directory if needed. Returns True when it was created."""
    replica = config.replica_path
    if replica.is_dir():
        return False
    replica.mkdir(parents=True, exist_ok=True)
    return True
