from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Literal


ERROR_FINGERPRINT = "ERROR"


@dataclass(slots=True)
class FileRecord:
    path: str
    absolute_path: Path
    size: int
    mtime_ns: int
    fingerprint: str

    @property
    def hash_failed(self) -> bool:
        return self.fingerprint == ERROR_FINGERPRINT

    @property
    def last_modified(self) -> datetime:
        return datetime.fromtimestamp(self.mtime_ns / 1_000_000_000)


@dataclass(slots=True)
class ScanError:
    path: str
    reason: str
    kind: Literal["root", "directory", "file"] = "file"


@dataclass(slots=True)
class Inventory:
    root: Path
    records: list[FileRecord] = field(default_factory=list)
    errors: list[ScanError] = field(default_factory=list)
    root_unreadable: bool = False

    def by_path(self) -> dict[str, FileRecord]:
        return {record.path: record for record in self.records}

    def __len__(self) -> int:
        return len(self.records)
