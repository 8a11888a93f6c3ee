"""Common test fixtures."""

import hashlib
import io
import logging
from pathlib import Path

import pytest

from replisync.config import SyncConfig
from replisync.eventlog import close_event_logger, setup_event_logger
from replisync.models import FileRecord, Inventory


def write_file(path: Path, content: str = "test content") -> Path:
    """Create a file with the given content, including parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def sha256_text(content: str) -> str:
    return hashlib.sha256(content.encode()).hexdigest()


def make_record(path: str, fingerprint: str, root: Path = Path("/src")) -> FileRecord:
    return FileRecord(
        path=path,
        absolute_path=root / path,
        size=0,
        mtime_ns=0,
        fingerprint=fingerprint,
    )


def make_inventory(*records: FileRecord, root: Path = Path("/src")) -> Inventory:
    return Inventory(root=root, records=list(records))


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    path = tmp_path / "source"
    path.mkdir()
    return path


@pytest.fixture
def replica_dir(tmp_path: Path) -> Path:
    path = tmp_path / "replica"
    path.mkdir()
    return path


@pytest.fixture
def log_file(tmp_path: Path) -> Path:
    return tmp_path / "sync.log"


@pytest.fixture
def sync_config(source_dir: Path, replica_dir: Path, log_file: Path) -> SyncConfig:
    return SyncConfig(
        source=str(source_dir),
        replica=str(replica_dir),
        interval_seconds=1,
        log_path=str(log_file),
    )


@pytest.fixture
def event_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def event_logger(request, log_file: Path, event_stream: io.StringIO) -> logging.Logger:
    """Event logger bound to a per-test name so handlers never leak between tests."""
    logger = setup_event_logger(
        log_file, stream=event_stream, name=f"replisync.test.{request.node.name}"
    )
    yield logger
    close_event_logger(logger)
