from __future__ import annotations

import hashlib
from dataclasses import dataclass
from pathlib import Path

from replisync.models import ERROR_FINGERPRINT


CHUNK_SIZE = 1024 * 1024


@dataclass(slots=True)
class FingerprintResult:
    digest: str
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def fingerprint_file(path: Path, chunk_size: int = CHUNK_SIZE) -> FingerprintResult:
    """Hash a file's full content, turning read failures into the error sentinel."""
    digest = hashlib.sha256()
    try:
        with path.open("rb") as fh:
            for chunk in iter(lambda: fh.read(chunk_size), b""):
                digest.update(chunk)
    except OSError as exc:
        return FingerprintResult(digest=ERROR_FINGERPRINT, error=exc.strerror or str(exc))
    return FingerprintResult(digest=digest.hexdigest())
