from __future__ import annotations

import logging
import os
import stat
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from replisync.filters import PathFilter
from replisync.fingerprint import fingerprint_file
from replisync.models import FileRecord, Inventory, ScanError


logger = logging.getLogger(__name__)

_Candidate = tuple[Path, str, int, int]


def _error_reason(exc: OSError) -> str:
    return exc.strerror or str(exc)


def _root_error(root: Path) -> ScanError | None:
    try:
        with os.scandir(root):
            pass
    except OSError as exc:
        return ScanError(path=str(root), reason=_error_reason(exc), kind="root")
    return None


def _relative_to_root(root: Path, path: str | os.PathLike | None) -> str:
    if path is None:
        return "."
    try:
        return Path(path).relative_to(root).as_posix()
    except ValueError:
        return str(path)


def _discover_candidates(
    root: Path, path_filter: PathFilter, errors: list[ScanError]
) -> list[_Candidate]:
    candidates: list[_Candidate] = []

    def _on_walk_error(exc: OSError) -> None:
        errors.append(
            ScanError(
                path=_relative_to_root(root, exc.filename),
                reason=_error_reason(exc),
                kind="directory",
            )
        )

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_walk_error):
        base = Path(dirpath)
        relative_dir = base.relative_to(root).as_posix()
        prefix = "" if relative_dir == "." else f"{relative_dir}/"
        # Excluded subtrees are never entered.
        dirnames[:] = [d for d in dirnames if not path_filter.prunes_directory(prefix + d)]

        for name in filenames:
            file_path = base / name
            relative_path = prefix + name
            if not path_filter.matches(relative_path):
                continue
            try:
                info = file_path.stat()
            except OSError as exc:
                if isinstance(exc, FileNotFoundError) and file_path.is_symlink():
                    continue  # dangling link
                errors.append(ScanError(path=relative_path, reason=_error_reason(exc)))
                continue
            if not stat.S_ISREG(info.st_mode):
                continue
            candidates.append((file_path, relative_path, info.st_size, info.st_mtime_ns))

    candidates.sort(key=lambda candidate: candidate[1])
    return candidates


def _record_from_candidate(candidate: _Candidate) -> tuple[FileRecord, ScanError | None]:
    file_path, relative_path, size, mtime_ns = candidate
    result = fingerprint_file(file_path)
    record = FileRecord(
        path=relative_path,
        absolute_path=file_path,
        size=size,
        mtime_ns=mtime_ns,
        fingerprint=result.digest,
    )
    if result.ok:
        return record, None
    return record, ScanError(path=relative_path, reason=f"hash failed: {result.error}")


def scan_directory(
    root: Path,
    *,
    path_filter: PathFilter | None = None,
    workers: int = 1,
) -> Inventory:
    """Walk ``root`` recursively and fingerprint every regular file below it.

    Nothing raises out of here: an unlistable root yields an empty inventory
    flagged ``root_unreadable``; unreadable sub-directories, vanished files and
    hash failures are collected in ``Inventory.errors``. Records come back
    sorted by their POSIX relative path.
    """
    root = Path(root).absolute()
    path_filter = path_filter or PathFilter()

    root_error = _root_error(root)
    if root_error is not None:
        logger.debug("Cannot list %s: %s", root, root_error.reason)
        return Inventory(root=root, errors=[root_error], root_unreadable=True)

    errors: list[ScanError] = []
    candidates = _discover_candidates(root, path_filter, errors)

    if workers <= 1 or len(candidates) <= 1:
        results = [_record_from_candidate(candidate) for candidate in candidates]
    else:
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="replisync-hash") as executor:
            results = list(executor.map(_record_from_candidate, candidates))

    records: list[FileRecord] = []
    for record, error in results:
        records.append(record)
        if error is not None:
            errors.append(error)

    logger.debug("Scanned %s: %d file(s), %d error(s)", root, len(records), len(errors))
    return Inventory(root=root, records=records, errors=errors)
