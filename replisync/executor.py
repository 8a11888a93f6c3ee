from __future__ import annotations

import logging
import shutil
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Literal

from replisync.models import FileRecord
from replisync.reconcile import ReconciliationPlan


logger = logging.getLogger(__name__)

Action = Literal["add", "update", "delete"]


@dataclass(slots=True)
class OperationOutcome:
    action: Action
    path: str
    ok: bool
    error: str | None = None


@dataclass(slots=True)
class ExecutionReport:
    outcomes: list[OperationOutcome] = field(default_factory=list)

    def _paths(self, action: Action) -> list[str]:
        return [o.path for o in self.outcomes if o.action == action and o.ok]

    @property
    def added(self) -> list[str]:
        return self._paths("add")

    @property
    def updated(self) -> list[str]:
        return self._paths("update")

    @property
    def deleted(self) -> list[str]:
        return self._paths("delete")

    @property
    def failures(self) -> list[OperationOutcome]:
        return [o for o in self.outcomes if not o.ok]


def replica_path_for(replica_root: Path, relative_path: str) -> Path:
    return replica_root / Path(relative_path)


def _copy_file(source: Path, target: Path) -> None:
    # copyfile refuses a directory target instead of copying into it.
    shutil.copyfile(source, target)
    shutil.copystat(source, target)


def _add_one(record: FileRecord, replica_root: Path) -> None:
    target = replica_path_for(replica_root, record.path)
    target.parent.mkdir(parents=True, exist_ok=True)
    _copy_file(record.absolute_path, target)


def _update_one(record: FileRecord, replica_root: Path) -> None:
    _copy_file(record.absolute_path, replica_path_for(replica_root, record.path))


def _delete_one(relative_path: str, replica_root: Path) -> None:
    replica_path_for(replica_root, relative_path).unlink()


def _attempt(action: Action, path: str, job: Callable[[], None]) -> OperationOutcome:
    try:
        job()
    except OSError as exc:
        reason = exc.strerror or str(exc)
        logger.debug("%s failed for %s: %s", action, path, reason)
        return OperationOutcome(action=action, path=path, ok=False, error=reason)
    return OperationOutcome(action=action, path=path, ok=True)


def _run_jobs(
    jobs: list[tuple[Action, str, Callable[[], None]]],
    *,
    max_workers: int,
    on_outcome: Callable[[OperationOutcome], None] | None,
) -> list[OperationOutcome]:
    if not jobs:
        return []

    def _run(job: tuple[Action, str, Callable[[], None]]) -> OperationOutcome:
        outcome = _attempt(*job)
        if on_outcome is not None:
            on_outcome(outcome)
        return outcome

    if max_workers <= 1 or len(jobs) == 1:
        return [_run(job) for job in jobs]

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="replisync-xfer") as executor:
        return list(executor.map(_run, jobs))


def execute_plan(
    plan: ReconciliationPlan,
    replica_root: Path,
    *,
    on_outcome: Callable[[OperationOutcome], None] | None = None,
    workers: int = 1,
) -> ExecutionReport:
    """Apply ``plan`` to ``replica_root``: adds, then updates, then deletes.

    Each item is attempted on its own; a failure is recorded as an
    unsuccessful outcome and never stops the rest of the batch. Outcomes are
    returned in plan order, and ``on_outcome`` sees each one as soon as its
    item finishes.
    """
    replica_root = Path(replica_root)
    report = ExecutionReport()

    add_jobs = [
        ("add", record.path, lambda r=record: _add_one(r, replica_root)) for record in plan.to_add
    ]
    update_jobs = [
        ("update", record.path, lambda r=record: _update_one(r, replica_root))
        for record in plan.to_update
    ]
    delete_jobs = [
        ("delete", path, lambda p=path: _delete_one(p, replica_root)) for path in plan.to_delete
    ]

    for jobs in (add_jobs, update_jobs, delete_jobs):
        report.outcomes.extend(_run_jobs(jobs, max_workers=workers, on_outcome=on_outcome))

    return report
