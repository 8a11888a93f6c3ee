from __future__ import annotations

import enum
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from replisync import eventlog
from replisync.config import SyncConfig
from replisync.eventlog import log_error, log_event
from replisync.executor import ExecutionReport, OperationOutcome, execute_plan
from replisync.models import Inventory
from replisync.reconcile import ReconciliationPlan, reconcile
from replisync.scanner import scan_directory


class CycleState(enum.Enum):
    IDLE = "idle"
    SCANNING_SOURCE = "scanning_source"
    SCANNING_REPLICA = "scanning_replica"
    RECONCILING = "reconciling"
    EXECUTING = "executing"


@dataclass(slots=True)
class CycleResult:
    source: Inventory
    replica: Inventory
    plan: ReconciliationPlan
    report: ExecutionReport

    @property
    def failure_count(self) -> int:
        return len(self.source.errors) + len(self.replica.errors) + len(self.report.failures)


_SUCCESS_EVENTS = {
    "add": eventlog.ADDED,
    "update": eventlog.UPDATED,
    "delete": eventlog.DELETED,
}

_FAILURE_VERBS = {
    "add": "copying",
    "update": "updating",
    "delete": "deleting",
}


def _files(count: int) -> str:
    return f"{count} files"


def _report_scan_errors(logger: logging.Logger, label: str, inventory: Inventory) -> None:
    for error in inventory.errors:
        log_error(
            logger,
            f"Error while scanning {label} {error.kind} {error.path}: {error.reason}",
        )


def _outcome_reporter(logger: logging.Logger) -> Callable[[OperationOutcome], None]:
    def _report(outcome: OperationOutcome) -> None:
        if outcome.ok:
            log_event(logger, _SUCCESS_EVENTS[outcome.action], outcome.path)
        else:
            log_error(
                logger,
                f"Error while {_FAILURE_VERBS[outcome.action]} {outcome.path}: {outcome.error}",
            )

    return _report


def run_cycle(
    config: SyncConfig,
    logger: logging.Logger,
    *,
    on_state: Callable[[CycleState], None] | None = None,
) -> CycleResult:
    """Run one scan, reconcile and execute pass of ``config.source`` onto ``config.replica``."""

    def _enter(state: CycleState) -> None:
        if on_state is not None:
            on_state(state)

    path_filter = config.path_filter
    log_event(logger, eventlog.SYNC_STARTED)

    _enter(CycleState.SCANNING_SOURCE)
    source = scan_directory(config.source_path, path_filter=path_filter, workers=config.workers)
    _report_scan_errors(logger, "source", source)

    _enter(CycleState.SCANNING_REPLICA)
    replica = scan_directory(config.replica_path, path_filter=path_filter, workers=config.workers)
    _report_scan_errors(logger, "replica", replica)

    log_event(logger, eventlog.SOURCE, _files(len(source)))
    log_event(logger, eventlog.REPLICA, _files(len(replica)))

    _enter(CycleState.RECONCILING)
    plan = reconcile(source, replica)
    log_event(logger, eventlog.TO_ADD, _files(len(plan.to_add)))
    log_event(logger, eventlog.TO_UPDATE, _files(len(plan.to_update)))
    log_event(logger, eventlog.TO_DELETE, _files(len(plan.to_delete)))

    _enter(CycleState.EXECUTING)
    report = execute_plan(
        plan,
        config.replica_path,
        on_outcome=_outcome_reporter(logger),
        workers=config.workers,
    )

    log_event(logger, eventlog.SYNC_FINISHED)
    _enter(CycleState.IDLE)
    return CycleResult(source=source, replica=replica, plan=plan, report=report)


class SyncDriver:
    """Runs sync cycles on a fixed interval, never two at once.

    ``run_once`` holds a lock for the whole cycle, so callers racing on it
    (a timer tick and the initial run, or a test calling in from another thread)
    are serialized rather than interleaved against the replica.
    """

    def __init__(self, config: SyncConfig, logger: logging.Logger) -> None:
        self.config = config
        self.logger = logger
        self.state = CycleState.IDLE
        self.cycles_completed = 0
        self._cycle_lock = threading.Lock()
        self._stop_event = threading.Event()

    def _set_state(self, state: CycleState) -> None:
        self.state = state

    @property
    def cycle_in_progress(self) -> bool:
        return self._cycle_lock.locked()

    def run_once(self) -> CycleResult:
        with self._cycle_lock:
            try:
                result = run_cycle(self.config, self.logger, on_state=self._set_state)
            finally:
                self.state = CycleState.IDLE
            self.cycles_completed += 1
            return result

    def _run_guarded(self) -> CycleResult | None:
        try:
            return self.run_once()
        except Exception:
            self.logger.exception("%s: sync cycle aborted", eventlog.ERROR)
            return None

    def stop(self) -> None:
        """Ask ``run_forever`` to return once the current cycle, if any, finishes."""
        self._stop_event.set()

    def run_forever(
        self,
        stop_event: threading.Event | None = None,
        *,
        max_cycles: int | None = None,
    ) -> int:
        """Run one cycle now and one per interval until stopped.

        Ticks are spaced from the previous scheduled tick; ticks missed while a
        cycle overran collapse into a single immediate run. Returns the number
        of cycles run.
        """
        if stop_event is not None:
            self._stop_event = stop_event
        stop = self._stop_event
        interval = float(self.config.interval_seconds)
        next_tick = time.monotonic()
        cycles = 0

        while not stop.is_set():
            self._run_guarded()
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                break

            next_tick += interval
            now = time.monotonic()
            if next_tick < now:
                next_tick = now
            if stop.wait(next_tick - now):
                break

        return cycles
