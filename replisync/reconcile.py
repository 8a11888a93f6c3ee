from __future__ import annotations

from dataclasses import dataclass, field

from replisync.models import FileRecord, Inventory


@dataclass(slots=True)
class ReconciliationPlan:
    to_add: list[FileRecord] = field(default_factory=list)
    to_update: list[FileRecord] = field(default_factory=list)
    to_delete: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.to_add or self.to_update or self.to_delete)


def _needs_update(source: FileRecord, replica: FileRecord) -> bool:
    # A failed hash never counts as a match, not even against another failure.
    if source.hash_failed or replica.hash_failed:
        return True
    return source.fingerprint != replica.fingerprint


def reconcile(source: Inventory, replica: Inventory) -> ReconciliationPlan:
    source_map = source.by_path()
    replica_map = replica.by_path()

    to_add: list[FileRecord] = []
    to_update: list[FileRecord] = []
    to_delete: list[str] = []

    for path, record in source_map.items():
        existing = replica_map.get(path)
        if existing is None:
            to_add.append(record)
            continue
        if _needs_update(record, existing):
            to_update.append(record)

    for path in replica_map:
        if path not in source_map:
            to_delete.append(path)

    return ReconciliationPlan(
        to_add=sorted(to_add, key=lambda r: r.path),
        to_update=sorted(to_update, key=lambda r: r.path),
        to_delete=sorted(to_delete),
    )
