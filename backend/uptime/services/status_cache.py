"""Status cache - latest coarse status per target, safe for concurrent use."""
import threading
from dataclasses import dataclass, replace
from typing import Dict, List, Optional

from ..schemas.status import ServiceStatus


@dataclass(frozen=True)
class StatusRecord:
    """Latest derived status for one target."""
    target_id: str
    name: str
    status: ServiceStatus
    latency_ms: float = 0.0


class _Slot:
    __slots__ = ("lock", "record")

    def __init__(self, record: StatusRecord):
        self.lock = threading.Lock()
        self.record = record


class StatusCache:
    """Concurrent map of target ID to StatusRecord.

    Each target has its own lock, so writers for different targets never
    wait on each other. Records are immutable and replaced whole, so a reader
    sees either the previous check's status and latency or the new ones.
    """

    def __init__(self, initial_status: ServiceStatus = ServiceStatus.OPERATIONAL):
        self.initial_status = initial_status
        self._slots: Dict[str, _Slot] = {}
        # Guards insertion of new keys only
        self._registry_lock = threading.Lock()

    def register(self, target_id: str, name: str) -> StatusRecord:
        """Create the initial record for a target if it is not present."""
        return self._slot(target_id, name).record

    def _slot(self, target_id: str, name: Optional[str]) -> _Slot:
        slot = self._slots.get(target_id)
        if slot is not None:
            return slot
        with self._registry_lock:
            slot = self._slots.get(target_id)
            if slot is None:
                slot = _Slot(StatusRecord(
                    target_id=target_id,
                    name=name or target_id,
                    status=self.initial_status,
                ))
                self._slots[target_id] = slot
            return slot

    def upsert(
        self,
        target_id: str,
        status: ServiceStatus,
        latency_ms: float,
        name: Optional[str] = None,
    ) -> StatusRecord:
        """Install a new status and latency for one target.

        Returns the record that was replaced. An unregistered target is
        registered first, so its previous record carries the initial status.
        """
        slot = self._slot(target_id, name)
        with slot.lock:
            previous = slot.record
            changes = {"status": status, "latency_ms": latency_ms}
            if name:
                changes["name"] = name
            slot.record = replace(previous, **changes)
        return previous

    def get(self, target_id: str) -> Optional[StatusRecord]:
        slot = self._slots.get(target_id)
        if slot is None:
            return None
        with slot.lock:
            return slot.record

    def snapshot_all(self) -> List[StatusRecord]:
        """Point-in-time copy of every record, in registration order."""
        with self._registry_lock:
            slots = list(self._slots.values())
        snapshot = []
        for slot in slots:
            with slot.lock:
                snapshot.append(slot.record)
        return snapshot
