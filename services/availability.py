from dataclasses import dataclass, field
from typing import List

from models.court import Court
from services.blocking_store import active_blocked_slots
from services.timeslots import Slot, find_conflicts


@dataclass
class AvailabilityResult:
    available: bool
    conflicts: List[Slot] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"available": self.available, "conflicts": [str(s) for s in self.conflicts]}


def lock_court(session, court_id: int):
    """
    Take the court's write lock for the rest of the transaction so two requests
    for the same court serialise between the availability read and the blocking
    write.

    The version bump is what locks on SQLite: its driver drops FOR UPDATE and
    only opens a write transaction at the first data change. On other backends
    the UPDATE and the FOR UPDATE read take the same row lock.
    """
    session.query(Court).filter(Court.id == court_id).update(
        {Court.lock_version: Court.lock_version + 1}, synchronize_session=False
    )
    return session.query(Court).filter(Court.id == court_id).with_for_update().first()


def check_availability(session, court_id: int, day, slots: List[Slot]) -> AvailabilityResult:
    """
    Compare candidate slots against slots held by active blockings.
    A collision is a normal outcome, reported rather than raised.
    """
    existing = [slot for _, slot in active_blocked_slots(session, court_id, day)]
    conflicts = find_conflicts(slots, existing)
    return AvailabilityResult(available=not conflicts, conflicts=conflicts)
