from datetime import datetime
from typing import Iterable, List, Tuple

from models.blocking import Blocking
from models.booking import Booking, TimeSlot
from services.timeslots import Slot


def create_blocking(uow, booking: Booking, description: str = "Booking slot locked") -> Blocking:
    blocking = Blocking(booking_id=booking.id, description=description, is_blocking=True)
    uow.session.add(blocking)
    uow.flush()
    return blocking


def get_blocking_for_booking(session, booking_id: int):
    return session.query(Blocking).filter_by(booking_id=booking_id).first()


def release_blocking(uow, blocking: Blocking) -> bool:
    """Soft release. Returns False when the lock was already released."""
    if blocking is None or not blocking.is_blocking:
        return False
    blocking.is_blocking = False
    blocking.released_at = datetime.utcnow()
    return True


def release_blockings_for_bookings(uow, booking_ids: Iterable[int]) -> int:
    booking_ids = list(booking_ids)
    if not booking_ids:
        return 0
    rows = (
        uow.session.query(Blocking)
        .filter(Blocking.booking_id.in_(booking_ids), Blocking.is_blocking.is_(True))
        .all()
    )
    return sum(1 for b in rows if release_blocking(uow, b))


def active_blocked_slots(session, court_id: int, day) -> List[Tuple[int, Slot]]:
    """(booking_id, slot) for every slot held by an active blocking on that court and day."""
    rows = (
        session.query(TimeSlot.booking_id, TimeSlot.open_hour, TimeSlot.close_hour)
        .join(Booking, TimeSlot.booking_id == Booking.id)
        .join(Blocking, Blocking.booking_id == Booking.id)
        .filter(
            Blocking.is_blocking.is_(True),
            Booking.court_id == court_id,
            Booking.booking_date == day,
        )
        .all()
    )
    return [(booking_id, Slot.from_hours(open_hour, close_hour)) for booking_id, open_hour, close_hour in rows]
