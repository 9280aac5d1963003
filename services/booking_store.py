import logging
from typing import Iterable, List, Optional

from models.booking import Booking, TimeSlot
from models.status import BookingSource, BookingStatus
from services.errors import BookingNotFound, InvalidTransition
from services.status_machine import ensure_transition
from services.timeslots import Slot
from utils.codes import unique_code

logger = logging.getLogger(__name__)


def _booking_code_taken(session, code: str) -> bool:
    return session.query(Booking.id).filter_by(booking_code=code).first() is not None


def create_booking(
    uow,
    court_id: int,
    user_id: int,
    booking_date,
    slots: List[Slot],
    total_price: int,
    status: BookingStatus,
    source: BookingSource,
    order_id: Optional[int] = None,
) -> Booking:
    booking = Booking(
        booking_code=unique_code("BK", lambda c: _booking_code_taken(uow.session, c)),
        court_id=court_id,
        user_id=user_id,
        order_id=order_id,
        booking_date=booking_date,
        duration=len(slots),
        total_price=total_price,
        status=status.value,
        source=source.value,
    )
    booking.time_slots = [TimeSlot(open_hour=s.open_hour, close_hour=s.close_hour) for s in slots]
    uow.session.add(booking)
    uow.flush()
    return booking


def get_booking(session, booking_id: int) -> Booking:
    booking = session.get(Booking, booking_id)
    if booking is None:
        raise BookingNotFound("Booking not found", booking_id=booking_id)
    return booking


def bookings_for_order(session, order_id: int) -> List[Booking]:
    return session.query(Booking).filter_by(order_id=order_id).order_by(Booking.id.asc()).all()


def set_booking_status(uow, booking: Booking, new_status: BookingStatus) -> bool:
    """Strict single-booking update; undefined transitions raise."""
    if not ensure_transition("booking", booking.status, new_status):
        return False
    booking.status = new_status.value
    return True


def cascade_booking_status(uow, bookings: Iterable[Booking], new_status: BookingStatus) -> List[Booking]:
    """
    Cascade a status onto sibling bookings. Bookings that already reached a
    terminal state on their own (e.g. cancelled individually) keep it.
    """
    changed = []
    for booking in bookings:
        try:
            if set_booking_status(uow, booking, new_status):
                changed.append(booking)
        except InvalidTransition:
            logger.info(
                "Booking %s stays %s during cascade to %s",
                booking.booking_code, booking.status, new_status.value,
            )
    return changed
