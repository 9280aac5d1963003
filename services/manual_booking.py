"""
Staff-created bookings: no order, no payment, booking confirmed immediately.

The customer is matched or provisioned by email inside the same transaction as
the booking and its blocking. The confirmation email goes out after commit; a
delivery failure becomes a warning on the result, not a failed booking.
"""

import logging
from dataclasses import dataclass, field
from typing import List

from models.court import Court
from models.status import BookingSource, BookingStatus
from services import blocking_store, booking_store
from services.actor import Actor
from services.availability import check_availability, lock_court
from services.customers import find_or_create_customer, validate_email
from services.dates import DEFAULT_TIMEZONE, parse_booking_date
from services.errors import CourtInactive, CourtNotFound, SlotConflict, ValidationError, VenueMismatch
from services.notifications import login_url, notification_for_booking, send_manual_booking_confirmation
from services.pricing import calculate_slots_price
from services.timeslots import Slot, build_slots
from services.uow import UnitOfWork
from utils.audit import log_event

logger = logging.getLogger(__name__)


@dataclass
class ManualBookingRequest:
    court_id: int
    venue_id: int
    email: str
    date: object
    slots: List[Slot]

    @classmethod
    def from_dict(cls, data: dict, tz_name: str = DEFAULT_TIMEZONE, slot_minutes: int = 60):
        data = data or {}
        if not isinstance(data, dict):
            raise ValidationError("Manual booking request must be an object")
        try:
            court_id = int(data.get("court_id"))
            venue_id = int(data.get("venue_id"))
        except (TypeError, ValueError):
            raise ValidationError("court_id and venue_id are required")
        return cls(
            court_id=court_id,
            venue_id=venue_id,
            email=validate_email(data.get("email")),
            date=parse_booking_date(data.get("date"), tz_name),
            slots=build_slots(data.get("start_time") or "", data.get("end_time") or "", slot_minutes),
        )


@dataclass
class ManualBookingResult:
    booking_id: int
    booking_code: str
    user_id: int
    total_price: int
    price_per_slot: List[int]
    time_slots: List[Slot]
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "booking_id": self.booking_id,
            "booking_code": self.booking_code,
            "user_id": self.user_id,
            "total_price": self.total_price,
            "price_per_slot": self.price_per_slot,
            "time_slots": [{"open_hour": s.open_hour, "close_hour": s.close_hour} for s in self.time_slots],
            "warnings": self.warnings,
        }


def _bookable_court(session, request: ManualBookingRequest) -> Court:
    court = session.get(Court, request.court_id)
    if court is None:
        raise CourtNotFound("Court not found", court_id=request.court_id)
    if not court.is_bookable:
        raise CourtInactive("Court not found or already inactive", court_id=request.court_id)
    if court.venue_id != request.venue_id:
        raise VenueMismatch(
            "Venue does not match the selected court",
            court_id=request.court_id,
            venue_id=request.venue_id,
        )
    return court


def _raise_if_taken(session, request: ManualBookingRequest):
    result = check_availability(session, request.court_id, request.date, request.slots)
    if not result.available:
        raise SlotConflict(
            "Time slot is already occupied, please select another time",
            conflicts=result.conflicts,
            court_id=request.court_id,
            date=request.date.isoformat(),
        )


def create_manual_booking(session, actor: Actor, request: ManualBookingRequest) -> ManualBookingResult:
    court = _bookable_court(session, request)
    _raise_if_taken(session, request)
    price = calculate_slots_price(request.slots, request.date, court.price, court.dynamic_prices)

    with UnitOfWork(session) as uow:
        lock_court(session, request.court_id)
        _raise_if_taken(session, request)

        customer = find_or_create_customer(uow, request.email)
        booking = booking_store.create_booking(
            uow,
            court_id=request.court_id,
            user_id=customer.id,
            order_id=None,
            booking_date=request.date,
            slots=request.slots,
            total_price=price.total_price,
            status=BookingStatus.UPCOMING,
            source=BookingSource.STAFF_MANUAL,
        )
        blocking_store.create_blocking(uow, booking, "Manual booking created from admin panel")
        log_event(
            session, actor, "MANUAL_BOOKING_CREATE", entity="booking", entity_id=booking.id,
            metadata={
                "booking_code": booking.booking_code,
                "court_id": request.court_id,
                "booking_date": request.date.isoformat(),
                "time_slots": [str(s) for s in request.slots],
                "customer_email": request.email,
                "total_price": price.total_price,
            },
        )
        note = notification_for_booking(booking, login_url=login_url())
        result = ManualBookingResult(
            booking_id=booking.id,
            booking_code=booking.booking_code,
            user_id=customer.id,
            total_price=price.total_price,
            price_per_slot=price.price_per_slot,
            time_slots=request.slots,
        )

    if note is not None:
        warning = send_manual_booking_confirmation(note)
        if warning:
            result.warnings.append(warning)
    logger.info("Manual booking %s created for %s", result.booking_code, request.email)
    return result
