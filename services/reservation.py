"""
Customer checkout: one order, N bookings, one payment, created atomically.

Slot availability is re-checked inside the same transaction that writes the
blockings, with the court rows locked, so two customers racing for one slot
cannot both win.
"""

import logging
from dataclasses import dataclass
from typing import List

from flask import current_app

from models.order import Order
from models.status import BookingSource, BookingStatus
from services import blocking_store, booking_store, order_store, payment_store
from services.actor import Actor
from services.availability import check_availability, lock_court
from services.dates import DEFAULT_TIMEZONE, parse_booking_date
from services.errors import CourtInactive, CourtNotFound, SlotConflict, ValidationError
from services.timeslots import Slot, parse_slots
from services.uow import UnitOfWork
from utils.audit import log_event

logger = logging.getLogger(__name__)


@dataclass
class OrderItem:
    court_id: int
    date: object  # datetime.date
    slots: List[Slot]
    price: int  # per slot

    @property
    def amount(self) -> int:
        return self.price * len(self.slots)

    @classmethod
    def from_dict(cls, data: dict, tz_name: str = DEFAULT_TIMEZONE) -> "OrderItem":
        data = data or {}
        if not isinstance(data, dict):
            raise ValidationError("Each booking must be an object")
        try:
            court_id = int(data.get("court_id"))
            price = int(data.get("price"))
        except (TypeError, ValueError):
            raise ValidationError("court_id and price must be integers")
        if price < 0:
            raise ValidationError("price cannot be negative")
        return cls(
            court_id=court_id,
            date=parse_booking_date(data.get("date"), tz_name),
            slots=parse_slots(data.get("slots") or []),
            price=price,
        )


def _load_courts(session, court_ids) -> dict:
    courts = {}
    # fixed lock order keeps concurrent multi-court orders from deadlocking
    for court_id in sorted(set(court_ids)):
        court = lock_court(session, court_id)
        if court is None:
            raise CourtNotFound("Court not found", court_id=court_id)
        if not court.is_bookable:
            raise CourtInactive("Court is inactive", court_id=court_id)
        courts[court_id] = court
    return courts


def place_order(
    uow,
    actor: Actor,
    user_id: int,
    items: List[OrderItem],
    channel_name: str,
    tax_amount: int = 0,
    booking_fee: int = 0,
) -> Order:
    """Write path for CreateOrder; the caller owns the unit of work."""
    if not items:
        raise ValidationError("At least one booking is required")
    if not (channel_name or "").strip():
        raise ValidationError("channel_name is required")
    if tax_amount < 0 or booking_fee < 0:
        raise ValidationError("Fees cannot be negative")

    session = uow.session
    courts = _load_courts(session, [i.court_id for i in items])

    base_amount = sum(i.amount for i in items)
    order = order_store.create_order(
        uow,
        user_id=user_id,
        total_amount=base_amount + tax_amount + booking_fee,
        venue_ids=[c.venue_id for c in courts.values()],
    )

    bookings = []
    for item in items:
        # sees blockings flushed for earlier items of this same order too
        result = check_availability(session, item.court_id, item.date, item.slots)
        if not result.available:
            raise SlotConflict(
                "Selected time slot was just taken, refresh and pick another",
                conflicts=result.conflicts,
                court_id=item.court_id,
                date=item.date.isoformat(),
            )
        booking = booking_store.create_booking(
            uow,
            court_id=item.court_id,
            user_id=user_id,
            order_id=order.id,
            booking_date=item.date,
            slots=item.slots,
            total_price=item.amount,
            status=BookingStatus.PENDING,
            source=BookingSource.CUSTOMER,
        )
        blocking_store.create_blocking(uow, booking, f"Blocked for order {order.order_code}")
        bookings.append(booking)

    payment = payment_store.create_payment(
        uow,
        order_id=order.id,
        channel_name=channel_name.strip(),
        amount=base_amount,
        tax_amount=tax_amount,
        booking_fee=booking_fee,
        currency=current_app.config.get("PAYMENT_CURRENCY", "IDR"),
        expiry_minutes=current_app.config.get("PAYMENT_EXPIRY_MINUTES", payment_store.DEFAULT_EXPIRY_MINUTES),
    )

    log_event(
        session, actor, "ORDER_CREATE", entity="order", entity_id=order.id,
        metadata={
            "order_code": order.order_code,
            "total_amount": order.total_amount,
            "payment_id": payment.id,
            "bookings": [b.booking_code for b in bookings],
        },
    )
    logger.info("Order %s created with %d booking(s)", order.order_code, len(items))
    return order


def create_order(session, actor: Actor, user_id: int, items: List[OrderItem], channel_name: str,
                 tax_amount: int = 0, booking_fee: int = 0) -> Order:
    with UnitOfWork(session) as uow:
        order = place_order(uow, actor, user_id, items, channel_name, tax_amount, booking_fee)
    return order
