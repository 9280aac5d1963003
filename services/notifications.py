"""Outbound booking emails. Sent after commit; failures are logged, never raised."""

import logging
from dataclasses import dataclass
from typing import List, Optional

from flask import current_app

from utils.emailer import send_email

logger = logging.getLogger(__name__)


@dataclass
class BookingNotification:
    email: str
    customer_name: str
    court: str
    venue: str
    date: str
    start_time: str
    end_time: str
    booking_code: str
    order_code: Optional[str] = None
    login_url: Optional[str] = None


def notification_for_booking(booking, order_code=None, login_url=None) -> Optional[BookingNotification]:
    user = booking.user
    if user is None or not user.email:
        return None
    slots = booking.time_slots
    court = booking.court
    return BookingNotification(
        email=user.email,
        customer_name=user.display_name,
        court=court.name if court else "Court",
        venue=court.venue.name if court and court.venue else "",
        date=booking.booking_date.isoformat(),
        start_time=slots[0].open_hour if slots else "",
        end_time=slots[-1].close_hour if slots else "",
        booking_code=booking.booking_code,
        order_code=order_code,
        login_url=login_url,
    )


def _describe(n: BookingNotification) -> str:
    where = f"{n.venue} - {n.court}" if n.venue else n.court
    return f"{where}\nDate: {n.date}\nTime: {n.start_time} - {n.end_time}\nBooking code: {n.booking_code}\n"


def _deliver(to_email: str, subject: str, body: str) -> Optional[str]:
    ok, err = send_email(to_email, subject, body)
    if not ok:
        logger.warning("Notification to %s not delivered: %s", to_email, err)
        return f"Notification not delivered: {err}"
    return None


def send_manual_booking_confirmation(n: BookingNotification) -> Optional[str]:
    body = f"Hi {n.customer_name},\n\nA booking was made for you.\n\n{_describe(n)}"
    if n.login_url:
        body += f"\nSign in to see your bookings: {n.login_url}\n"
    return _deliver(n.email, f"Booking confirmed {n.booking_code}", body)


def send_order_confirmation(order_code: str, notifications: List[BookingNotification]) -> List[str]:
    if not notifications:
        return []
    first = notifications[0]
    body = f"Hi {first.customer_name},\n\nPayment received for order {order_code}.\n\n"
    body += "\n".join(_describe(n) for n in notifications)
    warning = _deliver(first.email, f"Order {order_code} confirmed", body)
    return [warning] if warning else []


def send_booking_cancellation(n: BookingNotification, reason: str) -> Optional[str]:
    body = (
        f"Hi {n.customer_name},\n\nYour booking was cancelled ({reason.lower()}).\n\n"
        f"{_describe(n)}\nThe slot has been released."
    )
    return _deliver(n.email, f"Booking {n.booking_code} cancelled", body)


def login_url() -> Optional[str]:
    return current_app.config.get("LOGIN_URL")


