"""
Allowed status transitions for orders, bookings and payments.

Every status write in the core goes through ``ensure_transition`` so an
undefined change is rejected in one place. Setting a status to its current
value is always a no-op, which is what makes webhook redelivery and retries
safe.
"""

from models.status import OrderStatus, BookingStatus, PaymentStatus
from services.errors import InvalidTransition

PAYMENT_TRANSITIONS = {
    PaymentStatus.UNPAID: {PaymentStatus.PAID, PaymentStatus.FAILED, PaymentStatus.EXPIRED},
    PaymentStatus.PAID: {PaymentStatus.REFUNDED},
    PaymentStatus.FAILED: set(),
    PaymentStatus.EXPIRED: set(),
    PaymentStatus.REFUNDED: set(),
}

# An admin forcing the order to FAILED/EXPIRED/CANCELLED drags the payment
# along, including a PAID or REFUNDED one (never back to PAID).
PAYMENT_OVERRIDE_TRANSITIONS = {
    PaymentStatus.UNPAID: {PaymentStatus.EXPIRED},
    PaymentStatus.PAID: {PaymentStatus.EXPIRED},
    PaymentStatus.FAILED: {PaymentStatus.EXPIRED},
    PaymentStatus.EXPIRED: set(),
    PaymentStatus.REFUNDED: {PaymentStatus.EXPIRED},
}

ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.FAILED, OrderStatus.EXPIRED, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.COMPLETED, OrderStatus.FAILED, OrderStatus.EXPIRED, OrderStatus.CANCELLED},
    OrderStatus.FAILED: set(),
    OrderStatus.EXPIRED: set(),
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELLED: set(),
}

BOOKING_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.UPCOMING, BookingStatus.CANCELLED},
    BookingStatus.UPCOMING: {BookingStatus.COMPLETED, BookingStatus.NO_SHOW, BookingStatus.CANCELLED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.NO_SHOW: set(),
    BookingStatus.CANCELLED: set(),
}

# what staff and admins may request directly
STAFF_BOOKING_TARGETS = {BookingStatus.COMPLETED, BookingStatus.NO_SHOW, BookingStatus.CANCELLED}
ADMIN_ORDER_TARGETS = {OrderStatus.FAILED, OrderStatus.EXPIRED, OrderStatus.CANCELLED, OrderStatus.COMPLETED}

# payment outcome -> (order status, booking status, release blockings)
PAYMENT_CASCADE = {
    PaymentStatus.PAID: (OrderStatus.PAID, BookingStatus.UPCOMING, False),
    PaymentStatus.EXPIRED: (OrderStatus.EXPIRED, BookingStatus.CANCELLED, True),
    PaymentStatus.FAILED: (OrderStatus.FAILED, BookingStatus.CANCELLED, True),
}

ORDER_CANCELLING_STATUSES = {OrderStatus.FAILED, OrderStatus.EXPIRED, OrderStatus.CANCELLED}
FINISHED_BOOKING_STATUSES = {BookingStatus.COMPLETED, BookingStatus.NO_SHOW}

_TABLES = {
    "payment": PAYMENT_TRANSITIONS,
    "payment_override": PAYMENT_OVERRIDE_TRANSITIONS,
    "order": ORDER_TRANSITIONS,
    "booking": BOOKING_TRANSITIONS,
}

_ENUMS = {
    "payment": PaymentStatus,
    "payment_override": PaymentStatus,
    "order": OrderStatus,
    "booking": BookingStatus,
}


def parse_status(kind: str, value):
    """Coerce a raw string into the entity's status enum or raise InvalidTransition."""
    enum_cls = _ENUMS[kind]
    try:
        return enum_cls(str(getattr(value, "value", value)).strip().upper())
    except ValueError:
        raise InvalidTransition(f"Unknown {kind.split('_')[0]} status: {value}", status=str(value))


def ensure_transition(kind: str, current, new) -> bool:
    """
    Returns False when ``new`` equals ``current`` (no-op), True when the change
    is allowed, and raises InvalidTransition otherwise.
    """
    current = parse_status(kind, current)
    new = parse_status(kind, new)
    if current == new:
        return False
    if new not in _TABLES[kind][current]:
        entity = kind.split("_")[0]
        raise InvalidTransition(
            f"Cannot move {entity} from {current.value} to {new.value}",
            current=current.value,
            requested=new.value,
        )
    return True
