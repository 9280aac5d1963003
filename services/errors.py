"""Errors raised by the reservation core.

Each error carries the HTTP status the API answers with and a stable ``code``
so callers can tell "someone else took that slot" apart from "the system could
not complete the request".
"""


class ReservationError(Exception):
    status_code = 400
    code = "RESERVATION_ERROR"

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message, "code": self.code}
        body.update(self.details)
        return body


# ---------- validation: rejected before any transaction opens ----------
class ValidationError(ReservationError):
    status_code = 400
    code = "VALIDATION_ERROR"


class InvalidSlotRange(ValidationError):
    code = "INVALID_SLOT_RANGE"


class InvalidDate(ValidationError):
    code = "INVALID_DATE"


class VenueMismatch(ValidationError):
    code = "VENUE_MISMATCH"


class CourtInactive(ValidationError):
    code = "COURT_INACTIVE"


class ArchivedCustomerEmail(ValidationError):
    code = "ARCHIVED_CUSTOMER_EMAIL"


# ---------- conflicts: expected business outcomes ----------
class ConflictError(ReservationError):
    status_code = 409
    code = "CONFLICT"


class SlotConflict(ConflictError):
    code = "SLOT_CONFLICT"

    def __init__(self, message: str, conflicts=None, **details):
        super().__init__(message, **details)
        self.conflicts = list(conflicts or [])
        self.details["conflicts"] = [str(s) for s in self.conflicts]


class InvalidTransition(ConflictError):
    code = "INVALID_TRANSITION"


# ---------- not found: terminal ----------
class NotFound(ReservationError):
    status_code = 404
    code = "NOT_FOUND"


class OrderNotFound(NotFound):
    code = "ORDER_NOT_FOUND"


class BookingNotFound(NotFound):
    code = "BOOKING_NOT_FOUND"


class PaymentNotFound(NotFound):
    code = "PAYMENT_NOT_FOUND"


class CourtNotFound(NotFound):
    code = "COURT_NOT_FOUND"
