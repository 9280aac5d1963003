import pytest

from models.status import BookingStatus, OrderStatus, PaymentStatus
from services.errors import InvalidTransition
from services.status_machine import ensure_transition, parse_status
from utils.codes import generate_code, unique_code


class TestPaymentTransitions:
    @pytest.mark.parametrize("target", ["PAID", "FAILED", "EXPIRED"])
    def test_unpaid_resolves(self, target):
        assert ensure_transition("payment", "UNPAID", target) is True

    def test_same_status_is_noop(self):
        assert ensure_transition("payment", PaymentStatus.PAID, PaymentStatus.PAID) is False

    @pytest.mark.parametrize("current,target", [
        ("EXPIRED", "PAID"),
        ("PAID", "EXPIRED"),
        ("FAILED", "PAID"),
        ("PAID", "UNPAID"),
    ])
    def test_terminal_outcomes_are_final(self, current, target):
        with pytest.raises(InvalidTransition):
            ensure_transition("payment", current, target)

    def test_override_path_expires_paid_payment(self):
        assert ensure_transition("payment_override", "PAID", "EXPIRED") is True
        assert ensure_transition("payment_override", PaymentStatus.REFUNDED, PaymentStatus.EXPIRED) is True
        with pytest.raises(InvalidTransition):
            ensure_transition("payment_override", "UNPAID", "PAID")

    def test_enum_members_are_accepted(self):
        assert ensure_transition("payment", PaymentStatus.UNPAID, PaymentStatus.FAILED) is True
        assert ensure_transition("payment_override", PaymentStatus.PAID, "expired") is True


class TestOrderAndBookingTransitions:
    def test_order_completion_needs_payment_first(self):
        assert ensure_transition("order", OrderStatus.PAID, OrderStatus.COMPLETED)
        with pytest.raises(InvalidTransition):
            ensure_transition("order", OrderStatus.PENDING, OrderStatus.COMPLETED)

    def test_booking_cannot_leave_cancelled(self):
        with pytest.raises(InvalidTransition):
            ensure_transition("booking", BookingStatus.CANCELLED, BookingStatus.UPCOMING)

    def test_pending_booking_cannot_be_marked_played(self):
        with pytest.raises(InvalidTransition):
            ensure_transition("booking", BookingStatus.PENDING, BookingStatus.COMPLETED)


def test_unknown_status_rejected():
    with pytest.raises(InvalidTransition) as exc:
        parse_status("order", "ARCHIVED")
    assert exc.value.code == "INVALID_TRANSITION"
    assert parse_status("booking", " no_show ") == BookingStatus.NO_SHOW
    assert parse_status("payment", PaymentStatus.PAID) is PaymentStatus.PAID


def test_codes():
    code = generate_code("ORD")
    assert code.startswith("ORD-") and len(code) == 9

    taken = {"first"}

    def exists(candidate):
        # first draw collides, second is free
        if taken:
            taken.pop()
            return True
        return False

    assert unique_code("BK", exists).startswith("BK-")
