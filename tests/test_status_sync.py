import pytest

import services.status_sync as status_sync
from models.audit_log import AuditLog
from services.actor import PAYMENT_WEBHOOK
from services.errors import BookingNotFound, InvalidTransition, OrderNotFound
from services.reservation import OrderItem, create_order
from services.status_sync import update_booking_status, update_order_status, update_payment_status
from services.timeslots import parse_slots


@pytest.fixture
def order(session, world, day, player_actor):
    """Two bookings (courts X and Y) behind one unpaid payment."""
    items = [
        OrderItem(court_id=world.court_x.id, date=day, slots=parse_slots(["07:00-08:00", "08:00-09:00"]), price=100000),
        OrderItem(court_id=world.court_y.id, date=day, slots=parse_slots(["07:00-08:00"]), price=120000),
    ]
    return create_order(session, player_actor, world.player.id, items, "QRIS")


@pytest.fixture
def sent(monkeypatch):
    """Capture outgoing notifications instead of emailing."""
    calls = []
    monkeypatch.setattr(status_sync, "send_order_confirmation",
                        lambda code, notes: calls.append(("confirmed", code, len(notes))))
    monkeypatch.setattr(status_sync, "send_booking_cancellation",
                        lambda note, reason: calls.append(("cancelled", note.booking_code, reason)))
    return calls


def states(order):
    return (
        order.payment.status,
        order.status,
        [b.status for b in order.bookings],
        [b.blocking.is_blocking for b in order.bookings],
    )


class TestPaymentCascade:
    def test_paid_confirms_and_keeps_slots_blocked(self, session, order, sent):
        update_payment_status(session, order.payment.id, "PAID", PAYMENT_WEBHOOK)

        assert states(order) == ("PAID", "PAID", ["UPCOMING", "UPCOMING"], [True, True])
        assert order.payment.payment_date is not None
        assert sent == [("confirmed", order.order_code, 2)]

        audit = session.query(AuditLog).filter_by(action="PAYMENT_STATUS_SYNC").one()
        assert audit.actor == "system:payment-webhook"
        assert audit.user_id is None

    @pytest.mark.parametrize("outcome", ["EXPIRED", "FAILED"])
    def test_unsuccessful_outcome_cancels_and_releases(self, session, order, sent, outcome):
        update_payment_status(session, order.payment.id, outcome, PAYMENT_WEBHOOK)

        assert states(order) == (outcome, outcome, ["CANCELLED", "CANCELLED"], [False, False])
        assert order.payment.payment_date is None
        assert sorted(c[0] for c in sent) == ["cancelled", "cancelled"]
        assert {c[2] for c in sent} == {outcome}

    def test_refund_does_not_cascade(self, session, order, sent):
        update_payment_status(session, order.payment.id, "PAID", PAYMENT_WEBHOOK)
        update_payment_status(session, order.payment.id, "REFUNDED", PAYMENT_WEBHOOK)
        assert states(order) == ("REFUNDED", "PAID", ["UPCOMING", "UPCOMING"], [True, True])

    def test_repeating_a_status_changes_nothing(self, session, order, sent):
        update_payment_status(session, order.payment.id, "PAID", PAYMENT_WEBHOOK)
        first = states(order)
        update_payment_status(session, order.payment.id, "PAID", PAYMENT_WEBHOOK)

        assert states(order) == first
        assert len(sent) == 1
        assert session.query(AuditLog).filter_by(action="PAYMENT_STATUS_SYNC").count() == 1

    @pytest.mark.parametrize("first,second", [("EXPIRED", "PAID"), ("PAID", "EXPIRED"), ("FAILED", "PAID")])
    def test_resolved_payment_cannot_flip(self, session, order, sent, first, second):
        update_payment_status(session, order.payment.id, first, PAYMENT_WEBHOOK)
        before = states(order)
        with pytest.raises(InvalidTransition):
            update_payment_status(session, order.payment.id, second, PAYMENT_WEBHOOK)
        assert states(order) == before

    def test_individually_cancelled_booking_keeps_its_state(self, session, order, sent, staff_actor):
        update_payment_status(session, order.payment.id, "PAID", PAYMENT_WEBHOOK)
        cancelled = order.bookings[1]
        update_booking_status(session, cancelled.id, "CANCELLED", staff_actor)
        assert cancelled.blocking.is_blocking is False
        assert order.bookings[0].blocking.is_blocking is True

        update_order_status(session, order.id, "EXPIRED", staff_actor)
        assert [b.status for b in order.bookings] == ["CANCELLED", "CANCELLED"]


class TestBookingStatus:
    def test_order_completes_only_when_every_booking_is_finished(self, session, order, sent, staff_actor):
        update_payment_status(session, order.payment.id, "PAID", PAYMENT_WEBHOOK)
        first, second = order.bookings

        update_booking_status(session, second.id, "NO_SHOW", staff_actor)
        assert order.status == "PAID"
        update_booking_status(session, first.id, "COMPLETED", staff_actor)
        assert order.status == "COMPLETED"
        # finished bookings keep their slots locked
        assert [b.blocking.is_blocking for b in order.bookings] == [True, True]

    def test_cancelled_booking_prevents_completion(self, session, order, sent, staff_actor):
        update_payment_status(session, order.payment.id, "PAID", PAYMENT_WEBHOOK)
        first, second = order.bookings
        update_booking_status(session, second.id, "CANCELLED", staff_actor)
        update_booking_status(session, first.id, "COMPLETED", staff_actor)
        assert order.status == "PAID"

    def test_staff_cannot_confirm_bookings_directly(self, session, order, staff_actor):
        with pytest.raises(InvalidTransition):
            update_booking_status(session, order.bookings[0].id, "UPCOMING", staff_actor)

    def test_pending_booking_cannot_be_completed(self, session, order, staff_actor):
        with pytest.raises(InvalidTransition):
            update_booking_status(session, order.bookings[0].id, "COMPLETED", staff_actor)

    def test_unknown_booking(self, session, world, staff_actor):
        with pytest.raises(BookingNotFound):
            update_booking_status(session, 4242, "COMPLETED", staff_actor)

    def test_repeat_is_noop(self, session, order, sent, staff_actor):
        update_payment_status(session, order.payment.id, "PAID", PAYMENT_WEBHOOK)
        booking = order.bookings[0]
        update_booking_status(session, booking.id, "NO_SHOW", staff_actor)
        update_booking_status(session, booking.id, "NO_SHOW", staff_actor)
        assert session.query(AuditLog).filter_by(action="BOOKING_STATUS_UPDATE").count() == 1


class TestOrderOverride:
    @pytest.mark.parametrize("target", ["FAILED", "EXPIRED", "CANCELLED"])
    def test_cancelling_override_on_paid_order(self, session, order, sent, admin_actor, target):
        update_payment_status(session, order.payment.id, "PAID", PAYMENT_WEBHOOK)
        update_order_status(session, order.id, target, admin_actor)
        assert states(order) == ("EXPIRED", target, ["CANCELLED", "CANCELLED"], [False, False])

        audit = session.query(AuditLog).filter_by(action="ORDER_STATUS_UPDATE").one()
        assert audit.actor == "user:ADMIN"

    def test_override_on_unpaid_order(self, session, order, admin_actor):
        update_order_status(session, order.id, "CANCELLED", admin_actor)
        assert states(order) == ("EXPIRED", "CANCELLED", ["CANCELLED", "CANCELLED"], [False, False])

    def test_override_after_refund_still_releases_slots(self, session, order, sent, admin_actor):
        update_payment_status(session, order.payment.id, "PAID", PAYMENT_WEBHOOK)
        update_payment_status(session, order.payment.id, "REFUNDED", PAYMENT_WEBHOOK)

        update_order_status(session, order.id, "CANCELLED", admin_actor)
        assert states(order) == ("EXPIRED", "CANCELLED", ["CANCELLED", "CANCELLED"], [False, False])

    def test_completed_requires_finished_bookings(self, session, order, sent, admin_actor, staff_actor):
        update_payment_status(session, order.payment.id, "PAID", PAYMENT_WEBHOOK)
        with pytest.raises(InvalidTransition):
            update_order_status(session, order.id, "COMPLETED", admin_actor)
        assert order.status == "PAID"

    def test_paid_is_not_an_override_target(self, session, order, admin_actor):
        with pytest.raises(InvalidTransition):
            update_order_status(session, order.id, "PAID", admin_actor)

    def test_terminal_order_stays_terminal(self, session, order, admin_actor):
        update_order_status(session, order.id, "EXPIRED", admin_actor)
        with pytest.raises(InvalidTransition):
            update_order_status(session, order.id, "CANCELLED", admin_actor)

    def test_unknown_order(self, session, world, admin_actor):
        with pytest.raises(OrderNotFound):
            update_order_status(session, 4242, "CANCELLED", admin_actor)
