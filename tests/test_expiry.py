from datetime import timedelta

import pytest

import services.expiry as expiry
from models.audit_log import AuditLog
from services.actor import PAYMENT_WEBHOOK
from services.expiry import expire_payment_if_due, sweep_expired_payments
from services.reservation import OrderItem, create_order
from services.status_sync import update_payment_status
from services.timeslots import parse_slots


@pytest.fixture
def place(session, world, day, player_actor):
    def _place(court=None, slots=("07:00-08:00", "08:00-09:00"), user=None):
        court = court or world.court_x
        user = user or world.player
        items = [OrderItem(court_id=court.id, date=day, slots=parse_slots(slots), price=100000)]
        return create_order(session, player_actor, user.id, items, "QRIS")
    return _place


def test_sweep_after_expiry_releases_slots(session, world, place):
    order = place()
    payment_id = order.payment.id
    result = sweep_expired_payments(session, now=order.payment.expires_at + timedelta(seconds=1))

    assert result.expired == [payment_id]
    assert result.failed == []
    assert order.payment.status == "EXPIRED"
    assert order.status == "EXPIRED"
    assert order.bookings[0].status == "CANCELLED"
    assert order.bookings[0].blocking.is_blocking is False

    audit = session.query(AuditLog).filter_by(action="PAYMENT_STATUS_SYNC").one()
    assert audit.actor == "system:expiry-reaper"

    # the freed slot can be booked again
    again = place(user=world.other)
    assert again.status == "PENDING"


def test_sweep_never_expires_early(session, place):
    order = place()
    expires_at = order.payment.expires_at

    result = sweep_expired_payments(session, now=expires_at - timedelta(seconds=1))
    assert result.expired == []
    assert order.payment.status == "UNPAID"
    assert order.bookings[0].blocking.is_blocking is True

    result = sweep_expired_payments(session, now=expires_at)
    assert result.expired == [order.payment.id]


def test_sweep_is_per_payment(session, world, place):
    first = place()
    second = place(court=world.court_y)
    update_payment_status(session, second.payment.id, "PAID", PAYMENT_WEBHOOK)

    result = sweep_expired_payments(session, now=first.payment.expires_at + timedelta(minutes=1))
    assert result.expired == [first.payment.id]
    assert second.payment.status == "PAID"
    assert second.bookings[0].blocking.is_blocking is True


def test_payment_paid_after_the_sweep_query_is_left_alone(session, place):
    order = place()
    later = order.payment.expires_at + timedelta(minutes=1)
    update_payment_status(session, order.payment.id, "PAID", PAYMENT_WEBHOOK)

    assert expire_payment_if_due(session, order.payment.id, later) is False
    assert order.payment.status == "PAID"


def test_second_sweep_finds_nothing(session, place):
    order = place()
    later = order.payment.expires_at + timedelta(minutes=1)
    sweep_expired_payments(session, now=later)
    result = sweep_expired_payments(session, now=later)
    assert (result.expired, result.skipped, result.failed) == ([], [], [])


def test_unexpected_error_on_one_payment_does_not_stop_the_sweep(session, world, place, monkeypatch):
    broken = place()
    healthy = place(court=world.court_y)
    broken_id = broken.payment.id
    real = expiry.expire_payment_if_due

    def expire(session, payment_id, now):
        if payment_id == broken_id:
            raise ValueError("corrupt row")
        return real(session, payment_id, now)

    monkeypatch.setattr(expiry, "expire_payment_if_due", expire)
    later = max(broken.payment.expires_at, healthy.payment.expires_at) + timedelta(minutes=1)
    result = sweep_expired_payments(session, now=later)

    assert result.failed == [broken_id]
    assert result.expired == [healthy.payment.id]
    assert healthy.payment.status == "EXPIRED"
    assert broken.payment.status == "UNPAID"
