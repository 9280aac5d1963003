"""
Status cascade between payments, orders, bookings and blockings.

Three entry points, one per trigger:

* ``update_payment_status``: gateway webhook or the expiry reaper
* ``update_booking_status``: staff marking a single booking
* ``update_order_status``: admin override on a whole order

Each runs in its own unit of work with the order row locked. Setting a status
to the value it already has changes nothing and sends nothing, so duplicate
webhook deliveries and client retries are harmless.
"""

import logging

from models.payment import Payment
from models.status import BookingStatus, OrderStatus, PaymentStatus
from services import blocking_store, booking_store, order_store, payment_store
from services.actor import Actor
from services.errors import InvalidTransition
from services.notifications import (
    notification_for_booking,
    send_booking_cancellation,
    send_order_confirmation,
)
from services.status_machine import (
    ADMIN_ORDER_TARGETS,
    FINISHED_BOOKING_STATUSES,
    ORDER_CANCELLING_STATUSES,
    PAYMENT_CASCADE,
    STAFF_BOOKING_TARGETS,
    parse_status,
)
from services.uow import UnitOfWork
from utils.audit import log_event

logger = logging.getLogger(__name__)


def lock_payment(session, payment_id: int) -> Payment:
    """Lock the payment's order, then re-read the payment under that lock."""
    payment = payment_store.get_payment(session, payment_id)
    order_store.get_order(session, payment.order_id, lock=True)
    session.refresh(payment)
    return payment


def _schedule_payment_notifications(uow, order, new_status: PaymentStatus):
    notes = [n for n in (notification_for_booking(b, order.order_code) for b in order.bookings) if n]
    if not notes:
        return
    if new_status == PaymentStatus.PAID:
        uow.after_commit(send_order_confirmation, order.order_code, notes)
    else:
        for n in notes:
            uow.after_commit(send_booking_cancellation, n, new_status.value)


def _cancel_order_bookings(uow, order):
    booking_store.cascade_booking_status(uow, order.bookings, BookingStatus.CANCELLED)
    return blocking_store.release_blockings_for_bookings(uow, [b.id for b in order.bookings])


def sync_payment_status(uow, payment: Payment, new_status, actor: Actor) -> bool:
    """
    Apply a payment status and cascade it to the order, its bookings and their
    blockings. Returns False when the payment already had that status.
    """
    new_status = parse_status("payment", new_status)
    old_status = payment.status
    if not payment_store.set_payment_status(uow, payment, new_status):
        logger.info("Payment %s already %s, nothing to sync", payment.id, new_status.value)
        return False

    order = payment.order
    released = 0
    cascade = PAYMENT_CASCADE.get(new_status)
    if cascade is not None:
        order_status, booking_status, release = cascade
        order_store.set_order_status(uow, order, order_status)
        booking_store.cascade_booking_status(uow, order.bookings, booking_status)
        if release:
            released = blocking_store.release_blockings_for_bookings(uow, [b.id for b in order.bookings])
        _schedule_payment_notifications(uow, order, new_status)

    log_event(
        uow.session, actor, "PAYMENT_STATUS_SYNC", entity="payment", entity_id=payment.id,
        metadata={
            "order_code": order.order_code,
            "before": old_status,
            "after": new_status.value,
            "order_status": order.status,
            "released_blockings": released,
        },
    )
    logger.info("Payment %s %s -> %s (order %s now %s)",
                payment.id, old_status, new_status.value, order.order_code, order.status)
    return True


def update_payment_status(session, payment_id: int, new_status, actor: Actor) -> Payment:
    new_status = parse_status("payment", new_status)
    with UnitOfWork(session) as uow:
        payment = lock_payment(session, payment_id)
        sync_payment_status(uow, payment, new_status, actor)
    return payment


def update_booking_status(session, booking_id: int, new_status, actor: Actor):
    """
    Staff marks one booking COMPLETED, NO_SHOW or CANCELLED.

    Finishing the last open booking of an order completes the order; cancelling
    releases only that booking's own blocking.
    """
    new_status = parse_status("booking", new_status)
    if new_status not in STAFF_BOOKING_TARGETS:
        raise InvalidTransition(
            f"Bookings cannot be set to {new_status.value} directly",
            requested=new_status.value,
        )

    with UnitOfWork(session) as uow:
        booking = booking_store.get_booking(session, booking_id)
        order = None
        if booking.order_id is not None:
            order = order_store.get_order(session, booking.order_id, lock=True)
            session.refresh(booking)

        old_status = booking.status
        changed = booking_store.set_booking_status(uow, booking, new_status)
        order_completed = False
        released = False

        if new_status in FINISHED_BOOKING_STATUSES:
            if order is not None and order_store.all_bookings_finished(order):
                order_completed = order_store.set_order_status(uow, order, OrderStatus.COMPLETED)
        elif new_status == BookingStatus.CANCELLED:
            released = blocking_store.release_blocking(uow, booking.blocking)

        if changed or order_completed or released:
            log_event(
                session, actor, "BOOKING_STATUS_UPDATE", entity="booking", entity_id=booking.id,
                metadata={
                    "booking_code": booking.booking_code,
                    "before": old_status,
                    "after": new_status.value,
                    "order_completed": order_completed,
                    "blocking_released": released,
                },
            )
    return booking


def update_order_status(session, order_id: int, new_status, actor: Actor):
    """
    Admin override. FAILED, EXPIRED and CANCELLED cancel every booking, release
    every blocking and expire the payment (even a PAID or REFUNDED one). COMPLETED is only
    accepted once every booking is completed or a no-show.
    """
    new_status = parse_status("order", new_status)
    if new_status not in ADMIN_ORDER_TARGETS:
        raise InvalidTransition(
            f"Orders cannot be set to {new_status.value} manually",
            requested=new_status.value,
        )

    with UnitOfWork(session) as uow:
        order = order_store.get_order(session, order_id, lock=True)
        if new_status == OrderStatus.COMPLETED and not order_store.all_bookings_finished(order):
            raise InvalidTransition(
                "Order can only be completed once every booking is completed or marked no-show",
                current=order.status,
                requested=new_status.value,
            )

        old_status = order.status
        if not order_store.set_order_status(uow, order, new_status):
            return order

        released = 0
        payment_before = order.payment.status if order.payment else None
        if new_status in ORDER_CANCELLING_STATUSES:
            released = _cancel_order_bookings(uow, order)
            if order.payment is not None:
                payment_store.set_payment_status(uow, order.payment, PaymentStatus.EXPIRED, override=True)

        log_event(
            session, actor, "ORDER_STATUS_UPDATE", entity="order", entity_id=order.id,
            metadata={
                "order_code": order.order_code,
                "before": old_status,
                "after": new_status.value,
                "payment_before": payment_before,
                "payment_after": order.payment.status if order.payment else None,
                "released_blockings": released,
            },
        )
    return order
