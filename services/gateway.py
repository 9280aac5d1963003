"""
Payment gateway adapters.

Stripe hosted checkout for starting a payment, plus translation of gateway
callbacks (Stripe events and plain invoice callbacks) into internal payment
statuses. Statuses that carry no outcome map to None and are ignored.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from urllib.parse import urlencode, urlparse, parse_qsl, urlunparse

import stripe
from flask import current_app

from models.status import PaymentStatus
from services.errors import ConflictError, ReservationError
from services.status_machine import ensure_transition
from services.uow import UnitOfWork
from utils.audit import log_event

logger = logging.getLogger(__name__)

STRIPE_EVENT_STATUS = {
    "checkout.session.completed": PaymentStatus.PAID,
    "checkout.session.async_payment_succeeded": PaymentStatus.PAID,
    "checkout.session.async_payment_failed": PaymentStatus.FAILED,
    "checkout.session.expired": PaymentStatus.EXPIRED,
}

# checkout.session.completed only means PAID when the session reports one of these
STRIPE_SETTLED_PAYMENT_STATUSES = {"paid", "no_payment_required"}

INVOICE_STATUS = {
    "PAID": PaymentStatus.PAID,
    "SETTLED": PaymentStatus.PAID,
    "EXPIRED": PaymentStatus.EXPIRED,
    "FAILED": PaymentStatus.FAILED,
}


class GatewayNotConfigured(ReservationError):
    status_code = 500
    code = "GATEWAY_NOT_CONFIGURED"


@dataclass
class GatewayCallback:
    gateway_reference: Optional[str]
    payment_id: Optional[int]
    status: Optional[PaymentStatus]
    raw_status: str


def _to_int(value) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _append_query(url: str, params: dict) -> str:
    if not url:
        return url
    parts = urlparse(url)
    query = dict(parse_qsl(parts.query))
    query.update({k: v for k, v in params.items() if v is not None})
    return urlunparse(parts._replace(query=urlencode(query)))


def stripe_callback(event) -> Optional[GatewayCallback]:
    event_type = event.get("type")
    if event_type not in STRIPE_EVENT_STATUS:
        return None
    session_obj = event["data"]["object"]
    meta = session_obj.get("metadata", {}) or {}
    status = STRIPE_EVENT_STATUS[event_type]
    raw_status = event_type
    if event_type == "checkout.session.completed":
        # delayed methods complete the session before the money arrives
        payment_status = session_obj.get("payment_status")
        if payment_status not in STRIPE_SETTLED_PAYMENT_STATUSES:
            status = None
            raw_status = f"{event_type} ({payment_status})"
    return GatewayCallback(
        gateway_reference=session_obj.get("id"),
        payment_id=_to_int(meta.get("payment_id")),
        status=status,
        raw_status=raw_status,
    )


def invoice_callback(body: dict) -> Optional[GatewayCallback]:
    """Plain invoice payload: {"id": <invoice id>, "external_id": <payment id>, "status": ...}."""
    if not isinstance(body, dict):
        return None
    if not body.get("id") or not body.get("external_id") or not body.get("status"):
        return None
    raw_status = str(body["status"]).upper()
    return GatewayCallback(
        gateway_reference=str(body["id"]),
        payment_id=_to_int(body.get("external_id")),
        status=INVOICE_STATUS.get(raw_status),
        raw_status=raw_status,
    )


def start_checkout(session, actor, payment, now: datetime = None) -> str:
    """Create a Stripe Checkout session for an unpaid payment and return its URL."""
    now = now or datetime.utcnow()
    if payment.status != PaymentStatus.UNPAID.value:
        raise ConflictError("Payment is no longer awaiting payment", status=payment.status)
    if payment.expires_at <= now:
        raise ConflictError("Payment window has expired", expires_at=payment.expires_at.isoformat())
    if payment.payment_url:
        return payment.payment_url

    stripe.api_key = current_app.config.get("STRIPE_SECRET_KEY")
    success_url = current_app.config.get("STRIPE_SUCCESS_URL")
    cancel_url = current_app.config.get("STRIPE_CANCEL_URL")
    if not stripe.api_key:
        raise GatewayNotConfigured("Stripe secret key not configured")
    if not success_url or not cancel_url:
        raise GatewayNotConfigured("Stripe success/cancel URLs not configured")

    order = payment.order
    total = payment.amount + payment.tax_amount + payment.booking_fee
    checkout = stripe.checkout.Session.create(
        mode="payment",
        line_items=[{
            "price_data": {
                "currency": payment.currency.lower(),
                "product_data": {"name": f"Court booking {order.order_code}"},
                # IDR-style currencies are zero-decimal on Stripe's side
                "unit_amount": total,
            },
            "quantity": 1,
        }],
        success_url=success_url,
        cancel_url=_append_query(cancel_url, {"payment_id": str(payment.id)}),
        client_reference_id=order.order_code,
        metadata={
            "payment_id": str(payment.id),
            "order_id": str(order.id),
            "user_id": str(order.user_id),
        },
    )

    with UnitOfWork(session) as uow:
        payment.gateway_reference = checkout["id"]
        payment.payment_url = checkout["url"]
        log_event(uow.session, actor, "PAYMENT_CHECKOUT_CREATE", entity="payment", entity_id=payment.id,
                  metadata={"gateway_reference": checkout["id"]})
    return payment.payment_url


def is_actionable(current_status: str, new_status: PaymentStatus) -> bool:
    """False for duplicates and out-of-order callbacks that the state machine would refuse."""
    try:
        return ensure_transition("payment", current_status, new_status)
    except ReservationError:
        return False
