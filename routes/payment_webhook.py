import hmac
import logging

import stripe
from flask import Blueprint, request, jsonify, current_app

from models import db
from models.payment import Payment
from services.actor import PAYMENT_WEBHOOK
from services.errors import InvalidTransition
from services.gateway import invoice_callback, is_actionable, stripe_callback
from services.payment_store import find_by_gateway_reference
from services.status_sync import update_payment_status

logger = logging.getLogger(__name__)

webhook_bp = Blueprint("webhook", __name__, url_prefix="/webhooks")


def _find_payment(callback):
    payment = find_by_gateway_reference(db.session, callback.gateway_reference)
    if payment is None and callback.payment_id is not None:
        payment = db.session.get(Payment, callback.payment_id)
    return payment


def _apply(callback):
    """
    Deliveries are at-least-once and may arrive out of order. Unknown
    payments, non-outcome statuses, duplicates and stale callbacks are
    acknowledged with 200 so the gateway stops retrying.
    """
    if callback.status is None:
        logger.info("Payment callback status %s ignored", callback.raw_status)
        return jsonify(received=True, ignored="status"), 200

    payment = _find_payment(callback)
    if payment is None:
        logger.warning("Payment callback for unknown payment ref=%s id=%s",
                       callback.gateway_reference, callback.payment_id)
        return jsonify(received=True, ignored="unknown_payment"), 200

    if not is_actionable(payment.status, callback.status):
        logger.info("Payment %s is %s; callback %s ignored",
                    payment.id, payment.status, callback.status.value)
        return jsonify(received=True, ignored="stale_or_duplicate", status=payment.status), 200

    try:
        payment = update_payment_status(db.session, payment.id, callback.status, PAYMENT_WEBHOOK)
    except InvalidTransition as exc:
        # lost a race with another delivery or the expiry sweep
        logger.info("Payment %s callback rejected: %s", payment.id, exc.message)
        return jsonify(received=True, ignored="stale_or_duplicate"), 200
    return jsonify(received=True, payment_id=payment.id, status=payment.status), 200


@webhook_bp.post("/stripe")
def stripe_webhook():
    endpoint_secret = current_app.config.get("STRIPE_WEBHOOK_SECRET")
    if not endpoint_secret:
        return jsonify(error="Webhook secret not configured"), 500

    try:
        event = stripe.Webhook.construct_event(
            request.data, request.headers.get("Stripe-Signature"), endpoint_secret
        )
    except (ValueError, stripe.SignatureVerificationError):
        return jsonify(error="Invalid webhook signature"), 400

    callback = stripe_callback(event)
    if callback is None:
        return jsonify(received=True, ignored="event"), 200
    return _apply(callback)


@webhook_bp.post("/payment")
def invoice_webhook():
    expected = current_app.config.get("PAYMENT_WEBHOOK_TOKEN")
    if not expected:
        return jsonify(error="Webhook not configured"), 500

    token = request.headers.get("X-CALLBACK-TOKEN") or ""
    if not hmac.compare_digest(token, expected):
        return jsonify(error="Unauthorized"), 401

    callback = invoice_callback(request.get_json(silent=True))
    if callback is None:
        return jsonify(error="Invalid webhook payload format"), 400
    return _apply(callback)
