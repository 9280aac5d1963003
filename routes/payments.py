from flask import Blueprint, jsonify, g

from models import db
from security.rbac import STAFF_ROLES, has_role
from services.gateway import start_checkout
from services.payment_store import get_payment
from utils.auth_context import current_actor, login_required
from utils.serializers import payment_to_dict

payments_bp = Blueprint("payments", __name__, url_prefix="/payments")


def _owned_payment(payment_id: int, allow_staff: bool):
    payment = get_payment(db.session, payment_id)
    if payment.order.user_id == g.user.id or (allow_staff and has_role(*STAFF_ROLES)):
        return payment
    return None


@payments_bp.get("/<int:payment_id>")
@login_required
def detail(payment_id: int):
    payment = _owned_payment(payment_id, allow_staff=True)
    if payment is None:
        return jsonify(error="Payment not found"), 404
    return jsonify(payment_to_dict(payment)), 200


@payments_bp.post("/<int:payment_id>/checkout")
@login_required
def checkout(payment_id: int):
    payment = _owned_payment(payment_id, allow_staff=False)
    if payment is None:
        return jsonify(error="Payment not found"), 404

    checkout_url = start_checkout(db.session, current_actor(), payment)
    return jsonify(payment_id=payment.id, checkout_url=checkout_url), 200
