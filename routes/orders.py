from flask import Blueprint, request, jsonify, current_app, g

from models import db
from security.rbac import STAFF_ROLES, has_role, require_roles
from services.errors import ValidationError
from services.order_store import get_order, orders_for_user
from services.reservation import OrderItem, create_order
from services.status_sync import update_order_status
from utils.auth_context import current_actor, login_required
from utils.serializers import order_to_dict

orders_bp = Blueprint("orders", __name__, url_prefix="/orders")


def _int_field(data: dict, name: str) -> int:
    try:
        return int(data.get(name) or 0)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer")


# ---------- CUSTOMERS: checkout ----------
@orders_bp.post("")
@login_required
def create():
    data = request.get_json(silent=True) or {}
    raw_items = data.get("bookings")
    if not isinstance(raw_items, list) or not raw_items:
        return jsonify(error="bookings must be a non-empty list"), 400

    tz_name = current_app.config.get("BOOKING_TIMEZONE")
    items = [OrderItem.from_dict(item, tz_name) for item in raw_items]

    order = create_order(
        db.session,
        current_actor(),
        user_id=g.user.id,
        items=items,
        channel_name=data.get("channel_name") or "",
        tax_amount=_int_field(data, "tax_amount"),
        booking_fee=_int_field(data, "booking_fee"),
    )
    return jsonify(order_to_dict(order)), 201


@orders_bp.get("/me")
@login_required
def my_orders():
    status = request.args.get("status")
    rows = orders_for_user(db.session, g.user.id, status=status)
    return jsonify([order_to_dict(o) for o in rows]), 200


@orders_bp.get("/<int:order_id>")
@login_required
def detail(order_id: int):
    order = get_order(db.session, order_id)
    if order.user_id != g.user.id and not has_role(*STAFF_ROLES):
        return jsonify(error="Order not found"), 404
    return jsonify(order_to_dict(order)), 200


# ---------- ADMIN: override ----------
@orders_bp.patch("/<int:order_id>/status")
@require_roles("ADMIN")
def set_status(order_id: int):
    data = request.get_json(silent=True) or {}
    status = (data.get("status") or "").strip()
    if not status:
        return jsonify(error="status is required"), 400

    order = update_order_status(db.session, order_id, status, current_actor())
    return jsonify(order_to_dict(order)), 200
