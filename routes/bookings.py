from flask import Blueprint, request, jsonify, current_app

from models import db
from models.court import Court
from security.rbac import STAFF_ROLES, require_roles
from services.availability import check_availability
from services.dates import parse_booking_date
from services.errors import CourtNotFound, InvalidSlotRange
from services.manual_booking import ManualBookingRequest, create_manual_booking
from services.status_sync import update_booking_status
from services.timeslots import Slot, validate_grid
from utils.auth_context import current_actor, login_required
from utils.serializers import booking_to_dict

bookings_bp = Blueprint("bookings", __name__)


# ---------- PLAYERS: check availability ----------
@bookings_bp.get("/courts/<int:court_id>/availability")
@login_required
def availability(court_id: int):
    # slots as a comma separated list, e.g. ?slots=07:00-08:00,08:00-09:00
    day = parse_booking_date(request.args.get("date"), current_app.config.get("BOOKING_TIMEZONE"))
    slots = [validate_grid(Slot.parse(s)) for s in (request.args.get("slots") or "").split(",") if s.strip()]
    if not slots:
        raise InvalidSlotRange("slots query parameter is required")

    if Court.active(db.session).filter(Court.id == court_id).first() is None:
        raise CourtNotFound("Court not found", court_id=court_id)

    result = check_availability(db.session, court_id, day, slots)
    return jsonify(court_id=court_id, date=day.isoformat(), **result.to_dict()), 200


# ---------- STAFF/ADMIN: manual booking ----------
@bookings_bp.post("/bookings/manual")
@require_roles(*STAFF_ROLES)
def manual_booking():
    data = request.get_json(silent=True) or {}
    booking_request = ManualBookingRequest.from_dict(
        data,
        tz_name=current_app.config.get("BOOKING_TIMEZONE"),
        slot_minutes=current_app.config.get("SLOT_MINUTES", 60),
    )
    result = create_manual_booking(db.session, current_actor(), booking_request)
    return jsonify(result.to_dict()), 201


# ---------- STAFF/ADMIN: mark booking ----------
@bookings_bp.patch("/bookings/<int:booking_id>/status")
@require_roles(*STAFF_ROLES)
def set_status(booking_id: int):
    data = request.get_json(silent=True) or {}
    status = (data.get("status") or "").strip()
    if not status:
        return jsonify(error="status is required"), 400

    booking = update_booking_status(db.session, booking_id, status, current_actor())
    return jsonify(booking_to_dict(booking)), 200
