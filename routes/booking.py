from decimal import InvalidOperation

from flask import Blueprint, request, jsonify, g

from models import db
from models.hotel import Hotel, Room
from security.rbac import require_roles
from services import bookings as booking_service
from services.availability import is_available
from services.identity import ADMIN, CUSTOMER, HOTEL_MANAGER, MANAGER
from services.schemas import BookingRequest
from utils.auth_context import login_required, current_email
from utils.audit import log_event
from utils.parsing import parse_date, parse_decimal

booking_bp = Blueprint("booking", __name__)


def _parse_booking_request(data: dict):
    """
    Returns (BookingRequest, None) or (None, {field: error}).
    """
    errors = {}
    for field in ("hotel_id", "room_id", "check_in", "check_out", "guests", "total_price"):
        if data.get(field) in (None, ""):
            errors[field] = "required"
    if errors:
        return None, errors

    parsed = {}
    for field in ("hotel_id", "room_id", "guests"):
        value = data.get(field)
        if isinstance(value, bool):
            errors[field] = "must be an integer"
            continue
        try:
            parsed[field] = int(value)
        except (TypeError, ValueError):
            errors[field] = "must be an integer"

    for field in ("check_in", "check_out"):
        try:
            parsed[field] = parse_date(data.get(field))
        except ValueError:
            errors[field] = "invalid date, use YYYY-MM-DD"

    try:
        parsed["total_price"] = parse_decimal(data.get("total_price"))
    except InvalidOperation:
        errors["total_price"] = "must be a decimal amount"

    if errors:
        return None, errors

    return BookingRequest(
        special_requests=str(data.get("special_requests") or "").strip() or None,
        booking_reference=str(data.get("booking_reference") or "").strip() or None,
        **parsed,
    ), None


def booking_to_dict(b):
    return {
        "id": b.id,
        "booking_reference": b.booking_reference,
        "customer_id": b.customer_id,
        "customer_email": b.customer.email if b.customer else None,
        "hotel_id": b.hotel_id,
        "room_id": b.room_id,
        "check_in": b.check_in.isoformat(),
        "check_out": b.check_out.isoformat(),
        "guests": b.guests,
        "total_price": str(b.total_price),
        "special_requests": b.special_requests,
        "status": b.status,
        "is_paid": b.is_paid,
        "booking_date": b.booking_date.isoformat(),
        "cancelled_at": b.cancelled_at.isoformat() if b.cancelled_at else None,
    }


def _manages_hotel(identity, hotel) -> bool:
    if identity.role == ADMIN:
        return True
    if identity.role == MANAGER:
        return hotel.manager_id == identity.record.id
    if identity.role == HOTEL_MANAGER:
        # legacy accounts only know their hotel by name
        return (identity.record.hotel_name or "").strip().lower() == hotel.name.strip().lower()
    return False


# ---------- CUSTOMERS: create booking ----------
@booking_bp.post("/bookings")
@require_roles(CUSTOMER)
def create_booking():
    data = request.get_json(silent=True) or {}
    booking_request, errors = _parse_booking_request(data)
    if errors:
        return jsonify(error="Invalid booking request", details=errors), 400

    booking = booking_service.create_booking(booking_request, current_email())

    log_event(
        "BOOKING_CREATE",
        entity="booking",
        entity_id=booking.id,
        metadata={"reference": booking.booking_reference, "room_id": booking.room_id},
    )
    return jsonify(booking_to_dict(booking)), 201


# ---------- CUSTOMERS: view my bookings ----------
@booking_bp.get("/bookings/me")
@require_roles(CUSTOMER)
def my_bookings():
    rows = booking_service.get_bookings_by_customer(current_email())
    return jsonify([booking_to_dict(b) for b in rows]), 200


@booking_bp.get("/bookings/<string:reference>")
@login_required
def get_booking(reference: str):
    booking = booking_service.get_booking_by_reference(reference)
    if booking is None:
        return jsonify(error="Booking not found"), 404

    is_owner = g.identity.role == CUSTOMER and booking.customer_id == g.identity.record.id
    if not is_owner and g.identity.role != ADMIN:
        log_event("BOOKING_VIEW_DENIED", entity="booking", entity_id=booking.id)
        return jsonify(error="You are not authorized to view this booking"), 403

    return jsonify(booking_to_dict(booking)), 200


# ---------- CUSTOMERS: cancel booking ----------
@booking_bp.post("/bookings/<string:reference>/cancel")
@require_roles(CUSTOMER)
def cancel_booking(reference: str):
    booking = booking_service.cancel_booking(reference, current_email())

    log_event("BOOKING_CANCEL", entity="booking", entity_id=booking.id,
              metadata={"reference": booking.booking_reference})
    return jsonify(booking_to_dict(booking)), 200


# ---------- ADMIN: list all bookings ----------
@booking_bp.get("/bookings")
@require_roles(ADMIN)
def list_all_bookings():
    status = request.args.get("status")
    rows = booking_service.get_all_bookings()
    if status:
        rows = [b for b in rows if b.status == status.upper()]
    return jsonify([booking_to_dict(b) for b in rows]), 200


# ---------- MANAGERS: bookings of a hotel ----------
@booking_bp.get("/hotels/<int:hotel_id>/bookings")
@require_roles(ADMIN, MANAGER, HOTEL_MANAGER)
def hotel_bookings(hotel_id: int):
    # service raises NotFound for unknown hotels
    rows = booking_service.get_bookings_by_hotel(hotel_id)

    hotel = db.session.get(Hotel, hotel_id)
    if not _manages_hotel(g.identity, hotel):
        return jsonify(error="You do not manage this hotel"), 403

    return jsonify([booking_to_dict(b) for b in rows]), 200


@booking_bp.get("/rooms/<int:room_id>/availability")
@login_required
def room_availability(room_id: int):
    room = db.session.get(Room, room_id)
    if room is None or not room.is_active:
        return jsonify(error="Room not found"), 404

    try:
        check_in = parse_date(request.args.get("check_in"))
        check_out = parse_date(request.args.get("check_out"))
    except ValueError:
        return jsonify(error="check_in and check_out are required, use YYYY-MM-DD"), 400
    if check_in >= check_out:
        return jsonify(error="Check-in date must be before check-out date"), 400

    return jsonify(
        room_id=room.id,
        check_in=check_in.isoformat(),
        check_out=check_out.isoformat(),
        available=is_available(room.id, check_in, check_out),
    ), 200
