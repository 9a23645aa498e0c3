import logging
import secrets
import time
from datetime import date, datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError

from models import db
from models.booking import Booking, BookingStatus
from models.hotel import Hotel, Room
from services.availability import is_available
from services.errors import ConflictError, ForbiddenError, InvalidRequestError, NotFoundError
from services.identity import find_customer_by_email
from services.schemas import BookingRequest
from utils.parsing import is_money

logger = logging.getLogger(__name__)


def generate_booking_reference(prefix: str = "HB") -> str:
    # low-order digits of epoch millis keep it short and roughly increasing;
    # the random tail avoids collisions between bookings in the same window
    millis = str(int(time.time() * 1000))[6:]
    return f"{prefix}-{millis}-{secrets.token_hex(2).upper()}"


def _reference_taken(reference: str) -> bool:
    return Booking.query.filter_by(booking_reference=reference).first() is not None


def _new_reference() -> str:
    prefix = current_app.config.get("BOOKING_REFERENCE_PREFIX", "HB")
    attempts = current_app.config.get("BOOKING_REFERENCE_ATTEMPTS", 5)
    for _ in range(attempts):
        reference = generate_booking_reference(prefix)
        if not _reference_taken(reference):
            return reference
    raise ConflictError("Could not allocate a unique booking reference, please retry")


def create_booking(request: BookingRequest, customer_email: str) -> Booking:
    logger.info("Creating booking for customer %s", customer_email)

    customer = find_customer_by_email(customer_email)
    if customer is None:
        raise NotFoundError("Customer not found")

    hotel = db.session.get(Hotel, request.hotel_id)
    if hotel is None:
        raise NotFoundError("Hotel not found")

    # Row lock on the room (SQLite: the write lock taken at BEGIN IMMEDIATE)
    # holds until commit, so the availability check below cannot be raced.
    room = (
        Room.query
        .filter_by(id=request.room_id)
        .with_for_update()
        .first()
    )
    if room is None or not room.is_active:
        raise NotFoundError("Room not found")
    if room.hotel_id != hotel.id:
        raise InvalidRequestError("Room does not belong to the selected hotel")

    if request.guests is None or request.guests < 1:
        raise InvalidRequestError("At least one guest is required")
    if request.total_price is None or request.total_price <= 0:
        raise InvalidRequestError("Total price must be positive")
    if not is_money(request.total_price):
        raise InvalidRequestError("Total price must have at most 2 decimal places and 8 integer digits")

    check_in, check_out = request.check_in, request.check_out
    if check_in >= check_out:
        raise InvalidRequestError("Check-in date must be before check-out date")
    if check_in < date.today():
        raise InvalidRequestError("Check-in date cannot be in the past")

    if not is_available(room.id, check_in, check_out):
        logger.warning("Room %s not available for %s..%s", room.id, check_in, check_out)
        raise ConflictError("Room is not available for the requested dates")

    reference = (request.booking_reference or "").strip()
    if reference:
        if _reference_taken(reference):
            raise ConflictError("Booking reference already in use")
    else:
        reference = _new_reference()

    booking = Booking(
        booking_reference=reference,
        customer_id=customer.id,
        hotel_id=hotel.id,
        room_id=room.id,
        check_in=check_in,
        check_out=check_out,
        guests=request.guests,
        total_price=request.total_price,
        special_requests=request.special_requests,
        status=BookingStatus.PENDING,
        is_paid=False,
        booking_date=datetime.utcnow(),
    )
    db.session.add(booking)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Booking reference already in use")

    logger.info("Booking %s created", booking.booking_reference)
    return booking


def get_booking_by_reference(reference: str):
    """No ownership check here; callers decide who may see the booking."""
    return Booking.query.filter_by(booking_reference=reference).first()


def get_bookings_by_customer(customer_email: str):
    customer = find_customer_by_email(customer_email)
    if customer is None:
        raise NotFoundError("Customer not found")
    return (
        Booking.query
        .filter_by(customer_id=customer.id)
        .order_by(Booking.booking_date.desc())
        .all()
    )


def get_bookings_by_hotel(hotel_id: int):
    hotel = db.session.get(Hotel, hotel_id)
    if hotel is None:
        raise NotFoundError("Hotel not found")
    return (
        Booking.query
        .filter_by(hotel_id=hotel.id)
        .order_by(Booking.check_in.asc())
        .all()
    )


def get_all_bookings():
    return Booking.query.order_by(Booking.booking_date.desc()).all()


def cancel_booking(reference: str, customer_email: str) -> Booking:
    customer = find_customer_by_email(customer_email)
    if customer is None:
        raise NotFoundError("Customer not found")

    booking = get_booking_by_reference(reference)
    if booking is None:
        raise NotFoundError("Booking not found")

    if booking.customer_id != customer.id:
        logger.warning("Customer %s tried to cancel booking %s", customer_email, reference)
        raise ForbiddenError("You are not authorized to cancel this booking")

    if not booking.is_active:
        raise ConflictError("Booking is already cancelled")

    if date.today() > booking.check_in:
        raise ConflictError("Booking cannot be cancelled after check-in date")

    # no refund is issued here; a paid booking keeps is_paid
    booking.cancel()
    db.session.commit()

    logger.info("Booking %s cancelled", reference)
    return booking
