from datetime import date

from models.booking import Booking, BookingStatus


def dates_overlap(existing_check_in: date, existing_check_out: date,
                  new_check_in: date, new_check_out: date) -> bool:
    # half-open [check_in, check_out): a shared boundary day is not an overlap
    return new_check_in < existing_check_out and new_check_out > existing_check_in


def is_available(room_id: int, check_in: date, check_out: date) -> bool:
    """
    True when no PENDING/CONFIRMED booking of the room overlaps
    [check_in, check_out). Cancelled bookings never block.

    Callers that go on to insert a booking must hold the room lock
    (see services.bookings.create_booking) for the check to stay valid.
    """
    bookings = (
        Booking.query
        .filter(Booking.room_id == room_id, Booking.status.in_(BookingStatus.ACTIVE))
        .all()
    )
    return not any(
        dates_overlap(b.check_in, b.check_out, check_in, check_out)
        for b in bookings
    )
