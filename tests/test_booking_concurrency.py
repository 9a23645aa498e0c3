import threading
from decimal import Decimal

import pytest

from app import create_app
from config import TestConfig
from models import db
from models.booking import Booking, BookingStatus
from services import bookings as booking_service
from services.errors import ConflictError
from services.schemas import BookingRequest

from conftest import future, make_customer, make_hotel, make_room


@pytest.fixture
def file_app(tmp_path):
    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'hotelbooking.db'}"

    app = create_app(FileConfig)
    with app.app_context():
        db.create_all()
        make_customer("first@example.com")
        make_customer("second@example.com")
        room = make_room(make_hotel())
        ids = (room.hotel_id, room.id)
        db.session.remove()

    yield app, ids

    with app.app_context():
        db.drop_all()
        db.engine.dispose()


def test_concurrent_bookings_of_the_same_dates_cannot_both_succeed(file_app, monkeypatch):
    app, (hotel_id, room_id) = file_app
    # without the write lock both requests would pass the check before either inserts
    both_checked = threading.Barrier(2, timeout=1)
    real_is_available = booking_service.is_available

    def is_available_then_wait(*args):
        free = real_is_available(*args)
        try:
            both_checked.wait()
        except threading.BrokenBarrierError:
            pass
        return free

    monkeypatch.setattr(booking_service, "is_available", is_available_then_wait)
    results = []

    def book(email):
        with app.app_context():
            request = BookingRequest(
                hotel_id=hotel_id,
                room_id=room_id,
                check_in=future(10),
                check_out=future(12),
                guests=2,
                total_price=Decimal("500.00"),
            )
            try:
                results.append(booking_service.create_booking(request, email).booking_reference)
            except Exception as exc:
                results.append(exc)

    threads = [threading.Thread(target=book, args=(email,))
               for email in ("first@example.com", "second@example.com")]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=15)

    created = [r for r in results if isinstance(r, str)]
    conflicts = [r for r in results if isinstance(r, ConflictError)]
    assert len(created) == 1, results
    assert len(conflicts) == 1, results
    assert conflicts[0].message == "Room is not available for the requested dates"

    with app.app_context():
        active = Booking.query.filter(
            Booking.room_id == room_id,
            Booking.status.in_(BookingStatus.ACTIVE),
        ).count()
    assert active == 1
