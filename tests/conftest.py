from datetime import date, timedelta
from decimal import Decimal

import pytest

from app import create_app
from config import TestConfig
from models import db
from models.booking import Booking, BookingStatus
from models.hotel import Hotel, Room
from models.identity import Admin, Customer, HotelManager, Manager
from security.password import hash_password

PASSWORD = "correct-horse-1"


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def make_customer(email="guest@example.com", password=PASSWORD, full_name="Guest One"):
    customer = Customer(email=email, password_hash=hash_password(password), full_name=full_name)
    db.session.add(customer)
    db.session.commit()
    return customer


def make_admin(email="admin@example.com", username="admin", password=PASSWORD):
    admin = Admin(email=email, username=username, password_hash=hash_password(password))
    db.session.add(admin)
    db.session.commit()
    return admin


def make_manager(email="manager@example.com", username="manager", password=PASSWORD):
    manager = Manager(email=email, username=username, password_hash=hash_password(password))
    db.session.add(manager)
    db.session.commit()
    return manager


def make_hotel_manager(hotel_name, email="legacy@example.com", username="legacy", password=PASSWORD):
    hm = HotelManager(email=email, username=username, hotel_name=hotel_name,
                      password_hash=hash_password(password))
    db.session.add(hm)
    db.session.commit()
    return hm


def make_hotel(name="Seaside Inn", manager=None):
    hotel = Hotel(name=name, address="2 Beach Road", contact="555-0101", manager=manager)
    db.session.add(hotel)
    db.session.commit()
    return hotel


def make_room(hotel, number="101", price="250.00", is_active=True):
    room = Room(hotel_id=hotel.id, room_number=number, type="STANDARD",
                price=Decimal(price), is_active=is_active)
    db.session.add(room)
    db.session.commit()
    return room


def make_booking(customer, room, check_in, check_out, status=BookingStatus.PENDING,
                 reference=None, total_price="250.00"):
    """Inserts a booking directly, bypassing the service's date checks."""
    booking = Booking(
        booking_reference=reference or f"HB-TEST-{room.id}-{check_in.isoformat()}",
        customer_id=customer.id,
        hotel_id=room.hotel_id,
        room_id=room.id,
        check_in=check_in,
        check_out=check_out,
        guests=2,
        total_price=Decimal(total_price),
        status=status,
        is_paid=status == BookingStatus.CONFIRMED,
    )
    db.session.add(booking)
    db.session.commit()
    return booking


def login(app, email, password=PASSWORD):
    c = app.test_client()
    resp = c.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.get_json()
    return c


def future(days):
    return date.today() + timedelta(days=days)
