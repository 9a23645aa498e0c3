from decimal import Decimal

from models import db
from models.hotel import Hotel, Room
from models.identity import Manager
from services.identity import normalize_email

DEMO_HOTEL = {
    "name": "Harbour View Hotel",
    "address": "1 Quay Street",
    "contact": "+1 555 0100",
    "description": "Demo inventory for local development",
}

DEMO_ROOMS = [
    ("101", "STANDARD", Decimal("120.00")),
    ("102", "STANDARD", Decimal("120.00")),
    ("201", "DELUXE", Decimal("180.00")),
    ("301", "SUITE", Decimal("250.00")),
]

def seed_demo_inventory(manager_email=None) -> Hotel:
    hotel = Hotel.query.filter_by(name=DEMO_HOTEL["name"]).first()
    if not hotel:
        hotel = Hotel(**DEMO_HOTEL)
        db.session.add(hotel)

    if manager_email:
        manager = Manager.query.filter_by(email=normalize_email(manager_email)).first()
        if manager:
            hotel.manager = manager

    existing = {r.room_number for r in hotel.rooms}
    for number, room_type, price in DEMO_ROOMS:
        if number not in existing:
            hotel.rooms.append(Room(room_number=number, type=room_type, price=price))
    db.session.commit()
    return hotel
