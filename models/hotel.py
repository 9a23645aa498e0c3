from datetime import datetime
from models.db import db

class Hotel(db.Model):
    __tablename__ = "hotels"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(160), unique=True, nullable=False)
    address = db.Column(db.String(255), nullable=False)
    contact = db.Column(db.String(60), nullable=False)
    description = db.Column(db.Text, nullable=True)
    amenities = db.Column(db.Text, nullable=True)

    manager_id = db.Column(db.Integer, db.ForeignKey("managers.id"), nullable=True, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    manager = db.relationship("Manager", back_populates="hotels")
    rooms = db.relationship("Room", back_populates="hotel", cascade="all, delete-orphan")


class Room(db.Model):
    __tablename__ = "rooms"

    id = db.Column(db.Integer, primary_key=True)
    hotel_id = db.Column(db.Integer, db.ForeignKey("hotels.id"), nullable=False, index=True)
    room_number = db.Column(db.String(20), nullable=False)
    type = db.Column(db.String(50), nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)  # per night
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    hotel = db.relationship("Hotel", back_populates="rooms")

    __table_args__ = (
        db.UniqueConstraint("hotel_id", "room_number", name="uq_room_number_per_hotel"),
    )
