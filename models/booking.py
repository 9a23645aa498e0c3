from datetime import datetime
from models.db import db


class BookingStatus:
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"

    # statuses that hold the room
    ACTIVE = (PENDING, CONFIRMED)


# status -> statuses it may move to
ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.CANCELLED},
    BookingStatus.CANCELLED: set(),
}


class InvalidTransition(ValueError):
    pass


class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)
    booking_reference = db.Column(db.String(40), unique=True, nullable=False, index=True)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    hotel_id = db.Column(db.Integer, db.ForeignKey("hotels.id"), nullable=False, index=True)
    room_id = db.Column(db.Integer, db.ForeignKey("rooms.id"), nullable=False, index=True)

    check_in = db.Column(db.Date, nullable=False)
    check_out = db.Column(db.Date, nullable=False)  # exclusive
    guests = db.Column(db.Integer, nullable=False, default=1)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)
    special_requests = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(20), nullable=False, default=BookingStatus.PENDING)
    is_paid = db.Column(db.Boolean, nullable=False, default=False)
    booking_date = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    customer = db.relationship("Customer")
    hotel = db.relationship("Hotel")
    room = db.relationship("Room")

    __table_args__ = (
        db.CheckConstraint("check_in < check_out", name="ck_booking_dates"),
        db.CheckConstraint("guests >= 1", name="ck_booking_guests"),
        # CONFIRMED and is_paid move together; a cancelled booking keeps its flag
        db.CheckConstraint(
            "status = 'CANCELLED' OR (status = 'CONFIRMED') = is_paid",
            name="ck_booking_paid_status",
        ),
        db.Index("ix_bookings_room_dates", "room_id", "check_in", "check_out"),
    )

    def _transition(self, new_status: str):
        current = self.status or BookingStatus.PENDING
        if new_status not in ALLOWED_TRANSITIONS.get(current, set()):
            raise InvalidTransition(f"Cannot move booking from {current} to {new_status}")
        self.status = new_status

    def mark_paid(self):
        """PENDING -> CONFIRMED, only reached through a completed payment."""
        self._transition(BookingStatus.CONFIRMED)
        self.is_paid = True

    def cancel(self):
        self._transition(BookingStatus.CANCELLED)
        self.cancelled_at = datetime.utcnow()

    @property
    def is_active(self) -> bool:
        return self.status in BookingStatus.ACTIVE
