from datetime import datetime
from models.db import db


class PaymentStatus:
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class Payment(db.Model):
    __tablename__ = "payments"

    id = db.Column(db.Integer, primary_key=True)
    # logical link to bookings.booking_reference, one row per attempt
    booking_reference = db.Column(db.String(40), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)

    amount = db.Column(db.Numeric(10, 2), nullable=False)
    payment_status = db.Column(db.String(20), nullable=False, default=PaymentStatus.PENDING)
    payment_method = db.Column(db.String(100), nullable=True)
    card_last_four = db.Column(db.String(4), nullable=True)  # never the full number
    transaction_id = db.Column(db.String(64), nullable=True)
    payment_gateway = db.Column(db.String(40), nullable=True)
    error_message = db.Column(db.String(255), nullable=True)

    payment_date = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    customer = db.relationship("Customer")

    __table_args__ = (
        # at most one completed payment per booking; failed attempts may repeat
        db.Index(
            "uq_payments_completed_reference",
            "booking_reference",
            unique=True,
            sqlite_where=db.text("payment_status = 'COMPLETED'"),
            postgresql_where=db.text("payment_status = 'COMPLETED'"),
        ),
    )
