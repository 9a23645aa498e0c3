"""
Payment reconciliation.

Business failures (unknown booking, duplicate payment, wrong amount, declined
card) come back as a FAILED ``PaymentOutcome`` rather than an exception, so
callers branch on ``payment_status``. Database errors are not caught here and
reach the app's error handler as system failures.
"""
import logging
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError

from models import db
from models.booking import Booking, BookingStatus
from models.payment import Payment, PaymentStatus
from services.errors import NotFoundError
from services.gateway import get_gateway
from services.identity import find_customer_by_email
from services.schemas import PaymentOutcome, PaymentRequest
from utils.parsing import is_money

logger = logging.getLogger(__name__)

BOOKING_NOT_FOUND = "Booking not found"
CUSTOMER_NOT_FOUND = "Customer not found"
ALREADY_PROCESSED = "Payment already processed for this booking"
BOOKING_CANCELLED = "Booking has been cancelled"
AMOUNT_MISMATCH = "Payment amount does not match booking amount"
INVALID_AMOUNT = "Payment amount must have at most 2 decimal places and 8 integer digits"


def _failed(request: PaymentRequest, message: str, transaction_id=None) -> PaymentOutcome:
    return PaymentOutcome(
        booking_reference=request.booking_reference,
        amount=request.amount,
        payment_status=PaymentStatus.FAILED,
        message=message,
        transaction_id=transaction_id,
    )


def has_completed_payment(booking_reference: str) -> bool:
    return Payment.query.filter_by(
        booking_reference=booking_reference,
        payment_status=PaymentStatus.COMPLETED,
    ).first() is not None


def _payment_row(request: PaymentRequest, customer, status: str, gateway_name: str,
                 transaction_id=None, error_message=None) -> Payment:
    return Payment(
        booking_reference=request.booking_reference,
        customer_id=customer.id,
        amount=request.amount,
        payment_status=status,
        payment_method=request.payment_method or current_app.config.get("DEFAULT_PAYMENT_METHOD", "CREDIT_CARD"),
        card_last_four=request.card_last_four,
        transaction_id=transaction_id,
        payment_gateway=gateway_name,
        error_message=error_message,
        payment_date=datetime.utcnow(),
    )


def _record_failure(request: PaymentRequest, customer, message: str) -> PaymentOutcome:
    gateway_name = current_app.config.get("PAYMENT_GATEWAY_NAME", "SIMULATED")
    db.session.add(_payment_row(request, customer, PaymentStatus.FAILED, gateway_name, error_message=message))
    db.session.commit()
    return _failed(request, message)


def process_payment(request: PaymentRequest, customer_email: str) -> PaymentOutcome:
    reference = request.booking_reference
    logger.info("Processing payment for booking %s", reference)

    # lock the booking so two submissions for it are handled one at a time
    booking = (
        Booking.query
        .filter_by(booking_reference=reference)
        .with_for_update()
        .first()
    )
    if booking is None:
        logger.warning("Payment for unknown booking %s", reference)
        db.session.rollback()
        return _failed(request, BOOKING_NOT_FOUND)

    customer = find_customer_by_email(customer_email)
    if customer is None:
        logger.warning("Payment from unknown customer %s", customer_email)
        db.session.rollback()
        return _failed(request, CUSTOMER_NOT_FOUND)

    if has_completed_payment(reference):
        logger.warning("Payment already completed for booking %s", reference)
        db.session.rollback()
        return _failed(request, ALREADY_PROCESSED)

    # not storable without rounding, so no attempt row is written
    if not is_money(request.amount):
        logger.warning("Unusable payment amount %s for %s", request.amount, reference)
        db.session.rollback()
        return _failed(request, INVALID_AMOUNT)

    if booking.status == BookingStatus.CANCELLED:
        return _record_failure(request, customer, BOOKING_CANCELLED)

    # exact decimal comparison, 250 == 250.00 but 249.99 != 250.00
    if request.amount != booking.total_price:
        logger.warning(
            "Payment amount %s does not match booking amount %s for %s",
            request.amount, booking.total_price, reference,
        )
        return _record_failure(request, customer, AMOUNT_MISMATCH)

    gateway = get_gateway()
    result = gateway.charge(request.card_number, request.amount, request.payment_method)

    if result.payment_status == PaymentStatus.COMPLETED:
        db.session.add(_payment_row(
            request, customer, PaymentStatus.COMPLETED, gateway.name,
            transaction_id=result.transaction_id,
        ))
        booking.mark_paid()
        try:
            db.session.commit()
        except IntegrityError:
            # a concurrent submission completed first
            db.session.rollback()
            logger.warning("Duplicate completed payment rejected for booking %s", reference)
            return _failed(request, ALREADY_PROCESSED)
        logger.info("Payment %s completed for booking %s", result.transaction_id, reference)
    else:
        db.session.add(_payment_row(
            request, customer, PaymentStatus.FAILED, gateway.name,
            transaction_id=result.transaction_id,
            error_message=result.message,
        ))
        db.session.commit()
        logger.warning("Payment %s failed for booking %s: %s", result.transaction_id, reference, result.message)

    return PaymentOutcome(
        booking_reference=reference,
        amount=request.amount,
        payment_status=result.payment_status,
        message=result.message,
        transaction_id=result.transaction_id,
    )


def get_payment_by_booking_reference(booking_reference: str):
    """The completed payment if there is one, else the latest attempt."""
    completed = Payment.query.filter_by(
        booking_reference=booking_reference,
        payment_status=PaymentStatus.COMPLETED,
    ).first()
    if completed is not None:
        return completed
    return (
        Payment.query
        .filter_by(booking_reference=booking_reference)
        .order_by(Payment.payment_date.desc(), Payment.id.desc())
        .first()
    )


def get_payments_by_customer(customer_email: str):
    customer = find_customer_by_email(customer_email)
    if customer is None:
        raise NotFoundError("Customer not found")
    return (
        Payment.query
        .filter_by(customer_id=customer.id)
        .order_by(Payment.payment_date.desc(), Payment.id.desc())
        .all()
    )


def get_all_payments():
    return Payment.query.order_by(Payment.payment_date.desc(), Payment.id.desc()).all()
