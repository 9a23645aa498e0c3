import re
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from models import db
from models.booking import BookingStatus
from models.payment import Payment, PaymentStatus
from services import payments as payment_service
from services.errors import NotFoundError
from services.gateway import SimulatedGateway
from services.schemas import PaymentRequest

from conftest import future, make_booking, make_customer, make_hotel, make_room

ODD_CARD = "4111111111111113"
EVEN_CARD = "4111111111111114"


@pytest.fixture
def booking(app):
    customer = make_customer()
    room = make_room(make_hotel())
    return make_booking(customer, room, future(10), future(12), reference="HB-PAY-0001", total_price="250.00")


def _pay(card=ODD_CARD, amount="250.00", reference="HB-PAY-0001", **overrides):
    fields = dict(
        booking_reference=reference,
        card_number=card,
        expiry_date="12/29",
        cvv="123",
        name_on_card="Guest One",
        amount=Decimal(amount),
    )
    fields.update(overrides)
    return PaymentRequest(**fields)


def test_gateway_approves_odd_and_declines_even_cards():
    gateway = SimulatedGateway()
    approved = gateway.charge(ODD_CARD, Decimal("10"))
    declined = gateway.charge(EVEN_CARD, Decimal("10"))

    assert approved.payment_status == PaymentStatus.COMPLETED
    assert approved.message == "Payment processed successfully"
    assert declined.payment_status == PaymentStatus.FAILED
    assert declined.message == "Payment declined by issuing bank"
    assert re.match(r"^TX-[0-9a-f]{8}$", approved.transaction_id)
    assert approved.transaction_id != declined.transaction_id


def test_successful_payment_confirms_booking(booking):
    outcome = payment_service.process_payment(_pay(), "guest@example.com")

    assert outcome.payment_status == PaymentStatus.COMPLETED
    assert outcome.transaction_id.startswith("TX-")
    assert outcome.amount == Decimal("250.00")

    db.session.refresh(booking)
    assert booking.status == BookingStatus.CONFIRMED
    assert booking.is_paid is True

    payment = Payment.query.filter_by(booking_reference="HB-PAY-0001").one()
    assert payment.payment_status == PaymentStatus.COMPLETED
    assert payment.card_last_four == "1113"
    assert payment.transaction_id == outcome.transaction_id
    assert payment.payment_gateway == "SIMULATED"
    assert payment.payment_method == "CREDIT_CARD"
    assert payment.customer_id == booking.customer_id


def test_full_card_number_is_never_stored(booking):
    payment_service.process_payment(_pay(), "guest@example.com")
    payment = Payment.query.one()
    for column in Payment.__table__.columns:
        value = getattr(payment, column.key)
        assert ODD_CARD not in str(value)
        assert "123" != str(value)


def test_declined_payment_leaves_booking_pending(booking):
    outcome = payment_service.process_payment(_pay(card=EVEN_CARD), "guest@example.com")

    assert outcome.payment_status == PaymentStatus.FAILED
    assert outcome.message == "Payment declined by issuing bank"

    db.session.refresh(booking)
    assert booking.status == BookingStatus.PENDING
    assert booking.is_paid is False

    payment = Payment.query.one()
    assert payment.payment_status == PaymentStatus.FAILED
    assert payment.error_message == "Payment declined by issuing bank"
    assert payment.card_last_four == "1114"


def test_retry_after_decline_can_succeed(booking):
    payment_service.process_payment(_pay(card=EVEN_CARD), "guest@example.com")
    outcome = payment_service.process_payment(_pay(card=ODD_CARD), "guest@example.com")

    assert outcome.payment_status == PaymentStatus.COMPLETED
    db.session.refresh(booking)
    assert booking.status == BookingStatus.CONFIRMED
    assert Payment.query.count() == 2


def test_second_payment_after_success_is_rejected(booking):
    payment_service.process_payment(_pay(), "guest@example.com")
    outcome = payment_service.process_payment(_pay(card="4111111111111115"), "guest@example.com")

    assert outcome.payment_status == PaymentStatus.FAILED
    assert outcome.message == "Payment already processed for this booking"
    assert outcome.transaction_id is None
    db.session.refresh(booking)
    assert booking.status == BookingStatus.CONFIRMED
    assert Payment.query.count() == 1


def test_amount_mismatch_fails_and_is_recorded(booking):
    outcome = payment_service.process_payment(_pay(amount="249.99"), "guest@example.com")

    assert outcome.payment_status == PaymentStatus.FAILED
    assert outcome.message == "Payment amount does not match booking amount"
    db.session.refresh(booking)
    assert booking.status == BookingStatus.PENDING

    payment = Payment.query.one()
    assert payment.payment_status == PaymentStatus.FAILED
    assert payment.error_message == "Payment amount does not match booking amount"
    assert payment.transaction_id is None


def test_amount_comparison_is_exact_decimal(booking):
    outcome = payment_service.process_payment(_pay(amount="250.001"), "guest@example.com")
    assert outcome.payment_status == PaymentStatus.FAILED

    outcome = payment_service.process_payment(_pay(amount="250"), "guest@example.com")
    assert outcome.payment_status == PaymentStatus.COMPLETED


def test_amount_with_sub_cent_precision_is_rejected_without_record(booking):
    outcome = payment_service.process_payment(_pay(amount="250.001"), "guest@example.com")

    assert outcome.payment_status == PaymentStatus.FAILED
    assert outcome.message == "Payment amount must have at most 2 decimal places and 8 integer digits"
    assert outcome.amount == Decimal("250.001")
    assert Payment.query.count() == 0


def test_unknown_booking_fails_without_record(app):
    make_customer()
    outcome = payment_service.process_payment(_pay(reference="HB-MISSING"), "guest@example.com")

    assert outcome.payment_status == PaymentStatus.FAILED
    assert outcome.message == "Booking not found"
    assert Payment.query.count() == 0


def test_unknown_customer_fails_without_record(booking):
    outcome = payment_service.process_payment(_pay(), "stranger@example.com")

    assert outcome.payment_status == PaymentStatus.FAILED
    assert outcome.message == "Customer not found"
    assert Payment.query.count() == 0


def test_cancelled_booking_cannot_be_paid(booking):
    booking.cancel()
    db.session.commit()

    outcome = payment_service.process_payment(_pay(), "guest@example.com")
    assert outcome.payment_status == PaymentStatus.FAILED
    assert outcome.message == "Booking has been cancelled"
    db.session.refresh(booking)
    assert booking.status == BookingStatus.CANCELLED
    assert booking.is_paid is False


def test_custom_payment_method_is_kept(booking):
    payment_service.process_payment(_pay(payment_method="DEBIT_CARD"), "guest@example.com")
    assert Payment.query.one().payment_method == "DEBIT_CARD"


def test_completed_payments_are_unique_per_booking(booking):
    for _ in range(2):
        db.session.add(Payment(
            booking_reference="HB-PAY-0001",
            customer_id=booking.customer_id,
            amount=Decimal("250.00"),
            payment_status=PaymentStatus.COMPLETED,
        ))
    with pytest.raises(IntegrityError):
        db.session.commit()
    db.session.rollback()


def test_concurrent_duplicate_is_turned_into_failed_outcome(booking, monkeypatch):
    # another request committed its completed payment after our check ran
    db.session.add(Payment(
        booking_reference="HB-PAY-0001",
        customer_id=booking.customer_id,
        amount=Decimal("250.00"),
        payment_status=PaymentStatus.COMPLETED,
    ))
    db.session.commit()
    monkeypatch.setattr(payment_service, "has_completed_payment", lambda reference: False)

    outcome = payment_service.process_payment(_pay(), "guest@example.com")

    assert outcome.payment_status == PaymentStatus.FAILED
    assert outcome.message == "Payment already processed for this booking"
    assert Payment.query.count() == 1
    db.session.refresh(booking)
    assert booking.status == BookingStatus.PENDING


def test_payment_lookups(booking):
    payment_service.process_payment(_pay(card=EVEN_CARD), "guest@example.com")
    assert payment_service.get_payment_by_booking_reference("HB-PAY-0001").payment_status == PaymentStatus.FAILED

    payment_service.process_payment(_pay(), "guest@example.com")
    assert payment_service.get_payment_by_booking_reference("HB-PAY-0001").payment_status == PaymentStatus.COMPLETED
    assert payment_service.get_payment_by_booking_reference("HB-NONE") is None

    assert len(payment_service.get_payments_by_customer("guest@example.com")) == 2
    assert len(payment_service.get_all_payments()) == 2

    with pytest.raises(NotFoundError):
        payment_service.get_payments_by_customer("nobody@example.com")
