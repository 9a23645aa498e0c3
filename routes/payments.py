import re
from decimal import InvalidOperation

from flask import Blueprint, request, jsonify, g

from models.payment import PaymentStatus
from security.rbac import require_roles
from services import payments as payment_service
from services.identity import ADMIN, CUSTOMER
from services.schemas import PaymentRequest
from utils.auth_context import login_required, current_email
from utils.audit import log_event
from utils.parsing import is_money, parse_decimal

payments_bp = Blueprint("payments", __name__, url_prefix="/payments")

CARD_NUMBER_RE = re.compile(r"^[0-9]{13,19}$")
EXPIRY_RE = re.compile(r"^(0[1-9]|1[0-2])/[0-9]{2}$")
CVV_RE = re.compile(r"^[0-9]{3,4}$")


def _parse_payment_request(data: dict):
    errors = {}
    reference = str(data.get("booking_reference") or "").strip()
    card_number = re.sub(r"[\s-]", "", str(data.get("card_number") or ""))
    expiry_date = str(data.get("expiry_date") or "").strip()
    cvv = str(data.get("cvv") or "").strip()
    name_on_card = str(data.get("name_on_card") or "").strip()

    if not reference:
        errors["booking_reference"] = "required"
    if not CARD_NUMBER_RE.match(card_number):
        errors["card_number"] = "must be between 13 and 19 digits"
    if not EXPIRY_RE.match(expiry_date):
        errors["expiry_date"] = "must be in MM/YY format"
    if not CVV_RE.match(cvv):
        errors["cvv"] = "must be 3 or 4 digits"
    if not name_on_card:
        errors["name_on_card"] = "required"

    amount = None
    try:
        amount = parse_decimal(data.get("amount"))
    except InvalidOperation:
        errors["amount"] = "must be a decimal amount"
    if amount is not None and not is_money(amount):
        errors["amount"] = "must have at most 2 decimal places and 8 integer digits"

    if errors:
        return None, errors

    return PaymentRequest(
        booking_reference=reference,
        card_number=card_number,
        expiry_date=expiry_date,
        cvv=cvv,
        name_on_card=name_on_card,
        amount=amount,
        payment_method=str(data.get("payment_method") or "").strip() or None,
    ), None


def payment_to_dict(p):
    return {
        "id": p.id,
        "booking_reference": p.booking_reference,
        "customer_id": p.customer_id,
        "amount": str(p.amount),
        "payment_status": p.payment_status,
        "payment_method": p.payment_method,
        "card_last_four": p.card_last_four,
        "transaction_id": p.transaction_id,
        "payment_gateway": p.payment_gateway,
        "error_message": p.error_message,
        "payment_date": p.payment_date.isoformat(),
    }


@payments_bp.post("")
@require_roles(CUSTOMER)
def process_payment():
    data = request.get_json(silent=True) or {}
    payment_request, errors = _parse_payment_request(data)
    if errors:
        return jsonify(error="Invalid payment request", details=errors), 400

    outcome = payment_service.process_payment(payment_request, current_email())

    action = "PAYMENT_COMPLETED" if outcome.payment_status == PaymentStatus.COMPLETED else "PAYMENT_FAILED"
    log_event(
        action,
        entity="booking",
        entity_id=outcome.booking_reference,
        metadata={"transaction_id": outcome.transaction_id, "message": outcome.message},
    )
    # declined or rejected payments are still a 200: callers read payment_status
    return jsonify(outcome.to_dict()), 200


@payments_bp.get("/booking/<string:reference>")
@login_required
def get_payment(reference: str):
    payment = payment_service.get_payment_by_booking_reference(reference)
    if payment is None:
        return jsonify(error="Payment not found"), 404

    is_owner = g.identity.role == CUSTOMER and payment.customer_id == g.identity.record.id
    if not is_owner and g.identity.role != ADMIN:
        log_event("PAYMENT_VIEW_DENIED", entity="payment", entity_id=payment.id)
        return jsonify(error="You are not authorized to view this payment"), 403

    return jsonify(payment_to_dict(payment)), 200


@payments_bp.get("/me")
@require_roles(CUSTOMER)
def my_payments():
    rows = payment_service.get_payments_by_customer(current_email())
    return jsonify([payment_to_dict(p) for p in rows]), 200


@payments_bp.get("")
@require_roles(ADMIN)
def list_all_payments():
    rows = payment_service.get_all_payments()
    return jsonify([payment_to_dict(p) for p in rows]), 200
