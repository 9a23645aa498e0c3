from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional


@dataclass
class BookingRequest:
    hotel_id: int
    room_id: int
    check_in: date
    check_out: date
    guests: int
    total_price: Decimal
    special_requests: Optional[str] = None
    booking_reference: Optional[str] = None


@dataclass
class PaymentRequest:
    booking_reference: str
    card_number: str
    expiry_date: str
    cvv: str
    name_on_card: str
    amount: Decimal
    payment_method: Optional[str] = None

    @property
    def card_last_four(self) -> str:
        if self.card_number and len(self.card_number) >= 4:
            return self.card_number[-4:]
        return ""


@dataclass
class PaymentOutcome:
    booking_reference: str
    amount: Decimal
    payment_status: str
    message: str
    transaction_id: Optional[str] = None

    def to_dict(self):
        return {
            "booking_reference": self.booking_reference,
            "amount": str(self.amount) if self.amount is not None else None,
            "payment_status": self.payment_status,
            "message": self.message,
            "transaction_id": self.transaction_id,
        }
