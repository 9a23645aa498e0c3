"""
Payment gateway used by the payment service.

``SimulatedGateway`` stands in for a real processor: cards whose last digit
is odd are approved, even ones are declined. A real gateway only has to
provide the same ``charge`` signature and return a ``GatewayResult``.
"""
import secrets
from collections import namedtuple

from flask import current_app

from models.payment import PaymentStatus

GatewayResult = namedtuple("GatewayResult", ["payment_status", "transaction_id", "message"])

APPROVED_MESSAGE = "Payment processed successfully"
DECLINED_MESSAGE = "Payment declined by issuing bank"


class SimulatedGateway:
    def __init__(self, name: str = "SIMULATED", transaction_prefix: str = "TX"):
        self.name = name
        self.transaction_prefix = transaction_prefix

    def _transaction_id(self) -> str:
        return f"{self.transaction_prefix}-{secrets.token_hex(4)}"

    def charge(self, card_number: str, amount, payment_method=None) -> GatewayResult:
        transaction_id = self._transaction_id()
        digits = (card_number or "").strip()
        if digits[-1:].isdigit() and int(digits[-1]) % 2 == 1:
            return GatewayResult(PaymentStatus.COMPLETED, transaction_id, APPROVED_MESSAGE)
        return GatewayResult(PaymentStatus.FAILED, transaction_id, DECLINED_MESSAGE)


def get_gateway() -> SimulatedGateway:
    return SimulatedGateway(
        name=current_app.config.get("PAYMENT_GATEWAY_NAME", "SIMULATED"),
        transaction_prefix=current_app.config.get("TRANSACTION_ID_PREFIX", "TX"),
    )
