from datetime import date
from decimal import Decimal, InvalidOperation


def parse_date(value) -> date:
    # Expect ISO format like "2026-06-01"
    if not isinstance(value, str):
        raise ValueError("Date must be a string")
    return date.fromisoformat(value)


def parse_decimal(value) -> Decimal:
    # floats would lose exactness, go through str
    if value is None or isinstance(value, bool):
        raise InvalidOperation("Amount required")
    result = Decimal(str(value).strip())
    if not result.is_finite():
        raise InvalidOperation("Amount must be finite")
    return result


CENT = Decimal("0.01")
# money columns are Numeric(10, 2)
MONEY_LIMIT = Decimal("100000000")


def is_money(value) -> bool:
    """True when the amount fits a money column without being rounded."""
    if value is None or not value.is_finite() or abs(value) >= MONEY_LIMIT:
        return False
    return value == value.quantize(CENT)
