import logging
from collections import namedtuple

from models import db
from models.identity import Customer, Admin, Manager, HotelManager

logger = logging.getLogger(__name__)

CUSTOMER = "CUSTOMER"
ADMIN = "ADMIN"
HOTEL_MANAGER = "HOTEL_MANAGER"
MANAGER = "MANAGER"

# lookup order matters: the first table holding the email wins
IDENTITY_TABLES = (
    (CUSTOMER, Customer),
    (ADMIN, Admin),
    (HOTEL_MANAGER, HotelManager),
    (MANAGER, Manager),
)
_MODELS = dict(IDENTITY_TABLES)

Identity = namedtuple("Identity", ["role", "record"])


def normalize_email(value: str) -> str:
    return (value or "").strip().lower()


def resolve_identity(email: str):
    """
    Returns the Identity for ``email`` or None.
    """
    email = normalize_email(email)
    if not email:
        return None
    for role, model in IDENTITY_TABLES:
        record = model.query.filter_by(email=email).first()
        if record is not None:
            logger.debug("Resolved %s as %s", email, role)
            return Identity(role, record)
    logger.debug("No identity found for %s", email)
    return None


def load_identity(role: str, identity_id: int):
    model = _MODELS.get(role)
    if model is None or identity_id is None:
        return None
    record = db.session.get(model, identity_id)
    if record is None:
        return None
    return Identity(role, record)


def find_customer_by_email(email: str):
    email = normalize_email(email)
    if not email:
        return None
    return Customer.query.filter_by(email=email).first()
