from models import db
from models.identity import Admin
from security.password import hash_password, verify_password
from services.identity import (
    ADMIN, CUSTOMER, HOTEL_MANAGER, MANAGER,
    find_customer_by_email, load_identity, resolve_identity,
)

from conftest import make_admin, make_customer, make_hotel_manager, make_manager


def test_resolves_each_identity_table(app):
    make_customer("c@example.com")
    make_admin("a@example.com")
    make_manager("m@example.com")
    make_hotel_manager("Seaside Inn", email="h@example.com")

    assert resolve_identity("c@example.com").role == CUSTOMER
    assert resolve_identity("a@example.com").role == ADMIN
    assert resolve_identity("m@example.com").role == MANAGER
    assert resolve_identity("h@example.com").role == HOTEL_MANAGER
    assert resolve_identity("x@example.com") is None
    assert resolve_identity("") is None


def test_lookup_order_prefers_customer_then_admin(app):
    make_customer("shared@example.com")
    db.session.add(Admin(email="shared@example.com", username="shared", password_hash=hash_password("pw-123456")))
    db.session.commit()

    identity = resolve_identity("shared@example.com")
    assert identity.role == CUSTOMER


def test_email_is_normalised(app):
    customer = make_customer("mixed@example.com")
    assert resolve_identity("  MIXED@example.COM ").record.id == customer.id
    assert find_customer_by_email("Mixed@Example.com").id == customer.id


def test_find_customer_ignores_staff(app):
    make_admin("a@example.com")
    assert find_customer_by_email("a@example.com") is None


def test_load_identity(app):
    manager = make_manager()
    identity = load_identity(MANAGER, manager.id)
    assert identity.record.email == manager.email
    assert load_identity(MANAGER, 999) is None
    assert load_identity("NOT_A_ROLE", manager.id) is None


def test_password_hashing(app):
    hashed = hash_password("s3cret-pass")
    assert hashed != "s3cret-pass"
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("s3cret-pass", "not-a-bcrypt-hash")
