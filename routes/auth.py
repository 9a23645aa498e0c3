from flask import Blueprint, request, jsonify, current_app, g

from models import db
from models.identity import Customer
from security.password import hash_password, verify_password
from security.session import create_session, revoke_session, revoke_all_sessions
from services.identity import resolve_identity, normalize_email, CUSTOMER, Identity
from utils.audit import log_event
from utils.auth_context import login_required


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")

MIN_PASSWORD_LENGTH = 8


def _is_valid_email(email: str) -> bool:
    return isinstance(email, str) and "@" in email and len(email) <= 255


@auth_bp.post("/register")
def register():
    """Customer sign-up. Staff accounts are created from the CLI."""
    data = request.get_json(silent=True) or {}
    email = normalize_email(data.get("email"))
    password = data.get("password") or ""
    full_name = (data.get("full_name") or "").strip() or None
    phone_number = (data.get("phone_number") or "").strip() or None

    if not _is_valid_email(email):
        return jsonify(error="Invalid email"), 400
    if len(password) < MIN_PASSWORD_LENGTH:
        return jsonify(error=f"Password must be at least {MIN_PASSWORD_LENGTH} characters"), 400

    # an email may only belong to one identity across all tables
    if resolve_identity(email) is not None:
        log_event("REGISTER_FAIL_EMAIL_EXISTS", metadata={"email": email})
        return jsonify(error="Email already registered"), 409

    customer = Customer(
        email=email,
        password_hash=hash_password(password),
        full_name=full_name,
        phone_number=phone_number,
    )
    db.session.add(customer)
    db.session.commit()
    log_event("REGISTER_SUCCESS", identity=Identity(CUSTOMER, customer))

    return jsonify(message="Registered successfully", id=customer.id), 201


@auth_bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    email = normalize_email(data.get("email"))
    password = data.get("password") or ""

    identity = resolve_identity(email)
    if not identity or not verify_password(password, identity.record.password_hash):
        log_event(
            "LOGIN_FAIL",
            identity=identity,
            metadata={"email": email},
        )
        return jsonify(error="Invalid credentials"), 401

    # Rotate: revoke any existing sessions for this identity
    revoked_count = revoke_all_sessions(identity)

    raw_token = create_session(identity)
    cookie_name = current_app.config.get("AUTH_COOKIE_NAME", "hotelbooking_session")
    max_age = current_app.config.get("SESSION_LIFETIME_SECONDS", 8 * 60 * 60)

    resp = jsonify(message="Login OK", role=identity.role)
    resp.set_cookie(
        cookie_name,
        raw_token,
        httponly=True,
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        max_age=max_age,
        path="/",
    )

    log_event("LOGIN_SUCCESS", identity=identity, metadata={"revoked_sessions": revoked_count})
    return resp, 200


@auth_bp.get("/me")
@login_required
def me():
    record = g.identity.record
    return jsonify(
        id=record.id,
        email=record.email,
        role=g.identity.role,
        full_name=getattr(record, "full_name", None),
        username=getattr(record, "username", None),
    ), 200


@auth_bp.post("/logout")
@login_required
def logout():
    cookie_name = current_app.config.get("AUTH_COOKIE_NAME", "hotelbooking_session")
    raw_token = request.cookies.get(cookie_name)

    revoke_session(raw_token)
    log_event("LOGOUT")

    resp = jsonify(message="Logged out")
    resp.delete_cookie(cookie_name, path="/")
    return resp, 200
