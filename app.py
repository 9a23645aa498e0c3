import logging

from flask import Flask, jsonify
from flask_migrate import Migrate
from sqlalchemy.exc import OperationalError

from config import Config
from routes import health_bp, auth_bp, booking_bp, payments_bp

from models import db
from models.db import use_immediate_transactions
from services.errors import DomainError
from utils.auth_context import load_current_identity

logger = logging.getLogger(__name__)


def _configure_logging(app):
    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    _configure_logging(app)

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(booking_bp)
    app.register_blueprint(payments_bp)

    # Database init
    db.init_app(app)
    with app.app_context():
        if db.engine.dialect.name == "sqlite":
            use_immediate_transactions(db.engine)

    # Migrations
    Migrate(app, db)

    @app.before_request
    def _load_identity():
        load_current_identity()

    @app.errorhandler(DomainError)
    def _domain_error(exc):
        payload = {"error": exc.message}
        if exc.details:
            payload["details"] = exc.details
        return jsonify(payload), exc.status_code

    @app.errorhandler(OperationalError)
    def _store_unavailable(exc):
        # system failure, not a business outcome: caller may retry
        db.session.rollback()
        logger.exception("Database unavailable")
        return jsonify(error="Service temporarily unavailable, please retry"), 503

    register_cli(app)

    return app

#-------------------------
import click
from models.identity import Admin, Manager, HotelManager
from security.password import hash_password
from services.identity import resolve_identity, normalize_email
from utils.seed import seed_demo_inventory

def _create_staff(model, email, password, **fields):
    email = normalize_email(email)
    if resolve_identity(email) is not None:
        print(f"{email} is already registered")
        return None
    record = model(email=email, password_hash=hash_password(password), **fields)
    db.session.add(record)
    db.session.commit()
    return record

def register_cli(app):
    @app.cli.command("create-admin")
    @click.argument("email")
    @click.argument("username")
    @click.password_option()
    def create_admin(email, username, password):
        """Create an ADMIN account (bootstrap)."""
        if _create_staff(Admin, email, password, username=username):
            print(f"{email} created as ADMIN")

    @app.cli.command("create-manager")
    @click.argument("email")
    @click.argument("username")
    @click.password_option()
    @click.option("--legacy-hotel", default=None, help="Create a legacy hotel manager for this hotel name.")
    def create_manager(email, username, password, legacy_hotel):
        """Create a MANAGER account, or a legacy HOTEL_MANAGER with --legacy-hotel."""
        if legacy_hotel:
            created = _create_staff(HotelManager, email, password, username=username, hotel_name=legacy_hotel)
            role = "HOTEL_MANAGER"
        else:
            created = _create_staff(Manager, email, password, username=username)
            role = "MANAGER"
        if created:
            print(f"{email} created as {role}")

    @app.cli.command("seed-demo")
    @click.option("--manager-email", default=None, help="Attach the demo hotel to this manager.")
    def seed_demo(manager_email):
        """Create a demo hotel with a few rooms (safe & idempotent)."""
        hotel = seed_demo_inventory(manager_email)
        print(f"Hotel #{hotel.id} {hotel.name} has {len(hotel.rooms)} rooms")

#-------------------------


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
