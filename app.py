import logging
import time

import click
from flask import Flask, jsonify
from flask_migrate import Migrate
from sqlalchemy.exc import SQLAlchemyError

from config import Config
from models import db
from routes import health_bp, orders_bp, bookings_bp, payments_bp, webhook_bp
from services.errors import ReservationError
from services.expiry import sweep_expired_payments
from utils.auth_context import load_current_user
from utils.seed import seed_roles

logger = logging.getLogger(__name__)


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(bookings_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(webhook_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    @app.before_request
    def _load_user():
        load_current_user()

    @app.errorhandler(ReservationError)
    def _reservation_error(exc):
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(SQLAlchemyError)
    def _storage_error(exc):
        db.session.rollback()
        logger.error("Storage failure", exc_info=exc)
        return jsonify(
            error="The system could not complete the request, please retry",
            code="TRANSIENT",
            retryable=True,
        ), 503

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app

#-------------------------

def register_cli(app):
    @app.cli.command("seed-roles")
    def seed_roles_command():
        """Create the default roles (idempotent)."""
        seed_roles(db.session)
        print("Roles seeded")

    @app.cli.command("expire-payments")
    @click.option("--loop", is_flag=True, help="Keep sweeping until interrupted.")
    @click.option("--interval", type=int, default=None, help="Seconds between sweeps.")
    def expire_payments(loop, interval):
        """Expire unpaid payments whose payment window has passed."""
        interval = interval or app.config.get("EXPIRY_SWEEP_INTERVAL_SECONDS", 60)
        while True:
            result = sweep_expired_payments(db.session)
            print(f"expired={result.expired} skipped={result.skipped} failed={result.failed}")
            if not loop:
                break
            time.sleep(interval)

#-------------------------


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
