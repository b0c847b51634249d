import logging

import click
from flask import Flask, jsonify
from flask_migrate import Migrate
from sqlalchemy import inspect

from config import Config
from models import db
from models.user import User
from routes import health_bp, auth_bp, cafes_bp, bookings_bp, payments_bp
from scheduling.errors import BookingError
from security.csrf import csrf_protect
from security.rbac import ADMIN
from utils.auth_context import load_current_user
from utils.seed import ensure_roles, grant_role


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))
    for name in ("scheduling", "utils"):
        logging.getLogger(name).setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(cafes_bp)
    app.register_blueprint(bookings_bp)
    app.register_blueprint(payments_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    # Seed default roles once the schema exists (idempotent)
    with app.app_context():
        if inspect(db.engine).has_table("roles"):
            ensure_roles()

    app.before_request(load_current_user)
    app.before_request(csrf_protect)

    @app.errorhandler(BookingError)
    def _booking_error(exc):
        if exc.status_code >= 500:
            app.logger.error("%s: %s", type(exc).__name__, exc.message)
        return jsonify(exc.to_dict()), exc.status_code

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
        """Create the CLIENT/OWNER/ADMIN roles."""
        added = ensure_roles()
        click.echo(f"Roles added: {', '.join(added)}" if added else "Roles already present")

    @app.cli.command("make-admin")
    @click.argument("email")
    def make_admin(email):
        """Promote a user to ADMIN by email (bootstrap)."""
        user = User.query.filter_by(email=email.strip().lower()).first()
        if not user:
            raise click.ClickException("User not found")

        if grant_role(user, ADMIN):
            db.session.commit()
            click.echo(f"{user.email} promoted to ADMIN")
        else:
            click.echo(f"{user.email} is already ADMIN")

#-------------------------


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
