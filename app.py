import atexit
import logging

from flask import Flask, jsonify
from flask_migrate import Migrate

from config import Config, engine_options
from models import db
from routes import health_bp, auth_bp, slots_bp, interviews_bp, audit_bp
from services.errors import SchedulingError
from services.notifications import (
    EmailNotificationPort, NotificationDispatcher, RecordingNotificationPort,
)
from services.policy import AuthorizationPolicy
from services.video import make_video_link_generator
from utils.auth_context import load_current_user
from utils.emailer import smtp_settings_from
from utils.seed import register_cli

logger = logging.getLogger(__name__)


def configure_logging(app):
    level = getattr(logging, app.config.get("LOG_LEVEL", "INFO"), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    app.logger.setLevel(level)


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)
        if "SQLALCHEMY_DATABASE_URI" in test_config and "SQLALCHEMY_ENGINE_OPTIONS" not in test_config:
            app.config["SQLALCHEMY_ENGINE_OPTIONS"] = engine_options(
                app.config["SQLALCHEMY_DATABASE_URI"], app.config["DB_TIMEOUT_SECONDS"],
            )

    configure_logging(app)

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(slots_bp)
    app.register_blueprint(interviews_bp)
    app.register_blueprint(audit_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    # Collaborators injected into the services
    app.extensions["authorization_policy"] = AuthorizationPolicy()
    app.extensions["video_link_generator"] = make_video_link_generator(app.config["VIDEO_LINK_BASE_URL"])
    app.extensions["notification_dispatcher"] = NotificationDispatcher(
        _notification_port(app),
        run_async=app.config.get("NOTIFY_ASYNC", True),
        workers=app.config.get("NOTIFY_WORKERS", 2),
    )
    atexit.register(app.extensions["notification_dispatcher"].shutdown)

    @app.before_request
    def _load_user():
        load_current_user()

    @app.errorhandler(SchedulingError)
    def _scheduling_error(exc):
        if exc.http_status >= 500:
            logger.error("request failed: %s %s", exc.code, exc.message)
        return jsonify(exc.to_dict()), exc.http_status

    @app.errorhandler(404)
    def _not_found(_exc):
        return jsonify(error="Not found"), 404

    @app.errorhandler(405)
    def _method_not_allowed(_exc):
        return jsonify(error="Method not allowed"), 405

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app


def _notification_port(app):
    if not app.config.get("SMTP_HOST"):
        logger.warning("SMTP_HOST not set; notifications are kept in memory only")
        return RecordingNotificationPort()
    return EmailNotificationPort(smtp_settings_from(app.config))


if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        db.create_all()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
