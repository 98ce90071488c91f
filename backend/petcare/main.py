import logging
import os
import sys

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_login import LoginManager
from werkzeug.exceptions import HTTPException

# Only load from .env when DATABASE_URL is not already defined by the environment
if not os.getenv("DATABASE_URL"):
    load_dotenv()

from petcare.core.exceptions import AppointmentError  # noqa: E402

logger = logging.getLogger(__name__)

WEAK_SECRETS = ["dev-secret-change-me", "dev-jwt-secret-change-me", "secret123"]


def _is_test_mode(app: Flask) -> bool:
    """Check if we're running in test mode (pytest/CI)."""
    if os.getenv("TESTING", "").lower().strip() in ("true", "1", "yes"):
        return True
    if "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
        return True
    return bool(app.config.get("TESTING"))


def _init_sentry(env: str) -> None:
    sentry_dsn = os.getenv("SENTRY_DSN")
    if not sentry_dsn:
        logger.info(
            "Sentry not initialized (SENTRY_DSN not set)",
            extra={"context": {"environment": env}},
        )
        return

    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=sentry_dsn,
        environment=env,
        release=os.getenv("GIT_SHA", "unknown"),
        integrations=[FlaskIntegration(), SqlalchemyIntegration()],
        traces_sample_rate=0.1,
        send_default_pii=False,
    )
    logger.info(
        "Sentry initialized",
        extra={"context": {"environment": env, "release": os.getenv("GIT_SHA", "unknown")}},
    )


def _init_metrics(app: Flask, env: str) -> None:
    """Expose /metrics for Prometheus scraping."""
    from prometheus_client import CollectorRegistry
    from prometheus_flask_exporter import PrometheusMetrics

    # Each test app gets its own registry; the default one rejects duplicates
    registry = CollectorRegistry(auto_describe=True) if app.config.get("TESTING") else None
    metrics = PrometheusMetrics(app, registry=registry)
    try:
        metrics.info(
            "app_info",
            "Application information",
            version=os.getenv("GIT_SHA", "unknown"),
            environment=env,
        )
    except ValueError as e:
        # Metric already registered (create_app called more than once)
        logger.debug(
            "app_info metric already registered",
            extra={"context": {"error": str(e)}},
        )
    logger.info(
        "Prometheus metrics initialized",
        extra={"context": {"metrics_endpoint": "/metrics"}},
    )


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(AppointmentError)
    def handle_appointment_error(error: AppointmentError):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        code = (error.name or "error").lower().replace(" ", "_")
        return (
            jsonify({"success": False, "error": code, "message": error.description}),
            error.code or 500,
        )

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        logger.error(
            "Unhandled exception",
            extra={"context": {"error_type": type(error).__name__}},
            exc_info=error,
        )
        return (
            jsonify(
                {
                    "success": False,
                    "error": "internal_error",
                    "message": "An unexpected error occurred.",
                }
            ),
            500,
        )


def create_app() -> Flask:
    env = os.getenv("FLASK_ENV", "development")
    is_production = env == "production"

    app = Flask(__name__)

    if os.getenv("TESTING", "").lower().strip() in ("true", "1", "yes"):
        app.config["TESTING"] = True

    # Configure structured logging (after app creation so we can register hooks)
    from petcare.core.logging_config import setup_logging

    setup_logging(
        app=app,
        log_level=logging.INFO if is_production else logging.DEBUG,
        enable_sql_echo=not is_production,
        use_json_format=is_production,
    )

    from petcare.core.config import log_timezone_config, log_workflow_config

    log_timezone_config()
    log_workflow_config()

    _init_sentry(env)
    # Metrics before the limiter so /metrics is registered first
    _init_metrics(app, env)

    app.config["SECRET_KEY"] = os.getenv("FLASK_SECRET_KEY", "dev-secret-change-me")
    app.config["GIT_SHA"] = os.getenv("GIT_SHA", "")
    app.config.setdefault("PETCARE_CLOCK", None)

    # Production validation: fail fast if weak secrets are used
    if is_production:
        secret_key = app.config["SECRET_KEY"]
        if secret_key in WEAK_SECRETS or len(secret_key) < 32:
            raise ValueError(
                "Production deployment requires strong SECRET_KEY (min 32 chars). "
                "Set FLASK_SECRET_KEY environment variable."
            )
        from petcare.core.security import get_jwt_secret_key

        get_jwt_secret_key()

    from petcare.core.limiter_config import limiter

    app.config["RATELIMIT_STORAGE_URI"] = os.getenv("LIMITER_STORAGE_URI", "memory://")
    limiter.init_app(app)
    if _is_test_mode(app) and os.getenv("RATE_LIMIT_ENABLED", "1") == "0":
        limiter.enabled = False
        logger.info(
            "Rate limiting disabled for testing", extra={"context": {"test_mode": True}}
        )

    # Ensure database tables exist (idempotent)
    from petcare.db.session import create_tables, get_engine

    create_tables()
    logger.info(
        "Database ready",
        extra={"context": {"driver": get_engine().dialect.name}},
    )

    # Bearer-token authentication through Flask-Login
    from petcare.core.auth_decorators import load_actor_from_request

    login_manager = LoginManager()
    login_manager.init_app(app)
    login_manager.request_loader(load_actor_from_request)

    @login_manager.unauthorized_handler
    def unauthorized():
        return (
            jsonify(
                {
                    "success": False,
                    "error": "unauthorized",
                    "message": "A valid bearer token is required.",
                }
            ),
            401,
        )

    _register_error_handlers(app)

    # Register blueprints/controllers here
    from petcare.controllers.appointment_controller import appointments_bp
    from petcare.controllers.health_controller import health_bp
    from petcare.controllers.notification_controller import notifications_bp

    app.register_blueprint(appointments_bp)
    app.register_blueprint(notifications_bp)
    app.register_blueprint(health_bp)

    logger.info(
        "Application created",
        extra={"context": {"environment": env, "blueprints": list(app.blueprints)}},
    )
    return app
