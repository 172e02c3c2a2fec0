import logging
import os

from dotenv import load_dotenv
from flask import Flask

# Only load from .env when DATABASE_URL is not already defined by the environment
if not os.getenv("DATABASE_URL"):
    load_dotenv()

from .core.config import (  # noqa: E402
    get_log_level,
    get_log_to_file,
    get_metrics_enabled,
    get_rate_limit_enabled,
    is_testing,
    log_ledger_config,
)

logger = logging.getLogger(__name__)


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
        integrations=[
            FlaskIntegration(),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,  # 10% of transactions for performance monitoring
        send_default_pii=False,  # Patient data must not leave the system
    )
    logger.info(
        "Sentry initialized",
        extra={
            "context": {
                "environment": env,
                "release": os.getenv("GIT_SHA", "unknown"),
                "traces_sample_rate": 0.1,
            }
        },
    )


def _init_metrics(app: Flask, env: str) -> None:
    from prometheus_client import CollectorRegistry
    from prometheus_flask_exporter import PrometheusMetrics

    # Tests build many apps per process; a private registry per app avoids
    # duplicate metric registration in the global one.
    registry = CollectorRegistry(auto_describe=True) if app.config.get("TESTING") else None
    metrics = PrometheusMetrics(app, registry=registry)
    try:
        metrics.info(
            "identsoft_app_info",
            "Application information",
            version=os.getenv("GIT_SHA", "unknown"),
            environment=env,
        )
    except ValueError as e:
        # Metric already registered (create_app called twice in one process)
        logger.debug(
            "app_info metric already registered",
            extra={"context": {"error": str(e)}},
        )
    logger.info(
        "Prometheus metrics initialized",
        extra={"context": {"metrics_endpoint": "/metrics"}},
    )


def create_app() -> Flask:
    env = os.getenv("FLASK_ENV", "development")
    is_production = env == "production"

    app = Flask(__name__)
    if is_testing():
        app.config["TESTING"] = True

    from .core.logging_config import setup_logging

    setup_logging(
        app=app,
        log_level=get_log_level(is_production),
        enable_sql_echo=os.getenv("SQL_ECHO", "0") == "1",
        log_to_file=get_log_to_file(),
        use_json_format=is_production,  # JSON logs in production, colored in dev
    )
    logger.info(
        "Logging configured",
        extra={"context": {"environment": env, "json_format": is_production}},
    )

    log_ledger_config()
    _init_sentry(env)

    # Metrics before the limiter so /metrics is never rate-limited
    if get_metrics_enabled():
        _init_metrics(app, env)

    from .core.limiter_config import limiter

    app.config["RATELIMIT_STORAGE_URI"] = os.getenv("LIMITER_STORAGE_URI", "memory://")
    # Explicit either way: init_app otherwise inherits the shared limiter's
    # state from the previous app
    app.config["RATELIMIT_ENABLED"] = get_rate_limit_enabled()
    limiter.init_app(app)
    limiter.enabled = get_rate_limit_enabled()
    if not limiter.enabled:
        logger.info(
            "Rate limiting disabled",
            extra={"context": {"testing": app.config.get("TESTING", False)}},
        )

    from .core.api_utils import register_error_handlers
    from .controllers import (
        booking_bp,
        campaign_bp,
        clinical_bp,
        health_bp,
        ledger_bp,
        registry_bp,
    )

    register_error_handlers(app)
    app.register_blueprint(registry_bp)
    app.register_blueprint(booking_bp)
    app.register_blueprint(clinical_bp)
    app.register_blueprint(ledger_bp)
    app.register_blueprint(campaign_bp)
    app.register_blueprint(health_bp)

    # Idempotent; production schemas are expected to exist already
    from .db.session import create_tables, get_engine

    create_tables()
    engine = get_engine()
    logger.info(
        "Database ready",
        extra={
            "context": {
                "url": engine.url.render_as_string(hide_password=True),
                "driver": engine.dialect.name,
            }
        },
    )

    return app


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")))
