"""
Health controller - health check endpoint for monitoring.
"""

import logging

from flask import Blueprint
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..core.api_utils import api_response
from ..db.session import SessionLocal

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__)


@health_bp.route("/health", methods=["GET"])
def health_check():
    """
    Report whether the database answers a trivial query.

    Status codes:
        200: database reachable
        503: database unreachable (details in the logs, not the response)
    """
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        return api_response(True, "healthy", {"database": "ok"}, 200)
    except SQLAlchemyError as e:
        logger.error(
            "Health check failed",
            extra={"context": {"endpoint": "/health", "error": str(e)}},
            exc_info=True,
        )
        return api_response(False, "unhealthy", {"database": "unavailable"}, 503)
    finally:
        db.close()
