"""
Health controller - liveness and database checks for monitoring.
"""

import logging

from flask import Blueprint, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from petcare.db.session import SessionLocal

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/health")


@health_bp.route("", methods=["GET"])
def health_check():
    """
    Report service health.

    Returns 200 with ``{"status": "healthy", "database": "ok"}`` when the
    database answers ``SELECT 1``, otherwise 503 with ``"degraded"``.
    No authentication required.
    """
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        return jsonify({"status": "healthy", "database": "ok"}), 200
    except SQLAlchemyError as e:
        logger.error(
            "Health check: database unreachable",
            extra={"context": {"error": str(e)}},
            exc_info=True,
        )
        return jsonify({"status": "degraded", "database": "unavailable"}), 503
    finally:
        db.close()
