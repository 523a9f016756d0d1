"""Health check endpoint."""

from datetime import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vidtube.config import settings
from vidtube.database import get_db
from vidtube.services.logging_service import app_logger
from vidtube.utils.responses import api_response

router = APIRouter()


@router.get("/healthcheck")
def health_check(db: Session = Depends(get_db)):
    """
    Liveness and database readiness in one request.

    Returns 200 when the database answers, 503 otherwise.
    """
    checks = {"database": False}
    try:
        db.execute(text("SELECT 1"))
        checks["database"] = True
    except SQLAlchemyError as e:
        app_logger.error("Health check database query failed", error=str(e))

    healthy = all(checks.values())
    data = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": datetime.utcnow().isoformat(),
        "environment": settings.ENVIRONMENT,
        "checks": checks
    }
    if healthy:
        return api_response(data, "Health check passed")
    return api_response(data, "Health check failed", status.HTTP_503_SERVICE_UNAVAILABLE)
