"""Health check endpoints for system monitoring."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.core.messaging.broker import EMAIL_DLQ, get_message_broker
from app.core.observability.metrics import SERVICE_NAME
from app.db.db import get_db

logger = get_logger(__name__)

router = APIRouter(tags=["health"])

# Failed emails tolerated before the email pipeline is reported unhealthy
DLQ_HEALTH_THRESHOLD = 100
DLQ_READINESS_THRESHOLD = 1000


def _check_database(db: Session) -> None:
    db.execute(text("SELECT 1"))


def _email_pipeline_state() -> dict:
    broker = get_message_broker()
    dlq_count = broker.get_dlq_message_count()
    return {"broker_connected": broker.is_connected(), "dlq_message_count": dlq_count}


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": SERVICE_NAME}


@router.get("/health/database")
async def database_health(db: Session = Depends(get_db)):
    """Health check for database connection."""
    try:
        _check_database(db)
        return {"status": "healthy", "database_connected": True}
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return {"status": "unhealthy", "database_connected": False, "error": str(e)}


@router.get("/health/messaging")
async def messaging_health():
    """Health check for the RabbitMQ email pipeline."""
    try:
        state = _email_pipeline_state()
        dlq_healthy = state["dlq_message_count"] < DLQ_HEALTH_THRESHOLD
        healthy = state["broker_connected"] and dlq_healthy
        return {
            "status": "healthy" if healthy else "unhealthy",
            "dead_letter_queue": EMAIL_DLQ,
            "dlq_healthy": dlq_healthy,
            **state,
        }
    except Exception as e:
        logger.error(f"Messaging health check failed: {e}")
        return {
            "status": "unhealthy",
            "error": str(e),
            "broker_connected": False,
            "dlq_healthy": False,
        }


@router.get("/health/ready")
async def readiness_check(db: Session = Depends(get_db)):
    """Readiness check for container orchestration.

    Only the database gates readiness; the email pipeline is reported but a
    broker outage does not take the API out of rotation.
    """
    try:
        _check_database(db)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Service not ready: {str(e)}",
        ) from e

    try:
        state = _email_pipeline_state()
        email_ready = (
            state["broker_connected"]
            and state["dlq_message_count"] < DLQ_READINESS_THRESHOLD
        )
    except Exception as e:
        logger.warning(f"Email pipeline unavailable during readiness check: {e}")
        email_ready = False

    return {"status": "ready", "email_pipeline_ready": email_ready}


@router.get("/health/live")
async def liveness_check():
    """Liveness check for container orchestration."""
    return {"status": "alive"}
