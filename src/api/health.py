"""Health check endpoint."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.core.logging import get_logger
from src.db.database import get_db

logger = get_logger(__name__)

router = APIRouter()


@router.get("/health")
def health_check(request: Request, db: Session = Depends(get_db)) -> dict[str, str]:
    """Return application, database and session registry status."""
    registry = getattr(request.app.state, "session_registry", None)
    sessions = str(len(registry)) if registry is not None else "0"
    try:
        db.execute(text("SELECT 1"))
        return {"status": "ok", "database": "connected", "sessions": sessions}
    except SQLAlchemyError as e:
        logger.warning(f"Health check: database unavailable ({e})")
        return {"status": "error", "database": "disconnected", "sessions": sessions}
