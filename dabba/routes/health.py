import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, text

from dabba.config import settings
from dabba.database import get_session

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/check")
def health_check(session: Session = Depends(get_session)):
    database = "ok"
    try:
        session.exec(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check could not reach the database")
        database = "failed"

    return {
        "status": "ok" if database == "ok" else "degraded",
        "env": settings.env,
        "database": database,
        "timestamp": datetime.utcnow().isoformat(),
    }
