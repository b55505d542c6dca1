import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, text

from storefront.database import get_session
from storefront.utils.clock import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/check")
def health_check(session: Session = Depends(get_session)):
    db_status = "ok"

    try:
        session.exec(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database ping failed: {e}")
        db_status = "failed"

    return {
        "status": "ok",
        "database": db_status,
        "timestamp": utcnow().isoformat()
    }
