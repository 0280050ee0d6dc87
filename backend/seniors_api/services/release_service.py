import logging
import datetime as dt
from typing import List, Tuple

from sqlalchemy.orm import Session

from backend.seniors_api.database import Senior, utcnow
from backend.seniors_api.settings import get_settings
from backend.seniors_api.services import audit_service
from backend.seniors_api.services.errors import NotFound, Conflict

logger = logging.getLogger(__name__)


def release_senior(db: Session, senior_id: int) -> Tuple[Senior, str]:
    """Schedule a release a fixed number of days from now. A senior is released at most once."""
    senior = db.query(Senior).filter(Senior.id == senior_id, Senior.deleted_at.is_(None)).first()
    if not senior:
        raise NotFound(f"Senior {senior_id} not found")
    if senior.released_at is not None:
        raise Conflict(f"Senior {senior_id} is already released",
                       {"released_at": senior.released_at.isoformat()})

    senior.released_at = utcnow() + dt.timedelta(days=get_settings().release_delay_days)
    audit_service.record(db, "senior", senior.id, "release", {"released_at": senior.released_at.isoformat()})
    db.commit()
    db.refresh(senior)

    message = f"Senior will be effectively released on {senior.released_at.strftime('%B %d, %Y')}"
    logger.info(f"Senior {senior.id} scheduled for release at {senior.released_at.isoformat()}")
    return senior, message


def list_released_seniors(db: Session, effective_only: bool = False) -> List[Senior]:
    query = db.query(Senior).filter(Senior.deleted_at.is_(None), Senior.released_at.isnot(None))
    if effective_only:
        query = query.filter(Senior.released_at <= utcnow())
    return query.order_by(Senior.released_at.desc(), Senior.id.desc()).all()
