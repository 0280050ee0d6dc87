"""
Notifications derived from senior state, with per-user read status.

Nothing is stored for the notifications themselves: they are recomputed on
every read. Only read markers are persisted, keyed by (user_id, notification_id).
"""

import enum
import logging
import datetime as dt
from typing import Any, Callable, Dict, List

from sqlalchemy.orm import Session

from backend.seniors_api.database import Senior, NotificationStatus, Remark, utcnow
from backend.seniors_api.services.errors import ValidationFailed

logger = logging.getLogger(__name__)


class NotificationKind(enum.Enum):
    PENDING = "pending"
    RELEASED = "released"

    def applies_to(self, senior: Senior) -> bool:
        return _PREDICATES[self](senior)

    def build(self, senior: Senior) -> Dict[str, Any]:
        if self is NotificationKind.PENDING:
            title = "Senior pending review"
            message = f"{senior.full_name} from {senior.barangay} is pending review."
            timestamp = senior.created_at
            link = f"/seniors/{senior.id}"
        else:
            title = "Release approved"
            message = (f"Benefits for {senior.full_name} will be released on "
                       f"{senior.released_at.strftime('%B %d, %Y')}.")
            timestamp = senior.released_at
            link = "/seniors/release"
        return {
            "id": notification_id(self, senior.id),
            "type": _TYPES[self],
            "title": title,
            "message": message,
            "timestamp": timestamp,
            "link": link,
            "seniorId": senior.id,
            "seniorName": senior.full_name,
        }


_PREDICATES: Dict[NotificationKind, Callable[[Senior], bool]] = {
    NotificationKind.PENDING: lambda s: s.remark == Remark.PENDING,
    NotificationKind.RELEASED: lambda s: s.released_at is not None,
}

_TYPES = {
    NotificationKind.PENDING: "senior_pending",
    NotificationKind.RELEASED: "release_approved",
}


def notification_id(kind: NotificationKind, senior_id: int) -> str:
    return f"{kind.value}-{senior_id}"


def derive_notifications(db: Session) -> List[Dict[str, Any]]:
    seniors = db.query(Senior).filter(Senior.deleted_at.is_(None)).all()
    items = [
        kind.build(senior)
        for senior in seniors
        for kind in NotificationKind
        if kind.applies_to(senior)
    ]
    items.sort(key=lambda n: n["timestamp"] or dt.datetime.min, reverse=True)
    return items


def get_status_map(db: Session, user_id: str) -> Dict[str, Dict[str, Any]]:
    if not user_id:
        raise ValidationFailed("userId is required")
    rows = db.query(NotificationStatus).filter(NotificationStatus.user_id == user_id).all()
    return {
        r.notification_id: {
            "isRead": bool(r.is_read),
            "readAt": r.read_at.isoformat() if r.read_at else None,
        }
        for r in rows
    }


def list_notifications(db: Session, user_id: str) -> Dict[str, Any]:
    statuses = get_status_map(db, user_id)
    items = []
    for item in derive_notifications(db):
        status = statuses.get(item["id"], {})
        item["isRead"] = status.get("isRead", False)
        item["readAt"] = status.get("readAt")
        item["timestamp"] = item["timestamp"].isoformat() if item["timestamp"] else None
        items.append(item)
    unread = sum(1 for n in items if not n["isRead"])
    return {"notifications": items, "unreadCount": unread}


def _upsert_read(db: Session, user_id: str, ids: List[str]) -> int:
    now = utcnow()
    existing = {
        r.notification_id: r
        for r in db.query(NotificationStatus).filter(
            NotificationStatus.user_id == user_id,
            NotificationStatus.notification_id.in_(ids),
        ).all()
    }
    for nid in dict.fromkeys(ids):
        row = existing.get(nid)
        if row is None:
            db.add(NotificationStatus(user_id=user_id, notification_id=nid, is_read=True, read_at=now))
        else:
            row.is_read = True
            row.read_at = now
    db.commit()
    return len(set(ids))


def mark_as_read(db: Session, user_id: str, ids: List[str]) -> int:
    if not user_id:
        raise ValidationFailed("userId is required")
    if not ids:
        raise ValidationFailed("notificationId or notificationIds is required")
    count = _upsert_read(db, user_id, ids)
    logger.debug(f"User {user_id} marked {count} notifications as read")
    return count


def mark_all_as_read(db: Session, user_id: str) -> int:
    """Mark every currently derivable notification as read for the user."""
    if not user_id:
        raise ValidationFailed("userId is required")
    ids = [n["id"] for n in derive_notifications(db)]
    if not ids:
        return 0
    count = _upsert_read(db, user_id, ids)
    logger.info(f"User {user_id} marked all {count} notifications as read")
    return count
