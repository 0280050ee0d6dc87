"""
Audit trail for workflow and ledger mutations.
Entries are added to the caller's session and committed with the change they describe.
"""

import json
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from backend.seniors_api.database import AuditLog


def record(db: Session, entity: str, entity_id: Any, action: str,
           payload: Optional[Dict[str, Any]] = None, actor: str = "system") -> AuditLog:
    entry = AuditLog(
        entity=entity,
        entity_id=str(entity_id),
        actor=actor,
        action=action,
        payload_json=json.dumps(payload or {}, default=str),
    )
    db.add(entry)
    return entry


def list_entries(db: Session, entity: Optional[str] = None, entity_id: Optional[str] = None,
                 limit: int = 200) -> List[Dict[str, Any]]:
    query = db.query(AuditLog)
    if entity:
        query = query.filter(AuditLog.entity == entity)
    if entity_id:
        query = query.filter(AuditLog.entity_id == str(entity_id))
    rows = query.order_by(AuditLog.at.desc(), AuditLog.id.desc()).limit(limit).all()
    return [
        {
            "id": r.id,
            "entity": r.entity,
            "entity_id": r.entity_id,
            "actor": r.actor,
            "action": r.action,
            "payload": json.loads(r.payload_json or "{}"),
            "at": r.at.isoformat() if r.at else None,
        }
        for r in rows
    ]
