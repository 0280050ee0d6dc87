"""
Senior registry: registration, listing, updates and the archive lifecycle.
"""

import logging
import datetime as dt
from typing import Dict, List, Optional

from fastapi import UploadFile
from sqlalchemy import or_
from sqlalchemy.orm import Session

from backend.seniors_api.database import (
    Senior, Document, BenefitRequirement, Remark, Gender, utcnow
)
from backend.seniors_api.schemas import SeniorCreate, SeniorUpdate
from backend.seniors_api.services import audit_service
from backend.seniors_api.services.errors import ServiceError, NotFound, Conflict, ValidationFailed
from backend.seniors_api.services.storage_service import save_upload, remove_upload

logger = logging.getLogger(__name__)

MINIMUM_AGE = 60

REGISTRATION_DOCUMENT_TAGS = (
    "birth_certificate",
    "certificate_of_residency",
    "government_issued_id",
    "membership_certificate",
    "id_photo",
)

RELEASE_STATUSES = ("Released", "Pending")


def age_from_birthdate(birthdate: dt.date, today: Optional[dt.date] = None) -> int:
    today = today or dt.date.today()
    years = today.year - birthdate.year
    if (today.month, today.day) < (birthdate.month, birthdate.day):
        years -= 1
    return years


def refresh_age(senior: Senior, today: Optional[dt.date] = None) -> bool:
    """Recompute the stored age from the birthdate. Returns True when it changed."""
    if senior.birthdate is None:
        return False
    current = str(age_from_birthdate(senior.birthdate, today))
    if senior.age != current:
        senior.age = current
        return True
    return False


def _parse_gender(raw: str) -> Gender:
    try:
        return Gender(raw.strip().lower())
    except ValueError as e:
        raise ValidationFailed(f"Unknown gender: {raw}") from e


def _parse_remark(raw: str) -> Remark:
    try:
        return Remark.parse(raw)
    except ValueError as e:
        raise ValidationFailed(str(e)) from e


def _store_document(db: Session, senior: Senior, tag: str, file: UploadFile,
                    requirement_id: Optional[int] = None) -> Document:
    path, filename, digest = save_upload(file, "seniors", str(senior.id))
    doc = Document(
        senior_id=senior.id,
        benefit_requirement_id=requirement_id,
        tag=tag,
        path=path,
        filename=filename,
        sha256=digest,
    )
    db.add(doc)
    return doc


def register_senior(db: Session, payload: SeniorCreate,
                    uploads: Optional[Dict[str, UploadFile]] = None) -> Senior:
    """
    Create a senior with remark NEW.

    The age comes from the birthdate when one is given, otherwise from the
    payload. Registration documents are optional; a document that cannot be
    stored is logged and skipped.
    """
    age = age_from_birthdate(payload.birthdate) if payload.birthdate else payload.age
    if age is None or age < MINIMUM_AGE:
        raise ValidationFailed(f"Senior must be at least {MINIMUM_AGE} years old")

    data = payload.model_dump(exclude={"age"})
    senior = Senior(**data, age=str(age), remark=Remark.NEW)
    db.add(senior)
    db.flush()

    for tag, file in (uploads or {}).items():
        if file is None or not file.filename:
            continue
        if tag not in REGISTRATION_DOCUMENT_TAGS:
            logger.warning(f"Ignoring upload with unknown tag {tag!r} for senior {senior.id}")
            continue
        try:
            _store_document(db, senior, tag, file)
        except (ServiceError, OSError) as e:
            logger.error(f"Failed to store {tag} for senior {senior.id}: {e}")

    audit_service.record(db, "senior", senior.id, "register", {"name": senior.full_name})
    db.commit()
    db.refresh(senior)
    logger.info(f"Registered senior {senior.id} ({senior.full_name}, age {senior.age})")
    return senior


def _name_filter(query, name: str):
    pattern = f"%{name.strip()}%"
    return query.filter(or_(
        Senior.firstname.ilike(pattern),
        Senior.middlename.ilike(pattern),
        Senior.lastname.ilike(pattern),
        Senior.barangay.ilike(pattern),
        Senior.purok.ilike(pattern),
    ))


def _refresh_ages(db: Session, seniors: List[Senior]) -> List[Senior]:
    changed = [s for s in seniors if refresh_age(s)]
    if changed:
        db.commit()
        logger.debug(f"Refreshed age of {len(changed)} seniors")
    return seniors


def list_seniors(db: Session, name: Optional[str] = None, gender: Optional[str] = None,
                 purok: Optional[str] = None, barangay: Optional[str] = None,
                 remark: Optional[str] = None, release_status: Optional[str] = None) -> List[Senior]:
    """Active seniors matching every given filter, newest first."""
    query = db.query(Senior).filter(Senior.deleted_at.is_(None))

    if name:
        query = _name_filter(query, name)
    if gender:
        query = query.filter(Senior.gender == _parse_gender(gender))
    if purok:
        query = query.filter(Senior.purok == purok)
    if barangay:
        query = query.filter(Senior.barangay == barangay)
    if remark:
        query = query.filter(Senior.remark == _parse_remark(remark))
    if release_status:
        if release_status not in RELEASE_STATUSES:
            raise ValidationFailed(f"release_status must be one of {', '.join(RELEASE_STATUSES)}")
        if release_status == "Released":
            query = query.filter(Senior.released_at.isnot(None))
        else:
            query = query.filter(Senior.released_at.is_(None))

    seniors = query.order_by(Senior.created_at.desc(), Senior.id.desc()).all()
    return _refresh_ages(db, seniors)


def list_archived_seniors(db: Session, name: Optional[str] = None) -> List[Senior]:
    query = db.query(Senior).filter(Senior.deleted_at.isnot(None))
    if name:
        query = _name_filter(query, name)
    return query.order_by(Senior.deleted_at.desc()).all()


def get_senior(db: Session, senior_id: int, include_archived: bool = True) -> Senior:
    senior = db.query(Senior).filter(Senior.id == senior_id).first()
    if not senior or (senior.deleted_at is not None and not include_archived):
        raise NotFound(f"Senior {senior_id} not found")
    if refresh_age(senior):
        db.commit()
    return senior


def update_senior(db: Session, senior_id: int, changes: SeniorUpdate) -> Senior:
    senior = get_senior(db, senior_id, include_archived=False)
    data = changes.model_dump(exclude_unset=True)

    for key, value in data.items():
        if key == "age":
            continue
        setattr(senior, key, value)

    if "birthdate" in data and senior.birthdate is not None:
        refresh_age(senior)
    elif data.get("age") is not None:
        senior.age = str(data["age"])

    if senior.contact_no and senior.contact_no == senior.emergency_no:
        db.rollback()
        raise ValidationFailed("Emergency contact must be different from contact number.")

    audit_service.record(db, "senior", senior.id, "update", {"fields": sorted(data)})
    db.commit()
    db.refresh(senior)
    logger.info(f"Updated senior {senior.id}: {sorted(data)}")
    return senior


def archive_senior(db: Session, senior_id: int) -> Senior:
    senior = get_senior(db, senior_id)
    if senior.deleted_at is not None:
        raise Conflict(f"Senior {senior_id} is already archived")
    senior.deleted_at = utcnow()
    audit_service.record(db, "senior", senior.id, "archive")
    db.commit()
    logger.info(f"Archived senior {senior.id}")
    return senior


def restore_senior(db: Session, senior_id: int) -> Senior:
    senior = get_senior(db, senior_id)
    if senior.deleted_at is None:
        raise Conflict(f"Senior {senior_id} is not archived")
    senior.deleted_at = None
    audit_service.record(db, "senior", senior.id, "restore")
    db.commit()
    logger.info(f"Restored senior {senior.id}")
    return senior


def purge_senior(db: Session, senior_id: int) -> None:
    """Permanently delete a senior with their documents and applications."""
    senior = get_senior(db, senior_id)
    paths = [d.path for d in senior.documents]
    audit_service.record(db, "senior", senior.id, "purge", {
        "name": senior.full_name,
        "applications": len(senior.applications),
        "documents": len(paths),
    })
    db.delete(senior)
    db.commit()
    for path in paths:
        remove_upload(path)
    logger.info(f"Purged senior {senior_id} and {len(paths)} documents")


def attach_document(db: Session, senior_id: int, tag: str, file: UploadFile,
                    requirement_id: Optional[int] = None) -> Document:
    senior = get_senior(db, senior_id, include_archived=False)
    if requirement_id is not None:
        if not db.get(BenefitRequirement, requirement_id):
            raise NotFound(f"Benefit requirement {requirement_id} not found")
    doc = _store_document(db, senior, tag or "unknown", file, requirement_id)
    audit_service.record(db, "senior", senior.id, "attach_document", {"tag": doc.tag, "filename": doc.filename})
    db.commit()
    db.refresh(doc)
    return doc


def list_remarks() -> List[Dict]:
    return Remark.choices()
