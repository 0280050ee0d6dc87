"""
Benefit application workflow.

Applications start PENDING with no category. Status and category are
independent fields; a rejection reason is only touched when the caller
sends one.
"""

import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from backend.seniors_api.database import (
    Application, Benefit, Senior, ApplicationStatus, SeniorCategory
)
from backend.seniors_api.schemas import ApplicationStatusUpdate, ApplicationCategoryUpdate
from backend.seniors_api.services import audit_service
from backend.seniors_api.services.benefit_service import get_benefit
from backend.seniors_api.services.category_service import category_for_age, parse_age
from backend.seniors_api.services.errors import NotFound, ValidationFailed

logger = logging.getLogger(__name__)


def submit_applications(db: Session, benefit_id: int, senior_ids: List[int]) -> List[Application]:
    """
    Create one PENDING application per distinct senior.

    All rows are inserted in one transaction; an unknown benefit or an
    unknown or archived senior aborts the whole batch.
    """
    distinct_ids = list(dict.fromkeys(senior_ids))
    if not distinct_ids:
        raise ValidationFailed("Select at least one senior")

    get_benefit(db, benefit_id)

    found = {
        s.id for s in db.query(Senior.id)
        .filter(Senior.id.in_(distinct_ids), Senior.deleted_at.is_(None))
        .all()
    }
    missing = [i for i in distinct_ids if i not in found]
    if missing:
        raise NotFound(f"Seniors not found: {missing}", {"missing_senior_ids": missing})

    try:
        applications = [
            Application(senior_id=sid, benefit_id=benefit_id, status=ApplicationStatus.PENDING, category=None)
            for sid in distinct_ids
        ]
        db.add_all(applications)
        db.flush()
        for application in applications:
            audit_service.record(db, "application", application.id, "submit",
                                 {"senior_id": application.senior_id, "benefit_id": benefit_id})
        db.commit()
    except Exception:
        db.rollback()
        logger.exception(f"Batch submission for benefit {benefit_id} failed; nothing was inserted")
        raise

    logger.info(f"Submitted {len(applications)} applications for benefit {benefit_id}")
    return applications


def get_application(db: Session, application_id: int) -> Application:
    application = db.get(Application, application_id)
    if not application:
        raise NotFound(f"Application {application_id} not found")
    return application


def update_status(db: Session, update: ApplicationStatusUpdate) -> Application:
    application = get_application(db, update.application_id)
    previous = application.status
    application.status = update.status
    if "rejection_reason" in update.model_fields_set:
        application.rejection_reason = update.rejection_reason or None

    audit_service.record(db, "application", application.id, "status", {
        "from": previous.value if previous else None,
        "to": update.status.value,
        "rejection_reason": application.rejection_reason,
    })
    db.commit()
    db.refresh(application)
    logger.info(f"Application {application.id} status {previous} -> {application.status}")
    return application


def update_category(db: Session, update: ApplicationCategoryUpdate) -> Application:
    application = get_application(db, update.application_id)
    application.category = update.category
    audit_service.record(db, "application", application.id, "category",
                         {"category": update.category.value if update.category else None})
    db.commit()
    db.refresh(application)
    return application


def derive_category(db: Session, application_id: int) -> Application:
    """Assign the category matching the senior's current age."""
    application = get_application(db, application_id)
    age = parse_age(application.senior.age)
    if age is None:
        raise ValidationFailed(f"Senior {application.senior_id} has no usable age")
    category = category_for_age(age)
    if application.category != category:
        application.category = category
        audit_service.record(db, "application", application.id, "derive_category", {"category": category.value})
        db.commit()
        db.refresh(application)
    return application


def delete_application(db: Session, application_id: int) -> None:
    application = get_application(db, application_id)
    audit_service.record(db, "application", application.id, "delete",
                         {"senior_id": application.senior_id, "benefit_id": application.benefit_id})
    db.delete(application)
    db.commit()
    logger.info(f"Deleted application {application_id}")


def _split(raw: Optional[str]) -> List[str]:
    return [part.strip() for part in (raw or "").split(",") if part.strip()]


def list_applications(db: Session, name: Optional[str] = None, applied_benefit: Optional[str] = None,
                      senior_category: Optional[str] = None, status: Optional[str] = None) -> List[Application]:
    """Applications newest first; benefit, category and status accept comma-separated values."""
    query = (
        db.query(Application)
        .join(Application.senior)
        .join(Application.benefit)
        .options(
            selectinload(Application.senior).selectinload(Senior.documents),
            selectinload(Application.benefit).selectinload(Benefit.requirements),
        )
    )

    if name:
        pattern = f"%{name.strip()}%"
        query = query.filter(or_(
            Senior.firstname.ilike(pattern),
            Senior.middlename.ilike(pattern),
            Senior.lastname.ilike(pattern),
        ))

    benefits = _split(applied_benefit)
    if benefits:
        query = query.filter(Benefit.name.in_(benefits))

    try:
        categories = [SeniorCategory.parse(c) for c in _split(senior_category)]
        statuses = [ApplicationStatus.parse(s) for s in _split(status)]
    except ValueError as e:
        raise ValidationFailed(str(e)) from e

    if categories:
        query = query.filter(Application.category.in_(categories))
    if statuses:
        query = query.filter(Application.status.in_(statuses))

    return query.order_by(Application.created_at.desc(), Application.id.desc()).all()


def list_statuses():
    return ApplicationStatus.choices()


def list_categories():
    return SeniorCategory.choices()
