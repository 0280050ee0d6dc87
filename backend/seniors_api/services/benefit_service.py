import logging
from typing import List

from sqlalchemy.orm import Session, selectinload

from backend.seniors_api.database import Benefit, BenefitRequirement
from backend.seniors_api.schemas import BenefitCreate
from backend.seniors_api.services import audit_service
from backend.seniors_api.services.errors import Conflict, NotFound

logger = logging.getLogger(__name__)


def create_benefit(db: Session, payload: BenefitCreate) -> Benefit:
    name = payload.name.strip()
    if db.query(Benefit).filter(Benefit.name == name).first():
        raise Conflict(f"Benefit '{name}' already exists")

    benefit = Benefit(name=name, description=payload.description)
    for requirement in payload.requirements:
        if requirement.strip():
            benefit.requirements.append(BenefitRequirement(name=requirement.strip()))
    db.add(benefit)
    db.flush()
    audit_service.record(db, "benefit", benefit.id, "create", {"name": name})
    db.commit()
    db.refresh(benefit)
    logger.info(f"Created benefit {benefit.id} '{name}' with {len(benefit.requirements)} requirements")
    return benefit


def list_benefits(db: Session) -> List[Benefit]:
    return (
        db.query(Benefit)
        .options(selectinload(Benefit.requirements))
        .order_by(Benefit.name)
        .all()
    )


def get_benefit(db: Session, benefit_id: int) -> Benefit:
    benefit = db.get(Benefit, benefit_id)
    if not benefit:
        raise NotFound(f"Benefit {benefit_id} not found")
    return benefit
