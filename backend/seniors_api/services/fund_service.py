"""
Government fund balance and its history of additions.

Every history row records the balance the caller saw before the addition
and the balance after it; the fund balance moves by the same amount when a
row is added or deleted.
"""

import logging
import datetime as dt
from typing import List, Optional, Tuple

from fastapi import UploadFile
from sqlalchemy.orm import Session

from backend.seniors_api.database import GovernmentFund, FundHistory
from backend.seniors_api.schemas import FundHistoryCreate
from backend.seniors_api.services import audit_service
from backend.seniors_api.services.errors import NotFound, ValidationFailed
from backend.seniors_api.services.storage_service import save_upload, remove_upload

logger = logging.getLogger(__name__)

RECEIPTS_SUBDIR = "fund-receipts"


def _latest_fund(db: Session) -> Optional[GovernmentFund]:
    return db.query(GovernmentFund).order_by(GovernmentFund.created_at.desc(), GovernmentFund.id.desc()).first()


def _current_fund(db: Session, initial: float = 0.0) -> GovernmentFund:
    fund = _latest_fund(db)
    if fund is None:
        fund = GovernmentFund(current_balance=initial)
        db.add(fund)
        db.flush()
        logger.info(f"Created government fund record with balance {initial}")
    return fund


def get_fund(db: Session) -> GovernmentFund:
    fund = _current_fund(db)
    db.commit()
    return fund


def set_fund_balance(db: Session, value: float) -> GovernmentFund:
    if value is None or value <= 0:
        raise ValidationFailed("Current balance must be a positive number")
    fund = _current_fund(db, initial=value)
    previous = fund.current_balance
    fund.current_balance = value
    audit_service.record(db, "fund", fund.id, "set_balance", {"from": previous, "to": value})
    db.commit()
    db.refresh(fund)
    return fund


def add_fund_history(db: Session, entry: FundHistoryCreate,
                     receipt: Optional[UploadFile] = None) -> Tuple[FundHistory, GovernmentFund]:
    receipt_path = None
    if receipt is not None and receipt.filename:
        receipt_path, _, _ = save_upload(receipt, RECEIPTS_SUBDIR)

    try:
        history = FundHistory(
            date=entry.date,
            amount=entry.amount,
            source=entry.source,
            description=entry.description,
            receipt_path=receipt_path,
            previous_balance=entry.available_balance,
            new_balance=entry.available_balance + entry.amount,
        )
        db.add(history)
        fund = _current_fund(db)
        fund.current_balance = (fund.current_balance or 0.0) + entry.amount
        db.flush()
        audit_service.record(db, "fund_history", history.id, "add",
                             {"amount": entry.amount, "source": entry.source})
        db.commit()
    except Exception:
        db.rollback()
        remove_upload(receipt_path)
        raise

    db.refresh(history)
    db.refresh(fund)
    logger.info(f"Fund addition {history.id}: +{entry.amount} from {entry.source}, balance {fund.current_balance}")
    return history, fund


def delete_fund_history(db: Session, history_id: int) -> Optional[GovernmentFund]:
    history = db.get(FundHistory, history_id)
    if not history:
        raise NotFound(f"Fund history {history_id} not found")

    # No fund record yet: drop the row without creating a balance
    fund = _latest_fund(db)
    if fund is not None:
        fund.current_balance = (fund.current_balance or 0.0) - history.amount
    receipt_path = history.receipt_path
    audit_service.record(db, "fund_history", history.id, "delete", {"amount": history.amount})
    db.delete(history)
    db.commit()

    remove_upload(receipt_path)
    if fund is None:
        logger.info(f"Deleted fund history {history_id}, no fund record to adjust")
    else:
        db.refresh(fund)
        logger.info(f"Deleted fund history {history_id}, balance now {fund.current_balance}")
    return fund


def list_fund_history(db: Session, start_date: Optional[dt.date] = None,
                      end_date: Optional[dt.date] = None) -> List[FundHistory]:
    query = db.query(FundHistory)
    if start_date:
        query = query.filter(FundHistory.date >= start_date)
    if end_date:
        query = query.filter(FundHistory.date <= end_date)
    return query.order_by(FundHistory.date.desc(), FundHistory.id.desc()).all()
