import logging
import datetime as dt
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from backend.seniors_api.database import Transaction, TransactionType
from backend.seniors_api.schemas import TransactionCreate
from backend.seniors_api.services import audit_service
from backend.seniors_api.services.errors import NotFound, ValidationFailed

logger = logging.getLogger(__name__)


def create_transaction(db: Session, payload: TransactionCreate) -> Transaction:
    txn = Transaction(**payload.model_dump())
    db.add(txn)
    db.flush()
    audit_service.record(db, "transaction", txn.id, "create",
                         {"amount": txn.amount, "type": txn.type.value})
    db.commit()
    db.refresh(txn)
    logger.info(f"Recorded {txn.type.value} transaction {txn.id} of {txn.amount} for {txn.benefits}")
    return txn


def list_transactions(db: Session, type: Optional[str] = None, benefits: Optional[str] = None,
                      category: Optional[str] = None, start_date: Optional[dt.date] = None,
                      end_date: Optional[dt.date] = None) -> List[Transaction]:
    query = db.query(Transaction)
    if type:
        try:
            query = query.filter(Transaction.type == TransactionType(type.lower()))
        except ValueError as e:
            raise ValidationFailed(f"Unknown transaction type: {type}") from e
    if benefits:
        query = query.filter(Transaction.benefits.ilike(f"%{benefits}%"))
    if category:
        query = query.filter(Transaction.category.ilike(f"%{category}%"))
    if start_date:
        query = query.filter(Transaction.date >= start_date)
    if end_date:
        query = query.filter(Transaction.date <= end_date)
    return query.order_by(Transaction.date.desc(), Transaction.id.desc()).all()


def delete_transaction(db: Session, transaction_id: int) -> None:
    txn = db.get(Transaction, transaction_id)
    if not txn:
        raise NotFound(f"Transaction {transaction_id} not found")
    audit_service.record(db, "transaction", txn.id, "delete", {"amount": txn.amount})
    db.delete(txn)
    db.commit()


def transaction_summary(db: Session) -> Dict[str, float]:
    totals = {t.value: 0.0 for t in TransactionType}
    rows = db.query(Transaction.type, func.sum(Transaction.amount)).group_by(Transaction.type).all()
    for txn_type, total in rows:
        totals[txn_type.value] = float(total or 0.0)
    totals["total"] = sum(totals.values())
    return totals
