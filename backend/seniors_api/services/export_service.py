"""
CSV exports of registry and ledger tables.
"""

from typing import Any, Dict, List

from sqlalchemy.orm import Session

from backend.seniors_api.services import (
    application_service, fund_service, release_service, senior_service, transaction_service
)

SENIOR_COLUMNS = [
    "id", "lastname", "firstname", "middlename", "gender", "age", "birthdate",
    "barangay", "purok", "contact_no", "pwd", "low_income", "remark", "released_at", "created_at",
]


def _to_csv(rows: List[Dict[str, Any]], columns: List[str]) -> str:
    import pandas as pd

    df = pd.DataFrame(rows, columns=columns)
    return df.to_csv(index=False)


def _senior_row(s) -> Dict[str, Any]:
    return {
        "id": s.id,
        "lastname": s.lastname,
        "firstname": s.firstname,
        "middlename": s.middlename,
        "gender": s.gender.value,
        "age": s.age,
        "birthdate": s.birthdate,
        "barangay": s.barangay,
        "purok": s.purok,
        "contact_no": s.contact_no,
        "pwd": s.pwd,
        "low_income": s.low_income,
        "remark": s.remark.value,
        "released_at": s.released_at,
        "created_at": s.created_at,
    }


def seniors_csv(db: Session) -> str:
    return _to_csv([_senior_row(s) for s in senior_service.list_seniors(db)], SENIOR_COLUMNS)


def released_csv(db: Session) -> str:
    return _to_csv([_senior_row(s) for s in release_service.list_released_seniors(db)], SENIOR_COLUMNS)


def applications_csv(db: Session) -> str:
    columns = ["id", "senior_id", "senior_name", "barangay", "benefit", "status", "category",
               "rejection_reason", "created_at"]
    rows = [
        {
            "id": a.id,
            "senior_id": a.senior_id,
            "senior_name": a.senior.full_name,
            "barangay": a.senior.barangay,
            "benefit": a.benefit.name,
            "status": a.status.value,
            "category": a.category.value if a.category else "",
            "rejection_reason": a.rejection_reason or "",
            "created_at": a.created_at,
        }
        for a in application_service.list_applications(db)
    ]
    return _to_csv(rows, columns)


def fund_history_csv(db: Session) -> str:
    columns = ["id", "date", "amount", "source", "description", "previous_balance", "new_balance"]
    rows = [{c: getattr(h, c) for c in columns} for h in fund_service.list_fund_history(db)]
    return _to_csv(rows, columns)


def transactions_csv(db: Session) -> str:
    columns = ["id", "date", "type", "benefits", "category", "amount", "senior_name", "barangay", "description"]
    rows = []
    for t in transaction_service.list_transactions(db):
        row = {c: getattr(t, c) for c in columns}
        row["type"] = t.type.value
        rows.append(row)
    return _to_csv(rows, columns)


EXPORTS = {
    "seniors": seniors_csv,
    "released": released_csv,
    "applications": applications_csv,
    "fund-history": fund_history_csv,
    "transactions": transactions_csv,
}
