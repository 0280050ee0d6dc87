import io
import os
import datetime as dt

import pytest
from fastapi import UploadFile

from backend.seniors_api.database import GovernmentFund, FundHistory
from backend.seniors_api.schemas import FundHistoryCreate, TransactionCreate
from backend.seniors_api.services import fund_service, transaction_service
from backend.seniors_api.services.errors import NotFound, ValidationFailed


def _entry(amount, available, day=dt.date(2025, 3, 1), source="DSWD"):
    return FundHistoryCreate(date=day, amount=amount, source=source, available_balance=available)


def test_fund_is_created_lazily_with_zero_balance(db):
    fund = fund_service.get_fund(db)
    assert fund.current_balance == 0
    assert db.query(GovernmentFund).count() == 1
    assert fund_service.get_fund(db).id == fund.id


def test_set_balance_requires_positive_value(db):
    with pytest.raises(ValidationFailed):
        fund_service.set_fund_balance(db, 0)
    fund = fund_service.set_fund_balance(db, 1500.0)
    assert fund.current_balance == 1500.0
    assert db.query(GovernmentFund).count() == 1


def test_addition_records_balances_and_moves_fund(db):
    fund_service.set_fund_balance(db, 1000.0)

    history, fund = fund_service.add_fund_history(db, _entry(250.0, 1000.0))

    assert history.previous_balance == 1000.0
    assert history.new_balance == 1250.0
    assert fund.current_balance == 1250.0


def test_addition_stores_receipt(db):
    receipt = UploadFile(file=io.BytesIO(b"%PDF-1.4 receipt"), filename="receipt.pdf")

    history, _ = fund_service.add_fund_history(db, _entry(100.0, 0.0), receipt)

    assert history.receipt_path.endswith("receipt.pdf")
    assert "fund-receipts" in history.receipt_path
    assert os.path.exists(history.receipt_path)


def test_delete_reverses_the_addition(db):
    fund_service.set_fund_balance(db, 500.0)
    history, _ = fund_service.add_fund_history(db, _entry(200.0, 500.0))

    fund = fund_service.delete_fund_history(db, history.id)

    assert fund.current_balance == 500.0
    assert db.query(FundHistory).count() == 0
    with pytest.raises(NotFound):
        fund_service.delete_fund_history(db, history.id)


def test_delete_without_fund_record_leaves_no_fund(db):
    history = FundHistory(date=dt.date(2025, 3, 1), amount=300.0, source="DSWD",
                          previous_balance=0.0, new_balance=300.0)
    db.add(history)
    db.commit()

    fund = fund_service.delete_fund_history(db, history.id)

    assert fund is None
    assert db.query(GovernmentFund).count() == 0
    assert db.query(FundHistory).count() == 0


def test_history_date_range_is_inclusive_and_descending(db):
    for day in (1, 10, 20, 28):
        fund_service.add_fund_history(db, _entry(10.0, 0.0, day=dt.date(2025, 2, day)))

    rows = fund_service.list_fund_history(db, start_date=dt.date(2025, 2, 10), end_date=dt.date(2025, 2, 20))

    assert [r.date.day for r in rows] == [20, 10]
    assert [r.date.day for r in fund_service.list_fund_history(db)] == [28, 20, 10, 1]


def test_history_rejects_non_positive_amount():
    with pytest.raises(ValueError):
        _entry(0, 0.0)


def _txn(**overrides):
    values = {
        "date": dt.date(2025, 4, 1),
        "benefits": "Social Pension",
        "description": "Quarterly pension",
        "amount": 3000.0,
        "type": "released",
        "category": "Octogenarian (80-89)",
        "seniorName": "Juan Dela Cruz",
        "barangay": "Poblacion",
    }
    values.update(overrides)
    return TransactionCreate(**values)


def test_transactions_filters_and_summary(db):
    transaction_service.create_transaction(db, _txn())
    transaction_service.create_transaction(db, _txn(type="pending", amount=500.0, date=dt.date(2025, 4, 5)))
    transaction_service.create_transaction(db, _txn(benefits="Burial Assistance", amount=1000.0,
                                                    category="Regular (Below 80)", date=dt.date(2025, 5, 1)))

    assert len(transaction_service.list_transactions(db)) == 3
    assert len(transaction_service.list_transactions(db, type="pending")) == 1
    assert len(transaction_service.list_transactions(db, benefits="burial")) == 1
    assert len(transaction_service.list_transactions(db, category="octo")) == 2
    april = transaction_service.list_transactions(db, start_date=dt.date(2025, 4, 1), end_date=dt.date(2025, 4, 30))
    assert [t.date.day for t in april] == [5, 1]

    summary = transaction_service.transaction_summary(db)
    assert summary == {"released": 4000.0, "pending": 500.0, "total": 4500.0}


def test_transactions_do_not_touch_fund_balance(db):
    fund_service.set_fund_balance(db, 100.0)
    transaction_service.create_transaction(db, _txn())
    assert fund_service.get_fund(db).current_balance == 100.0


def test_transaction_validation_and_delete(db):
    with pytest.raises(ValueError):
        _txn(amount=-5)
    with pytest.raises(ValueError):
        _txn(type="refunded")

    txn = transaction_service.create_transaction(db, _txn())
    transaction_service.delete_transaction(db, txn.id)
    with pytest.raises(NotFound):
        transaction_service.delete_transaction(db, txn.id)
