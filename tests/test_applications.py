import datetime as dt

import pytest

from backend.seniors_api.database import Application, AuditLog, ApplicationStatus, SeniorCategory, utcnow
from backend.seniors_api.schemas import ApplicationStatusUpdate, ApplicationCategoryUpdate
from backend.seniors_api.services import application_service
from backend.seniors_api.services.errors import NotFound


def test_submit_creates_one_pending_application_per_distinct_senior(db, make_senior, make_benefit):
    benefit = make_benefit()
    a, b = make_senior(), make_senior(firstname="Maria", gender="female")

    created = application_service.submit_applications(db, benefit.id, [a.id, b.id, a.id])

    assert len(created) == 2
    rows = db.query(Application).all()
    assert {r.senior_id for r in rows} == {a.id, b.id}
    assert all(r.status == ApplicationStatus.PENDING for r in rows)
    assert all(r.category is None for r in rows)


def test_submit_is_all_or_nothing(db, make_senior, make_benefit):
    benefit = make_benefit()
    senior = make_senior()

    with pytest.raises(NotFound) as err:
        application_service.submit_applications(db, benefit.id, [senior.id, 9999])

    assert err.value.details["missing_senior_ids"] == [9999]
    assert db.query(Application).count() == 0


def test_submit_rejects_archived_senior_and_unknown_benefit(db, make_senior, make_benefit):
    benefit = make_benefit()
    archived = make_senior(deleted_at=utcnow())

    with pytest.raises(NotFound):
        application_service.submit_applications(db, benefit.id, [archived.id])
    with pytest.raises(NotFound):
        application_service.submit_applications(db, 4242, [make_senior().id])
    assert db.query(Application).count() == 0


def _single_application(db, make_senior, make_benefit, **senior_fields):
    benefit = make_benefit()
    senior = make_senior(**senior_fields)
    return application_service.submit_applications(db, benefit.id, [senior.id])[0]


def test_rejection_reason_only_changes_when_sent(db, make_senior, make_benefit):
    app = _single_application(db, make_senior, make_benefit)

    application_service.update_status(db, ApplicationStatusUpdate(
        application_id=app.id, status="REJECT", rejection_reason="Incomplete documents"))
    assert db.get(Application, app.id).rejection_reason == "Incomplete documents"

    updated = application_service.update_status(db, ApplicationStatusUpdate(application_id=app.id, status="APPROVED"))
    assert updated.status == ApplicationStatus.APPROVED
    assert updated.rejection_reason == "Incomplete documents"

    cleared = application_service.update_status(db, ApplicationStatusUpdate(
        application_id=app.id, status="PENDING", rejection_reason=""))
    assert cleared.rejection_reason is None


def test_update_status_unknown_application(db):
    with pytest.raises(NotFound):
        application_service.update_status(db, ApplicationStatusUpdate(application_id=1, status="APPROVED"))


def test_category_is_independent_of_status(db, make_senior, make_benefit):
    app = _single_application(db, make_senior, make_benefit)

    updated = application_service.update_category(db, ApplicationCategoryUpdate(
        application_id=app.id, category="Octogenarian (80-89)"))
    assert updated.category == SeniorCategory.OCTOGENARIAN
    assert updated.status == ApplicationStatus.PENDING

    cleared = application_service.update_category(db, ApplicationCategoryUpdate(application_id=app.id, category=None))
    assert cleared.category is None


def test_derive_category_is_idempotent(db, make_senior, make_benefit):
    app = _single_application(db, make_senior, make_benefit, age="91")

    first = application_service.derive_category(db, app.id)
    second = application_service.derive_category(db, app.id)

    assert first.category == SeniorCategory.NONAGENARIAN
    assert second.category == SeniorCategory.NONAGENARIAN
    derives = db.query(AuditLog).filter(AuditLog.action == "derive_category").count()
    assert derives == 1


def test_delete_application(db, make_senior, make_benefit):
    app = _single_application(db, make_senior, make_benefit)
    application_service.delete_application(db, app.id)
    assert db.query(Application).count() == 0
    with pytest.raises(NotFound):
        application_service.delete_application(db, app.id)


def test_list_applications_filters_and_order(db, make_senior, make_benefit):
    pension = make_benefit("Social Pension")
    burial = make_benefit("Burial Assistance", requirements=())
    juan = make_senior(firstname="Juan")
    rosa = make_senior(firstname="Rosa", gender="female")

    first = application_service.submit_applications(db, pension.id, [juan.id])[0]
    second = application_service.submit_applications(db, burial.id, [rosa.id])[0]
    first.created_at = utcnow() - dt.timedelta(days=2)
    db.commit()
    application_service.update_status(db, ApplicationStatusUpdate(application_id=second.id, status="APPROVED"))

    everything = application_service.list_applications(db)
    assert [a.id for a in everything] == [second.id, first.id]

    assert [a.id for a in application_service.list_applications(db, name="ros")] == [second.id]
    assert [a.id for a in application_service.list_applications(db, applied_benefit="Social Pension")] == [first.id]
    both = application_service.list_applications(db, status="PENDING,APPROVED")
    assert len(both) == 2
    assert [a.id for a in application_service.list_applications(db, status="APPROVED")] == [second.id]
    assert application_service.list_applications(db, senior_category="CENTENARIAN") == []
