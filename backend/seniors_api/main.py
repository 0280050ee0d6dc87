
import logging
import datetime as dt
from typing import List, Optional

from fastapi import FastAPI, Depends, UploadFile, File, Form, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError
from sqlalchemy.orm import Session

from backend.seniors_api.database import init_databases, get_db, get_database_info
from backend.seniors_api.settings import get_settings, get_settings_dict
from backend.seniors_api import schemas
from backend.seniors_api.services import (
    application_service,
    audit_service,
    benefit_service,
    export_service,
    fund_service,
    notification_service,
    release_service,
    reporting_service,
    senior_service,
    transaction_service,
)
from backend.seniors_api.services.errors import ServiceError, NotFound

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize databases
init_databases()

app = FastAPI(title="Senior Citizen Benefits – Registry and Disbursement API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins, allow_credentials=True, allow_methods=["*"], allow_headers=["*"],
)


def _validation_errors(errors) -> list:
    return [{"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in errors]


@app.exception_handler(ServiceError)
def handle_service_error(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
def handle_request_validation(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={
        "msg": "Validation error", "errors": _validation_errors(exc.errors()), "code": 400,
    })


@app.exception_handler(ValidationError)
def handle_model_validation(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={
        "msg": "Validation error", "errors": _validation_errors(exc.errors()), "code": 400,
    })


@app.exception_handler(Exception)
def handle_unexpected(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"msg": str(exc), "code": 500})


def _ok(msg: str, data=None, code: int = 200, **extra):
    body = {"msg": msg, "code": code, **extra}
    if data is not None:
        body["data"] = data
    return JSONResponse(status_code=code, content=jsonable_encoder(body))


@app.get("/healthz")
def healthz():
    """Health check with database status."""
    return {"status": "ok", "database": get_database_info()}


@app.get("/config")
def get_config():
    return get_settings_dict()


# Seniors

@app.post("/seniors")
def register_senior(
    firstname: str = Form(...),
    middlename: str = Form(""),
    lastname: str = Form(...),
    email: str = Form(""),
    contact_no: str = Form(""),
    emergency_no: str = Form(""),
    contact_person: str = Form(""),
    contact_relationship: str = Form(""),
    age: Optional[int] = Form(None),
    birthdate: Optional[str] = Form(None),
    gender: str = Form(...),
    barangay: str = Form(...),
    purok: str = Form(...),
    pwd: bool = Form(False),
    low_income: bool = Form(False),
    birth_certificate: Optional[UploadFile] = File(None),
    certificate_of_residency: Optional[UploadFile] = File(None),
    government_issued_id: Optional[UploadFile] = File(None),
    membership_certificate: Optional[UploadFile] = File(None),
    id_photo: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
):
    payload = schemas.SeniorCreate(
        firstname=firstname, middlename=middlename, lastname=lastname, email=email,
        contact_no=contact_no, emergency_no=emergency_no, contact_person=contact_person,
        contact_relationship=contact_relationship, age=age, birthdate=birthdate or None,
        gender=gender, barangay=barangay, purok=purok, pwd=pwd, low_income=low_income,
    )
    uploads = {
        "birth_certificate": birth_certificate,
        "certificate_of_residency": certificate_of_residency,
        "government_issued_id": government_issued_id,
        "membership_certificate": membership_certificate,
        "id_photo": id_photo,
    }
    senior = senior_service.register_senior(db, payload, uploads)
    return _ok("Senior registered successfully", schemas.SeniorOut.model_validate(senior), code=201)


@app.get("/seniors", response_model=List[schemas.SeniorOut])
def list_seniors(
    name: Optional[str] = None,
    gender: Optional[str] = None,
    purok: Optional[str] = None,
    barangay: Optional[str] = None,
    remark: Optional[str] = None,
    release_status: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return senior_service.list_seniors(db, name=name, gender=gender, purok=purok, barangay=barangay,
                                       remark=remark, release_status=release_status)


@app.get("/seniors/archived", response_model=List[schemas.SeniorOut])
def list_archived_seniors(name: Optional[str] = None, db: Session = Depends(get_db)):
    return senior_service.list_archived_seniors(db, name=name)


@app.post("/seniors/release", response_model=schemas.ReleaseResponse)
def release_senior(request: schemas.ReleaseRequest, db: Session = Depends(get_db)):
    senior, message = release_service.release_senior(db, request.senior_id)
    return {"message": message, "senior": senior}


@app.get("/seniors/release", response_model=List[schemas.SeniorOut])
def list_released_seniors(effective_only: bool = False, db: Session = Depends(get_db)):
    return release_service.list_released_seniors(db, effective_only=effective_only)


@app.get("/seniors/registration-trends")
def registration_trends(view: str = "monthly", year: Optional[int] = None, db: Session = Depends(get_db)):
    return {"success": True, "data": reporting_service.registration_trends(db, view=view, year=year)}


@app.get("/seniors/{senior_id}", response_model=schemas.SeniorOut)
def get_senior(senior_id: int, db: Session = Depends(get_db)):
    return senior_service.get_senior(db, senior_id)


@app.put("/seniors/{senior_id}")
def update_senior(senior_id: int, changes: schemas.SeniorUpdate, db: Session = Depends(get_db)):
    senior = senior_service.update_senior(db, senior_id, changes)
    return _ok("Senior updated successfully", schemas.SeniorOut.model_validate(senior))


@app.delete("/seniors/{senior_id}")
def delete_senior(senior_id: int, permanent: bool = False, db: Session = Depends(get_db)):
    if permanent:
        senior_service.purge_senior(db, senior_id)
        return _ok("Senior permanently deleted")
    senior = senior_service.archive_senior(db, senior_id)
    return _ok("Senior archived", schemas.SeniorOut.model_validate(senior))


@app.put("/seniors/{senior_id}/restore")
def restore_senior(senior_id: int, db: Session = Depends(get_db)):
    senior = senior_service.restore_senior(db, senior_id)
    return _ok("Senior restored", schemas.SeniorOut.model_validate(senior))


@app.post("/seniors/{senior_id}/documents")
def attach_document(
    senior_id: int,
    file: UploadFile = File(...),
    tag: str = Form("unknown"),
    requirement_id: Optional[int] = Form(None),
    db: Session = Depends(get_db),
):
    doc = senior_service.attach_document(db, senior_id, tag, file, requirement_id)
    return _ok("Document uploaded", schemas.DocumentOut.model_validate(doc), code=201)


@app.get("/remarks")
def list_remarks():
    return senior_service.list_remarks()


# Benefits and applications

@app.get("/benefits", response_model=List[schemas.BenefitOut])
def list_benefits(db: Session = Depends(get_db)):
    return benefit_service.list_benefits(db)


@app.post("/benefits")
def create_benefit(payload: schemas.BenefitCreate, db: Session = Depends(get_db)):
    benefit = benefit_service.create_benefit(db, payload)
    return _ok("Benefit created", schemas.BenefitOut.model_validate(benefit), code=201)


@app.post("/benefits/application")
def submit_applications(payload: schemas.ApplicationSubmit, db: Session = Depends(get_db)):
    created = application_service.submit_applications(db, payload.benefit_id, payload.selected_senior_ids)
    return _ok("Application submitted successfully", code=201,
               created=len(created), application_ids=[a.id for a in created])


@app.get("/benefits/application", response_model=List[schemas.ApplicationOut])
def list_applications(
    name: Optional[str] = None,
    applied_benefit: Optional[str] = None,
    senior_category: Optional[str] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return application_service.list_applications(
        db, name=name, applied_benefit=applied_benefit, senior_category=senior_category, status=status
    )


@app.delete("/benefits/application")
def delete_application(application_id: int, db: Session = Depends(get_db)):
    application_service.delete_application(db, application_id)
    return _ok("Application deleted")


@app.get("/benefits/application/status")
def list_statuses():
    return application_service.list_statuses()


@app.put("/benefits/application/status")
def update_application_status(update: schemas.ApplicationStatusUpdate, db: Session = Depends(get_db)):
    application = application_service.update_status(db, update)
    return _ok("Status updated successfully", schemas.ApplicationOut.model_validate(application))


@app.post("/benefits/application/{application_id}/derive-category")
def derive_application_category(application_id: int, db: Session = Depends(get_db)):
    application = application_service.derive_category(db, application_id)
    return _ok("Category assigned", schemas.ApplicationOut.model_validate(application))


@app.get("/categories")
def list_categories():
    return application_service.list_categories()


@app.put("/categories")
def update_application_category(update: schemas.ApplicationCategoryUpdate, db: Session = Depends(get_db)):
    application = application_service.update_category(db, update)
    return _ok("Category updated successfully", schemas.ApplicationOut.model_validate(application))


# Dashboard

@app.get("/dashboard/categories")
def dashboard_categories(db: Session = Depends(get_db)):
    return {"success": True, "data": reporting_service.category_distribution(db)}


@app.get("/dashboard/barangay-distribution")
def dashboard_barangays(db: Session = Depends(get_db)):
    return {"success": True, "data": reporting_service.barangay_distribution(db)}


@app.get("/dashboard/age-distribution")
def dashboard_ages(db: Session = Depends(get_db)):
    return {"success": True, "data": reporting_service.age_distribution(db)}


@app.get("/dashboard/stats")
def dashboard_stats(db: Session = Depends(get_db)):
    return {"success": True, "data": reporting_service.dashboard_stats(db)}


# Fund ledger

@app.get("/government-fund", response_model=schemas.FundOut)
def get_government_fund(db: Session = Depends(get_db)):
    return fund_service.get_fund(db)


@app.put("/government-fund")
def set_government_fund(update: schemas.FundBalanceUpdate, db: Session = Depends(get_db)):
    fund = fund_service.set_fund_balance(db, update.current_balance)
    return _ok("Fund balance updated", schemas.FundOut.model_validate(fund))


@app.get("/fund-history", response_model=List[schemas.FundHistoryOut])
def list_fund_history(start_date: Optional[dt.date] = None, end_date: Optional[dt.date] = None,
                      db: Session = Depends(get_db)):
    return fund_service.list_fund_history(db, start_date=start_date, end_date=end_date)


@app.post("/fund-history")
def add_fund_history(
    date: str = Form(...),
    amount: float = Form(...),
    source: str = Form(..., alias="from"),
    description: str = Form(""),
    available_balance: float = Form(0.0, alias="availableBalance"),
    receipt: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
):
    entry = schemas.FundHistoryCreate(
        date=date, amount=amount, source=source, description=description or None,
        available_balance=available_balance,
    )
    history, fund = fund_service.add_fund_history(db, entry, receipt)
    data = schemas.FundAdditionOut(
        history=schemas.FundHistoryOut.model_validate(history),
        fund=schemas.FundOut.model_validate(fund),
    )
    return _ok("Fund added successfully", data, code=201)


@app.delete("/fund-history")
def delete_fund_history(history_id: int, db: Session = Depends(get_db)):
    fund = fund_service.delete_fund_history(db, history_id)
    return _ok("Fund history deleted", {"fund": schemas.FundOut.model_validate(fund) if fund else None})


@app.get("/transactions", response_model=List[schemas.TransactionOut])
def list_transactions(
    type: Optional[str] = None,
    benefits: Optional[str] = None,
    category: Optional[str] = None,
    start_date: Optional[dt.date] = None,
    end_date: Optional[dt.date] = None,
    db: Session = Depends(get_db),
):
    return transaction_service.list_transactions(db, type=type, benefits=benefits, category=category,
                                                 start_date=start_date, end_date=end_date)


@app.get("/transactions/summary")
def transactions_summary(db: Session = Depends(get_db)):
    return {"success": True, "data": transaction_service.transaction_summary(db)}


@app.post("/transactions")
def create_transaction(payload: schemas.TransactionCreate, db: Session = Depends(get_db)):
    txn = transaction_service.create_transaction(db, payload)
    return _ok("Transaction recorded", schemas.TransactionOut.model_validate(txn), code=201)


@app.delete("/transactions")
def delete_transaction(transaction_id: int, db: Session = Depends(get_db)):
    transaction_service.delete_transaction(db, transaction_id)
    return _ok("Transaction deleted")


# Notifications

@app.get("/notifications")
def list_notifications(user_id: str = Query(..., alias="userId"), db: Session = Depends(get_db)):
    return notification_service.list_notifications(db, user_id)


@app.get("/notifications/status")
def notification_status(user_id: str = Query(..., alias="userId"), db: Session = Depends(get_db)):
    return notification_service.get_status_map(db, user_id)


@app.post("/notifications/status")
def mark_notifications_read(request: schemas.MarkReadRequest, db: Session = Depends(get_db)):
    updated = notification_service.mark_as_read(db, request.user_id, request.ids())
    return _ok("Notifications marked as read", updated=updated)


@app.put("/notifications/status")
def mark_all_notifications_read(request: schemas.MarkAllRequest, db: Session = Depends(get_db)):
    updated = notification_service.mark_all_as_read(db, request.user_id)
    return _ok("All notifications marked as read", updated=updated)


# Reports and audit

@app.get("/reports/{report}.csv")
def export_report(report: str, db: Session = Depends(get_db)):
    exporter = export_service.EXPORTS.get(report)
    if exporter is None:
        raise NotFound(f"Unknown report: {report}")
    return Response(
        content=exporter(db),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{report}.csv"'},
    )


@app.get("/audit")
def list_audit(entity: Optional[str] = None, entity_id: Optional[str] = None, limit: int = 200,
               db: Session = Depends(get_db)):
    return audit_service.list_entries(db, entity=entity, entity_id=entity_id, limit=limit)
