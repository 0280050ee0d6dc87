"""
Request and response models for the senior benefits API.
"""

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, AliasChoices, field_validator, model_validator

from backend.seniors_api.database.enums import (
    ApplicationStatus, SeniorCategory, Remark, Gender, TransactionType
)

PHONE_PATTERN = r"^(\d{11})?$"
EMAIL_PATTERN = r"^([^@\s]+@[^@\s]+\.[^@\s]+)?$"


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class MessageResponse(BaseModel):
    msg: str
    code: int


# --- Seniors ---

class _ContactNumbers(BaseModel):

    @field_validator("gender", mode="before", check_fields=False)
    @classmethod
    def _lower_gender(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _numbers_differ(self):
        contact = getattr(self, "contact_no", None)
        emergency = getattr(self, "emergency_no", None)
        if contact and emergency and contact == emergency:
            raise ValueError("Emergency contact must be different from contact number.")
        return self


class SeniorCreate(_ContactNumbers):
    firstname: str = Field(..., min_length=1)
    middlename: str = ""
    lastname: str = Field(..., min_length=1)
    email: str = Field("", pattern=EMAIL_PATTERN)
    contact_no: str = Field("", pattern=PHONE_PATTERN)
    emergency_no: str = Field("", pattern=PHONE_PATTERN)
    contact_person: str = ""
    contact_relationship: str = ""
    age: Optional[int] = Field(None, ge=60, le=130)
    birthdate: Optional[dt.date] = None
    gender: Gender
    barangay: str = Field(..., min_length=1)
    purok: str = Field(..., min_length=1)
    pwd: bool = False
    low_income: bool = False

    @model_validator(mode="after")
    def _age_or_birthdate(self):
        if self.age is None and self.birthdate is None:
            raise ValueError("Either age or birthdate is required.")
        return self


class SeniorUpdate(_ContactNumbers):
    firstname: Optional[str] = Field(None, min_length=1)
    middlename: Optional[str] = None
    lastname: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    contact_no: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    emergency_no: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    contact_person: Optional[str] = None
    contact_relationship: Optional[str] = None
    age: Optional[int] = Field(None, ge=0, le=130)
    birthdate: Optional[dt.date] = None
    gender: Optional[Gender] = None
    barangay: Optional[str] = Field(None, min_length=1)
    purok: Optional[str] = Field(None, min_length=1)
    pwd: Optional[bool] = None
    low_income: Optional[bool] = None
    remark: Optional[Remark] = None
    released_at: Optional[dt.datetime] = None

    @field_validator("remark", mode="before")
    @classmethod
    def _parse_remark(cls, value):
        return None if value is None else Remark.parse(value)

    @field_validator("firstname", "lastname", "gender", "barangay", "purok", "pwd", "low_income", "remark")
    @classmethod
    def _required_not_null(cls, value, info):
        # Omit the field to leave it unchanged; null cannot clear it
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


class DocumentOut(ORMModel):
    id: int
    tag: str
    filename: str
    path: str
    sha256: Optional[str] = None
    benefit_requirement_id: Optional[int] = None
    created_at: Optional[dt.datetime] = None


class BenefitBriefOut(ORMModel):
    id: int
    name: str


class SeniorApplicationOut(ORMModel):
    id: int
    status: ApplicationStatus
    category: Optional[SeniorCategory] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    benefit: BenefitBriefOut


class SeniorOut(ORMModel):
    id: int
    firstname: str
    middlename: Optional[str] = ""
    lastname: str
    email: Optional[str] = ""
    contact_no: Optional[str] = ""
    emergency_no: Optional[str] = ""
    contact_person: Optional[str] = ""
    contact_relationship: Optional[str] = ""
    barangay: str
    purok: str
    birthdate: Optional[dt.date] = None
    age: str
    gender: Gender
    pwd: bool
    low_income: bool
    remark: Remark
    released_at: Optional[dt.datetime] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
    deleted_at: Optional[dt.datetime] = None
    documents: List[DocumentOut] = []
    applications: List[SeniorApplicationOut] = []


class SeniorMutationResponse(MessageResponse):
    data: SeniorOut


class ReleaseRequest(BaseModel):
    senior_id: int = Field(..., validation_alias=AliasChoices("seniorId", "senior_id"))


class ReleaseResponse(BaseModel):
    message: str
    senior: SeniorOut


# --- Benefits and applications ---

class BenefitCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    requirements: List[str] = []


class RequirementOut(ORMModel):
    id: int
    name: str


class BenefitOut(ORMModel):
    id: int
    name: str
    description: Optional[str] = None
    requirements: List[RequirementOut] = []


class ApplicationSubmit(BaseModel):
    benefit_id: int
    selected_senior_ids: List[int] = Field(..., min_length=1)


class ApplicationStatusUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    application_id: int
    status: ApplicationStatus = Field(..., validation_alias=AliasChoices("status", "status_id"))
    rejection_reason: Optional[str] = Field(
        None, validation_alias=AliasChoices("rejection_reason", "rejectionReason")
    )

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value):
        return ApplicationStatus.parse(value)


class ApplicationCategoryUpdate(BaseModel):
    application_id: int
    category: Optional[SeniorCategory] = Field(..., validation_alias=AliasChoices("category", "category_id"))

    @field_validator("category", mode="before")
    @classmethod
    def _parse_category(cls, value):
        return None if value is None else SeniorCategory.parse(value)


class ApplicationSeniorOut(ORMModel):
    id: int
    firstname: str
    middlename: Optional[str] = ""
    lastname: str
    email: Optional[str] = ""
    pwd: bool
    age: str
    barangay: str
    documents: List[DocumentOut] = []


class ApplicationOut(ORMModel):
    id: int
    status: ApplicationStatus
    category: Optional[SeniorCategory] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
    senior: ApplicationSeniorOut
    benefit: BenefitOut


class ApplicationMutationResponse(MessageResponse):
    data: ApplicationOut


class SubmitResponse(MessageResponse):
    created: int
    application_ids: List[int]


# --- Fund ledger ---

class FundOut(ORMModel):
    id: int
    current_balance: float
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class FundBalanceUpdate(BaseModel):
    current_balance: float = Field(..., gt=0, validation_alias=AliasChoices("currentBalance", "current_balance"))


class FundHistoryCreate(BaseModel):
    date: dt.date
    amount: float = Field(..., gt=0)
    source: str = Field(..., min_length=1)
    description: Optional[str] = None
    available_balance: float = 0.0


class FundHistoryOut(ORMModel):
    id: int
    date: dt.date
    amount: float
    source: str
    description: Optional[str] = None
    receipt_path: Optional[str] = None
    previous_balance: float
    new_balance: float
    created_at: Optional[dt.datetime] = None


class FundAdditionOut(BaseModel):
    history: FundHistoryOut
    fund: FundOut


class TransactionCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: dt.date
    benefits: str = Field(..., min_length=1)
    description: str = ""
    amount: float = Field(..., gt=0)
    type: TransactionType
    category: str = Field(..., min_length=1)
    senior_name: Optional[str] = Field(None, validation_alias=AliasChoices("seniorName", "senior_name"))
    barangay: Optional[str] = None


class TransactionOut(ORMModel):
    id: int
    date: dt.date
    benefits: str
    description: Optional[str] = ""
    amount: float
    type: TransactionType
    category: str
    senior_name: Optional[str] = None
    barangay: Optional[str] = None
    created_at: Optional[dt.datetime] = None


# --- Notifications ---

class MarkReadRequest(BaseModel):
    user_id: str = Field(..., min_length=1, validation_alias=AliasChoices("userId", "user_id"))
    notification_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("notificationId", "notification_id")
    )
    notification_ids: Optional[List[str]] = Field(
        None, validation_alias=AliasChoices("notificationIds", "notification_ids")
    )

    def ids(self) -> List[str]:
        if self.notification_ids:
            return list(self.notification_ids)
        return [self.notification_id] if self.notification_id else []


class MarkAllRequest(BaseModel):
    user_id: str = Field(..., min_length=1, validation_alias=AliasChoices("userId", "user_id"))
