"""
Database models for PostgreSQL/SQLite using SQLAlchemy.
"""

import datetime as dt
from sqlalchemy import (
    Column, String, Integer, DateTime, Date, Text, ForeignKey, Float, Boolean, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship

from .enums import ApplicationStatus, SeniorCategory, Remark, Gender, TransactionType, EnumString

Base = declarative_base()


def utcnow() -> dt.datetime:
    # naive UTC, matching what SQLite hands back
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


class Senior(Base):
    __tablename__ = "seniors"
    id = Column(Integer, primary_key=True, index=True)
    firstname = Column(String, nullable=False)
    middlename = Column(String, default="")
    lastname = Column(String, nullable=False)
    email = Column(String, default="")
    contact_no = Column(String, default="")
    emergency_no = Column(String, default="")
    contact_person = Column(String, default="")
    contact_relationship = Column(String, default="")
    barangay = Column(String, nullable=False, index=True)
    purok = Column(String, nullable=False)
    birthdate = Column(Date, nullable=True)
    age = Column(String, nullable=False, default="0")
    gender = Column(EnumString(Gender, 10), nullable=False)
    pwd = Column(Boolean, default=False)
    low_income = Column(Boolean, default=False)
    remark = Column(EnumString(Remark, 20), nullable=False, default=Remark.NEW)
    released_at = Column(DateTime, nullable=True, index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    deleted_at = Column(DateTime, nullable=True, index=True)

    documents = relationship("Document", back_populates="senior", cascade="all, delete-orphan")
    applications = relationship(
        "Application", back_populates="senior", cascade="all, delete-orphan",
        order_by="Application.created_at.desc()",
    )

    @property
    def full_name(self) -> str:
        return f"{self.firstname} {self.lastname}"


class Benefit(Base):
    __tablename__ = "benefits"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    requirements = relationship("BenefitRequirement", back_populates="benefit", cascade="all, delete-orphan")
    applications = relationship("Application", back_populates="benefit")


class BenefitRequirement(Base):
    __tablename__ = "benefit_requirements"
    id = Column(Integer, primary_key=True, index=True)
    benefit_id = Column(Integer, ForeignKey("benefits.id"), nullable=False)
    name = Column(String, nullable=False)
    benefit = relationship("Benefit", back_populates="requirements")


class Application(Base):
    __tablename__ = "applications"
    id = Column(Integer, primary_key=True, index=True)
    senior_id = Column(Integer, ForeignKey("seniors.id"), nullable=False, index=True)
    benefit_id = Column(Integer, ForeignKey("benefits.id"), nullable=False, index=True)
    status = Column(EnumString(ApplicationStatus, 20), nullable=False, default=ApplicationStatus.PENDING)
    category = Column(EnumString(SeniorCategory, 40), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    senior = relationship("Senior", back_populates="applications")
    benefit = relationship("Benefit", back_populates="applications")


class Document(Base):
    __tablename__ = "documents"
    id = Column(Integer, primary_key=True, index=True)
    senior_id = Column(Integer, ForeignKey("seniors.id"), nullable=False, index=True)
    benefit_requirement_id = Column(Integer, ForeignKey("benefit_requirements.id"), nullable=True)
    tag = Column(String, default="unknown")
    path = Column(Text, nullable=False)
    filename = Column(String, nullable=False)
    sha256 = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    senior = relationship("Senior", back_populates="documents")
    benefit_requirement = relationship("BenefitRequirement")


class GovernmentFund(Base):
    __tablename__ = "government_funds"
    id = Column(Integer, primary_key=True, index=True)
    current_balance = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class FundHistory(Base):
    __tablename__ = "fund_history"
    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    amount = Column(Float, nullable=False)
    source = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    receipt_path = Column(Text, nullable=True)
    # available balance before/after, as reported by the caller
    previous_balance = Column(Float, nullable=False, default=0.0)
    new_balance = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, default=utcnow)


class Transaction(Base):
    __tablename__ = "transactions"
    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    benefits = Column(String, nullable=False)
    description = Column(Text, default="")
    amount = Column(Float, nullable=False)
    type = Column(EnumString(TransactionType, 10), nullable=False)
    category = Column(String, nullable=False)
    senior_name = Column(String, nullable=True)
    barangay = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)


class NotificationStatus(Base):
    __tablename__ = "notification_status"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    notification_id = Column(String, nullable=False)
    is_read = Column(Boolean, default=False)
    read_at = Column(DateTime, nullable=True)
    __table_args__ = (
        UniqueConstraint("user_id", "notification_id", name="uc_user_notification"),
    )


class AuditLog(Base):
    __tablename__ = "audit_logs"
    id = Column(Integer, primary_key=True, index=True)
    entity = Column(String, index=True)
    entity_id = Column(String, index=True)
    actor = Column(String, default="system")
    action = Column(String)
    payload_json = Column(Text)
    at = Column(DateTime, default=utcnow)
