"""
Database configuration and initialization module.
Provides PostgreSQL and SQLite database connections with fallback support.
"""

from .database_config import (
    get_postgres_engine,
    get_sqlite_engine,
    get_current_engine,
    get_current_session,
    get_database_info,
    init_databases,
    reset_database,
    close_databases,
    get_db,
    DatabaseSession,
    DATA_DIR,
    UPLOADS_DIR,
)

from .models import (
    Base,
    Senior,
    Benefit,
    BenefitRequirement,
    Application,
    Document,
    GovernmentFund,
    FundHistory,
    Transaction,
    NotificationStatus,
    AuditLog,
    utcnow,
)

from .enums import ApplicationStatus, SeniorCategory, Remark, Gender, TransactionType

__all__ = [
    'get_postgres_engine',
    'get_sqlite_engine',
    'get_current_engine',
    'get_current_session',
    'get_database_info',
    'init_databases',
    'reset_database',
    'close_databases',
    'get_db',
    'DatabaseSession',
    'DATA_DIR',
    'UPLOADS_DIR',
    'Base',
    'Senior',
    'Benefit',
    'BenefitRequirement',
    'Application',
    'Document',
    'GovernmentFund',
    'FundHistory',
    'Transaction',
    'NotificationStatus',
    'AuditLog',
    'utcnow',
    'ApplicationStatus',
    'SeniorCategory',
    'Remark',
    'Gender',
    'TransactionType',
]
