"""
Fixed vocabularies for seniors, applications and the fund ledger.
Stored as their string value; unknown values are rejected when binding or loading.
"""

import enum
from typing import List, Dict, Any

from sqlalchemy import String, TypeDecorator


class OrderedEnum(enum.Enum):
    """Enum whose members carry a display order (1-based, declaration order)."""

    @property
    def order(self) -> int:
        return list(type(self)).index(self) + 1

    @classmethod
    def choices(cls) -> List[Dict[str, Any]]:
        return [{"id": m.name, "name": m.value, "order": m.order} for m in cls]

    @classmethod
    def parse(cls, raw):
        """Accept a member, its name or its value."""
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, str):
            if raw in cls.__members__:
                return cls[raw]
            for member in cls:
                if member.value == raw:
                    return member
        raise ValueError(f"{raw!r} is not a valid {cls.__name__}")


class ApplicationStatus(OrderedEnum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECT = "REJECT"


class SeniorCategory(OrderedEnum):
    REGULAR = "Regular (Below 80)"
    OCTOGENARIAN = "Octogenarian (80-89)"
    NONAGENARIAN = "Nonagenarian (90-99)"
    CENTENARIAN = "Centenarian (100+)"


class Remark(OrderedEnum):
    NEW = "NEW"
    TRANSFER = "TRANSFER"
    UPDATED = "UPDATED"
    DECEASED = "DECEASED"
    LOSS = "LOSS"
    PENDING = "Pending"


class Gender(enum.Enum):
    MALE = "male"
    FEMALE = "female"


class TransactionType(enum.Enum):
    RELEASED = "released"
    PENDING = "pending"


class EnumString(TypeDecorator):
    """Stores an Enum as its string value."""
    impl = String
    cache_ok = True

    def __init__(self, enum_type, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.enum_type = enum_type

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if not isinstance(value, self.enum_type):
            value = self.enum_type(value)
        return value.value

    def process_result_value(self, value, dialect):
        if value is not None:
            return self.enum_type(value)
        return value
