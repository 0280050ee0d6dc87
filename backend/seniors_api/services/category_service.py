"""
Age-based senior categories.

Every place that counts or assigns categories goes through `category_for_age`
so dashboard totals and application categories never disagree.
"""

import logging
from typing import Optional, Any

from backend.seniors_api.database.enums import SeniorCategory

logger = logging.getLogger(__name__)

OCTOGENARIAN_AGE = 80
NONAGENARIAN_AGE = 90
CENTENARIAN_AGE = 100

CATEGORY_COLORS = {
    SeniorCategory.REGULAR: "#22c55e",
    SeniorCategory.OCTOGENARIAN: "#3b82f6",
    SeniorCategory.NONAGENARIAN: "#f59e0b",
    SeniorCategory.CENTENARIAN: "#ef4444",
}


def resolve_category(age: int) -> Optional[SeniorCategory]:
    """Special category for an age, or None below 80."""
    if age < 0:
        raise ValueError(f"age must be non-negative, got {age}")
    if age >= CENTENARIAN_AGE:
        return SeniorCategory.CENTENARIAN
    if age >= NONAGENARIAN_AGE:
        return SeniorCategory.NONAGENARIAN
    if age >= OCTOGENARIAN_AGE:
        return SeniorCategory.OCTOGENARIAN
    return None


def category_for_age(age: int) -> SeniorCategory:
    return resolve_category(age) or SeniorCategory.REGULAR


def parse_age(raw: Any) -> Optional[int]:
    """Ages are stored as text; returns None when the value is not a whole number."""
    if raw is None:
        return None
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except ValueError:
        logger.warning(f"Unparsable age value: {raw!r}")
        return None
