"""
Dashboard aggregates. Everything is recomputed from live rows on each call.

Category counts use `category_for_age` so they agree with the categories
assigned to applications. Seniors whose stored age is not a number are
left out of age-based counts.
"""

import calendar
import logging
import datetime as dt
from collections import OrderedDict
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from backend.seniors_api.database import Senior, Application, Gender, SeniorCategory, utcnow
from backend.seniors_api.settings import get_settings
from backend.seniors_api.services.category_service import category_for_age, parse_age, CATEGORY_COLORS
from backend.seniors_api.services.errors import ValidationFailed

logger = logging.getLogger(__name__)

AGE_BINS = [
    ("60-65", 60, 65),
    ("66-70", 66, 70),
    ("71-75", 71, 75),
    ("76-80", 76, 80),
    ("81-85", 81, 85),
    ("85+", 86, 200),
]

TREND_VIEWS = ("monthly", "yearly")


def _active_seniors(db: Session) -> List[Senior]:
    return db.query(Senior).filter(Senior.deleted_at.is_(None)).all()


def _category_counts(seniors: List[Senior]) -> Dict[SeniorCategory, int]:
    counts = OrderedDict((c, 0) for c in SeniorCategory)
    for senior in seniors:
        age = parse_age(senior.age)
        if age is None or age < 0:
            continue
        counts[category_for_age(age)] += 1
    return counts


def category_distribution(db: Session) -> List[Dict[str, Any]]:
    counts = _category_counts(_active_seniors(db))
    return [
        {"category": c.value, "count": n, "color": CATEGORY_COLORS[c]}
        for c, n in counts.items()
    ]


def barangay_distribution(db: Session) -> List[Dict[str, Any]]:
    groups: Dict[str, List[Senior]] = {}
    for senior in _active_seniors(db):
        groups.setdefault(senior.barangay, []).append(senior)

    rows = []
    for barangay, seniors in groups.items():
        pwd = sum(1 for s in seniors if s.pwd)
        rows.append({
            "barangay": barangay,
            "total": len(seniors),
            "pwd": pwd,
            "non_pwd": len(seniors) - pwd,
            "categories": {c.value: n for c, n in _category_counts(seniors).items()},
        })
    rows.sort(key=lambda r: (-r["total"], r["barangay"]))
    return rows


def age_distribution(db: Session) -> List[Dict[str, Any]]:
    bins = [{"ageGroup": label, "male": 0, "female": 0} for label, _, _ in AGE_BINS]
    for senior in _active_seniors(db):
        age = parse_age(senior.age)
        if age is None:
            continue
        for row, (_, low, high) in zip(bins, AGE_BINS):
            if low <= age <= high:
                row["male" if senior.gender == Gender.MALE else "female"] += 1
                break
    return bins


def dashboard_stats(db: Session) -> Dict[str, Any]:
    seniors = _active_seniors(db)
    active_ids = {s.id for s in seniors}
    cutoff = utcnow() - dt.timedelta(hours=get_settings().newly_registered_hours)

    applied_ids = {
        sid for (sid,) in db.query(Application.senior_id).distinct().all()
        if sid in active_ids
    }
    total_applications = db.query(func.count(Application.id)).scalar() or 0

    barangay_counts: Dict[str, int] = {}
    for s in seniors:
        barangay_counts[s.barangay] = barangay_counts.get(s.barangay, 0) + 1

    return {
        "total_seniors": len(seniors),
        "total_applications": total_applications,
        "pwd": sum(1 for s in seniors if s.pwd),
        "low_income": sum(1 for s in seniors if s.low_income),
        "regular": sum(1 for s in seniors if not s.pwd and not s.low_income),
        "newly_registered": sum(1 for s in seniors if s.created_at and s.created_at >= cutoff),
        "applied_seniors": len(applied_ids),
        "released": sum(1 for s in seniors if s.released_at is not None),
        "categories": {c.value: n for c, n in _category_counts(seniors).items()},
        "barangays": dict(sorted(barangay_counts.items(), key=lambda kv: (-kv[1], kv[0]))),
    }


def registration_trends(db: Session, view: str = "monthly", year: Optional[int] = None) -> List[Dict[str, Any]]:
    """Registrations per month of one year, or per year."""
    import pandas as pd

    if view not in TREND_VIEWS:
        raise ValidationFailed(f"view must be one of {', '.join(TREND_VIEWS)}")

    created = [c for (c,) in db.query(Senior.created_at).filter(Senior.deleted_at.is_(None)).all() if c]
    df = pd.DataFrame({"created_at": pd.to_datetime(pd.Series(created, dtype="datetime64[ns]"))})

    if view == "monthly":
        year = year or dt.date.today().year
        in_year = df[df["created_at"].dt.year == year]
        counts = in_year.groupby(in_year["created_at"].dt.month).size()
        return [
            {"label": calendar.month_name[m], "count": int(counts.get(m, 0))}
            for m in range(1, 13)
        ]

    counts = df.groupby(df["created_at"].dt.year).size().sort_index()
    return [{"label": str(int(y)), "count": int(n)} for y, n in counts.items()]
