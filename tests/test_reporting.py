import datetime as dt

from backend.seniors_api.database import Gender, utcnow
from backend.seniors_api.services import application_service, export_service, reporting_service


def test_category_distribution_uses_age_bands(db, make_senior):
    for age in ("65", "79", "80", "95", "101", "unknown"):
        make_senior(age=age)
    make_senior(age="85", deleted_at=utcnow())

    counts = {row["category"]: row["count"] for row in reporting_service.category_distribution(db)}

    assert counts == {
        "Regular (Below 80)": 2,
        "Octogenarian (80-89)": 1,
        "Nonagenarian (90-99)": 1,
        "Centenarian (100+)": 1,
    }


def test_barangay_distribution_sorted_by_total(db, make_senior):
    make_senior(barangay="Alpha", pwd=True)
    for _ in range(3):
        make_senior(barangay="Bravo", age="82")
    make_senior(barangay="Bravo", pwd=True)

    rows = reporting_service.barangay_distribution(db)

    assert [r["barangay"] for r in rows] == ["Bravo", "Alpha"]
    bravo = rows[0]
    assert (bravo["total"], bravo["pwd"], bravo["non_pwd"]) == (4, 1, 3)
    assert bravo["categories"]["Octogenarian (80-89)"] == 3
    assert bravo["categories"]["Regular (Below 80)"] == 1


def test_age_distribution_bins(db, make_senior):
    make_senior(age="60")
    make_senior(age="65", gender=Gender.FEMALE)
    make_senior(age="85")
    make_senior(age="86", gender=Gender.FEMALE)
    make_senior(age="n/a")

    bins = {row["ageGroup"]: row for row in reporting_service.age_distribution(db)}

    assert list(bins) == ["60-65", "66-70", "71-75", "76-80", "81-85", "85+"]
    assert (bins["60-65"]["male"], bins["60-65"]["female"]) == (1, 1)
    assert bins["81-85"]["male"] == 1
    assert bins["85+"]["female"] == 1


def test_dashboard_stats(db, make_senior, make_benefit):
    a = make_senior(pwd=True)
    make_senior(low_income=True, created_at=utcnow() - dt.timedelta(days=10))
    make_senior(released_at=utcnow())
    make_senior(deleted_at=utcnow())
    application_service.submit_applications(db, make_benefit().id, [a.id])

    stats = reporting_service.dashboard_stats(db)

    assert stats["total_seniors"] == 3
    assert stats["pwd"] == 1
    assert stats["low_income"] == 1
    assert stats["regular"] == 1
    assert stats["newly_registered"] == 2
    assert stats["applied_seniors"] == 1
    assert stats["total_applications"] == 1
    assert stats["released"] == 1
    assert stats["barangays"] == {"Poblacion": 3}


def test_registration_trends(db, make_senior):
    make_senior(created_at=dt.datetime(2024, 1, 15))
    make_senior(created_at=dt.datetime(2024, 1, 20))
    make_senior(created_at=dt.datetime(2024, 6, 1))
    make_senior(created_at=dt.datetime(2025, 2, 1))

    monthly = reporting_service.registration_trends(db, "monthly", 2024)
    assert len(monthly) == 12
    assert monthly[0] == {"label": "January", "count": 2}
    assert monthly[5]["count"] == 1
    assert sum(m["count"] for m in monthly) == 3

    yearly = reporting_service.registration_trends(db, "yearly")
    assert yearly == [{"label": "2024", "count": 3}, {"label": "2025", "count": 1}]


def test_seniors_csv_export(db, make_senior):
    make_senior(firstname="Ana")
    csv_text = export_service.seniors_csv(db)
    header, row = csv_text.strip().splitlines()
    assert header.startswith("id,lastname,firstname")
    assert "Ana" in row
