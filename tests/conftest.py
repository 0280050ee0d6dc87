import os
import tempfile
import datetime as dt

import pytest

_TMP_DIR = tempfile.mkdtemp(prefix="seniors-tests-")
os.environ["DATABASE_BACKEND"] = "sqlite"
os.environ["SQLITE_PATH"] = os.path.join(_TMP_DIR, "test.db")
os.environ["SENIORS_DATA_DIR"] = _TMP_DIR

from backend.seniors_api.database import (  # noqa: E402
    DatabaseSession, close_databases, reset_database, Senior, Benefit, BenefitRequirement, Gender, Remark, utcnow
)


@pytest.fixture(scope="session", autouse=True)
def database_engines():
    yield
    close_databases()


@pytest.fixture(autouse=True)
def fresh_database():
    reset_database()
    yield


@pytest.fixture
def db():
    with DatabaseSession() as session:
        yield session


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from backend.seniors_api.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_senior(db):
    def _make(**overrides):
        values = {
            "firstname": "Juan",
            "middlename": "",
            "lastname": "Dela Cruz",
            "barangay": "Poblacion",
            "purok": "Purok 1",
            "age": "70",
            "gender": Gender.MALE,
            "pwd": False,
            "low_income": False,
            "remark": Remark.NEW,
        }
        values.update(overrides)
        senior = Senior(**values)
        db.add(senior)
        db.commit()
        db.refresh(senior)
        return senior
    return _make


@pytest.fixture
def make_benefit(db):
    def _make(name="Social Pension", requirements=("Barangay Certificate",)):
        benefit = Benefit(name=name, description=f"{name} benefit")
        for req in requirements:
            benefit.requirements.append(BenefitRequirement(name=req))
        db.add(benefit)
        db.commit()
        db.refresh(benefit)
        return benefit
    return _make


def hours_ago(hours: float) -> dt.datetime:
    return utcnow() - dt.timedelta(hours=hours)
