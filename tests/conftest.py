from __future__ import annotations

import os
import sys
import pathlib
import tempfile

# Ensure the project root is importable when pytest is run from anywhere.
sys.path.insert(0, str(pathlib.Path(__file__).parent.parent))

# Point the app at a throw-away SQLite database before `database` is imported.
_TMP_DIR = pathlib.Path(tempfile.mkdtemp(prefix="marketplace-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'test.db'}"
os.environ["PENDING_STORE_PATH"] = str(_TMP_DIR / "pending.json")

from datetime import date, timedelta
from decimal import Decimal

import pytest

from database import Base, SessionLocal, engine
from models import User
from services.negotiation import NegotiationService
from statuses import UserRole


TODAY = date.today()


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def requirement_data(**overrides) -> dict:
    """W240 from India, 1000kg wanted, at least 500kg per supplier, ₹8000/kg, no lower bids."""
    data = dict(
        grade="W240",
        origin="india",
        required_quantity="1,000",
        minimum_quantity="500",
        expected_price=Decimal("8000"),
        allow_lower_bid=False,
        delivery_location="Jawaharlal Nehru Port",
        city="Mumbai",
        country="India",
        delivery_deadline=TODAY + timedelta(days=30),
        specifications="Moisture below 5%, vacuum packed tins",
        is_draft=False,
    )
    data.update(overrides)
    return data


def make_user(db, role: UserRole, name: str) -> User:
    user = User(name=name, email=f"{name.lower().replace(' ', '.')}@cashew-trade.in", role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def fresh_database():
    """Every test starts from empty tables."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def service(db):
    return NegotiationService(db, today=lambda: TODAY)


@pytest.fixture
def buyer(db):
    return make_user(db, UserRole.buyer, "Anita Buyer")


@pytest.fixture
def other_buyer(db):
    return make_user(db, UserRole.buyer, "Rahul Buyer")


@pytest.fixture
def merchant(db):
    return make_user(db, UserRole.merchant, "Kerala Cashews")


@pytest.fixture
def other_merchant(db):
    return make_user(db, UserRole.merchant, "Goa Processors")


@pytest.fixture
def admin(db):
    return make_user(db, UserRole.admin, "Ops Admin")


@pytest.fixture
def requirement(service, buyer):
    """Scenario A requirement, active."""
    return service.create_requirement(buyer.id, requirement_data())
