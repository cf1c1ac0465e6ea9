"""Pytest fixtures for testing"""

from datetime import date
from decimal import Decimal
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from inventory_ledger.api.main import create_app
from inventory_ledger.config import Settings
from inventory_ledger.infrastructure.database.models import Customer, StockItem
from inventory_ledger.infrastructure.database.session import Database, get_db
from inventory_ledger.services.credit_service import CreditService
from inventory_ledger.services.interest_service import InterestService
from inventory_ledger.services.reporting import CreditReportingService
from inventory_ledger.utils.cache import TTLCache
from inventory_ledger.utils.date_utils import FixedClock

OWNER_ID = 1
OTHER_OWNER_ID = 2
TODAY = date(2024, 3, 15)


@pytest.fixture
def database(tmp_path) -> Generator[Database, None, None]:
    """File-backed SQLite database so several sessions can share it"""
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}", connect_args={"check_same_thread": False})
    database = Database(engine)
    database.create_tables()
    try:
        yield database
    finally:
        database.drop_tables()
        database.dispose()


@pytest.fixture
def db(database: Database) -> Generator[Session, None, None]:
    """Create test session"""
    db = database.session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(TODAY)


@pytest.fixture
def reporting(clock: FixedClock) -> CreditReportingService:
    return CreditReportingService(TTLCache(max_entries=64, ttl_seconds=60.0), clock=clock)


@pytest.fixture
def credit_service(db: Session, reporting: CreditReportingService, clock: FixedClock) -> CreditService:
    return CreditService(db, reporting, clock=clock)


@pytest.fixture
def interest_service(db: Session, reporting: CreditReportingService, clock: FixedClock) -> InterestService:
    return InterestService(db, reporting, clock=clock)


@pytest.fixture
def customer(db: Session) -> Customer:
    customer = Customer(user_id=OWNER_ID, customer_name="Asha Traders", phone_number="555-0101")
    db.add(customer)
    db.commit()
    return customer


@pytest.fixture
def product(db: Session) -> StockItem:
    """Stock item with 20 single-unit packages on hand"""
    item = StockItem(
        user_id=OWNER_ID,
        product_name="Rice 5kg",
        category="Grains",
        package_size=Decimal("1"),
        number_of_items=20,
        quantity_unit="bags",
        quantity=Decimal("20"),
        actual_price=Decimal("80.00"),
        selling_price=Decimal("100.00"),
    )
    db.add(item)
    db.commit()
    return item


@pytest.fixture
def second_product(db: Session) -> StockItem:
    """Stock item with only 3 packages of 2 litres on hand"""
    item = StockItem(
        user_id=OWNER_ID,
        product_name="Cooking Oil",
        category="Oils",
        package_size=Decimal("2"),
        number_of_items=3,
        quantity_unit="litres",
        quantity=Decimal("6"),
        actual_price=Decimal("40.00"),
        selling_price=Decimal("50.00"),
    )
    db.add(item)
    db.commit()
    return item


@pytest.fixture
def client(database: Database, db: Session, clock: FixedClock) -> TestClient:
    """Create FastAPI test client with test database and a fixed clock"""
    settings = Settings(database_url="sqlite://", interest_scheduler_enabled=False)
    app = create_app(settings=settings, database=database, clock=clock)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)
