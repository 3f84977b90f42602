"""
Shared test fixtures.

Sets up an isolated SQLite database so tests never touch
the real database. Every test starts with empty tables.
"""

import os

# Must be set before the application modules read their settings
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from explosives_inventory.main import app
from explosives_inventory.models.base import (
    Base,
    enable_sqlite_write_locking,
    get_db,
)
from explosives_inventory.models.enums import CompatibilityGroup, UnitOfMeasure
from explosives_inventory.schemas.magazine import MagazineCreate
from explosives_inventory.schemas.product import ProductCreate
from explosives_inventory.services.magazine_service import MagazineService
from explosives_inventory.services.product_service import ProductService


TEST_DATABASE_URL = "sqlite:///./test.db"
TEST_USER = "tester"

engine = enable_sqlite_write_locking(create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
))

TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop them after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client(db_session):
    """
    Provide a test client bound to the test session.

    Requests carry an X-User-Id header, as they would behind
    the authenticating gateway.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app, headers={"X-User-Id": TEST_USER})
    app.dependency_overrides.clear()


# --- Catalog helpers ---

def make_magazine(db_session, code="MAG-001", max_kg="1000"):
    magazine = MagazineService(db_session).create_magazine(MagazineCreate(
        code=code,
        name=f"Magazine {code}",
        location="North Quarry",
        max_net_explosive_weight_kg=Decimal(max_kg),
    ), TEST_USER)
    db_session.commit()
    return magazine


def make_product(
    db_session,
    un_number="UN 0081",
    name="Dynamite",
    group=CompatibilityGroup.D,
    weight_per_unit="0.5",
):
    product = ProductService(db_session).create_product(ProductCreate(
        name=name,
        un_number=un_number,
        compatibility_group=group,
        unit=UnitOfMeasure.EACH,
        net_explosive_weight_per_unit_kg=Decimal(weight_per_unit),
    ), TEST_USER)
    db_session.commit()
    return product
