"""Pytest configuration and fixtures for service layer tests."""

from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session

import salon_tracker.models  # noqa: F401
from salon_tracker.models.base import Base
from salon_tracker.services.catalog_lookup import (
    CatalogLookup,
    CatalogMaterial,
    CatalogOxidant,
    CatalogProduct,
    CatalogServiceTemplate,
)
from salon_tracker.services.dto import StoredId
from salon_tracker.services.mixing_ratio import MixingRatio

OWNER = "owner-1"
OTHER_OWNER = "owner-2"


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database
    2. Creates all tables
    3. Provides the database to the test
    4. Drops all tables after the test completes
    """
    engine = create_engine("sqlite:///:memory:", echo=False)

    Base.metadata.create_all(engine)

    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    Session = scoped_session(session_factory)

    # Monkey-patch the global session factory for tests
    import salon_tracker.services.database as db_module

    original_get_session = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session

    yield Session

    Session.remove()
    Base.metadata.drop_all(engine)

    db_module.get_session_factory = original_get_session


# ============================================================================
# In-memory catalog (no database)
# ============================================================================


@pytest.fixture
def lookup():
    """Catalog lookup built from records, for the pure recipe functions.

    Materials:
        tint    1:1.5 (alternates 1:1, 1:2)
        lighten 1:2
        gloss   1:1
        retired 1:1, inactive
    Oxidants: ox6, ox9, ox_old (inactive)
    """
    return CatalogLookup.build(
        materials=[
            CatalogMaterial(
                id=StoredId("tint"),
                name="Majirel",
                default_ratio=MixingRatio(1, 1.5),
                alternate_ratios=(MixingRatio(1, 1), MixingRatio(1, 2)),
            ),
            CatalogMaterial(
                id=StoredId("lighten"), name="Blond Studio", default_ratio=MixingRatio(1, 2)
            ),
            CatalogMaterial(
                id=StoredId("gloss"), name="Dia Light", default_ratio=MixingRatio(1, 1)
            ),
            CatalogMaterial(
                id=StoredId("retired"),
                name="Old Tint",
                default_ratio=MixingRatio(1, 1),
                is_active=False,
            ),
        ],
        oxidants=[
            CatalogOxidant(id=StoredId("ox6"), name="6%"),
            CatalogOxidant(id=StoredId("ox9"), name="9%", sort_order=1),
            CatalogOxidant(id=StoredId("ox_old"), name="12%", is_active=False),
        ],
        products=[
            CatalogProduct(id=StoredId("shampoo"), name="Shampoo", price=Decimal("250.00")),
            CatalogProduct(id=StoredId("mask"), name="Mask", price=Decimal("420.50")),
        ],
        service_templates=[
            CatalogServiceTemplate(id=StoredId("colour"), name="Colour", bowl_count=1),
            CatalogServiceTemplate(id=StoredId("highlights"), name="Highlights", bowl_count=2),
            CatalogServiceTemplate(id=StoredId("cut"), name="Cut", bowl_count=0),
        ],
    )


# ============================================================================
# Database-backed catalog and clients
# ============================================================================


@pytest.fixture
def sample_client(test_db):
    """Create a sample client for testing."""
    from salon_tracker.services import client_service

    return client_service.create_client(
        OWNER, {"first_name": "Jana", "last_name": "Novakova", "phone": "+420 777 123 456"}
    )


@pytest.fixture
def sample_catalog(test_db):
    """Create catalog rows for OWNER and return them by short name."""
    from salon_tracker.services import catalog_service

    return SimpleNamespace(
        tint=catalog_service.create_material(
            OWNER, "Majirel", ratio=MixingRatio(1, 1.5), alternate_ratios=[MixingRatio(1, 2)]
        ),
        lighten=catalog_service.create_material(OWNER, "Blond Studio", ratio=MixingRatio(1, 2)),
        ox6=catalog_service.create_oxidant(OWNER, "6%"),
        ox9=catalog_service.create_oxidant(OWNER, "9%", sort_order=1),
        shampoo=catalog_service.create_product(OWNER, "Shampoo", "250"),
        colour=catalog_service.create_service_template(OWNER, "Colour", bowl_count=1),
        cut=catalog_service.create_service_template(OWNER, "Cut", bowl_count=0),
    )


@pytest.fixture
def db_catalog(sample_catalog):
    """CatalogLookup loaded from the sample catalog rows."""
    from salon_tracker.services import catalog_service

    return catalog_service.load_catalog(OWNER)
