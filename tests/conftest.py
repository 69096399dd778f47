"""
Pytest configuration and fixtures for repokit tests.
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from repokit.models import Base
from shared.infrastructure.db import enable_sqlite_savepoints
from tests.models import Ban, Category, Order, Product, Profile, User


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = enable_sqlite_savepoints(create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
))
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    # Create all tables
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        # Drop all tables after test
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def seed_categories(db_session):
    """Create the categories profiles and products point to."""
    categories = {
        "electronics": Category(name="Electronics", priority=3),
        "books": Category(name="Books", priority=1),
        "garden": Category(name="Garden", priority=2),
    }
    db_session.add_all(categories.values())
    db_session.commit()
    return categories


@pytest.fixture
def seed_users(db_session, seed_categories):
    """
    Create users with varied relations.

    - alice: profile in Elazig (Electronics, Books), two orders, no bans
    - bob: profile in Istanbul (Books), one order, one ban
    - carol: inactive, no profile, no orders, no bans
    - dave: profile in Elazig without categories, no orders, one ban
    """
    alice = User(name="Alice", email="alice@test.com", age=30, status="active")
    alice.profile = Profile(
        city="Elazig",
        bio="Collects radios",
        categories=[seed_categories["electronics"], seed_categories["books"]],
    )
    alice.orders = [
        Order(total=700, status="paid", placed_at=datetime(2025, 8, 1, 10, 0)),
        Order(total=120, status="pending", placed_at=datetime(2025, 8, 2, 9, 15)),
    ]

    bob = User(name="Bob", email="bob@test.com", age=25, status="active")
    bob.profile = Profile(city="Istanbul", categories=[seed_categories["books"]])
    bob.orders = [Order(total=300, status="paid", placed_at=datetime(2025, 8, 1, 18, 30))]
    bob.bans = [Ban(reason="spam")]

    carol = User(name="Carol", email="carol@test.com", age=41, status="inactive")

    dave = User(name="Dave", email="dave@test.com", age=None, status="active")
    dave.profile = Profile(city="Elazig")
    dave.bans = [Ban(reason="chargeback")]

    users = {"alice": alice, "bob": bob, "carol": carol, "dave": dave}
    db_session.add_all(users.values())
    db_session.commit()
    return users


@pytest.fixture
def seed_products(db_session, seed_categories):
    """
    Create products; "sofa" is archived.
    """
    products = {
        "lamp": Product(name="Lamp", status="active", price=40, score=55,
                        category=seed_categories["electronics"]),
        "desk": Product(name="Desk", status="active", price=250, score=90),
        "chair": Product(name="Chair", status="draft", price=120, score=70),
        "sofa": Product(name="Sofa", status="active", price=900, score=50,
                        deleted_at=datetime(2025, 7, 1, tzinfo=timezone.utc)),
        "rug": Product(name="Rug", status="active", price=60, score=20,
                       category=seed_categories["garden"]),
    }
    db_session.add_all(products.values())
    db_session.commit()
    return products
