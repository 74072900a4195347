import os

os.environ.setdefault("JWT_SECRET", "test-secret")

from decimal import Decimal

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from models import Base, Customer, Product
from services.repository import SqlAlchemyRepository


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def repo(session):
    return SqlAlchemyRepository(session)


@pytest.fixture
def customer(repo):
    return repo.create(Customer, {"name": "Acme Corp", "email": "ap@acme.example"})


@pytest.fixture
def product(repo):
    return repo.create(Product, {
        "name": "Web Development",
        "description": "Hourly web development",
        "price": Decimal("150.00"),
        "unit": "hour",
    })
