"""Shared fixtures: a fresh in-memory SQLite store per test."""

import pytest
from sqlalchemy.orm import sessionmaker

from threatintel.db.session import make_engine
from threatintel.db.tables import Base
from threatintel.models.common import Identity, Role


@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def analyst() -> Identity:
    return Identity(user_id="alice", role=Role.ANALYST)


@pytest.fixture
def admin() -> Identity:
    return Identity(user_id="root", role=Role.ADMIN)
