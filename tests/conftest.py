"""Test configuration and fixtures."""

from typing import List

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from canora.curation.schemas import Curator
from canora.curation.works import WorkService
from canora.db.base import Base
from canora.db import models  # noqa: F401
from canora.db.store import WorkStore
from canora.events import Event, Notifier


def make_engine():
    return create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def db_session():
    """Create a fresh in-memory database for each test."""
    engine = make_engine()
    Base.metadata.create_all(engine)
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = Session()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def store(db_session) -> WorkStore:
    return WorkStore(db_session)


@pytest.fixture
def notifier() -> Notifier:
    return Notifier(history_size=50)


@pytest.fixture
def published(notifier) -> List[Event]:
    """Every event the test notifier delivers, in order."""
    events: List[Event] = []
    notifier.subscribe("*", events.append, name="recorder")
    return events


@pytest.fixture
def works(store, notifier) -> WorkService:
    return WorkService(store, notifier)


@pytest.fixture
def curator() -> Curator:
    return Curator(id="curator-1", display_name="Elena Voss")


@pytest.fixture
def make_work(works):
    """Factory creating JAM works with readable titles."""
    counter = {"n": 0}

    def _make(title=None, **kwargs):
        counter["n"] += 1
        return works.create_work(title or f"Work {counter['n']}", **kwargs)

    return _make
