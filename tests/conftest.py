"""
Shared fixtures: in-memory SQLite database, API client with the database
dependency overridden, and recorded email dispatch.
"""
from typing import List, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config.database import get_db
from app.config.settings import get_settings
from app.models import Base
from app.services.catalog.catalog_service import clear_catalog_cache
from app.services.notifications import dispatcher
from tests.factories import ADMIN_KEY


class RecordingTask:
    """Stands in for a Celery task; records what would have been queued"""

    def __init__(self, kind: str, sink: List[Tuple[str, str]]):
        self.kind = kind
        self.sink = sink

    def delay(self, appointment_id, correlation_id=None):
        self.sink.append((self.kind, appointment_id))


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def app_settings(monkeypatch):
    """The cached Settings instance; attributes set through monkeypatch are restored"""
    settings = get_settings()
    monkeypatch.setattr(settings, "SCHEDULING_BACKEND", "local")
    monkeypatch.setattr(settings, "ADMIN_API_KEY", ADMIN_KEY)
    monkeypatch.setattr(settings, "DEFAULT_BUFFER_MINUTES", 15)
    return settings


@pytest.fixture(autouse=True)
def fresh_catalog_cache():
    clear_catalog_cache()
    yield
    clear_catalog_cache()


@pytest.fixture(autouse=True)
def queued_emails(monkeypatch):
    sink: List[Tuple[str, str]] = []
    for kind in list(dispatcher.TASKS_BY_KIND):
        monkeypatch.setitem(dispatcher.TASKS_BY_KIND, kind, RecordingTask(kind, sink))
    return sink


@pytest.fixture
def client(session_factory):
    from app.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_KEY}"}
