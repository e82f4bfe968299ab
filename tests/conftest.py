import os

# Must be set before the application settings are imported
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from content_moderation.clients.classifier_client import RemoteClassifier, get_classifier
from content_moderation.core.config import ClassifierConfig, settings
from content_moderation.core.security import rate_limit_storage
from content_moderation.db.session import Base, get_db
from content_moderation.models.media_file import MediaFile
from content_moderation.models.moderation_record import ModerationRecord

REVIEWER_KEY = "reviewer-key-123"
REVIEWER_ID = "reviewer-1"


@pytest.fixture
def db_session():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def fallback_classifier():
    """Classifier with no remote configured, so every call uses the keyword fallback."""
    return RemoteClassifier(ClassifierConfig())


@pytest.fixture
def reviewer_headers(monkeypatch):
    monkeypatch.setitem(settings.reviewer_api_keys, REVIEWER_KEY, REVIEWER_ID)
    return {"Authorization": f"Bearer {REVIEWER_KEY}"}


@pytest.fixture
def client(db_session, fallback_classifier):
    from main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_classifier] = lambda: fallback_classifier
    rate_limit_storage.clear()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_media(db_session):
    """Insert media files; later calls get later created_at values."""
    base = datetime(2025, 1, 1)
    counter = {"n": 0}

    def _make(filename="photo.jpg", mime_type="image/jpeg", url=None, media_id=None):
        counter["n"] += 1
        media = MediaFile(
            id=media_id or f"media-{counter['n']}",
            filename=filename,
            mime_type=mime_type,
            url=url or f"https://cdn.example.com/uploads/{filename}",
            created_at=base + timedelta(minutes=counter["n"]),
        )
        db_session.add(media)
        db_session.commit()
        return media

    return _make
