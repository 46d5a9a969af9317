"""
Shared fixtures: a fresh SQLite database per test, seeded users and listings.
"""
from datetime import datetime, timedelta
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from messaging.core.config import Settings, get_settings
from messaging.core.database import Base, build_engine, get_db, init_db
from messaging.main import app
from messaging.models.listing import Listing
from messaging.models.message import Message
from messaging.models.user import User
from messaging.services.ledger import ConversationLedger

T0 = datetime(2025, 1, 15, 10, 0, 0)

USERS = {
    "alice": "Alice Buyer",
    "bob": "Bob Seller",
    "carol": "Carol Collector",
    "dave": "Dave Dealer",
}

LISTINGS = {
    "bike": ("Road bike", ["https://img.example/bike-1.jpg", "https://img.example/bike-2.jpg"]),
    "lamp": ("Desk lamp", []),
}


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Override settings for testing."""
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test_marketplace.db'}",
        log_level="DEBUG",
        log_format="text",
        identity_secret=None,
        conversations_page_size=20,
        messages_page_size=50,
        max_page_size=100,
        max_message_length=200,
    )


@pytest.fixture
def session_factory(test_settings):
    """Create a fresh test database for each test."""
    engine = build_engine(test_settings.database_url)
    init_db(engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    with factory() as db:
        db.add_all(User(id=user_id, name=name) for user_id, name in USERS.items())
        db.add_all(
            Listing(id=listing_id, title=title, images=images)
            for listing_id, (title, images) in LISTINGS.items()
        )
        db.commit()

    yield factory

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture
def ledger(db, test_settings):
    return ConversationLedger(db, settings=test_settings)


@pytest.fixture
def client(session_factory, test_settings):
    """Test client wired to the per-test database and settings."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings

    yield TestClient(app)

    app.dependency_overrides.clear()


def as_user(user_id: str) -> dict:
    """Headers the gateway would attach for an authenticated caller."""
    return {"X-User-Id": user_id}


def add_message(
    db,
    sender_id: str,
    receiver_id: str,
    content: str,
    minutes: float = 0,
    listing_id: Optional[str] = None,
    is_read: bool = False,
) -> Message:
    """Insert a message at T0 + minutes."""
    message = Message(
        sender_id=sender_id,
        receiver_id=receiver_id,
        listing_id=listing_id,
        content=content,
        is_read=is_read,
        created_at=T0 + timedelta(minutes=minutes),
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    return message
