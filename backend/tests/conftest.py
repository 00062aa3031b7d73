"""Pytest configuration and fixtures for backend tests."""

from collections.abc import AsyncGenerator, Callable, Generator
from unittest.mock import MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from codeset_builder.core.database import get_session
from codeset_builder.main import app
from codeset_builder.models.vocabulary import Concept, ConceptRelationship
from vocabulary_data import seed_vocabulary


@pytest.fixture
def vocab_engine():
    """In-memory SQLite engine holding only the vocabulary tables.

    StaticPool keeps one connection so sync endpoints running in the
    threadpool see the same database.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Concept.__table__.create(bind=engine)
    ConceptRelationship.__table__.create(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def vocab_session(vocab_engine) -> Generator[Session, None, None]:
    """Create an empty vocabulary session."""
    session = sessionmaker(bind=vocab_engine, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded_session(vocab_session: Session) -> Session:
    """Vocabulary session loaded with the lab test fixture data."""
    seed_vocabulary(vocab_session)
    return vocab_session


@pytest.fixture
def override_session() -> Generator[Callable[[object], None], None, None]:
    """Install a replacement for the get_session dependency.

    Usage:
        override_session(seeded_session)
    """

    def install(session: object) -> None:
        def _get_session():
            yield session

        app.dependency_overrides[get_session] = _get_session

    yield install
    app.dependency_overrides.clear()


@pytest.fixture
def failing_session() -> MagicMock:
    """A session whose queries fail like a lost database connection."""
    from sqlalchemy.exc import OperationalError

    session = MagicMock(spec=Session)
    session.execute.side_effect = OperationalError(
        "SELECT 1", {}, Exception("connection to server was lost")
    )
    return session


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client.

    Lifespan events are not run, so no engine is created; tests that
    reach the database install a session with ``override_session``.
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
