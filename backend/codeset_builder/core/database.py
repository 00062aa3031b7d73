"""Database configuration and session management.

The engine (and its connection pool) is process-wide: created once by
``init_engine`` at startup and disposed by ``close_engine`` at shutdown.
Request handlers acquire a session through ``get_session``.
"""

import logging
from collections.abc import Generator
from datetime import datetime
from uuid import uuid4

from sqlalchemy import DateTime, Engine, create_engine, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from codeset_builder.core.config import settings

logger = logging.getLogger(__name__)

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models.

    Provides common columns for all models:
    - id: UUID primary key (auto-generated)
    - created_at: Timestamp when record was created
    """

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


def init_engine(database_url: str | None = None, **engine_kwargs) -> Engine:
    """Create the process-wide engine if it does not exist yet.

    Args:
        database_url: Override for ``settings.database_url``.
        **engine_kwargs: Extra keyword arguments for ``create_engine``.

    Returns:
        The shared engine.
    """
    global _engine, _session_factory
    if _engine is None:
        url = database_url or settings.database_url
        if not url.startswith("sqlite"):
            engine_kwargs.setdefault("pool_size", settings.database_pool_size)
            engine_kwargs.setdefault("pool_timeout", settings.database_pool_timeout)
            engine_kwargs.setdefault("pool_pre_ping", True)
        _engine = create_engine(url, echo=settings.debug, future=True, **engine_kwargs)
        _session_factory = sessionmaker(
            bind=_engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )
        logger.info(f"Database engine initialized ({_engine.url.get_backend_name()})")
    return _engine


def get_engine() -> Engine:
    """Get the shared engine, creating it on first use."""
    return _engine if _engine is not None else init_engine()


def get_session_factory() -> sessionmaker[Session]:
    """Get the session factory bound to the shared engine."""
    if _session_factory is None:
        init_engine()
    return _session_factory


def get_session() -> Generator[Session, None, None]:
    """Dependency to get a database session.

    The session is closed on every exit path, including failures.

    Usage in FastAPI:
        @router.post("/items")
        def list_items(session: Session = Depends(get_session)):
            ...
    """
    session = get_session_factory()()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db() -> None:
    """Create vocabulary tables.

    For development only. Production reads an existing OMOP vocabulary schema.
    """
    import codeset_builder.models  # noqa: F401  (register tables on Base.metadata)

    Base.metadata.create_all(bind=get_engine())


def close_engine() -> None:
    """Dispose the shared engine and its pooled connections."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
        logger.info("Database engine disposed")
    _engine = None
    _session_factory = None
