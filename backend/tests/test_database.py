"""Tests for settings and database session management."""

from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import text

from codeset_builder.core import database
from codeset_builder.core.config import Settings, settings
from codeset_builder.core.database import (
    Base,
    close_engine,
    get_engine,
    get_session,
    get_session_factory,
    init_engine,
)


class TestSettings:
    """Test application settings."""

    def test_database_url_configured(self) -> None:
        """Test that database URL points at PostgreSQL by default."""
        assert Settings().database_url.startswith("postgresql")

    def test_search_defaults(self) -> None:
        defaults = Settings()
        assert defaults.search_result_limit == 1000
        assert defaults.search_escape_wildcards is True

    def test_environment_override(self, monkeypatch) -> None:
        """Test settings are read from the environment."""
        monkeypatch.setenv("SEARCH_RESULT_LIMIT", "25")
        monkeypatch.setenv("SEARCH_ESCAPE_WILDCARDS", "false")
        overridden = Settings()
        assert overridden.search_result_limit == 25
        assert overridden.search_escape_wildcards is False

    def test_singleton(self) -> None:
        assert isinstance(settings, Settings)


class TestBaseModel:
    """Test Base model class."""

    def test_vocabulary_tables_registered(self) -> None:
        import codeset_builder.models  # noqa: F401

        assert {"concepts", "concept_relationships"} <= set(Base.metadata.tables)

    def test_base_columns(self) -> None:
        from codeset_builder.models import Concept

        assert "id" in Concept.__table__.c
        assert "created_at" in Concept.__table__.c
        assert Concept.__table__.c.id.primary_key


class TestEngineLifecycle:
    """Test the process-wide engine."""

    @pytest.fixture(autouse=True)
    def _reset_engine(self):
        close_engine()
        yield
        close_engine()

    def test_init_engine_is_idempotent(self) -> None:
        engine = init_engine("sqlite://")
        assert init_engine("sqlite://") is engine
        assert get_engine() is engine

    def test_session_factory_bound_to_engine(self) -> None:
        engine = init_engine("sqlite://")
        with get_session_factory()() as session:
            assert session.get_bind() is engine
            assert session.execute(text("SELECT 1")).scalar() == 1

    def test_close_engine_resets(self) -> None:
        init_engine("sqlite://")
        close_engine()
        assert database._engine is None
        assert database._session_factory is None

    def test_close_engine_without_engine(self) -> None:
        close_engine()
        assert database._engine is None


class TestGetSession:
    """Test the get_session dependency."""

    def test_session_closed_after_use(self) -> None:
        session = MagicMock()
        with patch.object(database, "get_session_factory", return_value=lambda: session):
            gen = get_session()
            assert next(gen) is session
            with pytest.raises(StopIteration):
                next(gen)
        session.close.assert_called_once()
        session.rollback.assert_not_called()

    def test_session_rolled_back_and_closed_on_error(self) -> None:
        session = MagicMock()
        with patch.object(database, "get_session_factory", return_value=lambda: session):
            gen = get_session()
            next(gen)
            with pytest.raises(RuntimeError):
                gen.throw(RuntimeError("boom"))
        session.rollback.assert_called_once()
        session.close.assert_called_once()
