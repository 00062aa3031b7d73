"""Core application configuration and utilities."""

from codeset_builder.core.config import settings
from codeset_builder.core.database import Base, close_engine, get_session, init_engine

__all__ = [
    # Config
    "settings",
    # Database
    "Base",
    "close_engine",
    "get_session",
    "init_engine",
]
