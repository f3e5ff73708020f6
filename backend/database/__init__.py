"""Business Backend Database Module."""

from backend.database.connection import create_async_engine, get_engine
from backend.database.session import get_session_factory

__all__ = ["create_async_engine", "get_engine", "get_session_factory"]
