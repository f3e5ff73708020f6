"""
Sesiones de Base de Datos.
Fábrica de sesiones async compartida por los servicios.
"""
import functools

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.database.connection import get_engine


@functools.cache
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Fábrica de sesiones (expire_on_commit=False para devolver objetos usables)."""
    return async_sessionmaker(
        bind=get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
    )
