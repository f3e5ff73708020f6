"""
Conexión a la Base de Datos.
Crea (una sola vez) el motor async de SQLAlchemy a partir de la configuración.
"""
import functools

from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.ext.asyncio import create_async_engine as _sa_create_async_engine

from backend.config import get_business_settings


def create_async_engine(database_url: str, **kwargs) -> AsyncEngine:
    """
    Crea un motor async.

    SQLite (aiosqlite) se usa en desarrollo/tests; en ese caso se amplía el
    timeout de bloqueo para que escrituras concurrentes esperen en vez de fallar.
    """
    if database_url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("timeout", 30)
        return _sa_create_async_engine(database_url, connect_args=connect_args, **kwargs)

    kwargs.setdefault("pool_pre_ping", True)
    return _sa_create_async_engine(database_url, **kwargs)


@functools.cache
def get_engine() -> AsyncEngine:
    """Motor compartido por toda la aplicación."""
    settings = get_business_settings()
    return create_async_engine(settings.pg_url, echo=False)
