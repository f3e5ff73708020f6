"""
Base compartida para todos los modelos de SQLAlchemy.
TODOS los modelos deben importar Base desde este archivo.
"""
from datetime import datetime, timezone

from sqlalchemy.orm import DeclarativeBase


def utcnow() -> datetime:
    """Timestamp con zona horaria para columnas created_at/updated_at."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base declarativa compartida para todos los modelos del sistema."""
    pass
