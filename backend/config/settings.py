"""
Configuración del Backend
"""
import functools
import dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

@functools.cache
def _load_dotenv_once() -> None:
    dotenv.load_dotenv(dotenv.find_dotenv())

class BusinessSettings(BaseSettings):
    """Configuración principal validada."""

    # Base de Datos (URL async de SQLAlchemy: postgresql+asyncpg://... o sqlite+aiosqlite://...)
    pg_url: str
    db_timeout_seconds: float = 10.0

    # Flags del sistema
    log_level: str = "INFO"
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
    ]

    # Motor de precios (valores fijos, no configurables desde el catálogo)
    base_fee: int = 300
    layer_diameter_cost: int = 60

    # Outbox de efectos secundarios (chat + notificaciones)
    outbox_poll_interval_seconds: float = 5.0
    outbox_max_attempts: int = 5
    outbox_worker_enabled: bool = True

    # Servicio de subida de imágenes (snapshots y comprobantes de pago)
    upload_endpoint: str | None = Field(default=None, alias="UPLOAD_ENDPOINT")
    upload_api_key: str | None = Field(default=None, alias="UPLOAD_API_KEY")
    upload_folder: str = "creake_designs"

    # Configuración de carga
    model_config = SettingsConfigDict(
        env_file=(".env", "backend/.env.dev", ".env.dev"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

def get_business_settings() -> BusinessSettings:
    _load_dotenv_once()
    return BusinessSettings()
