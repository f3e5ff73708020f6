"""
Utilidades JWT.

La emisión de sesiones (login) vive fuera de este backend; aquí solo se
firman tokens para herramientas internas/tests y se validan los que llegan
en el header Authorization.
"""
from datetime import datetime, timedelta, timezone

import jwt
from jwt.exceptions import InvalidTokenError

from backend.config.security.config import settings

SECRET_KEY = settings.SECRET_KEY
ALGORITHM = settings.ALGORITHM


def create_access_token(data: dict, user: dict, expires_minutes: int | None = None) -> str:
    """
    Firma un token de acceso con los claims del usuario.

    Args:
        data: Claims adicionales
        user: Payload del usuario (id, username, role)
        expires_minutes: Expiración opcional (por defecto la de configuración)
    """
    minutes = expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    payload = {**data, **user}
    payload["exp"] = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def decode_and_validate_token(token: str) -> dict:
    """
    Decodifica y valida un token.

    Raises:
        InvalidTokenError: Si el token es inválido, expiró o no trae `id`
    """
    payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    if payload.get("id") is None:
        raise InvalidTokenError("Token sin claim 'id'")
    return payload
