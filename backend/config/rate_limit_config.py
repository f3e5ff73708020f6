"""
Configuración de Rate Limiting para la API.
Define límites por endpoint y estrategias de rate limiting.
"""
from typing import Optional

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address


class RateLimitConfig:
    """Configuración de rate limits por tipo de endpoint."""

    # API endpoints
    HEALTH_CHECK = "100/minute"
    ROOT_ENDPOINT = "60/minute"
    PRICE_ESTIMATE = "60/minute"
    LIST_ASSETS = "50/minute"

    # Design endpoints
    SUBMIT_DESIGN = "10/minute"
    UPDATE_DESIGN = "30/minute"
    GET_DESIGNS = "60/minute"

    # Order endpoints
    CREATE_ORDER = "10/minute"
    GET_ORDERS = "30/minute"

    # Conversation and notification endpoints
    GET_CONVERSATIONS = "60/minute"
    GET_NOTIFICATIONS = "60/minute"
    UPDATE_NOTIFICATIONS = "30/minute"


def get_user_id_from_request(request: Request) -> Optional[str]:
    """
    Extrae el user_id del token JWT si está disponible.
    Usa esto para rate limiting por usuario en lugar de por IP.
    """
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None

    import jwt
    from backend.config.security.securityJWT import SECRET_KEY, ALGORITHM

    token = auth_header.replace("Bearer ", "")
    try:
        # Decodificar token sin verificar expiración para rate limiting
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM], options={"verify_exp": False})
    except jwt.InvalidTokenError:
        return None
    return payload.get("id")


def user_or_ip_key_func(request: Request) -> str:
    """
    Función de clave para rate limiting:
    - Usuarios autenticados: por user_id
    - Usuarios anónimos: por IP
    """
    user_id = get_user_id_from_request(request)
    if user_id:
        return f"user:{user_id}"
    return get_remote_address(request)


# Limiter global (por usuario autenticado o IP)
limiter = Limiter(key_func=user_or_ip_key_func)
