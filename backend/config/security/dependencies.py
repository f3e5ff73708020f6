"""
Dependencias de FastAPI para autenticación y autorización JWT.
Usa estas dependencias para proteger endpoints que requieren autenticación.
"""
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jwt.exceptions import InvalidTokenError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.config.security.securityJWT import decode_and_validate_token
from backend.api.dependencies import provide
from backend.database.models.user_model import User, UserRole


security = HTTPBearer()


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)]
) -> dict:
    """
    Valida el token JWT y retorna el payload del usuario.

    Uso en endpoints:
    ```python
    @router.get("/protected")
    async def protected_route(current_user: dict = Depends(get_current_user)):
        return {"user_id": current_user["id"]}
    ```

    Raises:
        HTTPException 401: Si el token es inválido, expirado o falta
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="No se pudo validar las credenciales",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_and_validate_token(credentials.credentials)
        UUID(str(payload["id"]))
        return payload
    except (InvalidTokenError, ValueError):
        raise credentials_exception


async def get_current_active_user(
    request: Request,
    current_user: Annotated[dict, Depends(get_current_user)],
) -> dict:
    """
    Valida que el usuario del token esté activo en la base de datos.

    Raises:
        HTTPException 403: Si el usuario está desactivado
        HTTPException 404: Si el usuario no existe
    """
    session_factory = await provide(async_sessionmaker[AsyncSession])(request)
    async with session_factory() as session:
        query = select(User).where(User.id == UUID(str(current_user["id"])))
        result = await session.execute(query)
        user: User | None = result.scalar_one_or_none()

        if user is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Usuario no encontrado"
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Usuario desactivado"
            )

    return current_user


async def require_seller(
    current_user: Annotated[dict, Depends(get_current_active_user)]
) -> dict:
    """
    Valida que el usuario tenga rol de vendedor/pastelero (role = 3).

    Uso en endpoints de la bandeja del vendedor:
    ```python
    @router.get("/inbox")
    async def inbox(seller: dict = Depends(require_seller)):
        ...
    ```

    Raises:
        HTTPException 403: Si el usuario no es vendedor
    """
    if current_user.get("role") != UserRole.SELLER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Solo vendedores pueden acceder a este recurso"
        )
    return current_user


def current_user_id(current_user: dict) -> UUID:
    """Convierte el claim `id` del token en UUID."""
    return UUID(str(current_user["id"]))
