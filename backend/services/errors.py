"""
Errores de dominio del marketplace.

Todos se reportan de forma síncrona al llamador con un mensaje apto para el
usuario; ninguno se reintenta en esta capa.
"""
import asyncio
from typing import Any, Awaitable, Callable, TypeVar

from sqlalchemy.exc import OperationalError, SQLAlchemyError

T = TypeVar("T")


class MarketplaceError(Exception):
    """Excepción base para errores de los servicios de diseño y pedidos."""

    error_code = "MARKETPLACE_ERROR"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(MarketplaceError):
    """Diseño o pedido inexistente."""
    error_code = "NOT_FOUND"
    status_code = 404


class ForbiddenError(MarketplaceError):
    """El actor no es el comprador ni el vendedor autorizado."""
    error_code = "FORBIDDEN"
    status_code = 403


class InvalidStateError(MarketplaceError):
    """La precondición de estado de la operación no se cumple."""
    error_code = "INVALID_STATE"
    status_code = 409


class InvalidInputError(MarketplaceError):
    """Datos faltantes o inválidos (precio, comprobante de pago, monto)."""
    error_code = "INVALID_INPUT"
    status_code = 422


class ConflictError(MarketplaceError):
    """Carrera perdida: otro vendedor reclamó la solicitud o el pedido ya se creó."""
    error_code = "CONFLICT"
    status_code = 409


class StorageUnavailableError(MarketplaceError):
    """La base de datos no respondió a tiempo o falló; nada quedó aplicado."""
    error_code = "STORAGE_UNAVAILABLE"
    status_code = 503


# ============================================================================
# ACCESO A BASE DE DATOS
# ============================================================================

async def run_storage_operation(
    work: Callable[[], Awaitable[T]],
    *,
    operation: str,
    timeout: float,
    logger: Any,
) -> T:
    """
    Ejecuta una unidad de trabajo contra la base de datos con límite de tiempo.

    Los errores de dominio se propagan tal cual; los timeouts y errores del
    driver se traducen a StorageUnavailableError. Si el tiempo se agota la
    transacción en curso se cancela y se revierte.
    """
    try:
        return await asyncio.wait_for(work(), timeout=timeout)
    except MarketplaceError:
        raise
    except asyncio.TimeoutError:
        logger.error("storage_timeout", operation=operation, timeout=timeout)
        raise StorageUnavailableError(
            "La base de datos no responde. Por favor intenta nuevamente."
        )
    except OperationalError as e:
        logger.error("storage_operational_error", operation=operation, error=str(e))
        raise StorageUnavailableError("Error de base de datos. Intenta más tarde.")
    except SQLAlchemyError as e:
        logger.error("storage_error", operation=operation, error=str(e))
        raise StorageUnavailableError("No se pudo completar la operación. Contacta a soporte.")
