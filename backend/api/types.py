"""
Tipos comunes de la API REST.
"""
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """
    Envoltorio estándar de respuestas.

    Éxito: `{success: true, data, message}`.
    Error: `{success: false, error_code, message}` (lo arma el handler de main).
    """
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None
    error_code: Optional[str] = None
