"""
Servicio de Subida de Imágenes.

Colaborador externo opaco: recibe una imagen (data URL) y devuelve la URL
pública. Se usa para la vista previa del diseño y el comprobante de pago.
"""
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from backend.config.logging_config import get_logger


class UploadServiceError(Exception):
    """Error al subir una imagen."""
    pass


def is_inline_image(value: str) -> bool:
    """True si el valor es una imagen embebida (data URL) y no una URL alojada."""
    return value.startswith("data:image")


class UploadService(ABC):
    """
    Contrato del servicio de subida.

    `upload` recibe la imagen cruda y devuelve la URL; `resolve_image` deja
    pasar tal cual las URLs ya alojadas.
    """

    @abstractmethod
    async def upload(self, raw_image: str, folder: Optional[str] = None) -> str:
        """Sube la imagen y devuelve su URL pública."""

    async def resolve_image(self, value: Optional[str], folder: Optional[str] = None) -> Optional[str]:
        if not value:
            return None
        if is_inline_image(value):
            return await self.upload(value, folder=folder)
        return value


class HttpUploadService(UploadService):
    """Implementación sobre un endpoint HTTP de almacenamiento de imágenes."""

    def __init__(
        self,
        endpoint: Optional[str],
        api_key: Optional[str] = None,
        default_folder: str = "creake_designs",
        timeout: float = 30.0,
    ) -> None:
        self.endpoint = endpoint
        self.api_key = api_key
        self.default_folder = default_folder
        self.timeout = timeout
        self.logger = get_logger("upload_service")

    async def upload(self, raw_image: str, folder: Optional[str] = None) -> str:
        if not self.endpoint:
            raise UploadServiceError("El servicio de subida de imágenes no está configurado")

        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        body = {"file": raw_image, "folder": folder or self.default_folder}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.endpoint, json=body, headers=headers)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            self.logger.error("image_upload_failed", endpoint=self.endpoint, error=str(e))
            raise UploadServiceError("No se pudo subir la imagen. Revisa el tamaño o formato.") from e

        url = data.get("secure_url") or data.get("url")
        if not url:
            raise UploadServiceError("El servicio de subida no devolvió una URL")

        self.logger.info("image_uploaded", folder=body["folder"])
        return url
