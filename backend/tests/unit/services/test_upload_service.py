"""
Tests unitarios para el contrato de subida de imágenes.
"""
import pytest

from backend.services.upload_service import HttpUploadService, UploadService, UploadServiceError


@pytest.mark.unit
@pytest.mark.asyncio
class TestUploadService:
    """Tests del contrato y de la implementación HTTP."""

    async def test_contract_requires_upload(self):
        """El contrato no se puede instanciar sin implementar `upload`."""
        with pytest.raises(TypeError):
            UploadService()

        class Incomplete(UploadService):
            pass

        with pytest.raises(TypeError):
            Incomplete()

    async def test_hosted_url_passes_through(self):
        service = HttpUploadService(endpoint=None)

        assert await service.resolve_image(None) is None
        assert await service.resolve_image("https://cdn.example.com/a.png") == "https://cdn.example.com/a.png"

    async def test_inline_image_without_endpoint_fails(self):
        service = HttpUploadService(endpoint=None)

        with pytest.raises(UploadServiceError):
            await service.resolve_image("data:image/png;base64,AAAA")
