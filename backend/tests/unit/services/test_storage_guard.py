"""
Tests unitarios para la traducción de errores de almacenamiento.
"""
import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from backend.config.logging_config import get_logger
from backend.services.errors import (
    ConflictError,
    StorageUnavailableError,
    run_storage_operation,
)

logger = get_logger("test_storage_guard")


@pytest.mark.unit
@pytest.mark.asyncio
class TestRunStorageOperation:
    """Tests de run_storage_operation."""

    async def test_returns_result(self):
        async def work():
            return 42

        assert await run_storage_operation(work, operation="ok", timeout=1, logger=logger) == 42

    async def test_timeout_is_storage_unavailable(self):
        async def work():
            await asyncio.sleep(5)

        with pytest.raises(StorageUnavailableError):
            await run_storage_operation(work, operation="slow", timeout=0.01, logger=logger)

    async def test_driver_error_is_storage_unavailable(self):
        async def work():
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))

        with pytest.raises(StorageUnavailableError) as exc_info:
            await run_storage_operation(work, operation="broken", timeout=1, logger=logger)

        assert exc_info.value.status_code == 503

    async def test_domain_errors_pass_through(self):
        async def work():
            raise ConflictError("Otro vendedor ya tomó esta solicitud")

        with pytest.raises(ConflictError):
            await run_storage_operation(work, operation="race", timeout=1, logger=logger)
