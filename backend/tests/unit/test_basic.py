"""
Test básico para verificar que pytest está configurado correctamente.
"""
import pytest


class TestBasic:
    """Tests básicos de verificación."""

    def test_imports(self):
        """Test que todos los imports principales funcionan."""
        from backend.database.models import DesignSubmission, Order, OutboxEvent
        from backend.domain.design_schemas import DesignConfig, DesignSubmitRequest
        from backend.services import DesignService, OrderService, PricingEngine

        assert DesignSubmission is not None
        assert Order is not None
        assert OutboxEvent is not None
        assert DesignConfig is not None
        assert DesignSubmitRequest is not None
        assert DesignService is not None
        assert OrderService is not None
        assert PricingEngine is not None

    def test_design_status_constants(self):
        """Test de constantes de estado."""
        from backend.database.models import DesignStatus

        assert DesignStatus.PENDING == "pending"
        assert DesignStatus.QUOTED == "quoted"
        assert DesignStatus.ORDERED == "ordered"
        assert DesignStatus.ORDERED in DesignStatus.TERMINAL
        assert DesignStatus.RELEASED not in DesignStatus.ALL

    def test_payment_constants(self):
        from backend.database.models import PaymentMethod, PaymentStatus

        assert PaymentMethod.ALL == ("cod", "electronic")
        assert PaymentStatus.PENDING_VERIFICATION == "pending_verification"

    @pytest.mark.asyncio
    async def test_async_basic(self):
        """Test básico de funciones async."""
        async def async_function():
            return "Hello Async"

        result = await async_function()
        assert result == "Hello Async"

    def test_structlog_uses_stdlib_under_pytest(self):
        """La configuración de logging detecta pytest sin ayuda del conftest."""
        import structlog

        from backend.config.logging_config import running_under_pytest

        config = structlog.get_config()
        assert running_under_pytest()
        assert isinstance(config["logger_factory"], structlog.stdlib.LoggerFactory)
        assert config["wrapper_class"] is structlog.stdlib.BoundLogger
        assert config["cache_logger_on_first_use"] is False
