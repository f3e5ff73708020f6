"""
Logging estructurado con structlog para los servicios del marketplace.

Cada evento lleva su contexto como campos (design_id, seller_id, order_id...)
en lugar de interpolarlo en el mensaje.

Salida según el entorno:
- production / staging: JSON compacto, una línea por evento
- development: consola con colores
- pytest: consola sin colores sobre el logging estándar, para que
  caplog y el nivel de `logging` apliquen
"""
import logging
import os
import sys
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor

APP_NAME = "cake-marketplace"
APP_VERSION = "1.0"
JSON_ENVIRONMENTS = ("production", "staging")


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Agrega app, entorno y versión a cada evento."""
    event_dict["app"] = APP_NAME
    event_dict["env"] = os.getenv("ENVIRONMENT", "development")
    event_dict["version"] = APP_VERSION
    return event_dict


def running_under_pytest() -> bool:
    return os.getenv("PYTEST_CURRENT_TEST") is not None or "pytest" in sys.modules


def _renderer(json_logs: bool, testing: bool) -> Processor:
    if json_logs:
        return structlog.processors.JSONRenderer()
    if testing:
        return structlog.dev.ConsoleRenderer(colors=False)
    return structlog.dev.ConsoleRenderer(colors=True, exception_formatter=structlog.dev.plain_traceback)


def configure_structlog(json_logs: Optional[bool] = None) -> None:
    """
    Configura structlog para la aplicación.

    Args:
        json_logs: Forzar (o no) salida JSON. Con None se decide por
                   ENVIRONMENT; bajo pytest nunca es JSON.
    """
    testing = running_under_pytest()
    if json_logs is None:
        json_logs = os.getenv("ENVIRONMENT", "development") in JSON_ENVIRONMENTS and not testing

    processors: list[Processor] = [
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
        add_app_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if testing:
        # El nivel lo decide el logging estándar (LOG_LEVEL)
        logging.basicConfig(level=os.getenv("LOG_LEVEL", "ERROR").upper())
        processors.insert(0, structlog.stdlib.filter_by_level)
        logger_factory = structlog.stdlib.LoggerFactory()
        wrapper_class = structlog.stdlib.BoundLogger
    else:
        logger_factory = structlog.PrintLoggerFactory(file=sys.stdout)
        wrapper_class = structlog.BoundLogger

    structlog.configure(
        processors=processors + [_renderer(json_logs, testing)],
        wrapper_class=wrapper_class,
        context_class=dict,
        logger_factory=logger_factory,
        cache_logger_on_first_use=not testing,
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    Logger estructurado, opcionalmente con nombre de módulo.

    Ejemplo:
        >>> log = get_logger("design_service")
        >>> log.info("design_claimed", design_id="6f1c...", seller_id="a9b2...")
    """
    if name:
        return structlog.get_logger(name)
    return structlog.get_logger()


configure_structlog()
