"""
Punto de Entrada de la Aplicación (Main).
Arranca el servidor web (FastAPI) con la API REST del marketplace de pasteles.
"""
import asyncio
from contextlib import asynccontextmanager
from typing import Optional

# Cargar dotenv primero para leer el .env
import dotenv

dotenv.load_dotenv(dotenv.find_dotenv())

import aioinject
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

# Rate Limiting
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from backend.api.endPoints.router import api_router
from backend.config import BusinessSettings, get_business_settings
from backend.config.rate_limit_config import RateLimitConfig, limiter
from backend.container import create_business_container
from backend.services.errors import MarketplaceError
from backend.services.side_effect_dispatcher import SideEffectDispatcher


def create_app(
    container: Optional[aioinject.Container] = None,
    settings: Optional[BusinessSettings] = None,
) -> FastAPI:
    """Crea y configura la aplicación FastAPI."""
    settings = settings or get_business_settings()

    # 1. Iniciar el Contenedor de Servicios
    container = container or create_business_container()
    logger.info("Contenedor de servicios iniciado correctamente.")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        worker: Optional[asyncio.Task] = None
        dispatcher: Optional[SideEffectDispatcher] = None

        if settings.outbox_worker_enabled:
            async with container.context() as ctx:
                dispatcher = await ctx.resolve(SideEffectDispatcher)
            worker = asyncio.create_task(
                dispatcher.run_forever(settings.outbox_poll_interval_seconds)
            )
            logger.info(
                f"✅ Worker del outbox iniciado (cada {settings.outbox_poll_interval_seconds}s)"
            )

        yield

        if worker is not None:
            dispatcher.stop()
            await worker
            logger.info("Worker del outbox detenido")

    # 2. Configuración Básica
    app = FastAPI(
        title="Cake Marketplace API",
        description="API REST para solicitudes de pasteles personalizados, cotizaciones y pedidos.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.container = container

    # 3. Configurar CORS (IMPORTANTE para el frontend)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 4. Configurar Rate Limiting
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

    # Handler personalizado para rate limit exceeded
    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return JSONResponse(
            status_code=429,
            content={
                "success": False,
                "error_code": "RATE_LIMITED",
                "message": "Has excedido el límite de requests. Por favor espera un momento.",
            },
            headers={"Retry-After": "60"},
        )

    # Errores de dominio -> {success: false, error_code, message}
    @app.exception_handler(MarketplaceError)
    async def marketplace_error_handler(request: Request, exc: MarketplaceError):
        if exc.status_code >= 500:
            logger.error(f"{exc.error_code} en {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error_code": exc.error_code, "message": exc.message},
        )

    # 5. Routers
    app.include_router(api_router)

    @app.get("/")
    @limiter.limit(RateLimitConfig.ROOT_ENDPOINT)
    async def root(request: Request):
        """Endpoint de bienvenida."""
        return {
            "mensaje": "Bienvenido al Backend del Marketplace de Pasteles",
            "api": "/api/v1",
            "docs": "/docs",
        }

    @app.get("/health")
    @limiter.limit(RateLimitConfig.HEALTH_CHECK)
    async def health_check(request: Request):
        """Endpoint de health check."""
        return {
            "status": "healthy",
            "version": "1.0.0",
            "outbox_worker": settings.outbox_worker_enabled,
        }

    logger.info("✅ Rate limiting configurado")
    logger.info(f"✅ CORS configurado para {', '.join(settings.cors_origins)}")
    return app


# Bloque de ejecución principal
if __name__ == "__main__":
    logger.info("Arrancando servidor en http://0.0.0.0:8000")

    uvicorn.run(
        "backend.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=True,
        reload_dirs=["backend"],
    )
