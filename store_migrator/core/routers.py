"""
Configuración centralizada de routers para la aplicación FastAPI.

Registra los endpoints raíz, el health check y los routers de /api/v1.
"""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from store_migrator.api.v1.endpoints.migrations import router as migrations_router
from store_migrator.core.config import get_settings, validate_required_settings
from store_migrator.utils.error_handler import ConfigurationException

settings = get_settings()
logger = logging.getLogger(__name__)


def create_root_endpoints(app: FastAPI) -> None:
    """
    Crea endpoints raíz de la aplicación.

    Args:
        app: Instancia de FastAPI
    """

    @app.get("/", tags=["Root"], summary="API Info")
    async def root():
        return {
            "message": settings.APP_NAME,
            "description": "Migración de datos entre tiendas Shopify",
            "version": settings.APP_VERSION,
            "status": "running",
            "documentation": "/docs" if (settings.DEBUG or settings.ENABLE_DOCS) else "disabled",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "endpoints": {
                "health": "/health",
                "migrations": "/api/v1/migrations",
            },
        }


def create_health_endpoints(app: FastAPI) -> None:
    """
    Crea el endpoint de health check.

    Solo verifica que las credenciales de ambas tiendas estén configuradas;
    no hace llamadas a Shopify.
    """

    @app.get("/health", tags=["Health"], summary="Health Check")
    async def health_check():
        try:
            validate_required_settings("both")
            configured, missing = True, None
        except ConfigurationException as e:
            logger.warning(f"⚠️ Health check: {e.message}")
            configured, missing = False, e.setting

        return JSONResponse(
            status_code=200 if configured else 503,
            content={
                "status": "healthy" if configured else "unhealthy",
                "version": settings.APP_VERSION,
                "environment": settings.ENVIRONMENT,
                "api_version": settings.SHOPIFY_API_VERSION,
                "missing_settings": missing,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )


def configure_api_v1_routers(app: FastAPI) -> None:
    app.include_router(migrations_router, prefix="/api/v1")
    logger.info("✅ Router de migraciones registrado en /api/v1/migrations")


def configure_all_routers(app: FastAPI) -> None:
    """
    Configura todos los routers de la aplicación.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando routers...")

    create_root_endpoints(app)
    create_health_endpoints(app)
    configure_api_v1_routers(app)

    logger.info("✅ Routers configurados correctamente")
