"""
Shopify Store Migrator - FastAPI Application Entry Point

Expone los trabajos de migración (hojas de cálculo y tienda a tienda)
como endpoints HTTP. Los mismos trabajos están disponibles por consola en
store_migrator.cli.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from store_migrator.core.config import get_environment_info, get_settings
from store_migrator.core.exception_handlers import configure_exception_handlers
from store_migrator.core.logging_config import setup_logging
from store_migrator.core.routers import configure_all_routers

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Ciclo de vida de la aplicación: logging al iniciar.

    Las sesiones HTTP con Shopify se abren y cierran en cada trabajo, no
    hay recursos compartidos que liberar al apagar.
    """
    setup_logging()
    logger.info(f"🚀 Iniciando {settings.APP_NAME}... {get_environment_info()}")
    yield
    logger.info(f"🛑 Cerrando {settings.APP_NAME}...")


def create_application() -> FastAPI:
    """
    Factory para crear y configurar la aplicación FastAPI.

    Returns:
        FastAPI: Instancia configurada de la aplicación
    """
    logger.info("🏗️ Creando aplicación FastAPI...")

    app = FastAPI(
        title=settings.APP_NAME,
        description="Migración de pedidos, productos, collections y contenido entre tiendas Shopify",
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        docs_url="/docs" if (settings.DEBUG or settings.ENABLE_DOCS) else None,
        redoc_url="/redoc" if (settings.DEBUG or settings.ENABLE_DOCS) else None,
        openapi_url="/openapi.json" if (settings.DEBUG or settings.ENABLE_DOCS) else None,
    )

    # 1. Manejadores de excepciones
    configure_exception_handlers(app)

    # 2. Routers y endpoints
    configure_all_routers(app)

    logger.info("✅ Aplicación FastAPI creada y configurada")
    return app


app = create_application()


if __name__ == "__main__":
    """
    Ejecutar la aplicación directamente para desarrollo:

    uvicorn store_migrator.main:app --reload
    """
    logger.info("🚀 Iniciando aplicación desde main.py...")

    uvicorn_config = {
        "app": "store_migrator.main:app",
        "host": settings.HOST,
        "port": settings.PORT,
        "reload": settings.DEBUG,
        "log_level": settings.LOG_LEVEL.lower(),
        "access_log": True,
    }

    try:
        uvicorn.run(**uvicorn_config)
    except KeyboardInterrupt:
        logger.info("👋 Aplicación detenida por el usuario")
