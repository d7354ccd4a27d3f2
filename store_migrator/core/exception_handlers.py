"""
Manejadores de excepciones para la aplicación FastAPI.

Convierte las excepciones de la aplicación en respuestas JSON con un
formato común: error, error_type, error_code, message, details, path y
timestamp.
"""

import logging
import traceback
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from store_migrator.core.config import get_settings
from store_migrator.utils.error_handler import (
    AppException,
    ShopifyAPIException,
    SheetFormatException,
    ValidationException,
)

settings = get_settings()
logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Manejador para excepciones de la aplicación.

    Args:
        request: Request de FastAPI
        exc: Excepción de la app

    Returns:
        JSONResponse: Respuesta JSON con error formateado
    """
    logger.error(
        f"App Exception: {exc.message} - "
        f"Code: {exc.error_code.value} - "
        f"URL: {request.url} - "
        f"Details: {exc.details}"
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "error_type": "application_error",
            "error_code": exc.error_code.value,
            "message": exc.message,
            "details": exc.details if settings.DEBUG else None,
            "path": str(request.url.path),
            "timestamp": _timestamp(),
        },
    )


async def validation_exception_handler(request: Request, exc: ValidationException) -> JSONResponse:
    logger.warning(
        f"Validation Exception: {exc.message} - "
        f"Field: {exc.field} - "
        f"Value: {exc.invalid_value} - "
        f"URL: {request.url}"
    )

    return JSONResponse(
        status_code=422,
        content={
            "error": True,
            "error_type": "validation_error",
            "error_code": exc.error_code.value,
            "message": exc.message,
            "details": {"field": exc.field, "expected_format": exc.expected_format},
            "path": str(request.url.path),
            "timestamp": _timestamp(),
        },
    )


async def sheet_format_exception_handler(request: Request, exc: SheetFormatException) -> JSONResponse:
    """Hoja ilegible o sin las columnas esperadas (400)."""
    logger.warning(f"Sheet Format Exception: {exc.message} - Sheet: {exc.sheet} - Column: {exc.column}")

    return JSONResponse(
        status_code=400,
        content={
            "error": True,
            "error_type": "sheet_format_error",
            "error_code": exc.error_code.value,
            "message": exc.message,
            "details": {"sheet": exc.sheet, "column": exc.column, "row": exc.row},
            "path": str(request.url.path),
            "timestamp": _timestamp(),
        },
    )


async def shopify_api_exception_handler(request: Request, exc: ShopifyAPIException) -> JSONResponse:
    """
    Manejador específico para errores de la API de Shopify.

    Agrega Retry-After cuando la tienda respondió con rate limit.
    """
    logger.error(
        f"Shopify API Exception: {exc.message} - "
        f"API Code: {exc.api_response_code} - "
        f"Rate Limited: {exc.rate_limited} - "
        f"URL: {request.url}"
    )

    headers = {}
    if exc.rate_limited and exc.retry_after:
        headers["Retry-After"] = str(exc.retry_after)

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "error_type": "shopify_api_error",
            "error_code": exc.error_code.value,
            "message": exc.message,
            "details": {
                "shopify_response_code": exc.api_response_code,
                "endpoint": exc.endpoint,
                "rate_limited": exc.rate_limited,
                "retry_after": exc.retry_after,
            },
            "path": str(request.url.path),
            "timestamp": _timestamp(),
        },
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    logger.warning(f"HTTP Exception: {exc.status_code} - {exc.detail} - URL: {request.url}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "error_type": "http_error",
            "error_code": None,
            "message": exc.detail,
            "details": None,
            "path": str(request.url.path),
            "timestamp": _timestamp(),
        },
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Manejador global para excepciones no capturadas.

    Sin DEBUG la respuesta no expone el detalle interno.
    """
    logger.error(
        f"Unhandled Exception: {str(exc)} - "
        f"Type: {type(exc).__name__} - "
        f"URL: {request.url} - "
        f"Traceback: {traceback.format_exc()}"
    )

    error_message = "Internal server error occurred"
    if settings.DEBUG:
        error_message = f"{type(exc).__name__}: {str(exc)}"

    return JSONResponse(
        status_code=500,
        content={
            "error": True,
            "error_type": "internal_server_error",
            "error_code": None,
            "message": error_message,
            "details": None,
            "path": str(request.url.path),
            "timestamp": _timestamp(),
        },
    )


def configure_exception_handlers(app: FastAPI) -> None:
    """
    Configura los manejadores de excepciones de la aplicación.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando manejadores de excepciones...")

    # Manejadores específicos (orden de especificidad)
    app.add_exception_handler(ValidationException, validation_exception_handler)
    app.add_exception_handler(SheetFormatException, sheet_format_exception_handler)
    app.add_exception_handler(ShopifyAPIException, shopify_api_exception_handler)
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)

    # Manejador global (debe ser el último)
    app.add_exception_handler(Exception, global_exception_handler)

    logger.info("✅ Manejadores de excepciones configurados correctamente")
