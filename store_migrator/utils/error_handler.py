"""
Sistema de manejo de errores personalizado.

Este módulo define todas las excepciones personalizadas de las migraciones
y proporciona utilidades para manejo consistente de errores.
"""

import logging
import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class ErrorCode(Enum):
    """
    Códigos de error estandarizados para la aplicación.
    """

    # Errores generales
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Errores de conexión / API
    SHOPIFY_CONNECTION_FAILED = "SHOPIFY_CONNECTION_FAILED"
    SHOPIFY_API_ERROR = "SHOPIFY_API_ERROR"
    SHOPIFY_USER_ERROR = "SHOPIFY_USER_ERROR"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Errores de migración
    MIGRATION_FAILED = "MIGRATION_FAILED"
    RECORD_SKIPPED = "RECORD_SKIPPED"
    MAPPING_ERROR = "MAPPING_ERROR"

    # Errores de datos
    SHEET_FORMAT_ERROR = "SHEET_FORMAT_ERROR"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    UNSUPPORTED_VALUE = "UNSUPPORTED_VALUE"


class ErrorSeverity(Enum):
    """
    Niveles de severidad para errores.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AppException(Exception):
    """
    Excepción base para todas las excepciones personalizadas de la aplicación.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        is_retryable: bool = False,
        is_critical: bool = False,
    ):
        """
        Inicializa la excepción.

        Args:
            message: Mensaje de error
            error_code: Código de error estandarizado
            details: Información adicional del error
            status_code: Código HTTP asociado
            severity: Severidad del error
            is_retryable: Si la operación puede reintentarse
            is_critical: Si debe abortar la migración
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        self.severity = severity
        self.is_retryable = is_retryable
        self.is_critical = is_critical
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convierte la excepción a diccionario.

        Returns:
            Dict: Representación de la excepción
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code.value,
            "details": self.details,
            "status_code": self.status_code,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
            "is_critical": self.is_critical,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        """String representation del error."""
        return f"{self.error_code.value}: {self.message}"


class ValidationException(AppException):
    """
    Excepción para errores de validación de datos de entrada.
    """

    def __init__(
        self,
        message: str,
        field: str,
        invalid_value: Any = None,
        expected_format: Optional[str] = None,
        **kwargs,
    ):
        """
        Inicializa la excepción de validación.

        Args:
            message: Mensaje de error
            field: Campo que falló la validación
            invalid_value: Valor que causó el error
            expected_format: Formato esperado
            **kwargs: Argumentos adicionales para AppException
        """
        super().__init__(
            message=message,
            error_code=ErrorCode.VALIDATION_ERROR,
            status_code=422,
            severity=ErrorSeverity.LOW,
            **kwargs,
        )
        self.field = field
        self.invalid_value = invalid_value
        self.expected_format = expected_format

        self.details.update(
            {
                "field": field,
                "invalid_value": str(invalid_value) if invalid_value is not None else None,
                "expected_format": expected_format,
            }
        )


class ConfigurationException(AppException):
    """
    Excepción para configuración faltante o inválida.
    """

    def __init__(self, message: str, setting: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.CONFIGURATION_ERROR,
            status_code=500,
            severity=ErrorSeverity.CRITICAL,
            is_critical=True,
            **kwargs,
        )
        self.setting = setting
        self.details.update({"setting": setting})


class SheetFormatException(AppException):
    """
    Excepción para hojas de cálculo ilegibles o con columnas inesperadas.
    """

    def __init__(
        self,
        message: str,
        sheet: Optional[str] = None,
        column: Optional[str] = None,
        row: Optional[int] = None,
        **kwargs,
    ):
        """
        Inicializa la excepción de formato de hoja.

        Args:
            message: Mensaje de error
            sheet: Nombre de la hoja
            column: Columna involucrada
            row: Número de fila (1-based, sin encabezado)
            **kwargs: Argumentos adicionales para AppException
        """
        super().__init__(
            message=message,
            error_code=ErrorCode.SHEET_FORMAT_ERROR,
            status_code=400,
            severity=ErrorSeverity.MEDIUM,
            **kwargs,
        )
        self.sheet = sheet
        self.column = column
        self.row = row
        self.details.update({"sheet": sheet, "column": column, "row": row})


class ShopifyAPIException(AppException):
    """
    Excepción para errores de la API de Shopify.
    """

    def __init__(
        self,
        message: str,
        api_response_code: Optional[int] = None,
        endpoint: Optional[str] = None,
        rate_limited: bool = False,
        retry_after: Optional[float] = None,
        user_errors: Optional[List[Dict[str, Any]]] = None,
        **kwargs,
    ):
        """
        Inicializa la excepción de Shopify API.

        Args:
            message: Mensaje de error
            api_response_code: Código de respuesta de Shopify
            endpoint: Endpoint u operación que falló
            rate_limited: Si es por rate limiting
            retry_after: Segundos para reintentar
            user_errors: userErrors devueltos por la mutación
            **kwargs: Argumentos adicionales para AppException
        """
        error_code = ErrorCode.SHOPIFY_API_ERROR
        severity = ErrorSeverity.MEDIUM
        is_retryable = True

        if rate_limited:
            error_code = ErrorCode.RATE_LIMIT_EXCEEDED
            severity = ErrorSeverity.LOW
        elif user_errors:
            error_code = ErrorCode.SHOPIFY_USER_ERROR
            is_retryable = False
        elif api_response_code and api_response_code >= 500:
            severity = ErrorSeverity.HIGH

        super().__init__(
            message=message,
            error_code=error_code,
            status_code=api_response_code or 503,
            severity=severity,
            is_retryable=is_retryable,
            **kwargs,
        )

        self.api_response_code = api_response_code
        self.endpoint = endpoint
        self.rate_limited = rate_limited
        self.retry_after = retry_after
        self.user_errors = user_errors or []

        self.details.update(
            {
                "api_response_code": api_response_code,
                "endpoint": endpoint,
                "rate_limited": rate_limited,
                "retry_after": retry_after,
                "user_errors": self.user_errors,
            }
        )


class RateLimitException(ShopifyAPIException):
    """
    Excepción para rate limiting agotado tras todos los reintentos.
    """

    def __init__(self, message: str, retry_after: Optional[float], attempts: int, **kwargs):
        super().__init__(
            message=message,
            api_response_code=429,
            rate_limited=True,
            retry_after=retry_after,
            **kwargs,
        )
        self.attempts = attempts
        self.details.update({"attempts": attempts})


class MigrationException(AppException):
    """
    Excepción para errores de una migración completa.
    """

    def __init__(
        self,
        message: str,
        job: str,
        operation: str,
        failed_records: Optional[List[Dict]] = None,
        stats: Optional[Dict[str, Any]] = None,
        **kwargs,
    ):
        """
        Inicializa la excepción de migración.

        Args:
            message: Mensaje de error
            job: Migración involucrada (orders, products, ...)
            operation: Operación que falló
            failed_records: Registros que fallaron
            stats: Estadísticas de la migración
            **kwargs: Argumentos adicionales para AppException
        """
        super().__init__(
            message=message,
            error_code=ErrorCode.MIGRATION_FAILED,
            status_code=500,
            severity=ErrorSeverity.HIGH,
            **kwargs,
        )

        self.job = job
        self.operation = operation
        self.failed_records = failed_records or []
        self.stats = stats or {}

        self.details.update(
            {
                "job": job,
                "operation": operation,
                "failed_count": len(self.failed_records),
                "stats": stats,
            }
        )


# === FUNCIONES DE UTILIDAD ===


def format_user_errors(user_errors: Optional[List[Dict[str, Any]]]) -> str:
    """
    Formatea userErrors de Shopify como "campo.ruta: mensaje".

    Args:
        user_errors: Lista de userErrors

    Returns:
        str: Errores unidos por ", "
    """
    messages = []
    for error in user_errors or []:
        field = error.get("field") or []
        if isinstance(field, list):
            field = ".".join(str(part) for part in field)
        message = error.get("message", "Unknown error")
        messages.append(f"{field}: {message}" if field else message)
    return ", ".join(messages)


def convert_to_app_exception(exception: Exception, context: Optional[Dict[str, Any]] = None) -> AppException:
    """
    Convierte una excepción estándar a AppException.

    Args:
        exception: Excepción a convertir
        context: Contexto adicional

    Returns:
        AppException: Excepción convertida
    """
    if isinstance(exception, AppException):
        if context:
            exception.details.update(context)
        return exception

    context = context or {}
    exception_type = type(exception).__name__
    message = str(exception)
    lowered = message.lower()

    if "rate limit" in lowered or "throttled" in lowered:
        return ShopifyAPIException(message=message, rate_limited=True, details=context)

    if "connection" in lowered or "timeout" in lowered:
        return ShopifyAPIException(message=f"Shopify connection error: {message}", details=context)

    if "invalid" in lowered or "missing" in lowered:
        return ValidationException(
            message=message,
            field=context.get("field", "unknown"),
            invalid_value=context.get("value"),
            details=context,
        )

    return AppException(
        message=f"{exception_type}: {message}",
        details={"original_exception": exception_type, **context},
    )


def log_error(
    exception: Exception,
    context: Optional[Dict[str, Any]] = None,
    level: int = logging.ERROR,
) -> None:
    """
    Loggea un error de manera consistente.

    Args:
        exception: Excepción a loggear
        context: Contexto adicional
        level: Nivel de logging
    """
    context = context or {}

    log_data = {
        "exception_type": type(exception).__name__,
        "exception_message": str(exception),
        "traceback": traceback.format_exc(),
        **context,
    }

    if isinstance(exception, AppException):
        message = f"{exception.error_code.value}: {exception.message}"
        log_data.update(
            {
                "error_code": exception.error_code.value,
                "severity": exception.severity.value,
                "is_retryable": exception.is_retryable,
            }
        )
    else:
        message = f"Unhandled exception: {type(exception).__name__}: {str(exception)}"

    logger.log(level, message, extra={"error_data": log_data})


class ErrorAggregator:
    """
    Agregador de errores para procesos batch.
    """

    def __init__(self):
        """Inicializa el agregador."""
        self.errors: List[AppException] = []
        self.warnings: List[AppException] = []
        self.total_processed = 0
        self.start_time = datetime.now(timezone.utc)

    def add_error(self, exception: Union[AppException, Exception], context: Optional[Dict] = None):
        """
        Agrega un error al agregador.

        Args:
            exception: Excepción a agregar
            context: Contexto adicional (registro, fila, handle...)
        """
        exception = convert_to_app_exception(exception, context)

        if exception.severity == ErrorSeverity.LOW:
            self.warnings.append(exception)
        else:
            self.errors.append(exception)

        if exception.is_critical:
            log_error(exception, context, logging.CRITICAL)

    def increment_processed(self):
        """Incrementa contador de procesados."""
        self.total_processed += 1

    def has_errors(self) -> bool:
        """Verifica si hay errores."""
        return len(self.errors) > 0

    def has_warnings(self) -> bool:
        """Verifica si hay warnings."""
        return len(self.warnings) > 0

    def get_summary(self) -> Dict[str, Any]:
        """
        Obtiene resumen de errores.

        Returns:
            Dict: Resumen de errores
        """
        end_time = datetime.now(timezone.utc)
        duration = (end_time - self.start_time).total_seconds()

        return {
            "total_processed": self.total_processed,
            "error_count": len(self.errors),
            "warning_count": len(self.warnings),
            "success_count": max(self.total_processed - len(self.errors) - len(self.warnings), 0),
            "duration_seconds": duration,
            "start_time": self.start_time.isoformat(),
            "end_time": end_time.isoformat(),
            "errors": [error.to_dict() for error in self.errors],
            "warnings": [warning.to_dict() for warning in self.warnings],
        }

    def raise_if_errors(self, job: str = "batch_process"):
        """
        Lanza excepción si hay errores críticos.

        Raises:
            MigrationException: Si hay errores que impiden continuar
        """
        critical_errors = [e for e in self.errors if e.is_critical]
        if critical_errors:
            raise MigrationException(
                message=f"Process failed with {len(critical_errors)} critical errors",
                job=job,
                operation="aggregate",
                stats=self.get_summary(),
            )
