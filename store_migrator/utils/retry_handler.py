"""
Política de reintentos para llamadas a la API de Shopify.

Implementa backoff exponencial con soporte de Retry-After para
respuestas 429 (rate limiting) y errores 5xx del servidor.
"""

import logging
import random
from typing import Optional

from store_migrator.core.config import get_settings
from store_migrator.utils.error_handler import AppException, ShopifyAPIException

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_MIN = 500
RATE_LIMIT_STATUS = 429


class RetryPolicy:
    """
    Política de reintentos configurable.
    """

    def __init__(
        self,
        max_attempts: int = 4,
        base_delay: float = 0.8,
        max_delay: float = 30.0,
        exponential_base: float = 2.0,
        jitter: bool = False,
    ):
        """
        Inicializa la política de reintentos.

        Args:
            max_attempts: Número máximo de intentos (incluye el primero)
            base_delay: Delay base en segundos
            max_delay: Delay máximo en segundos
            exponential_base: Base para backoff exponencial
            jitter: Si agregar jitter aleatorio (±10%)
        """
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        """Crea la política a partir de la configuración."""
        settings = get_settings()
        return cls(
            max_attempts=settings.MAX_RETRIES,
            base_delay=settings.RETRY_BASE_DELAY,
            max_delay=settings.RETRY_MAX_DELAY,
        )

    @staticmethod
    def is_retryable_status(status: int) -> bool:
        """True para 429 y cualquier 5xx."""
        return status == RATE_LIMIT_STATUS or status >= RETRYABLE_STATUS_MIN

    def should_retry(self, exception: Exception, attempt: int) -> bool:
        """
        Determina si debe reintentar la operación.

        Args:
            exception: Excepción que ocurrió
            attempt: Número de intento actual (1-based)

        Returns:
            bool: True si debe reintentar
        """
        if attempt >= self.max_attempts:
            return False

        if isinstance(exception, ShopifyAPIException):
            if exception.rate_limited:
                return True
            code = exception.api_response_code
            return code is not None and self.is_retryable_status(code)

        if isinstance(exception, AppException):
            return exception.is_retryable

        return False

    def calculate_delay(self, attempt: int, retry_after: Optional[float] = None) -> float:
        """
        Calcula el delay antes del siguiente intento.

        base_delay * exponential_base^(attempt-1), más Retry-After si viene.

        Args:
            attempt: Número de intento que acaba de fallar (1-based)
            retry_after: Segundos indicados por el header Retry-After

        Returns:
            float: Segundos a esperar
        """
        delay = self.base_delay * (self.exponential_base ** (attempt - 1))

        if self.jitter:
            jitter_range = delay * 0.1
            delay += random.uniform(-jitter_range, jitter_range)

        if retry_after:
            delay += retry_after

        return max(min(delay, self.max_delay), 0)


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """
    Interpreta el header Retry-After (segundos).

    Args:
        value: Valor crudo del header

    Returns:
        float o None si no es numérico
    """
    if value is None:
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        logger.debug(f"Ignoring non-numeric Retry-After header: {value}")
        return None
    return seconds if seconds >= 0 else None
