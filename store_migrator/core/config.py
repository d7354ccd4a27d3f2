"""
Configuración centralizada de la aplicación.

Este módulo maneja todas las variables de entorno y configuraciones
de las migraciones usando Pydantic Settings para validación automática.
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from store_migrator.utils.error_handler import ConfigurationException


class Settings(BaseSettings):
    """
    Configuración de la aplicación usando Pydantic Settings.

    Todas las configuraciones se cargan desde variables de entorno
    con valores por defecto apropiados para desarrollo.
    """

    # === CONFIGURACIÓN BÁSICA DE LA APP ===
    APP_NAME: str = "Shopify Store Migrator"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = Field(default="development", env="ENVIRONMENT")
    DEBUG: bool = Field(default=False, env="DEBUG")

    # === CONFIGURACIÓN DEL SERVIDOR ===
    HOST: str = Field(default="0.0.0.0", env="HOST")
    PORT: int = Field(default=8080, env="PORT")
    LOG_LEVEL: str = Field(default="INFO", env="LOG_LEVEL")
    ENABLE_DOCS: bool = Field(default=True, env="ENABLE_DOCS")

    # === CONFIGURACIÓN DE TIENDAS SHOPIFY ===
    SOURCE_SHOP: Optional[str] = Field(default=None, env="SOURCE_SHOP")
    SOURCE_ACCESS_TOKEN: Optional[str] = Field(default=None, env="SOURCE_ACCESS_TOKEN")
    TARGET_SHOP: Optional[str] = Field(default=None, env="TARGET_SHOP")
    TARGET_ACCESS_TOKEN: Optional[str] = Field(default=None, env="TARGET_ACCESS_TOKEN")
    SHOPIFY_API_VERSION: str = Field(default="2025-10", env="SHOPIFY_API_VERSION")

    # === CONFIGURACIÓN HTTP Y RETRIES ===
    REQUEST_TIMEOUT: int = Field(default=30, env="REQUEST_TIMEOUT")
    CONNECT_TIMEOUT: int = Field(default=10, env="CONNECT_TIMEOUT")
    MAX_RETRIES: int = Field(default=4, env="MAX_RETRIES")
    RETRY_BASE_DELAY: float = Field(default=0.8, env="RETRY_BASE_DELAY")
    RETRY_MAX_DELAY: float = Field(default=30.0, env="RETRY_MAX_DELAY")
    MIN_REQUEST_INTERVAL: float = Field(default=0.5, env="MIN_REQUEST_INTERVAL")

    # === PAUSAS ENTRE LLAMADAS (segundos) ===
    ORDER_DELAY: float = Field(default=0.5, env="ORDER_DELAY")
    PRODUCT_DELAY: float = Field(default=5.0, env="PRODUCT_DELAY")
    COLLECTION_DELAY: float = Field(default=0.65, env="COLLECTION_DELAY")
    PUBLISH_DELAY: float = Field(default=0.5, env="PUBLISH_DELAY")
    ROW_DELAY: float = Field(default=0.65, env="ROW_DELAY")
    COMMENT_DELAY: float = Field(default=0.25, env="COMMENT_DELAY")
    COMPANY_DELAY: float = Field(default=0.5, env="COMPANY_DELAY")
    DISCOUNT_DELAY: float = Field(default=0.45, env="DISCOUNT_DELAY")
    DEFINITION_DELAY: float = Field(default=0.25, env="DEFINITION_DELAY")
    LOOKUP_DELAY: float = Field(default=0.08, env="LOOKUP_DELAY")
    DELETE_DELAY: float = Field(default=0.12, env="DELETE_DELAY")
    DELETE_ERROR_DELAY: float = Field(default=0.5, env="DELETE_ERROR_DELAY")
    ORDER_DELETE_DELAY: float = Field(default=0.3, env="ORDER_DELETE_DELAY")

    # === PAGINACIÓN ===
    ORDER_PAGE_SIZE: int = Field(default=10, env="ORDER_PAGE_SIZE")
    PRODUCT_PAGE_SIZE: int = Field(default=10, env="PRODUCT_PAGE_SIZE")
    ORDER_DELETE_PAGE_SIZE: int = Field(default=50, env="ORDER_DELETE_PAGE_SIZE")

    # === HOJAS DE CÁLCULO ===
    BLOG_SHEET_NAME: str = Field(default="Blog Posts", env="BLOG_SHEET_NAME")
    PAGE_SHEET_NAME: str = Field(default="Pages", env="PAGE_SHEET_NAME")
    CUSTOMER_SHEET_NAMES: str = Field(default="Customers,Customer", env="CUSTOMER_SHEET_NAMES")
    COMPANY_SHEET_NAME: Optional[str] = Field(default=None, env="COMPANY_SHEET_NAME")

    # === REPORTES Y LOGS ===
    REPORTS_DIR: str = Field(default="reports", env="REPORTS_DIR")
    LOGS_DIR: str = Field(default="logs", env="LOGS_DIR")
    LOG_FILE_PATH: Optional[str] = Field(default="logs/migration.log", env="LOG_FILE_PATH")
    LOG_MAX_SIZE_MB: int = Field(default=10, env="LOG_MAX_SIZE_MB")
    LOG_BACKUP_COUNT: int = Field(default=5, env="LOG_BACKUP_COUNT")

    # === LIMPIEZA DE METAFIELD DEFINITIONS ===
    METAFIELD_OWNER_TYPE: str = Field(default="PRODUCTVARIANT", env="METAFIELD_OWNER_TYPE")
    METAFIELD_DELETE_VALUES: bool = Field(default=True, env="METAFIELD_DELETE_VALUES")
    METAFIELD_NAMESPACE: Optional[str] = Field(default=None, env="METAFIELD_NAMESPACE")
    METAFIELD_KEY_PREFIX: Optional[str] = Field(default=None, env="METAFIELD_KEY_PREFIX")
    METAFIELD_DELETE_LIMIT: Optional[int] = Field(default=None, env="METAFIELD_DELETE_LIMIT")

    # === SUBIDA DE ARCHIVOS ===
    FILE_UPLOAD_CONCURRENCY: int = Field(default=2, env="FILE_UPLOAD_CONCURRENCY")
    FILE_POLL_INITIAL_DELAY: float = Field(default=2.0, env="FILE_POLL_INITIAL_DELAY")
    FILE_POLL_BACKOFF: float = Field(default=1.3, env="FILE_POLL_BACKOFF")
    FILE_POLL_MAX_DELAY: float = Field(default=15.0, env="FILE_POLL_MAX_DELAY")
    FILE_POLL_TIMEOUT: float = Field(default=600.0, env="FILE_POLL_TIMEOUT")

    # === FORMATO DE HOJA MAGENTO ===
    MAGENTO_IMAGE_BASE_URL: str = Field(default="", env="MAGENTO_IMAGE_BASE_URL")
    MAGENTO_METAFIELD_NAMESPACE: str = Field(default="magento", env="MAGENTO_METAFIELD_NAMESPACE")
    MAGENTO_SPECS_FILE: str = Field(default="magento_metafield_specs.json", env="MAGENTO_SPECS_FILE")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "allow",
    }

    @field_validator("SOURCE_SHOP", "TARGET_SHOP")
    @classmethod
    def normalize_shop_domain(cls, v):
        """Normaliza el dominio de la tienda (sin esquema ni slash final)."""
        if v is None:
            return v
        v = v.strip().replace("https://", "").replace("http://", "").rstrip("/")
        return v or None

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Valida que el nivel de log sea válido."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL debe ser uno de: {valid_levels}")
        return v.upper()

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v):
        """Valida que el entorno sea válido."""
        valid_envs = ["development", "staging", "production", "testing"]
        if v.lower() not in valid_envs:
            raise ValueError(f"ENVIRONMENT debe ser uno de: {valid_envs}")
        return v.lower()

    @field_validator("PORT")
    @classmethod
    def validate_port(cls, v):
        """Valida que el puerto esté en rango válido."""
        if not 1 <= v <= 65535:
            raise ValueError("PORT debe estar entre 1 y 65535")
        return v

    @field_validator("FILE_UPLOAD_CONCURRENCY", "MAX_RETRIES")
    @classmethod
    def validate_positive(cls, v):
        """Valida que el valor sea al menos 1."""
        if v < 1:
            raise ValueError("El valor debe ser mayor o igual a 1")
        return v

    @property
    def is_production(self) -> bool:
        """Verifica si está en entorno de producción."""
        return self.ENVIRONMENT == "production"

    @property
    def customer_sheet_names(self) -> List[str]:
        """Nombres de hoja aceptados para clientes, en orden de preferencia."""
        return [name.strip() for name in self.CUSTOMER_SHEET_NAMES.split(",") if name.strip()]

    @property
    def reports_path(self) -> Path:
        """Directorio de reportes (se crea si no existe)."""
        path = Path(self.REPORTS_DIR)
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def logs_path(self) -> Path:
        """Directorio de logs de migración (se crea si no existe)."""
        path = Path(self.LOGS_DIR)
        path.mkdir(parents=True, exist_ok=True)
        return path

    def graphql_url(self, shop: str) -> str:
        """Genera la URL del endpoint GraphQL Admin para una tienda."""
        return f"https://{shop}/admin/api/{self.SHOPIFY_API_VERSION}/graphql.json"


@lru_cache()
def get_settings() -> Settings:
    """
    Obtiene instancia singleton de configuración.

    Returns:
        Settings: Instancia de configuración
    """
    return Settings()


def reload_settings() -> Settings:
    """
    Recarga la configuración (útil para testing).

    Returns:
        Settings: Nueva instancia de configuración
    """
    get_settings.cache_clear()
    return get_settings()


REQUIRED_STORE_SETTINGS = {
    "source": ["SOURCE_SHOP", "SOURCE_ACCESS_TOKEN"],
    "target": ["TARGET_SHOP", "TARGET_ACCESS_TOKEN"],
}


def validate_required_settings(scope: str = "both") -> bool:
    """
    Valida que las credenciales de las tiendas requeridas estén presentes.

    Args:
        scope: "source", "target" o "both"

    Returns:
        bool: True si todas las configuraciones están presentes

    Raises:
        ConfigurationException: Si alguna configuración requerida falta
    """
    settings = get_settings()

    scopes = ["source", "target"] if scope == "both" else [scope]
    required_fields: List[str] = []
    for name in scopes:
        if name not in REQUIRED_STORE_SETTINGS:
            raise ConfigurationException(f"Scope de configuración desconocido: {name}", setting="scope")
        required_fields.extend(REQUIRED_STORE_SETTINGS[name])

    missing_fields = []
    for field in required_fields:
        value = getattr(settings, field, None)
        if not value or (isinstance(value, str) and not value.strip()):
            missing_fields.append(field)

    if missing_fields:
        raise ConfigurationException(
            f"Missing env vars: {', '.join(missing_fields)}",
            setting=",".join(missing_fields),
        )

    return True


def get_environment_info() -> dict:
    """
    Obtiene información del entorno actual.

    Returns:
        dict: Información del entorno
    """
    settings = get_settings()

    return {
        "app_name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "debug": settings.DEBUG,
        "api_version": settings.SHOPIFY_API_VERSION,
        "source_shop": settings.SOURCE_SHOP,
        "target_shop": settings.TARGET_SHOP,
        "reports_dir": settings.REPORTS_DIR,
    }
