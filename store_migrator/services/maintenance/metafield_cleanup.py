"""
Borrado de metafield definitions en la tienda destino.

Se usa para limpiar definiciones creadas por importaciones de prueba
(por ejemplo todo el namespace "magento" de variantes). Con dry_run solo
se listan las definiciones que se borrarían.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from store_migrator.core.config import get_settings
from store_migrator.core.logging_config import LogContext, log_migration_operation
from store_migrator.db.shopify_clients import ShopifyStoreClient, create_target_client
from store_migrator.services.common import MigrationProgressTracker, report_timestamp, write_json_report
from store_migrator.utils.error_handler import AppException, ErrorAggregator, ValidationException, format_user_errors

logger = logging.getLogger(__name__)

PREVIEW_SIZE = 25


def matches_filters(definition: Dict[str, Any], namespace: Optional[str], key_prefix: Optional[str]) -> bool:
    if namespace and definition.get("namespace") != namespace:
        return False
    if key_prefix and not str(definition.get("key") or "").startswith(key_prefix):
        return False
    return True


def definition_label(definition: Dict[str, Any]) -> str:
    return f"{definition.get('namespace')}.{definition.get('key')}"


class MetafieldDefinitionCleaner:
    """Borra metafield definitions de un owner type con filtros opcionales."""

    def __init__(
        self,
        target_client: ShopifyStoreClient,
        owner_type: Optional[str] = None,
        namespace: Optional[str] = None,
        key_prefix: Optional[str] = None,
        limit: Optional[int] = None,
        delete_values: Optional[bool] = None,
    ):
        """
        Args:
            target_client: Cliente de la tienda destino
            owner_type: MetafieldOwnerType (por defecto METAFIELD_OWNER_TYPE)
            namespace: Solo definiciones de este namespace
            key_prefix: Solo claves que empiezan con este prefijo
            limit: Máximo de definiciones a borrar (None o 0 = sin límite)
            delete_values: Borrar también los valores asociados
        """
        self.target_client = target_client
        self.settings = get_settings()
        self.owner_type = (owner_type or self.settings.METAFIELD_OWNER_TYPE).strip().upper()
        self.namespace = namespace if namespace is not None else self.settings.METAFIELD_NAMESPACE
        self.key_prefix = key_prefix if key_prefix is not None else self.settings.METAFIELD_KEY_PREFIX
        self.limit = limit if limit is not None else self.settings.METAFIELD_DELETE_LIMIT
        self.delete_values = self.settings.METAFIELD_DELETE_VALUES if delete_values is None else delete_values
        self.error_aggregator = ErrorAggregator()

        if not self.owner_type:
            raise ValidationException("Metafield owner type is required", field="owner_type")

    async def collect_definitions(self) -> List[Dict[str, Any]]:
        """Definiciones que pasan los filtros, cortando en el límite."""
        definitions = []
        async for definition in self.target_client.metafields.iter_definitions(self.owner_type):
            if not matches_filters(definition, self.namespace, self.key_prefix):
                continue
            definitions.append(definition)
            if self.limit and len(definitions) >= self.limit:
                break
        return definitions

    def log_preview(self, definitions: List[Dict[str, Any]]):
        for index, definition in enumerate(definitions[:PREVIEW_SIZE], start=1):
            type_name = (definition.get("type") or {}).get("name") or "unknown"
            logger.info(f"  [{index}] {definition_label(definition)} ({type_name}) | {definition.get('id')}")
        if len(definitions) > PREVIEW_SIZE:
            logger.info(f"  ...and {len(definitions) - PREVIEW_SIZE} more")

    async def delete_one(self, definition: Dict[str, Any], position: str) -> Tuple[str, Optional[str]]:
        """
        Borra una definición; los userErrors cuentan como fallo sin excepción.

        Returns:
            Tuple[str, Optional[str]]: (deleted|failed, motivo)
        """
        label = f"{position} {definition_label(definition)}"
        self.error_aggregator.increment_processed()
        try:
            result = await self.target_client.metafields.delete_definition(definition["id"], self.delete_values)
        except Exception as e:
            reason = e.message if isinstance(e, AppException) else str(e)
            logger.error(f"❌ {label} ERROR: {reason}")
            self.error_aggregator.add_error(e, {"definition": definition_label(definition)})
            await asyncio.sleep(self.settings.DELETE_ERROR_DELAY)
            return "failed", reason

        await asyncio.sleep(self.settings.DELETE_DELAY)
        if result["userErrors"]:
            reason = format_user_errors(result["userErrors"])
            logger.error(f"❌ {label} FAILED: {reason}")
            self.error_aggregator.add_error(AppException(reason), {"definition": definition_label(definition)})
            return "failed", reason

        logger.info(f"✅ {label} deleted")
        return "deleted", None

    async def run(self, dry_run: bool = False) -> Dict[str, Any]:
        """
        Borra (o lista, con dry_run) las definiciones filtradas.

        Returns:
            Dict: ok, found, deletedCount, failedCount, dryRun, reportPath
        """
        job_id = f"metafield_cleanup_{report_timestamp()}"

        with LogContext(job_id=job_id, operation="metafield_cleanup"):
            logger.info(
                f"🧹 Metafield definition cleanup: ownerType={self.owner_type}, namespace={self.namespace or '*'}, "
                f"keyPrefix={self.key_prefix or '*'}, deleteValues={self.delete_values}, dryRun={dry_run}"
            )
            log_migration_operation(
                "metafield_cleanup_start", "target", job_id=job_id, owner_type=self.owner_type, dry_run=dry_run
            )

            definitions = await self.collect_definitions()
            if not definitions:
                logger.info(f"ℹ️ No {self.owner_type} metafield definitions match the current filters")
            else:
                action = "🔍 Would delete" if dry_run else "🗑️ Will delete"
                logger.info(f"{action} {len(definitions)} definition(s)")
                self.log_preview(definitions)

            results = []
            tracker = MigrationProgressTracker(
                total_items=len(definitions), operation_name="Metafield definitions", job_id=job_id
            )
            for index, definition in enumerate(definitions, start=1):
                result = {"id": definition.get("id"), "definition": definition_label(definition)}
                if dry_run:
                    results.append({**result, "status": "preview"})
                    tracker.update(skipped=1)
                    continue

                status, reason = await self.delete_one(definition, f"[{index}/{len(definitions)}]")
                results.append({**result, "status": status, "reason": reason})
                tracker.update(created=int(status == "deleted"), errors=int(status == "failed"))
                if tracker.should_log_progress():
                    tracker.log_progress()

            tracker.log_progress(prefix="🏁 ")
            summary = {
                "job_id": job_id,
                "ok": tracker.stats["errors"] == 0,
                "dryRun": dry_run,
                "ownerType": self.owner_type,
                "found": len(definitions),
                "deletedCount": tracker.stats["created"],
                "failedCount": tracker.stats["errors"],
                "results": results,
                "errors": self.error_aggregator.get_summary(),
            }
            summary["reportPath"] = str(write_json_report("metafield_cleanup_report", summary))

        return summary


async def delete_metafield_definitions(
    owner_type: Optional[str] = None,
    namespace: Optional[str] = None,
    key_prefix: Optional[str] = None,
    limit: Optional[int] = None,
    delete_values: Optional[bool] = None,
    dry_run: bool = False,
) -> Dict[str, Any]:
    """Punto de entrada: borrado de metafield definitions en destino."""
    target_client = create_target_client()
    try:
        await target_client.initialize()
        cleaner = MetafieldDefinitionCleaner(
            target_client,
            owner_type=owner_type,
            namespace=namespace,
            key_prefix=key_prefix,
            limit=limit,
            delete_values=delete_values,
        )
        return await cleaner.run(dry_run=dry_run)
    finally:
        await target_client.close()
