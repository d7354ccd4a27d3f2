"""
Sincronización de productos tienda origen → tienda destino.

Cada producto de origen se escribe con productSet usando el handle como
identificador (crea o actualiza). Los fallos se acumulan en
logs/failedProducts.json y el avance en logs/productSyncLog.txt.
"""

import asyncio
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from store_migrator.core.config import get_settings
from store_migrator.core.logging_config import LogContext
from store_migrator.db.shopify_clients import ShopifyStoreClient, create_source_client, create_target_client
from store_migrator.services.common import MigrationProgressTracker, report_timestamp
from store_migrator.utils.error_handler import ErrorAggregator, ShopifyAPIException

from .product_mapper import build_product_set_input_from_source

logger = logging.getLogger(__name__)

FAILED_PRODUCTS_FILE = "failedProducts.json"
SYNC_LOG_FILE = "productSyncLog.txt"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ProductSyncLog:
    """Archivos de seguimiento de la sincronización en LOGS_DIR."""

    def __init__(self, logs_dir: Optional[Path] = None):
        directory = Path(logs_dir or get_settings().logs_path)
        directory.mkdir(parents=True, exist_ok=True)
        self.failed_path = directory / FAILED_PRODUCTS_FILE
        self.log_path = directory / SYNC_LOG_FILE

    def write_line(self, message: str):
        with open(self.log_path, "a", encoding="utf-8") as handle:
            handle.write(f"[{_now_iso()}] {message}\n")

    def append_failure(self, failure: Dict[str, Any]):
        """Agrega un fallo al JSON acumulado (se conserva lo de ejecuciones anteriores)."""
        failures: List[Dict[str, Any]] = []
        if self.failed_path.exists():
            try:
                with open(self.failed_path, encoding="utf-8") as handle:
                    failures = json.load(handle)
            except json.JSONDecodeError:
                logger.warning(f"⚠️ {self.failed_path} is not valid JSON; starting a new list")
                failures = []

        failures.append({**failure, "at": _now_iso()})
        with open(self.failed_path, "w", encoding="utf-8") as handle:
            json.dump(failures, handle, indent=2, ensure_ascii=False)


class ProductStoreSync:
    """Copia productos de la tienda origen a la tienda destino."""

    def __init__(
        self,
        source_client: ShopifyStoreClient,
        target_client: ShopifyStoreClient,
        sync_log: Optional[ProductSyncLog] = None,
    ):
        self.source_client = source_client
        self.target_client = target_client
        self.sync_log = sync_log or ProductSyncLog()
        self.settings = get_settings()
        self.error_aggregator = ErrorAggregator()

    async def sync_product(self, product: Dict[str, Any]) -> Dict[str, Any]:
        """
        Escribe un producto de origen en destino.

        Raises:
            ShopifyAPIException: Si productSet devuelve userErrors o ningún producto
        """
        handle = product.get("handle")
        product_input = build_product_set_input_from_source(product)
        payload = await self.target_client.products.set_product(
            product_input, identifier={"handle": handle}, synchronous=True
        )
        target_product = (payload or {}).get("product")
        if not target_product:
            raise ShopifyAPIException(f"productSet returned no product for {handle}", endpoint="productSet")
        return target_product

    async def run(self, limit: Optional[int] = None, query: Optional[str] = None) -> Dict[str, Any]:
        """
        Sincroniza los productos de origen.

        Returns:
            Dict: Resumen (total, synced, skipped, failed)
        """
        job_id = f"products_sync_{report_timestamp()}"
        tracker = MigrationProgressTracker(total_items=limit, operation_name="Product sync", job_id=job_id)
        synced: List[Dict[str, Any]] = []

        with LogContext(job_id=job_id, operation="products_sync"):
            logger.info("🚀 Starting store-to-store product sync")
            self.sync_log.write_line("Product sync started")

            index = 0
            async for product in self.source_client.products.iter_products(
                page_size=self.settings.PRODUCT_PAGE_SIZE, query=query, limit=limit
            ):
                index += 1
                self.error_aggregator.increment_processed()
                handle = product.get("handle")
                title = product.get("title")

                if not handle:
                    logger.warning(f"⚠️ Product {product.get('id')} has no handle; skipping")
                    self.sync_log.write_line(f"#{index} skipped {product.get('id')}: no handle")
                    tracker.update(skipped=1)
                    continue

                try:
                    target_product = await self.sync_product(product)
                    synced.append({"handle": handle, "targetId": target_product.get("id")})
                    tracker.update(created=1)
                    logger.info(f"✅ Synced product #{index}: {handle} → {target_product.get('id')}")
                    self.sync_log.write_line(f"#{index} synced {handle} → {target_product.get('id')}")
                except Exception as e:
                    reason = e.message if isinstance(e, ShopifyAPIException) else str(e)
                    logger.error(f"❌ Failed product #{index} ({handle}): {reason}")
                    self.error_aggregator.add_error(e, {"handle": handle})
                    self.sync_log.write_line(f"#{index} failed {handle}: {reason}")
                    self.sync_log.append_failure(
                        {
                            "index": index,
                            "sourceProductId": product.get("id"),
                            "handle": handle,
                            "title": title,
                            "reason": reason,
                        }
                    )
                    tracker.update(errors=1)

                if tracker.should_log_progress():
                    tracker.log_progress()
                await asyncio.sleep(self.settings.PRODUCT_DELAY)

            tracker.log_progress(prefix="🏁 ")
            self.sync_log.write_line(
                f"Product sync finished: {tracker.stats['created']} synced, {tracker.stats['errors']} failed"
            )

        return {
            "job_id": job_id,
            "total": tracker.processed_items,
            "synced": tracker.stats["created"],
            "skipped": tracker.stats["skipped"],
            "failed": tracker.stats["errors"],
            "products": synced,
            "failedProductsPath": str(self.sync_log.failed_path),
            "errors": self.error_aggregator.get_summary(),
        }


async def sync_products_store_to_store(limit: Optional[int] = None, query: Optional[str] = None) -> Dict[str, Any]:
    """Punto de entrada: abre ambas tiendas y sincroniza los productos."""
    source_client = create_source_client()
    target_client = create_target_client()
    try:
        await source_client.initialize()
        await target_client.initialize()
        return await ProductStoreSync(source_client, target_client).run(limit=limit, query=query)
    finally:
        await source_client.close()
        await target_client.close()
