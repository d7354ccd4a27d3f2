"""
Importación de productos desde una hoja Matrixify a la tienda destino.

Flujo:
1. Mapas de destino: colecciones por handle, publicaciones, ubicaciones
2. Definiciones de metafields PRODUCT / PRODUCTVARIANT
3. Por producto: se omite si el handle ya existe, productSet síncrono
   y publicación según Published / Published Scope
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from store_migrator.core.config import get_settings
from store_migrator.core.logging_config import LogContext, log_migration_operation
from store_migrator.db.shopify_clients import ShopifyStoreClient, create_target_client
from store_migrator.services.common import (
    MigrationProgressTracker,
    build_publication_inputs,
    build_publication_map,
    ensure_metafield_definitions,
    report_timestamp,
    write_json_report,
)
from store_migrator.utils.error_handler import ErrorAggregator, ShopifyAPIException
from store_migrator.utils.metafield_utils import ALLOWED_METAFIELD_TYPES, detect_metafield_columns
from store_migrator.utils.sheet_utils import SheetSource, read_sheet_rows, sheet_headers

from .product_mapper import build_product_set_input
from .sheet_parser import BLOCKED_SHEET_METAFIELD_KEYS, ProductSheetParser

logger = logging.getLogger(__name__)

IGNORED_PRODUCT_SET_CODES = frozenset({"HANDLE_NOT_UNIQUE"})


def _definition_columns(headers: List[str], variant: bool) -> List[Dict[str, str]]:
    return [
        column
        for column in detect_metafield_columns(headers, variant=variant)
        if column["key"] not in BLOCKED_SHEET_METAFIELD_KEYS and column["type"] in ALLOWED_METAFIELD_TYPES
    ]


class ProductSheetImporter:
    """Crea en la tienda destino los productos de una hoja."""

    def __init__(self, target_client: ShopifyStoreClient):
        self.target_client = target_client
        self.settings = get_settings()
        self.error_aggregator = ErrorAggregator()
        self.collection_ids: Dict[str, str] = {}
        self.publication_map: Dict[str, str] = {}
        self.location_ids: Dict[str, str] = {}

    async def prepare(self, headers: List[str]):
        """Carga los mapas de destino y asegura las definiciones de metafields."""
        logger.info("📋 Fetching target store data...")
        self.collection_ids = await self.target_client.collections.get_collection_handles()
        self.publication_map = build_publication_map(await self.target_client.get_publications())
        self.location_ids = {
            location["name"]: location["id"]
            for location in await self.target_client.get_locations()
            if location.get("name") and location.get("id")
        }
        logger.info(f"📍 {len(self.location_ids)} target location(s)")

        await ensure_metafield_definitions(
            self.target_client.metafields, "PRODUCT", _definition_columns(headers, variant=False)
        )
        await ensure_metafield_definitions(
            self.target_client.metafields, "PRODUCTVARIANT", _definition_columns(headers, variant=True)
        )

    async def import_product(self, product: Dict[str, Any]) -> Dict[str, Any]:
        """
        Crea un producto agrupado si no existe en destino.

        Returns:
            Dict: {"handle", "status": created|skipped|failed, ...}
        """
        handle = product["handle"]

        try:
            existing = await self.target_client.products.get_product_by_handle(handle)
        except ShopifyAPIException as e:
            return {"handle": handle, "status": "failed", "reason": e.message}
        if existing:
            logger.info(f"⏭️ Product already exists on target, skipping: {handle}")
            return {"handle": handle, "status": "skipped", "productId": existing.get("id")}

        product_input = build_product_set_input(product, self.collection_ids)
        try:
            payload = await self.target_client.products.set_product(product_input, synchronous=True)
        except ShopifyAPIException as e:
            codes = {error.get("code") for error in e.user_errors}
            if not e.user_errors or codes - IGNORED_PRODUCT_SET_CODES:
                logger.error(f"❌ productSet failed for {handle}: {e.message}")
                return {"handle": handle, "status": "failed", "reason": e.message}
            logger.warning(f"⚠️ Ignoring HANDLE_NOT_UNIQUE for {handle}")
            return {"handle": handle, "status": "skipped", "reason": "HANDLE_NOT_UNIQUE"}

        created = (payload or {}).get("product") or {}
        product_id = created.get("id")
        if not product_id:
            return {"handle": handle, "status": "failed", "reason": "productSet returned no product"}
        logger.info(f"✅ Product created: {handle} ({product_id})")

        publications = build_publication_inputs(
            product.get("published"), product.get("publishedScope"), self.publication_map
        )
        if publications:
            try:
                await self.target_client.publish(
                    product_id, [publication["publicationId"] for publication in publications]
                )
                logger.info(f"📢 Published {handle} to {len(publications)} publication(s)")
            except ShopifyAPIException as e:
                logger.warning(f"⚠️ Could not publish {handle}: {e.message}")

        return {"handle": handle, "status": "created", "productId": product_id}

    async def run(self, rows: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Importa todos los productos de las filas.

        Returns:
            Dict: Resumen (total, created, skipped, failed, results, reportPath)
        """
        job_id = f"products_sheet_{report_timestamp()}"
        headers = sheet_headers(rows)

        with LogContext(job_id=job_id, operation="products_sheet"):
            await self.prepare(headers)
            products = ProductSheetParser(self.location_ids).parse(rows)
            logger.info(f"🚀 Importing {len(products)} product(s) from {len(rows)} row(s)")
            log_migration_operation("products_sheet_start", "target", job_id=job_id, products=len(products))

            tracker = MigrationProgressTracker(
                total_items=len(products), operation_name="Product import", job_id=job_id
            )
            results = []
            for product in products:
                self.error_aggregator.increment_processed()
                try:
                    result = await self.import_product(product)
                except Exception as e:
                    logger.error(f"❌ Unexpected error importing {product['handle']}: {e}")
                    self.error_aggregator.add_error(e, {"handle": product["handle"]})
                    result = {"handle": product["handle"], "status": "failed", "reason": str(e)}

                results.append(result)
                tracker.update(
                    created=int(result["status"] == "created"),
                    skipped=int(result["status"] == "skipped"),
                    errors=int(result["status"] == "failed"),
                )
                if tracker.should_log_progress():
                    tracker.log_progress()
                if result["status"] == "created":
                    await asyncio.sleep(self.settings.PRODUCT_DELAY)

            tracker.log_progress(prefix="🏁 ")
            summary = {
                "job_id": job_id,
                "total": len(products),
                "created": tracker.stats["created"],
                "skipped": tracker.stats["skipped"],
                "failed": tracker.stats["errors"],
                "results": results,
                "errors": self.error_aggregator.get_summary(),
            }
            summary["reportPath"] = str(write_json_report("products_import_report", summary))

        return summary


async def migrate_products_from_sheet(
    source: SheetSource,
    filename: Optional[str] = None,
    sheet_name: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Punto de entrada: lee la hoja y crea los productos en la tienda destino.
    """
    rows = await read_sheet_rows(source, sheet_name=sheet_name, filename=filename)
    target_client = create_target_client()
    try:
        await target_client.initialize()
        return await ProductSheetImporter(target_client).run(rows)
    finally:
        await target_client.close()
