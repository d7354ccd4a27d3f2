"""
Copia de colecciones entre tiendas (origen → destino).

Se copian título, handle, descripción, SEO, orden, template, imagen, reglas
y metafields. Cada colección creada se publica en las publicaciones del
destino cuya app (app.handle) coincide con las de la colección origen.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from store_migrator.core.config import get_settings
from store_migrator.core.logging_config import LogContext, log_migration_operation
from store_migrator.db.shopify_clients import ShopifyStoreClient, create_source_client, create_target_client
from store_migrator.services.common import (
    MigrationProgressTracker,
    index_publications_by_app_handle,
    report_timestamp,
    write_json_report,
)
from store_migrator.utils.error_handler import ErrorAggregator, ShopifyAPIException
from store_migrator.utils.metafield_utils import SEO_METAFIELD_KEYS

logger = logging.getLogger(__name__)

# Reglas que apuntan a definiciones de metafield de la tienda origen
_DEFINITION_RULE_COLUMNS = frozenset({"PRODUCT_METAFIELD_DEFINITION", "VARIANT_METAFIELD_DEFINITION"})


def _nodes(connection: Any) -> List[Dict[str, Any]]:
    if isinstance(connection, list):
        return connection
    return (connection or {}).get("nodes") or []


def map_source_collection(source: Dict[str, Any]) -> Dict[str, Any]:
    """
    Colección de origen → CollectionInput para el destino.

    Los metafields global.title_tag / global.description_tag no se copian
    (Shopify los deriva del SEO). Las reglas por definición de metafield se
    descartan porque su conditionObjectId pertenece a la tienda origen.
    """
    collection_input: Dict[str, Any] = {
        "title": source.get("title"),
        "handle": source.get("handle"),
        "descriptionHtml": source.get("descriptionHtml") or "",
    }
    if source.get("sortOrder"):
        collection_input["sortOrder"] = source["sortOrder"]
    if source.get("templateSuffix"):
        collection_input["templateSuffix"] = source["templateSuffix"]

    seo = source.get("seo") or {}
    if seo.get("title") or seo.get("description"):
        collection_input["seo"] = {"title": seo.get("title"), "description": seo.get("description")}

    image = source.get("image") or {}
    if image.get("url"):
        collection_input["image"] = {"src": image["url"], "altText": image.get("altText")}

    rule_set = source.get("ruleSet")
    if rule_set:
        rules = []
        for rule in rule_set.get("rules") or []:
            if rule.get("column") in _DEFINITION_RULE_COLUMNS:
                logger.warning(
                    f"⚠️ Dropping metafield definition rule {rule.get('column')} on '{source.get('handle')}'"
                )
                continue
            rules.append(
                {"column": rule.get("column"), "relation": rule.get("relation"), "condition": rule.get("condition")}
            )
        if rules:
            collection_input["ruleSet"] = {
                "appliedDisjunctively": bool(rule_set.get("appliedDisjunctively")),
                "rules": rules,
            }

    metafields = []
    for metafield in _nodes(source.get("metafields")):
        if not metafield.get("namespace") or not metafield.get("key") or not metafield.get("type"):
            logger.warning(f"⚠️ Skipping metafield without namespace/key/type on '{source.get('title')}'")
            continue
        if metafield["namespace"] == "global" and metafield["key"] in SEO_METAFIELD_KEYS:
            continue
        metafields.append(
            {
                "namespace": metafield["namespace"],
                "key": metafield["key"],
                "type": metafield["type"],
                "value": str(metafield.get("value") if metafield.get("value") is not None else ""),
            }
        )
    if metafields:
        collection_input["metafields"] = metafields

    return collection_input


def source_app_handles(source: Dict[str, Any]) -> List[str]:
    """Handles de app en los que está publicada la colección origen."""
    handles = []
    for node in _nodes(source.get("resourcePublicationsV2")):
        handle = ((node.get("publication") or {}).get("app") or {}).get("handle")
        if handle and handle not in handles:
            handles.append(handle)
    return handles


class CollectionStoreSync:
    """Crea en destino las colecciones de la tienda origen."""

    def __init__(self, source_client: ShopifyStoreClient, target_client: ShopifyStoreClient):
        self.source_client = source_client
        self.target_client = target_client
        self.settings = get_settings()
        self.error_aggregator = ErrorAggregator()
        self.publications_by_app: Dict[str, List[str]] = {}

    async def publish_like_source(self, collection_id: str, source: Dict[str, Any]) -> List[str]:
        """
        Publica la colección en las publicaciones equivalentes del destino.

        Returns:
            List[str]: IDs de publicación en los que se publicó
        """
        app_handles = source_app_handles(source)
        if not app_handles:
            logger.info("ℹ️ Source collection has no app-based publications, skipping publish")
            return []

        published = []
        for app_handle in app_handles:
            publication_ids = self.publications_by_app.get(app_handle) or []
            if not publication_ids:
                logger.warning(f"⚠️ No matching target publication for app handle '{app_handle}'")
                continue
            try:
                await self.target_client.publish(collection_id, publication_ids)
                published.extend(publication_ids)
                logger.info(f"📢 Published {collection_id} to {app_handle} ({len(publication_ids)} publication(s))")
            except ShopifyAPIException as e:
                logger.error(f"❌ Failed to publish {collection_id} to app '{app_handle}': {e.message}")
        return published

    async def sync_collection(self, source: Dict[str, Any]) -> Dict[str, Any]:
        collection_input = map_source_collection(source)
        created = await self.target_client.collections.create_collection(collection_input)

        await asyncio.sleep(self.settings.PUBLISH_DELAY)
        published = await self.publish_like_source(created.get("id"), source)
        return {
            "handle": source.get("handle"),
            "status": "created",
            "collectionId": created.get("id"),
            "publications": published,
        }

    async def run(self, limit: Optional[int] = None) -> Dict[str, Any]:
        """
        Copia las colecciones de origen a destino.

        Returns:
            Dict: Resumen (total, created, failed, results, reportPath)
        """
        job_id = f"collections_sync_{report_timestamp()}"

        with LogContext(job_id=job_id, operation="collections_sync"):
            logger.info("🚀 Starting collections sync (source → target)...")
            self.publications_by_app = index_publications_by_app_handle(await self.target_client.get_publications())
            log_migration_operation("collections_sync_start", "source", job_id=job_id, limit=limit)

            tracker = MigrationProgressTracker(operation_name="Collections sync", job_id=job_id)
            results = []
            async for source in self.source_client.collections.iter_collections():
                if limit is not None and tracker.processed_items >= limit:
                    break
                self.error_aggregator.increment_processed()
                label = f"#{tracker.processed_items + 1} '{source.get('title')}' (handle: {source.get('handle')})"
                logger.info(f"➡️ Processing {label}")

                try:
                    result = await self.sync_collection(source)
                    logger.info(f"✅ Created collection on target: {result['collectionId']}")
                except ShopifyAPIException as e:
                    logger.error(f"❌ Failed to process {label}: {e.message}")
                    self.error_aggregator.add_error(e, {"handle": source.get("handle")})
                    result = {"handle": source.get("handle"), "status": "failed", "reason": e.message}

                results.append(result)
                tracker.update(
                    created=int(result["status"] == "created"), errors=int(result["status"] == "failed")
                )
                if tracker.should_log_progress():
                    tracker.log_progress()
                await asyncio.sleep(self.settings.COLLECTION_DELAY)

            tracker.log_progress(prefix="🏁 ")
            summary = {
                "job_id": job_id,
                "ok": tracker.stats["errors"] == 0,
                "total": tracker.processed_items,
                "created": tracker.stats["created"],
                "failed": tracker.stats["errors"],
                "results": results,
                "errors": self.error_aggregator.get_summary(),
            }
            summary["reportPath"] = str(write_json_report("collections_sync_report", summary))

        return summary


async def sync_collections_store_to_store(limit: Optional[int] = None) -> Dict[str, Any]:
    """Punto de entrada: colecciones de la tienda origen a la tienda destino."""
    source_client = create_source_client()
    target_client = create_target_client()
    try:
        await source_client.initialize()
        await target_client.initialize()
        return await CollectionStoreSync(source_client, target_client).run(limit=limit)
    finally:
        await source_client.close()
        await target_client.close()
