"""
Importación de colecciones desde hojas Matrixify.

- smart: collectionCreate con ruleSet (reglas estándar, categoría y
  reglas por definición de metafield de producto o variante)
- custom: collectionCreate sin reglas y collectionAddProducts con los
  productos de "Product: Handle" en orden de "Product: Position"

Las colecciones cuyo handle ya existe en destino se omiten.
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
from store_migrator.utils.error_handler import ErrorAggregator, ShopifyAPIException, ValidationException
from store_migrator.utils.metafield_utils import sanitize_metafields
from store_migrator.utils.sheet_utils import SheetSource, read_sheet_rows

from .rules import (
    CATEGORY_COLUMNS,
    VALUELESS_RELATIONS,
    normalize_category_condition,
    normalize_rule_relation,
    parse_rule_column,
)
from .sheet_parser import CollectionSheetParser

logger = logging.getLogger(__name__)

COLLECTION_KINDS = ("smart", "custom")

# Tipo de regla -> ownerType de la definición de metafield
_METAFIELD_RULE_OWNERS = {
    "PRODUCT_METAFIELD": ("PRODUCT", "PRODUCT_METAFIELD_DEFINITION"),
    "VARIANT_METAFIELD": ("PRODUCTVARIANT", "VARIANT_METAFIELD_DEFINITION"),
}


class CollectionSheetImporter:
    """Crea colecciones inteligentes o manuales a partir de una hoja."""

    def __init__(self, target_client: ShopifyStoreClient, kind: str = "smart"):
        if kind not in COLLECTION_KINDS:
            raise ValidationException(f"Unknown collection kind: {kind}", field="kind", invalid_value=kind)
        self.target_client = target_client
        self.kind = kind
        self.settings = get_settings()
        self.error_aggregator = ErrorAggregator()
        self.publication_map: Dict[str, str] = {}
        self._product_ids: Dict[str, Optional[str]] = {}

    async def build_rule_set(self, collection: Dict[str, Any]) -> Dict[str, Any]:
        """
        Construye CollectionRuleSetInput a partir de las reglas crudas.

        Raises:
            ValidationException: Si ninguna regla es válida
        """
        applied_disjunctively = collection.get("appliedDisjunctively")
        if applied_disjunctively is None:
            logger.warning(
                f"⚠️ Collection '{collection['handle']}': Must Match missing or unknown "
                f"('{collection.get('mustMatchRaw')}'), defaulting to all conditions"
            )
            applied_disjunctively = False

        rules = []
        for raw_rule in collection.get("rules") or []:
            parsed_column = parse_rule_column(raw_rule.get("column"))
            relation = normalize_rule_relation(raw_rule.get("relation"))
            if not parsed_column or not relation:
                continue

            condition = raw_rule.get("condition") or ""
            if relation not in VALUELESS_RELATIONS and not condition:
                logger.warning(f"⚠️ Missing condition for rule {raw_rule} in '{collection['handle']}', skipping")
                continue

            if parsed_column["kind"] in _METAFIELD_RULE_OWNERS:
                owner_type, rule_column = _METAFIELD_RULE_OWNERS[parsed_column["kind"]]
                definition_id = await self.target_client.metafields.get_definition_id(
                    owner_type, parsed_column["namespace"], parsed_column["key"]
                )
                if not definition_id:
                    logger.warning(
                        f"⚠️ No {owner_type} metafield definition "
                        f"{parsed_column['namespace']}.{parsed_column['key']} on target, skipping rule"
                    )
                    continue
                rules.append(
                    {
                        "column": rule_column,
                        "relation": relation,
                        "condition": condition,
                        "conditionObjectId": definition_id,
                    }
                )
                continue

            column = parsed_column["column"]
            if column in CATEGORY_COLUMNS:
                condition = normalize_category_condition(condition)
            rules.append({"column": column, "relation": relation, "condition": condition})

        if not rules:
            raise ValidationException(f"No valid rules found for '{collection['handle']}'", field="rules")

        return {"appliedDisjunctively": applied_disjunctively, "rules": rules}

    async def build_collection_input(self, collection: Dict[str, Any]) -> Dict[str, Any]:
        """Traduce una colección agrupada a CollectionInput."""
        collection_input: Dict[str, Any] = {
            "title": collection.get("title"),
            "handle": collection["handle"],
            "descriptionHtml": collection.get("descriptionHtml") or "",
        }
        if collection.get("sortOrder"):
            collection_input["sortOrder"] = collection["sortOrder"]
        if collection.get("templateSuffix"):
            collection_input["templateSuffix"] = collection["templateSuffix"]

        if collection.get("imageSrc"):
            image = {"src": collection["imageSrc"]}
            if collection.get("imageAlt"):
                image["altText"] = collection["imageAlt"]
            collection_input["image"] = image

        seo = {
            key: collection[field]
            for key, field in (("title", "seoTitle"), ("description", "seoDescription"))
            if collection.get(field)
        }
        if seo:
            collection_input["seo"] = seo

        if self.kind == "smart":
            collection_input["ruleSet"] = await self.build_rule_set(collection)

        metafields = sanitize_metafields(
            collection.get("metafields") or [], f"{self.kind.upper()}_COLLECTION", collection["handle"]
        )
        if metafields:
            collection_input["metafields"] = metafields

        return collection_input

    async def _resolve_product_ids(self, products: List[Dict[str, Any]]) -> List[str]:
        product_ids = []
        for product in products:
            handle = product["handle"]
            if handle not in self._product_ids:
                found = await self.target_client.products.get_product_by_handle(handle)
                self._product_ids[handle] = (found or {}).get("id")
            product_id = self._product_ids[handle]
            if not product_id:
                logger.warning(f"⚠️ Product '{handle}' not found on target, not added to collection")
                continue
            if product_id not in product_ids:
                product_ids.append(product_id)
        return product_ids

    async def import_collection(self, collection: Dict[str, Any]) -> Dict[str, Any]:
        """
        Crea una colección si su handle no existe en destino.

        Returns:
            Dict: {"handle", "status": created|skipped|failed, ...}
        """
        handle = collection["handle"]
        if not collection.get("title"):
            return {"handle": handle, "status": "failed", "reason": "Missing required Title/Handle"}

        existing = await self.target_client.collections.get_collection_by_handle(handle)
        if existing:
            logger.info(f"⏭️ Collection already exists on target, skipping: {handle} ({existing.get('id')})")
            return {"handle": handle, "status": "skipped", "collectionId": existing.get("id")}

        try:
            collection_input = await self.build_collection_input(collection)
            created = await self.target_client.collections.create_collection(collection_input)
        except (ShopifyAPIException, ValidationException) as e:
            logger.error(f"❌ Failed to create collection {handle}: {e.message}")
            return {"handle": handle, "status": "failed", "reason": e.message}

        collection_id = created.get("id")
        result = {"handle": handle, "status": "created", "collectionId": collection_id}

        if self.kind == "custom" and collection.get("products"):
            product_ids = await self._resolve_product_ids(collection["products"])
            if product_ids:
                try:
                    await self.target_client.collections.add_products(collection_id, product_ids)
                    logger.info(f"🔗 Added {len(product_ids)} product(s) to {handle}")
                except ShopifyAPIException as e:
                    logger.warning(f"⚠️ Could not add products to {handle}: {e.message}")
            result["productsAdded"] = len(product_ids)

        publications = build_publication_inputs(
            collection.get("published"), collection.get("publishedScope"), self.publication_map
        )
        if publications:
            await asyncio.sleep(self.settings.PUBLISH_DELAY)
            try:
                await self.target_client.publish(
                    collection_id, [publication["publicationId"] for publication in publications]
                )
                logger.info(f"📢 Published {handle} to {len(publications)} publication(s)")
            except ShopifyAPIException as e:
                logger.warning(f"⚠️ Could not publish {handle}: {e.message}")
        else:
            logger.debug(f"No publish action for {handle}")

        return result

    async def run(self, rows: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Importa todas las colecciones de la hoja.

        Returns:
            Dict: Resumen (ok, total, created, skipped, failed, results, reportPath)
        """
        job_id = f"{self.kind}_collections_{report_timestamp()}"
        parser = CollectionSheetParser.from_rows(rows)

        with LogContext(job_id=job_id, operation=f"{self.kind}_collections"):
            await ensure_metafield_definitions(self.target_client.metafields, "COLLECTION", parser.metafield_columns)
            collections = parser.parse(rows)
            self.publication_map = build_publication_map(await self.target_client.get_publications())

            logger.info(f"🚀 Importing {len(collections)} {self.kind} collection(s)")
            log_migration_operation(
                f"{self.kind}_collections_start", "target", job_id=job_id, collections=len(collections)
            )

            tracker = MigrationProgressTracker(
                total_items=len(collections), operation_name=f"{self.kind.capitalize()} collections", job_id=job_id
            )
            results = []
            for collection in collections:
                self.error_aggregator.increment_processed()
                try:
                    result = await self.import_collection(collection)
                except Exception as e:
                    logger.error(f"❌ Unexpected error importing collection {collection['handle']}: {e}")
                    self.error_aggregator.add_error(e, {"handle": collection["handle"]})
                    result = {"handle": collection["handle"], "status": "failed", "reason": str(e)}

                results.append(result)
                tracker.update(
                    created=int(result["status"] == "created"),
                    skipped=int(result["status"] == "skipped"),
                    errors=int(result["status"] == "failed"),
                )
                if tracker.should_log_progress():
                    tracker.log_progress()
                await asyncio.sleep(self.settings.COLLECTION_DELAY)

            tracker.log_progress(prefix="🏁 ")
            summary = {
                "job_id": job_id,
                "ok": tracker.stats["errors"] == 0,
                "total": len(collections),
                "created": tracker.stats["created"],
                "skipped": tracker.stats["skipped"],
                "failed": tracker.stats["errors"],
                "results": results,
                "errors": self.error_aggregator.get_summary(),
            }
            summary["reportPath"] = str(write_json_report(f"{self.kind}_collections_report", summary))

        return summary


async def _import_collections(
    kind: str, source: SheetSource, filename: Optional[str], sheet_name: Optional[str]
) -> Dict[str, Any]:
    rows = await read_sheet_rows(source, sheet_name=sheet_name, filename=filename)
    target_client = create_target_client()
    try:
        await target_client.initialize()
        return await CollectionSheetImporter(target_client, kind=kind).run(rows)
    finally:
        await target_client.close()


async def import_smart_collections(
    source: SheetSource, filename: Optional[str] = None, sheet_name: Optional[str] = None
) -> Dict[str, Any]:
    """Punto de entrada: colecciones inteligentes desde hoja."""
    return await _import_collections("smart", source, filename, sheet_name)


async def import_custom_collections(
    source: SheetSource, filename: Optional[str] = None, sheet_name: Optional[str] = None
) -> Dict[str, Any]:
    """Punto de entrada: colecciones manuales desde hoja."""
    return await _import_collections("custom", source, filename, sheet_name)
