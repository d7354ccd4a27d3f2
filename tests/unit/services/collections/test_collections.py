"""Tests unitarios para la migración de colecciones."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from store_migrator.services.collections.rules import (
    normalize_category_condition,
    normalize_must_match,
    normalize_rule_relation,
    normalize_sort_order,
    parse_rule_column,
)
from store_migrator.services.collections.sheet_importer import CollectionSheetImporter
from store_migrator.services.collections.sheet_parser import CollectionSheetParser
from store_migrator.services.collections.store_sync import CollectionStoreSync, map_source_collection
from store_migrator.utils.error_handler import ShopifyAPIException, ValidationException

SLEEP = "store_migrator.services.collections.sheet_importer.asyncio.sleep"


class TestCollectionRules:
    """Tests para la traducción de columnas Matrixify."""

    def test_sort_order(self):
        """Debe mapear los órdenes de Matrixify y aceptar el enum."""
        assert normalize_sort_order("Alphabet") == "ALPHA_ASC"
        assert normalize_sort_order("price descending") == "PRICE_DESC"
        assert normalize_sort_order("BEST_SELLING") == "BEST_SELLING"
        assert normalize_sort_order("random") is None
        assert normalize_sort_order(None) is None

    def test_must_match(self):
        """Debe traducir Must Match a appliedDisjunctively."""
        assert normalize_must_match("all conditions") is False
        assert normalize_must_match("Any condition") is True
        assert normalize_must_match("sometimes") is None

    def test_relation(self):
        """Debe mapear relaciones, incluidas las de vacío."""
        assert normalize_rule_relation("greater than") == "GREATER_THAN"
        assert normalize_rule_relation("is empty") == "IS_NOT_SET"
        assert normalize_rule_relation("is not empty") == "IS_SET"
        assert normalize_rule_relation("near") is None

    def test_rule_columns(self):
        """Debe distinguir columnas estándar y de metafield."""
        assert parse_rule_column("Tag") == {"kind": "STANDARD", "column": "TAG"}
        assert parse_rule_column("Category with subcategories") == {
            "kind": "STANDARD",
            "column": "PRODUCT_CATEGORY_ID_WITH_DESCENDANTS",
        }
        assert parse_rule_column("Metafield: custom.material") == {
            "kind": "PRODUCT_METAFIELD",
            "namespace": "custom",
            "key": "material",
        }
        assert parse_rule_column("Variant Metafield: custom.size") == {
            "kind": "VARIANT_METAFIELD",
            "namespace": "custom",
            "key": "size",
        }
        assert parse_rule_column("Metafield: nodot") is None
        assert parse_rule_column("Color") is None

    def test_category_condition(self):
        """Debe convertir el id de taxonomía exportado en GID."""
        assert (
            normalize_category_condition("aa-1-13 | Apparel & Accessories > Clothing")
            == "gid://shopify/TaxonomyCategory/aa-1-13"
        )
        assert normalize_category_condition("gid://shopify/TaxonomyCategory/x") == "gid://shopify/TaxonomyCategory/x"


class TestCollectionSheetParser:
    """Tests para la agrupación de filas de colecciones."""

    def test_groups_rules_products_and_metafields(self):
        """Debe agrupar por Handle, deduplicar reglas y ordenar productos."""
        rows = [
            {
                "Handle": "summer",
                "Title": "Summer",
                "Body HTML": "<p>Hot</p>",
                "Sort Order": "manual",
                "Published": "TRUE",
                "Published Scope": "web",
                "Must Match": "any condition",
                "Rule: Product Column": "Tag",
                "Rule: Relation": "equals",
                "Rule: Condition": "summer",
                "Product: Handle": "sandals",
                "Product: Position": 2,
                "Metafield: title_tag [string]": "Summer SEO",
                "Metafield: custom.banner [single_line_text_field]": "Sun",
            },
            {
                "Handle": "summer",
                "Rule: Product Column": "Tag",
                "Rule: Relation": "equals",
                "Rule: Condition": "summer",
                "Product: Handle": "hat",
                "Product: Position": 1,
                "Metafield: title_tag [string]": None,
                "Metafield: custom.banner [single_line_text_field]": None,
            },
            {"Handle": "winter", "Title": "Winter"},
            {"Handle": None, "Title": "Ignored"},
        ]

        collections = CollectionSheetParser.from_rows(rows).parse(rows)

        assert [collection["handle"] for collection in collections] == ["summer", "winter"]
        summer = collections[0]
        assert summer["sortOrder"] == "MANUAL"
        assert summer["published"] is True
        assert summer["appliedDisjunctively"] is True
        assert summer["seoTitle"] == "Summer SEO"
        assert summer["rules"] == [{"column": "Tag", "relation": "equals", "condition": "summer"}]
        assert [product["handle"] for product in summer["products"]] == ["hat", "sandals"]
        assert summer["metafields"] == [
            {"namespace": "custom", "key": "banner", "type": "single_line_text_field", "value": "Sun"}
        ]
        assert collections[1]["rules"] == []
        assert collections[1]["appliedDisjunctively"] is None


def _target_client():
    client = MagicMock()
    client.collections.get_collection_by_handle = AsyncMock(return_value=None)
    client.collections.create_collection = AsyncMock(
        return_value={"id": "gid://shopify/Collection/5", "handle": "summer"}
    )
    client.collections.add_products = AsyncMock(return_value={})
    client.metafields.get_definition_id = AsyncMock(return_value="gid://shopify/MetafieldDefinition/7")
    client.products.get_product_by_handle = AsyncMock(
        side_effect=lambda handle: {"id": f"gid://shopify/Product/{handle}"} if handle != "missing" else None
    )
    client.publish = AsyncMock(return_value={})
    client.get_publications = AsyncMock(return_value=[])
    return client


def _collection(**overrides):
    collection = {
        "handle": "summer",
        "title": "Summer",
        "descriptionHtml": "",
        "appliedDisjunctively": False,
        "rules": [],
        "products": [],
        "metafields": [],
        "published": None,
    }
    collection.update(overrides)
    return collection


class TestCollectionSheetImporter:
    """Tests para CollectionSheetImporter."""

    def test_rejects_unknown_kind(self):
        """Debe rechazar tipos de colección desconocidos."""
        with pytest.raises(ValidationException):
            CollectionSheetImporter(MagicMock(), kind="automatic")

    @pytest.mark.asyncio
    async def test_rule_set_with_category_and_metafield_rules(self):
        """Debe resolver reglas de categoría y de definición de metafield."""
        client = _target_client()
        importer = CollectionSheetImporter(client, kind="smart")
        collection = _collection(
            appliedDisjunctively=None,
            rules=[
                {"column": "Category", "relation": "equals", "condition": "aa-1 | Apparel"},
                {"column": "Variant Metafield: custom.size", "relation": "equals", "condition": "L"},
                {"column": "Tag", "relation": "is not empty", "condition": None},
                {"column": "Vendor", "relation": "equals", "condition": None},
            ],
        )

        rule_set = await importer.build_rule_set(collection)

        assert rule_set["appliedDisjunctively"] is False
        assert rule_set["rules"] == [
            {"column": "PRODUCT_CATEGORY_ID", "relation": "EQUALS", "condition": "gid://shopify/TaxonomyCategory/aa-1"},
            {
                "column": "VARIANT_METAFIELD_DEFINITION",
                "relation": "EQUALS",
                "condition": "L",
                "conditionObjectId": "gid://shopify/MetafieldDefinition/7",
            },
            {"column": "TAG", "relation": "IS_SET", "condition": ""},
        ]
        client.metafields.get_definition_id.assert_awaited_once_with("PRODUCTVARIANT", "custom", "size")

    @pytest.mark.asyncio
    async def test_smart_without_valid_rules_fails(self):
        """Debe fallar la colección inteligente sin reglas válidas."""
        client = _target_client()
        importer = CollectionSheetImporter(client, kind="smart")

        result = await importer.import_collection(_collection(rules=[{"column": "Color", "relation": "equals"}]))

        assert result["status"] == "failed"
        client.collections.create_collection.assert_not_called()

    @pytest.mark.asyncio
    async def test_skips_existing_handle(self):
        """Debe omitir colecciones que ya existen en destino."""
        client = _target_client()
        client.collections.get_collection_by_handle = AsyncMock(return_value={"id": "gid://shopify/Collection/1"})
        importer = CollectionSheetImporter(client, kind="custom")

        result = await importer.import_collection(_collection())

        assert result["status"] == "skipped"
        client.collections.create_collection.assert_not_called()

    @pytest.mark.asyncio
    async def test_custom_collection_adds_products_and_publishes(self):
        """Debe crear sin ruleSet, agregar productos en orden y publicar."""
        client = _target_client()
        importer = CollectionSheetImporter(client, kind="custom")
        importer.publication_map = {"Online Store": "gid://shopify/Publication/1"}
        collection = _collection(
            published=True,
            publishedScope="web",
            imageSrc="https://cdn/summer.jpg",
            products=[
                {"handle": "hat", "position": 1},
                {"handle": "missing", "position": 2},
                {"handle": "sandals", "position": None},
            ],
        )

        with patch(SLEEP, new=AsyncMock()):
            result = await importer.import_collection(collection)

        assert result["status"] == "created"
        assert result["productsAdded"] == 2
        collection_input = client.collections.create_collection.await_args.args[0]
        assert "ruleSet" not in collection_input
        assert collection_input["image"] == {"src": "https://cdn/summer.jpg"}
        client.collections.add_products.assert_awaited_once_with(
            "gid://shopify/Collection/5", ["gid://shopify/Product/hat", "gid://shopify/Product/sandals"]
        )
        client.publish.assert_awaited_once_with("gid://shopify/Collection/5", ["gid://shopify/Publication/1"])

    @pytest.mark.asyncio
    async def test_run_summary(self):
        """Debe resumir creadas, omitidas y fallidas."""
        client = _target_client()
        client.collections.get_collection_by_handle = AsyncMock(side_effect=[None, {"id": "existing"}])
        importer = CollectionSheetImporter(client, kind="custom")
        rows = [{"Handle": "a", "Title": "A"}, {"Handle": "b", "Title": "B"}, {"Handle": "c"}]

        with patch(
            "store_migrator.services.collections.sheet_importer.ensure_metafield_definitions", new=AsyncMock()
        ), patch(SLEEP, new=AsyncMock()), patch(
            "store_migrator.services.collections.sheet_importer.write_json_report", return_value="report.json"
        ):
            summary = await importer.run(rows)

        assert summary["total"] == 3
        assert summary["created"] == 1
        assert summary["skipped"] == 1
        assert summary["failed"] == 1
        assert summary["ok"] is False
        assert summary["reportPath"] == "report.json"


class TestCollectionStoreSync:
    """Tests para la copia de colecciones entre tiendas."""

    def test_map_source_collection(self):
        """Debe omitir metafields SEO globales y reglas por definición."""
        source = {
            "title": "Sale",
            "handle": "sale",
            "descriptionHtml": None,
            "sortOrder": "BEST_SELLING",
            "seo": {"title": "Sale!", "description": None},
            "image": {"url": "https://cdn/sale.png", "altText": "Sale"},
            "ruleSet": {
                "appliedDisjunctively": True,
                "rules": [
                    {"column": "TAG", "relation": "EQUALS", "condition": "sale"},
                    {"column": "PRODUCT_METAFIELD_DEFINITION", "relation": "EQUALS", "condition": "x"},
                ],
            },
            "metafields": {
                "nodes": [
                    {"namespace": "global", "key": "title_tag", "type": "single_line_text_field", "value": "x"},
                    {"namespace": "custom", "key": "rank", "type": "number_integer", "value": 3},
                    {"namespace": "custom", "key": None, "type": "number_integer", "value": 3},
                ]
            },
        }

        collection_input = map_source_collection(source)

        assert collection_input["descriptionHtml"] == ""
        assert collection_input["sortOrder"] == "BEST_SELLING"
        assert collection_input["seo"] == {"title": "Sale!", "description": None}
        assert collection_input["image"] == {"src": "https://cdn/sale.png", "altText": "Sale"}
        assert collection_input["ruleSet"] == {
            "appliedDisjunctively": True,
            "rules": [{"column": "TAG", "relation": "EQUALS", "condition": "sale"}],
        }
        assert collection_input["metafields"] == [
            {"namespace": "custom", "key": "rank", "type": "number_integer", "value": "3"}
        ]

    @pytest.mark.asyncio
    async def test_run_publishes_by_app_handle(self):
        """Debe crear y publicar en las publicaciones con el mismo app handle."""
        sources = [
            {
                "title": "Sale",
                "handle": "sale",
                "resourcePublicationsV2": {"nodes": [{"publication": {"app": {"handle": "online_store"}}}]},
            },
            {"title": "Broken", "handle": "broken"},
        ]

        async def _iter(**kwargs):
            for source in sources:
                yield source

        source_client = MagicMock()
        source_client.collections.iter_collections = MagicMock(side_effect=lambda **kwargs: _iter(**kwargs))
        target_client = MagicMock()
        target_client.get_publications = AsyncMock(
            return_value=[{"id": "gid://shopify/Publication/1", "app": {"handle": "online_store"}}]
        )
        target_client.collections.create_collection = AsyncMock(
            side_effect=[{"id": "gid://shopify/Collection/1"}, ShopifyAPIException("collectionCreate failed")]
        )
        target_client.publish = AsyncMock(return_value={})
        sync = CollectionStoreSync(source_client, target_client)

        with patch("store_migrator.services.collections.store_sync.asyncio.sleep", new=AsyncMock()), patch(
            "store_migrator.services.collections.store_sync.write_json_report", return_value="sync.json"
        ):
            summary = await sync.run()

        assert summary["created"] == 1
        assert summary["failed"] == 1
        assert summary["results"][0]["publications"] == ["gid://shopify/Publication/1"]
        target_client.publish.assert_awaited_once_with("gid://shopify/Collection/1", ["gid://shopify/Publication/1"])
