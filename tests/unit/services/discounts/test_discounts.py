"""Tests unitarios para la importación de descuentos."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from store_migrator.services.discounts.importer import DiscountSheetImporter
from store_migrator.services.discounts.input_builder import DiscountInputBuilder
from store_migrator.services.discounts.sheet_parser import (
    build_basic_value,
    build_purchase_type_flags,
    build_usage_fields,
    merge_discount_rows,
)
from store_migrator.utils.error_handler import ShopifyAPIException, ValidationException

BUILDER = "store_migrator.services.discounts.input_builder"
IMPORTER = "store_migrator.services.discounts.importer"


def _code_row(**overrides):
    row = {
        "Top Row": "TRUE",
        "Method": "Code",
        "Type": "Amount off Products",
        "Title": "Summer",
        "Code": "SUMMER10",
        "Starts At": "2024-06-01 00:00:00 +0200",
        "Ends At": None,
        "Value Type": "Percentage",
        "Value": "-10.0",
        "Applies To: Type": "Products",
        "Applies To: Values": "shirt, gid://shopify/Product/9",
        "Eligibility: Customer Type": None,
        "Limit Total Times": 100,
        "Limit One Use Per Customer": "TRUE",
        "Combines with Product Discounts": "TRUE",
    }
    row.update(overrides)
    return row


def _target_client():
    client = MagicMock()
    client.products.get_product_id_by_handle = AsyncMock(
        side_effect=lambda handle: "gid://shopify/Product/1" if handle == "shirt" else None
    )
    client.products.get_variant_id_by_sku = AsyncMock(return_value="gid://shopify/ProductVariant/5")
    client.collections.get_collection_id_by_handle = AsyncMock(return_value="gid://shopify/Collection/3")
    client.customers.find_segment_id = AsyncMock(return_value=None)
    client.customers.find_customer_by_email = AsyncMock(return_value=None)
    client.discounts.get_code_discount_id = AsyncMock(return_value=None)
    client.discounts.find_automatic_discounts = AsyncMock(return_value=[])
    client.discounts.create_discount = AsyncMock(return_value="gid://shopify/DiscountCodeNode/1")
    return client


class TestDiscountSheetParser:
    """Tests para la fusión de filas y los campos escalares."""

    def test_merges_continuation_rows(self):
        """Debe completar campos vacíos y unir listas sin duplicados."""
        rows = [
            _code_row(**{"Applies To: Values": "shirt"}),
            {"Top Row": None, "Applies To: Values": "shirt|hat", "Ends At": "2024-07-01 00:00:00 +0200"},
            _code_row(Code="OTHER", **{"Top Row": "TRUE"}),
        ]

        merged = merge_discount_rows(rows)

        assert len(merged) == 2
        assert merged[0]["Applies To: Values"] == "shirt, hat"
        assert merged[0]["Ends At"] == "2024-07-01 00:00:00 +0200"
        assert merged[0]["__mergedRows"] == "1,2"
        assert merged[1]["__mergedRows"] == "3"
        assert "__mergeError" not in merged[0]

    def test_flags_inconsistent_groups(self):
        """Debe marcar grupos con distintos Applies To: Type."""
        rows = [_code_row(), {"Top Row": None, "Applies To: Type": "Collections"}]

        merged = merge_discount_rows(rows)

        assert "Applies To: Type" in merged[0]["__mergeError"]

    def test_purchase_type_and_usage(self):
        """Debe respetar el tipo de compra y limitar recurringCycleLimit a suscripciones."""
        assert build_purchase_type_flags({"Purchase Type": "One-time purchase"}) == {
            "appliesOnOneTimePurchase": True,
            "appliesOnSubscription": False,
        }
        assert build_purchase_type_flags({"Purchase Type": "Subscription"}) == {
            "appliesOnOneTimePurchase": False,
            "appliesOnSubscription": True,
        }
        assert build_purchase_type_flags({"Purchase Type": None}) == {}

        usage = build_usage_fields(
            {
                "Purchase Type": "One-time purchase",
                "Limit Uses Per Order": 2,
                "Purchase Type: Recurring Subscription Limit": 3,
            }
        )
        assert usage == {"usesPerOrderLimit": "2"}

    def test_basic_value(self):
        """Debe convertir puntos porcentuales y rechazar porcentajes mayores a 100."""
        assert build_basic_value({"Value Type": "Percentage", "Value": "-20"}) == {"percentage": 0.2}
        assert build_basic_value({"Value Type": "Fixed Amount", "Value": "-5.5"}) == {
            "discountAmount": {"amount": "5.5", "appliesOnEachItem": False}
        }
        with pytest.raises(ValidationException):
            build_basic_value({"Value Type": "Percentage", "Value": 150})


class TestDiscountInputBuilder:
    """Tests para DiscountInputBuilder."""

    @pytest.mark.asyncio
    async def test_code_basic_input(self):
        """Debe construir discountCodeBasicCreate resolviendo handles y conservando gids."""
        client = _target_client()

        with patch(f"{BUILDER}.asyncio.sleep", new=AsyncMock()):
            mutation, variables = await DiscountInputBuilder(client).build(_code_row())

        assert mutation == "discountCodeBasicCreate"
        discount = variables["basicCodeDiscount"]
        assert discount["code"] == "SUMMER10"
        assert discount["startsAt"] == "2024-06-01T00:00:00+02:00"
        assert discount["context"] == {"all": "ALL"}
        assert discount["customerGets"]["items"] == {
            "products": {"productsToAdd": ["gid://shopify/Product/1", "gid://shopify/Product/9"]}
        }
        assert discount["customerGets"]["value"] == {"percentage": 0.1}
        assert discount["usageLimit"] == 100
        assert discount["appliesOncePerCustomer"] is True
        assert discount["combinesWith"] == {
            "productDiscounts": True,
            "orderDiscounts": False,
            "shippingDiscounts": False,
        }
        client.products.get_product_id_by_handle.assert_awaited_once_with("shirt")

    @pytest.mark.asyncio
    async def test_automatic_bxgy_drops_purchase_type(self):
        """Debe usar el importe de Summary y descartar Purchase Type en BXGY automático."""
        row = {
            "Method": "Automatic",
            "Type": "Buy X Get Y",
            "Title": "Spend and get",
            "Starts At": "2024-06-01 00:00:00 +0000",
            "Summary": "Spend $80.00 on Shirts get 1 item free",
            "Buy X Get Y: Customer Buys Type": "Collections",
            "Buy X Get Y: Customer Buys Values": "shirts",
            "Applies To: Type": "Product Variants",
            "Applies To: Values": "SKU-1",
            "Value Type": "Free",
            "Purchase Type": "Both",
            "Limit Uses Per Order": 1,
            "Limit Total Times": 10,
        }

        with patch(f"{BUILDER}.asyncio.sleep", new=AsyncMock()):
            mutation, variables = await DiscountInputBuilder(_target_client()).build(row)

        assert mutation == "discountAutomaticBxgyCreate"
        discount = variables["automaticBxgyDiscount"]
        assert "code" not in discount
        assert discount["customerBuys"] == {
            "items": {"collections": {"add": ["gid://shopify/Collection/3"]}},
            "value": {"amount": "80.00"},
        }
        assert discount["customerGets"] == {
            "items": {"products": {"productVariantsToAdd": ["gid://shopify/ProductVariant/5"]}},
            "value": {"discountOnQuantity": {"quantity": "1", "effect": {"percentage": 1}}},
        }
        assert discount["usesPerOrderLimit"] == "1"
        assert "usageLimit" not in discount

    @pytest.mark.asyncio
    async def test_free_shipping_with_countries(self):
        """Debe construir el envío gratis con países y precio máximo."""
        row = {
            "Method": "Code",
            "Type": "Free Shipping",
            "Title": "Ship",
            "Code": "SHIP",
            "Starts At": "2024-06-01 00:00:00 +0000",
            "Free Shipping: Country Codes": "es, pt",
            "Free Shipping: Over Amount": "50",
            "Minimum Requirement": "Minimum purchase amount",
            "Minimum Value": "30",
        }

        with patch(f"{BUILDER}.asyncio.sleep", new=AsyncMock()):
            mutation, variables = await DiscountInputBuilder(_target_client()).build(row)

        assert mutation == "discountCodeFreeShippingCreate"
        discount = variables["freeShippingCodeDiscount"]
        assert discount["destination"] == {"countries": {"add": ["ES", "PT"]}}
        assert discount["maximumShippingPrice"] == "50"
        assert discount["minimumRequirement"] == {"subtotal": {"greaterThanOrEqualToSubtotal": "30"}}

    @pytest.mark.asyncio
    async def test_validation_errors(self):
        """Debe rechazar App, campos obligatorios faltantes y clientes sin resolver."""
        builder = DiscountInputBuilder(_target_client())

        with patch(f"{BUILDER}.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(ValidationException):
                await builder.build(_code_row(Type="App"))
            with pytest.raises(ValidationException) as missing:
                await builder.build(_code_row(Code=None))
            assert "code" in missing.value.message
            with pytest.raises(ValidationException):
                await builder.build(
                    _code_row(
                        **{
                            "Eligibility: Customer Type": "Specific customers",
                            "Eligibility: Customer Values": "ghost@example.com",
                        }
                    )
                )


class TestDiscountSheetImporter:
    """Tests para DiscountSheetImporter."""

    @pytest.mark.asyncio
    async def test_run_creates_skips_and_fails(self):
        """Debe crear, omitir DELETE y existentes, y registrar fallos en el reporte."""
        client = _target_client()
        client.discounts.get_code_discount_id.side_effect = lambda code: (
            "gid://shopify/DiscountCodeNode/7" if code == "OLD" else None
        )
        client.discounts.find_automatic_discounts.return_value = [
            {"id": "gid://shopify/DiscountAutomaticNode/2", "title": "Auto 10 percent"}
        ]
        client.discounts.create_discount.side_effect = [
            "gid://shopify/DiscountCodeNode/1",
            "gid://shopify/DiscountAutomaticNode/3",
            ShopifyAPIException("Code must be unique"),
        ]
        rows = [
            _code_row(),
            _code_row(Code="OLD"),
            _code_row(Code="GONE", Command="DELETE"),
            _code_row(Method="Automatic", Code=None, Title="Auto 10"),
            _code_row(Code="DUP"),
        ]

        with patch(f"{BUILDER}.asyncio.sleep", new=AsyncMock()), patch(
            f"{IMPORTER}.asyncio.sleep", new=AsyncMock()
        ), patch(f"{IMPORTER}.ExcelReportWriter") as writer_cls:
            writer = writer_cls.return_value
            writer.rows = []
            writer.add_row.side_effect = lambda row: writer.rows.append(row)
            writer.save = AsyncMock(return_value="reports/discounts.xlsx")
            summary = await DiscountSheetImporter(client).run(rows)

        assert summary["createdCount"] == 2
        assert summary["skippedCount"] == 2
        assert summary["failedCount"] == 1
        assert summary["ok"] is False
        assert summary["reportCount"] == 5
        statuses = [row["Status"] for row in writer.rows]
        assert statuses == ["SUCCESS", "SUCCESS", "SUCCESS", "SUCCESS", "FAILED"]
        assert writer.rows[2]["Reason"] == "Skipped: Command=DELETE"
        assert writer.rows[0]["Mutation Used"] == "discountCodeBasicCreate"
        assert writer.rows[3]["Mutation Used"] == "discountAutomaticBasicCreate"
        assert writer.rows[4]["Reason"] == "Code must be unique"
        assert "__mergedRows" not in writer.rows[0]
