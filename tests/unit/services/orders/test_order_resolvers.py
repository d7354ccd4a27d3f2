"""Tests unitarios para resolución de clientes, descuentos y líneas de pedido."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from store_migrator.services.orders.resolvers import (
    DiscountCodeResolver,
    LineItemResolver,
    TargetCustomerResolver,
    select_variant,
)
from store_migrator.services.orders.resolvers.discount_resolver import build_basic_code_discount
from store_migrator.utils.error_handler import ShopifyAPIException


def _async_iter(items):
    async def generator(*args, **kwargs):
        for item in items:
            yield item

    return generator


class TestSelectVariant:
    """Tests para la selección de variante destino."""

    VARIANTS = [
        {"id": "v1", "sku": "A-S", "title": "Small", "displayName": "Shirt - Small"},
        {"id": "v2", "sku": "A-M", "title": "Medium", "displayName": "Shirt - Medium"},
    ]

    def test_sku_match_first(self):
        """Debe preferir el SKU aunque el título apunte a otra variante."""
        assert select_variant(self.VARIANTS, "A-M", "Small") == ("v2", "SKU")

    def test_title_or_display_name_match(self):
        """Debe emparejar por título o displayName si el SKU no existe."""
        assert select_variant(self.VARIANTS, "NOPE", "Medium") == ("v2", "Title")
        assert select_variant(self.VARIANTS, None, "Shirt - Small") == ("v1", "Title")

    def test_first_variant_fallback(self):
        """Debe usar la primera variante como último recurso."""
        assert select_variant(self.VARIANTS, None, "Large") == ("v1", "First variant (fallback)")

    def test_no_variants(self):
        """Debe retornar (None, None) si el producto no tiene variantes."""
        assert select_variant([], "A", "B") == (None, None)


class TestTargetCustomerResolver:
    """Tests para el mapa de clientes destino."""

    @pytest.mark.asyncio
    async def test_load_indexes_by_lowercase_email_with_company(self):
        """Debe indexar por e-mail en minúsculas e incluir la empresa."""
        client = MagicMock()
        client.iter_customers = _async_iter(
            [
                {
                    "id": "c1",
                    "email": "Buyer@Example.com",
                    "companyContactProfiles": [{"company": {"id": "co1", "name": "ACME"}}],
                },
                {"id": "c2", "email": "retail@example.com", "companyContactProfiles": []},
                {"id": "c3", "email": None},
            ]
        )

        resolver = TargetCustomerResolver(client)
        customers = await resolver.load()

        assert customers == {
            "buyer@example.com": {"customerId": "c1", "companyId": "co1", "companyName": "ACME"},
            "retail@example.com": {"customerId": "c2", "companyId": None, "companyName": None},
        }
        assert resolver.resolve("BUYER@example.com")["customerId"] == "c1"
        assert resolver.resolve(None) is None


class TestDiscountCodeResolver:
    """Tests para los códigos de descuento de pedidos."""

    def test_build_percentage_discount(self):
        """Debe convertir el porcentaje a fracción."""
        discount = build_basic_code_discount("SAVE10", 10, True)

        assert discount["title"] == "Migrated: SAVE10"
        assert discount["customerGets"]["value"] == {"percentage": 0.1}
        assert discount["customerGets"]["items"] == {"all": True}
        assert discount["customerSelection"] == {"all": True}

    def test_build_fixed_amount_discount(self):
        """Debe usar discountAmount para importes fijos."""
        discount = build_basic_code_discount("FIVE", 5.0, False)

        assert discount["customerGets"]["value"] == {
            "discountAmount": {"amount": 5.0, "appliesOnEachItem": False}
        }

    @pytest.mark.asyncio
    async def test_ensure_order_codes_creates_missing(self):
        """Debe crear los códigos ausentes y devolver los aplicables."""
        client = MagicMock()
        client.create_discount = AsyncMock(side_effect=["gid://shopify/DiscountCodeNode/2", ShopifyAPIException("x")])
        resolver = DiscountCodeResolver(client)
        resolver.discounts = {"existing": "gid://shopify/DiscountCodeNode/1"}
        order = {
            "discountApplications": {
                "nodes": [
                    {"code": "EXISTING", "value": {"percentage": 10.0}},
                    {"code": "NEW", "value": {"amount": "7.50", "currencyCode": "USD"}},
                    {"code": "BROKEN", "value": {"percentage": 5.0}},
                    {},
                ]
            }
        }

        codes = await resolver.ensure_order_codes(order)

        assert codes == ["EXISTING", "NEW"]
        assert resolver.discounts["new"] == "gid://shopify/DiscountCodeNode/2"
        first_call = client.create_discount.await_args_list[0]
        assert first_call.args[0] == "discountCodeBasicCreate"
        assert first_call.args[1]["customerGets"]["value"]["discountAmount"]["amount"] == 7.5


class TestLineItemResolver:
    """Tests para la resolución de líneas de pedido."""

    @pytest.mark.asyncio
    async def test_resolve_maps_lines_and_caches_products(self):
        """Debe mapear líneas y consultar cada handle una sola vez."""
        product_client = MagicMock()
        product_client.get_product_by_handle = AsyncMock(
            return_value={"id": "p1", "variants": [{"id": "v1", "sku": "A", "title": "Default Title"}]}
        )
        order = {
            "currencyCode": "USD",
            "lineItems": {
                "nodes": [
                    {
                        "title": "Item",
                        "quantity": 2,
                        "variant": {"sku": "A", "title": "Default Title", "product": {"handle": "item"}},
                        "originalUnitPriceSet": {"shopMoney": {"amount": "9.99"}},
                        "customAttributes": [{"key": "engraving", "value": "Hi"}],
                    },
                    {
                        "title": "Item again",
                        "quantity": 1,
                        "variant": {"sku": "A", "title": "Default Title", "product": {"handle": "item"}},
                        "originalUnitPriceSet": None,
                        "customAttributes": [],
                    },
                ]
            },
        }

        resolver = LineItemResolver(product_client)
        line_items, missing = await resolver.resolve(order)

        assert missing == []
        assert line_items == [
            {
                "variantId": "v1",
                "quantity": 2,
                "originalUnitPrice": "9.99",
                "customAttributes": [{"key": "engraving", "value": "Hi"}],
            },
            {"variantId": "v1", "quantity": 1, "originalUnitPrice": "0"},
        ]
        product_client.get_product_by_handle.assert_awaited_once_with("item")

    @pytest.mark.asyncio
    async def test_resolve_collects_missing(self):
        """Debe acumular líneas sin producto, sin handle o con error de consulta."""
        product_client = MagicMock()
        product_client.get_product_by_handle = AsyncMock(side_effect=[None, ShopifyAPIException("down")])
        order = {
            "lineItems": {
                "nodes": [
                    {"title": "Custom", "quantity": 1, "variant": None},
                    {"title": "Gone", "quantity": 1, "variant": {"product": {"handle": "gone"}}},
                    {"title": "Broken", "quantity": 1, "variant": {"product": {"handle": "broken"}}},
                ]
            }
        }

        resolver = LineItemResolver(product_client)
        line_items, missing = await resolver.resolve(order)

        assert line_items == []
        assert missing == ["Custom", "gone", "broken"]
