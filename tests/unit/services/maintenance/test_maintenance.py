"""Tests unitarios para las tareas de limpieza de la tienda destino."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from store_migrator.services.maintenance.metafield_cleanup import MetafieldDefinitionCleaner, matches_filters
from store_migrator.services.maintenance.order_cleanup import OrderCleaner
from store_migrator.utils.error_handler import ShopifyAPIException

METAFIELD_CLEANUP = "store_migrator.services.maintenance.metafield_cleanup"
ORDER_CLEANUP = "store_migrator.services.maintenance.order_cleanup"


async def _iterate(items):
    for item in items:
        yield item


def _definitions():
    return [
        {"id": "gid://shopify/MetafieldDefinition/1", "namespace": "magento", "key": "color", "type": {"name": "x"}},
        {"id": "gid://shopify/MetafieldDefinition/2", "namespace": "magento", "key": "size", "type": {"name": "x"}},
        {"id": "gid://shopify/MetafieldDefinition/3", "namespace": "custom", "key": "color", "type": {"name": "x"}},
        {"id": "gid://shopify/MetafieldDefinition/4", "namespace": "magento", "key": "color_code", "type": None},
    ]


class TestMetafieldDefinitionCleaner:
    """Tests para MetafieldDefinitionCleaner."""

    def test_filters(self):
        """Debe filtrar por namespace y prefijo de clave."""
        definition = {"namespace": "magento", "key": "color_code"}

        assert matches_filters(definition, None, None) is True
        assert matches_filters(definition, "magento", "color") is True
        assert matches_filters(definition, "custom", None) is False
        assert matches_filters(definition, None, "size") is False

    @pytest.mark.asyncio
    async def test_deletes_filtered_definitions(self, tmp_path):
        """Debe borrar las definiciones filtradas y contar userErrors como fallos."""
        client = MagicMock()
        client.metafields.iter_definitions = MagicMock(return_value=_iterate(_definitions()))
        client.metafields.delete_definition = AsyncMock(
            side_effect=[
                {"deletedDefinitionId": "gid://shopify/MetafieldDefinition/1", "userErrors": []},
                {"deletedDefinitionId": None, "userErrors": [{"field": ["id"], "message": "Definition is in use"}]},
            ]
        )
        cleaner = MetafieldDefinitionCleaner(
            client, owner_type="productvariant", namespace="magento", key_prefix="color", limit=0, delete_values=False
        )

        with patch(f"{METAFIELD_CLEANUP}.asyncio.sleep", new=AsyncMock()), patch(
            f"{METAFIELD_CLEANUP}.write_json_report", return_value=tmp_path / "cleanup.json"
        ):
            summary = await cleaner.run()

        client.metafields.iter_definitions.assert_called_once_with("PRODUCTVARIANT")
        assert summary["found"] == 2
        assert summary["deletedCount"] == 1
        assert summary["failedCount"] == 1
        assert summary["results"][1]["reason"] == "id: Definition is in use"
        client.metafields.delete_definition.assert_any_await("gid://shopify/MetafieldDefinition/4", False)

    @pytest.mark.asyncio
    async def test_dry_run_respects_limit(self, tmp_path):
        """Debe listar sin borrar y cortar en el límite."""
        client = MagicMock()
        client.metafields.iter_definitions = MagicMock(return_value=_iterate(_definitions()))
        client.metafields.delete_definition = AsyncMock()
        cleaner = MetafieldDefinitionCleaner(client, owner_type="PRODUCT", namespace="", key_prefix="", limit=3)

        with patch(f"{METAFIELD_CLEANUP}.write_json_report", return_value=tmp_path / "cleanup.json"):
            summary = await cleaner.run(dry_run=True)

        assert summary["dryRun"] is True
        assert summary["found"] == 3
        assert summary["deletedCount"] == 0
        assert {result["status"] for result in summary["results"]} == {"preview"}
        client.metafields.delete_definition.assert_not_called()


class TestOrderCleaner:
    """Tests para OrderCleaner."""

    @pytest.mark.asyncio
    async def test_collects_then_deletes(self, tmp_path):
        """Debe recolectar todos los pedidos antes de borrar y continuar ante errores."""
        client = MagicMock()
        orders = [{"id": f"gid://shopify/Order/{index}", "name": f"#{1000 + index}"} for index in range(1, 4)]
        client.orders.iter_order_ids = MagicMock(return_value=_iterate(orders))
        client.orders.delete_order = AsyncMock(
            side_effect=[
                "gid://shopify/Order/1",
                ShopifyAPIException("Order cannot be deleted"),
                "gid://shopify/Order/3",
            ]
        )

        with patch(f"{ORDER_CLEANUP}.asyncio.sleep", new=AsyncMock()), patch(
            f"{ORDER_CLEANUP}.write_json_report", return_value=tmp_path / "orders.json"
        ):
            summary = await OrderCleaner(client).run()

        client.orders.iter_order_ids.assert_called_once_with(page_size=50)
        assert summary["found"] == 3
        assert summary["deletedCount"] == 2
        assert summary["failedCount"] == 1
        assert summary["failed"] == [
            {"id": "gid://shopify/Order/2", "name": "#1002", "reason": "Order cannot be deleted"}
        ]

    @pytest.mark.asyncio
    async def test_dry_run_lists_orders(self, tmp_path):
        """Debe listar los pedidos sin borrarlos."""
        client = MagicMock()
        orders = [{"id": "gid://shopify/Order/1", "name": "#1001"}, {"id": "gid://shopify/Order/2", "name": "#1002"}]
        client.orders.iter_order_ids = MagicMock(return_value=_iterate(orders))
        client.orders.delete_order = AsyncMock()

        with patch(f"{ORDER_CLEANUP}.write_json_report", return_value=tmp_path / "orders.json"):
            summary = await OrderCleaner(client).run(limit=1, dry_run=True)

        assert summary["found"] == 1
        assert summary["orders"] == [{"id": "gid://shopify/Order/1", "name": "#1001"}]
        client.orders.delete_order.assert_not_called()
