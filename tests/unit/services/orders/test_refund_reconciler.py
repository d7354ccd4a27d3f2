"""Tests unitarios para la replicación de reembolsos."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from store_migrator.services.orders.reconcilers.refund_reconciler import RefundReconciler, build_refund_line_items
from store_migrator.utils.error_handler import ShopifyAPIException


def _target_line(line_id, refundable, sku=None, variant_title=None, title=None):
    return {
        "id": line_id,
        "sku": sku,
        "title": title,
        "refundableQuantity": refundable,
        "variant": {"sku": sku, "title": variant_title} if (sku or variant_title) else None,
    }


def _refund(*lines, note=None):
    return {
        "id": "gid://shopify/Refund/1",
        "note": note,
        "refundLineItems": {
            "nodes": [
                {"quantity": quantity, "lineItem": {"sku": sku, "title": title, "variant": variant}}
                for quantity, sku, title, variant in lines
            ]
        },
    }


class TestBuildRefundLineItems:
    """Tests para el emparejamiento de líneas de reembolso."""

    def test_match_by_sku(self):
        """Debe emparejar por SKU de la variante."""
        target_lines = [_target_line("t1", 3, sku="A"), _target_line("t2", 1, sku="B")]
        refund = _refund((2, None, "Item A", {"sku": "A", "title": "Default Title"}))

        result = build_refund_line_items(refund, target_lines, {})

        assert result == [{"lineItemId": "t1", "quantity": 2, "restockType": "NO_RESTOCK"}]

    def test_match_by_variant_title_then_product_title(self):
        """Debe caer a título de variante y luego a título de producto."""
        target_lines = [
            _target_line("t1", 1, variant_title="Blue", title="Shirt"),
            _target_line("t2", 1, title="Poster"),
        ]
        refund = _refund(
            (1, None, "Shirt", {"sku": None, "title": "Blue"}),
            (1, None, "Poster", None),
        )

        result = build_refund_line_items(refund, target_lines, {})

        assert [line["lineItemId"] for line in result] == ["t1", "t2"]

    def test_quantity_capped_by_refundable_and_usage(self):
        """No debe superar la cantidad reembolsable ni lo ya usado."""
        target_lines = [_target_line("t1", 3, sku="A")]
        used = {"t1": 2}

        result = build_refund_line_items(_refund((5, "A", "Item", None)), target_lines, used)

        assert result == [{"lineItemId": "t1", "quantity": 1, "restockType": "NO_RESTOCK"}]
        assert used == {"t1": 3}

    def test_quantity_split_across_target_lines(self):
        """Debe repartir una línea origen entre varias líneas destino con el mismo SKU."""
        target_lines = [_target_line("t1", 1, sku="A"), _target_line("t2", 2, sku="A")]

        result = build_refund_line_items(_refund((3, "A", "Item", None)), target_lines, {})

        assert result == [
            {"lineItemId": "t1", "quantity": 1, "restockType": "NO_RESTOCK"},
            {"lineItemId": "t2", "quantity": 2, "restockType": "NO_RESTOCK"},
        ]

    def test_unmatched_lines_are_dropped(self):
        """Debe ignorar líneas sin equivalente en destino."""
        result = build_refund_line_items(_refund((1, "Z", "Unknown", None)), [_target_line("t1", 1, sku="A")], {})

        assert result == []


class TestRefundReconciler:
    """Tests para RefundReconciler."""

    @pytest.mark.asyncio
    async def test_creates_refund_per_source_refund(self):
        """Debe crear un refundCreate por reembolso origen emparejado."""
        target_orders = MagicMock()
        target_orders.get_order_line_items = AsyncMock(return_value=[_target_line("t1", 2, sku="A")])
        target_orders.create_refund = AsyncMock(return_value={"id": "gid://shopify/Refund/9"})
        source_order = {"id": "src", "name": "#1001", "refunds": [_refund((1, "A", "Item", None))]}

        reconciler = RefundReconciler(target_orders)
        created = await reconciler.mirror_refunds(source_order, {"id": "tgt"})

        assert created == 1
        target_orders.create_refund.assert_awaited_once_with(
            {
                "orderId": "tgt",
                "note": "Migrated refund from #1001",
                "notify": False,
                "refundLineItems": [{"lineItemId": "t1", "quantity": 1, "restockType": "NO_RESTOCK"}],
            }
        )

    @pytest.mark.asyncio
    async def test_refund_without_matches_is_skipped(self):
        """No debe crear reembolsos sin líneas emparejadas."""
        target_orders = MagicMock()
        target_orders.get_order_line_items = AsyncMock(return_value=[])
        target_orders.create_refund = AsyncMock()
        source_order = {"id": "src", "name": "#1", "refunds": [_refund((1, "A", "Item", None), note="Damaged")]}

        reconciler = RefundReconciler(target_orders)

        assert await reconciler.mirror_refunds(source_order, {"id": "tgt"}) == 0
        target_orders.create_refund.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_refund_errors_are_not_fatal(self):
        """Debe registrar userErrors de refundCreate y continuar."""
        target_orders = MagicMock()
        target_orders.get_order_line_items = AsyncMock(return_value=[_target_line("t1", 2, sku="A")])
        target_orders.create_refund = AsyncMock(
            side_effect=ShopifyAPIException("refund failed", user_errors=[{"message": "refund failed"}])
        )
        source_order = {"id": "src", "name": "#1", "refunds": [_refund((1, "A", "Item", None))]}

        reconciler = RefundReconciler(target_orders)

        assert await reconciler.mirror_refunds(source_order, {"id": "tgt"}) == 0

    @pytest.mark.asyncio
    async def test_no_refunds_no_calls(self):
        """No debe consultar el destino si el origen no tiene reembolsos."""
        target_orders = MagicMock()
        target_orders.get_order_line_items = AsyncMock()

        reconciler = RefundReconciler(target_orders)

        assert await reconciler.mirror_refunds({"id": "src", "refunds": []}, {"id": "tgt"}) == 0
        target_orders.get_order_line_items.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_refund_releases_capacity(self):
        """Un refundCreate fallido no debe consumir la cantidad reembolsable de los siguientes."""
        target_orders = MagicMock()
        target_orders.get_order_line_items = AsyncMock(return_value=[_target_line("t1", 1, sku="A")])
        target_orders.create_refund = AsyncMock(
            side_effect=[ShopifyAPIException("refund failed"), {"id": "gid://shopify/Refund/9"}]
        )
        source_order = {
            "id": "src",
            "name": "#1",
            "refunds": [_refund((1, "A", "Item", None)), _refund((1, "A", "Item", None))],
        }

        reconciler = RefundReconciler(target_orders)

        assert await reconciler.mirror_refunds(source_order, {"id": "tgt"}) == 1
        second_input = target_orders.create_refund.await_args_list[1].args[0]
        assert second_input["refundLineItems"] == [{"lineItemId": "t1", "quantity": 1, "restockType": "NO_RESTOCK"}]
