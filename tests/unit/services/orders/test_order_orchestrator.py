"""Tests unitarios para OrderMigrationOrchestrator."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from store_migrator.services.orders.orchestrator import OrderMigrationOrchestrator
from store_migrator.utils.error_handler import ShopifyAPIException


def _orchestrator(customer=None, line_items=None, missing=None):
    source_client = MagicMock()
    target_client = MagicMock()
    target_client.orders.create_draft_order = AsyncMock(return_value={"id": "draft-1"})
    target_client.orders.complete_draft_order = AsyncMock(return_value={"id": "order-1", "name": "#5001"})
    target_client.orders.delete_draft_order = AsyncMock(return_value="draft-1")

    customer_resolver = MagicMock()
    customer_resolver.resolve = MagicMock(return_value=customer)
    customer_resolver.load = AsyncMock()

    discount_resolver = MagicMock()
    discount_resolver.ensure_order_codes = AsyncMock(return_value=[])
    discount_resolver.load = AsyncMock()

    line_item_resolver = MagicMock()
    line_item_resolver.resolve = AsyncMock(return_value=(line_items or [], missing or []))

    fulfillment_reconciler = MagicMock()
    fulfillment_reconciler.mirror_holds = AsyncMock(return_value=0)
    fulfillment_reconciler.mirror_fulfillments = AsyncMock(return_value=3)

    refund_reconciler = MagicMock()
    refund_reconciler.mirror_refunds = AsyncMock(return_value=1)

    return OrderMigrationOrchestrator(
        source_client=source_client,
        target_client=target_client,
        customer_resolver=customer_resolver,
        discount_resolver=discount_resolver,
        line_item_resolver=line_item_resolver,
        fulfillment_reconciler=fulfillment_reconciler,
        refund_reconciler=refund_reconciler,
    )


SOURCE_ORDER = {
    "id": "gid://shopify/Order/1",
    "name": "#1001",
    "email": "buyer@example.com",
    "fullyPaid": False,
    "displayFulfillmentStatus": "FULFILLED",
    "fulfillments": [{"id": "f1"}],
}


class TestMigrateOrder:
    """Tests para migrate_order."""

    @pytest.mark.asyncio
    async def test_customer_not_found(self):
        """Debe fallar con customer_not_found si el e-mail no existe en destino."""
        orchestrator = _orchestrator(customer=None)

        result = await orchestrator.migrate_order(SOURCE_ORDER)

        assert result == {"success": False, "reason": "customer_not_found"}

    @pytest.mark.asyncio
    async def test_products_missing(self):
        """Debe fallar con products_missing listando los handles ausentes."""
        orchestrator = _orchestrator(customer={"customerId": "c1"}, missing=["gone"])

        result = await orchestrator.migrate_order(SOURCE_ORDER)

        assert result["reason"] == "products_missing"
        assert result["missing"] == ["gone"]
        orchestrator.target_client.orders.create_draft_order.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_line_items(self):
        """Debe fallar con no_line_items si el pedido no tiene líneas."""
        orchestrator = _orchestrator(customer={"customerId": "c1"})

        result = await orchestrator.migrate_order(SOURCE_ORDER)

        assert result == {"success": False, "reason": "no_line_items"}

    @pytest.mark.asyncio
    async def test_successful_migration(self):
        """Debe completar el borrador con paymentPending y replicar el estado."""
        orchestrator = _orchestrator(customer={"customerId": "c1"}, line_items=[{"variantId": "v1", "quantity": 3}])

        result = await orchestrator.migrate_order(SOURCE_ORDER)

        assert result == {
            "success": True,
            "orderId": "order-1",
            "orderName": "#5001",
            "sourceOrderName": "#1001",
            "hasFulfillments": True,
            "fulfillmentStatus": "FULFILLED",
            "fulfilledQuantity": 3,
            "refundCreated": True,
        }
        orchestrator.target_client.orders.complete_draft_order.assert_awaited_once_with(
            "draft-1", payment_pending=True
        )
        orchestrator.fulfillment_reconciler.mirror_holds.assert_awaited_once()
        orchestrator.target_client.orders.delete_draft_order.assert_awaited_once_with("draft-1")

    @pytest.mark.asyncio
    async def test_draft_order_error(self):
        """Debe fallar con draft_order_error ante userErrors de draftOrderCreate."""
        orchestrator = _orchestrator(customer={"customerId": "c1"}, line_items=[{"variantId": "v1"}])
        orchestrator.target_client.orders.create_draft_order = AsyncMock(
            side_effect=ShopifyAPIException("bad input", user_errors=[{"message": "bad input"}])
        )

        result = await orchestrator.migrate_order(SOURCE_ORDER)

        assert result["reason"] == "draft_order_error"

    @pytest.mark.asyncio
    async def test_complete_error_keeps_draft_id(self):
        """Debe fallar con complete_error e incluir el id del borrador."""
        orchestrator = _orchestrator(customer={"customerId": "c1"}, line_items=[{"variantId": "v1"}])
        orchestrator.target_client.orders.complete_draft_order = AsyncMock(side_effect=ShopifyAPIException("nope"))

        result = await orchestrator.migrate_order(SOURCE_ORDER)

        assert result["reason"] == "complete_error"
        assert result["draftOrderId"] == "draft-1"

    @pytest.mark.asyncio
    async def test_unexpected_exception(self):
        """Debe convertir errores inesperados en reason=exception."""
        orchestrator = _orchestrator(customer={"customerId": "c1"}, line_items=[{"variantId": "v1"}])
        orchestrator.discount_resolver.ensure_order_codes = AsyncMock(side_effect=RuntimeError("kaput"))

        result = await orchestrator.migrate_order(SOURCE_ORDER)

        assert result == {"success": False, "reason": "exception", "error": "kaput"}


class TestRun:
    """Tests para el bucle principal de migración."""

    @pytest.mark.asyncio
    async def test_run_summarizes_results(self, tmp_path):
        """Debe migrar secuencialmente y resumir éxitos y fallos."""
        orchestrator = _orchestrator()

        async def iter_orders(**kwargs):
            yield {"name": "#1"}
            yield {"name": "#2"}

        orchestrator.source_client.orders.iter_orders = iter_orders
        orchestrator.migrate_order = AsyncMock(
            side_effect=[
                {"success": True, "sourceOrderName": "#1", "orderName": "#10", "orderId": "o10"},
                {"success": False, "reason": "products_missing", "missing": ["gone"]},
            ]
        )

        with patch("store_migrator.services.orders.orchestrator.asyncio.sleep", new=AsyncMock()), patch(
            "store_migrator.services.orders.orchestrator.write_json_report", return_value=tmp_path / "r.json"
        ) as write_report:
            summary = await orchestrator.run(limit=2)

        assert summary["total"] == 2
        assert summary["successful"] == 1
        assert summary["failed"] == 1
        assert summary["failures"] == [{"sourceOrder": "#2", "reason": "products_missing", "details": ["gone"]}]
        assert summary["migrated"] == [{"sourceOrderName": "#1", "orderName": "#10", "orderId": "o10"}]
        write_report.assert_called_once()
        orchestrator.customer_resolver.load.assert_awaited_once()
