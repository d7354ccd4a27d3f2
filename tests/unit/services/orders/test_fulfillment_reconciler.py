"""Tests unitarios para firmas y replicación de fulfillments / retenciones."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from store_migrator.services.orders.reconcilers.fulfillment_reconciler import (
    FulfillmentReconciler,
    allocate_fulfillment_line_items,
    build_desired_quantities,
    fulfillment_order_signature,
)
from store_migrator.utils.error_handler import ShopifyAPIException


def _foli(foli_id, remaining, sku=None, variant_title=None, title=None):
    return {
        "id": foli_id,
        "remainingQuantity": remaining,
        "lineItem": {"sku": sku, "variantTitle": variant_title, "title": title},
    }


def _fulfillment(*lines):
    return {
        "fulfillmentLineItems": {
            "nodes": [
                {
                    "quantity": quantity,
                    "lineItem": {"sku": line_sku, "title": title, "variant": variant},
                }
                for quantity, line_sku, title, variant in lines
            ]
        }
    }


class TestFulfillmentOrderSignature:
    """Tests para la firma de fulfillment orders."""

    def test_signature_sorted_and_summed(self):
        """Debe sumar por identificador y ordenar alfabéticamente."""
        fo = {
            "lineItems": [
                _foli("1", 2, sku="B-1"),
                _foli("2", 1, sku="A-1"),
                _foli("3", 3, sku="B-1"),
            ]
        }

        assert fulfillment_order_signature(fo) == "A-1:1|B-1:5"

    def test_signature_falls_back_to_variant_title_then_title(self):
        """Debe usar título de variante y luego título cuando no hay SKU."""
        fo = {
            "lineItems": [
                _foli("1", 1, sku="  ", variant_title="Red / L"),
                _foli("2", 4, title=" Gift Card "),
            ]
        }

        assert fulfillment_order_signature(fo) == "Gift Card:4|Red / L:1"

    def test_signature_none_without_identifiers(self):
        """Debe retornar None si ninguna línea tiene identificador."""
        fo = {"lineItems": [_foli("1", 1)]}

        assert fulfillment_order_signature(fo) is None
        assert fulfillment_order_signature({"lineItems": []}) is None

    def test_missing_remaining_counts_as_zero(self):
        """Debe tratar remainingQuantity nulo como 0."""
        fo = {"lineItems": [_foli("1", None, sku="X")]}

        assert fulfillment_order_signature(fo) == "X:0"


class TestDesiredQuantities:
    """Tests para cantidades deseadas desde los fulfillments de origen."""

    def test_variant_values_take_precedence(self):
        """Debe preferir SKU y título de la variante sobre los de la línea."""
        fulfillments = [
            _fulfillment((2, "LINE-SKU", "Shirt", {"sku": "VAR-SKU", "title": "Blue"})),
            _fulfillment((1, "LINE-SKU", "Shirt", {"sku": "VAR-SKU", "title": "Blue"})),
        ]

        by_sku, by_title = build_desired_quantities(fulfillments)

        assert by_sku == {"VAR-SKU": 3}
        assert by_title == {"Blue": 3}

    def test_line_values_used_without_variant(self):
        """Debe caer a SKU y título de la línea cuando no hay variante."""
        by_sku, by_title = build_desired_quantities([_fulfillment((1, "L-1", "Custom item", None))])

        assert by_sku == {"L-1": 1}
        assert by_title == {"Custom item": 1}

    def test_zero_quantities_ignored(self):
        """Debe ignorar líneas con cantidad 0."""
        by_sku, by_title = build_desired_quantities([_fulfillment((0, "L-1", "Item", None))])

        assert by_sku == {}
        assert by_title == {}


class TestAllocateFulfillmentLineItems:
    """Tests para el reparto de cantidades sobre fulfillment orders destino."""

    def test_partial_fulfillment_across_fulfillment_orders(self):
        """Debe repartir la cantidad deseada entre varios fulfillment orders."""
        fulfillment_orders = [
            {"id": "fo-1", "lineItems": [_foli("foli-1", 2, sku="A")]},
            {"id": "fo-2", "lineItems": [_foli("foli-2", 5, sku="A"), _foli("foli-3", 1, sku="B")]},
        ]
        by_sku = {"A": 4}

        groups = allocate_fulfillment_line_items(fulfillment_orders, by_sku, {})

        assert groups == [
            {"fulfillmentOrderId": "fo-1", "fulfillmentOrderLineItems": [{"id": "foli-1", "quantity": 2}]},
            {"fulfillmentOrderId": "fo-2", "fulfillmentOrderLineItems": [{"id": "foli-2", "quantity": 2}]},
        ]
        assert by_sku == {}

    def test_variant_title_bucket_used_when_sku_missing(self):
        """Debe usar el título de variante si la línea destino no tiene SKU."""
        fulfillment_orders = [{"id": "fo-1", "lineItems": [_foli("foli-1", 3, variant_title="Blue")]}]
        by_title = {"Blue": 5}

        groups = allocate_fulfillment_line_items(fulfillment_orders, {}, by_title)

        assert groups[0]["fulfillmentOrderLineItems"] == [{"id": "foli-1", "quantity": 3}]
        assert by_title == {"Blue": 2}

    def test_lines_without_remaining_are_skipped(self):
        """Debe omitir líneas sin cantidad pendiente."""
        fulfillment_orders = [{"id": "fo-1", "lineItems": [_foli("foli-1", 0, sku="A")]}]

        assert allocate_fulfillment_line_items(fulfillment_orders, {"A": 1}, {}) == []


class TestFulfillmentReconciler:
    """Tests para FulfillmentReconciler."""

    @pytest.mark.asyncio
    async def test_mirror_holds_applies_hold_on_matching_signature(self):
        """Debe aplicar la última retención al FO destino con la misma firma."""
        source_orders = MagicMock()
        source_orders.get_fulfillment_orders = AsyncMock(
            return_value=[
                {
                    "id": "src-fo",
                    "fulfillmentHolds": [{"reason": "OTHER"}, {"reason": "AWAITING_PAYMENT", "reasonNotes": None}],
                    "lineItems": [_foli("s1", 2, sku="A")],
                },
                {"id": "src-fo-2", "fulfillmentHolds": [], "lineItems": [_foli("s2", 1, sku="B")]},
            ]
        )
        target_orders = MagicMock()
        target_orders.get_fulfillment_orders = AsyncMock(
            return_value=[
                {"id": "tgt-fo-b", "lineItems": [_foli("t2", 1, sku="B")]},
                {"id": "tgt-fo-a", "lineItems": [_foli("t1", 2, sku="A")]},
            ]
        )
        target_orders.hold_fulfillment_order = AsyncMock(return_value={"id": "tgt-fo-a"})

        reconciler = FulfillmentReconciler(source_orders, target_orders)
        applied = await reconciler.mirror_holds({"id": "src", "name": "#1001"}, {"id": "tgt", "name": "#5001"})

        assert applied == 1
        target_orders.hold_fulfillment_order.assert_awaited_once_with(
            "tgt-fo-a", {"reason": "AWAITING_PAYMENT", "reasonNotes": "Migrated hold from #1001"}
        )

    @pytest.mark.asyncio
    async def test_mirror_holds_without_holds_skips_target_lookup(self):
        """No debe consultar el destino si el origen no tiene retenciones."""
        source_orders = MagicMock()
        source_orders.get_fulfillment_orders = AsyncMock(return_value=[{"id": "fo", "lineItems": []}])
        target_orders = MagicMock()
        target_orders.get_fulfillment_orders = AsyncMock()

        reconciler = FulfillmentReconciler(source_orders, target_orders)
        applied = await reconciler.mirror_holds({"id": "src", "name": "#1"}, {"id": "tgt"})

        assert applied == 0
        target_orders.get_fulfillment_orders.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_mirror_holds_errors_are_not_fatal(self):
        """Debe registrar errores de consulta sin propagarlos."""
        source_orders = MagicMock()
        source_orders.get_fulfillment_orders = AsyncMock(side_effect=ShopifyAPIException("boom"))

        reconciler = FulfillmentReconciler(source_orders, MagicMock())

        assert await reconciler.mirror_holds({"id": "src", "name": "#1"}, {"id": "tgt"}) == 0

    @pytest.mark.asyncio
    async def test_mirror_fulfillments_creates_single_fulfillment(self):
        """Debe crear un único fulfillment con todos los grupos."""
        target_orders = MagicMock()
        target_orders.get_fulfillment_orders = AsyncMock(
            return_value=[{"id": "fo-1", "lineItems": [_foli("foli-1", 3, sku="A"), _foli("foli-2", 2, sku="B")]}]
        )
        target_orders.create_fulfillment = AsyncMock(return_value={"id": "f-1", "displayStatus": "FULFILLED"})
        source_order = {
            "id": "src",
            "name": "#1001",
            "fulfillments": [_fulfillment((2, None, "Item A", {"sku": "A", "title": "Default Title"}))],
        }

        reconciler = FulfillmentReconciler(MagicMock(), target_orders)
        fulfilled = await reconciler.mirror_fulfillments(source_order, {"id": "tgt"})

        assert fulfilled == 2
        target_orders.create_fulfillment.assert_awaited_once_with(
            {
                "notifyCustomer": False,
                "lineItemsByFulfillmentOrder": [
                    {"fulfillmentOrderId": "fo-1", "fulfillmentOrderLineItems": [{"id": "foli-1", "quantity": 2}]}
                ],
            },
            message="Migrated fulfillment for #1001",
        )

    @pytest.mark.asyncio
    async def test_mirror_fulfillments_noop_without_source_fulfillments(self):
        """No debe llamar a la API si el origen no tiene fulfillments."""
        target_orders = MagicMock()
        target_orders.get_fulfillment_orders = AsyncMock()

        reconciler = FulfillmentReconciler(MagicMock(), target_orders)

        assert await reconciler.mirror_fulfillments({"id": "src", "fulfillments": []}, {"id": "tgt"}) == 0
        target_orders.get_fulfillment_orders.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_mirror_fulfillments_user_errors_are_not_fatal(self):
        """Debe devolver 0 si fulfillmentCreateV2 devuelve userErrors."""
        target_orders = MagicMock()
        target_orders.get_fulfillment_orders = AsyncMock(
            return_value=[{"id": "fo-1", "lineItems": [_foli("foli-1", 1, sku="A")]}]
        )
        target_orders.create_fulfillment = AsyncMock(
            side_effect=ShopifyAPIException("invalid", user_errors=[{"field": None, "message": "invalid"}])
        )
        source_order = {"id": "src", "name": "#1", "fulfillments": [_fulfillment((1, "A", "Item", None))]}

        reconciler = FulfillmentReconciler(MagicMock(), target_orders)

        assert await reconciler.mirror_fulfillments(source_order, {"id": "tgt"}) == 0
