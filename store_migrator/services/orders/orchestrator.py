"""
OrderMigrationOrchestrator - coordina la migración de pedidos entre tiendas.

Flujo por pedido:
1. Cliente destino por e-mail (B2B: empresa del primer perfil de contacto)
2. Líneas: producto por handle, variante por SKU / título / primera
3. Códigos de descuento (se crean los que faltan)
4. draftOrderCreate + draftOrderComplete (paymentPending si no estaba pagado)
5. Retenciones, fulfillments y reembolsos replicados desde origen
6. draftOrderDelete
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from store_migrator.core.config import get_settings
from store_migrator.core.logging_config import LogContext, log_migration_operation
from store_migrator.db.shopify_clients import ShopifyStoreClient, create_source_client, create_target_client
from store_migrator.services.common import MigrationProgressTracker, write_json_report
from store_migrator.utils.error_handler import ErrorAggregator, ShopifyAPIException

from .converters import build_draft_order_input
from .reconcilers import FulfillmentReconciler, RefundReconciler
from .resolvers import DiscountCodeResolver, LineItemResolver, TargetCustomerResolver

logger = logging.getLogger(__name__)


class OrderMigrationOrchestrator:
    """
    Orquesta la migración de pedidos de la tienda origen a la tienda destino.

    Cada servicio tiene una única responsabilidad y se inyecta en el constructor.
    """

    def __init__(
        self,
        source_client: ShopifyStoreClient,
        target_client: ShopifyStoreClient,
        customer_resolver: TargetCustomerResolver,
        discount_resolver: DiscountCodeResolver,
        line_item_resolver: LineItemResolver,
        fulfillment_reconciler: FulfillmentReconciler,
        refund_reconciler: RefundReconciler,
    ):
        self.source_client = source_client
        self.target_client = target_client
        self.customer_resolver = customer_resolver
        self.discount_resolver = discount_resolver
        self.line_item_resolver = line_item_resolver
        self.fulfillment_reconciler = fulfillment_reconciler
        self.refund_reconciler = refund_reconciler
        self.settings = get_settings()
        self.error_aggregator = ErrorAggregator()

    async def prepare(self):
        """Carga los mapas de clientes y descuentos de destino."""
        logger.info("📋 Fetching target store data...")
        await self.customer_resolver.load()
        await self.discount_resolver.load()

    async def migrate_order(self, order: Dict[str, Any]) -> Dict[str, Any]:
        """
        Migra un pedido origen.

        Args:
            order: Pedido origen (SOURCE_ORDERS_QUERY)

        Returns:
            Dict: {"success": bool, "reason": str, ...}
        """
        name = order.get("name")
        total = (order.get("totalPriceSet") or {}).get("presentmentMoney") or {}
        logger.info(f"▶ Migrating order: {name}")
        logger.info(
            f"📧 Customer: {order.get('email') or 'No email'} | 💰 Total: {total.get('amount')} "
            f"{total.get('currencyCode')} | 💳 {order.get('displayFinancialStatus')} | "
            f"📦 {order.get('displayFulfillmentStatus')}"
        )

        target_customer = self.customer_resolver.resolve(order.get("email"))
        if not target_customer:
            logger.warning(f"⚠️ Customer not found in target store: {order.get('email')}")
            return {"success": False, "reason": "customer_not_found"}

        logger.info(f"👤 Found customer: {target_customer['customerId']}")
        if target_customer.get("companyId"):
            logger.info(f"🏢 Company: {target_customer.get('companyName')}")

        line_items, missing = await self.line_item_resolver.resolve(order)
        if missing:
            logger.error(f"❌ Missing products: {', '.join(str(item) for item in missing)}")
            return {"success": False, "reason": "products_missing", "missing": missing}
        if not line_items:
            logger.error("❌ No valid line items to migrate")
            return {"success": False, "reason": "no_line_items"}

        try:
            discount_codes = await self.discount_resolver.ensure_order_codes(order)
            draft_input = build_draft_order_input(order, target_customer, line_items, discount_codes)

            logger.info("📝 Creating draft order...")
            try:
                draft_order = await self.target_client.orders.create_draft_order(draft_input)
            except ShopifyAPIException as e:
                logger.error(f"❌ Draft order errors: {e.message}")
                return {"success": False, "reason": "draft_order_error", "error": e.message}

            draft_order_id = draft_order.get("id")
            logger.info(f"✅ Draft order created: {draft_order_id}")

            logger.info("⚙️ Completing draft order...")
            try:
                target_order = await self.target_client.orders.complete_draft_order(
                    draft_order_id, payment_pending=not order.get("fullyPaid")
                )
            except ShopifyAPIException as e:
                logger.error(f"❌ Complete order errors: {e.message}")
                return {
                    "success": False,
                    "reason": "complete_error",
                    "draftOrderId": draft_order_id,
                    "error": e.message,
                }

            logger.info(f"✅ Order completed: {target_order.get('name')} ({target_order.get('id')})")

            await self.fulfillment_reconciler.mirror_holds(order, target_order)
            fulfilled_quantity = await self.fulfillment_reconciler.mirror_fulfillments(order, target_order)
            refunds_created = await self.refund_reconciler.mirror_refunds(order, target_order)

            logger.info("🗑️ Deleting draft order...")
            try:
                await self.target_client.orders.delete_draft_order(draft_order_id)
                logger.info("✅ Draft order deleted")
            except ShopifyAPIException as e:
                logger.warning(f"⚠️ Could not delete draft order {draft_order_id}: {e.message}")

            return {
                "success": True,
                "orderId": target_order.get("id"),
                "orderName": target_order.get("name"),
                "sourceOrderName": name,
                "hasFulfillments": bool(order.get("fulfillments")),
                "fulfillmentStatus": order.get("displayFulfillmentStatus"),
                "fulfilledQuantity": fulfilled_quantity,
                "refundCreated": refunds_created > 0,
            }

        except Exception as e:
            logger.error(f"❌ Migration failed for {name}: {e}")
            self.error_aggregator.add_error(e, {"order": name})
            return {"success": False, "reason": "exception", "error": str(e)}

    async def run(self, limit: Optional[int] = None, query: Optional[str] = None) -> Dict[str, Any]:
        """
        Migra todos los pedidos de origen de forma secuencial.

        Args:
            limit: Máximo de pedidos a migrar
            query: Filtro de búsqueda de Shopify (ej. "created_at:>=2024-01-01")

        Returns:
            Dict: Resumen (total, successful, failed, failures, reportPath)
        """
        job_id = f"orders_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}"
        tracker = MigrationProgressTracker(total_items=limit, operation_name="Order migration", job_id=job_id)
        failures: List[Dict[str, Any]] = []
        migrated: List[Dict[str, Any]] = []

        with LogContext(job_id=job_id, operation="orders"):
            logger.info("🚀 Starting order migration")
            log_migration_operation("orders_start", "source", job_id=job_id, limit=limit, query=query)
            await self.prepare()

            async for order in self.source_client.orders.iter_orders(
                page_size=self.settings.ORDER_PAGE_SIZE, query=query, limit=limit
            ):
                self.error_aggregator.increment_processed()
                result = await self.migrate_order(order)

                if result["success"]:
                    tracker.update(created=1)
                    migrated.append(
                        {key: result.get(key) for key in ("sourceOrderName", "orderName", "orderId")}
                    )
                    logger.info(f"✅ SUCCESS: {result['sourceOrderName']} → {result['orderName']}")
                else:
                    tracker.update(errors=1)
                    failures.append(
                        {
                            "sourceOrder": order.get("name"),
                            "reason": result.get("reason"),
                            "details": result.get("missing") or result.get("error") or "",
                        }
                    )
                    logger.warning(f"❌ FAILED: {order.get('name')} ({result.get('reason')})")

                if tracker.should_log_progress():
                    tracker.log_progress()
                await asyncio.sleep(self.settings.ORDER_DELAY)

            tracker.log_progress(prefix="🏁 ")
            summary = {
                "job_id": job_id,
                "total": tracker.processed_items,
                "successful": tracker.stats["created"],
                "failed": tracker.stats["errors"],
                "failures": failures,
                "migrated": migrated,
                "errors": self.error_aggregator.get_summary(),
            }
            summary["reportPath"] = str(write_json_report("orders_migration_report", summary))

            logger.info(
                f"🎉 Migration complete: {summary['total']} orders, "
                f"✅ {summary['successful']} successful, ❌ {summary['failed']} failed"
            )
            for failure in failures:
                details = f" ({failure['details']})" if failure["details"] else ""
                logger.warning(f"   - {failure['sourceOrder']}: {failure['reason']}{details}")

        return summary


def create_order_migration_orchestrator(
    source_client: ShopifyStoreClient, target_client: ShopifyStoreClient
) -> OrderMigrationOrchestrator:
    """Construye el orquestador con sus servicios sobre clientes ya inicializados."""
    return OrderMigrationOrchestrator(
        source_client=source_client,
        target_client=target_client,
        customer_resolver=TargetCustomerResolver(target_client.customers),
        discount_resolver=DiscountCodeResolver(target_client.discounts),
        line_item_resolver=LineItemResolver(target_client.products),
        fulfillment_reconciler=FulfillmentReconciler(source_client.orders, target_client.orders),
        refund_reconciler=RefundReconciler(target_client.orders),
    )


async def migrate_orders(limit: Optional[int] = None, query: Optional[str] = None) -> Dict[str, Any]:
    """
    Punto de entrada: abre ambas tiendas, migra los pedidos y cierra las sesiones.
    """
    source_client = create_source_client()
    target_client = create_target_client()
    try:
        await source_client.initialize()
        await target_client.initialize()
        orchestrator = create_order_migration_orchestrator(source_client, target_client)
        return await orchestrator.run(limit=limit, query=query)
    finally:
        await source_client.close()
        await target_client.close()
