"""
Borrado de todos los pedidos de la tienda destino (entornos de desarrollo).

Primero se recolectan todos los ids y después se borran uno a uno: borrar
mientras se pagina invalida los cursores y deja pedidos sin borrar.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from store_migrator.core.config import get_settings
from store_migrator.core.logging_config import LogContext, log_migration_operation
from store_migrator.db.shopify_clients import ShopifyStoreClient, create_target_client
from store_migrator.services.common import MigrationProgressTracker, report_timestamp, write_json_report
from store_migrator.utils.error_handler import AppException, ErrorAggregator

logger = logging.getLogger(__name__)


class OrderCleaner:
    """Borra pedidos de la tienda destino."""

    def __init__(self, target_client: ShopifyStoreClient):
        self.target_client = target_client
        self.settings = get_settings()
        self.error_aggregator = ErrorAggregator()

    async def collect_orders(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        orders = []
        async for order in self.target_client.orders.iter_order_ids(page_size=self.settings.ORDER_DELETE_PAGE_SIZE):
            orders.append(order)
            if limit and len(orders) >= limit:
                break
        logger.info(f"📋 Collected {len(orders)} order(s) to delete")
        return orders

    async def run(self, limit: Optional[int] = None, dry_run: bool = False) -> Dict[str, Any]:
        """
        Borra (o lista, con dry_run) los pedidos de destino.

        Returns:
            Dict: ok, found, deletedCount, failedCount, dryRun, reportPath
        """
        job_id = f"order_cleanup_{report_timestamp()}"

        with LogContext(job_id=job_id, operation="order_cleanup"):
            logger.info(f"🚀 Fetching{' ' if dry_run else ' & deleting '}target orders (dryRun={dry_run})")
            log_migration_operation("order_cleanup_start", "target", job_id=job_id, dry_run=dry_run, limit=limit)

            orders = await self.collect_orders(limit)
            tracker = MigrationProgressTracker(total_items=len(orders), operation_name="Order delete", job_id=job_id)
            failed = []

            for order in orders:
                name = order.get("name") or order.get("id")
                if dry_run:
                    logger.info(f"🔍 Would delete {name} ({order.get('id')})")
                    tracker.update(skipped=1)
                    continue

                self.error_aggregator.increment_processed()
                try:
                    await self.target_client.orders.delete_order(order["id"])
                    logger.info(f"🗑️ Deleted: {name} ({order['id']})")
                    tracker.update(created=1)
                except Exception as e:
                    reason = e.message if isinstance(e, AppException) else str(e)
                    logger.error(f"⚠️ Failed to delete {name}: {reason}")
                    self.error_aggregator.add_error(e, {"order": name})
                    failed.append({"id": order.get("id"), "name": name, "reason": reason})
                    tracker.update(errors=1)

                if tracker.should_log_progress():
                    tracker.log_progress()
                await asyncio.sleep(self.settings.ORDER_DELETE_DELAY)

            tracker.log_progress(prefix="🏁 ")
            summary = {
                "job_id": job_id,
                "ok": tracker.stats["errors"] == 0,
                "dryRun": dry_run,
                "found": len(orders),
                "deletedCount": tracker.stats["created"],
                "failedCount": tracker.stats["errors"],
                "failed": failed,
                "errors": self.error_aggregator.get_summary(),
            }
            if dry_run:
                summary["orders"] = [{"id": order.get("id"), "name": order.get("name")} for order in orders]
            summary["reportPath"] = str(write_json_report("order_cleanup_report", summary))

        return summary


async def delete_orders(limit: Optional[int] = None, dry_run: bool = False) -> Dict[str, Any]:
    """Punto de entrada: borrado de pedidos en destino."""
    target_client = create_target_client()
    try:
        await target_client.initialize()
        return await OrderCleaner(target_client).run(limit=limit, dry_run=dry_run)
    finally:
        await target_client.close()
