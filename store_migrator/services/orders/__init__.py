"""
Order migration package (source store → target store).

Each source order is rebuilt on the target store through a draft order,
then its fulfillment holds, fulfillments and refunds are mirrored by
matching line items through SKU / variant title signatures.
"""

from .orchestrator import OrderMigrationOrchestrator, create_order_migration_orchestrator, migrate_orders

__all__ = ["OrderMigrationOrchestrator", "create_order_migration_orchestrator", "migrate_orders"]
