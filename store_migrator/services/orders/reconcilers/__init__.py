"""
Reconcilers that mirror post-creation order state (holds, fulfillments, refunds).
"""

from .fulfillment_reconciler import FulfillmentReconciler, build_desired_quantities, fulfillment_order_signature
from .refund_reconciler import RefundReconciler, build_refund_line_items

__all__ = [
    "FulfillmentReconciler",
    "build_desired_quantities",
    "fulfillment_order_signature",
    "RefundReconciler",
    "build_refund_line_items",
]
