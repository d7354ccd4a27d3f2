"""
Resolvers that map source order data to target store entities.
"""

from .customer_resolver import TargetCustomerResolver
from .discount_resolver import DiscountCodeResolver
from .line_item_resolver import LineItemResolver, select_variant

__all__ = ["TargetCustomerResolver", "DiscountCodeResolver", "LineItemResolver", "select_variant"]
