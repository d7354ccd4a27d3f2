"""
Tareas de mantenimiento sobre la tienda destino: limpieza de metafield
definitions y de pedidos.
"""

from .metafield_cleanup import MetafieldDefinitionCleaner, delete_metafield_definitions, matches_filters
from .order_cleanup import OrderCleaner, delete_orders

__all__ = [
    "MetafieldDefinitionCleaner",
    "delete_metafield_definitions",
    "matches_filters",
    "OrderCleaner",
    "delete_orders",
]
