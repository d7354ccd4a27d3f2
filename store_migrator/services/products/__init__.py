"""
Migración de productos: importación desde hoja y sincronización entre tiendas.
"""

from .product_mapper import build_product_set_input, build_product_set_input_from_source
from .sheet_importer import ProductSheetImporter, migrate_products_from_sheet
from .sheet_parser import ProductSheetParser, detect_inventory_columns
from .store_sync import ProductStoreSync, ProductSyncLog, sync_products_store_to_store

__all__ = [
    "build_product_set_input",
    "build_product_set_input_from_source",
    "ProductSheetImporter",
    "migrate_products_from_sheet",
    "ProductSheetParser",
    "detect_inventory_columns",
    "ProductStoreSync",
    "ProductSyncLog",
    "sync_products_store_to_store",
]
