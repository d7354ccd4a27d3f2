"""
Migración de colecciones: copia entre tiendas e importación de hojas smart/custom.
"""

from .rules import normalize_must_match, normalize_rule_relation, normalize_sort_order, parse_rule_column
from .sheet_importer import CollectionSheetImporter, import_custom_collections, import_smart_collections
from .sheet_parser import CollectionSheetParser
from .store_sync import CollectionStoreSync, map_source_collection, sync_collections_store_to_store

__all__ = [
    "normalize_must_match",
    "normalize_rule_relation",
    "normalize_sort_order",
    "parse_rule_column",
    "CollectionSheetImporter",
    "import_custom_collections",
    "import_smart_collections",
    "CollectionSheetParser",
    "CollectionStoreSync",
    "map_source_collection",
    "sync_collections_store_to_store",
]
