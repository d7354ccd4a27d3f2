"""
Servicios de descuentos: lectura de la hoja Matrixify y creación en destino.
"""

from .importer import DiscountSheetImporter, import_discounts
from .input_builder import DiscountInputBuilder
from .sheet_parser import build_basic_value, build_purchase_type_flags, merge_discount_rows

__all__ = [
    "DiscountSheetImporter",
    "import_discounts",
    "DiscountInputBuilder",
    "build_basic_value",
    "build_purchase_type_flags",
    "merge_discount_rows",
]
