"""
Clientes: importación desde hoja (solo creación).
"""

from .sheet_importer import (
    CustomerSheetImporter,
    build_customer_input,
    customer_key,
    group_customers,
    import_customers,
)

__all__ = [
    "CustomerSheetImporter",
    "build_customer_input",
    "customer_key",
    "group_customers",
    "import_customers",
]
