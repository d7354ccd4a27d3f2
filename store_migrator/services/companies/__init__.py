"""
Compañías B2B: importación desde hoja con ubicaciones, contactos y roles,
y copia entre tiendas con sus clientes.
"""

from .importer import CompanySheetImporter, company_external_id, import_companies
from .sheet_parser import CompanySheetParser, build_company_address_input, normalize_tax_setting
from .store_sync import CompanyStoreSync, company_tier, load_company_ids, sync_companies_store_to_store

__all__ = [
    "CompanySheetImporter",
    "company_external_id",
    "import_companies",
    "CompanySheetParser",
    "build_company_address_input",
    "normalize_tax_setting",
    "CompanyStoreSync",
    "company_tier",
    "load_company_ids",
    "sync_companies_store_to_store",
]
