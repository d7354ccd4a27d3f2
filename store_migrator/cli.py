"""
Línea de comandos de los trabajos de migración.

Ejemplos:
  python -m store_migrator.cli orders --limit 10
  python -m store_migrator.cli products --file products.xlsx
  python -m store_migrator.cli discounts --file discounts.xlsx --sheet Discounts
  python -m store_migrator.cli companies-sync --ids 123456789 987654321
  python -m store_migrator.cli delete-orders --dry-run
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional

from rich.console import Console
from rich.table import Table

from store_migrator.core.config import validate_required_settings
from store_migrator.core.logging_config import setup_logging
from store_migrator.services.collections.sheet_importer import import_custom_collections, import_smart_collections
from store_migrator.services.collections.store_sync import sync_collections_store_to_store
from store_migrator.services.companies.importer import import_companies
from store_migrator.services.companies.store_sync import sync_companies_store_to_store
from store_migrator.services.content.blog_importer import import_blog_articles
from store_migrator.services.content.page_importer import import_pages
from store_migrator.services.customers.sheet_importer import import_customers
from store_migrator.services.discounts.importer import import_discounts
from store_migrator.services.files.pdf_uploader import upload_pdf_files
from store_migrator.services.maintenance.metafield_cleanup import delete_metafield_definitions
from store_migrator.services.maintenance.order_cleanup import delete_orders
from store_migrator.services.orders.orchestrator import migrate_orders
from store_migrator.services.products.sheet_importer import migrate_products_from_sheet
from store_migrator.services.products.store_sync import sync_products_store_to_store
from store_migrator.services.sheet_format.magento_converter import convert_magento_sheet
from store_migrator.utils.error_handler import AppException

logger = logging.getLogger(__name__)
console = Console()

# Trabajos que leen una hoja y escriben en la tienda destino
SHEET_JOBS: Dict[str, Callable[..., Awaitable[Dict[str, Any]]]] = {
    "products": migrate_products_from_sheet,
    "smart-collections": import_smart_collections,
    "custom-collections": import_custom_collections,
    "blogs": import_blog_articles,
    "pages": import_pages,
    "companies": import_companies,
    "customers": import_customers,
    "discounts": import_discounts,
    "files": upload_pdf_files,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="store_migrator",
        description="Migración de datos entre tiendas Shopify",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subparsers = parser.add_subparsers(dest="job", required=True, metavar="<job>")

    for name in ("orders", "products-sync"):
        sub = subparsers.add_parser(name, help=f"{name} tienda a tienda")
        sub.add_argument("--limit", type=int, help="Máximo de registros a migrar")
        sub.add_argument("--query", type=str, help="Filtro de búsqueda Shopify en la tienda origen")

    sub = subparsers.add_parser("collections-sync", help="collections tienda a tienda")
    sub.add_argument("--limit", type=int, help="Máximo de collections a migrar")

    sub = subparsers.add_parser("companies-sync", help="compañías B2B y sus clientes tienda a tienda")
    sub.add_argument("--ids", nargs="*", help="IDs o GIDs de compañía en origen")
    sub.add_argument("--ids-file", type=str, help="JSON {\"companies\": [...]} (por defecto companies.json)")

    for name in SHEET_JOBS:
        sub = subparsers.add_parser(name, help=f"importa {name} desde una hoja")
        sub.add_argument("--file", type=Path, required=True, help="Ruta del xlsx/csv")
        sub.add_argument("--sheet", type=str, help="Nombre de la hoja (por defecto la del trabajo)")

    sub = subparsers.add_parser("magento-convert", help="convierte una exportación Magento a hoja Shopify")
    sub.add_argument("--file", type=Path, required=True, help="Exportación Magento (xlsx/csv)")
    sub.add_argument("--output-dir", type=Path, help="Directorio de salida (por defecto REPORTS_DIR)")

    sub = subparsers.add_parser("delete-metafield-definitions", help="borra metafield definitions en destino")
    sub.add_argument("--owner-type", type=str, help="MetafieldOwnerType (por defecto METAFIELD_OWNER_TYPE)")
    sub.add_argument("--namespace", type=str)
    sub.add_argument("--key-prefix", type=str)
    sub.add_argument("--limit", type=int)
    sub.add_argument("--keep-values", action="store_true", help="No borrar los metafields asociados")
    sub.add_argument("--dry-run", action="store_true", help="Solo listar, sin borrar")

    sub = subparsers.add_parser("delete-orders", help="borra los pedidos de la tienda destino")
    sub.add_argument("--limit", type=int)
    sub.add_argument("--dry-run", action="store_true", help="Solo listar, sin borrar")

    return parser


async def run_job(args: argparse.Namespace) -> Dict[str, Any]:
    """Ejecuta el trabajo elegido y devuelve su resumen."""
    job = args.job

    if job in SHEET_JOBS:
        validate_required_settings("target")
        return await SHEET_JOBS[job](args.file, filename=args.file.name, sheet_name=args.sheet)

    if job == "magento-convert":
        return convert_magento_sheet(args.file, filename=args.file.name, output_dir=args.output_dir)

    if job == "delete-metafield-definitions":
        validate_required_settings("target")
        return await delete_metafield_definitions(
            owner_type=args.owner_type,
            namespace=args.namespace,
            key_prefix=args.key_prefix,
            limit=args.limit,
            delete_values=False if args.keep_values else None,
            dry_run=args.dry_run,
        )

    if job == "delete-orders":
        validate_required_settings("target")
        return await delete_orders(limit=args.limit, dry_run=args.dry_run)

    validate_required_settings("both")
    if job == "orders":
        return await migrate_orders(limit=args.limit, query=args.query)
    if job == "products-sync":
        return await sync_products_store_to_store(limit=args.limit, query=args.query)
    if job == "companies-sync":
        return await sync_companies_store_to_store(company_ids=args.ids, ids_file=args.ids_file)
    return await sync_collections_store_to_store(limit=args.limit)


def summary_rows(summary: Dict[str, Any]) -> List[List[str]]:
    """
    Filas (clave, valor) del resumen para la tabla.

    Las listas se muestran como cantidad y los diccionarios anidados
    (errores, stats) se aplanan un nivel.
    """
    rows = []
    for key, value in summary.items():
        if isinstance(value, dict):
            for sub_key, sub_value in value.items():
                if not isinstance(sub_value, (dict, list)):
                    rows.append([f"{key}.{sub_key}", str(sub_value)])
        elif isinstance(value, list):
            rows.append([key, f"{len(value)} item(s)"])
        else:
            rows.append([key, "" if value is None else str(value)])
    return rows


def render_summary(job: str, summary: Dict[str, Any]) -> Table:
    table = Table(title=f"Resumen: {job}")
    table.add_column("Campo", style="cyan")
    table.add_column("Valor")
    for key, value in summary_rows(summary):
        table.add_row(key, value)
    return table


def main(argv: Optional[List[str]] = None) -> int:
    """
    Punto de entrada de consola.

    Returns:
        int: 0 si el trabajo terminó sin errores, 1 si hubo errores o falló
    """
    args = build_parser().parse_args(argv)
    setup_logging()

    if getattr(args, "dry_run", False):
        console.print("[bold yellow]🔍 DRY-RUN: no se borrará nada[/bold yellow]")

    try:
        summary = asyncio.run(run_job(args))
    except KeyboardInterrupt:
        logger.warning("⚠️ Operación interrumpida por el usuario")
        return 130
    except AppException as e:
        console.print(f"[red]❌ {e.message}[/red]")
        logger.error(f"❌ {args.job} failed: {e}")
        return 1

    console.print(render_summary(args.job, summary))
    return 0 if summary.get("ok", True) else 1


if __name__ == "__main__":
    sys.exit(main())
