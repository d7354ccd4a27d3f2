"""
Importación de páginas desde la hoja "Pages".

Cada fila es una página: si su handle existe en destino se actualiza,
si no se crea. El resultado de cada fila se escribe en un reporte xlsx.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from store_migrator.core.config import get_settings
from store_migrator.core.logging_config import LogContext, log_migration_operation
from store_migrator.db.shopify_clients import ShopifyStoreClient, create_target_client
from store_migrator.services.common import (
    ExcelReportWriter,
    MigrationProgressTracker,
    ensure_metafield_definitions,
    report_timestamp,
)
from store_migrator.utils.error_handler import AppException, ErrorAggregator, ValidationException
from store_migrator.utils.metafield_utils import build_metafields_from_row, detect_metafield_columns, sanitize_metafields
from store_migrator.utils.sheet_utils import (
    SheetSource,
    is_empty,
    read_sheet_rows,
    sheet_headers,
    to_bool,
    to_optional_str,
    to_str,
)

logger = logging.getLogger(__name__)

REPORT_COLUMNS = ["Status", "Reason", "NewPageId"]


def build_page_input(row: Dict[str, Any], metafield_columns: List[Dict[str, str]]) -> Dict[str, Any]:
    """Fila de la hoja → PageCreateInput / PageUpdateInput."""
    published = to_bool(row.get("Published"))
    page_input: Dict[str, Any] = {
        "title": to_str(row.get("Title")),
        "body": to_str(row.get("Body HTML")),
        "handle": to_str(row.get("Handle")),
        "isPublished": True if published is None else published,
        "templateSuffix": to_optional_str(row.get("Template Suffix")),
    }

    entity_label = f"{row.get('Handle') or 'unknown'}::{row.get('Title') or 'row'}"
    metafields = sanitize_metafields(build_metafields_from_row(row, metafield_columns), "PAGE", entity_label)
    if metafields:
        page_input["metafields"] = metafields

    seo_title = to_optional_str(row.get("Metafield: title_tag [string]"))
    seo_description = to_optional_str(row.get("Metafield: description_tag [string]"))
    if seo_title or seo_description:
        page_input["seo"] = {"title": seo_title, "description": seo_description}

    return page_input


class PageImporter:
    """Crea o actualiza páginas en la tienda destino."""

    def __init__(self, target_client: ShopifyStoreClient):
        self.target_client = target_client
        self.settings = get_settings()
        self.error_aggregator = ErrorAggregator()
        self.metafield_columns: List[Dict[str, str]] = []

    async def import_page(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """
        Crea o actualiza la página de una fila.

        Returns:
            Dict: {"action": created|updated, "page": ...}

        Raises:
            ValidationException: Sin Handle, o sin Title ni Body HTML
        """
        handle = to_str(row.get("Handle"))
        if not handle:
            raise ValidationException('Missing "Handle"', field="Handle")
        if is_empty(row.get("Title")) and is_empty(row.get("Body HTML")):
            raise ValidationException('Missing content: "Title" and "Body HTML" are empty', field="Title")

        page_input = build_page_input(row, self.metafield_columns)
        existing = await self.target_client.content.find_page_by_handle(handle)

        if existing:
            page = await self.target_client.content.update_page(existing["id"], page_input)
            logger.info(f"🔄 Updated page {page.get('id')} ({handle})")
            return {"action": "updated", "page": page}

        page = await self.target_client.content.create_page(page_input)
        logger.info(f"✅ Created page {page.get('id')} ({handle})")
        return {"action": "created", "page": page}

    async def run(self, rows: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Importa todas las filas de la hoja de páginas.

        Returns:
            Dict: ok, createdPages, updatedPages, failedCount, totalProcessed, reportPath
        """
        job_id = f"pages_{report_timestamp()}"
        self.metafield_columns = detect_metafield_columns(sheet_headers(rows))
        report = ExcelReportWriter("pages_sync_report", REPORT_COLUMNS, sheet_name="Page Sync Report")

        with LogContext(job_id=job_id, operation="pages"):
            logger.info(
                f"🚀 Starting page sync: {len(rows)} row(s), {len(self.metafield_columns)} metafield column(s)"
            )
            log_migration_operation("pages_start", "target", job_id=job_id, rows=len(rows))
            await ensure_metafield_definitions(self.target_client.metafields, "PAGE", self.metafield_columns)

            tracker = MigrationProgressTracker(total_items=len(rows), operation_name="Pages", job_id=job_id)
            for index, row in enumerate(rows, start=1):
                label = f"#{index} page={row.get('Handle') or 'n/a'}"
                self.error_aggregator.increment_processed()

                try:
                    outcome = await self.import_page(row)
                    action = outcome["action"]
                    report_fields = {
                        "Status": "SUCCESS",
                        "Reason": f"Page {action}",
                        "NewPageId": outcome["page"].get("id"),
                    }
                except Exception as e:
                    reason = e.message if isinstance(e, AppException) else str(e)
                    logger.error(f"❌ Failed {label}: {reason}")
                    self.error_aggregator.add_error(e, {"row": index, "handle": row.get("Handle")})
                    action = "failed"
                    report_fields = {"Status": "FAILED", "Reason": reason, "NewPageId": ""}

                report.add_row({**row, **report_fields})
                await report.save()
                tracker.update(
                    created=int(action == "created"),
                    updated=int(action == "updated"),
                    errors=int(action == "failed"),
                )
                if tracker.should_log_progress():
                    tracker.log_progress()
                await asyncio.sleep(self.settings.ROW_DELAY)

            tracker.log_progress(prefix="🏁 ")
            report_path = await report.save() if report.rows else None

        return {
            "ok": tracker.stats["errors"] == 0,
            "createdPages": tracker.stats["created"],
            "updatedPages": tracker.stats["updated"],
            "failedCount": tracker.stats["errors"],
            "totalProcessed": len(rows),
            "reportPath": str(report_path) if report_path else None,
            "errors": self.error_aggregator.get_summary(),
        }


async def import_pages(
    source: SheetSource,
    filename: Optional[str] = None,
    sheet_name: Optional[str] = None,
) -> Dict[str, Any]:
    """Punto de entrada: páginas desde la hoja "Pages"."""
    rows = await read_sheet_rows(source, sheet_name=sheet_name or get_settings().PAGE_SHEET_NAME, filename=filename)
    target_client = create_target_client()
    try:
        await target_client.initialize()
        return await PageImporter(target_client).run(rows)
    finally:
        await target_client.close()
