"""
Importación de descuentos desde una hoja Matrixify "Discounts".

Flujo por descuento (tras fusionar las filas de continuación):
    1. Command=DELETE se omite
    2. Si el código (o el título, para automáticos) ya existe se omite
    3. Se construye el input y se crea con la mutación correspondiente

Cada resultado se escribe de inmediato en el reporte xlsx para no perder
progreso si la importación se interrumpe.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from store_migrator.core.config import get_settings
from store_migrator.core.logging_config import LogContext, log_migration_operation
from store_migrator.db.shopify_clients import ShopifyStoreClient, create_target_client
from store_migrator.services.common import ExcelReportWriter, MigrationProgressTracker, report_timestamp
from store_migrator.utils.error_handler import AppException, ErrorAggregator, ValidationException
from store_migrator.utils.sheet_utils import SheetSource, read_sheet_rows, to_str

from .input_builder import DiscountInputBuilder, discount_label, is_delete_command
from .sheet_parser import merge_discount_rows, normalize_method

logger = logging.getLogger(__name__)

REPORT_COLUMNS = ["Status", "Reason", "NewDiscountId", "Mutation Used", "Merged Rows"]


class DiscountSheetImporter:
    """Crea en destino los descuentos de la hoja que aún no existen."""

    def __init__(self, target_client: ShopifyStoreClient):
        self.target_client = target_client
        self.settings = get_settings()
        self.builder = DiscountInputBuilder(target_client)
        self.error_aggregator = ErrorAggregator()

    async def find_existing_id(self, row: Dict[str, Any]) -> Optional[str]:
        """Descuento existente: por código, o por título exacto si es automático."""
        if normalize_method(row.get("Method")) == "Automatic":
            title = to_str(row.get("Title"))
            if not title:
                return None
            matches = await self.target_client.discounts.find_automatic_discounts(title)
            for match in matches:
                if match.get("title") == title:
                    return match.get("id")
            return None

        code = to_str(row.get("Code"))
        if not code:
            return None
        return await self.target_client.discounts.get_code_discount_id(code)

    async def import_discount(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """
        Procesa un descuento fusionado.

        Returns:
            Dict: {"status": created|skipped, "reason", "discountId", "mutation"}

        Raises:
            ValidationException: Grupo de filas inconsistente o input incompleto
            ShopifyAPIException: La mutación devolvió userErrors
        """
        if is_delete_command(row):
            return {"status": "skipped", "reason": "Skipped: Command=DELETE"}

        if row.get("__mergeError"):
            raise ValidationException(row["__mergeError"], field="Top Row")

        existing_id = await self.find_existing_id(row)
        if existing_id:
            logger.info(f"🟡 Discount already exists → {existing_id} (skipping)")
            return {"status": "skipped", "reason": "Already exists", "discountId": existing_id}

        mutation_name, variables = await self.builder.build(row)
        discount_input = next(iter(variables.values()))
        discount_id = await self.target_client.discounts.create_discount(mutation_name, discount_input)
        logger.info(f"✅ Created discount {discount_id} via {mutation_name}")
        return {"status": "created", "reason": "Created", "discountId": discount_id, "mutation": mutation_name}

    async def run(self, rows: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Importa todos los descuentos de la hoja.

        Returns:
            Dict: ok, createdCount, skippedCount, failedCount, totalProcessed, reportPath
        """
        job_id = f"discounts_{report_timestamp()}"
        discounts = merge_discount_rows(rows)
        report = ExcelReportWriter("discounts_upload_report", REPORT_COLUMNS, sheet_name="Discounts Report")

        with LogContext(job_id=job_id, operation="discounts"):
            logger.info(f"🚀 Starting discounts import: {len(rows)} row(s) merged into {len(discounts)} discount(s)")
            log_migration_operation("discounts_start", "target", job_id=job_id, discounts=len(discounts))

            tracker = MigrationProgressTracker(total_items=len(discounts), operation_name="Discounts", job_id=job_id)
            for index, row in enumerate(discounts, start=1):
                label = f"#{index} {discount_label(row)}"
                logger.info(f"➡️ Processing {label}")
                self.error_aggregator.increment_processed()

                try:
                    result = await self.import_discount(row)
                    status = "SUCCESS"
                except Exception as e:
                    reason = e.message if isinstance(e, AppException) else str(e)
                    logger.error(f"❌ Failed {label}: {reason}")
                    self.error_aggregator.add_error(e, {"discount": discount_label(row), "rows": row["__mergedRows"]})
                    result = {"status": "failed", "reason": reason}
                    status = "FAILED"

                source_row = {key: value for key, value in row.items() if not key.startswith("__")}
                report.add_row(
                    {
                        **source_row,
                        "Status": status,
                        "Reason": result["reason"],
                        "NewDiscountId": result.get("discountId", ""),
                        "Mutation Used": result.get("mutation", ""),
                        "Merged Rows": row["__mergedRows"],
                    }
                )
                await report.save()
                tracker.update(
                    created=int(result["status"] == "created"),
                    skipped=int(result["status"] == "skipped"),
                    errors=int(result["status"] == "failed"),
                )
                if tracker.should_log_progress():
                    tracker.log_progress()
                await asyncio.sleep(self.settings.DISCOUNT_DELAY)

            tracker.log_progress(prefix="🏁 ")
            report_path = await report.save() if report.rows else None

        return {
            "ok": tracker.stats["errors"] == 0,
            "createdCount": tracker.stats["created"],
            "skippedCount": tracker.stats["skipped"],
            "failedCount": tracker.stats["errors"],
            "totalProcessed": len(discounts),
            "reportCount": len(report.rows),
            "reportPath": str(report_path) if report_path else None,
            "errors": self.error_aggregator.get_summary(),
        }


async def import_discounts(
    source: SheetSource,
    filename: Optional[str] = None,
    sheet_name: Optional[str] = None,
) -> Dict[str, Any]:
    """Punto de entrada: descuentos desde una hoja Matrixify."""
    rows = await read_sheet_rows(source, sheet_name=sheet_name, filename=filename)
    target_client = create_target_client()
    try:
        await target_client.initialize()
        return await DiscountSheetImporter(target_client).run(rows)
    finally:
        await target_client.close()
