"""
Subida de PDFs a la sección Files de la tienda destino.

Cada fila de la hoja puede traer hasta dos PDFs ("Product Sellsheet" y
"Shelftalker PDF File"), como URL o como ruta local. Por cada uno:

    1. Descarga / lectura del PDF
    2. stagedUploadsCreate + POST multipart al target
    3. fileCreate
    4. Polling del estado hasta READY (back-off exponencial)

Las filas se procesan en paralelo con un semáforo de FILE_UPLOAD_CONCURRENCY.
El reporte xlsx se reescribe cada 10 filas y al terminar.
"""

import asyncio
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import unquote, urlparse

import aiofiles
import aiohttp
from aiohttp import ClientTimeout

from store_migrator.core.config import get_settings
from store_migrator.core.logging_config import LogContext, log_migration_operation
from store_migrator.db.shopify_clients import ShopifyStoreClient, create_target_client
from store_migrator.services.common import ExcelReportWriter, MigrationProgressTracker, report_timestamp
from store_migrator.utils.error_handler import (
    AppException,
    ErrorAggregator,
    MigrationException,
    ShopifyAPIException,
    ValidationException,
)
from store_migrator.utils.sheet_utils import SheetSource, is_empty, read_sheet_rows, to_str

logger = logging.getLogger(__name__)

PDF_COLUMNS = ("Product Sellsheet", "Shelftalker PDF File")
REPORT_FIELDS = ("Shopify File ID", "Shopify URL", "Shopify Handle", "Shopify Status", "Error")
TIMED_OUT_MESSAGE = "Timed out waiting for READY (try re-running poll later)"
DOWNLOAD_TIMEOUT = 60
CHECKPOINT_EVERY = 10

_UNSAFE_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1F]')


def is_empty_cell(value: Any) -> bool:
    """Celda vacía; las exportaciones usan 0 para "sin archivo"."""
    return is_empty(value) or to_str(value) == "0"


def looks_like_url(value: Any) -> bool:
    return isinstance(value, str) and bool(re.match(r"^https?://", value.strip(), re.IGNORECASE))


def safe_filename(name: str) -> str:
    return re.sub(r"\s+", " ", _UNSAFE_FILENAME_CHARS.sub("_", name)).strip()


def filename_from_url(url: str) -> str:
    name = Path(unquote(urlparse(url).path)).name
    return name or "document.pdf"


def handle_from_file_url(url: Optional[str]) -> str:
    """Handle del archivo en Shopify: nombre del CDN sin query ni extensión .pdf."""
    if not url:
        return ""
    name = Path(urlparse(url).path).name
    return re.sub(r"\.pdf$", "", name, flags=re.IGNORECASE)


def build_report_row(row: Dict[str, Any]) -> Dict[str, Any]:
    """Fila original + columnas vacías de resultado por PDF y por fila."""
    report_row = dict(row)
    for column in PDF_COLUMNS:
        for field in REPORT_FIELDS:
            report_row[f"{column} - {field}"] = ""
    report_row["Row Status"] = ""
    report_row["Row Error"] = ""
    return report_row


class PdfFileUploader:
    """Sube los PDFs referenciados en la hoja a la tienda destino."""

    def __init__(self, target_client: ShopifyStoreClient):
        self.target_client = target_client
        self.settings = get_settings()
        self.poll_timeout = self.settings.FILE_POLL_TIMEOUT
        self.error_aggregator = ErrorAggregator()

    async def load_pdf(self, source: Any) -> Tuple[bytes, str]:
        """
        Obtiene los bytes del PDF desde una URL o una ruta local.

        Returns:
            Tuple[bytes, str]: (contenido, nombre de archivo)

        Raises:
            ValidationException: La fuente no es un PDF o la ruta no existe
            MigrationException: La descarga falló o devolvió un archivo vacío
        """
        text = to_str(source)

        if looks_like_url(text):
            if ".pdf" not in text.lower():
                raise ValidationException(f"Not a PDF URL (missing .pdf): {text}", field="source", invalid_value=text)
            raw_name = filename_from_url(text)
            filename = safe_filename(raw_name if raw_name.lower().endswith(".pdf") else f"{raw_name}.pdf")

            logger.info(f"⬇️ Downloading PDF {text}")
            async with aiohttp.ClientSession(timeout=ClientTimeout(total=DOWNLOAD_TIMEOUT)) as session:
                async with session.get(text, allow_redirects=True, max_redirects=5) as response:
                    if response.status < 200 or response.status >= 300:
                        raise MigrationException(
                            f"Download failed HTTP {response.status} for {text}", job="files", operation="download"
                        )
                    content = await response.read()
            if not content:
                raise MigrationException(f"Downloaded empty file for {text}", job="files", operation="download")
            return content, filename

        path = Path(text)
        if path.suffix.lower() != ".pdf":
            raise ValidationException(f"Not a .pdf local path: {text}", field="source", invalid_value=text)
        if not path.exists():
            raise ValidationException(f"Local file not found: {text}", field="source", invalid_value=text)

        logger.info(f"📂 Reading local PDF {text}")
        async with aiofiles.open(path, "rb") as handle:
            content = await handle.read()
        return content, safe_filename(path.name)

    async def wait_until_ready(self, file_id: str) -> Dict[str, Any]:
        """
        Consulta el estado del archivo hasta READY.

        La espera crece FILE_POLL_BACKOFF veces por intento hasta
        FILE_POLL_MAX_DELAY. Al agotar poll_timeout devuelve el último estado
        con timedOut=True en lugar de fallar.

        Raises:
            ShopifyAPIException: El archivo quedó en estado FAILED
        """
        loop = asyncio.get_running_loop()
        started = loop.time()
        delay = self.settings.FILE_POLL_INITIAL_DELAY

        while True:
            node = await self.target_client.files.get_file_status(file_id)
            status = node.get("fileStatus")
            url = node.get("url")

            if status == "READY" and url:
                logger.info(f"✅ File READY {file_id}")
                return {"status": status, "url": url, "timedOut": False}

            if status == "FAILED":
                raise ShopifyAPIException(
                    f"File FAILED: {node.get('fileErrors') or []}", endpoint="fileStatus", details={"fileId": file_id}
                )

            if loop.time() - started >= self.poll_timeout:
                logger.warning(f"⏰ Polling timed out waiting for READY ({file_id}, status={status})")
                return {"status": status, "url": url or "", "timedOut": True}

            await asyncio.sleep(delay)
            delay = min(delay * self.settings.FILE_POLL_BACKOFF, self.settings.FILE_POLL_MAX_DELAY)

    async def upload_pdf(self, row_id: Any, label: str, source: Any) -> Dict[str, Any]:
        """
        Sube un PDF y espera a que quede disponible.

        Returns:
            Dict: fileId, status, url, handle, timedOut
        """
        content, filename = await self.load_pdf(source)
        logger.info(f"📦 {label} for {row_id}: {filename} ({len(content)} bytes)")

        files = self.target_client.files
        target = await files.create_staged_upload(filename, "application/pdf", len(content))
        await files.upload_to_staged_target(target, content, filename, "application/pdf")
        created = await files.create_file(target["resourceUrl"], alt=f"{row_id} - {label}")
        polled = await self.wait_until_ready(created["id"])

        return {
            "fileId": created["id"],
            "status": polled["status"],
            "url": polled["url"],
            "handle": handle_from_file_url(polled["url"]),
            "timedOut": polled["timedOut"],
        }

    async def process_row(self, report_row: Dict[str, Any]) -> Dict[str, Any]:
        """
        Sube los PDFs de una fila y completa sus columnas de reporte.

        Un error corta la fila: el PDF que no llegó a tener File ID recibe
        el error de la fila.
        """
        row_id = report_row.get("ID")
        try:
            for column in PDF_COLUMNS:
                source = report_row.get(column)
                if is_empty_cell(source):
                    continue
                result = await self.upload_pdf(row_id, column, source)
                report_row[f"{column} - Shopify File ID"] = result["fileId"]
                report_row[f"{column} - Shopify URL"] = result["url"]
                report_row[f"{column} - Shopify Handle"] = result["handle"]
                report_row[f"{column} - Shopify Status"] = result["status"]
                if result["timedOut"]:
                    report_row[f"{column} - Error"] = TIMED_OUT_MESSAGE
            report_row["Row Status"] = "OK"
            logger.info(f"✅ Row {row_id} processed")
        except Exception as e:
            reason = e.message if isinstance(e, AppException) else str(e)
            logger.error(f"❌ Row {row_id} failed: {reason}")
            self.error_aggregator.add_error(e, {"row": row_id})
            report_row["Row Status"] = "FAILED"
            report_row["Row Error"] = reason
            for column in PDF_COLUMNS:
                if not is_empty_cell(report_row.get(column)) and not report_row[f"{column} - Shopify File ID"]:
                    report_row[f"{column} - Error"] = report_row[f"{column} - Error"] or reason
        return report_row

    async def run(self, rows: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Sube los PDFs de todas las filas.

        Returns:
            Dict: ok, okCount, failedCount, uploadedFiles, timedOutFiles, reportPath
        """
        job_id = f"files_{report_timestamp()}"
        report = ExcelReportWriter("files_upload_report", sheet_name="Report")
        report_rows = [report.add_row(build_report_row(row)) for row in rows]
        concurrency = self.settings.FILE_UPLOAD_CONCURRENCY

        with LogContext(job_id=job_id, operation="files"):
            logger.info(f"🚀 Starting PDF upload: {len(rows)} row(s), concurrency {concurrency}")
            log_migration_operation("files_start", "target", job_id=job_id, rows=len(rows))

            tracker = MigrationProgressTracker(total_items=len(rows), operation_name="Files", job_id=job_id)
            semaphore = asyncio.Semaphore(concurrency)

            async def process_with_semaphore(report_row: Dict[str, Any]):
                async with semaphore:
                    self.error_aggregator.increment_processed()
                    await self.process_row(report_row)
                    failed = report_row["Row Status"] == "FAILED"
                    tracker.update(created=int(not failed), errors=int(failed))
                    if tracker.processed_items % CHECKPOINT_EVERY == 0:
                        await report.save()
                        tracker.log_progress()

            await asyncio.gather(*[process_with_semaphore(report_row) for report_row in report_rows])

            tracker.log_progress(prefix="🏁 ")
            report_path = await report.save() if report.rows else None

        uploaded = sum(
            1 for report_row in report_rows for column in PDF_COLUMNS if report_row[f"{column} - Shopify File ID"]
        )
        timed_out = sum(
            1
            for report_row in report_rows
            for column in PDF_COLUMNS
            if report_row[f"{column} - Error"] == TIMED_OUT_MESSAGE
        )
        return {
            "ok": tracker.stats["errors"] == 0,
            "okCount": tracker.stats["created"],
            "failedCount": tracker.stats["errors"],
            "uploadedFiles": uploaded,
            "timedOutFiles": timed_out,
            "reportPath": str(report_path) if report_path else None,
            "errors": self.error_aggregator.get_summary(),
        }


async def upload_pdf_files(
    source: SheetSource,
    filename: Optional[str] = None,
    sheet_name: Optional[str] = None,
) -> Dict[str, Any]:
    """Punto de entrada: PDFs referenciados en la primera hoja del archivo."""
    rows = await read_sheet_rows(source, sheet_name=sheet_name, filename=filename)
    target_client = create_target_client()
    try:
        await target_client.initialize()
        return await PdfFileUploader(target_client).run(rows)
    finally:
        await target_client.close()
