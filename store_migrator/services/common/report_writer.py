"""
Reportes de migración.

- ExcelReportWriter: reporte xlsx por fila, reescrito de forma incremental
  para que un job interrumpido deje un reporte parcial utilizable.
- write_json_report: resumen JSON de jobs store-to-store.
"""

import asyncio
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from store_migrator.core.config import get_settings

logger = logging.getLogger(__name__)


def report_timestamp() -> str:
    """Sello de tiempo usado en nombres de reporte (YYYYMMDD_HHMMSS)."""
    return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")


class ExcelReportWriter:
    """Acumula filas de reporte y las escribe en un archivo xlsx."""

    def __init__(
        self,
        prefix: str,
        columns: Optional[List[str]] = None,
        sheet_name: str = "Report",
        reports_dir: Optional[Path] = None,
    ):
        """
        Args:
            prefix: Prefijo del archivo (ej. "pages_upload_report")
            columns: Columnas que van al final, en este orden
            sheet_name: Nombre de la hoja del reporte
            reports_dir: Directorio destino (por defecto REPORTS_DIR)
        """
        directory = reports_dir or get_settings().reports_path
        self.path = Path(directory) / f"{prefix}_{report_timestamp()}.xlsx"
        self.columns = columns or []
        self.sheet_name = sheet_name
        self.rows: List[Dict[str, Any]] = []
        self._lock = asyncio.Lock()

    def add_row(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """Agrega una fila (copia) y la devuelve."""
        entry = dict(row)
        self.rows.append(entry)
        return entry

    def count(self, column: str, value: Any) -> int:
        """Número de filas con column == value."""
        return sum(1 for row in self.rows if row.get(column) == value)

    def _ordered_columns(self) -> List[str]:
        seen: List[str] = []
        for row in self.rows:
            for column in row:
                if column not in seen and column not in self.columns:
                    seen.append(column)
        return seen + self.columns

    async def save(self) -> Path:
        """
        Escribe todas las filas acumuladas en el xlsx.

        La escritura corre en un hilo aparte para no bloquear el event loop;
        las filas se copian antes y las escrituras concurrentes se serializan.

        Returns:
            Path: Ruta del reporte
        """
        async with self._lock:
            rows = [dict(row) for row in self.rows]
            return await asyncio.to_thread(self._write, rows, self._ordered_columns())

    def _write(self, rows: List[Dict[str, Any]], columns: List[str]) -> Path:
        df = pd.DataFrame(rows, columns=columns)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        df.to_excel(self.path, sheet_name=self.sheet_name, index=False, engine="openpyxl")
        logger.debug(f"Report written: {self.path} ({len(rows)} rows)")
        return self.path


def write_json_report(prefix: str, data: Dict[str, Any], reports_dir: Optional[Path] = None) -> Path:
    """
    Escribe un reporte JSON con sello de tiempo.

    Returns:
        Path: Ruta del reporte
    """
    directory = Path(reports_dir or get_settings().reports_path)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{prefix}_{report_timestamp()}.json"
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(data, handle, indent=2, ensure_ascii=False, default=str)
    logger.info(f"📄 Report saved: {path}")
    return path
