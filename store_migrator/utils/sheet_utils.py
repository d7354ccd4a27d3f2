"""
Utilidades para leer hojas de cálculo exportadas (Matrixify / Shopify / Magento).

Todas las migraciones basadas en hojas reciben filas como diccionarios
{columna: valor}, con celdas vacías normalizadas a None.
"""

import asyncio
import io
import logging
import math
import re
import zipfile
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import pandas as pd

from store_migrator.utils.error_handler import SheetFormatException

logger = logging.getLogger(__name__)

SheetSource = Union[str, Path, bytes, io.IOBase]

_TRUE_VALUES = {"true", "1", "yes", "y"}
_FALSE_VALUES = {"false", "0", "no", "n"}


def _to_buffer(source: SheetSource):
    if isinstance(source, (bytes, bytearray)):
        return io.BytesIO(source)
    return source


def _is_csv(source: SheetSource, filename: Optional[str]) -> bool:
    name = filename or (str(source) if isinstance(source, (str, Path)) else "")
    return name.lower().endswith(".csv")


def _clean_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    df = df.astype(object).where(pd.notna(df), None)
    df.columns = [str(column).strip() for column in df.columns]
    return df.to_dict(orient="records")


def load_sheet_rows(
    source: SheetSource,
    sheet_name: Optional[Union[str, Sequence[str]]] = None,
    filename: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Lee una hoja (xlsx/csv) y la devuelve como lista de filas.

    Args:
        source: Ruta, bytes subidos o file-like
        sheet_name: Hoja a leer; si es lista se usa la primera que exista.
            None usa la primera hoja del libro.
        filename: Nombre original (para detectar CSV en uploads)

    Returns:
        List[Dict]: Filas con celdas vacías como None

    Raises:
        SheetFormatException: Si el archivo no se puede leer o la hoja no existe
    """
    buffer = _to_buffer(source)

    try:
        if _is_csv(source, filename):
            df = pd.read_csv(buffer, dtype=object, keep_default_na=True)
            return _clean_records(df)

        workbook = pd.ExcelFile(buffer)
        selected = _select_sheet(workbook.sheet_names, sheet_name)
        df = workbook.parse(selected, dtype=object)
    except SheetFormatException:
        raise
    except (ValueError, OSError, zipfile.BadZipFile) as e:
        raise SheetFormatException(f"Could not read spreadsheet: {e}", sheet=str(sheet_name)) from e

    rows = _clean_records(df)
    logger.info(f"📄 Loaded {len(rows)} rows from sheet '{selected}'")
    return rows


async def read_sheet_rows(
    source: SheetSource,
    sheet_name: Optional[Union[str, Sequence[str]]] = None,
    filename: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """load_sheet_rows en un hilo aparte, para no bloquear el event loop."""
    return await asyncio.to_thread(load_sheet_rows, source, sheet_name=sheet_name, filename=filename)


def _select_sheet(available: List[str], wanted: Optional[Union[str, Sequence[str]]]) -> str:
    if not available:
        raise SheetFormatException("Workbook has no sheets")

    if wanted is None:
        return available[0]

    candidates = [wanted] if isinstance(wanted, str) else list(wanted)
    for name in candidates:
        if name in available:
            return name

    raise SheetFormatException(
        f"Sheet not found. Expected one of {candidates}, workbook has {available}",
        sheet=", ".join(candidates),
    )


def sheet_headers(rows: List[Dict[str, Any]]) -> List[str]:
    """Encabezados de la hoja (claves de la primera fila)."""
    return list(rows[0].keys()) if rows else []


# === NORMALIZACIÓN DE CELDAS ===


def is_empty(value: Any) -> bool:
    """True para None, NaN y strings vacíos."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return str(value).strip() == ""


def to_str(value: Any) -> str:
    """
    Convierte una celda a string limpio.

    Los floats enteros que pandas produce en columnas numéricas
    (SKU 12345 leído como 12345.0) se devuelven sin decimal.
    """
    if is_empty(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def to_optional_str(value: Any) -> Optional[str]:
    """Como to_str pero devuelve None para celdas vacías."""
    text = to_str(value)
    return text or None


def first_value(row: Dict[str, Any], *columns: str) -> Any:
    """Primer valor no vacío entre varias columnas alternativas."""
    for column in columns:
        value = row.get(column)
        if not is_empty(value):
            return value
    return None


def to_bool(value: Any) -> Optional[bool]:
    """
    Interpreta booleanos de hoja (TRUE/FALSE, yes/no, 1/0).

    Returns:
        bool o None si el valor no es interpretable
    """
    if is_empty(value):
        return None
    if isinstance(value, bool):
        return value
    text = to_str(value).lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    return None


def to_int(value: Any) -> Optional[int]:
    """Entero o None."""
    if is_empty(value):
        return None
    try:
        return int(float(to_str(value)))
    except (ValueError, OverflowError):
        return None


def to_float(value: Any) -> Optional[float]:
    """Float o None."""
    if is_empty(value):
        return None
    try:
        return float(to_str(value))
    except ValueError:
        return None


def split_list(value: Any, separator: str = ",") -> List[str]:
    """Divide una celda por separador, sin vacíos."""
    if is_empty(value):
        return []
    return [part.strip() for part in to_str(value).split(separator) if part.strip()]


def unique(values: Iterable[str]) -> List[str]:
    """Elimina duplicados manteniendo el orden."""
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


_OFFSET_DATETIME = re.compile(r"^(\d{4}-\d{2}-\d{2}) (\d{2}:\d{2}:\d{2}) ([+-]\d{2})(\d{2})$")
_DOTTED_DATETIME = re.compile(r"^(\d{2})-(\d{2})-(\d{4}) (\d{2})\.(\d{2})$")


def to_datetime_iso(value: Any) -> Optional[str]:
    """
    Convierte fechas de exportación a ISO 8601.

    Formatos soportados:
    - "2026-01-23 05:15:53 -0500" (se conserva el offset)
    - "14-07-2022 23.55" (DD-MM-YYYY HH.MM, interpretado en UTC)
    - datetime / Timestamp de Excel
    - cualquier formato que pandas pueda interpretar

    Returns:
        str ISO o None si no se puede interpretar
    """
    if is_empty(value):
        return None

    if isinstance(value, (datetime, date)):
        stamp = pd.Timestamp(value)
        if stamp.tzinfo is None:
            stamp = stamp.tz_localize(timezone.utc)
        return stamp.isoformat()

    text = to_str(value)

    match = _OFFSET_DATETIME.match(text)
    if match:
        return f"{match.group(1)}T{match.group(2)}{match.group(3)}:{match.group(4)}"

    match = _DOTTED_DATETIME.match(text)
    if match:
        day, month, year, hour, minute = (int(part) for part in match.groups())
        try:
            return datetime(year, month, day, hour, minute, tzinfo=timezone.utc).isoformat()
        except ValueError:
            logger.warning(f"⚠️ Invalid DateTime value skipped: '{text}'")
            return None

    try:
        stamp = pd.Timestamp(text)
    except (ValueError, TypeError):
        logger.warning(f"⚠️ Invalid DateTime value skipped: '{text}'")
        return None

    if pd.isna(stamp):
        return None
    if stamp.tzinfo is None:
        stamp = stamp.tz_localize(timezone.utc)
    return stamp.isoformat()


def normalize_phone(value: Any) -> Optional[str]:
    """
    Normaliza teléfonos a formato E.164 (+dígitos).

    Quita apóstrofe inicial (Excel), paréntesis, guiones y espacios.
    """
    if is_empty(value):
        return None

    text = to_str(value)
    if text.startswith("'"):
        text = text[1:]

    text = re.sub(r"[()\-\s]", "", text)

    if not re.fullmatch(r"\+?\d+", text):
        logger.warning(f"⚠️ Invalid phone skipped: '{value}'")
        return None

    return text if text.startswith("+") else f"+{text}"


def normalize_handle(value: Any) -> str:
    """Handle recortado."""
    return to_str(value)
