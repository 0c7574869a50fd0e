"""Decode uploaded spreadsheet bytes into sheet grids.

The container format is detected from its magic bytes:

1. **ZIP** (``.xlsx``/``.xlsm``) -- openpyxl with ``data_only=True`` so
   formulas yield their cached values; pandas ``read_excel`` as fallback.
2. **OLE2** (legacy ``.xls``) -- pandas ``read_excel`` (needs ``xlrd``).
   Encrypted Office files also use OLE2 and are rejected.
3. Anything else is treated as delimited text and read with pandas
   ``read_csv``.

Fatal conditions raise :class:`~vitalkit_excel.errors.WorkbookLoadError`;
non-fatal events (``W_PARSER_FALLBACK``, ``W_ROWS_TRUNCATED``) are returned
alongside the workbook.
"""

from __future__ import annotations

import csv
import io
import logging
import re
from typing import Any

import openpyxl
from openpyxl.chartsheet import Chartsheet
from openpyxl.worksheet.worksheet import Worksheet
import pandas as pd

from vitalkit_excel.config import ExtractorConfig
from vitalkit_excel.errors import ErrorCode, IngestError, WorkbookLoadError
from vitalkit_excel.models import LoadedWorkbook, SheetGrid

logger = logging.getLogger("vitalkit_excel")

ZIP_MAGIC = b"PK\x03\x04"
OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
_ENCRYPTION_STREAM = "EncryptionInfo".encode("utf-16-le")

_CSV_SHEET_NAME = "Sheet1"
_CSV_DELIMITERS = ",;\t|"
_INT_RE = re.compile(r"^-?\d+$")
_FLOAT_RE = re.compile(r"^-?\d+\.\d+$")


class WorkbookLoader:
    """Turn raw upload bytes into a :class:`LoadedWorkbook`.

    Parameters
    ----------
    config:
        Supplies ``max_file_size_mb``, ``max_rows_in_memory`` and
        ``csv_encoding``.
    """

    def __init__(self, config: ExtractorConfig) -> None:
        self._config = config

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def load(self, data: bytes) -> tuple[LoadedWorkbook, list[IngestError]]:
        """Decode *data* into sheets.

        Returns
        -------
        tuple[LoadedWorkbook, list[IngestError]]
            The workbook and any non-fatal warnings.

        Raises
        ------
        WorkbookLoadError
            If the bytes are empty, too large, encrypted, or unreadable by
            every reader.
        """
        errors: list[IngestError] = []

        if not data:
            raise WorkbookLoadError(
                code=ErrorCode.E_PARSE_EMPTY,
                message="Upload is empty (0 bytes).",
                stage="load",
            )

        max_bytes = self._config.max_file_size_mb * 1024 * 1024
        if len(data) > max_bytes:
            raise WorkbookLoadError(
                code=ErrorCode.E_SECURITY_TOO_LARGE,
                message=(
                    f"Upload size {len(data)} bytes exceeds limit of "
                    f"{max_bytes} bytes ({self._config.max_file_size_mb} MB)"
                ),
                stage="load",
            )

        if data.startswith(ZIP_MAGIC):
            workbook = self._try_openpyxl(data)
            if workbook is None:
                logger.warning("openpyxl could not read upload; trying pandas fallback")
                workbook = self._try_pandas_excel(data)
                if workbook is not None:
                    errors.append(
                        IngestError(
                            code=ErrorCode.W_PARSER_FALLBACK,
                            message="Workbook read via pandas fallback.",
                            stage="load",
                            recoverable=True,
                        )
                    )
        elif data.startswith(OLE2_MAGIC):
            if _ENCRYPTION_STREAM in data:
                raise WorkbookLoadError(
                    code=ErrorCode.E_PARSE_PASSWORD,
                    message="Workbook is encrypted or password-protected.",
                    stage="load",
                )
            workbook = self._try_pandas_excel(data)
        else:
            workbook = self._try_csv(data)

        if workbook is None:
            raise WorkbookLoadError(
                code=ErrorCode.E_PARSE_CORRUPT,
                message="All readers failed. File may be corrupt.",
                stage="load",
            )

        workbook.sheets = [self._truncate(grid, errors) for grid in workbook.sheets]
        logger.info(
            "Loaded workbook: %d sheet(s), %d with data",
            len(workbook.sheet_names),
            len(workbook.sheets),
        )
        return workbook, errors

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    def _try_openpyxl(self, data: bytes) -> LoadedWorkbook | None:
        try:
            wb = openpyxl.load_workbook(io.BytesIO(data), data_only=True)
        except Exception as exc:
            if _mentions_password(exc):
                raise WorkbookLoadError(
                    code=ErrorCode.E_PARSE_PASSWORD,
                    message=f"Workbook is password-protected: {exc}",
                    stage="load",
                ) from exc
            logger.debug("openpyxl open failed", exc_info=True)
            return None

        try:
            sheets: list[SheetGrid] = []
            for sheet_name in wb.sheetnames:
                ws = wb[sheet_name]
                if isinstance(ws, Chartsheet):
                    logger.info("Skipped chart-only sheet '%s'", sheet_name)
                    continue
                if not isinstance(ws, Worksheet):
                    continue
                rows = [list(row) for row in ws.iter_rows(values_only=True)]
                sheets.append(SheetGrid(name=sheet_name, rows=rows))
            return LoadedWorkbook(sheet_names=list(wb.sheetnames), sheets=sheets)
        except Exception:
            logger.debug("openpyxl sheet read failed", exc_info=True)
            return None
        finally:
            wb.close()

    def _try_pandas_excel(self, data: bytes) -> LoadedWorkbook | None:
        try:
            frames = pd.read_excel(io.BytesIO(data), sheet_name=None, header=None)
        except Exception as exc:
            if _mentions_password(exc):
                raise WorkbookLoadError(
                    code=ErrorCode.E_PARSE_PASSWORD,
                    message=f"Workbook is password-protected: {exc}",
                    stage="load",
                ) from exc
            logger.debug("pandas read_excel failed", exc_info=True)
            return None

        sheets = [
            SheetGrid(name=str(name), rows=_frame_rows(df))
            for name, df in frames.items()
        ]
        return LoadedWorkbook(sheet_names=[s.name for s in sheets], sheets=sheets)

    def _try_csv(self, data: bytes) -> LoadedWorkbook | None:
        try:
            text = data.decode(self._config.csv_encoding)
        except UnicodeDecodeError:
            text = data.decode("cp1252", errors="replace")
        if "\x00" in text:
            logger.debug("Upload contains NUL bytes; not delimited text")
            return None

        lines = [line for line in text.splitlines() if line.strip()]
        if not lines:
            return None

        delimiter = _sniff_delimiter("\n".join(lines[:50]))
        width = max(len(line.split(delimiter)) for line in lines)
        try:
            df = pd.read_csv(
                io.StringIO(text),
                sep=delimiter,
                header=None,
                names=list(range(width)),
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=False,
                engine="python",
            )
        except Exception:
            logger.debug("pandas read_csv failed", exc_info=True)
            return None

        rows = [[_coerce_text_cell(v) for v in row] for row in _frame_rows(df)]
        rows = _trim_trailing_columns(rows)
        return LoadedWorkbook(
            sheet_names=[_CSV_SHEET_NAME],
            sheets=[SheetGrid(name=_CSV_SHEET_NAME, rows=rows)],
        )

    # ------------------------------------------------------------------
    # Limits
    # ------------------------------------------------------------------

    def _truncate(self, grid: SheetGrid, errors: list[IngestError]) -> SheetGrid:
        limit = self._config.max_rows_in_memory
        if len(grid.rows) <= limit:
            return grid
        errors.append(
            IngestError(
                code=ErrorCode.W_ROWS_TRUNCATED,
                message=(
                    f"Sheet '{grid.name}' has {len(grid.rows)} rows, "
                    f"exceeding max_rows_in_memory ({limit}). "
                    f"Rows beyond the limit were ignored."
                ),
                sheet_name=grid.name,
                stage="load",
                recoverable=True,
            )
        )
        logger.warning(
            "Sheet '%s' exceeds max_rows_in_memory (%d > %d); truncated",
            grid.name,
            len(grid.rows),
            limit,
        )
        return SheetGrid(name=grid.name, rows=grid.rows[:limit])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _mentions_password(exc: Exception) -> bool:
    message = str(exc).lower()
    return "password" in message or "encrypted" in message


def _to_python(value: Any) -> Any:
    """Map pandas/numpy scalars onto plain Python cell values."""
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        return value
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if hasattr(value, "item"):
        return value.item()
    return value


def _frame_rows(df: pd.DataFrame) -> list[list[Any]]:
    return [[_to_python(v) for v in row] for row in df.itertuples(index=False)]


def _sniff_delimiter(sample: str) -> str:
    try:
        return csv.Sniffer().sniff(sample, delimiters=_CSV_DELIMITERS).delimiter
    except csv.Error:
        return ","


def _coerce_text_cell(value: Any) -> Any:
    """Type plain numeric text the way spreadsheet apps do on CSV import."""
    if not isinstance(value, str):
        return value
    stripped = value.strip()
    if stripped == "":
        return None
    if _INT_RE.match(stripped):
        return int(stripped)
    if _FLOAT_RE.match(stripped):
        return float(stripped)
    return value


def _trim_trailing_columns(rows: list[list[Any]]) -> list[list[Any]]:
    width = 0
    for row in rows:
        for idx, cell in enumerate(row):
            if cell is not None:
                width = max(width, idx + 1)
    return [row[:width] for row in rows]
