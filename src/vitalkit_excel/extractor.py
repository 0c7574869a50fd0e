"""MetricExtractor -- orchestrator and public API for vitalkit-excel.

Drives one uploaded spreadsheet through the pipeline:

1. Decode the bytes via :class:`WorkbookLoader`.
2. Per sheet: locate the header (:class:`HeaderDetector`), classify the
   columns (:class:`ColumnClassifier`), and fold every data row into the
   run's :class:`ExtractionState`.
3. Sort the trend series and assemble the :class:`ExtractionResult`.

The extractor never raises for a bad upload: every failure is caught once,
at this boundary, and turned into the fallback result carrying an
``errorCode``.
"""

from __future__ import annotations

import asyncio
import logging
import os
from datetime import date, datetime, timezone
from typing import Any

from pydantic import ValidationError

from vitalkit_excel.aggregator import MetricAggregator
from vitalkit_excel.assembler import ResultAssembler
from vitalkit_excel.column_classifier import ColumnClassifier
from vitalkit_excel.config import ExtractorConfig
from vitalkit_excel.errors import ErrorCode, IngestError, WorkbookLoadError
from vitalkit_excel.header_detector import HeaderDetector
from vitalkit_excel.loader import WorkbookLoader
from vitalkit_excel.models import (
    ExtractionResult,
    SheetGrid,
    SheetSummary,
    WorkbookMeta,
)
from vitalkit_excel.parsing import is_empty_cell
from vitalkit_excel.raw_labels import RawLabelCollector
from vitalkit_excel.row_extractor import RowExtractor
from vitalkit_excel.trends import finalize_trends

logger = logging.getLogger("vitalkit_excel")

MetaLike = WorkbookMeta | dict[str, Any] | None


class ExtractionState:
    """Mutable state of a single extraction run.

    Created fresh for every call to :meth:`MetricExtractor.extract` and
    discarded with it, so nothing leaks between uploads.
    """

    def __init__(self, max_raw_labels: int) -> None:
        self.aggregator = MetricAggregator()
        self.raw_labels = RawLabelCollector(max_raw_labels)
        self.sheet_summaries: list[SheetSummary] = []
        self.warnings: list[IngestError] = []


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------


class MetricExtractor:
    """Extract health metrics from spreadsheet uploads.

    Parameters
    ----------
    config:
        Extraction configuration. Uses defaults when *None*.
    """

    def __init__(self, config: ExtractorConfig | None = None) -> None:
        self._config = config or ExtractorConfig()
        self._loader = WorkbookLoader(self._config)
        self._header_detector = HeaderDetector(self._config)
        self._classifier = ColumnClassifier(self._config)
        self._assembler = ResultAssembler(self._config)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract(self, data: bytes, meta: MetaLike = None) -> ExtractionResult:
        """Extract metrics from raw spreadsheet bytes.

        Parameters
        ----------
        data:
            The uploaded file content (``.xlsx``, ``.xls`` or delimited text).
        meta:
            Upload metadata (``name``, ``uploadedAt``); a plain dict is
            accepted in either snake_case or camelCase.

        Returns
        -------
        ExtractionResult
            Always a well-formed result. On failure it has empty metrics and
            ``error``/``error_code`` set.

        Notes
        -----
        Without ``uploadedAt`` in *meta* the result uses the processing time,
        so repeated runs then differ in ``uploadedAt`` as well as ``parsedAt``.
        """
        parsed_at = datetime.now(timezone.utc)
        workbook_meta = _coerce_meta(meta)
        filename = workbook_meta.name or self._config.default_filename

        try:
            return self._run(data, workbook_meta, parsed_at)
        except WorkbookLoadError as exc:
            logger.error(
                "vitalkit_excel | file=%s | code=%s | detail=%s",
                filename,
                exc.code.value,
                exc.message,
            )
            return self._assembler.build_fallback(workbook_meta, parsed_at, exc.error)
        except Exception as exc:
            logger.exception(
                "vitalkit_excel | file=%s | code=%s | detail=%s",
                filename,
                ErrorCode.E_EXTRACT_FAILED.value,
                exc,
            )
            error = IngestError(
                code=ErrorCode.E_EXTRACT_FAILED,
                message=f"Unexpected error during extraction: {exc}",
                stage="extract",
            )
            return self._assembler.build_fallback(workbook_meta, parsed_at, error)

    def extract_file(self, file_path: str, meta: MetaLike = None) -> ExtractionResult:
        """Read *file_path* from disk and extract it.

        The file's base name is used as ``filename`` unless *meta* names one.
        """
        workbook_meta = _coerce_meta(meta)
        if workbook_meta.name is None:
            workbook_meta = workbook_meta.model_copy(
                update={"name": os.path.basename(file_path)}
            )
        try:
            with open(file_path, "rb") as fh:
                data = fh.read()
        except OSError as exc:
            logger.error(
                "vitalkit_excel | file=%s | code=%s | detail=%s",
                workbook_meta.name,
                ErrorCode.E_PARSE_CORRUPT.value,
                exc,
            )
            error = IngestError(
                code=ErrorCode.E_PARSE_CORRUPT,
                message=f"Cannot read file: {exc}",
                stage="load",
            )
            return self._assembler.build_fallback(
                workbook_meta, datetime.now(timezone.utc), error
            )
        return self.extract(data, workbook_meta)

    async def aextract(self, data: bytes, meta: MetaLike = None) -> ExtractionResult:
        """Async wrapper around :meth:`extract`.

        Offloads the synchronous ``extract()`` call to a thread via
        ``asyncio.to_thread()``.
        """
        return await asyncio.to_thread(self.extract, data, meta)

    async def aextract_file(
        self, file_path: str, meta: MetaLike = None
    ) -> ExtractionResult:
        """Async wrapper around :meth:`extract_file`."""
        return await asyncio.to_thread(self.extract_file, file_path, meta)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _run(
        self, data: bytes, meta: WorkbookMeta, parsed_at: datetime
    ) -> ExtractionResult:
        workbook, load_errors = self._loader.load(data)

        state = ExtractionState(self._config.max_raw_labels)
        state.warnings.extend(load_errors)
        for error in load_errors:
            if error.code == ErrorCode.W_PARSER_FALLBACK:
                logger.warning(
                    "Parse fallback for %s: %s", meta.name, error.message
                )

        for grid in workbook.sheets:
            self._process_sheet(grid, state, parsed_at.date())

        metrics = state.aggregator.metrics
        finalize_trends(metrics)

        logger.info(
            "Extracted %s: %d sheet(s), %d row(s), %d warning(s)",
            meta.name or self._config.default_filename,
            len(state.sheet_summaries),
            state.aggregator.sequence,
            len(state.warnings),
        )
        return self._assembler.build(
            meta=meta,
            parsed_at=parsed_at,
            sheet_names=workbook.sheet_names,
            sheet_summaries=state.sheet_summaries,
            metrics=metrics,
            raw_data=state.raw_labels.labels,
            dynamic_data=state.raw_labels.dynamic_data,
            warnings=[w.as_warning() for w in state.warnings],
        )

    def _process_sheet(
        self, grid: SheetGrid, state: ExtractionState, reference_date: date
    ) -> None:
        header = self._header_detector.detect(grid.rows)
        if header is None:
            logger.warning("Sheet '%s' has no header row; skipped", grid.name)
            state.warnings.append(
                IngestError(
                    code=ErrorCode.W_SHEET_NO_HEADER,
                    message="No non-empty row found in the header scan window.",
                    sheet_name=grid.name,
                    stage="header",
                    recoverable=True,
                )
            )
            return

        data_rows = [
            row
            for row in grid.rows[header.index + 1 :]
            if any(not is_empty_cell(cell) for cell in row)
        ]
        if not data_rows:
            logger.warning("Sheet '%s' has no data rows; skipped", grid.name)
            state.warnings.append(
                IngestError(
                    code=ErrorCode.W_SHEET_NO_DATA,
                    message="Header found but no data rows follow it.",
                    sheet_name=grid.name,
                    stage="header",
                    recoverable=True,
                )
            )
            return

        descriptors = self._classifier.describe(header.labels, grid.rows, header.index)
        state.sheet_summaries.append(
            SheetSummary(
                sheet_name=grid.name,
                header_row_index=header.index,
                header_row=header.labels,
                row_count=len(data_rows),
            )
        )

        extractor = RowExtractor(descriptors, reference_date)
        for row in data_rows:
            timestamp = extractor.derive_timestamp(row)
            values = extractor.extract_values(row)
            state.aggregator.apply_row(values, timestamp, grid.name)
            state.raw_labels.collect(descriptors, row)

        logger.debug(
            "Sheet '%s': header row %d, %d data row(s)",
            grid.name,
            header.index,
            len(data_rows),
        )


def _coerce_meta(meta: MetaLike) -> WorkbookMeta:
    if meta is None:
        return WorkbookMeta()
    if isinstance(meta, WorkbookMeta):
        return meta
    try:
        return WorkbookMeta.model_validate(meta)
    except ValidationError as exc:
        logger.warning("Ignoring invalid upload metadata: %s", exc)
    name = meta.get("name") if isinstance(meta, dict) else None
    return WorkbookMeta(name=name if isinstance(name, str) else None)
