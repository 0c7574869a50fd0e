"""Result document assembly, including the heart view and failure fallback."""

from __future__ import annotations

from datetime import datetime, timezone

from vitalkit_excel.aggregator import empty_metrics
from vitalkit_excel.config import ExtractorConfig
from vitalkit_excel.errors import IngestError
from vitalkit_excel.models import (
    BloodPressureSample,
    ExtractionResult,
    HeartData,
    HeartRatePoint,
    MetricsState,
    NumericSample,
    SheetSummary,
    WorkbookMeta,
)
from vitalkit_excel.registry import BLOOD_PRESSURE_METRIC


class ResultAssembler:
    """Compose :class:`ExtractionResult` documents.

    Parameters
    ----------
    config:
        Supplies the default filename, fallback error message and the
        timeline time format.
    """

    def __init__(self, config: ExtractorConfig) -> None:
        self._config = config

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(
        self,
        meta: WorkbookMeta,
        parsed_at: datetime,
        sheet_names: list[str],
        sheet_summaries: list[SheetSummary],
        metrics: MetricsState,
        raw_data: list[str],
        dynamic_data: dict[str, int | float | str],
        warnings: list[str],
    ) -> ExtractionResult:
        """Assemble the result of a successful run."""
        return ExtractionResult(
            filename=self._filename(meta),
            uploaded_at=self._uploaded_at(meta, parsed_at),
            parsed_at=parsed_at,
            parser_version=self._config.parser_version,
            sheet_names=sheet_names,
            sheet_summaries=sheet_summaries,
            metrics=metrics,
            raw_data=raw_data,
            dynamic_data=dynamic_data,
            heart_data=self.build_heart_data(metrics),
            warnings=warnings,
        )

    def build_fallback(
        self,
        meta: WorkbookMeta,
        parsed_at: datetime,
        error: IngestError,
    ) -> ExtractionResult:
        """Minimal well-formed result for an upload that could not be read."""
        return ExtractionResult(
            filename=self._filename(meta),
            uploaded_at=self._uploaded_at(meta, parsed_at),
            parsed_at=parsed_at,
            parser_version=self._config.parser_version,
            metrics=empty_metrics(),
            heart_data=HeartData(),
            error=self._config.fallback_error_message,
            error_code=error.code.value,
        )

    def build_heart_data(self, metrics: MetricsState) -> HeartData:
        """Project the metrics onto the fields the heart view renders."""
        heart_rate = metrics.latest.get("heartRate")
        ldl = metrics.latest.get("ldl")
        blood_pressure = metrics.latest.get(BLOOD_PRESSURE_METRIC)
        if not isinstance(blood_pressure, BloodPressureSample):
            blood_pressure = None

        timeline = [
            HeartRatePoint(
                time=self._format_time(sample.timestamp),
                value=sample.value,
                unit="bpm",
            )
            for sample in metrics.trends.get("heartRate", [])
            if isinstance(sample, NumericSample)
        ]
        pressure_trend = [
            sample
            for sample in metrics.trends.get(BLOOD_PRESSURE_METRIC, [])
            if isinstance(sample, BloodPressureSample)
        ]

        return HeartData(
            heart_rate=heart_rate.value if isinstance(heart_rate, NumericSample) else None,
            systolic_bp=blood_pressure.systolic if blood_pressure else None,
            diastolic_bp=blood_pressure.diastolic if blood_pressure else None,
            cholesterol_ldl=ldl.value if isinstance(ldl, NumericSample) else None,
            heart_rate_over_time=timeline,
            blood_pressure_data=pressure_trend,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _filename(self, meta: WorkbookMeta) -> str:
        return meta.name or self._config.default_filename

    @staticmethod
    def _uploaded_at(meta: WorkbookMeta, parsed_at: datetime) -> datetime:
        if meta.uploaded_at is None:
            return parsed_at
        if meta.uploaded_at.tzinfo is None:
            return meta.uploaded_at.replace(tzinfo=timezone.utc)
        return meta.uploaded_at.astimezone(timezone.utc)

    def _format_time(self, timestamp: datetime | None) -> str:
        if timestamp is None:
            return ""
        return timestamp.strftime(self._config.timeline_time_format)
