"""Pydantic data models and enumerations for vitalkit-excel.

This module defines the data model layer referenced throughout the pipeline:
the column-role and parameter-kind enums, the in-memory sheet grid, the
per-column descriptors produced by classification, the sample and metric
state types folded by the aggregator, and the outward ``ExtractionResult``
document.  Outward-facing models serialize with camelCase aliases.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Metric slot shared by the systolic, diastolic and combined parameters.
BLOOD_PRESSURE_METRIC = "bloodPressure"


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ColumnRole(str, Enum):
    """Semantic type of a column, fixed for its sheet."""

    DATETIME = "datetime"
    DATE = "date"
    TIME = "time"
    VALUE = "value"


class ParameterKind(str, Enum):
    """How a matched column's cells are turned into values.

    Blood-pressure columns carry one or both sides of a reading; everything
    else is a single locale-tolerant number.
    """

    NUMERIC = "numeric"
    BP_SYSTOLIC = "bp_systolic"
    BP_DIASTOLIC = "bp_diastolic"
    BP_COMBINED = "bp_combined"


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------


class DocumentModel(BaseModel):
    """Base for models that cross the package boundary as JSON documents."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Registry and classification
# ---------------------------------------------------------------------------


class ParameterDefinition(BaseModel):
    """One entry of the fixed physiological parameter registry."""

    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    unit: str
    matchers: tuple[str, ...]
    min_value: float | None = None
    max_value: float | None = None
    timeline: bool = False
    kind: ParameterKind = ParameterKind.NUMERIC

    @property
    def metric_key(self) -> str:
        """Slot in ``MetricsState`` this parameter folds into."""
        if self.kind is ParameterKind.NUMERIC:
            return self.key
        return BLOOD_PRESSURE_METRIC

    def in_range(self, value: float) -> bool:
        """Return True if *value* passes the plausibility range."""
        if self.min_value is not None and value < self.min_value:
            return False
        if self.max_value is not None and value > self.max_value:
            return False
        return True


class SheetGrid(BaseModel):
    """Decoded cells of one worksheet, row-major."""

    name: str
    rows: list[list[Any]]


class LoadedWorkbook(BaseModel):
    """Every sheet name in workbook order, plus the decoded data sheets."""

    sheet_names: list[str]
    sheets: list[SheetGrid]


class ColumnMatch(BaseModel):
    """A parameter matched to a column, with the keyword-length score."""

    parameter_key: str
    score: int


class ColumnDescriptor(BaseModel):
    """Role and parameter assignment for one column of one sheet."""

    index: int
    header: str
    normalized: str
    role: ColumnRole = ColumnRole.VALUE
    match: ColumnMatch | None = None


class HeaderInfo(BaseModel):
    """Header row located by the detector."""

    index: int
    labels: list[str]


class RowValues(BaseModel):
    """Typed values extracted from a single data row."""

    numeric: dict[str, int | float] = Field(default_factory=dict)
    systolic: int | float | None = None
    diastolic: int | float | None = None

    @property
    def has_blood_pressure(self) -> bool:
        return self.systolic is not None or self.diastolic is not None


# ---------------------------------------------------------------------------
# Samples and metric state
# ---------------------------------------------------------------------------


class NumericSample(DocumentModel):
    """An accepted single-valued measurement."""

    value: int | float
    unit: str
    timestamp: datetime | None = None
    sheet: str | None = None
    sequence: int


class BloodPressureSample(DocumentModel):
    """A blood-pressure reading; either side may be missing on ``latest``."""

    systolic: int | float | None = None
    diastolic: int | float | None = None
    unit: str = "mmHg"
    timestamp: datetime | None = None
    sheet: str | None = None
    sequence: int


Sample = Union[NumericSample, BloodPressureSample]


class MetricsState(DocumentModel):
    """Latest value and trend series per metric key."""

    latest: dict[str, Sample | None] = Field(default_factory=dict)
    trends: dict[str, list[Sample]] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Result document
# ---------------------------------------------------------------------------


class WorkbookMeta(DocumentModel):
    """Upload metadata supplied by the storage collaborator."""

    name: str | None = None
    uploaded_at: datetime | None = None


class SheetSummary(DocumentModel):
    """Per-sheet header and row-count summary."""

    sheet_name: str
    header_row_index: int
    header_row: list[str]
    row_count: int


class HeartRatePoint(DocumentModel):
    """One display point of the heart-rate timeline."""

    time: str
    value: int | float
    unit: str


class HeartData(DocumentModel):
    """Narrow projection consumed directly by the heart display view."""

    heart_rate: int | float | None = None
    systolic_bp: int | float | None = Field(default=None, alias="systolicBP")
    diastolic_bp: int | float | None = Field(default=None, alias="diastolicBP")
    cholesterol_ldl: int | float | None = Field(
        default=None, alias="cholesterolLDL"
    )
    heart_rate_over_time: list[HeartRatePoint] = Field(default_factory=list)
    blood_pressure_data: list[BloodPressureSample] = Field(default_factory=list)
    ecg_data: list[Any] = Field(default_factory=list)
    hrv_data: list[Any] = Field(default_factory=list)


class ExtractionResult(DocumentModel):
    """Final document produced for one uploaded spreadsheet."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    filename: str
    uploaded_at: datetime
    parsed_at: datetime
    parser_version: str
    sheet_names: list[str] = Field(default_factory=list)
    sheet_summaries: list[SheetSummary] = Field(default_factory=list)
    metrics: MetricsState = Field(default_factory=MetricsState)
    raw_data: list[str] = Field(default_factory=list)
    dynamic_data: dict[str, int | float | str] = Field(default_factory=dict)
    heart_data: HeartData = Field(default_factory=HeartData)
    warnings: list[str] = Field(default_factory=list)
    error: str | None = None
    error_code: str | None = None

    def to_document(self) -> dict[str, Any]:
        """Return the JSON-ready dict handed to persistence/display.

        ``error`` and ``errorCode`` are present only on fallback results.
        """
        doc = self.model_dump(mode="json", by_alias=True)
        for key in ("error", "errorCode"):
            if doc.get(key) is None:
                doc.pop(key, None)
        return doc
