"""vitalkit-excel -- health-metric extraction from schema-free spreadsheets.

Public API exports for the extractor, models, enums, errors, configuration,
and the parameter registry.
"""

from vitalkit_excel.config import ExtractorConfig
from vitalkit_excel.errors import ErrorCode, IngestError, WorkbookLoadError
from vitalkit_excel.extractor import ExtractionState, MetricExtractor
from vitalkit_excel.models import (
    BloodPressureSample,
    ColumnDescriptor,
    ColumnMatch,
    ColumnRole,
    ExtractionResult,
    HeartData,
    HeartRatePoint,
    MetricsState,
    NumericSample,
    ParameterDefinition,
    ParameterKind,
    SheetGrid,
    SheetSummary,
    WorkbookMeta,
)
from vitalkit_excel.registry import PARAMETER_REGISTRY, PARAMETERS_BY_KEY
from vitalkit_excel.text import normalize_text

__all__ = [
    # Enums
    "ColumnRole",
    "ParameterKind",
    # Registry
    "ParameterDefinition",
    "PARAMETER_REGISTRY",
    "PARAMETERS_BY_KEY",
    # Core models
    "SheetGrid",
    "ColumnMatch",
    "ColumnDescriptor",
    "NumericSample",
    "BloodPressureSample",
    "MetricsState",
    "WorkbookMeta",
    "SheetSummary",
    "HeartRatePoint",
    "HeartData",
    "ExtractionResult",
    # Extractor
    "MetricExtractor",
    "ExtractionState",
    # Text
    "normalize_text",
    # Errors
    "ErrorCode",
    "IngestError",
    "WorkbookLoadError",
    # Config
    "ExtractorConfig",
]
