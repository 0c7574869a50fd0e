"""End-to-end tests for MetricExtractor.

Builds small workbooks in memory with openpyxl and checks the resulting
documents: latest values, trend ordering, blood-pressure handling, raw label
capping, warnings, and the fallback contract.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from vitalkit_excel.config import ExtractorConfig
from vitalkit_excel.extractor import MetricExtractor
from vitalkit_excel.header_detector import HeaderDetector
from vitalkit_excel.models import WorkbookMeta

UTC = timezone.utc
META = WorkbookMeta(name="hälsa.xlsx", uploaded_at=datetime(2024, 5, 1, tzinfo=UTC))


@pytest.fixture()
def extractor(default_config: ExtractorConfig) -> MetricExtractor:
    return MetricExtractor(default_config)


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


class TestHeartRateLog:
    def test_latest_and_trend(
        self, extractor: MetricExtractor, make_xlsx: Callable[..., bytes]
    ) -> None:
        data = make_xlsx(
            [["Hjärtfrekvens", "Datum"], [72, "2024-01-01"], [75, "2024-01-02"]]
        )
        doc = extractor.extract(data, META).to_document()

        latest = doc["metrics"]["latest"]["heartRate"]
        assert latest["value"] == 75
        assert latest["unit"] == "bpm"
        assert latest["timestamp"] == "2024-01-02T00:00:00Z"
        assert latest["sheet"] == "Sheet1"

        trend = doc["metrics"]["trends"]["heartRate"]
        assert [s["value"] for s in trend] == [72, 75]
        assert [s["timestamp"] for s in trend] == [
            "2024-01-01T00:00:00Z",
            "2024-01-02T00:00:00Z",
        ]

        assert doc["heartData"]["heartRate"] == 75
        assert [p["time"] for p in doc["heartData"]["heartRateOverTime"]] == [
            "2024-01-01 00:00:00",
            "2024-01-02 00:00:00",
        ]
        assert doc["rawData"] == ["Hjärtfrekvens"]
        assert doc["dynamicData"] == {"Hjärtfrekvens": 75}

    def test_trend_sorted_chronologically(
        self, extractor: MetricExtractor, make_xlsx: Callable[..., bytes]
    ) -> None:
        data = make_xlsx(
            [
                ["Datum", "Vikt"],
                ["2024-01-03", 81],
                ["2024-01-01", 80],
                ["2024-01-02", "80,5"],
            ]
        )
        result = extractor.extract(data, META)
        assert [s.value for s in result.metrics.trends["weight"]] == [80, 80.5, 81]
        assert result.metrics.latest["weight"].value == 81  # type: ignore[union-attr]

    def test_header_below_title_rows(
        self, extractor: MetricExtractor, make_xlsx: Callable[..., bytes]
    ) -> None:
        data = make_xlsx(
            [
                ["Min hälsologg"],
                [],
                ["Datum", "Klockslag", "Steg", "Sömn"],
                ["2024-02-01", "07:30", "8 500", "7,5"],
            ]
        )
        result = extractor.extract(data, META)

        assert result.sheet_summaries[0].header_row_index == 2
        assert result.sheet_summaries[0].row_count == 1
        steps = result.metrics.latest["steps"]
        assert steps is not None
        assert steps.value == 8500  # type: ignore[union-attr]
        assert steps.timestamp == datetime(2024, 2, 1, 7, 30, tzinfo=UTC)
        assert result.metrics.latest["sleep"].value == 7.5  # type: ignore[union-attr]

    def test_steg_header_matches_steps(
        self, extractor: MetricExtractor, make_xlsx: Callable[..., bytes]
    ) -> None:
        result = extractor.extract(make_xlsx([["steg"], [12000]]), META)
        assert result.metrics.latest["steps"].value == 12000  # type: ignore[union-attr]

    def test_native_datetime_cells(
        self, extractor: MetricExtractor, make_xlsx: Callable[..., bytes]
    ) -> None:
        data = make_xlsx(
            [["Tidpunkt", "SpO2"], [datetime(2024, 3, 1, 22, 15), 97]]
        )
        latest = extractor.extract(data, META).metrics.latest["oxygenSaturation"]
        assert latest is not None
        assert latest.timestamp == datetime(2024, 3, 1, 22, 15, tzinfo=UTC)

    def test_csv_upload(self, extractor: MetricExtractor) -> None:
        data = "Datum;Hjärtfrekvens\n2024-01-01;72\n2024-01-02;75\n".encode()
        result = extractor.extract(data, WorkbookMeta(name="logg.csv"))
        assert result.sheet_names == ["Sheet1"]
        assert result.metrics.latest["heartRate"].value == 75  # type: ignore[union-attr]


class TestBloodPressure:
    def test_combined_column(
        self, extractor: MetricExtractor, make_xlsx: Callable[..., bytes]
    ) -> None:
        data = make_xlsx(
            [
                ["Datum", "Blodtryck"],
                ["2024-01-01", "120/80"],
                ["2024-01-02", "999/999"],
            ]
        )
        doc = extractor.extract(data, META).to_document()

        latest = doc["metrics"]["latest"]["bloodPressure"]
        assert (latest["systolic"], latest["diastolic"]) == (120, 80)
        assert latest["unit"] == "mmHg"
        assert len(doc["metrics"]["trends"]["bloodPressure"]) == 1
        assert doc["heartData"]["systolicBP"] == 120
        assert doc["heartData"]["diastolicBP"] == 80
        assert len(doc["heartData"]["bloodPressureData"]) == 1

    def test_unlabelled_column_detected_from_samples(
        self, extractor: MetricExtractor, make_xlsx: Callable[..., bytes]
    ) -> None:
        data = make_xlsx(
            [
                ["Datum", None, "Anteckning", "Vikt"],
                ["2024-01-01", "118/76", None, 80],
            ]
        )
        result = extractor.extract(data, META)
        latest = result.metrics.latest["bloodPressure"]
        assert latest is not None
        assert (latest.systolic, latest.diastolic) == (118, 76)  # type: ignore[union-attr]
        assert result.sheet_summaries[0].header_row == [
            "Datum",
            "Column 2",
            "Anteckning",
            "Vikt",
        ]

    def test_separate_columns(
        self, extractor: MetricExtractor, make_xlsx: Callable[..., bytes]
    ) -> None:
        data = make_xlsx(
            [
                ["Datum", "Systoliskt", "Diastoliskt"],
                ["2024-01-01", 130, 85],
                ["2024-01-02", 125, None],
            ]
        )
        result = extractor.extract(data, META)
        latest = result.metrics.latest["bloodPressure"]
        assert (latest.systolic, latest.diastolic) == (125, 85)  # type: ignore[union-attr]
        assert len(result.metrics.trends["bloodPressure"]) == 1


class TestOrdering:
    def test_same_timestamp_later_row_wins(
        self, extractor: MetricExtractor, make_xlsx: Callable[..., bytes]
    ) -> None:
        data = make_xlsx(
            [["Datum", "Vikt"], ["2024-01-01", 80], ["2024-01-01", 82]]
        )
        result = extractor.extract(data, META)
        assert result.metrics.latest["weight"].value == 82  # type: ignore[union-attr]

    def test_sequence_spans_sheets(
        self, extractor: MetricExtractor, make_xlsx: Callable[..., bytes]
    ) -> None:
        data = make_xlsx(
            sheets={"A": [["Vikt"], [80]], "B": [["Vikt"], [81]]}
        )
        latest = extractor.extract(data, META).metrics.latest["weight"]
        assert latest is not None
        assert latest.value == 81  # type: ignore[union-attr]
        assert latest.sheet == "B"
        assert latest.sequence == 2

    def test_out_of_range_dropped(
        self, extractor: MetricExtractor, make_xlsx: Callable[..., bytes]
    ) -> None:
        data = make_xlsx([["Datum", "Pulse"], ["2024-01-01", 400]])
        result = extractor.extract(data, META)
        assert result.metrics.latest["heartRate"] is None


class TestRawData:
    def test_cap(self, make_xlsx: Callable[..., bytes]) -> None:
        extractor = MetricExtractor(ExtractorConfig(max_raw_labels=2))
        data = make_xlsx(
            [["Vikt", "Steg", "Sömn", "LDL"], [80, 9000, 7, 2.5]]
        )
        doc = extractor.extract(data, META).to_document()
        assert doc["rawData"] == ["Vikt", "Steg"]
        assert len(doc["dynamicData"]) == 4


class TestSheetWarnings:
    def test_empty_and_header_only_sheets(
        self, extractor: MetricExtractor, make_xlsx: Callable[..., bytes]
    ) -> None:
        data = make_xlsx(
            sheets={
                "Data": [["Puls"], [70]],
                "Tom": [],
                "Rubrik": [["Puls", "Datum"]],
            }
        )
        result = extractor.extract(data, META)

        assert result.sheet_names == ["Data", "Tom", "Rubrik"]
        assert [s.sheet_name for s in result.sheet_summaries] == ["Data"]
        assert result.warnings == [
            "W_SHEET_NO_HEADER: Tom",
            "W_SHEET_NO_DATA: Rubrik",
        ]
        assert result.error is None


# ---------------------------------------------------------------------------
# Failure contract
# ---------------------------------------------------------------------------


class TestFallback:
    def test_corrupt_bytes(self, extractor: MetricExtractor) -> None:
        doc = extractor.extract(b"PK\x03\x04 truncated", META).to_document()

        assert doc["error"] == "Excel file could not be parsed automatically"
        assert doc["errorCode"] == "E_PARSE_CORRUPT"
        assert doc["filename"] == "hälsa.xlsx"
        assert all(v is None for v in doc["metrics"]["latest"].values())
        assert all(v == [] for v in doc["metrics"]["trends"].values())
        assert doc["sheetSummaries"] == []

    def test_empty_bytes(self, extractor: MetricExtractor) -> None:
        result = extractor.extract(b"")
        assert result.error_code == "E_PARSE_EMPTY"
        assert result.filename == "excel.xlsx"

    def test_unexpected_error(
        self, extractor: MetricExtractor, make_xlsx: Callable[..., bytes]
    ) -> None:
        with patch.object(HeaderDetector, "detect", side_effect=RuntimeError("boom")):
            result = extractor.extract(make_xlsx([["Puls"], [70]]), META)
        assert result.error_code == "E_EXTRACT_FAILED"
        assert result.error is not None

    def test_invalid_meta_is_ignored(
        self, extractor: MetricExtractor, make_xlsx: Callable[..., bytes]
    ) -> None:
        result = extractor.extract(
            make_xlsx([["Pulse"], [66]]),
            {"name": "a.xlsx", "uploadedAt": "yesterday"},
        )
        assert result.error is None
        assert result.filename == "a.xlsx"
        assert result.uploaded_at == result.parsed_at
        assert result.heart_data.heart_rate == 66

    def test_non_mapping_meta_is_ignored(
        self, extractor: MetricExtractor, make_xlsx: Callable[..., bytes]
    ) -> None:
        result = extractor.extract(make_xlsx([["Pulse"], [66]]), "a.xlsx")  # type: ignore[arg-type]
        assert result.error is None
        assert result.filename == "excel.xlsx"

    def test_missing_file(self, extractor: MetricExtractor, tmp_path: Path) -> None:
        result = extractor.extract_file(str(tmp_path / "gone.xlsx"))
        doc = result.to_document()

        assert doc["filename"] == "gone.xlsx"
        assert doc["errorCode"] == "E_PARSE_CORRUPT"
        assert doc["error"] == "Excel file could not be parsed automatically"
        assert all(v is None for v in doc["metrics"]["latest"].values())

    def test_missing_file_async(
        self, extractor: MetricExtractor, tmp_path: Path
    ) -> None:
        result = asyncio.run(extractor.aextract_file(str(tmp_path / "gone.xlsx")))
        assert result.error_code == "E_PARSE_CORRUPT"


# ---------------------------------------------------------------------------
# API surface
# ---------------------------------------------------------------------------


class TestApi:
    def test_deterministic_except_parsed_at(
        self, extractor: MetricExtractor, make_xlsx: Callable[..., bytes]
    ) -> None:
        data = make_xlsx(
            [["Datum", "Puls", "Blodtryck"], ["2024-01-01", 72, "120/80"]]
        )
        first = extractor.extract(data, META).to_document()
        second = extractor.extract(data, META).to_document()
        first.pop("parsedAt")
        second.pop("parsedAt")
        assert first == second

    def test_meta_as_camel_case_dict(
        self, extractor: MetricExtractor, make_xlsx: Callable[..., bytes]
    ) -> None:
        result = extractor.extract(
            make_xlsx([["Puls"], [70]]),
            {"name": "a.xlsx", "uploadedAt": "2024-01-01T10:00:00Z"},
        )
        assert result.filename == "a.xlsx"
        assert result.uploaded_at == datetime(2024, 1, 1, 10, 0, tzinfo=UTC)

    def test_success_document_has_no_error_keys(
        self, extractor: MetricExtractor, make_xlsx: Callable[..., bytes]
    ) -> None:
        doc = extractor.extract(make_xlsx([["Puls"], [70]]), META).to_document()
        assert "error" not in doc
        assert "errorCode" not in doc
        assert doc["uploadedAt"] == "2024-05-01T00:00:00Z"
        assert doc["parserVersion"] == "vitalkit_excel:1.0.0"

    def test_parser_version_from_config(self, make_xlsx: Callable[..., bytes]) -> None:
        extractor = MetricExtractor(ExtractorConfig(parser_version="vitalkit_excel:2.0.0"))
        assert extractor.extract(make_xlsx([["Vikt"], [80]])).parser_version == (
            "vitalkit_excel:2.0.0"
        )
        assert extractor.extract(b"").parser_version == "vitalkit_excel:2.0.0"

    def test_uploaded_at_defaults_to_parsed_at(
        self, extractor: MetricExtractor, make_xlsx: Callable[..., bytes]
    ) -> None:
        result = extractor.extract(make_xlsx([["Vikt"], [80]]))
        assert result.uploaded_at == result.parsed_at

    def test_result_is_frozen(
        self, extractor: MetricExtractor, make_xlsx: Callable[..., bytes]
    ) -> None:
        result = extractor.extract(make_xlsx([["Vikt"], [80]]), META)
        with pytest.raises(ValidationError):
            result.filename = "other.xlsx"  # type: ignore[misc]

    def test_extract_file(
        self,
        extractor: MetricExtractor,
        make_xlsx: Callable[..., bytes],
        tmp_path: Path,
    ) -> None:
        path = tmp_path / "vikt.xlsx"
        path.write_bytes(make_xlsx([["Vikt"], [80]]))
        result = extractor.extract_file(str(path))
        assert result.filename == "vikt.xlsx"
        assert result.metrics.latest["weight"].value == 80  # type: ignore[union-attr]

    def test_aextract(
        self, extractor: MetricExtractor, make_xlsx: Callable[..., bytes]
    ) -> None:
        result = asyncio.run(extractor.aextract(make_xlsx([["Pulse"], [70]]), META))
        assert result.heart_data.heart_rate == 70
        assert result.sheet_summaries[0].row_count == 1

    def test_aextract_file(
        self,
        extractor: MetricExtractor,
        make_xlsx: Callable[..., bytes],
        tmp_path: Path,
    ) -> None:
        path = tmp_path / "puls.xlsx"
        path.write_bytes(make_xlsx([["Pulse"], [64]]))
        result = asyncio.run(extractor.aextract_file(str(path)))
        assert result.filename == "puls.xlsx"
        assert result.heart_data.heart_rate == 64
