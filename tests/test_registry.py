"""Tests for the static parameter registry."""

from __future__ import annotations

import pytest

from vitalkit_excel import models
from vitalkit_excel.models import ParameterKind
from vitalkit_excel.registry import (
    BLOOD_PRESSURE_METRIC,
    PARAMETER_REGISTRY,
    PARAMETERS_BY_KEY,
    metric_keys,
)


class TestParameterRegistry:
    def test_order(self) -> None:
        assert [p.key for p in PARAMETER_REGISTRY] == [
            "weight",
            "heartRate",
            "oxygenSaturation",
            "ldl",
            "hdl",
            "totalCholesterol",
            "triglycerides",
            "glucose",
            "egfr",
            "steps",
            "sleep",
            "bloodPressureSys",
            "bloodPressureDia",
            "bloodPressureCombined",
            "afBurden",
        ]

    def test_lookup_is_read_only(self) -> None:
        with pytest.raises(TypeError):
            PARAMETERS_BY_KEY["weight"] = PARAMETERS_BY_KEY["steps"]  # type: ignore[index]

    def test_definitions_are_frozen(self) -> None:
        with pytest.raises(Exception):
            PARAMETERS_BY_KEY["weight"].unit = "lb"  # type: ignore[misc]

    def test_blood_pressure_slot_defined_once(self) -> None:
        assert BLOOD_PRESSURE_METRIC is models.BLOOD_PRESSURE_METRIC
        assert PARAMETERS_BY_KEY["bloodPressureDia"].metric_key == models.BLOOD_PRESSURE_METRIC

    def test_blood_pressure_kinds_share_metric_slot(self) -> None:
        bp = [p for p in PARAMETER_REGISTRY if p.kind is not ParameterKind.NUMERIC]
        assert {p.kind for p in bp} == {
            ParameterKind.BP_SYSTOLIC,
            ParameterKind.BP_DIASTOLIC,
            ParameterKind.BP_COMBINED,
        }
        assert {p.metric_key for p in bp} == {BLOOD_PRESSURE_METRIC}

    def test_in_range(self) -> None:
        heart_rate = PARAMETERS_BY_KEY["heartRate"]
        assert heart_rate.in_range(20)
        assert heart_rate.in_range(260)
        assert not heart_rate.in_range(19)
        assert not heart_rate.in_range(261)

    def test_unbounded_parameter_accepts_anything(self) -> None:
        assert PARAMETERS_BY_KEY["bloodPressureCombined"].in_range(10_000)


class TestMetricKeys:
    def test_blood_pressure_appears_once(self) -> None:
        keys = metric_keys()
        assert keys.count(BLOOD_PRESSURE_METRIC) == 1
        assert "bloodPressureSys" not in keys
        assert len(keys) == 13

    def test_registry_order_preserved(self) -> None:
        keys = metric_keys()
        assert keys[0] == "weight"
        assert keys[-2:] == [BLOOD_PRESSURE_METRIC, "afBurden"]
