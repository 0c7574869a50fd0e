"""Static configuration tables for column classification.

``PARAMETER_REGISTRY`` is the ordered, externally visible table of tracked
physiological parameters; ``PARAMETERS_BY_KEY`` is a read-only lookup derived
from it.  Extend the table here rather than adding matching logic elsewhere.
Keywords are matched against headers after :func:`~vitalkit_excel.text.normalize_text`.
"""

from __future__ import annotations

from types import MappingProxyType

from vitalkit_excel.models import (
    BLOOD_PRESSURE_METRIC,
    ParameterDefinition,
    ParameterKind,
)

DATETIME_KEYWORDS: tuple[str, ...] = ("timestamp", "tidpunkt", "date/time", "datetime")
DATE_KEYWORDS: tuple[str, ...] = ("date", "datum", "dag", "dato")
TIME_KEYWORDS: tuple[str, ...] = ("time", "tid", "klock", "kl", "hour")

# Score given to a blood-pressure match inferred from cell contents.
SAMPLED_MATCH_SCORE = 5

PARAMETER_REGISTRY: tuple[ParameterDefinition, ...] = (
    ParameterDefinition(
        key="weight",
        label="Vikt",
        unit="kg",
        matchers=("weight", "vikt", "kg"),
        min_value=20,
        max_value=400,
        timeline=True,
    ),
    ParameterDefinition(
        key="heartRate",
        label="Hjärtfrekvens",
        unit="bpm",
        matchers=("heart rate", "pulse", "hjärtfrekvens", "hr", "slag/min"),
        min_value=20,
        max_value=260,
        timeline=True,
    ),
    ParameterDefinition(
        key="oxygenSaturation",
        label="Syresättning",
        unit="%",
        matchers=("spo2", "so2", "oxygen", "syres", "o2"),
        min_value=40,
        max_value=100,
        timeline=True,
    ),
    ParameterDefinition(
        key="ldl",
        label="LDL",
        unit="mmol/L",
        matchers=("ldl-kolesterol", "ldl"),
        min_value=0,
        max_value=20,
        timeline=True,
    ),
    ParameterDefinition(
        key="hdl",
        label="HDL",
        unit="mmol/L",
        matchers=("hdl-kolesterol", "hdl"),
        min_value=0,
        max_value=20,
        timeline=True,
    ),
    ParameterDefinition(
        key="totalCholesterol",
        label="Totalkolesterol",
        unit="mmol/L",
        matchers=("total cholesterol", "cholesterol", "kolesterol"),
        min_value=0,
        max_value=25,
        timeline=True,
    ),
    ParameterDefinition(
        key="triglycerides",
        label="Triglycerider",
        unit="mmol/L",
        matchers=("triglycerid",),
        min_value=0,
        max_value=50,
        timeline=True,
    ),
    ParameterDefinition(
        key="glucose",
        label="Glukos",
        unit="mmol/L",
        matchers=("glucose", "glukos", "hba1c"),
        min_value=0,
        max_value=100,
        timeline=True,
    ),
    ParameterDefinition(
        key="egfr",
        label="eGFR",
        unit="mL/min",
        matchers=("egfr",),
        min_value=0,
        max_value=200,
        timeline=True,
    ),
    ParameterDefinition(
        key="steps",
        label="Steg",
        unit="steg",
        matchers=("steps", "steg"),
        min_value=0,
        max_value=200_000,
        timeline=True,
    ),
    ParameterDefinition(
        key="sleep",
        label="Sömn",
        unit="h",
        matchers=("sleep", "sömn"),
        min_value=0,
        max_value=24,
        timeline=True,
    ),
    ParameterDefinition(
        key="bloodPressureSys",
        label="Systoliskt",
        unit="mmHg",
        matchers=("systolic", "systoliskt", "sys", "upper bp", "övre"),
        min_value=40,
        max_value=300,
        timeline=True,
        kind=ParameterKind.BP_SYSTOLIC,
    ),
    ParameterDefinition(
        key="bloodPressureDia",
        label="Diastoliskt",
        unit="mmHg",
        matchers=("diastolic", "diastoliskt", "dia", "lower bp", "nedre"),
        min_value=20,
        max_value=200,
        timeline=True,
        kind=ParameterKind.BP_DIASTOLIC,
    ),
    ParameterDefinition(
        key="bloodPressureCombined",
        label="Blodtryck",
        unit="mmHg",
        matchers=("blood pressure", "blodtryck", "bp", "rr"),
        timeline=True,
        kind=ParameterKind.BP_COMBINED,
    ),
    ParameterDefinition(
        key="afBurden",
        label="AF-börda",
        unit="%",
        matchers=("af", "atrial fibrillation", "fibrillation", "rytm"),
        min_value=0,
        max_value=100,
        timeline=True,
    ),
)

PARAMETERS_BY_KEY = MappingProxyType({p.key: p for p in PARAMETER_REGISTRY})

SYSTOLIC = PARAMETERS_BY_KEY["bloodPressureSys"]
DIASTOLIC = PARAMETERS_BY_KEY["bloodPressureDia"]


def metric_keys() -> list[str]:
    """Return the metric slots in registry order, blood pressure folded once."""
    keys: list[str] = []
    for param in PARAMETER_REGISTRY:
        if param.metric_key not in keys:
            keys.append(param.metric_key)
    return keys
