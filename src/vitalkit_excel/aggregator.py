"""Fold extracted row values into latest-value and trend state.

One :class:`MetricAggregator` is created per extraction run and discarded
afterwards; its sequence counter is scoped to the uploaded file.

Latest-value replacement follows a total order:

1. no current value -> replace;
2. both timestamped -> replace if candidate >= current;
3. only the candidate timestamped -> replace;
4. neither timestamped -> replace if candidate sequence >= current sequence;
5. only the current timestamped -> keep.

Equal keys resolve to the candidate, i.e. the last writer wins.
"""

from __future__ import annotations

import logging
from datetime import datetime

from vitalkit_excel.models import (
    BloodPressureSample,
    MetricsState,
    NumericSample,
    RowValues,
    Sample,
)
from vitalkit_excel.registry import (
    BLOOD_PRESSURE_METRIC,
    DIASTOLIC,
    PARAMETERS_BY_KEY,
    SYSTOLIC,
    metric_keys,
)

logger = logging.getLogger("vitalkit_excel")


def empty_metrics() -> MetricsState:
    """Metric state with every slot present and empty."""
    keys = metric_keys()
    return MetricsState(
        latest={key: None for key in keys},
        trends={key: [] for key in keys},
    )


def should_replace_latest(
    current: Sample | None, timestamp: datetime | None, sequence: int
) -> bool:
    """Decide whether a candidate sample supersedes *current*."""
    if current is None:
        return True
    if timestamp is not None and current.timestamp is not None:
        return timestamp >= current.timestamp
    if timestamp is not None:
        return True
    if current.timestamp is not None:
        return False
    return sequence >= current.sequence


class MetricAggregator:
    """Mutable per-run accumulator for :class:`MetricsState`."""

    def __init__(self) -> None:
        self.metrics = empty_metrics()
        self.sequence = 0

    def apply_row(
        self,
        values: RowValues,
        timestamp: datetime | None,
        sheet_name: str,
    ) -> None:
        """Fold one processed row; advances the sequence even for empty rows."""
        self.sequence += 1
        sequence = self.sequence

        if values.has_blood_pressure:
            self._add_blood_pressure(values, timestamp, sequence, sheet_name)

        for key, value in values.numeric.items():
            self._add_numeric(key, value, timestamp, sequence, sheet_name)

    def _add_numeric(
        self,
        key: str,
        value: int | float,
        timestamp: datetime | None,
        sequence: int,
        sheet_name: str,
    ) -> None:
        param = PARAMETERS_BY_KEY.get(key)
        if param is None:
            return
        if not param.in_range(value):
            logger.debug(
                "Dropped out-of-range %s value on sheet '%s' (row %d)",
                key,
                sheet_name,
                sequence,
            )
            return

        sample = NumericSample(
            value=value,
            unit=param.unit,
            timestamp=timestamp,
            sheet=sheet_name,
            sequence=sequence,
        )
        if param.timeline and timestamp is not None:
            self.metrics.trends[key].append(sample)

        if should_replace_latest(self.metrics.latest[key], timestamp, sequence):
            self.metrics.latest[key] = sample

    def _add_blood_pressure(
        self,
        values: RowValues,
        timestamp: datetime | None,
        sequence: int,
        sheet_name: str,
    ) -> None:
        systolic = values.systolic
        diastolic = values.diastolic

        if systolic is not None and not SYSTOLIC.in_range(systolic):
            logger.debug(
                "Dropped implausible blood pressure on sheet '%s' (row %d)",
                sheet_name,
                sequence,
            )
            return
        if diastolic is not None and not DIASTOLIC.in_range(diastolic):
            logger.debug(
                "Dropped implausible blood pressure on sheet '%s' (row %d)",
                sheet_name,
                sequence,
            )
            return

        if timestamp is not None and systolic is not None and diastolic is not None:
            self.metrics.trends[BLOOD_PRESSURE_METRIC].append(
                BloodPressureSample(
                    systolic=systolic,
                    diastolic=diastolic,
                    timestamp=timestamp,
                    sheet=sheet_name,
                    sequence=sequence,
                )
            )

        current = self.metrics.latest[BLOOD_PRESSURE_METRIC]
        if not should_replace_latest(current, timestamp, sequence):
            return

        previous = current if isinstance(current, BloodPressureSample) else None
        self.metrics.latest[BLOOD_PRESSURE_METRIC] = BloodPressureSample(
            systolic=systolic if systolic is not None else (
                previous.systolic if previous else None
            ),
            diastolic=diastolic if diastolic is not None else (
                previous.diastolic if previous else None
            ),
            timestamp=timestamp,
            sheet=sheet_name,
            sequence=sequence,
        )
