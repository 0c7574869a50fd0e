"""Per-row timestamp derivation and typed value extraction."""

from __future__ import annotations

from datetime import date, datetime

from vitalkit_excel.models import (
    ColumnDescriptor,
    ColumnRole,
    ParameterKind,
    RowValues,
)
from vitalkit_excel.parsing import (
    combine_date_and_time,
    is_empty_cell,
    parse_blood_pressure,
    parse_date_value,
    parse_number,
    parse_time_value,
)
from vitalkit_excel.registry import PARAMETERS_BY_KEY


def _cell(row: list[object], index: int) -> object:
    return row[index] if index < len(row) else None


class RowExtractor:
    """Turn one data row into a timestamp and a set of parameter values.

    Parameters
    ----------
    descriptors:
        Column descriptors of the sheet the rows belong to.
    reference_date:
        Date used for rows that carry a time of day but no date.
    """

    def __init__(
        self, descriptors: list[ColumnDescriptor], reference_date: date
    ) -> None:
        self._descriptors = descriptors
        self._reference_date = reference_date
        self._datetime_columns = self._indexes_for(ColumnRole.DATETIME)
        self._date_columns = self._indexes_for(ColumnRole.DATE)
        self._time_columns = self._indexes_for(ColumnRole.TIME)
        self._matched = [d for d in descriptors if d.match is not None]

    def _indexes_for(self, role: ColumnRole) -> list[int]:
        return [d.index for d in self._descriptors if d.role is role]

    # ------------------------------------------------------------------
    # Timestamp
    # ------------------------------------------------------------------

    def derive_timestamp(self, row: list[object]) -> datetime | None:
        """Resolve the row's timestamp.

        A datetime column wins; otherwise the first parseable date column is
        combined with the first parseable time column.
        """
        for index in self._datetime_columns:
            value = parse_date_value(_cell(row, index))
            if value is not None:
                return value

        date_part = None
        for index in self._date_columns:
            date_part = parse_date_value(_cell(row, index))
            if date_part is not None:
                break

        time_part = None
        for index in self._time_columns:
            time_part = parse_time_value(_cell(row, index))
            if time_part is not None:
                break

        return combine_date_and_time(date_part, time_part, self._reference_date)

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def extract_values(self, row: list[object]) -> RowValues:
        """Extract typed values for every parameter-matched column.

        When two columns map to the same parameter, the rightmost one wins.
        """
        values = RowValues()
        for descriptor in self._matched:
            raw = _cell(row, descriptor.index)
            if is_empty_cell(raw):
                continue
            assert descriptor.match is not None
            param = PARAMETERS_BY_KEY[descriptor.match.parameter_key]

            if param.kind is ParameterKind.BP_COMBINED:
                self._extract_combined(raw, values)
            elif param.kind is ParameterKind.BP_SYSTOLIC:
                self._extract_systolic(raw, values)
            elif param.kind is ParameterKind.BP_DIASTOLIC:
                self._extract_diastolic(raw, values)
            else:
                self._extract_numeric(param.key, raw, values)
        return values

    @staticmethod
    def _extract_combined(raw: object, values: RowValues) -> None:
        pair = parse_blood_pressure(raw)
        if pair is not None:
            values.systolic, values.diastolic = pair

    @staticmethod
    def _extract_systolic(raw: object, values: RowValues) -> None:
        number = parse_number(raw)
        if number is not None:
            values.systolic = number

    @staticmethod
    def _extract_diastolic(raw: object, values: RowValues) -> None:
        number = parse_number(raw)
        if number is not None:
            values.diastolic = number

    @staticmethod
    def _extract_numeric(key: str, raw: object, values: RowValues) -> None:
        number = parse_number(raw)
        if number is not None:
            values.numeric[key] = number
