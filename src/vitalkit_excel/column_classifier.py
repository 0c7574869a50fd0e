"""Column role and parameter classification.

Each header label is normalized and checked against the keyword tables in
:mod:`vitalkit_excel.registry`.  Roles come from date/time keywords; the
parameter match is the registry keyword with the longest match anywhere in
the label, so ``"ldl-kolesterol"`` beats ``"kolesterol"``.  Columns that match
nothing by label are classified from a small sample of their cells.
"""

from __future__ import annotations

import logging

from vitalkit_excel.config import ExtractorConfig
from vitalkit_excel.models import ColumnDescriptor, ColumnMatch, ColumnRole
from vitalkit_excel.parsing import (
    is_empty_cell,
    looks_like_blood_pressure,
    parse_date_value,
    parse_time_value,
)
from vitalkit_excel.registry import (
    DATE_KEYWORDS,
    DATETIME_KEYWORDS,
    PARAMETER_REGISTRY,
    SAMPLED_MATCH_SCORE,
    TIME_KEYWORDS,
)
from vitalkit_excel.text import normalize_text

logger = logging.getLogger("vitalkit_excel")

_NORMALIZED_MATCHERS: tuple[tuple[str, tuple[str, ...]], ...] = tuple(
    (param.key, tuple(normalize_text(m) for m in param.matchers))
    for param in PARAMETER_REGISTRY
)


def detect_declared_role(normalized_header: str) -> ColumnRole:
    """Role implied by the header label alone."""
    if any(keyword in normalized_header for keyword in DATETIME_KEYWORDS):
        return ColumnRole.DATETIME
    if any(keyword in normalized_header for keyword in DATE_KEYWORDS):
        return ColumnRole.DATE
    if any(keyword in normalized_header for keyword in TIME_KEYWORDS):
        return ColumnRole.TIME
    return ColumnRole.VALUE


def match_parameter(normalized_header: str) -> ColumnMatch | None:
    """Most specific registry match for a header, or ``None``.

    The score is the length of the matching keyword; on equal length the
    earlier registry entry is kept.
    """
    if not normalized_header:
        return None
    best: ColumnMatch | None = None
    for key, matchers in _NORMALIZED_MATCHERS:
        for matcher in matchers:
            if matcher and matcher in normalized_header:
                score = len(matcher)
                if best is None or score > best.score:
                    best = ColumnMatch(parameter_key=key, score=score)
    return best


def infer_role_from_samples(samples: list[object]) -> ColumnRole:
    """Infer a date or time role from sampled cells.

    Plain numbers are not taken as date evidence: any measurement would
    otherwise pass as a spreadsheet date serial.
    """
    if any(
        not isinstance(v, (int, float)) and parse_date_value(v) is not None
        for v in samples
    ):
        return ColumnRole.DATE
    if any(
        not isinstance(v, (int, float)) and parse_time_value(v) is not None
        for v in samples
    ):
        return ColumnRole.TIME
    return ColumnRole.VALUE


def match_parameter_by_samples(samples: list[object]) -> ColumnMatch | None:
    """Recognize a combined blood-pressure column from ``NN/NN`` strings."""
    for sample in samples:
        if looks_like_blood_pressure(sample):
            return ColumnMatch(
                parameter_key="bloodPressureCombined", score=SAMPLED_MATCH_SCORE
            )
    return None


class ColumnClassifier:
    """Assign a role and optional parameter match to every header column.

    Parameters
    ----------
    config:
        Supplies ``max_column_sample_rows`` and ``log_sample_data``.
    """

    def __init__(self, config: ExtractorConfig) -> None:
        self._config = config

    def describe(
        self,
        headers: list[str],
        rows: list[list[object]],
        header_index: int,
    ) -> list[ColumnDescriptor]:
        """Classify each column of a sheet.

        Parameters
        ----------
        headers:
            Header labels (placeholders already substituted).
        rows:
            All rows of the sheet, including the header row.
        header_index:
            Index of the header row within *rows*.
        """
        return [
            self._describe_column(index, header, rows, header_index)
            for index, header in enumerate(headers)
        ]

    def _describe_column(
        self,
        index: int,
        header: str,
        rows: list[list[object]],
        header_index: int,
    ) -> ColumnDescriptor:
        normalized = normalize_text(header)
        role = detect_declared_role(normalized)
        match = match_parameter(normalized)

        if match is None and role is ColumnRole.VALUE:
            samples = self._sample_column(index, rows, header_index)
            role = infer_role_from_samples(samples)
            if role is ColumnRole.VALUE:
                match = match_parameter_by_samples(samples)
            if self._config.log_sample_data:
                logger.debug(
                    "Column %d (%s) sampled %r -> role=%s match=%s",
                    index,
                    header,
                    samples,
                    role.value,
                    match.parameter_key if match else None,
                )

        logger.debug(
            "Column %d (%s): role=%s match=%s",
            index,
            header,
            role.value,
            match.parameter_key if match else None,
        )
        return ColumnDescriptor(
            index=index,
            header=header,
            normalized=normalized,
            role=role,
            match=match,
        )

    def _sample_column(
        self,
        index: int,
        rows: list[list[object]],
        header_index: int,
    ) -> list[object]:
        """Non-empty cells of one column from the rows following the header."""
        start = header_index + 1
        stop = start + self._config.max_column_sample_rows
        samples: list[object] = []
        for row in rows[start:stop]:
            if index < len(row) and not is_empty_cell(row[index]):
                samples.append(row[index])
        return samples
