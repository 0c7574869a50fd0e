"""Generic label/value view of parameter-matched columns.

Shown by the display layer when the structured metrics are not enough: every
matched header label, plus the last value seen under each label.
"""

from __future__ import annotations

from vitalkit_excel.models import ColumnDescriptor
from vitalkit_excel.parsing import is_empty_cell, parse_number


class RawLabelCollector:
    """Accumulates matched labels and their most recent cell values."""

    def __init__(self, max_labels: int) -> None:
        self._max_labels = max_labels
        # dict preserves first-seen order and deduplicates.
        self._labels: dict[str, None] = {}
        self.dynamic_data: dict[str, int | float | str] = {}

    def collect(self, descriptors: list[ColumnDescriptor], row: list[object]) -> None:
        """Record labels and values of one data row."""
        for descriptor in descriptors:
            if descriptor.match is None:
                continue
            label = descriptor.header
            self._labels.setdefault(label, None)

            cell = row[descriptor.index] if descriptor.index < len(row) else None
            if is_empty_cell(cell):
                continue

            number = parse_number(cell)
            if number is not None:
                self.dynamic_data[label] = number
            elif isinstance(cell, str) and cell.strip():
                self.dynamic_data[label] = cell.strip()

    @property
    def labels(self) -> list[str]:
        """Deduplicated labels, capped at the configured maximum."""
        return list(self._labels)[: self._max_labels]
