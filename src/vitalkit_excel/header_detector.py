"""Header-row detection by cell-density scoring.

Title rows, notes and blank padding above a table are common in hand-made
health logs, so the header is taken to be the densest row near the top of the
sheet, with text cells weighted above other content.
"""

from __future__ import annotations

import logging

from vitalkit_excel.config import ExtractorConfig
from vitalkit_excel.models import HeaderInfo
from vitalkit_excel.parsing import is_empty_cell

logger = logging.getLogger("vitalkit_excel")

_TEXT_CELL_WEIGHT = 2
_OTHER_CELL_WEIGHT = 1


class HeaderDetector:
    """Locate the most likely header row of a sheet.

    Parameters
    ----------
    config:
        Supplies ``max_header_scan_rows`` and the ``placeholder_label``
        template used for blank header cells.
    """

    def __init__(self, config: ExtractorConfig) -> None:
        self._config = config

    @staticmethod
    def score_row(row: list[object]) -> int:
        """Density score: 2 per non-blank string cell, 1 per other non-empty cell."""
        score = 0
        for cell in row:
            if isinstance(cell, str) and cell.strip():
                score += _TEXT_CELL_WEIGHT
            elif not is_empty_cell(cell):
                score += _OTHER_CELL_WEIGHT
        return score

    def detect(self, rows: list[list[object]]) -> HeaderInfo | None:
        """Return the header row, or ``None`` if the scanned rows are all empty.

        Only the first ``max_header_scan_rows`` rows are scanned.  Ties keep
        the earliest row.
        """
        best_index = -1
        best_score = 0

        for idx, row in enumerate(rows[: self._config.max_header_scan_rows]):
            score = self.score_row(row)
            if score > best_score:
                best_score = score
                best_index = idx

        if best_index == -1:
            return None

        labels = [
            self._label_for(cell, position)
            for position, cell in enumerate(rows[best_index])
        ]
        logger.debug(
            "Header row %d selected (score=%d, %d columns)",
            best_index,
            best_score,
            len(labels),
        )
        return HeaderInfo(index=best_index, labels=labels)

    def _label_for(self, cell: object, position: int) -> str:
        if isinstance(cell, str):
            label = cell.strip()
        elif is_empty_cell(cell):
            label = ""
        else:
            label = str(cell).strip()
        return label or self._config.placeholder_label.format(index=position + 1)
