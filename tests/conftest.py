"""Shared test fixtures for vitalkit-excel tests.

Provides a ``default_config`` fixture and a ``make_xlsx`` factory that builds
in-memory ``.xlsx`` uploads with openpyxl.
"""

from __future__ import annotations

import io
from typing import Any, Callable

import openpyxl
import pytest

from vitalkit_excel.config import ExtractorConfig


def build_xlsx(sheets: dict[str, list[list[Any]]]) -> bytes:
    """Serialize ``{sheet name: rows}`` into ``.xlsx`` bytes."""
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(name)
        for row in rows:
            ws.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    wb.close()
    return buffer.getvalue()


@pytest.fixture()
def default_config() -> ExtractorConfig:
    """Return an ExtractorConfig with all defaults."""
    return ExtractorConfig()


@pytest.fixture()
def make_xlsx() -> Callable[..., bytes]:
    """Factory: ``make_xlsx(rows)`` or ``make_xlsx(sheets={...})``."""

    def _make(
        rows: list[list[Any]] | None = None,
        sheets: dict[str, list[list[Any]]] | None = None,
    ) -> bytes:
        if sheets is None:
            sheets = {"Sheet1": rows or []}
        return build_xlsx(sheets)

    return _make
