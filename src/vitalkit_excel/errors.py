"""Normalized error codes and structured errors for the vitalkit-excel pipeline.

``ErrorCode`` holds every error/warning code the extractor can emit.
``IngestError`` is the Pydantic data structure; ``WorkbookLoadError`` wraps
one so loaders can ``raise`` it and the extractor can catch it at the outer
boundary.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Error codes for spreadsheet health-metric extraction.

    Values equal their names so they are stable strings suitable for metrics
    and alerting.  ``E_`` prefix = fatal, ``W_`` prefix = warning.
    """

    # Security / resource limits
    E_SECURITY_TOO_LARGE = "E_SECURITY_TOO_LARGE"

    # Parse errors
    E_PARSE_EMPTY = "E_PARSE_EMPTY"
    E_PARSE_CORRUPT = "E_PARSE_CORRUPT"
    E_PARSE_PASSWORD = "E_PARSE_PASSWORD"

    # Extraction
    E_EXTRACT_FAILED = "E_EXTRACT_FAILED"

    # Warnings (non-fatal)
    W_PARSER_FALLBACK = "W_PARSER_FALLBACK"
    W_ROWS_TRUNCATED = "W_ROWS_TRUNCATED"
    W_SHEET_NO_HEADER = "W_SHEET_NO_HEADER"
    W_SHEET_NO_DATA = "W_SHEET_NO_DATA"


class IngestError(BaseModel):
    """Structured error with code, message, and context.

    Carries an ``ErrorCode``, a human-readable message, and optional context
    about which sheet and processing stage produced it.
    """

    code: ErrorCode
    message: str
    sheet_name: str | None = None
    stage: str | None = None
    recoverable: bool = False

    def as_warning(self) -> str:
        """Render as the compact ``CODE: sheet`` string stored on results."""
        if self.sheet_name is None:
            return self.code.value
        return f"{self.code.value}: {self.sheet_name}"


class WorkbookLoadError(Exception):
    """Raisable exception wrapping an :class:`IngestError`.

    Raised by the workbook loader when the uploaded bytes cannot be turned
    into sheets at all.  The structured error is available as ``.error``.
    """

    def __init__(self, **kwargs: object) -> None:
        self.error = IngestError(**kwargs)  # type: ignore[arg-type]
        super().__init__(self.error.message)

    @property
    def code(self) -> ErrorCode:
        return self.error.code

    @property
    def message(self) -> str:
        return self.error.message
