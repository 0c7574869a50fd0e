"""Configuration model for the vitalkit-excel extractor.

Provides ``ExtractorConfig`` with all tunable parameters and sensible
defaults.  Supports loading overrides from YAML or JSON files via the
``from_file()`` classmethod.
"""

from __future__ import annotations

import json
import pathlib

from pydantic import BaseModel


class ExtractorConfig(BaseModel):
    """All tunable parameters with sensible defaults.

    Override individual values via constructor kwargs or load a complete
    config from a file with ``ExtractorConfig.from_file(path)``.
    """

    # --- Identity ---
    parser_version: str = "vitalkit_excel:1.0.0"

    # --- Security / resource limits ---
    max_file_size_mb: int = 50
    max_rows_in_memory: int = 100_000

    # --- Header detection ---
    max_header_scan_rows: int = 20
    placeholder_label: str = "Column {index}"

    # --- Column classification ---
    max_column_sample_rows: int = 9

    # --- Result assembly ---
    max_raw_labels: int = 100
    default_filename: str = "excel.xlsx"
    fallback_error_message: str = "Excel file could not be parsed automatically"
    timeline_time_format: str = "%Y-%m-%d %H:%M:%S"

    # --- Delimited text input ---
    csv_encoding: str = "utf-8-sig"

    # --- Logging / PII safety ---
    log_sample_data: bool = False

    @classmethod
    def from_file(cls, path: str) -> ExtractorConfig:
        """Load configuration from a YAML or JSON file.

        File format is detected by extension: ``.yaml`` / ``.yml`` for YAML,
        ``.json`` for JSON.  Any keys present in the file override the
        corresponding defaults; keys not present retain their defaults.

        Args:
            path: Filesystem path to the configuration file.

        Returns:
            A fully-populated ``ExtractorConfig`` instance.

        Raises:
            FileNotFoundError: If *path* does not exist.
            ValueError: If the file extension is not recognized.
        """
        file_path = pathlib.Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        suffix = file_path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            import yaml  # type: ignore[import-untyped]

            with open(file_path) as fh:
                data = yaml.safe_load(fh)
        elif suffix == ".json":
            with open(file_path) as fh:
                data = json.load(fh)
        else:
            raise ValueError(
                f"Unsupported config file extension '{suffix}'. "
                "Use .yaml, .yml, or .json."
            )

        if data is None:
            data = {}

        return cls(**data)
