"""
================================================================================
Data Feed
================================================================================

Loads data-driven test inputs from CSV, XLSX, JSON and XML files.

Every format yields the same shape: a list of records, each an ordered
mapping of trimmed field name -> trimmed string value.

    csv   first row is the header; missing cells -> "", extra cells dropped
    xlsx  same rules, first sheet unless a sheet name is given
    json  top-level array of objects; null -> ""
    xml   each child of the root is a record, its children are the fields

Pytest integration:

    @pytest.mark.datafile("login.csv")
    def test_login(row, ...):
        ...

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import csv
import json
import xml.etree.ElementTree as ET
import zipfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from loguru import logger
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from .exceptions import DataFeedError


Record = Dict[str, str]

# Default directory for data files referenced by a bare file name
DEFAULT_DATA_DIR = Path(__file__).parent.parent.parent / "testdata"

SUPPORTED_SUFFIXES = (".csv", ".xlsx", ".json", ".xml")


# ================================================================================
# Value Normalization
# ================================================================================

def _cell_text(value: Any) -> str:
    """Render a raw cell/JSON value as trimmed text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _trim_record(record: Dict[Any, Any]) -> Record:
    return {_cell_text(key): _cell_text(value) for key, value in record.items()}


def _rows_to_records(header: Sequence[Any], rows: Iterable[Sequence[Any]]) -> List[Record]:
    """Zip rows against the header: short rows are padded, long rows truncated."""
    keys = [_cell_text(h) for h in header]
    records = []
    for row in rows:
        row = list(row or ())
        if not any(_cell_text(v) for v in row):
            continue
        records.append({
            key: _cell_text(row[i]) if i < len(row) else ""
            for i, key in enumerate(keys)
        })
    return records


# ================================================================================
# Readers
# ================================================================================

def read_csv(path: Path) -> List[Record]:
    with open(path, newline="", encoding="utf-8-sig") as f:
        rows = list(csv.reader(f))
    if not rows:
        return []
    return _rows_to_records(rows[0], rows[1:])


def read_xlsx(path: Path, sheet: Optional[str] = None) -> List[Record]:
    try:
        workbook = load_workbook(path, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, OSError, KeyError, ValueError) as e:
        raise DataFeedError(f"Cannot open workbook {path}: {e}") from e

    try:
        if sheet:
            if sheet not in workbook.sheetnames:
                raise DataFeedError(
                    f"Sheet '{sheet}' not found in {path.name} "
                    f"(available: {', '.join(workbook.sheetnames)})"
                )
            worksheet = workbook[sheet]
        else:
            worksheet = workbook.worksheets[0]

        rows = list(worksheet.iter_rows(values_only=True))
    finally:
        workbook.close()

    if not rows:
        return []
    return _rows_to_records(rows[0], rows[1:])


def read_json(path: Path) -> List[Record]:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise DataFeedError(f"{path.name}: expected a JSON array of objects")
    records = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise DataFeedError(f"{path.name}: element {index} is not an object")
        records.append(_trim_record(item))
    return records


def read_xml(path: Path) -> List[Record]:
    root = ET.parse(path).getroot()
    return [
        {_cell_text(field.tag): _cell_text("".join(field.itertext())) for field in node}
        for node in root
    ]


# ================================================================================
# Entry Point
# ================================================================================

def resolve_data_path(path: Union[str, Path], base_dir: Optional[Path] = None) -> Path:
    """
    Resolve a data file reference.

    Absolute paths are used as-is; relative ones are tried against base_dir
    (usually the test module's directory), the working directory, then the
    project testdata/ directory.
    """
    path = Path(path)
    if path.is_absolute():
        return path
    candidates = [c for c in (base_dir, Path.cwd(), DEFAULT_DATA_DIR) if c is not None]
    for directory in candidates:
        candidate = Path(directory) / path
        if candidate.exists():
            return candidate
    return DEFAULT_DATA_DIR / path


def load_records(path: Union[str, Path], sheet: Optional[str] = None) -> List[Record]:
    """
    Load a data file into a list of trimmed string records.

    Args:
        path: CSV, XLSX, JSON or XML file
        sheet: Worksheet name (XLSX only; default first sheet)

    Returns:
        One dict per record, keys in header order

    Raises:
        DataFeedError: missing file, unsupported type, malformed content
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix not in SUPPORTED_SUFFIXES:
        raise DataFeedError(f"Unsupported data file type '{suffix}': {path}")
    if not path.is_file():
        raise DataFeedError(f"Data file not found: {path}")

    try:
        if suffix == ".csv":
            records = read_csv(path)
        elif suffix == ".xlsx":
            records = read_xlsx(path, sheet)
        elif suffix == ".json":
            records = read_json(path)
        else:
            records = read_xml(path)
    except DataFeedError:
        raise
    except (csv.Error, json.JSONDecodeError, ET.ParseError, zipfile.BadZipFile,
            UnicodeDecodeError, OSError) as e:
        raise DataFeedError(f"Failed to load test data from {path}: {e}") from e

    logger.debug(f"Loaded {len(records)} records from {path.name}")
    return records


def record_id(record: Record, index: int) -> str:
    """Readable pytest id for a record: its first non-empty value, else its index."""
    for value in record.values():
        if value:
            return f"{index}-{value}"
    return str(index)


__all__ = [
    "DEFAULT_DATA_DIR",
    "Record",
    "load_records",
    "read_csv",
    "read_json",
    "read_xlsx",
    "read_xml",
    "record_id",
    "resolve_data_path",
]
