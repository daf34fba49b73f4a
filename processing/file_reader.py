"""
Workbook reader — decodes an uploaded price list into a grid of raw cells.

Handles both modern and legacy Excel formats:
  - .xlsx / .xlsm via openpyxl (read-only, cached formula values)
  - .xls via pandas + xlrd

Selects the worksheet configured for the brand.  When the supplier renamed
it, falls back to a name-similarity match and finally to the first sheet,
recording a warning (never an error) for each fallback.  Sheet names are
listed first; only the selected worksheet is decoded.

Public API:
    read_workbook(data, filename, expected_sheet_name) → WorkbookReadResult
"""

import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import openpyxl
import pandas as pd

from config.settings import ACCEPTED_EXTENSIONS, SHEET_NAME_MATCH_THRESHOLD
from processing.value_normalizer import normalize_key
from utils.fuzzy_match import best_match

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Data classes
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class WorkbookReadResult:
    """Complete result of decoding one workbook."""

    rows: list[list[Any]] = field(default_factory=list)
    sheet_name: str = ""
    sheet_names: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


# ═══════════════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════════════

def read_workbook(
    data: bytes,
    filename: str,
    expected_sheet_name: str | None = None,
) -> WorkbookReadResult:
    """
    Decode workbook bytes and return the rows of the selected worksheet.

    Args:
        data: Raw file content.
        filename: Original file name; its extension picks the decoder.
        expected_sheet_name: The sheet the brand's price lists normally use.

    Returns:
        WorkbookReadResult with the sheet grid (one list per row, cells as
        decoded), the chosen sheet, any fallback warnings and any errors.
    """
    result = WorkbookReadResult()
    extension = Path(filename).suffix.lower()

    if extension not in ACCEPTED_EXTENSIONS:
        error_message = (
            f"Unsupported file type '{extension or filename}' for '{filename}'. "
            f"Expected one of: {', '.join(ACCEPTED_EXTENSIONS)}"
        )
        logger.error(error_message)
        result.errors.append(error_message)
        return result

    # ------------------------------------------------------------------
    # 1. Open workbook (sheet list only)
    # ------------------------------------------------------------------
    legacy = extension == ".xls"
    try:
        workbook = _open_workbook(data, legacy)
    except Exception as exc:
        error_message = f"Cannot open file '{filename}': {exc}"
        logger.error(error_message)
        result.errors.append(error_message)
        return result

    try:
        result.sheet_names = _sheet_names(workbook, legacy)
        if not result.sheet_names:
            error_message = f"File '{filename}' contains no worksheets"
            logger.error(error_message)
            result.errors.append(error_message)
            return result

        # ------------------------------------------------------------------
        # 2. Select the right sheet
        # ------------------------------------------------------------------
        sheet_name, warning = select_sheet(result.sheet_names, expected_sheet_name)
        if warning:
            logger.warning(warning)
            result.warnings.append(warning)
        result.sheet_name = sheet_name

        # ------------------------------------------------------------------
        # 3. Decode that sheet only
        # ------------------------------------------------------------------
        try:
            result.rows = _read_sheet(workbook, sheet_name, legacy)
        except Exception as exc:
            error_message = f"Cannot read sheet '{sheet_name}' of '{filename}': {exc}"
            logger.error(error_message)
            result.errors.append(error_message)
            return result
    finally:
        workbook.close()

    logger.info(
        f"Read sheet '{sheet_name}' from '{filename}': {len(result.rows)} rows"
    )
    return result


def select_sheet(
    sheet_names: list[str],
    expected_sheet_name: str | None,
) -> tuple[str, str | None]:
    """
    Pick the worksheet to read.

    Order of preference:
      1. A sheet named exactly *expected_sheet_name*.
      2. A sheet whose normalized name equals it, or the closest fuzzy match.
      3. The first sheet.

    Returns:
        Tuple of (sheet_name, warning) — warning is None when the configured
        sheet was found exactly.
    """
    first_name = sheet_names[0]
    if not expected_sheet_name:
        return first_name, None

    if expected_sheet_name in sheet_names:
        return expected_sheet_name, None

    expected_key = normalize_key(expected_sheet_name)
    for name in sheet_names:
        if normalize_key(name) == expected_key:
            return name, (
                f"Sheet '{expected_sheet_name}' not found; using '{name}'"
            )

    similar, score = best_match(
        expected_sheet_name, sheet_names, threshold=SHEET_NAME_MATCH_THRESHOLD
    )
    if similar is not None:
        return similar, (
            f"Sheet '{expected_sheet_name}' not found; using similar sheet "
            f"'{similar}' (similarity {score})"
        )

    return first_name, (
        f"Sheet '{expected_sheet_name}' not found; using first sheet '{first_name}'"
    )


# ═══════════════════════════════════════════════════════════════════════════
# Internal helpers
# ═══════════════════════════════════════════════════════════════════════════

def _open_workbook(data: bytes, legacy: bool) -> Any:
    """Open the workbook without decoding any sheet's cells yet."""
    if legacy:
        return pd.ExcelFile(io.BytesIO(data), engine="xlrd")
    return openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)


def _sheet_names(workbook: Any, legacy: bool) -> list[str]:
    if legacy:
        return [str(name) for name in workbook.sheet_names]
    return list(workbook.sheetnames)


def _read_sheet(workbook: Any, sheet_name: str, legacy: bool) -> list[list[Any]]:
    """Decode one worksheet into rows of cells, blanks as None."""
    if legacy:
        frame = workbook.parse(sheet_name=sheet_name, header=None)
        return frame.astype(object).where(pd.notna(frame), None).values.tolist()
    worksheet = workbook[sheet_name]
    return [list(row) for row in worksheet.iter_rows(values_only=True)]
