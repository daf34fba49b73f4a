"""
Row extractor — turns the data rows below the header into Componente records.

Walks every row after the header row and applies the value normalizer to
each mapped column.  Rows that are empty, or whose reference cell cleans to
nothing, are skipped and counted; they never abort the run.

Progress is reported every PROGRESS_EVERY_ROWS rows over the extracting
percent range, followed by a zero-length sleep so the thread hosting the UI
gets a chance to run while large sheets are processed.

Public API:
    extract_rows(rows, header_row_index, mapping, brand_id, on_progress)
        → ExtractionResult
"""

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from config.schema import DEFAULT_UNIT, FIELD_RESOLUTION_ORDER, FIELD_TYPES, MANDATORY_FIELD
from config.settings import EXTRACTING_RANGE, MAX_MESSAGES, PROGRESS_EVERY_ROWS
from processing.models import (
    Componente,
    Phase,
    ProcessingStatus,
    ProgressCallback,
    interpolate_percent,
)
from processing.value_normalizer import clean_text, to_number

logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    """Records extracted from one sheet plus skip accounting."""

    records: list[Componente] = field(default_factory=list)
    skipped_count: int = 0
    total_rows: int = 0
    messages: list[str] = field(default_factory=list)


# ═══════════════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════════════

def extract_rows(
    rows: Sequence[Sequence[Any] | None],
    header_row_index: int,
    mapping: dict[str, int | None],
    brand_id: int,
    on_progress: ProgressCallback | None = None,
) -> ExtractionResult:
    """
    Build one Componente per data row.

    Args:
        rows: The full sheet grid, header and title rows included.
        header_row_index: 0-based index of the header row; extraction starts
            on the row after it.
        mapping: canonical field → column index (None = unmapped).
        brand_id: Stamped on every record as idmarca.
        on_progress: Optional progress callback.

    Returns:
        ExtractionResult with the records, the number of skipped rows and
        row-numbered skip messages (bounded).
    """
    result = ExtractionResult()
    reference_col = mapping.get(MANDATORY_FIELD)
    if reference_col is None:
        raise ValueError("mapping has no reference column")

    start_row = header_row_index + 1
    total = max(len(rows) - start_row, 0)
    result.total_rows = total

    _report(on_progress, 0, total, f"Extracting {total} rows...")

    for row_idx in range(start_row, len(rows)):
        processed = row_idx - start_row
        if processed and processed % PROGRESS_EVERY_ROWS == 0:
            _report(on_progress, processed, total, f"Row {row_idx + 1} of {len(rows)}...")
            time.sleep(0)

        row = rows[row_idx]
        if not row or all(clean_text(cell) is None for cell in row):
            result.skipped_count += 1
            continue

        referencia = clean_text(_cell(row, reference_col))
        if referencia is None:
            result.skipped_count += 1
            _add_message(result, f"Row {row_idx + 1}: no reference, skipped")
            continue

        result.records.append(_build_record(row, mapping, brand_id, referencia))

    _report(on_progress, total, total, f"Extracted {len(result.records)} components")

    if result.skipped_count:
        logger.info(
            f"Extraction complete: {len(result.records)} records, "
            f"{result.skipped_count} rows skipped"
        )
    else:
        logger.info(f"Extraction complete: {len(result.records)} records")

    return result


# ═══════════════════════════════════════════════════════════════════════════
# Internal helpers
# ═══════════════════════════════════════════════════════════════════════════

def _cell(row: Sequence[Any], column: int | None) -> Any:
    """Value at *column*, or None when unmapped or past the end of the row."""
    if column is None or column >= len(row):
        return None
    return row[column]


def _build_record(
    row: Sequence[Any],
    mapping: dict[str, int | None],
    brand_id: int,
    referencia: str,
) -> Componente:
    values: dict[str, Any] = {}
    for name in FIELD_RESOLUTION_ORDER:
        if name == MANDATORY_FIELD:
            continue
        cell = _cell(row, mapping.get(name))
        values[name] = to_number(cell) if FIELD_TYPES[name] == "float" else clean_text(cell)

    values["unidade"] = values["unidade"] or DEFAULT_UNIT
    return Componente(idmarca=brand_id, referencia=referencia, **values)


def _add_message(result: ExtractionResult, message: str) -> None:
    if len(result.messages) < MAX_MESSAGES:
        result.messages.append(message)


def _report(
    on_progress: ProgressCallback | None,
    processed: int,
    total: int,
    message: str,
) -> None:
    if on_progress is None:
        return
    on_progress(ProcessingStatus(
        phase=Phase.EXTRACTING,
        percent=interpolate_percent(processed, total, EXTRACTING_RANGE),
        message=message,
        total_items=total,
        processed_items=processed,
    ))
