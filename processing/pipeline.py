"""
Import pipeline — runs one supplier price list from bytes to the store.

Stages, strictly in order:
  1. Brand configuration lookup (missing → configuration error)
  2. Workbook decoding and sheet selection
  3. Header-row discovery and column mapping (no reference → structural error)
  4. Row extraction
  5. Batched ingestion

Configuration and structural errors stop the run before anything is written;
they are returned in PipelineResult.errors, never raised.  Everything that
goes wrong after that (skipped rows, failed batches) is reported through
the counts and messages of the result.

Public API:
    import_price_list(data, filename, brand_id, store, on_progress)
        → PipelineResult
"""

import logging
from dataclasses import dataclass, field

from config.brand_mappings import get_brand_config
from config.settings import MAPPING_PERCENT, READING_PERCENT
from processing.column_mapper import ColumnMappingResult, map_columns
from processing.file_reader import read_workbook
from processing.header_locator import HeaderLocation, locate_header_row
from processing.ingestion_batcher import ingest
from processing.models import ImportResult, Phase, ProcessingStatus, ProgressCallback
from processing.row_extractor import extract_rows
from storage.base import CatalogStore

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Everything a caller needs to report on one imported file."""

    filename: str
    brand_id: int
    sheet_name: str = ""
    header: HeaderLocation | None = None
    column_mapping: ColumnMappingResult | None = None
    extracted_count: int = 0
    skipped_count: int = 0
    import_result: ImportResult = field(default_factory=ImportResult)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def status(self) -> str:
        """"failed", "partial" (some records failed) or "success"."""
        if self.errors:
            return "failed"
        if self.import_result.error_count or self.import_result.aborted:
            return "partial"
        return "success"

    @property
    def messages(self) -> list[str]:
        return [*self.warnings, *self.import_result.messages]


def import_price_list(
    data: bytes,
    filename: str,
    brand_id: int,
    store: CatalogStore,
    on_progress: ProgressCallback | None = None,
) -> PipelineResult:
    """
    Import one price-list workbook for a brand.

    Args:
        data: Workbook bytes as uploaded.
        filename: Original file name (its extension selects the decoder).
        brand_id: The brand (idmarca) the file belongs to.
        store: Destination store.
        on_progress: Optional callback receiving ProcessingStatus events.

    Returns:
        PipelineResult.  status == "failed" means nothing was written.
    """
    result = PipelineResult(filename=filename, brand_id=brand_id)

    def emit(phase: Phase, percent: int, message: str) -> None:
        if on_progress is not None:
            on_progress(ProcessingStatus(phase=phase, percent=percent, message=message))

    def fail(message: str) -> PipelineResult:
        logger.error(f"{filename}: {message}")
        result.errors.append(message)
        emit(Phase.ERROR, 100, message)
        return result

    # ------------------------------------------------------------------
    # 1. Brand configuration
    # ------------------------------------------------------------------
    brand_config = get_brand_config(brand_id)
    if brand_config is None:
        return fail(f"No column mapping is configured for brand id {brand_id}")

    # ------------------------------------------------------------------
    # 2. Read workbook
    # ------------------------------------------------------------------
    emit(Phase.READING, READING_PERCENT, f"Reading {filename}...")
    read_result = read_workbook(data, filename, brand_config.expected_sheet_name)
    result.sheet_name = read_result.sheet_name
    result.warnings.extend(read_result.warnings)

    if read_result.errors:
        return fail("; ".join(read_result.errors))

    rows = read_result.rows
    if len(rows) < 2:
        return fail(f"Sheet '{read_result.sheet_name}' is empty")

    # ------------------------------------------------------------------
    # 3. Header row + column mapping
    # ------------------------------------------------------------------
    emit(Phase.MAPPING, MAPPING_PERCENT, "Mapping columns...")
    header = locate_header_row(rows)
    result.header = header
    if header.warning:
        result.warnings.append(header.warning)

    mapping = map_columns(rows[header.row_index], brand_config)
    result.column_mapping = mapping
    if not mapping.is_valid:
        return fail("; ".join(mapping.errors))

    # ------------------------------------------------------------------
    # 4. Extract rows
    # ------------------------------------------------------------------
    extraction = extract_rows(
        rows,
        header.row_index,
        mapping.mapping,
        brand_id,
        on_progress=on_progress,
    )
    result.extracted_count = len(extraction.records)
    result.skipped_count = extraction.skipped_count
    result.warnings.extend(extraction.messages)

    if not extraction.records:
        return fail("No components found in the file")

    # ------------------------------------------------------------------
    # 5. Ingest
    # ------------------------------------------------------------------
    import_result = ingest(store, extraction.records, on_progress=on_progress)
    result.import_result = import_result

    if import_result.success_count == 0:
        return fail(
            "Every record failed to insert. " + " | ".join(import_result.messages)
        )

    logger.info(
        f"{filename}: {import_result.success_count} inserted, "
        f"{import_result.error_count} errors, {result.skipped_count} rows skipped"
    )
    return result
