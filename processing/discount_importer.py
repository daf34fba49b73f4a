"""
Discount paste importer — loads discount groups pasted from a spreadsheet.

Users copy two columns (discount-group code, percentage) from Excel and
paste them as tab-separated text.  Each line is cleaned with the value
normalizer; percentages typed as fractions (0.71) are scaled with
correct_discount_fraction, the same function used to display stored
discounts.

The whole paste is upserted in a single call; if that call fails, every
record is reported as failed (no partial accounting).

Public API:
    parse_discount_paste(text, brand_id) → DiscountParseResult
    import_discounts(store, text, brand_id) → ImportResult
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from config.settings import MAX_MESSAGES
from processing.models import DiscountRecord, ImportResult
from processing.value_normalizer import clean_text, correct_discount_fraction, to_number
from storage.base import CatalogStore, StoreError

logger = logging.getLogger(__name__)


@dataclass
class DiscountParseResult:
    records: list[DiscountRecord] = field(default_factory=list)
    ignored_lines: list[str] = field(default_factory=list)


def parse_discount_paste(text: str, brand_id: int) -> DiscountParseResult:
    """
    Parse pasted "group<TAB>percentage" lines.

    Blank lines are dropped silently.  Lines without a group code or a
    numeric percentage are reported in ignored_lines (a header line such as
    "Grupo<TAB>Desconto" ends up there).  When a group appears twice the
    last value wins.
    """
    result = DiscountParseResult()
    by_group: dict[str, DiscountRecord] = {}

    for line_number, line in enumerate((text or "").splitlines(), start=1):
        if not line.strip():
            continue

        cells = line.split("\t")
        group = clean_text(cells[0])
        raw_value = cells[1] if len(cells) > 1 else None
        value = to_number(clean_text(raw_value))

        if group is None or value is None:
            result.ignored_lines.append(
                f"Line {line_number}: expected group and percentage, got '{line.strip()}'"
            )
            continue

        if group in by_group:
            logger.debug(f"Discount group '{group}' repeated on line {line_number}; keeping last")

        by_group[group] = DiscountRecord(
            idmarca=brand_id,
            grupo_desconto=group,
            valor_desconto=correct_discount_fraction(value),
        )

    result.records = list(by_group.values())
    logger.info(
        f"Parsed {len(result.records)} discount groups, "
        f"{len(result.ignored_lines)} lines ignored"
    )
    return result


def import_discounts(store: CatalogStore, text: str, brand_id: int) -> ImportResult:
    """
    Parse a paste and upsert it on (idmarca, grupo_desconto) in one call.

    Returns:
        ImportResult — either every record succeeded or every record failed.
    """
    parsed = parse_discount_paste(text, brand_id)
    result = ImportResult()

    for message in parsed.ignored_lines:
        result.add_message(message, MAX_MESSAGES)

    if not parsed.records:
        result.add_message("No discount lines to import", MAX_MESSAGES, force=True)
        return result

    updated_at = datetime.now(timezone.utc).isoformat()
    try:
        store.upsert_discounts([record.to_row(updated_at) for record in parsed.records])
    except StoreError as exc:
        logger.error(f"Discount import for brand {brand_id} failed: {exc}")
        result.error_count = len(parsed.records)
        result.add_message(f"Discount import failed: {exc}", MAX_MESSAGES, force=True)
        return result

    result.success_count = len(parsed.records)
    logger.info(f"Imported {result.success_count} discount groups for brand {brand_id}")
    return result
