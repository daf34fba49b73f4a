"""
Header locator — finds the row that names the columns of a price list.

Supplier sheets routinely prepend titles, logos and notes before the real
header, so the header row index is discovered rather than configured.

Search strategy (first 50 rows only):
  1. Reference anchor — the first row with a cell equal to a reference alias
     ("referencia", "ref", "ref."); failing that, the first row with a cell
     containing one as a word.
  2. Vocabulary score — each row earns weighted points for the canonical
     fields its cells mention (reference=100, description=20, price=15, ...).
     A row that mentions reference vocabulary ("codigo", "artigo") wins
     immediately; otherwise the highest score wins.
  3. Default — row 0, with a soft warning.

Public API:
    locate_header_row(rows) → HeaderLocation
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from config.column_mapping import (
    GENERIC_FALLBACKS,
    HEADER_FIELD_WEIGHTS,
    HEADER_SCAN_LIMIT,
    MIN_CONTAINMENT_LENGTH,
    REFERENCE_ALIASES,
)
from config.schema import MANDATORY_FIELD
from processing.value_normalizer import (
    contains_token,
    contains_word,
    normalize_key,
    normalize_key_flexible,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HeaderLocation:
    """Where the header row is and how it was found."""

    row_index: int
    """0-based index into the sheet rows."""

    strategy: str
    """"reference", "scored" or "default"."""

    score: int = 0
    warning: str | None = None


# ═══════════════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════════════

def locate_header_row(
    rows: Sequence[Sequence[Any] | None],
    scan_limit: int = HEADER_SCAN_LIMIT,
) -> HeaderLocation:
    """
    Find the header row of a decoded sheet.

    Args:
        rows: The sheet grid (rows of raw cell values; a row may be None).
        scan_limit: How many rows from the top to consider.

    Returns:
        HeaderLocation with the 0-based row index.  Never fails: when nothing
        looks like a header the first row is returned with a warning.
    """
    candidates = list(rows[:scan_limit])

    # ------------------------------------------------------------------
    # 1. Reference anchor
    # ------------------------------------------------------------------
    # An exact "Referência" cell beats a title that merely mentions one.
    for exact_only in (True, False):
        for row_idx, row in enumerate(candidates):
            if _has_reference_cell(row, exact_only=exact_only):
                logger.info(f"Header found at row {row_idx + 1} (reference column)")
                return HeaderLocation(
                    row_index=row_idx,
                    strategy="reference",
                    score=HEADER_FIELD_WEIGHTS[MANDATORY_FIELD],
                )

    # ------------------------------------------------------------------
    # 2. Vocabulary score
    # ------------------------------------------------------------------
    best_idx = 0
    best_score = 0
    for row_idx, row in enumerate(candidates):
        score, matched_fields = _score_row(row)
        if score <= 0:
            continue
        if MANDATORY_FIELD in matched_fields:
            logger.info(
                f"Header found at row {row_idx + 1} (reference vocabulary, "
                f"score={score})"
            )
            return HeaderLocation(row_index=row_idx, strategy="scored", score=score)
        if score > best_score:
            best_idx = row_idx
            best_score = score

    if best_score > 0:
        logger.info(f"Header found at row {best_idx + 1} (score={best_score})")
        return HeaderLocation(row_index=best_idx, strategy="scored", score=best_score)

    # ------------------------------------------------------------------
    # 3. Default
    # ------------------------------------------------------------------
    warning = (
        f"No header row recognised in the first {len(candidates)} rows; "
        "assuming row 1 is the header"
    )
    logger.warning(warning)
    return HeaderLocation(row_index=0, strategy="default", warning=warning)


# ═══════════════════════════════════════════════════════════════════════════
# Internal helpers
# ═══════════════════════════════════════════════════════════════════════════

def _has_reference_cell(row: Sequence[Any] | None, exact_only: bool = False) -> bool:
    """
    True if any cell is a reference alias, or (unless *exact_only*)
    contains one as a word ("Ref. Fabricante", "Referencias").
    """
    if not row:
        return False
    for cell in row:
        key = normalize_key(cell)
        if not key:
            continue
        if key in REFERENCE_ALIASES:
            return True
        if exact_only:
            continue
        flexible = normalize_key_flexible(cell)
        if any(contains_word(flexible, alias) for alias in REFERENCE_ALIASES):
            return True
    return False


def _score_row(row: Sequence[Any] | None) -> tuple[int, set[str]]:
    """
    Score a row by the canonical fields its cells mention.

    Each field counts once per row no matter how many cells mention it, so a
    row of ten "preco" columns cannot outscore a real header.

    Returns:
        (score, matched_fields)
    """
    if not row:
        return 0, set()

    matched_fields: set[str] = set()
    for cell in row:
        flexible = normalize_key_flexible(cell)
        if not flexible:
            continue
        for field_name in HEADER_FIELD_WEIGHTS:
            if field_name in matched_fields:
                continue
            if _mentions(flexible, field_name):
                matched_fields.add(field_name)
                break

    score = sum(HEADER_FIELD_WEIGHTS[name] for name in matched_fields)
    return score, matched_fields


def _mentions(flexible: str, field_name: str) -> bool:
    """
    True if a header cell uses the vocabulary of *field_name*.

    Reference words must stand alone: "preferenciais" in a title row does not
    mention "ref".
    """
    tokens = GENERIC_FALLBACKS.get(field_name, [])
    if field_name == MANDATORY_FIELD:
        return any(contains_word(flexible, token) for token in tokens)
    return any(contains_token(flexible, token, MIN_CONTAINMENT_LENGTH) for token in tokens)
