"""
Column mapper — assigns supplier spreadsheet columns to canonical fields.

Fields are resolved one at a time in FIELD_RESOLUTION_ORDER (reference
first).  For each field an ordered list of matchers is tried, stopping at the
first hit; the winning column is then claimed and unavailable to later
fields:

  0. Family prefix   — familia only: any header starting with "fam".
  1. Brand exact     — the brand strategy's hardcoded synonyms, exact match.
  2. Brand config    — the brand config alias map: exact, then containment
                       (aliases under 3 characters must match exactly).
  3. Generic substring — per-field generic tokens contained in the header.
  4. Generic prefix  — the same tokens as header prefixes.
  5. Quantity fallback — quantidade_minima only: "quantidade", "qty", "qtd",
                       "cantidad" anywhere in the header.

The containment tiers match reference vocabulary as whole words only, so a
column titled "Preços preferenciais" is not taken for the reference.

If the reference column cannot be found the mapping is unusable and an error
listing the available headers is returned.  Every other field is optional.

Public API:
    map_columns(header_row, brand_config) → ColumnMappingResult
"""

import logging
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from config.brand_mappings import BrandConfig, BrandStrategy, get_brand_strategy
from config.column_mapping import (
    FAMILY_PREFIX,
    GENERIC_FALLBACKS,
    MIN_CONTAINMENT_LENGTH,
    QUANTITY_FALLBACK_TOKENS,
)
from config.schema import FIELD_RESOLUTION_ORDER, MANDATORY_FIELD
from processing.value_normalizer import (
    clean_text,
    contains_token,
    contains_word,
    normalize_key,
    normalize_key_flexible,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Data classes
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class ColumnMappingResult:
    """Result of mapping a header row to the canonical fields."""

    mapping: dict[str, int | None] = field(default_factory=dict)
    """canonical field → 0-based column index, or None if unmapped."""

    matched_by: dict[str, str] = field(default_factory=dict)
    """canonical field → name of the rule that claimed its column."""

    headers: list[str] = field(default_factory=list)
    """Header texts as read (trimmed), by column index."""

    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.mapping.get(MANDATORY_FIELD) is not None and not self.errors

    @property
    def unmapped_fields(self) -> list[str]:
        return [name for name in FIELD_RESOLUTION_ORDER if self.mapping.get(name) is None]

    def describe(self) -> dict[str, str | None]:
        """canonical field → header text it was mapped to (for display)."""
        return {
            name: (self.headers[idx] if idx is not None else None)
            for name, idx in self.mapping.items()
        }


@dataclass
class _HeaderIndex:
    """Pre-normalized header keys plus the set of already claimed columns."""

    keys: list[str]
    flexible: list[str]
    claimed: set[int] = field(default_factory=set)

    @classmethod
    def build(cls, headers: list[str]) -> "_HeaderIndex":
        return cls(
            keys=[normalize_key(text) for text in headers],
            flexible=[normalize_key_flexible(text) for text in headers],
        )

    def unclaimed(self) -> Iterator[int]:
        """Indices of non-blank headers no field has claimed yet."""
        for idx, key in enumerate(self.keys):
            if key and idx not in self.claimed:
                yield idx


@dataclass(frozen=True)
class _MatchContext:
    headers: _HeaderIndex
    brand_config: BrandConfig
    strategy: BrandStrategy | None


Matcher = Callable[[str, _MatchContext], int | None]


# ═══════════════════════════════════════════════════════════════════════════
# Matchers: each returns a column index or None
# ═══════════════════════════════════════════════════════════════════════════

def _match_family_prefix(field_name: str, ctx: _MatchContext) -> int | None:
    if field_name != "familia":
        return None
    for idx in ctx.headers.unclaimed():
        if ctx.headers.keys[idx].startswith(FAMILY_PREFIX):
            return idx
    return None


def _match_brand_exact(field_name: str, ctx: _MatchContext) -> int | None:
    if ctx.strategy is None:
        return None
    aliases = [
        normalize_key(alias)
        for alias, target in ctx.strategy.exact_aliases.items()
        if target == field_name
    ]
    for alias in aliases:
        for idx in ctx.headers.unclaimed():
            if ctx.headers.keys[idx] == alias:
                return idx
    return None


def _match_brand_config(field_name: str, ctx: _MatchContext) -> int | None:
    for alias in ctx.brand_config.aliases_for(field_name):
        alias_key = normalize_key(alias)
        if not alias_key:
            continue

        for idx in ctx.headers.unclaimed():
            if ctx.headers.keys[idx] == alias_key:
                return idx

        # Containment covers decorated headers such as "PVP Abril 2024".
        if len(alias_key) < MIN_CONTAINMENT_LENGTH:
            continue
        for idx in ctx.headers.unclaimed():
            if _contains(ctx.headers.keys[idx], alias_key, field_name):
                return idx
    return None


def _match_generic_substring(field_name: str, ctx: _MatchContext) -> int | None:
    tokens = GENERIC_FALLBACKS.get(field_name, [])
    for idx in ctx.headers.unclaimed():
        flexible = ctx.headers.flexible[idx]
        if any(_contains(flexible, token, field_name) for token in tokens):
            return idx
    return None


def _match_generic_prefix(field_name: str, ctx: _MatchContext) -> int | None:
    tokens = GENERIC_FALLBACKS.get(field_name, [])
    for idx in ctx.headers.unclaimed():
        flexible = ctx.headers.flexible[idx]
        if any(flexible.startswith(token) for token in tokens):
            return idx
    return None


def _match_quantity_fallback(field_name: str, ctx: _MatchContext) -> int | None:
    if field_name != "quantidade_minima":
        return None
    for idx in ctx.headers.unclaimed():
        flexible = ctx.headers.flexible[idx]
        if any(token in flexible for token in QUANTITY_FALLBACK_TOKENS):
            return idx
    return None


# Tried in this order for every field; the first hit wins.
_MATCHERS: list[tuple[str, Matcher]] = [
    ("family_prefix", _match_family_prefix),
    ("brand_exact", _match_brand_exact),
    ("brand_config", _match_brand_config),
    ("generic_substring", _match_generic_substring),
    ("generic_prefix", _match_generic_prefix),
    ("quantity_fallback", _match_quantity_fallback),
]


# ═══════════════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════════════

def map_columns(
    header_row: Sequence[Any] | None,
    brand_config: BrandConfig,
    strategy: BrandStrategy | None = None,
) -> ColumnMappingResult:
    """
    Map the cells of a header row to canonical fields.

    Args:
        header_row: Raw cell values of the header row.
        brand_config: Configuration of the brand being imported.
        strategy: Exact-alias strategy; looked up by brand id when omitted.

    Returns:
        ColumnMappingResult.  When the reference column is missing, errors
        holds a message listing the available headers and is_valid is False.
    """
    if strategy is None:
        strategy = get_brand_strategy(brand_config.brand_id)

    headers = [clean_text(cell) or "" for cell in (header_row or [])]
    result = ColumnMappingResult(headers=headers)
    ctx = _MatchContext(
        headers=_HeaderIndex.build(headers),
        brand_config=brand_config,
        strategy=strategy,
    )

    logger.info(
        f"Mapping {len(headers)} columns for brand '{brand_config.display_name}'"
    )

    for field_name in FIELD_RESOLUTION_ORDER:
        column, rule = _resolve_field(field_name, ctx)
        result.mapping[field_name] = column
        if column is None:
            logger.debug(f"Field '{field_name}' not found")
            continue
        ctx.headers.claimed.add(column)
        result.matched_by[field_name] = rule
        logger.debug(
            f"Mapped '{headers[column]}' → '{field_name}' (rule={rule})"
        )

    if result.mapping[MANDATORY_FIELD] is None:
        available = ", ".join(f"'{text}'" for text in headers if text) or "none"
        error_message = (
            "Reference column not found. Check that the file belongs to "
            f"'{brand_config.display_name}'. Available headers: {available}"
        )
        logger.error(error_message)
        result.errors.append(error_message)

    logger.info(
        f"Column mapping complete: {len(result.matched_by)} of "
        f"{len(FIELD_RESOLUTION_ORDER)} fields mapped"
    )
    if result.is_valid and result.unmapped_fields:
        logger.warning(f"Optional fields not found: {result.unmapped_fields}")
    return result


# ═══════════════════════════════════════════════════════════════════════════
# Internal helpers
# ═══════════════════════════════════════════════════════════════════════════

def _resolve_field(field_name: str, ctx: _MatchContext) -> tuple[int | None, str]:
    """Run the matcher cascade for one field; returns (column, rule name)."""
    for rule_name, matcher in _MATCHERS:
        column = matcher(field_name, ctx)
        if column is not None:
            return column, rule_name
    return None, ""


def _contains(key: str, token: str, field_name: str) -> bool:
    """Containment test; reference vocabulary must appear as a whole word."""
    if field_name == MANDATORY_FIELD:
        return contains_word(key, token)
    return contains_token(key, token, MIN_CONTAINMENT_LENGTH)
