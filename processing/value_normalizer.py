"""
Value normalizer — cleans and coerces raw spreadsheet cells.

Pure functions shared by every stage of the import:
  - clean_text / to_number turn raw cells into clean strings or floats,
    tolerating blank markers, literal "nan" tokens and comma decimals.
  - normalize_key / normalize_key_flexible reduce header text to a
    comparison key (no case, no accents, no invisible spacing).
  - correct_discount_fraction is the one place that decides whether a
    discount was typed as a fraction (0.71) or a percentage (71).

Comma-as-decimal ("1,5" → 1.5) is a fixed Portuguese convention.  A comma
used as a thousands separator ("1,234") is read as 1.234.
"""

import math
import re
import unicodedata
from decimal import Decimal

# Whitespace plus the invisible spacing characters Excel exports love:
# NBSP, zero-width space, BOM.
_SPACING_PATTERN = re.compile(r"[\s\u00a0\u200b\ufeff]+")
_NON_ALNUM_PATTERN = re.compile(r"[^0-9a-z]+")
_LEADING_NUMBER_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")

_NAN_TOKEN = "nan"


def _is_nan(raw: object) -> bool:
    return isinstance(raw, float) and math.isnan(raw)


def _to_str(raw: object) -> str:
    """Stringify a cell, rendering integral floats without a trailing '.0'."""
    if isinstance(raw, float) and raw.is_integer():
        return str(int(raw))
    return str(raw)


def clean_text(raw: object) -> str | None:
    """
    Trim a cell value to a string.

    Returns None for missing cells, NaN, blank strings and the literal token
    "nan" in any case.

    Examples:
        >>> clean_text(" Foo ")
        'Foo'
        >>> clean_text("NaN") is None
        True
    """
    if raw is None or _is_nan(raw):
        return None
    text = _to_str(raw).strip()
    if not text or text.lower() == _NAN_TOKEN:
        return None
    return text


def to_number(raw: object) -> float | None:
    """
    Parse a cell value as a float.

    Numbers pass through unchanged.  Text is trimmed, its first comma is
    treated as the decimal separator, and the leading numeric part is parsed
    ("12,50 €" → 12.5).  Blank, "nan" and non-numeric text return None.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return None if _is_nan(raw) else float(raw)

    text = str(raw).strip().replace(",", ".", 1)
    if not text or text.lower() == _NAN_TOKEN:
        return None

    match = _LEADING_NUMBER_PATTERN.match(text)
    if match is None:
        return None
    return float(match.group(0))


def normalize_key(raw: object) -> str:
    """
    Reduce header text to a comparison key.

    Lowercases, strips diacritics ("Referência" → "referencia"), collapses
    whitespace and invisible spacing to single spaces and removes periods
    ("P.V.P." → "pvp").
    """
    text = "" if raw is None else _to_str(raw)
    text = unicodedata.normalize("NFD", text.lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = text.replace("ç", "c")
    text = _SPACING_PATTERN.sub(" ", text)
    return text.replace(".", "").strip()


def normalize_key_flexible(raw: object) -> str:
    """normalize_key() with every punctuation character turned into a space."""
    text = _NON_ALNUM_PATTERN.sub(" ", normalize_key(raw))
    return " ".join(text.split())


def contains_token(flexible_key: str, token: str, min_length: int = 3) -> bool:
    """
    Substring test that refuses to match short tokens inside longer words.

    Tokens of at least *min_length* characters match anywhere; shorter tokens
    must equal one of the key's words.
    """
    if not token:
        return False
    if len(token) >= min_length:
        return token in flexible_key
    return token in flexible_key.split()


def contains_word(key: str, word: str) -> bool:
    """
    True if *word*, or its plural, appears in *key* as a whole word.

    "ref" is found in "ref fabricante" and "referencia" in "referencias",
    but neither in "preferenciais".
    """
    if not word:
        return False
    pattern = rf"(?<![a-z0-9]){re.escape(word)}s?(?![a-z0-9])"
    return re.search(pattern, key) is not None


def correct_discount_fraction(value: float | None) -> float | None:
    """
    Scale discounts typed as fractions up to percentages.

    Any value in (0, 1] is multiplied by 100 (0.71 → 71.0, 1 → 100.0);
    0, negatives and values above 1 are returned unchanged.  Scaling goes
    through Decimal so 0.71 becomes exactly 71.0.
    """
    if value is None or _is_nan(value):
        return None
    if 0 < value <= 1:
        return float(Decimal(repr(float(value))) * 100)
    return float(value)
