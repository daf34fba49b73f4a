"""
Header vocabulary used to find and map supplier spreadsheet columns.

Provides the generic (brand-independent) token lists used by the last two
tiers of the column mapper, the reference aliases that anchor header-row
detection, and the scoring weights used when no reference header exists.

All tokens are stored already normalized (lowercase, no accents, no periods)
so they can be compared directly against normalize_key() output.
"""

# ---------------------------------------------------------------------------
# Reference aliases: a cell equal to (or containing as a word) one of these
# marks its row as the header row. "ref." normalizes to "ref".
# ---------------------------------------------------------------------------
REFERENCE_ALIASES: tuple[str, ...] = ("referencia", "ref")

# ---------------------------------------------------------------------------
# Generic fallbacks: canonical field → tokens searched in the flexible header
# key, first as substrings (tier 3) and then as prefixes (tier 4).
# Portuguese, Spanish and English spellings are all listed because supplier
# sheets mix them freely.
# ---------------------------------------------------------------------------
GENERIC_FALLBACKS: dict[str, list[str]] = {
    "referencia": ["referencia", "ref", "codigo", "artigo"],
    "descricao": ["descricao", "descripcion", "designacao", "description"],
    "familia": ["familia", "fam", "actividad", "category", "grupo"],
    "ean": ["ean", "gtin", "barcode"],
    "preco_tabela": ["pvp", "preco", "precio", "price", "tarifa", "eur", "valor"],
    "grupo_desconto": ["mpg", "desconto", "descuento"],
    "unidade": ["unidad", "unit", "un", "emb"],
    "quantidade_minima": ["quantidade", "cantidad", "indivisible", "minima", "qtd"],
    "peso": ["peso", "weight"],
}

# Tokens shorter than this must match a whole word, never a fragment
# ("un" must not match "fundo").
MIN_CONTAINMENT_LENGTH: int = 3

# Header prefix that always identifies the family column ("fam", "fam.",
# "familia", "fam produto", ...).
FAMILY_PREFIX: str = "fam"

# Last-resort tokens for the minimum-quantity column.
QUANTITY_FALLBACK_TOKENS: tuple[str, ...] = ("quantidade", "qty", "qtd", "cantidad")

# ---------------------------------------------------------------------------
# Header-row scoring (used only when no row carries a reference alias).
# A field contributes its weight at most once per row.
# ---------------------------------------------------------------------------
HEADER_FIELD_WEIGHTS: dict[str, int] = {
    "referencia": 100,
    "descricao": 20,
    "preco_tabela": 15,
    "ean": 10,
    "familia": 10,
    "unidade": 5,
    "quantidade_minima": 5,
    "peso": 5,
}

# Rows scanned from the top of the sheet when looking for the header.
HEADER_SCAN_LIMIT: int = 50
