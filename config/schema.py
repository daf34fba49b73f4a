"""
Canonical schema for imported price-list rows and the store tables.

Defines the nine canonical fields every spreadsheet row is reduced to, the
order in which the column mapper resolves them, and the column layout of the
three store tables (components, discount groups, price history).
"""

# Canonical fields in the exact order the column mapper resolves them.
# Earlier fields claim their column first, so "referencia" always wins a
# contested column.
FIELD_RESOLUTION_ORDER: list[str] = [
    "referencia",
    "descricao",
    "preco_tabela",
    "ean",
    "familia",
    "grupo_desconto",
    "unidade",
    "quantidade_minima",
    "peso",
]

CANONICAL_FIELDS: frozenset[str] = frozenset(FIELD_RESOLUTION_ORDER)

# The only field that must be mapped for an import to run at all.
MANDATORY_FIELD: str = "referencia"

# Expected Python types for each canonical field.
# "text" = cleaned str, "float" = parsed number
FIELD_TYPES: dict[str, str] = {
    "referencia": "text",
    "descricao": "text",
    "preco_tabela": "float",
    "ean": "text",
    "familia": "text",
    "grupo_desconto": "text",
    "unidade": "text",
    "quantidade_minima": "float",
    "peso": "float",
}

# Unit written when the sheet has no unit column or the cell is blank.
DEFAULT_UNIT: str = "UN"

# ---------------------------------------------------------------------------
# Store tables
# ---------------------------------------------------------------------------

COMPONENT_COLUMNS: list[str] = [
    "idmarca",
    *FIELD_RESOLUTION_ORDER,
    "updated_at",
]

# Natural key used as the upsert conflict target.
COMPONENT_KEY: tuple[str, str] = ("idmarca", "referencia")

DISCOUNT_COLUMNS: list[str] = [
    "idmarca",
    "grupo_desconto",
    "valor_desconto",
    "updated_at",
]

DISCOUNT_KEY: tuple[str, str] = ("idmarca", "grupo_desconto")

PRICE_HISTORY_COLUMNS: list[str] = [
    "idmarca",
    "referencia_backup",
    "precoatual_anterior",
    "valido_ate",
]

BRAND_COLUMNS: list[str] = ["idmarca", "nome"]
