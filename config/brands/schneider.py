"""
Schneider Electric price-list conventions.

Schneider ships a combined Portuguese/Spanish tariff ("TP" sheet) whose
headers drift between editions: "PVP Abril", "Precio", "Fam.", "Actividad",
"COD MPG". The exact-alias table below is matched before anything else.
"""

BRAND_ID: int = 1
DISPLAY_NAME: str = "Schneider Electric"
SHEET_NAME: str = "TP"

# Normalized header text → canonical field. Order matters within a field:
# the first alias present in the sheet wins.
EXACT_ALIASES: dict[str, str] = {
    # Price
    "pvp": "preco_tabela",
    "preco": "preco_tabela",
    "precio": "preco_tabela",

    # Family (every variation seen so far)
    "actividad": "familia",
    "actividade": "familia",
    "familia": "familia",
    "fam": "familia",
    "family": "familia",

    # Identification
    "referencia": "referencia",
    "ref": "referencia",
    "ean-13": "ean",
    "ean": "ean",

    # Descriptive
    "descricao": "descricao",
    "descripcion": "descricao",

    # Other
    "cod mpg": "grupo_desconto",
    "mpg": "grupo_desconto",
    "unidad": "unidade",
    "unidade": "unidade",
    "un": "unidade",
    "quantidade indivisible": "quantidade_minima",
    "cantidad indivisible": "quantidade_minima",
    "quantidade": "quantidade_minima",
    "peso bruto": "peso",
    "peso": "peso",
}

# Raw header text as it appears in the sheet → canonical field.
# Compared after normalization, so accents and periods may stay as typed.
ALIAS_MAP: dict[str, str] = {
    "Referência": "referencia",
    "Ref": "referencia",
    "Ref.": "referencia",
    "Descrição": "descricao",
    "Descripcion": "descricao",
    "Descripción": "descricao",
    "Actividad": "familia",
    "Actividade": "familia",
    "Atividade": "familia",
    "Família": "familia",
    "Familia": "familia",
    "Fam": "familia",
    "Fam.": "familia",
    "Fam/": "familia",
    "EAN-13": "ean",
    "EAN": "ean",
    "PVP": "preco_tabela",
    "Precio": "preco_tabela",
    "Preço": "preco_tabela",
    "COD MPG": "grupo_desconto",
    "Unidad": "unidade",
    "Unidade": "unidade",
    "Quantidade indivisible": "quantidade_minima",
    "Cantidad indivisible": "quantidade_minima",
    "Peso Bruto": "peso",
    "Peso": "peso",
}
