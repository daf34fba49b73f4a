"""
Brand configuration registry.

Each supported supplier ("brand") is identified by the integer id it has in
the store's brand table.  A brand contributes two things to an import:

  - a BrandStrategy: the hardcoded exact-alias table matched first by the
    column mapper, plus the sheet name its price lists use;
  - a BrandConfig: the configurable raw-header alias map matched second.

Brands without an entry here cannot be imported: the pipeline refuses to
guess a mapping.

Usage:
    from config.brand_mappings import get_brand_config

    config = get_brand_config(1)
    if config is None:
        ...  # configuration error
"""

import logging
from dataclasses import dataclass, field

from config.brands import schneider
from config.schema import CANONICAL_FIELDS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BrandStrategy:
    """Brand-specific header synonyms, matched by exact normalized equality."""

    brand_id: int
    display_name: str
    sheet_name: str
    exact_aliases: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class BrandConfig:
    """Per-brand import configuration consumed by the column mapper."""

    brand_id: int
    display_name: str
    expected_sheet_name: str
    alias_map: dict[str, str] = field(default_factory=dict)

    def aliases_for(self, field_name: str) -> list[str]:
        """Raw aliases that map to *field_name*, in declaration order."""
        return [
            alias for alias, target in self.alias_map.items()
            if target == field_name
        ]


# ---------------------------------------------------------------------------
# Registries: add a module under config/brands/ and register it here.
# ---------------------------------------------------------------------------

BRAND_STRATEGIES: dict[int, BrandStrategy] = {
    schneider.BRAND_ID: BrandStrategy(
        brand_id=schneider.BRAND_ID,
        display_name=schneider.DISPLAY_NAME,
        sheet_name=schneider.SHEET_NAME,
        exact_aliases=schneider.EXACT_ALIASES,
    ),
}

BRAND_CONFIGS: dict[int, BrandConfig] = {
    schneider.BRAND_ID: BrandConfig(
        brand_id=schneider.BRAND_ID,
        display_name=schneider.DISPLAY_NAME,
        expected_sheet_name=schneider.SHEET_NAME,
        alias_map=schneider.ALIAS_MAP,
    ),
}


def get_brand_config(brand_id: int) -> BrandConfig | None:
    """
    Look up the import configuration for a brand.

    Args:
        brand_id: The brand's id in the store (idmarca).

    Returns:
        The BrandConfig, or None if the brand has no configured mapping.
    """
    config = BRAND_CONFIGS.get(brand_id)
    if config is None:
        logger.warning(f"No import configuration for brand id {brand_id}")
    return config


def get_brand_strategy(brand_id: int) -> BrandStrategy | None:
    """Return the exact-alias strategy for a brand, or None."""
    return BRAND_STRATEGIES.get(brand_id)


def has_brand_config(brand_id: int) -> bool:
    return brand_id in BRAND_CONFIGS


def configured_brand_ids() -> list[int]:
    return sorted(BRAND_CONFIGS)


def _validate_registry() -> None:
    """Fail fast at import time if an alias points at an unknown field."""
    for brand_id, config in BRAND_CONFIGS.items():
        bad = set(config.alias_map.values()) - CANONICAL_FIELDS
        if bad:
            raise ValueError(
                f"Brand {brand_id} alias map targets unknown fields: {sorted(bad)}"
            )
    for brand_id, strategy in BRAND_STRATEGIES.items():
        bad = set(strategy.exact_aliases.values()) - CANONICAL_FIELDS
        if bad:
            raise ValueError(
                f"Brand {brand_id} exact aliases target unknown fields: {sorted(bad)}"
            )


_validate_registry()
