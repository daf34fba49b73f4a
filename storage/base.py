"""
Store interface used by the import pipeline and the UI.

The pipeline only needs the two upsert methods; the browsing screens use the
paginated queries.  SupabaseStore is the production implementation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from processing.models import Brand, DiscountRecord


class StoreError(Exception):
    """A store call failed (API error, timeout, connection refused, ...).

    *code* is the database error code when the API returned one ("23505").
    """

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


@dataclass
class Page:
    """One page of a paginated query."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    total: int = 0


@dataclass(frozen=True)
class ConnectionCheck:
    ok: bool
    message: str
    visible_brands: int = 0


class CatalogStore(Protocol):
    """Operations the rest of the application relies on."""

    # Components
    def count_components(self, brand_id: int | None = None, search: str | None = None) -> int: ...

    def list_components(
        self,
        page: int = 1,
        per_page: int = 20,
        brand_id: int | None = None,
        search: str | None = None,
        sort_by: str = "updated_at",
        ascending: bool = False,
    ) -> Page: ...

    def upsert_components(self, rows: list[dict[str, Any]]) -> None: ...

    # Discount groups
    def list_discounts(self, brand_id: int) -> list[DiscountRecord]: ...

    def upsert_discounts(self, rows: list[dict[str, Any]]) -> None: ...

    # Price history (read-only)
    def count_price_history(self, brand_id: int | None = None, search: str | None = None) -> int: ...

    def list_price_history(
        self,
        page: int = 1,
        per_page: int = 20,
        brand_id: int | None = None,
        search: str | None = None,
        sort_by: str = "valido_ate",
        ascending: bool = False,
    ) -> Page: ...

    # Brands
    def list_brands(self) -> list[Brand]: ...
