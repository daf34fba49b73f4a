"""
Supabase store — talks to the hosted database through the supabase client.

Queries are built with the client's PostgREST query builder: filters, search,
ordering and ranges chain onto client.table(...), exact counts come back on
the response, and upserts resolve conflicts on each table's natural key.

Failures of any kind (API errors, timeouts, refused connections) are raised
as StoreError so callers handle one exception type.

Public API:
    SupabaseStore(client)
    SupabaseStore.connect(url, api_key, timeout=30.0)
    SupabaseStore.from_settings(settings)
"""

import logging
from typing import Any

import httpx
from postgrest.exceptions import APIError
from supabase import Client, ClientOptions, create_client

from config.schema import (
    BRAND_COLUMNS,
    COMPONENT_COLUMNS,
    COMPONENT_KEY,
    DISCOUNT_COLUMNS,
    DISCOUNT_KEY,
    PRICE_HISTORY_COLUMNS,
)
from config.settings import (
    BRANDS_TABLE,
    COMPONENTS_TABLE,
    DISCOUNTS_TABLE,
    PRICE_HISTORY_TABLE,
    REQUEST_TIMEOUT_SECONDS,
    StoreSettings,
)
from processing.models import Brand, DiscountRecord
from storage.base import ConnectionCheck, Page, StoreError

logger = logging.getLogger(__name__)

_RLS_HINT = (
    "If the table has data but 0 rows come back, check the row-level "
    "security policies for the anon role on '{table}'."
)

_COMPONENT_SEARCH_COLUMNS = ("referencia", "descricao")


class SupabaseStore:
    """CatalogStore backed by a supabase Client."""

    def __init__(self, client: Client) -> None:
        self.client = client

    @classmethod
    def connect(
        cls,
        url: str,
        api_key: str,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ) -> "SupabaseStore":
        """Create the client; an unusable URL or key raises StoreError."""
        try:
            client = create_client(
                url.strip(),
                api_key.strip(),
                options=ClientOptions(postgrest_client_timeout=timeout),
            )
        except Exception as exc:
            raise StoreError(f"Cannot create Supabase client: {exc}") from exc
        logger.info(f"Supabase client created for {url.strip()} (timeout={timeout}s)")
        return cls(client)

    @classmethod
    def from_settings(cls, settings: StoreSettings) -> "SupabaseStore":
        return cls.connect(settings.url, settings.api_key, timeout=settings.timeout)

    # ── Components ─────────────────────────────────────────────────────

    def count_components(self, brand_id: int | None = None, search: str | None = None) -> int:
        query = self.client.table(COMPONENTS_TABLE).select("referencia", count="exact")
        query = self._filter_components(query, brand_id, search)
        response = _execute(query.limit(1), COMPONENTS_TABLE)
        return response.count or 0

    def list_components(
        self,
        page: int = 1,
        per_page: int = 20,
        brand_id: int | None = None,
        search: str | None = None,
        sort_by: str = "updated_at",
        ascending: bool = False,
    ) -> Page:
        _check_sort(sort_by, COMPONENT_COLUMNS)
        query = self.client.table(COMPONENTS_TABLE).select("*", count="exact")
        query = self._filter_components(query, brand_id, search)
        return _page(query, COMPONENTS_TABLE, page, per_page, sort_by, ascending)

    def upsert_components(self, rows: list[dict[str, Any]]) -> None:
        self._upsert(COMPONENTS_TABLE, rows, COMPONENT_KEY)

    @staticmethod
    def _filter_components(query, brand_id: int | None, search: str | None):
        if brand_id is not None:
            query = query.eq("idmarca", brand_id)
        if search and search.strip():
            query = query.or_(_search_any(_COMPONENT_SEARCH_COLUMNS, search))
        return query

    # ── Discount groups ────────────────────────────────────────────────

    def list_discounts(self, brand_id: int) -> list[DiscountRecord]:
        query = (
            self.client.table(DISCOUNTS_TABLE)
            .select(",".join(DISCOUNT_COLUMNS))
            .eq("idmarca", brand_id)
            .order("grupo_desconto")
        )
        response = _execute(query, DISCOUNTS_TABLE)
        return [
            DiscountRecord(
                idmarca=row["idmarca"],
                grupo_desconto=row["grupo_desconto"],
                valor_desconto=row["valor_desconto"],
                updated_at=row.get("updated_at"),
            )
            for row in response.data
        ]

    def upsert_discounts(self, rows: list[dict[str, Any]]) -> None:
        self._upsert(DISCOUNTS_TABLE, rows, DISCOUNT_KEY)

    # ── Price history ──────────────────────────────────────────────────

    def count_price_history(self, brand_id: int | None = None, search: str | None = None) -> int:
        query = self.client.table(PRICE_HISTORY_TABLE).select("referencia_backup", count="exact")
        query = self._filter_history(query, brand_id, search)
        response = _execute(query.limit(1), PRICE_HISTORY_TABLE)
        return response.count or 0

    def list_price_history(
        self,
        page: int = 1,
        per_page: int = 20,
        brand_id: int | None = None,
        search: str | None = None,
        sort_by: str = "valido_ate",
        ascending: bool = False,
    ) -> Page:
        _check_sort(sort_by, PRICE_HISTORY_COLUMNS)
        query = self.client.table(PRICE_HISTORY_TABLE).select(
            ",".join(PRICE_HISTORY_COLUMNS), count="exact"
        )
        query = self._filter_history(query, brand_id, search)
        return _page(query, PRICE_HISTORY_TABLE, page, per_page, sort_by, ascending)

    @staticmethod
    def _filter_history(query, brand_id: int | None, search: str | None):
        if brand_id is not None:
            query = query.eq("idmarca", brand_id)
        if search and search.strip():
            query = query.ilike("referencia_backup", f"%{search.strip()}%")
        return query

    # ── Brands / connection ────────────────────────────────────────────

    def list_brands(self) -> list[Brand]:
        query = self.client.table(BRANDS_TABLE).select(",".join(BRAND_COLUMNS)).order("nome")
        response = _execute(query, BRANDS_TABLE)
        return [Brand(idmarca=row["idmarca"], nome=row["nome"]) for row in response.data]

    def test_connection(self) -> ConnectionCheck:
        """
        Check that the app can actually work against this database.

        The brand table must be readable and hold at least one visible row
        (the import screen depends on it); the components table must be
        readable, though it may be empty.
        """
        try:
            response = _execute(
                self.client.table(BRANDS_TABLE).select("idmarca,nome").limit(5),
                BRANDS_TABLE,
            )
        except StoreError as exc:
            return ConnectionCheck(
                ok=False,
                message=f"Cannot read {BRANDS_TABLE}: {exc}. "
                + _RLS_HINT.format(table=BRANDS_TABLE),
            )

        visible = len(response.data)
        if visible == 0:
            return ConnectionCheck(
                ok=False,
                message=f"Connected, but no brands are visible in {BRANDS_TABLE}. "
                + _RLS_HINT.format(table=BRANDS_TABLE),
            )

        try:
            _execute(
                self.client.table(COMPONENTS_TABLE).select("referencia").limit(1),
                COMPONENTS_TABLE,
            )
        except StoreError as exc:
            return ConnectionCheck(
                ok=False,
                message=f"Cannot read {COMPONENTS_TABLE}: {exc}. "
                + _RLS_HINT.format(table=COMPONENTS_TABLE),
                visible_brands=visible,
            )

        return ConnectionCheck(
            ok=True,
            message=f"Connected. Brands visible (sample): {visible}.",
            visible_brands=visible,
        )

    # ── Writes ─────────────────────────────────────────────────────────

    def _upsert(self, table: str, rows: list[dict[str, Any]], key: tuple[str, ...]) -> None:
        if not rows:
            return
        query = self.client.table(table).upsert(rows, on_conflict=",".join(key))
        _execute(query, table)
        logger.debug(f"Upserted {len(rows)} rows into {table}")


# ═══════════════════════════════════════════════════════════════════════════
# Internal helpers
# ═══════════════════════════════════════════════════════════════════════════

def _execute(query, table: str):
    """Run a built query, translating client errors into StoreError."""
    try:
        return query.execute()
    except APIError as exc:
        detail = exc.message or str(exc)
        raise StoreError(f"{table}: {detail}", code=exc.code) from exc
    except httpx.HTTPError as exc:
        raise StoreError(f"{table}: {exc}") from exc


def _page(
    query,
    table: str,
    page: int,
    per_page: int,
    sort_by: str,
    ascending: bool,
) -> Page:
    start = (max(page, 1) - 1) * per_page
    query = query.order(sort_by, desc=not ascending).range(start, start + per_page - 1)
    response = _execute(query, table)
    rows = response.data or []
    return Page(rows=rows, total=max(response.count or 0, len(rows)))


def _search_any(columns: tuple[str, ...], search: str) -> str:
    """Or-filter body: case-insensitive substring on any of *columns*."""
    term = search.strip().replace("\\", "\\\\").replace('"', '\\"')
    return ",".join(f'{column}.ilike."%{term}%"' for column in columns)


def _check_sort(sort_by: str, allowed: list[str]) -> None:
    if sort_by not in allowed:
        raise ValueError(f"Cannot sort by '{sort_by}'. Allowed columns: {allowed}")
