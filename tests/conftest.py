"""
Shared fixtures: an in-memory store and an in-memory workbook builder.
"""

import io
from typing import Any

import openpyxl
import pytest

from storage.base import Page, StoreError


class FakeStore:
    """
    In-memory CatalogStore.

    Any upsert call whose rows include a reference in *bad_references* fails
    with StoreError, as does every call when *fail_all* is set.
    """

    def __init__(self, bad_references: set[str] | None = None, fail_all: bool = False):
        self.bad_references = bad_references or set()
        self.fail_all = fail_all
        self.fail_discounts = False
        self.components: dict[tuple[int, str], dict[str, Any]] = {}
        self.discounts: dict[tuple[int, str], dict[str, Any]] = {}
        self.upsert_calls: list[int] = []

    def upsert_components(self, rows):
        self.upsert_calls.append(len(rows))
        if self.fail_all:
            raise StoreError("insert failed", code="23502")
        bad = [row["referencia"] for row in rows if row["referencia"] in self.bad_references]
        if bad:
            raise StoreError(f"invalid row {bad[0]}", code="22P02")
        for row in rows:
            self.components[(row["idmarca"], row["referencia"])] = row

    def upsert_discounts(self, rows):
        if self.fail_discounts:
            raise StoreError("permission denied", code="42501")
        for row in rows:
            self.discounts[(row["idmarca"], row["grupo_desconto"])] = row

    def list_discounts(self, brand_id):
        return []

    def count_components(self, brand_id=None, search=None):
        return len(self.components)

    def list_components(self, page=1, per_page=20, brand_id=None, search=None,
                        sort_by="updated_at", ascending=False):
        rows = list(self.components.values())
        return Page(rows=rows[(page - 1) * per_page:page * per_page], total=len(rows))

    def count_price_history(self, brand_id=None, search=None):
        return 0

    def list_price_history(self, page=1, per_page=20, brand_id=None, search=None,
                           sort_by="valido_ate", ascending=False):
        return Page()

    def list_brands(self):
        return []


@pytest.fixture
def fake_store():
    """Factory for FakeStore instances."""
    return FakeStore


@pytest.fixture
def workbook_bytes():
    """Build an .xlsx file in memory from {sheet name: rows}."""

    def _build(sheets: dict[str, list[list[Any]]]) -> bytes:
        workbook = openpyxl.Workbook()
        workbook.remove(workbook.active)
        for name, rows in sheets.items():
            worksheet = workbook.create_sheet(title=name)
            for row in rows:
                worksheet.append(row)
        buffer = io.BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()

    return _build
