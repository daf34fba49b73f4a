"""
Tests for processing/discount_importer.py
"""

import pytest

from processing.discount_importer import (
    DiscountParseResult,
    import_discounts,
    parse_discount_paste,
)
from processing.models import DiscountRecord


# ═══════════════════════════════════════════════════════════════════════════
# Parsing
# ═══════════════════════════════════════════════════════════════════════════

class TestParse:

    def test_tab_separated_lines(self):
        result = parse_discount_paste("A1\t35\nB2\t42,5\n", brand_id=1)
        assert isinstance(result, DiscountParseResult)
        assert result.records == [
            DiscountRecord(idmarca=1, grupo_desconto="A1", valor_desconto=35.0),
            DiscountRecord(idmarca=1, grupo_desconto="B2", valor_desconto=42.5),
        ]
        assert result.ignored_lines == []

    @pytest.mark.parametrize("pasted, expected", [
        ("0", 0.0),
        ("0.01", 1.0),
        ("0,71", 71.0),
        ("1", 100.0),
        ("1.0", 100.0),
        ("1.01", 1.01),
        ("100", 100.0),
    ])
    def test_fraction_correction(self, pasted, expected):
        result = parse_discount_paste(f"G\t{pasted}", brand_id=1)
        assert result.records[0].valor_desconto == expected

    def test_header_and_bad_lines_ignored(self):
        text = "Grupo\tDesconto\nA1\t30\nB2\n\t15\n"
        result = parse_discount_paste(text, brand_id=1)
        assert [record.grupo_desconto for record in result.records] == ["A1"]
        assert len(result.ignored_lines) == 3
        assert result.ignored_lines[0].startswith("Line 1:")

    def test_blank_lines_dropped_silently(self):
        result = parse_discount_paste("\n\nA1\t30\n   \n", brand_id=1)
        assert len(result.records) == 1
        assert result.ignored_lines == []

    def test_windows_line_endings(self):
        result = parse_discount_paste("A1\t30\r\nB2\t40\r\n", brand_id=1)
        assert [record.valor_desconto for record in result.records] == [30.0, 40.0]

    def test_duplicate_group_keeps_last(self):
        result = parse_discount_paste("A1\t30\nA1\t45", brand_id=1)
        assert len(result.records) == 1
        assert result.records[0].valor_desconto == 45.0

    def test_numeric_group_code(self):
        result = parse_discount_paste(" 0042 \t 25 ", brand_id=3)
        assert result.records[0].grupo_desconto == "0042"
        assert result.records[0].idmarca == 3

    def test_empty_text(self):
        assert parse_discount_paste("", brand_id=1).records == []


# ═══════════════════════════════════════════════════════════════════════════
# Import
# ═══════════════════════════════════════════════════════════════════════════

class TestImport:

    def test_upserts_all_records(self, fake_store):
        store = fake_store()
        result = import_discounts(store, "A1\t0.71\nB2\t35\nC3\t1", brand_id=1)

        assert result.success_count == 3
        assert result.error_count == 0
        assert store.discounts[(1, "A1")]["valor_desconto"] == 71.0
        assert store.discounts[(1, "C3")]["valor_desconto"] == 100.0
        assert all(row["updated_at"] for row in store.discounts.values())

    def test_failure_marks_every_record_failed(self, fake_store):
        store = fake_store()
        store.fail_discounts = True
        result = import_discounts(store, "A1\t30\nB2\t40", brand_id=1)

        assert result.success_count == 0
        assert result.error_count == 2
        assert result.messages[-1].startswith("Discount import failed")
        assert store.discounts == {}

    def test_nothing_to_import(self, fake_store):
        result = import_discounts(fake_store(), "Grupo\tDesconto", brand_id=1)
        assert result.success_count == 0
        assert result.error_count == 0
        assert result.messages[-1] == "No discount lines to import"

    def test_ignored_lines_reported(self, fake_store):
        result = import_discounts(fake_store(), "Grupo\tDesconto\nA1\t30", brand_id=1)
        assert result.success_count == 1
        assert result.messages[0].startswith("Line 1:")


class TestDisplayValue:

    def test_stored_fraction_shown_as_percentage(self):
        record = DiscountRecord(idmarca=1, grupo_desconto="A1", valor_desconto=0.71)
        assert record.display_value == 71.0

    def test_stored_percentage_unchanged(self):
        record = DiscountRecord(idmarca=1, grupo_desconto="A1", valor_desconto=35.0)
        assert record.display_value == 35.0
