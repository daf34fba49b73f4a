"""
Tests for processing/row_extractor.py
"""

import pytest

from processing.models import Componente, Phase
from processing.row_extractor import ExtractionResult, extract_rows

HEADER = ["Ref", "Descrição", "PVP", "Unidade", "Peso"]
MAPPING = {
    "referencia": 0,
    "descricao": 1,
    "preco_tabela": 2,
    "unidade": 3,
    "peso": 4,
}


def _rows(count: int, blank_every: int = 0) -> list[list]:
    rows = [HEADER]
    for i in range(count):
        reference = None if blank_every and i % blank_every == 0 else f"REF{i:04d}"
        rows.append([reference, f"Artigo {i}", "12,50", None, 0.25])
    return rows


# ═══════════════════════════════════════════════════════════════════════════
# Record building
# ═══════════════════════════════════════════════════════════════════════════

class TestRecords:

    def test_values_normalized(self):
        result = extract_rows(_rows(1), 0, MAPPING, brand_id=1)
        assert isinstance(result, ExtractionResult)
        record = result.records[0]
        assert isinstance(record, Componente)
        assert record.idmarca == 1
        assert record.referencia == "REF0000"
        assert record.descricao == "Artigo 0"
        assert record.preco_tabela == 12.5
        assert record.peso == 0.25

    def test_default_unit(self):
        result = extract_rows(_rows(3), 0, MAPPING, brand_id=1)
        assert all(record.unidade == "UN" for record in result.records)

    def test_explicit_unit_kept(self):
        rows = [HEADER, ["A1", "x", 1, "M", None]]
        assert extract_rows(rows, 0, MAPPING, brand_id=1).records[0].unidade == "M"

    def test_numeric_reference_has_no_decimal_suffix(self):
        rows = [HEADER, [12345.0, "x", 1, None, None]]
        assert extract_rows(rows, 0, MAPPING, brand_id=1).records[0].referencia == "12345"

    def test_short_row_leaves_fields_empty(self):
        rows = [HEADER, ["A1"]]
        record = extract_rows(rows, 0, MAPPING, brand_id=1).records[0]
        assert record.descricao is None
        assert record.preco_tabela is None

    def test_unmapped_fields_are_none(self):
        record = extract_rows(_rows(1), 0, MAPPING, brand_id=1).records[0]
        assert record.ean is None
        assert record.familia is None

    def test_rows_above_header_ignored(self):
        rows = [["Tarifa 2024"], ["Válida desde 1 de Abril"]] + _rows(4)
        result = extract_rows(rows, 2, MAPPING, brand_id=7)
        assert len(result.records) == 4
        assert result.total_rows == 4
        assert {record.idmarca for record in result.records} == {7}


# ═══════════════════════════════════════════════════════════════════════════
# Skipping
# ═══════════════════════════════════════════════════════════════════════════

class TestSkipping:

    def test_blank_references_skipped(self):
        """100 rows, every 20th without a reference: 95 records, 5 skipped."""
        result = extract_rows(_rows(100, blank_every=20), 0, MAPPING, brand_id=1)
        assert len(result.records) == 95
        assert result.skipped_count == 5
        assert len(result.messages) == 5
        assert result.messages[0] == "Row 2: no reference, skipped"

    @pytest.mark.parametrize("blank", ["", "   ", "nan", float("nan")])
    def test_blank_marker_references(self, blank):
        rows = [HEADER, [blank, "x", 1, None, None], ["A1", "y", 2, None, None]]
        result = extract_rows(rows, 0, MAPPING, brand_id=1)
        assert [record.referencia for record in result.records] == ["A1"]
        assert result.skipped_count == 1

    def test_empty_rows_skipped_silently(self):
        rows = [HEADER, [None, None, None], [], None, ["A1", "x", 1, None, None]]
        result = extract_rows(rows, 0, MAPPING, brand_id=1)
        assert len(result.records) == 1
        assert result.skipped_count == 3
        assert result.messages == []

    def test_messages_bounded(self):
        rows = [HEADER] + [[None, "orphan", 1, None, None]] * 80
        result = extract_rows(rows, 0, MAPPING, brand_id=1)
        assert result.skipped_count == 80
        assert len(result.messages) == 50

    def test_no_data_rows(self):
        result = extract_rows([HEADER], 0, MAPPING, brand_id=1)
        assert result.records == []
        assert result.total_rows == 0

    def test_mapping_without_reference_raises(self):
        with pytest.raises(ValueError):
            extract_rows(_rows(2), 0, {"descricao": 1}, brand_id=1)


# ═══════════════════════════════════════════════════════════════════════════
# Progress
# ═══════════════════════════════════════════════════════════════════════════

class TestProgress:

    def test_progress_every_200_rows(self):
        events = []
        extract_rows(_rows(450), 0, MAPPING, brand_id=1, on_progress=events.append)

        assert len(events) == 4
        assert all(event.phase == Phase.EXTRACTING for event in events)
        assert events[0].percent == 30
        assert events[-1].percent == 80
        assert [event.processed_items for event in events] == [0, 200, 400, 450]
        percents = [event.percent for event in events]
        assert percents == sorted(percents)

    def test_small_sheet_reports_start_and_end(self):
        events = []
        extract_rows(_rows(10), 0, MAPPING, brand_id=1, on_progress=events.append)
        assert [event.percent for event in events] == [30, 80]
