"""
Tests for processing/header_locator.py

Covers the three search strategies (reference anchor, vocabulary score,
default) and the scan limit.
"""

import pytest

from processing.header_locator import HeaderLocation, locate_header_row

HEADER = ["Referência", "Descrição", "PVP", "Fam."]
DATA = [["LC1D09", "Contactor 9A", "45,20", "TeSys"]] * 5


def _sheet(leading_rows: int, header=HEADER) -> list[list]:
    titles = [[f"Tarifa 2024 - página {i + 1}", None, None, None] for i in range(leading_rows)]
    return titles + [header] + DATA


# ═══════════════════════════════════════════════════════════════════════════
# Reference anchor
# ═══════════════════════════════════════════════════════════════════════════

class TestReferenceAnchor:

    @pytest.mark.parametrize("leading_rows", [0, 1, 10])
    def test_header_after_title_rows(self, leading_rows):
        location = locate_header_row(_sheet(leading_rows))
        assert isinstance(location, HeaderLocation)
        assert location.row_index == leading_rows
        assert location.strategy == "reference"
        assert location.warning is None

    def test_ref_with_period(self):
        rows = [["Tabela"], ["Ref.", "Designação", "Preço"], ["A1", "x", 1]]
        assert locate_header_row(rows).row_index == 1

    def test_reference_word_inside_cell(self):
        rows = [["Tabela"], ["Ref Fabricante", "Designação"], ["A1", "x"]]
        location = locate_header_row(rows)
        assert location.row_index == 1
        assert location.strategy == "reference"

    def test_exact_cell_beats_title_mentioning_references(self):
        rows = [
            ["Lista de referências 2024"],
            [None],
            ["Referência", "Descrição", "PVP"],
            ["A1", "x", 1],
        ]
        assert locate_header_row(rows).row_index == 2

    def test_none_rows_tolerated(self):
        rows = [None, [], ["Referência", "PVP"], ["A1", 1]]
        assert locate_header_row(rows).row_index == 2


# ═══════════════════════════════════════════════════════════════════════════
# Vocabulary scoring
# ═══════════════════════════════════════════════════════════════════════════

class TestScoring:

    def test_reference_vocabulary_wins_immediately(self):
        rows = [
            ["Catálogo geral"],
            ["Código", "Designação", "Preço"],
            [1001, "Cabo", 2.5],
        ]
        location = locate_header_row(rows)
        assert location.row_index == 1
        assert location.strategy == "scored"
        assert location.score >= 100

    def test_reference_vocabulary_must_be_a_whole_word(self):
        rows = [
            ["Tabela de preços preferenciais 2024"],
            [None],
            ["Código", "Designação", "Preço"],
            [1001, "Cabo", 2.5],
        ]
        location = locate_header_row(rows)
        assert location.row_index == 2
        assert location.strategy == "scored"

    def test_highest_score_without_reference(self):
        rows = [
            ["Preço"],
            ["Descrição", "PVP", "EAN"],
            ["Cabo", 2.5, "560123"],
        ]
        location = locate_header_row(rows)
        assert location.row_index == 1
        assert location.score == 20 + 15 + 10

    def test_field_counts_once_per_row(self):
        rows = [
            ["Preço 1", "Preço 2", "Preço 3", "Preço 4"],
            ["Descrição", "Peso"],
        ]
        location = locate_header_row(rows)
        assert location.row_index == 1


# ═══════════════════════════════════════════════════════════════════════════
# Default
# ═══════════════════════════════════════════════════════════════════════════

class TestDefault:

    def test_no_header_defaults_to_first_row_with_warning(self):
        rows = [[1, 2, 3], [4, 5, 6]]
        location = locate_header_row(rows)
        assert location.row_index == 0
        assert location.strategy == "default"
        assert location.warning

    def test_empty_sheet(self):
        location = locate_header_row([])
        assert location.row_index == 0
        assert location.strategy == "default"

    def test_header_beyond_scan_limit_is_not_found(self):
        rows = [[i] for i in range(60)] + [HEADER]
        location = locate_header_row(rows)
        assert location.strategy == "default"

    def test_custom_scan_limit(self):
        rows = [[i] for i in range(5)] + [HEADER]
        assert locate_header_row(rows, scan_limit=5).strategy == "default"
        assert locate_header_row(rows, scan_limit=6).row_index == 5
