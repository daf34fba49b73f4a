"""
Tests for processing/ingestion_batcher.py

Uses the in-memory FakeStore from conftest.py, which fails any upsert that
contains one of its "bad" references.
"""

import pytest

from processing.ingestion_batcher import ingest
from processing.models import Componente, ImportResult, Phase


def _records(count: int) -> list[Componente]:
    return [Componente(idmarca=1, referencia=f"R{i:04d}") for i in range(count)]


# ═══════════════════════════════════════════════════════════════════════════
# Happy path
# ═══════════════════════════════════════════════════════════════════════════

class TestCleanRuns:

    def test_all_records_upserted_in_batches(self, fake_store):
        store = fake_store()
        result = ingest(store, _records(250))

        assert isinstance(result, ImportResult)
        assert result.success_count == 250
        assert result.error_count == 0
        assert result.messages == []
        assert not result.aborted
        assert store.upsert_calls == [100, 100, 50]

    def test_rows_stamped_and_defaulted(self, fake_store):
        store = fake_store()
        ingest(store, _records(3))
        for row in store.components.values():
            assert row["updated_at"]
            assert row["unidade"] == "UN"
            assert row["idmarca"] == 1

    def test_empty_input(self, fake_store):
        store = fake_store()
        result = ingest(store, [])
        assert result.success_count == 0
        assert result.messages == ["No components to insert"]
        assert store.upsert_calls == []

    def test_invalid_batch_size(self, fake_store):
        with pytest.raises(ValueError):
            ingest(fake_store(), _records(1), batch_size=0)


# ═══════════════════════════════════════════════════════════════════════════
# Row-by-row fallback
# ═══════════════════════════════════════════════════════════════════════════

class TestFallback:

    def test_bad_rows_isolated(self, fake_store):
        """Bulk call fails; the retry saves 97 of 100 rows."""
        store = fake_store(bad_references={"R0010", "R0050", "R0090"})
        result = ingest(store, _records(100))

        assert result.success_count == 97
        assert result.error_count == 3
        assert result.total == 100
        assert len(store.components) == 97
        assert store.upsert_calls == [100] + [1] * 100
        assert len(result.messages) == 1
        assert result.messages[0].startswith("Batch 1: 97 ok, 3 failed")
        assert "R0010" in result.messages[0]
        assert not result.aborted

    def test_only_failing_batch_retried(self, fake_store):
        store = fake_store(bad_references={"R0150"})
        result = ingest(store, _records(300))
        assert result.success_count == 299
        assert store.upsert_calls == [100] + [100] + [1] * 100 + [100]


# ═══════════════════════════════════════════════════════════════════════════
# Abort
# ═══════════════════════════════════════════════════════════════════════════

class TestAbort:

    def test_stops_after_five_consecutive_failed_batches(self, fake_store):
        store = fake_store(fail_all=True)
        result = ingest(store, _records(1000))

        assert result.aborted
        assert result.success_count == 0
        assert result.error_count == 500
        assert len(store.upsert_calls) == 5 * 101
        assert result.messages[-1].startswith("STOPPED")
        assert "500 records were not sent" in result.messages[-1]

    def test_successful_batch_resets_failure_count(self, fake_store):
        bad = {f"R{batch * 10:04d}" for batch in (0, 1, 2, 3, 5, 6, 7, 8)}
        store = fake_store(bad_references=bad)
        result = ingest(store, _records(90), batch_size=10)

        assert not result.aborted
        assert result.success_count == 82
        assert result.error_count == 8

    def test_custom_threshold(self, fake_store):
        result = ingest(fake_store(fail_all=True), _records(50), batch_size=10,
                        max_consecutive_failures=2)
        assert result.aborted
        assert result.error_count == 20


# ═══════════════════════════════════════════════════════════════════════════
# Diagnostics and progress
# ═══════════════════════════════════════════════════════════════════════════

class TestDiagnostics:

    def test_messages_capped(self, fake_store):
        result = ingest(fake_store(fail_all=True), _records(60), batch_size=1,
                        max_consecutive_failures=1000)
        assert result.error_count == 60
        assert result.suppressed_messages == 10
        assert len(result.messages) == 51
        assert result.messages[-1] == "... 10 more messages not shown"

    def test_progress_events(self, fake_store):
        events = []
        ingest(fake_store(), _records(250), on_progress=events.append)

        inserting = [event for event in events if event.phase == Phase.INSERTING]
        assert len(inserting) == 3
        assert all(80 <= event.percent <= 99 for event in inserting)
        assert inserting[-1].percent == 99
        assert events[-1].phase == Phase.DONE
        assert events[-1].percent == 100
        percents = [event.percent for event in events]
        assert percents == sorted(percents)
