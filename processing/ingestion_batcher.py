"""
Ingestion batcher — delivers extracted records to the store in batches.

Batches run strictly one after another:
  - Each batch is sent as one bulk upsert on (idmarca, referencia).
  - If the bulk call fails, the batch is retried record by record so a few
    bad rows do not sink the other rows of the batch.
  - A batch with any failed record counts as a failed batch; after
    MAX_CONSECUTIVE_FAILURES failed batches in a row the run stops and the
    remaining records are left untouched.

Public API:
    ingest(store, records, on_progress) → ImportResult
"""

import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from config.settings import (
    BATCH_SIZE,
    INSERTING_RANGE,
    MAX_CONSECUTIVE_FAILURES,
    MAX_LOGGED_ROW_ERRORS,
    MAX_MESSAGES,
)
from processing.models import (
    Componente,
    ImportResult,
    Phase,
    ProcessingStatus,
    ProgressCallback,
    interpolate_percent,
)
from storage.base import CatalogStore, StoreError

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════════════

def ingest(
    store: CatalogStore,
    records: Sequence[Componente],
    on_progress: ProgressCallback | None = None,
    batch_size: int = BATCH_SIZE,
    max_consecutive_failures: int = MAX_CONSECUTIVE_FAILURES,
) -> ImportResult:
    """
    Upsert *records* into the store.

    Args:
        store: Target store (only upsert_components is used).
        records: Records to deliver, in order.
        on_progress: Optional progress callback, called after every batch.
        batch_size: Records per bulk upsert.
        max_consecutive_failures: Failed batches in a row before aborting.

    Returns:
        ImportResult with success/error counts and bounded diagnostics.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    result = ImportResult()
    total = len(records)

    if total == 0:
        result.add_message("No components to insert", MAX_MESSAGES)
        return result

    total_batches = (total + batch_size - 1) // batch_size
    logger.info(f"Inserting {total} components in {total_batches} batches of {batch_size}")

    consecutive_failures = 0
    processed = 0

    for batch_number, start in enumerate(range(0, total, batch_size), start=1):
        batch = records[start:start + batch_size]
        updated_at = datetime.now(timezone.utc).isoformat()
        payload = [record.to_row(updated_at) for record in batch]

        succeeded, failed, message = _upsert_batch(store, payload, batch_number)
        result.success_count += succeeded
        result.error_count += failed
        processed += len(batch)

        if message:
            result.add_message(message, MAX_MESSAGES)

        if failed:
            consecutive_failures += 1
        else:
            consecutive_failures = 0

        if on_progress is not None:
            on_progress(ProcessingStatus(
                phase=Phase.INSERTING,
                percent=interpolate_percent(batch_number, total_batches, INSERTING_RANGE),
                message=f"Batch {batch_number} of {total_batches} sent",
                total_items=total,
                processed_items=processed,
            ))

        if consecutive_failures >= max_consecutive_failures:
            remaining = total - processed
            stop_message = (
                f"STOPPED: {consecutive_failures} consecutive batches failed; "
                f"{remaining} records were not sent. Check the column mapping "
                "and the table schema."
            )
            logger.error(stop_message)
            result.add_message(stop_message, MAX_MESSAGES, force=True)
            result.aborted = True
            break

    if result.suppressed_messages:
        result.add_message(
            f"... {result.suppressed_messages} more messages not shown",
            MAX_MESSAGES,
            force=True,
        )

    logger.info(
        f"Ingestion finished: {result.success_count} inserted, "
        f"{result.error_count} errors"
    )

    if on_progress is not None:
        on_progress(ProcessingStatus(
            phase=Phase.DONE,
            percent=100,
            message=(
                f"Done: {result.success_count} inserted, "
                f"{result.error_count} errors"
            ),
            total_items=total,
            processed_items=processed,
        ))

    return result


# ═══════════════════════════════════════════════════════════════════════════
# Internal helpers
# ═══════════════════════════════════════════════════════════════════════════

def _upsert_batch(
    store: CatalogStore,
    payload: list[dict],
    batch_number: int,
) -> tuple[int, int, str | None]:
    """
    Send one batch, falling back to row-by-row upserts if the bulk call fails.

    Returns:
        (succeeded, failed, message) — message is None for a clean batch.
    """
    try:
        store.upsert_components(payload)
    except StoreError as exc:
        logger.error(f"Batch {batch_number} failed, retrying row by row: {exc}")
    else:
        logger.debug(f"Batch {batch_number}: {len(payload)} upserted")
        return len(payload), 0, None

    succeeded = 0
    failed = 0
    first_failure: str | None = None

    for row in payload:
        try:
            store.upsert_components([row])
        except StoreError as exc:
            failed += 1
            if failed <= MAX_LOGGED_ROW_ERRORS:
                logger.error(
                    f"Batch {batch_number}: reference '{row['referencia']}' failed: {exc}"
                )
            if first_failure is None:
                first_failure = f"reference '{row['referencia']}': {exc}"
        else:
            succeeded += 1

    if not failed:
        return succeeded, 0, None

    return succeeded, failed, (
        f"Batch {batch_number}: {succeeded} ok, {failed} failed "
        f"(first failure: {first_failure})"
    )
