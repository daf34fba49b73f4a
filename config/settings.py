"""
Tunables for the import pipeline and connection settings for the store.

Batch sizes, failure thresholds and progress ranges live here so deployments
can tune them without touching the processing modules.  Store credentials
are read from the environment (the Streamlit app prefers st.secrets).
"""

import os
from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------

# Records per bulk upsert call.
BATCH_SIZE: int = 100

# Consecutive failed batches before the run is abandoned.
MAX_CONSECUTIVE_FAILURES: int = 5

# Cap on diagnostic messages kept per run.
MAX_MESSAGES: int = 50

# Individual upsert errors logged per failed batch (the rest are counted).
MAX_LOGGED_ROW_ERRORS: int = 3

# ---------------------------------------------------------------------------
# Progress reporting
# ---------------------------------------------------------------------------

# Rows between progress events (and cooperative yields) during extraction.
PROGRESS_EVERY_ROWS: int = 200

# Percent ranges reserved for each stage of a run.
READING_PERCENT: int = 10
MAPPING_PERCENT: int = 20
EXTRACTING_RANGE: tuple[int, int] = (30, 80)
INSERTING_RANGE: tuple[int, int] = (80, 99)

# ---------------------------------------------------------------------------
# Workbook reading
# ---------------------------------------------------------------------------

ACCEPTED_EXTENSIONS: tuple[str, ...] = (".xlsx", ".xlsm", ".xls")

# Minimum thefuzz score for a sheet name to count as "the configured sheet".
SHEET_NAME_MATCH_THRESHOLD: int = 80

# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

COMPONENTS_TABLE: str = "tblcomponentes"
DISCOUNTS_TABLE: str = "tbldescontos"
PRICE_HISTORY_TABLE: str = "tblcomponentes_historico"
BRANDS_TABLE: str = "tblmarca"

REQUEST_TIMEOUT_SECONDS: float = 30.0

DEFAULT_PAGE_SIZE: int = 20


@dataclass(frozen=True)
class StoreSettings:
    url: str
    api_key: str
    timeout: float = REQUEST_TIMEOUT_SECONDS


def load_store_timeout() -> float:
    """Read SUPABASE_TIMEOUT in seconds; the default when unset or invalid."""
    timeout_raw = os.environ.get("SUPABASE_TIMEOUT", "").strip()
    try:
        timeout = float(timeout_raw) if timeout_raw else REQUEST_TIMEOUT_SECONDS
    except ValueError:
        return REQUEST_TIMEOUT_SECONDS
    return timeout if timeout > 0 else REQUEST_TIMEOUT_SECONDS


def load_store_settings() -> StoreSettings | None:
    """
    Read store credentials from SUPABASE_URL / SUPABASE_KEY.

    Returns:
        StoreSettings, or None when either variable is missing or blank.
    """
    url = os.environ.get("SUPABASE_URL", "").strip()
    api_key = os.environ.get("SUPABASE_KEY", "").strip()
    if not url or not api_key:
        return None
    return StoreSettings(url=url, api_key=api_key, timeout=load_store_timeout())
