"""
Page arithmetic for the paginated browsing screens.

A page past the end of a result set is a range error in the database API, so
the requested page is clamped against a fresh row count before each query.
"""


def page_count(total_rows: int, per_page: int) -> int:
    """Number of pages needed for *total_rows*; an empty result still has one."""
    return max(1, -(-max(total_rows, 0) // per_page))


def clamp_page(page: int, total_rows: int, per_page: int) -> int:
    """Bring *page* into 1..page_count(total_rows, per_page)."""
    return min(max(page, 1), page_count(total_rows, per_page))
