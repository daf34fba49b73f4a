"""
Fuzzy string matching utilities.

Wraps the thefuzz library to provide a simple best-match interface.  Used by
file_reader to find the configured worksheet when a supplier renames it
slightly ("TP" → "TP 2024", "Tarifa" → "Tarifa_PT").
"""

import logging

from thefuzz import fuzz

from processing.value_normalizer import normalize_key_flexible

logger = logging.getLogger(__name__)


def best_match(
    value: str,
    candidates: list[str],
    threshold: int = 80,
) -> tuple[str | None, int]:
    """
    Find the candidate most similar to *value*.

    Both sides are compared through normalize_key_flexible(), so case,
    accents and punctuation never affect the score.  Uses token_set_ratio, a
    whole-word sibling of token_sort_ratio: a configured name whose words all
    appear in a decorated name scores 100 ("tp" in "tp 2024"), while letters
    buried inside other words do not count ("tp" in "output").

    Args:
        value: The string to match.
        candidates: Candidate strings, returned verbatim on a match.
        threshold: Minimum score (0-100) to accept a match.

    Returns:
        (candidate, score) if a match is found at or above threshold,
        or (None, 0) if no match qualifies.
    """
    value_key = normalize_key_flexible(value)
    if not value_key or not candidates:
        return None, 0

    best_candidate: str | None = None
    best_score: int = 0

    for candidate in candidates:
        candidate_key = normalize_key_flexible(candidate)
        if not candidate_key:
            continue
        score = fuzz.token_set_ratio(value_key, candidate_key)
        if score > best_score:
            best_score = score
            best_candidate = candidate

    if best_score >= threshold:
        logger.debug(
            f"Fuzzy matched '{value}' → '{best_candidate}' (score={best_score})"
        )
        return best_candidate, best_score

    logger.debug(
        f"No fuzzy match for '{value}' above threshold {threshold} "
        f"(best was '{best_candidate}' at {best_score})"
    )
    return None, 0
