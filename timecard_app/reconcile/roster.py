"""
Roster matching for OCR-extracted names.

OCR often misreads one or two characters of a name. Names are compared
against the roster of known employees and replaced with the closest entry
when it is similar enough.
"""

import logging
from dataclasses import replace
from typing import Optional

from timecard_app.models import TableRecord, strip_whitespace
from timecard_app.reconcile.similarity import distance, similarity

logger = logging.getLogger(__name__)

# Fixed; a candidate must score strictly above this.
SIMILARITY_THRESHOLD = 0.70


def best_match(name: str, roster: list[str]) -> Optional[str]:
    """
    Find the roster entry that best matches an OCR-extracted name.

    Whitespace is ignored on both sides. Among entries whose similarity is
    above the threshold, the one with the smallest edit distance wins (the
    earliest entry on ties).

    Args:
        name: Name as read by OCR
        roster: Known full names

    Returns:
        The original roster entry, or None if nothing qualifies.
    """
    if not name or not roster:
        return None

    normalized_name = strip_whitespace(name)
    if not normalized_name:
        return None

    best_entry = None
    best_distance = None

    for entry in roster:
        normalized_entry = strip_whitespace(entry)
        if not normalized_entry:
            continue

        if similarity(normalized_name, normalized_entry) <= SIMILARITY_THRESHOLD:
            continue

        entry_distance = distance(normalized_name, normalized_entry)
        if best_distance is None or entry_distance < best_distance:
            best_entry = entry
            best_distance = entry_distance

    return best_entry


def apply_roster(record: TableRecord, roster: list[str]) -> tuple[TableRecord, bool]:
    """
    Correct a record's name against the roster.

    Returns:
        Tuple of (record, matched). The record is a corrected copy when the
        roster entry differs from the current name, otherwise the input.
    """
    match = best_match(record.title.name, roster)
    if match is None:
        return record, False

    if match == record.title.name:
        return record, True

    logger.info(f"Roster corrected name '{record.title.name}' -> '{match}'")
    corrected = replace(record, title=replace(record.title, name=match), name_corrected=True)
    return corrected, True
