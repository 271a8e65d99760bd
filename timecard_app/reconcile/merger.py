"""
Merging of several OCR passes over the same person-month.

A time card often spans two pages, or is uploaded twice. Tables with the same
identity key (name + year-month, whitespace ignored) are combined into one
record whose rows are ordered by the day number in the first column.
"""

import logging
import re

from timecard_app.models import Record, TableRecord, TranscriptionRecord

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"[+-]?[0-9]+")


def row_sort_key(row) -> int:
    """Leading integer of the trimmed first cell; 0 when there is none."""
    if not row:
        return 0
    match = _LEADING_INT.match(row[0].strip())
    return int(match.group()) if match else 0


def _fit(row: tuple, width: int) -> tuple:
    if len(row) == width:
        return row
    return (tuple(row) + ("",) * width)[:width]


def _without_duplicates(rows: list) -> list:
    seen = set()
    unique = []
    for row in rows:
        if row in seen:
            continue
        seen.add(row)
        unique.append(row)
    return unique


def merge_records(records: list[Record], collapse_duplicates: bool = False) -> list[Record]:
    """
    Merge table records that belong to the same person and month.

    The first record seen for a key provides the title and headers; rows of
    later records are appended. Each group is then stably sorted by
    ``row_sort_key``. Transcriptions are passed through unchanged.

    Args:
        records: Sanitized records in upload order
        collapse_duplicates: Drop rows identical to an earlier row of the group

    Returns:
        Records in first-seen order, one table per identity key.
    """
    # Output slots are either a transcription or the key of a table group.
    slots: list = []
    bases: dict[str, TableRecord] = {}
    rows: dict[str, list] = {}

    for record in records:
        if isinstance(record, TranscriptionRecord):
            slots.append(record)
        elif isinstance(record, TableRecord):
            key = record.identity_key
            if key in bases:
                width = len(bases[key].headers)
                rows[key].extend(_fit(row, width) for row in record.data)
                logger.debug(f"Merged {len(record.data)} rows into '{key}'")
            else:
                bases[key] = record
                rows[key] = list(record.data)
                slots.append(key)
        else:
            raise TypeError(f"Unsupported record type: {type(record).__name__}")

    merged = []
    for slot in slots:
        if isinstance(slot, TranscriptionRecord):
            merged.append(slot)
            continue

        group_rows = rows[slot]
        if collapse_duplicates:
            group_rows = _without_duplicates(group_rows)
        group_rows = sorted(group_rows, key=row_sort_key)
        merged.append(bases[slot].with_rows(group_rows))

    return merged
