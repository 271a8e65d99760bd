"""
Sanitizer for raw records returned by the LLM.

The model is asked for a strict JSON schema but does not always follow it:
cells come back as numbers or nulls, rows are ragged, whole records are
missing keys. Everything is coerced into rectangular string tables here so
later stages never have to check.
"""

import logging
from typing import Any, Iterable, Optional

from timecard_app.models import Record, TableRecord, TableTitle, TranscriptionRecord

logger = logging.getLogger(__name__)


class SanitizationError(Exception):
    """Raised when no record in a batch could be sanitized."""
    pass


def to_text(value: Any) -> str:
    """Coerce a JSON value to the text shown in a cell."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _fit_row(row: list, width: int) -> tuple[str, ...]:
    cells = [to_text(cell) for cell in row]
    if len(cells) < width:
        cells.extend([""] * (width - len(cells)))
    return tuple(cells[:width])


def _absent(value: Any) -> bool:
    # Empty lists and objects count as present; other falsy values do not.
    return not value and not isinstance(value, (list, dict))


def _sanitize_table(raw: dict) -> Optional[TableRecord]:
    if _absent(raw.get("headers")) or _absent(raw.get("data")):
        return None

    raw_headers = raw["headers"]
    headers = tuple(to_text(h) for h in raw_headers) if isinstance(raw_headers, list) else ()

    raw_rows = raw["data"]
    rows = []
    if isinstance(raw_rows, list):
        for row in raw_rows:
            if not isinstance(row, list):
                continue
            rows.append(_fit_row(row, len(headers)))

    title = raw.get("title")
    if not isinstance(title, dict):
        title = {}

    return TableRecord(
        title=TableTitle(
            year_month=to_text(title.get("yearMonth")),
            name=to_text(title.get("name")),
        ),
        headers=headers,
        data=tuple(rows),
    )


def sanitize(raw: Any) -> Optional[Record]:
    """
    Normalize one raw record.

    Args:
        raw: Decoded JSON object from the LLM response

    Returns:
        TableRecord, TranscriptionRecord, or None if the shape is unusable.
    """
    if not isinstance(raw, dict):
        return None

    record_type = raw.get("type")

    if record_type == "transcription":
        return TranscriptionRecord(
            file_name=to_text(raw.get("fileName")),
            content=to_text(raw.get("content")),
        )

    # Older responses carry no type at all.
    if record_type in ("table", None):
        return _sanitize_table(raw)

    return None


def sanitize_batch(raw_records: Iterable[Any]) -> list[Record]:
    """
    Sanitize every record of a batch, skipping malformed ones.

    Raises:
        SanitizationError: If the batch had records but none survived.
    """
    raw_records = list(raw_records)
    sanitized = []

    for index, raw in enumerate(raw_records):
        record = sanitize(raw)
        if record is None:
            logger.warning(f"Skipping malformed record #{index}: {str(raw)[:200]}")
            continue
        sanitized.append(record)

    if raw_records and not sanitized:
        raise SanitizationError(
            "The AI responded, but none of the records matched the expected format. "
            "Check that the uploaded files are time cards."
        )

    return sanitized
