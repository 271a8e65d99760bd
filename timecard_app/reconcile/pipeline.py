"""
Reconciliation pipeline: sanitize, correct names against the roster, merge.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from timecard_app.models import ReconcileProfile, Record, TableRecord, TranscriptionRecord
from timecard_app.reconcile.merger import merge_records
from timecard_app.reconcile.roster import apply_roster
from timecard_app.reconcile.sanitizer import sanitize_batch

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """Output of one reconciliation run."""
    tables: list[TableRecord] = field(default_factory=list)
    transcriptions: list[TranscriptionRecord] = field(default_factory=list)
    corrected_names: dict[str, str] = field(default_factory=dict)
    unmatched_names: list[str] = field(default_factory=list)

    @property
    def records(self) -> list[Record]:
        return [*self.tables, *self.transcriptions]


def reconcile(raw_records: Iterable[Any], profile: ReconcileProfile) -> ReconcileResult:
    """
    Turn raw LLM records into merged, roster-corrected records.

    Args:
        raw_records: Decoded JSON records from every processed page
        profile: Roster and merge settings

    Returns:
        ReconcileResult

    Raises:
        SanitizationError: If none of the raw records is usable.
    """
    sanitized = sanitize_batch(raw_records)
    result = ReconcileResult()

    corrected: list[Record] = []
    for record in sanitized:
        if isinstance(record, TableRecord) and profile.roster:
            fixed, matched = apply_roster(record, profile.roster)
            if fixed is not record:
                result.corrected_names[record.title.name] = fixed.title.name
            if not matched and record.title.name not in result.unmatched_names:
                result.unmatched_names.append(record.title.name)
            record = fixed
        corrected.append(record)

    for record in merge_records(corrected, collapse_duplicates=profile.collapse_duplicate_rows):
        if isinstance(record, TableRecord):
            result.tables.append(record)
        elif isinstance(record, TranscriptionRecord):
            result.transcriptions.append(record)
        else:
            raise TypeError(f"Unsupported record type: {type(record).__name__}")

    if result.unmatched_names:
        logger.warning(f"Names not found in roster: {', '.join(result.unmatched_names)}")

    logger.info(
        f"Reconciled {len(sanitized)} records into {len(result.tables)} tables "
        f"and {len(result.transcriptions)} transcriptions"
    )
    return result
