"""Record and settings models shared by the reconciliation core and the app."""

from .records import (
    AttendanceResult,
    ReconcileProfile,
    Record,
    TableRecord,
    TableTitle,
    TranscriptionRecord,
    WorkPattern,
    default_work_pattern,
    strip_whitespace,
)

__all__ = [
    "AttendanceResult",
    "ReconcileProfile",
    "Record",
    "TableRecord",
    "TableTitle",
    "TranscriptionRecord",
    "WorkPattern",
    "default_work_pattern",
    "strip_whitespace",
]
