"""
Data models for time card records.

Records come in two kinds:
- TableRecord: a rectangular table (headers + rows) for one person-month
- TranscriptionRecord: free text transcribed from one page

Both are immutable; edits return new instances.
"""

import re
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Optional, Union

_WHITESPACE = re.compile(r"\s+")


def strip_whitespace(text: str) -> str:
    """Remove every whitespace character, including full-width spaces."""
    return _WHITESPACE.sub("", text)


@dataclass(frozen=True)
class TableTitle:
    """Year-month and person name printed on a time card."""
    year_month: str = ""
    name: str = ""


@dataclass(frozen=True)
class TableRecord:
    """
    A sanitized table extracted from a time card.

    Every row in ``data`` has exactly ``len(headers)`` cells.
    """
    title: TableTitle
    headers: tuple[str, ...]
    data: tuple[tuple[str, ...], ...] = ()
    name_corrected: bool = False

    kind = "table"

    def __post_init__(self):
        width = len(self.headers)
        for i, row in enumerate(self.data):
            if len(row) != width:
                raise ValueError(f"Row {i} has {len(row)} cells, expected {width} (matching headers)")

    @property
    def identity_key(self) -> str:
        """Key grouping records of the same person and month."""
        return f"{strip_whitespace(self.title.name)}-{strip_whitespace(self.title.year_month)}"

    def with_name(self, name: str) -> "TableRecord":
        """Return a copy with a manually edited name."""
        return replace(self, title=replace(self.title, name=name), name_corrected=False)

    def with_year_month(self, year_month: str) -> "TableRecord":
        """Return a copy with a manually edited year-month."""
        return replace(self, title=replace(self.title, year_month=year_month))

    def with_cell(self, row: int, column: int, value: str) -> "TableRecord":
        """Return a copy with one cell replaced."""
        rows = [list(r) for r in self.data]
        rows[row][column] = value
        return replace(self, data=tuple(tuple(r) for r in rows))

    def with_rows(self, rows) -> "TableRecord":
        """Return a copy with all rows replaced."""
        return replace(self, data=tuple(tuple(r) for r in rows))

    def to_dict(self) -> dict:
        return {
            "type": self.kind,
            "title": {"yearMonth": self.title.year_month, "name": self.title.name},
            "headers": list(self.headers),
            "data": [list(row) for row in self.data],
            "nameCorrected": self.name_corrected,
        }


@dataclass(frozen=True)
class TranscriptionRecord:
    """Free text transcribed from a page that is not a table."""
    file_name: str
    content: str

    kind = "transcription"

    def to_dict(self) -> dict:
        return {"type": self.kind, "fileName": self.file_name, "content": self.content}


Record = Union[TableRecord, TranscriptionRecord]


@dataclass
class WorkPattern:
    """A named shift: start, end and unpaid break."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    start_time: str = "09:00"
    end_time: str = "18:00"
    break_time_hours: float = 1.0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "breakTimeHours": self.break_time_hours,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WorkPattern":
        return cls(
            id=str(data.get("id") or uuid.uuid4()),
            name=str(data.get("name", "")),
            start_time=str(data.get("startTime", "09:00")),
            end_time=str(data.get("endTime", "18:00")),
            break_time_hours=float(data.get("breakTimeHours", 1.0)),
        )


def default_work_pattern() -> WorkPattern:
    """Standard day shift used when no pattern has been configured."""
    return WorkPattern(id="default", name="通常勤務", start_time="09:00", end_time="18:00", break_time_hours=1.0)


@dataclass
class ReconcileProfile:
    """
    Everything the reconciliation core needs from the user's saved settings.

    Serializable to plain JSON types via ``to_dict``; storage is up to the caller.
    """
    roster: list[str] = field(default_factory=list)
    work_patterns: list[WorkPattern] = field(default_factory=lambda: [default_work_pattern()])
    collapse_duplicate_rows: bool = False

    def get_pattern(self, pattern_id: Optional[str]) -> Optional[WorkPattern]:
        """Look up a work pattern by id."""
        for pattern in self.work_patterns:
            if pattern.id == pattern_id:
                return pattern
        return None

    def to_dict(self) -> dict:
        return {
            "roster": list(self.roster),
            "workPatterns": [p.to_dict() for p in self.work_patterns],
            "collapseDuplicateRows": self.collapse_duplicate_rows,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReconcileProfile":
        patterns = [WorkPattern.from_dict(p) for p in data.get("workPatterns", []) if isinstance(p, dict)]
        return cls(
            roster=[str(name) for name in data.get("roster", []) if name is not None],
            work_patterns=patterns or [default_work_pattern()],
            collapse_duplicate_rows=bool(data.get("collapseDuplicateRows", False)),
        )


@dataclass
class AttendanceResult:
    """Derived attendance metrics for one row, or the reason they could not be computed."""
    actual_hours: Optional[float] = None
    overtime_hours: Optional[float] = None
    late_night_hours: Optional[float] = None
    is_late: bool = False
    is_early_leave: bool = False
    warnings: list[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status(self) -> str:
        """Short status text for the status column."""
        if self.error:
            return self.error
        if self.warnings:
            return ", ".join(self.warnings)
        return "OK"
