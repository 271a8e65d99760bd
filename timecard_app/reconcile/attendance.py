"""
Attendance metrics derived from clock-in/clock-out times.

Times are handled as decimal hours (9:30 -> 9.5). Errors are reported per
row in the result and never abort processing of a record.
"""

import logging
import re
from typing import Optional

from timecard_app.models import AttendanceResult, TableRecord, WorkPattern

logger = logging.getLogger(__name__)

PUNCH_MISSING = "punch missing"
BAD_TIME_FORMAT = "bad time format"
TIME_REVERSAL = "time reversal"
PATTERN_NOT_SELECTED = "pattern not selected"
EXCESSIVE_HOURS = "excessive hours"

MAX_REASONABLE_HOURS = 12
LATE_NIGHT_START = 22.0
LATE_NIGHT_END = 29.0  # 05:00 the next day

IN_KEYWORDS = ("出勤", "出社", "始業", "in", "start")
OUT_KEYWORDS = ("退勤", "退社", "終業", "out", "end")

# Column labels appended by annotate_record
RESULT_HEADERS = ("実働", "残業", "深夜", "遅刻", "早退", "状態")

_DIGITS = re.compile(r"[0-9]{3,4}")


def parse_time(time_str: Optional[str]) -> Optional[float]:
    """
    Parse "900", "9:00", "0900" or "18:30" into decimal hours.

    Returns:
        Hours as a float, or None if malformed or out of range.
    """
    if not time_str:
        return None

    digits = str(time_str).strip().replace(":", "", 1)
    if not _DIGITS.fullmatch(digits):
        return None

    hours = int(digits[:-2])
    minutes = int(digits[-2:])
    if hours > 23 or minutes > 59:
        return None

    return hours + minutes / 60


def calculate(in_time: str, out_time: str, pattern: Optional[WorkPattern]) -> AttendanceResult:
    """
    Compute worked, overtime and late-night hours for one day.

    Args:
        in_time: Clock-in cell text
        out_time: Clock-out cell text
        pattern: Work pattern selected for the row

    Returns:
        AttendanceResult; ``error`` is set when nothing could be computed.
    """
    if pattern is None:
        return AttendanceResult(error=PATTERN_NOT_SELECTED)

    if not (in_time or "").strip() or not (out_time or "").strip():
        return AttendanceResult(error=PUNCH_MISSING)

    start = parse_time(in_time)
    end = parse_time(out_time)
    scheduled_start = parse_time(pattern.start_time)
    scheduled_end = parse_time(pattern.end_time)
    if None in (start, end, scheduled_start, scheduled_end):
        return AttendanceResult(error=BAD_TIME_FORMAT)

    if end <= start:
        return AttendanceResult(error=TIME_REVERSAL)

    warnings = []
    actual = end - start - pattern.break_time_hours
    if actual > MAX_REASONABLE_HOURS:
        warnings.append(EXCESSIVE_HOURS)

    scheduled = scheduled_end - scheduled_start - pattern.break_time_hours
    overtime = max(0.0, actual - scheduled)
    late_night = max(0.0, min(end, LATE_NIGHT_END) - max(start, LATE_NIGHT_START))

    return AttendanceResult(
        actual_hours=round(actual, 2),
        overtime_hours=round(overtime, 2),
        late_night_hours=round(late_night, 2),
        is_late=start > scheduled_start,
        is_early_leave=end < scheduled_end,
        warnings=warnings,
    )


def _find_column(headers, keywords) -> Optional[int]:
    for index, header in enumerate(headers):
        label = header.strip().lower()
        if any(keyword in label for keyword in keywords):
            return index
    return None


def find_punch_columns(headers) -> tuple[Optional[int], Optional[int]]:
    """Locate the clock-in and clock-out columns by their header text."""
    return _find_column(headers, IN_KEYWORDS), _find_column(headers, OUT_KEYWORDS)


def select_patterns(choices, patterns: list[WorkPattern]) -> dict[int, str]:
    """
    Map per-row pattern choices to pattern ids for annotate_record.

    A choice may be a pattern id or a pattern name; names resolve to the
    first pattern carrying them. Blank choices are left out so the row uses
    the default pattern. A choice naming no known pattern is kept as is, and
    the row then reports "pattern not selected".
    """
    ids = {pattern.id for pattern in patterns}
    by_name = {}
    for pattern in patterns:
        by_name.setdefault(pattern.name, pattern.id)

    selected = {}
    for index, choice in enumerate(choices):
        if not isinstance(choice, str) or not choice.strip():
            continue
        selected[index] = choice if choice in ids else by_name.get(choice, choice)
    return selected


def _format_hours(value: Optional[float]) -> str:
    return "" if value is None else f"{value:.2f}"


def annotate_record(
    record: TableRecord,
    patterns: list[WorkPattern],
    selected_pattern_ids: Optional[dict[int, str]] = None,
    default_pattern_id: Optional[str] = None,
) -> TableRecord:
    """
    Append attendance columns to every row of a record.

    Args:
        record: Table to annotate
        patterns: Available work patterns
        selected_pattern_ids: Pattern id chosen per row index
        default_pattern_id: Pattern for rows with no explicit choice;
            the first pattern when omitted

    Returns:
        A new record with RESULT_HEADERS appended.
    """
    selected_pattern_ids = selected_pattern_ids or {}
    by_id = {pattern.id: pattern for pattern in patterns}
    if default_pattern_id is None and patterns:
        default_pattern_id = patterns[0].id

    in_column, out_column = find_punch_columns(record.headers)
    if in_column is None or out_column is None:
        logger.warning(f"No clock-in/out columns found for '{record.title.name}'")

    rows = []
    for index, row in enumerate(record.data):
        pattern = by_id.get(selected_pattern_ids.get(index, default_pattern_id))
        in_time = row[in_column] if in_column is not None else ""
        out_time = row[out_column] if out_column is not None else ""

        result = calculate(in_time, out_time, pattern)
        rows.append(row + (
            _format_hours(result.actual_hours),
            _format_hours(result.overtime_hours),
            _format_hours(result.late_night_hours),
            "○" if result.ok and result.is_late else "",
            "○" if result.ok and result.is_early_leave else "",
            result.status,
        ))

    return TableRecord(
        title=record.title,
        headers=record.headers + RESULT_HEADERS,
        data=tuple(rows),
        name_corrected=record.name_corrected,
    )
