"""
Worksheet lookup for template workbooks.

A template workbook usually has one tab per employee, named with the full
name, the surname, or the given name. The resolver tries those in order.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from timecard_app.models import TableRecord

logger = logging.getLogger(__name__)

# ASCII space or ideographic (full-width) space
_NAME_SEPARATOR = re.compile("[ \u3000]+")


def split_name(full_name: str) -> list[str]:
    """Split a name into its non-empty parts."""
    return [part for part in _NAME_SEPARATOR.split(full_name.strip()) if part]


def resolve_sheet(full_name: str, sheet_names: list[str]) -> Optional[str]:
    """
    Find the worksheet that belongs to a person.

    Tiers, first match wins:
        1. the whole (trimmed) name
        2. the first name part (usually the surname)
        3. the last name part, only for names with two or more parts

    Sheet names are trimmed for comparison; the original name is returned.
    """
    trimmed = full_name.strip()
    name_parts = split_name(trimmed)
    if not name_parts:
        return None

    candidates = [(sheet.strip(), sheet) for sheet in sheet_names]

    tiers = [trimmed, name_parts[0]]
    if len(name_parts) > 1:
        tiers.append(name_parts[-1])

    for wanted in tiers:
        for stripped, original in candidates:
            if stripped == wanted:
                return original

    return None


@dataclass
class TemplatePlan:
    """Where each record goes in a template workbook."""
    assignments: list[tuple[TableRecord, Optional[str]]] = field(default_factory=list)
    unmatched: list[str] = field(default_factory=list)
    conflicts: list[str] = field(default_factory=list)

    @property
    def matched(self) -> list[tuple[TableRecord, str]]:
        return [(record, sheet) for record, sheet in self.assignments if sheet is not None]


def plan_template_writes(records: list[TableRecord], sheet_names: list[str]) -> TemplatePlan:
    """
    Resolve the target sheet of every record and collect the names with none.

    A sheet receives at most one record. A later record that resolves to a
    sheet already taken is left unassigned and reported in ``conflicts``.
    """
    plan = TemplatePlan()
    taken: dict[str, TableRecord] = {}
    for record in records:
        sheet = resolve_sheet(record.title.name, sheet_names)
        if sheet is None:
            if record.title.name not in plan.unmatched:
                plan.unmatched.append(record.title.name)
        elif sheet in taken:
            owner = taken[sheet]
            plan.conflicts.append(
                f"{record.title.name} ({record.title.year_month}): sheet '{sheet}' already used by "
                f"{owner.title.name} ({owner.title.year_month})"
            )
            sheet = None
        else:
            taken[sheet] = record
        plan.assignments.append((record, sheet))

    if plan.unmatched:
        logger.warning(f"No template sheet for: {', '.join(plan.unmatched)}")
    for conflict in plan.conflicts:
        logger.warning(f"Template sheet conflict: {conflict}")

    return plan
