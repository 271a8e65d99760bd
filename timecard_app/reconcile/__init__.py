"""Name reconciliation and record merging for OCR-extracted time cards."""

from .attendance import annotate_record, calculate, find_punch_columns, parse_time, select_patterns
from .merger import merge_records
from .pipeline import ReconcileResult, reconcile
from .roster import apply_roster, best_match
from .sanitizer import SanitizationError, sanitize, sanitize_batch
from .sheets import TemplatePlan, plan_template_writes, resolve_sheet
from .similarity import distance, similarity

__all__ = [
    "ReconcileResult",
    "SanitizationError",
    "TemplatePlan",
    "annotate_record",
    "apply_roster",
    "best_match",
    "calculate",
    "distance",
    "find_punch_columns",
    "merge_records",
    "parse_time",
    "plan_template_writes",
    "reconcile",
    "resolve_sheet",
    "sanitize",
    "sanitize_batch",
    "select_patterns",
    "similarity",
]
