"""Export module for writing time card records to Excel spreadsheets."""

from .excel import ExcelExporter, TemplateFillResult, load_roster, read_sheet_names

__all__ = ["ExcelExporter", "TemplateFillResult", "load_roster", "read_sheet_names"]
