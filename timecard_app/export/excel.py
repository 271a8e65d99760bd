"""
Excel module for time card records.

Handles:
- Writing records to Excel files (one sheet per record)
- Filling per-person sheets of an existing template workbook
- Reading the roster and template sheet names
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from openpyxl import Workbook, load_workbook
from openpyxl.utils import column_index_from_string

from timecard_app.config import TemplateConfig, get_config
from timecard_app.models import TableRecord, TranscriptionRecord, strip_whitespace
from timecard_app.reconcile.sheets import plan_template_writes

logger = logging.getLogger(__name__)

_INVALID_SHEET_CHARS = re.compile(r'[\\/*?:"<>|\[\]]')
_INVALID_FILE_CHARS = re.compile(r'[\\/*?:"<>|]')
MAX_SHEET_TITLE = 31


def sheet_title(record: TableRecord) -> str:
    """Worksheet title for a record: year-month and name, cleaned and cut to 31 chars."""
    title = f"{record.title.year_month} {record.title.name}"
    title = _INVALID_SHEET_CHARS.sub("", title).strip()
    return title[:MAX_SHEET_TITLE] or "TimeCard"


def record_file_name(record: TableRecord) -> str:
    """File name for a single exported record."""
    name = _INVALID_FILE_CHARS.sub("_", strip_whitespace(record.title.name))
    year_month = _INVALID_FILE_CHARS.sub("_", strip_whitespace(record.title.year_month))
    if name and year_month:
        return f"{name}_{year_month}.xlsx"
    return "TimeCard.xlsx"


def _xlsx_path(file_path: Union[str, Path]) -> Path:
    file_path = Path(file_path)
    if file_path.suffix.lower() != ".xlsx":
        file_path = file_path.with_suffix(".xlsx")
    return file_path


@dataclass
class TemplateFillResult:
    """Outcome of writing records into a template workbook."""
    path: Path
    written: dict[str, str] = field(default_factory=dict)  # identity key -> sheet
    unmatched: list[str] = field(default_factory=list)
    conflicts: list[str] = field(default_factory=list)


class ExcelExporter:
    """
    Exports time card records to Excel files.

    Record sheet layout:
        年月 | <year-month>
        氏名 | <name>
        (blank row)
        headers
        data rows
    """

    def __init__(self, template_config: Optional[TemplateConfig] = None):
        """Initialize the Excel exporter."""
        self.template_config = template_config or get_config().template

    def _write_record(self, ws, record: TableRecord):
        ws.append(["年月", record.title.year_month])
        ws.append(["氏名", record.title.name])
        ws.append([])
        ws.append(list(record.headers))
        for row in record.data:
            ws.append(list(row))

    def export_record(self, record: TableRecord, file_path: Union[str, Path]) -> Path:
        """
        Export a single record to its own workbook.

        Args:
            record: Table record
            file_path: Path to Excel file

        Returns:
            Path to the exported file
        """
        file_path = _xlsx_path(file_path)

        wb = Workbook()
        ws = wb.active
        ws.title = sheet_title(record)
        self._write_record(ws, record)

        wb.save(file_path)
        logger.info(f"Exported '{record.title.name}' ({len(record.data)} rows) to {file_path}")

        return file_path

    def export_all(self, records: list[TableRecord], file_path: Union[str, Path]) -> Path:
        """
        Export records to one workbook, one sheet each.

        Args:
            records: Table records
            file_path: Path to Excel file

        Returns:
            Path to the exported file
        """
        if not records:
            raise ValueError("No records to export")

        file_path = _xlsx_path(file_path)

        wb = Workbook()
        wb.remove(wb.active)
        for record in records:
            # openpyxl appends a number to duplicate titles
            ws = wb.create_sheet(title=sheet_title(record))
            self._write_record(ws, record)

        wb.save(file_path)
        logger.info(f"Exported {len(records)} records to {file_path}")

        return file_path

    def export_transcriptions(
        self,
        records: list[TranscriptionRecord],
        file_path: Union[str, Path],
    ) -> Path:
        """
        Export transcriptions, one sheet per page with one line per row.

        Args:
            records: Transcription records
            file_path: Path to Excel file

        Returns:
            Path to the exported file
        """
        if not records:
            raise ValueError("No transcriptions to export")

        file_path = _xlsx_path(file_path)

        wb = Workbook()
        wb.remove(wb.active)
        for record in records:
            title = _INVALID_SHEET_CHARS.sub("", record.file_name).strip()[:MAX_SHEET_TITLE]
            ws = wb.create_sheet(title=title or "Transcription")
            for line in record.content.splitlines():
                ws.append([line])

        wb.save(file_path)
        logger.info(f"Exported {len(records)} transcriptions to {file_path}")

        return file_path

    def fill_template(
        self,
        records: list[TableRecord],
        template_path: Union[str, Path],
        output_path: Union[str, Path],
    ) -> TemplateFillResult:
        """
        Write each record into the template sheet that belongs to its person.

        Records with no matching sheet are reported as unmatched and not
        written. Each sheet takes one record; later records resolving to a
        sheet already used are reported as conflicts and not written.

        Args:
            records: Table records
            template_path: Existing workbook with one sheet per person
            output_path: Where to save the filled copy

        Returns:
            TemplateFillResult
        """
        output_path = _xlsx_path(output_path)
        wb = load_workbook(template_path)

        plan = plan_template_writes(records, wb.sheetnames)
        result = TemplateFillResult(
            path=output_path,
            unmatched=list(plan.unmatched),
            conflicts=list(plan.conflicts),
        )

        cfg = self.template_config
        for record, sheet in plan.matched:
            ws = wb[sheet]
            row = cfg.header_row
            if cfg.write_headers:
                for offset, header in enumerate(record.headers):
                    ws.cell(row=row, column=cfg.first_column + offset, value=header)
                row += 1
            for data_row in record.data:
                for offset, value in enumerate(data_row):
                    ws.cell(row=row, column=cfg.first_column + offset, value=value)
                row += 1
            result.written[record.identity_key] = sheet

        wb.save(output_path)
        logger.info(
            f"Filled {len(result.written)} template sheets to {output_path} "
            f"({len(result.unmatched)} unmatched, {len(result.conflicts)} conflicts)"
        )

        return result


def read_sheet_names(file_path: Union[str, Path]) -> list[str]:
    """List the worksheet names of a workbook in tab order."""
    wb = load_workbook(file_path, read_only=True)
    try:
        return list(wb.sheetnames)
    finally:
        wb.close()


def load_roster(
    file_path: Union[str, Path],
    sheet: Optional[str] = None,
    column: str = "A",
    skip_header: bool = True,
) -> list[str]:
    """
    Read employee names from one column of a workbook.

    Args:
        file_path: Roster workbook
        sheet: Worksheet name (the active sheet when omitted)
        column: Column letter holding the names
        skip_header: Ignore the first row

    Returns:
        Non-blank names in sheet order
    """
    wb = load_workbook(file_path, read_only=True, data_only=True)
    try:
        ws = wb[sheet] if sheet else wb.active
        column_index = column_index_from_string(column)
        min_row = 2 if skip_header else 1

        names = []
        for (value,) in ws.iter_rows(
            min_row=min_row,
            min_col=column_index,
            max_col=column_index,
            values_only=True,
        ):
            if value is None:
                continue
            name = str(value).strip()
            if name:
                names.append(name)
    finally:
        wb.close()

    logger.info(f"Loaded {len(names)} roster names from {file_path}")
    return names
