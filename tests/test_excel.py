"""Tests for Excel export, template filling and roster loading."""

# pylint: disable=missing-class-docstring,missing-function-docstring

import pytest
from openpyxl import Workbook, load_workbook

from timecard_app.config import TemplateConfig
from timecard_app.export import ExcelExporter, load_roster, read_sheet_names
from timecard_app.export.excel import record_file_name, sheet_title
from timecard_app.models import TranscriptionRecord

from .conftest import make_table


def values(ws, row):
    return [cell.value for cell in ws[row]]


class TestNaming:

    def test_sheet_title(self):
        assert sheet_title(make_table("山田 花子", "2025年8月")) == "2025年8月 山田 花子"

    def test_sheet_title_cleans_and_truncates(self):
        title = sheet_title(make_table("a/b:c" + "x" * 40, "2025[8]"))
        assert title.startswith("20258 abc")
        assert len(title) == 31

    def test_sheet_title_fallback(self):
        assert sheet_title(make_table("", "")) == "TimeCard"

    def test_record_file_name(self):
        assert record_file_name(make_table("山田 花子", "2025年8月")) == "山田花子_2025年8月.xlsx"
        assert record_file_name(make_table("山田", "")) == "TimeCard.xlsx"


class TestExport:

    def test_record_layout(self, tmp_path):
        record = make_table("山田", rows=[["1", "09:00", "18:00"]])
        path = ExcelExporter(TemplateConfig()).export_record(record, tmp_path / "out")

        assert path.suffix == ".xlsx"
        ws = load_workbook(path).active
        assert ws["A1"].value == "年月" and ws["B1"].value == "2025年8月"
        assert ws["A2"].value == "氏名" and ws["B2"].value == "山田"
        assert ws["A3"].value is None
        assert values(ws, 4) == ["日", "出勤", "退勤"]
        assert values(ws, 5) == ["1", "09:00", "18:00"]

    def test_export_all_one_sheet_per_record(self, tmp_path):
        records = [make_table("山田"), make_table("鈴木", "2025年9月")]
        path = ExcelExporter(TemplateConfig()).export_all(records, tmp_path / "all.xlsx")

        assert load_workbook(path).sheetnames == ["2025年8月 山田", "2025年9月 鈴木"]

    def test_export_all_empty(self, tmp_path):
        with pytest.raises(ValueError):
            ExcelExporter(TemplateConfig()).export_all([], tmp_path / "all.xlsx")

    def test_transcriptions(self, tmp_path):
        records = [TranscriptionRecord(file_name="memo_p1", content="line one\nline two")]
        path = ExcelExporter(TemplateConfig()).export_transcriptions(records, tmp_path / "t.xlsx")

        ws = load_workbook(path)["memo_p1"]
        assert ws["A1"].value == "line one"
        assert ws["A2"].value == "line two"


class TestFillTemplate:

    @pytest.fixture
    def template(self, tmp_path):
        wb = Workbook()
        wb.active.title = "山田"
        wb.create_sheet("鈴木 一郎")
        path = tmp_path / "template.xlsx"
        wb.save(path)
        return path

    def test_writes_matched_and_reports_unmatched(self, tmp_path, template):
        records = [
            make_table("山田 花子", rows=[["1", "09:00", "18:00"]]),
            make_table("鈴木 一郎", rows=[["2", "10:00", "19:00"]]),
            make_table("田中 次郎"),
        ]
        exporter = ExcelExporter(TemplateConfig(header_row=2, first_column=2))

        result = exporter.fill_template(records, template, tmp_path / "filled.xlsx")

        assert result.written == {"山田花子-2025年8月": "山田", "鈴木一郎-2025年8月": "鈴木 一郎"}
        assert result.unmatched == ["田中 次郎"]

        wb = load_workbook(result.path)
        assert wb["山田"]["B2"].value == "日"
        assert wb["山田"]["C3"].value == "09:00"
        assert wb["鈴木 一郎"]["B3"].value == "2"

    def test_second_record_for_same_sheet_is_not_written(self, tmp_path, template):
        records = [
            make_table("山田 花子", rows=[["1", "9:00", "18:00"], ["2", "9:00", "18:00"], ["3", "9:00", "18:00"]]),
            make_table("山田 太郎", rows=[["1", "8:00", "17:00"]]),
        ]

        result = ExcelExporter(TemplateConfig()).fill_template(records, template, tmp_path / "filled.xlsx")

        assert result.written == {"山田花子-2025年8月": "山田"}
        assert result.unmatched == []
        assert len(result.conflicts) == 1
        assert "山田 太郎" in result.conflicts[0] and "山田 花子" in result.conflicts[0]

        ws = load_workbook(result.path)["山田"]
        assert [list(row) for row in ws.iter_rows(values_only=True)] == [
            ["日", "出勤", "退勤"],
            ["1", "9:00", "18:00"],
            ["2", "9:00", "18:00"],
            ["3", "9:00", "18:00"],
        ]

    def test_without_headers(self, tmp_path, template):
        exporter = ExcelExporter(TemplateConfig(write_headers=False))
        result = exporter.fill_template(
            [make_table("山田", rows=[["1", "09:00", "18:00"]])], template, tmp_path / "filled.xlsx"
        )

        assert load_workbook(result.path)["山田"]["A1"].value == "1"


class TestReadWorkbooks:

    def test_read_sheet_names(self, tmp_path):
        wb = Workbook()
        wb.active.title = "b"
        wb.create_sheet("a")
        wb.save(tmp_path / "x.xlsx")

        assert read_sheet_names(tmp_path / "x.xlsx") == ["b", "a"]

    def test_load_roster(self, tmp_path):
        wb = Workbook()
        ws = wb.active
        for row in [["氏名", "部署"], [" 山田 花子 ", "総務"], [None, "x"], ["  ", "y"], ["鈴木", "営業"]]:
            ws.append(row)
        wb.create_sheet("other").append(["x"])
        wb.save(tmp_path / "roster.xlsx")

        assert load_roster(tmp_path / "roster.xlsx") == ["山田 花子", "鈴木"]
        assert load_roster(tmp_path / "roster.xlsx", column="B", skip_header=False) == ["部署", "総務", "x", "y", "営業"]
        assert load_roster(tmp_path / "roster.xlsx", sheet="other", skip_header=False) == ["x"]
