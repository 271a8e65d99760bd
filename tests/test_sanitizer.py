"""Unit tests for raw record sanitizing."""

# pylint: disable=missing-class-docstring,missing-function-docstring

import pytest

from timecard_app.models import TableRecord, TranscriptionRecord
from timecard_app.reconcile.sanitizer import SanitizationError, sanitize, sanitize_batch, to_text


def raw_table(data, headers=("日", "出勤", "退勤", "備考"), **extra):
    raw = {
        "type": "table",
        "title": {"yearMonth": "2025年8月", "name": "山田 花子"},
        "headers": list(headers),
        "data": data,
    }
    raw.update(extra)
    return raw


class TestToText:

    @pytest.mark.parametrize("value,expected", [
        (None, ""),
        ("9:00", "9:00"),
        (9, "9"),
        (1.0, "1"),
        (1.5, "1.5"),
        (True, "true"),
        (False, "false"),
    ])
    def test_coercion(self, value, expected):
        assert to_text(value) == expected


class TestSanitizeTable:

    def test_pads_short_rows(self):
        record = sanitize(raw_table([["1", "9:00"]]))
        assert record.data == (("1", "9:00", "", ""),)

    def test_truncates_long_rows(self):
        record = sanitize(raw_table([["1", "9:00", "18:00", "", "extra"]]))
        assert record.data == (("1", "9:00", "18:00", ""),)

    def test_drops_non_list_rows(self):
        record = sanitize(raw_table([["1"], "garbage", None, {"a": 1}, ["2"]]))
        assert [row[0] for row in record.data] == ["1", "2"]

    def test_coerces_cells_and_headers(self):
        record = sanitize(raw_table([[1, None, 18.0, False]], headers=("日", None, 3, "x")))
        assert record.headers == ("日", "", "3", "x")
        assert record.data == (("1", "", "18", "false"),)

    def test_rows_match_header_count(self):
        record = sanitize(raw_table([[], ["1"], ["1", "2", "3", "4", "5", "6"]]))
        assert all(len(row) == len(record.headers) for row in record.data)

    def test_title(self):
        record = sanitize(raw_table([]))
        assert isinstance(record, TableRecord)
        assert record.title.year_month == "2025年8月"
        assert record.title.name == "山田 花子"
        assert record.name_corrected is False

    def test_missing_title(self):
        record = sanitize({"type": "table", "headers": ["日"], "data": []})
        assert record.title.name == ""
        assert record.title.year_month == ""

    def test_untyped_record_is_table(self):
        record = sanitize({"headers": ["日"], "data": [["1"]]})
        assert isinstance(record, TableRecord)

    @pytest.mark.parametrize("raw", [
        {"type": "table", "data": []},
        {"type": "table", "headers": ["日"]},
        {"type": "table", "headers": None, "data": []},
        {"type": "table", "headers": ["日"], "data": None},
        {"type": "table", "headers": "", "data": []},
        {"type": "table", "headers": ["日"], "data": 0},
        {"type": "table", "headers": False, "data": [["1"]]},
    ])
    def test_missing_headers_or_data(self, raw):
        assert sanitize(raw) is None

    def test_empty_lists_are_present(self):
        record = sanitize({"type": "table", "headers": [], "data": []})
        assert record.headers == ()
        assert record.data == ()

    def test_non_list_headers_and_data(self):
        record = sanitize({"type": "table", "headers": "日", "data": "1"})
        assert record.headers == ()
        assert record.data == ()


class TestSanitizeOther:

    def test_transcription(self):
        record = sanitize({"type": "transcription", "fileName": "memo_p1", "content": "line1\nline2"})
        assert record == TranscriptionRecord(file_name="memo_p1", content="line1\nline2")

    def test_transcription_coerces_fields(self):
        record = sanitize({"type": "transcription", "fileName": None, "content": 42})
        assert record == TranscriptionRecord(file_name="", content="42")

    @pytest.mark.parametrize("raw", [None, "text", 3, ["a"], {"type": "chart", "headers": [], "data": []}])
    def test_unusable_shapes(self, raw):
        assert sanitize(raw) is None


class TestSanitizeBatch:

    def test_skips_malformed(self):
        records = sanitize_batch([raw_table([["1"]]), "junk", {"type": "transcription", "content": "x"}])
        assert [r.kind for r in records] == ["table", "transcription"]

    def test_empty_batch(self):
        assert sanitize_batch([]) == []

    def test_total_failure(self):
        with pytest.raises(SanitizationError):
            sanitize_batch(["junk", {"type": "table"}])
