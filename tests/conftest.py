"""Shared test configuration and fixtures."""

from pathlib import Path

import pytest
from dotenv import load_dotenv

from timecard_app.models import TableRecord, TableTitle

# Load .env from project root for all tests
root = Path(__file__).parent.parent.resolve()
load_dotenv(root / ".env")


def make_table(name: str, year_month: str = "2025年8月", rows=(), headers=("日", "出勤", "退勤")) -> TableRecord:
    """Build a TableRecord from plain lists."""
    return TableRecord(
        title=TableTitle(year_month=year_month, name=name),
        headers=tuple(headers),
        data=tuple(tuple(row) for row in rows),
    )


@pytest.fixture
def table_factory():
    return make_table
