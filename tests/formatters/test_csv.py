"""Tests for CSVFormatter."""

import pytest

from proc_tool.core.models import ColumnMeta, QueryResult
from proc_tool.formatters.base import Formatter
from proc_tool.formatters.csv import CSVFormatter


def _make_result(rows=None):
    if rows is None:
        rows = [(1, "alice"), (2, "bob")]
    return QueryResult(
        columns=[
            ColumnMeta(name="id", type_name="int4"),
            ColumnMeta(name="name", type_name="text"),
        ],
        rows=rows,
        row_count=len(rows),
        status_message=f"SELECT {len(rows)}",
    )


@pytest.mark.unit
def test_csv_formatter_implements_protocol():
    assert isinstance(CSVFormatter(), Formatter)


@pytest.mark.unit
def test_csv_formatter_header_and_rows():
    assert list(CSVFormatter().format(_make_result())) == ["id,name", "1,alice", "2,bob"]


@pytest.mark.unit
def test_csv_formatter_no_header():
    assert list(CSVFormatter(no_header=True).format(_make_result())) == ["1,alice", "2,bob"]


@pytest.mark.unit
def test_csv_formatter_null_is_empty():
    assert list(CSVFormatter().format(_make_result(rows=[(1, None)])))[1] == "1,"


@pytest.mark.unit
def test_csv_formatter_quotes_special_characters():
    lines = list(CSVFormatter().format(_make_result(rows=[(1, 'say "hi", bob')])))
    assert lines[1] == '1,"say ""hi"", bob"'
