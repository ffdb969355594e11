"""Tests for JSONFormatter."""

import json
from datetime import date
from decimal import Decimal

import pytest

from proc_tool.core.models import ColumnMeta, QueryResult
from proc_tool.formatters.base import Formatter
from proc_tool.formatters.json import JSONFormatter


def _make_result(rows=None, columns=None):
    if columns is None:
        columns = [
            ColumnMeta(name="id", type_name="int4"),
            ColumnMeta(name="name", type_name="text"),
        ]
    if rows is None:
        rows = [(1, "alice"), (2, "bob")]
    return QueryResult(
        columns=columns,
        rows=rows,
        row_count=len(rows),
        status_message=f"SELECT {len(rows)}",
    )


def _format(result, **kwargs):
    return "\n".join(JSONFormatter(**kwargs).format(result))


@pytest.mark.unit
def test_json_formatter_implements_protocol():
    assert isinstance(JSONFormatter(), Formatter)


@pytest.mark.unit
def test_json_formatter_rows_as_objects():
    assert json.loads(_format(_make_result())) == [
        {"id": 1, "name": "alice"},
        {"id": 2, "name": "bob"},
    ]


@pytest.mark.unit
def test_json_formatter_empty_result():
    assert json.loads(_format(_make_result(rows=[]))) == []


@pytest.mark.unit
def test_json_formatter_null_values():
    parsed = json.loads(_format(_make_result(rows=[(None, None)])))
    assert parsed == [{"id": None, "name": None}]


@pytest.mark.unit
def test_json_formatter_non_native_values():
    columns = [
        ColumnMeta(name="amount", type_name="numeric"),
        ColumnMeta(name="day", type_name="date"),
        ColumnMeta(name="blob", type_name="bytea"),
    ]
    rows = [(Decimal("105.00"), date(2024, 1, 31), b"\x01\xff")]
    parsed = json.loads(_format(_make_result(rows=rows, columns=columns)))
    assert parsed == [{"amount": "105.00", "day": "2024-01-31", "blob": "01ff"}]


@pytest.mark.unit
def test_json_formatter_compact():
    output = _format(_make_result(), compact=True)
    assert "\n" not in output
    assert output.startswith('[{"id": 1')


@pytest.mark.unit
def test_json_formatter_indented_by_default():
    assert "\n  " in _format(_make_result())
