"""Shared test fixtures for proc-tool."""

from pathlib import Path
from tempfile import TemporaryDirectory

import pytest
from typer.testing import CliRunner

from proc_tool.cli.main import app
from tests.fakes import (
    IN,
    INOUT,
    OUT,
    FakeContainer,
    FakeDataSource,
    FakeProcedure,
    FakeProcedureContainer,
    FakeSession,
    params,
)


@pytest.fixture
def runner():
    """Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_runner(runner):
    """Invoke the CLI app with the given arguments."""

    def invoke(*args: str, **kwargs):
        return runner.invoke(app, list(args), **kwargs)

    return invoke


@pytest.fixture
def temp_dir():
    """Temporary directory for test files."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def get_employee():
    return FakeProcedure(
        "get_employee",
        params(
            ("emp_id", IN, "integer"),
            ("full_name", OUT, "character varying"),
            ("salary", INOUT, "numeric"),
        ),
    )


@pytest.fixture
def catalog(get_employee):
    """Root -> hr (schema) -> payroll (package) plus a public schema.

    ``hr.payroll.get_employee`` and ``public.get_employee`` are distinct
    procedures so lookups can be told apart.
    """
    pkg_proc = FakeProcedure("get_employee", list(get_employee.parameters))
    payroll = FakeProcedureContainer("payroll", pkg_proc)
    hr = FakeProcedureContainer("hr", payroll, get_employee)
    public = FakeProcedureContainer("public", FakeProcedure("get_employee"))
    return FakeContainer("appdb", hr, public)


@pytest.fixture
def data_source(catalog):
    return FakeDataSource(catalog)


@pytest.fixture
def session(data_source, catalog):
    return FakeSession(data_source, [catalog, catalog.children["hr"]])
