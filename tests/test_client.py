"""Tests for PgClient.

Unit tests run against a mocked psycopg connection; integration tests use the
test_db profile and are skipped when it is not configured.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import psycopg
import pytest

from proc_tool.core.client import PgClient
from proc_tool.core.config import ResolvedConfig, load_config, resolve_config
from proc_tool.core.exceptions import ConfigError, NetworkError, ProcToolError, TimeoutError
from proc_tool.core.invoker import CallableInvoker
from proc_tool.core.models import QueryResult
from proc_tool.core.postgres import PgCall, PgDataSource, PgSession
from tests.integration_config import TEST_PROFILE, TEST_SCHEMA


def _mock_connection(cursor):
    conn = MagicMock()
    conn.closed = False
    conn.cursor.return_value.__enter__.return_value = cursor
    return conn


def _mock_cursor(description=None, rows=None, status="SELECT 1", error=None):
    cur = MagicMock()
    cur.description = description
    cur.fetchall.return_value = rows or []
    cur.statusmessage = status
    if error is not None:
        cur.execute.side_effect = [None, error]
    return cur


@pytest.fixture
def connect():
    with patch("proc_tool.core.client.psycopg.connect") as mock_connect:
        yield mock_connect


# -- Unit --


@pytest.mark.unit
class TestExecuteQuery:
    def test_returns_query_result(self, connect):
        cur = _mock_cursor(
            description=[SimpleNamespace(name="n", type_code=23)], rows=[(1,)]
        )
        connect.return_value = _mock_connection(cur)
        result = PgClient(ResolvedConfig()).execute_query("SELECT 1 AS n")

        assert isinstance(result, QueryResult)
        assert result.rows == [(1,)]
        assert result.columns[0].name == "n"
        assert result.columns[0].type_name == "int4"
        assert result.status_message == "SELECT 1"

    def test_sets_statement_timeout(self, connect):
        cur = _mock_cursor()
        connect.return_value = _mock_connection(cur)
        PgClient(ResolvedConfig(default_timeout=2.5)).execute_query("CALL p(%s)", [1])

        first, second = cur.execute.call_args_list
        assert first.args == ("SET statement_timeout = 2500",)
        assert second.args == ("CALL p(%s)", [1])

    def test_no_description_means_no_rows(self, connect):
        cur = _mock_cursor(status="CALL")
        connect.return_value = _mock_connection(cur)
        result = PgClient(ResolvedConfig()).execute_query("CALL p()")
        assert result.columns == []
        assert result.rows == []
        cur.fetchall.assert_not_called()

    def test_unknown_type_oid(self, connect):
        cur = _mock_cursor(description=[SimpleNamespace(name="g", type_code=999999)], rows=[])
        connect.return_value = _mock_connection(cur)
        result = PgClient(ResolvedConfig()).execute_query("SELECT g")
        assert result.columns[0].type_name == "unknown"

    def test_reuses_connection(self, connect):
        connect.return_value = _mock_connection(_mock_cursor())
        client = PgClient(ResolvedConfig())
        client.execute_query("SELECT 1")
        client.execute_query("SELECT 2")
        assert connect.call_count == 1


@pytest.mark.unit
class TestErrorMapping:
    def test_connection_failure(self, connect):
        connect.side_effect = psycopg.OperationalError("refused")
        with pytest.raises(NetworkError, match="Connection failed to localhost:5432"):
            PgClient(ResolvedConfig()).execute_query("SELECT 1")

    def test_query_canceled(self, connect):
        error = psycopg.errors.QueryCanceled("canceling statement")
        connect.return_value = _mock_connection(_mock_cursor(error=error))
        with pytest.raises(TimeoutError, match="Query timed out"):
            PgClient(ResolvedConfig()).execute_query("CALL slow()")

    def test_syntax_error(self, connect):
        error = psycopg.errors.SyntaxError("syntax error at or near")
        connect.return_value = _mock_connection(_mock_cursor(error=error))
        with pytest.raises(ProcToolError, match="SQL error"):
            PgClient(ResolvedConfig()).execute_query("CALLL p()")

    def test_operational_error(self, connect):
        error = psycopg.OperationalError("server closed the connection")
        connect.return_value = _mock_connection(_mock_cursor(error=error))
        with pytest.raises(NetworkError, match="Database error"):
            PgClient(ResolvedConfig()).execute_query("CALL p()")

    def test_other_database_error(self, connect):
        error = psycopg.errors.UndefinedFunction("procedure p() does not exist")
        connect.return_value = _mock_connection(_mock_cursor(error=error))
        with pytest.raises(ProcToolError, match="SQL error"):
            PgClient(ResolvedConfig()).execute_query("CALL p()")


@pytest.mark.unit
class TestLifecycle:
    def test_close_when_not_connected(self):
        PgClient(ResolvedConfig()).close()

    def test_context_manager_closes(self, connect):
        conn = _mock_connection(_mock_cursor())
        connect.return_value = conn
        with PgClient(ResolvedConfig()) as client:
            client.execute_query("SELECT 1")
        conn.close.assert_called_once()
        assert client._connection is None


# -- Integration --


@pytest.fixture
def resolved_config():
    try:
        return resolve_config(load_config(), profile_name=TEST_PROFILE)
    except ConfigError as e:
        pytest.skip(f"integration profile unavailable: {e.message}")


@pytest.fixture
def client(resolved_config):
    with PgClient(resolved_config) as c:
        yield c


@pytest.fixture
def raise_salary(client):
    client.execute_query(f"CREATE SCHEMA IF NOT EXISTS {TEST_SCHEMA}")
    client.execute_query(
        f"""
        CREATE OR REPLACE PROCEDURE {TEST_SCHEMA}.raise_salary(
            emp_id integer, pct numeric, OUT new_salary numeric)
        LANGUAGE plpgsql AS $$
        BEGIN
            new_salary := round(100 * (1 + pct / 100), 2);
        END $$
        """
    )
    yield f"{TEST_SCHEMA}.raise_salary"
    client.execute_query(f"DROP SCHEMA IF EXISTS {TEST_SCHEMA} CASCADE")


@pytest.mark.integration
def test_column_meta_int(client):
    result = client.execute_query("SELECT 1 AS num")
    assert result.columns[0].type_name == "int4"


@pytest.mark.integration
def test_call_projects_out_parameter(client, raise_salary):
    session = PgSession(PgDataSource(client))
    text = f"CALL {raise_salary}(%s, %s, %s)"
    with CallableInvoker(session, PgCall(client, text), text) as invoker:
        assert [c.name for c in invoker.output_columns] == ["new_salary"]
        invoker.set_parameters([1, 5, None])
        assert invoker.execute()
        assert str(invoker.get_result_set().fetch_one()[0]) == "105.00"
