"""
Repository Tests - Form Scoring & Access Engine
tests/test_repositories.py

Snowflake JSON tables with the connector mocked out.
"""
import json

import pytest
from unittest.mock import MagicMock, patch
from snowflake.connector.errors import InterfaceError, ProgrammingError

from formengine.core.exceptions import (
    DatabaseConnectionException,
    DuplicateEntityException,
    EntityNotFoundException,
    RepositoryException,
)
from formengine.repositories.form_repository import FormRepository
from formengine.repositories.response_repository import ResponseRepository


@pytest.fixture
def cursor():
    return MagicMock()


@pytest.fixture
def connection(cursor):
    conn = MagicMock()
    conn.cursor.return_value = cursor
    return conn


@pytest.fixture
def repo(connection):
    with patch("formengine.repositories.base.get_snowflake_connection", return_value=connection):
        yield FormRepository(table_name="FORMS_TEST")


class TestJsonTableRepository:

    def test_table_names_from_settings(self):
        assert FormRepository().table_name == "FORM_DEFINITIONS"
        assert ResponseRepository().table_name == "FORM_RESPONSES"

    def test_insert_stores_payload(self, repo, cursor, connection):
        row = {"id": "f1", "title": "Survey"}
        assert repo.insert(row) == row

        sql, params = cursor.execute.call_args[0]
        assert "INSERT INTO FORMS_TEST" in sql
        assert "PARSE_JSON(%s)" in sql
        assert params[0] == "f1"
        assert json.loads(params[1]) == row
        cursor.connection.commit.assert_called_once()
        connection.close.assert_called_once()

    def test_insert_requires_id(self, repo):
        with pytest.raises(RepositoryException):
            repo.insert({"title": "no id"})

    def test_select_decodes_payloads(self, repo, cursor):
        cursor.fetchall.return_value = [
            {"ID": "f1", "PAYLOAD": '{"id": "f1", "title": "A"}'},
            {"ID": "f2", "PAYLOAD": {"id": "f2", "title": "B"}},
        ]
        rows = repo.select()
        assert [r["title"] for r in rows] == ["A", "B"]

    def test_select_with_filter(self, repo, cursor):
        cursor.fetchall.return_value = []
        repo.select({"form_id": "f1"})
        sql, params = cursor.execute.call_args[0]
        assert "PAYLOAD:form_id::STRING = %s" in sql
        assert params == ("f1",)

    def test_select_rejects_unsafe_filter_keys(self, repo):
        with pytest.raises(RepositoryException):
            repo.select({"id; DROP TABLE x": "1"})

    def test_select_one_missing(self, repo, cursor):
        cursor.fetchone.return_value = None
        assert repo.select_one("nope") is None

    def test_update_merges_payload(self, repo, cursor):
        cursor.fetchone.return_value = {"ID": "f1", "PAYLOAD": '{"id": "f1", "title": "Old", "is_private": false}'}
        merged = repo.update("f1", {"title": "New"})
        assert merged == {"id": "f1", "title": "New", "is_private": False}

        sql, params = cursor.execute.call_args[0]
        assert sql.strip().startswith("UPDATE FORMS_TEST")
        assert json.loads(params[0])["title"] == "New"
        assert params[1] == "f1"

    def test_update_missing_row(self, repo, cursor):
        cursor.fetchone.return_value = None
        with pytest.raises(EntityNotFoundException):
            repo.update("ghost", {"title": "x"})

    def test_delete(self, repo, cursor):
        repo.delete("f1")
        sql, params = cursor.execute.call_args[0]
        assert sql == "DELETE FROM FORMS_TEST WHERE ID = %s"
        assert params == ("f1",)

    def test_duplicate_key_mapped(self, repo, cursor):
        cursor.execute.side_effect = ProgrammingError(msg="Duplicate key value violates unique constraint")
        with pytest.raises(DuplicateEntityException):
            repo.insert({"id": "f1"})

    def test_other_programming_errors_mapped(self, repo, cursor):
        cursor.execute.side_effect = ProgrammingError(msg="syntax error")
        with pytest.raises(RepositoryException):
            repo.select()


class TestConnection:

    def test_unconfigured_snowflake_raises(self):
        with patch("formengine.services.snowflake.settings", MagicMock(snowflake_configured=False)):
            with pytest.raises(DatabaseConnectionException):
                FormRepository(table_name="FORMS_TEST").select()

    def test_interface_error_becomes_connection_error(self):
        with patch(
            "formengine.repositories.base.get_snowflake_connection",
            side_effect=InterfaceError(msg="network down"),
        ):
            with pytest.raises(DatabaseConnectionException):
                FormRepository().select()
