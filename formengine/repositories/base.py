"""
Base Repository - Form Scoring & Access Engine
formengine/repositories/base.py

Snowflake connection management plus the row-oriented table interface the
synchronizer talks to. Records are stored whole as JSON in a VARIANT column:

    ID          VARCHAR(64) PRIMARY KEY
    PAYLOAD     VARIANT
    CREATED_AT  TIMESTAMP_NTZ
    UPDATED_AT  TIMESTAMP_NTZ
"""

import json
import logging
import re
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Generator, List, Optional, Protocol

import snowflake.connector
from snowflake.connector import DictCursor
from snowflake.connector.errors import DatabaseError, InterfaceError, OperationalError, ProgrammingError

from formengine.core.exceptions import (
    DatabaseConnectionException,
    DuplicateEntityException,
    EntityNotFoundException,
    RepositoryException,
)
from formengine.services.snowflake import get_snowflake_connection

logger = logging.getLogger(__name__)

# Payload keys usable in select filters; interpolated into a VARIANT path.
_FILTER_KEY = re.compile(r"^[a-z_][a-z0-9_]*$")


class RemoteTable(Protocol):
    """Row-oriented remote table: the only store surface the engine relies on."""

    def insert(self, row: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def update(self, record_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def delete(self, record_id: str) -> None:
        ...

    def select(self, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        ...

    def select_one(self, record_id: str) -> Optional[Dict[str, Any]]:
        ...


class BaseRepository:
    """Base repository with Snowflake connection management."""

    @contextmanager
    def get_connection(self) -> Generator[snowflake.connector.SnowflakeConnection, None, None]:
        """Context manager for Snowflake connections."""
        conn = None
        try:
            conn = get_snowflake_connection()
            yield conn
        except (InterfaceError, OperationalError) as e:
            raise DatabaseConnectionException(f"Failed to connect to Snowflake: {e}")
        finally:
            if conn:
                conn.close()

    @contextmanager
    def get_cursor(self, dict_cursor: bool = True) -> Generator[Any, None, None]:
        """Context manager for Snowflake cursors with automatic connection cleanup."""
        with self.get_connection() as conn:
            cursor = conn.cursor(DictCursor) if dict_cursor else conn.cursor()
            try:
                yield cursor
            finally:
                cursor.close()

    def execute_query(
        self,
        sql: str,
        params: Optional[tuple] = None,
        fetch_one: bool = False,
        fetch_all: bool = False,
        commit: bool = False,
    ) -> Optional[Any]:
        """
        Execute a SQL query with error handling.

        Args:
            sql: SQL query string
            params: Query parameters
            fetch_one: Return single row
            fetch_all: Return all rows
            commit: Commit transaction after execution

        Returns:
            Query results or the affected row count
        """
        with self.get_cursor() as cursor:
            try:
                cursor.execute(sql, params or ())

                if commit:
                    cursor.connection.commit()

                if fetch_one:
                    return cursor.fetchone()
                elif fetch_all:
                    return cursor.fetchall()

                return cursor.rowcount

            except ProgrammingError as e:
                error_msg = str(e).upper()
                if "UNIQUE" in error_msg or "DUPLICATE" in error_msg:
                    raise DuplicateEntityException(str(e))
                raise RepositoryException(f"Query error: {e}")
            except DatabaseError as e:
                raise RepositoryException(f"Database error: {e}")

    def normalize_timestamp(self, dt: Optional[datetime]) -> Optional[datetime]:
        """Ensure timestamp is UTC-aware."""
        if dt is None:
            return None
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    def row_to_dict(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """Convert Snowflake row (uppercase keys) to lowercase dict."""
        if row is None:
            return {}
        return {k.lower(): v for k, v in row.items()}


class JsonTableRepository(BaseRepository):
    """
    RemoteTable over a Snowflake table holding one JSON document per row.
    Subclasses set table_name and entity_type.
    """

    table_name: str = ""
    entity_type: str = "Record"

    def ensure_table(self) -> None:
        self.execute_query(
            f"""
            CREATE TABLE IF NOT EXISTS {self.table_name} (
                ID VARCHAR(64) PRIMARY KEY,
                PAYLOAD VARIANT,
                CREATED_AT TIMESTAMP_NTZ,
                UPDATED_AT TIMESTAMP_NTZ
            )
            """,
            commit=True,
        )

    def _decode(self, row: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        row = self.row_to_dict(row)
        if not row:
            return None
        payload = row.get("payload")
        if isinstance(payload, str):
            payload = json.loads(payload)
        return payload or {}

    def insert(self, row: Dict[str, Any]) -> Dict[str, Any]:
        record_id = row.get("id")
        if not record_id:
            raise RepositoryException(f"{self.entity_type} row has no id")

        # PARSE_JSON is not accepted inside VALUES, hence INSERT ... SELECT
        self.execute_query(
            f"""
            INSERT INTO {self.table_name} (ID, PAYLOAD, CREATED_AT, UPDATED_AT)
            SELECT %s, PARSE_JSON(%s), CURRENT_TIMESTAMP(), CURRENT_TIMESTAMP()
            """,
            (record_id, json.dumps(row, default=str)),
            commit=True,
        )
        logger.debug(f"Inserted {self.entity_type} {record_id} into {self.table_name}")
        return row

    def update(self, record_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        current = self.select_one(record_id)
        if current is None:
            raise EntityNotFoundException(self.entity_type, record_id)

        merged = {**current, **changes, "id": record_id}
        self.execute_query(
            f"""
            UPDATE {self.table_name}
            SET PAYLOAD = PARSE_JSON(%s), UPDATED_AT = CURRENT_TIMESTAMP()
            WHERE ID = %s
            """,
            (json.dumps(merged, default=str), record_id),
            commit=True,
        )
        return merged

    def delete(self, record_id: str) -> None:
        self.execute_query(
            f"DELETE FROM {self.table_name} WHERE ID = %s",
            (record_id,),
            commit=True,
        )

    def select(self, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        sql = f"SELECT ID, PAYLOAD FROM {self.table_name} WHERE 1=1"
        params: List[Any] = []

        for key, value in (filters or {}).items():
            if not _FILTER_KEY.match(key):
                raise RepositoryException(f"Invalid filter key: {key!r}")
            sql += f" AND PAYLOAD:{key}::STRING = %s"
            params.append(str(value))

        sql += " ORDER BY CREATED_AT"

        rows = self.execute_query(sql, tuple(params), fetch_all=True) or []
        return [self._decode(row) for row in rows]

    def select_one(self, record_id: str) -> Optional[Dict[str, Any]]:
        row = self.execute_query(
            f"SELECT ID, PAYLOAD FROM {self.table_name} WHERE ID = %s",
            (record_id,),
            fetch_one=True,
        )
        return self._decode(row)
