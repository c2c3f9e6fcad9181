"""Unit tests for DatabaseClient with a mocked connection pool."""

from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock, patch

import psycopg
import pytest

from apps.order_service.database import DatabaseClient
from apps.order_service.schemas import ValidatedOrderLine

DSN = "postgresql://orders:secret@db:5432/storefront"


@contextmanager
def _mock_pool_connection(conn_side_effect=None):
    """Patch ConnectionPool and yield (pool, conn, cursor) mocks."""
    with patch("apps.order_service.database.ConnectionPool") as mock_pool:
        mock_conn = MagicMock()
        mock_cursor = MagicMock()

        pool_instance = mock_pool.return_value
        if conn_side_effect:
            pool_instance.connection.return_value.__enter__.side_effect = conn_side_effect
        else:
            pool_instance.connection.return_value.__enter__.return_value = mock_conn
        mock_conn.cursor.return_value.__enter__.return_value = mock_cursor

        yield mock_pool, mock_conn, mock_cursor


class TestInit:
    def test_empty_connection_string(self):
        with pytest.raises(ValueError, match="cannot be empty"):
            DatabaseClient("")

    def test_pool_settings(self):
        with _mock_pool_connection() as (mock_pool, _, _):
            DatabaseClient(DSN, min_size=1, max_size=4, timeout=2.5)

        mock_pool.assert_called_once_with(DSN, min_size=1, max_size=4, timeout=2.5)

    def test_close(self):
        with _mock_pool_connection() as (mock_pool, _, _):
            DatabaseClient(DSN).close()
        mock_pool.return_value.close.assert_called_once()


class TestLookups:
    def test_get_user_uses_pool_and_commits(self):
        with _mock_pool_connection() as (_, mock_conn, mock_cursor):
            mock_cursor.fetchone.return_value = {"id": 42, "role": "customer"}

            user = DatabaseClient(DSN).get_user(42)

        assert user == {"id": 42, "role": "customer"}
        sql, params = mock_cursor.execute.call_args[0]
        assert "FROM users" in sql
        assert "role" in sql
        assert params == (42,)
        mock_conn.commit.assert_called_once()

    def test_get_user_with_caller_connection_does_not_commit(self):
        with _mock_pool_connection() as (mock_pool, _, _):
            client = DatabaseClient(DSN)
            caller_conn = MagicMock()
            caller_cursor = caller_conn.cursor.return_value.__enter__.return_value
            caller_cursor.fetchone.return_value = None

            assert client.get_user(42, conn=caller_conn) is None

        caller_conn.commit.assert_not_called()
        mock_pool.return_value.connection.assert_not_called()

    def test_product_exists(self):
        with _mock_pool_connection() as (_, _, mock_cursor):
            mock_cursor.fetchone.side_effect = [{"id": 7}, None]
            client = DatabaseClient(DSN)

            assert client.product_exists(7) is True
            assert client.product_exists(999) is False


class TestWrites:
    def test_insert_order_header_returns_id(self):
        with _mock_pool_connection():
            client = DatabaseClient(DSN)
        conn = MagicMock()
        cursor = conn.cursor.return_value.__enter__.return_value
        cursor.fetchone.return_value = {"id": 17}

        order_id = client.insert_order_header(conn, 42, date(2026, 3, 2), Decimal("29.98"))

        assert order_id == 17
        sql, params = cursor.execute.call_args[0]
        assert "RETURNING id" in sql
        assert params == (42, date(2026, 3, 2), Decimal("29.98"))

    def test_insert_order_lines_batches(self):
        with _mock_pool_connection():
            client = DatabaseClient(DSN)
        conn = MagicMock()
        cursor = conn.cursor.return_value.__enter__.return_value
        lines = [
            ValidatedOrderLine(product_id=7, quantity=2, color="black"),
            ValidatedOrderLine(product_id=8, quantity=1, color="red", display_name="Tote"),
        ]

        assert client.insert_order_lines(conn, 17, lines) == 2

        _, params = cursor.executemany.call_args[0]
        assert params == [(17, 7, "black", 2, None), (17, 8, "red", 1, "Tote")]

    def test_insert_order_lines_refuses_empty(self):
        with _mock_pool_connection():
            client = DatabaseClient(DSN)
        with pytest.raises(ValueError):
            client.insert_order_lines(MagicMock(), 17, [])


class TestTransaction:
    def test_yields_pooled_connection(self):
        with _mock_pool_connection() as (_, mock_conn, _):
            client = DatabaseClient(DSN)
            with client.transaction() as conn:
                assert conn is mock_conn
        mock_conn.transaction.assert_called_once()

    def test_reraises_inside_block(self):
        with _mock_pool_connection() as (_, mock_conn, _):
            client = DatabaseClient(DSN)
            with pytest.raises(RuntimeError, match="boom"):
                with client.transaction():
                    raise RuntimeError("boom")
        mock_conn.transaction.return_value.__exit__.assert_called_once()


class TestReads:
    def test_fetch_order_rows_missing(self):
        with _mock_pool_connection() as (_, _, mock_cursor):
            mock_cursor.fetchone.return_value = None
            assert DatabaseClient(DSN).fetch_order_rows(17) is None
        assert mock_cursor.execute.call_count == 1

    def test_fetch_order_rows_groups_lines(self):
        header = {"id": 17, "user_id": 42}
        lines = [{"id": 1, "order_id": 17}, {"id": 2, "order_id": 17}]
        with _mock_pool_connection() as (_, _, mock_cursor):
            mock_cursor.fetchone.return_value = header
            mock_cursor.fetchall.return_value = lines

            result = DatabaseClient(DSN).fetch_order_rows(17)

        assert result == (header, lines)
        line_sql, line_params = mock_cursor.execute.call_args_list[1][0]
        assert "ANY(%s)" in line_sql
        assert line_params == ([17],)

    def test_list_order_rows_by_owner_orders_newest_first(self):
        headers = [{"id": 18, "user_id": 42}, {"id": 17, "user_id": 42}]
        with _mock_pool_connection() as (_, _, mock_cursor):
            mock_cursor.fetchall.side_effect = [headers, [{"id": 5, "order_id": 17}]]

            result = DatabaseClient(DSN).list_order_rows_by_owner(42)

        assert result == [(headers[0], []), (headers[1], [{"id": 5, "order_id": 17}])]
        header_sql = mock_cursor.execute.call_args_list[0][0][0]
        assert "ORDER BY o.order_date DESC, o.id DESC" in header_sql

    def test_list_order_rows_by_owner_without_orders_skips_line_query(self):
        with _mock_pool_connection() as (_, _, mock_cursor):
            mock_cursor.fetchall.return_value = []
            assert DatabaseClient(DSN).list_order_rows_by_owner(42) == []
        assert mock_cursor.execute.call_count == 1

    def test_list_order_rows_page(self):
        with _mock_pool_connection() as (_, _, mock_cursor):
            mock_cursor.fetchone.return_value = {"total": 3}
            mock_cursor.fetchall.side_effect = [[{"id": 9, "user_id": 1}], []]

            total, rows = DatabaseClient(DSN).list_order_rows_page(2, 2)

        assert total == 3
        assert rows == [({"id": 9, "user_id": 1}, [])]
        assert mock_cursor.execute.call_args_list[1][0][1] == (2, 2)


class TestCheckConnection:
    def test_healthy(self):
        with _mock_pool_connection():
            assert DatabaseClient(DSN).check_connection() is True

    def test_unreachable(self):
        with _mock_pool_connection(conn_side_effect=psycopg.OperationalError("down")):
            assert DatabaseClient(DSN).check_connection() is False
