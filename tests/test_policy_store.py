"""
PolicyStore tests

SQL layer exercised against a mock psycopg connection
"""

from datetime import datetime
from unittest.mock import MagicMock

import pytest

from services.storage.db_store import PolicyStore
from services.storage.records import RecordNotFoundError


# =============================================================================
# Mock DB Helper
# =============================================================================

def _make_mock_cursor(query_results: dict):
    """
    Cursor returning rows per query substring

    query_results: {"query_substring": [row1, row2, ...], ...}
    """
    cursor = MagicMock()
    results_queue = []
    cursor.executed = []

    def execute(query, params=None):
        cursor.executed.append((query, params))
        for key, rows in query_results.items():
            if key in query:
                results_queue.clear()
                results_queue.extend(rows)
                return
        results_queue.clear()

    def fetchone():
        return results_queue[0] if results_queue else None

    def fetchall():
        return list(results_queue)

    cursor.execute = execute
    cursor.fetchone = fetchone
    cursor.fetchall = fetchall
    return cursor


def _make_mock_conn(cursor):
    """Mock connection"""
    conn = MagicMock()
    conn.cursor.return_value.__enter__ = MagicMock(return_value=cursor)
    conn.cursor.return_value.__exit__ = MagicMock(return_value=False)
    return conn


def _policy_row(**overrides):
    row = {
        "id": "p-1",
        "customer_id": "c-1",
        "file_name": "schedule.pdf",
        "file_url": "policies/abc.pdf",
        "ocr_text": "{}",
        "insurer": "DUAL Australia",
        "wording_version": "PI-2023",
        "wording_id": None,
        "status": "extracted",
        "created_at": datetime(2025, 1, 1),
    }
    row.update(overrides)
    return row


# =============================================================================
# Tests
# =============================================================================

class TestPolicyStore:
    """PolicyStore SQL behaviour"""

    def test_get_policy(self):
        """row -> PolicyRecord"""
        cursor = _make_mock_cursor({"FROM policies WHERE id": [_policy_row()]})
        store = PolicyStore(conn=_make_mock_conn(cursor))

        policy = store.get_policy("p-1")

        assert policy.id == "p-1"
        assert policy.insurer == "DUAL Australia"
        assert policy.wording_id is None

    def test_get_policy_missing(self):
        """no row -> None"""
        cursor = _make_mock_cursor({})
        store = PolicyStore(conn=_make_mock_conn(cursor))
        assert store.get_policy("missing") is None

    def test_attach_wording_guarded(self):
        """UPDATE only applies when wording_id IS NULL"""
        cursor = _make_mock_cursor({
            "UPDATE policies": [_policy_row(wording_id="w-1", status="matched")],
        })
        conn = _make_mock_conn(cursor)
        store = PolicyStore(conn=conn)

        policy = store.attach_wording("p-1", "w-1")

        query, params = cursor.executed[-1]
        assert "wording_id IS NULL" in query
        assert params == ("w-1", "p-1")
        assert policy.wording_id == "w-1"
        assert policy.status == "matched"
        conn.commit.assert_called_once()

    def test_attach_wording_already_linked(self):
        """UPDATE touched nothing -> None"""
        cursor = _make_mock_cursor({})
        store = PolicyStore(conn=_make_mock_conn(cursor))
        assert store.attach_wording("p-1", "w-1") is None

    def test_update_fields_missing_policy(self):
        """UPDATE on unknown id -> RecordNotFoundError"""
        cursor = _make_mock_cursor({})
        store = PolicyStore(conn=_make_mock_conn(cursor))
        with pytest.raises(RecordNotFoundError):
            store.update_policy_fields("missing", "DUAL", "PI-2023")

    def test_list_wordings_ordered_without_text(self):
        """wording listing skips body text and orders by insurer"""
        cursor = _make_mock_cursor({
            "FROM policy_wording ORDER BY": [
                {"id": "w-1", "insurer": "Chubb", "wording_version": "C-1",
                 "file_name": "c.pdf", "created_at": None},
                {"id": "w-2", "insurer": "DUAL", "wording_version": "PI",
                 "file_name": None, "created_at": None},
            ],
        })
        store = PolicyStore(conn=_make_mock_conn(cursor))

        wordings = store.list_wordings()

        query, _ = cursor.executed[-1]
        assert "wording_text" not in query
        assert "ORDER BY insurer, id" in query
        assert [w.id for w in wordings] == ["w-1", "w-2"]
        assert wordings[0].wording_text is None

    def test_insert_analysis_json(self):
        """result_json stored as JSONB, dict round-trips"""
        cursor = _make_mock_cursor({
            "INSERT INTO analysis": [{
                "id": "a-1", "policy_id": "p-1", "wording_id": "w-1",
                "result_json": '{"sections": []}', "summary": "ok", "created_at": None,
            }],
        })
        store = PolicyStore(conn=_make_mock_conn(cursor))

        record = store.insert_analysis("p-1", "w-1", {"sections": []}, "ok")

        assert record.result_json == {"sections": []}
        assert record.summary == "ok"

    def test_create_customer(self):
        cursor = _make_mock_cursor({
            "INSERT INTO customers": [{"id": "c-9", "name": "Acme", "created_at": None}],
        })
        store = PolicyStore(conn=_make_mock_conn(cursor))

        customer = store.create_customer("Acme")

        assert customer.id == "c-9"
        assert cursor.executed[-1][1] == ("Acme",)

    def test_close(self):
        """close() releases the connection"""
        conn = _make_mock_conn(_make_mock_cursor({}))
        store = PolicyStore(conn=conn)
        store.close()
        conn.close.assert_called_once()
