"""
Unit tests for table loading.
"""

from unittest.mock import Mock

import pytest

from table_merge.errors import ReadError
from table_merge.loader import TableLoader


class TestTableLoader:
    """Test null-aware loading."""

    def test_preserves_null_and_empty_string(self, store):
        store.add_table("a", ["code", "name", "city"], [
            {"code": "1", "name": None, "city": ""},
        ])

        rows = TableLoader(store).load("a", ["code", "name", "city"])

        assert len(rows) == 1
        assert rows[0]["name"] is None
        assert rows[0]["city"] == ""

    def test_loads_exactly_requested_fields(self, store):
        store.add_table("a", ["code", "name"], [{"code": "1", "name": "x"}])

        rows = TableLoader(store).load("a", ["code"])

        assert dict(rows[0]) == {"code": "1"}

    def test_keeps_store_order(self, store):
        store.add_table("a", ["code"], [{"code": str(i)} for i in (3, 1, 2)])

        rows = TableLoader(store).load("a", ["code"])

        assert [r["code"] for r in rows] == ["3", "1", "2"]

    def test_non_text_values_are_rendered_as_text(self):
        store = Mock()
        store.select_all.return_value = [(1, b"abc", None)]

        rows = TableLoader(store).load("t", ["n", "raw", "missing"])

        assert dict(rows[0]) == {"n": "1", "raw": "abc", "missing": None}

    def test_query_failure_raises_read_error(self, store):
        store.add_table("a", ["code"], [{"code": "1"}])
        store.fail_select_on = "a"

        with pytest.raises(ReadError) as exc_info:
            TableLoader(store).load("a", ["code"])

        assert exc_info.value.table == "a"
        assert exc_info.value.operation == "select_all"

    def test_width_mismatch_raises_read_error(self):
        store = Mock()
        store.select_all.return_value = [("1",), ("2", "extra")]

        with pytest.raises(ReadError):
            TableLoader(store).load("t", ["code"])

    def test_undecodable_bytes_raise_read_error(self):
        store = Mock()
        store.select_all.return_value = [(b"\xff\xfe",)]

        with pytest.raises(ReadError):
            TableLoader(store).load("t", ["raw"])
