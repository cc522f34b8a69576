"""Tests for the search log sink."""

import threading

from unittest.mock import Mock
from schemas.discovery import SearchLogEntry, RouteType
from search_logger import SearchLogger


def make_entry(query: str = "pdf") -> SearchLogEntry:
    return SearchLogEntry(
        tenant_id="t1",
        user_id="u1",
        query=query,
        normalized_query=SearchLogEntry.normalize(query),
        result_count=1,
        route_type=RouteType.KEYWORD,
    )


class TestSearchLogger:
    """Test fire-and-forget logging."""

    def test_entries_written_in_background(self):
        """Test queued entries reach the store."""
        store = Mock()
        sink = SearchLogger(store)

        sink.log(make_entry("a"))
        sink.log(make_entry("b"))

        assert sink.flush(timeout=2.0) is True
        sink.close()
        assert [c[0][0].query for c in store.log_search_query.call_args_list] == ["a", "b"]

    def test_log_does_not_block_on_slow_store(self):
        """Test log returns while the store is still writing."""
        release = threading.Event()
        store = Mock()
        store.log_search_query.side_effect = lambda entry: release.wait(2.0)
        sink = SearchLogger(store)

        sink.log(make_entry())
        sink.log(make_entry())
        release.set()

        assert sink.flush(timeout=2.0) is True
        sink.close()

    def test_full_queue_drops_entries(self):
        """Test entries beyond the queue size are dropped."""
        store = Mock()
        sink = SearchLogger(store, max_queue_size=2, start=False)

        for i in range(5):
            sink.log(make_entry(str(i)))

        assert sink.dropped == 3
        sink.flush()
        assert store.log_search_query.call_count == 2

    def test_store_errors_are_discarded(self):
        """Test a failing store does not stop the worker."""
        store = Mock()
        store.log_search_query.side_effect = [RuntimeError("disk full"), None]
        sink = SearchLogger(store)

        sink.log(make_entry("a"))
        sink.log(make_entry("b"))

        assert sink.flush(timeout=2.0) is True
        sink.close()
        assert store.log_search_query.call_count == 2

    def test_normalize(self):
        """Test query normalization for analytics."""
        assert SearchLogEntry.normalize("  PDF Tools ") == "pdf tools"
