"""Tests for the source paging cursor."""

from unittest.mock import Mock

import pytest

from slingshot_migrate import (
    CursorExpiredError,
    CursorState,
    ScrollCursorManager,
    ScrollPage,
    StoreConnectionError,
)
from slingshot_migrate.backends import MemoryDocumentStore


class TestCursorMode:
    """Test paging with a scroll cursor."""

    def test_pages_cover_every_document_once(self, store, make_docs, make_spec):
        """Test all documents are seen exactly once, in order."""
        store.seed("source", make_docs(25))
        spec = make_spec(source={"index": "source", "size": 10})

        pages = list(ScrollCursorManager(store, spec).pages())

        assert [len(page) for page in pages] == [10, 10, 5]
        ids = [record.id for page in pages for record in page.records]
        assert ids == [str(i) for i in range(25)]
        assert all(page.total == 25 for page in pages)
        assert store.open_scrolls() == 0

    def test_state_transitions(self, store, make_docs, make_spec):
        """Test INIT -> OPEN -> MORE -> EXHAUSTED -> CLOSED."""
        store.seed("source", make_docs(3))
        manager = ScrollCursorManager(store, make_spec(source={"index": "source", "size": 2}))

        state = manager.open()
        assert state.state is CursorState.OPEN
        assert state.total == 3

        first = manager.next(state)
        assert first.has_more and len(first) == 2
        assert state.state is CursorState.MORE

        second = manager.next(state)
        assert second.has_more and len(second) == 1

        last = manager.next(state)
        assert not last.has_more and len(last) == 0
        assert state.state is CursorState.CLOSED
        assert state.token is None

        # further calls stay exhausted without touching the store
        calls = len(store.calls)
        assert not manager.next(state).has_more
        assert len(store.calls) == calls

    def test_empty_source(self, store, make_spec):
        """Test an empty source yields no pages and releases the cursor."""
        store.create_index("source")
        assert list(ScrollCursorManager(store, make_spec()).pages()) == []
        assert store.open_scrolls() == 0

    def test_filter_query(self, store, make_docs, make_spec):
        """Test the filter query restricts the documents paged."""
        store.seed("source", make_docs(6))
        spec = make_spec(query={"terms": {"n": [1, 3, 5]}})

        pages = list(ScrollCursorManager(store, spec).pages())

        assert [r.id for r in pages[0].records] == ["1", "3", "5"]

    def test_abandoned_iteration_releases_cursor(self, store, make_docs, make_spec):
        """Test closing the generator early clears the scroll."""
        store.seed("source", make_docs(10))
        pages = ScrollCursorManager(store, make_spec(source={"index": "source", "size": 2})).pages()

        next(pages)
        assert store.open_scrolls() == 1
        pages.close()
        assert store.open_scrolls() == 0

    def test_expired_cursor_fails(self, make_spec):
        """Test an expired token moves the cursor to FAILED and propagates."""
        store = Mock(spec=MemoryDocumentStore)
        store.open_scroll.return_value = ScrollPage(hits=[{"_id": "1", "_source": {}}],
                                                    scroll_id="abc", total=2)
        store.scroll.side_effect = CursorExpiredError("abc")
        manager = ScrollCursorManager(store, make_spec())

        state = manager.open()
        manager.next(state)
        with pytest.raises(CursorExpiredError):
            manager.next(state)

        assert state.state is CursorState.FAILED
        store.clear_scroll.assert_called_once_with("abc")

    def test_release_failure_after_error_is_logged(self, make_spec, caplog):
        """Test the original error wins when the cursor cannot be released."""
        store = Mock(spec=MemoryDocumentStore)
        store.open_scroll.return_value = ScrollPage(hits=[{"_id": "1"}], scroll_id="abc")
        store.scroll.side_effect = StoreConnectionError("scroll", "connection reset")
        store.clear_scroll.side_effect = StoreConnectionError("clear_scroll", "connection reset")
        manager = ScrollCursorManager(store, make_spec())

        with pytest.raises(StoreConnectionError):
            list(manager.pages())

        assert "Could not release scroll cursor" in caplog.text

    def test_open_failure(self, make_spec):
        """Test a failing open leaves nothing to release."""
        store = Mock(spec=MemoryDocumentStore)
        store.open_scroll.side_effect = StoreConnectionError("open_scroll", "refused")

        with pytest.raises(StoreConnectionError):
            list(ScrollCursorManager(store, make_spec()).pages())
        store.clear_scroll.assert_not_called()


class TestOffsetMode:
    """Test fixed offset paging."""

    def test_fetches_one_page(self, store, make_docs, make_spec):
        """Test one bounded page is fetched at batch_number * batch_size."""
        store.seed("source", make_docs(25))
        spec = make_spec(paging={"mode": "offset", "batch_number": 1, "batch_size": 10})

        pages = list(ScrollCursorManager(store, spec).pages())

        assert len(pages) == 1
        assert [r.id for r in pages[0].records] == [str(i) for i in range(10, 20)]
        assert store.calls.count("search_page") == 1
        assert "open_scroll" not in store.calls

    def test_page_past_the_end(self, store, make_docs, make_spec):
        """Test an offset beyond the source yields nothing."""
        store.seed("source", make_docs(5))
        spec = make_spec(paging={"mode": "offset", "batch_number": 3, "batch_size": 10})

        assert list(ScrollCursorManager(store, spec).pages()) == []

    def test_state_after_page(self, store, make_docs, make_spec):
        """Test the cursor is exhausted after its single page."""
        store.seed("source", make_docs(5))
        manager = ScrollCursorManager(
            store, make_spec(paging={"mode": "offset", "batch_size": 2})
        )
        state = manager.open()
        page = manager.next(state)

        assert len(page) == 2
        assert not page.has_more
        assert state.state is CursorState.EXHAUSTED
