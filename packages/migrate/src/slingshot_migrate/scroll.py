"""Paging over the source index with a scroll cursor or a fixed offset page.

Cursor lifecycle::

    INIT -> OPEN -> (FETCH -> MORE)* -> FETCH -> EXHAUSTED -> CLOSED
                 \\-> FAILED (any store error while OPEN/FETCH)

An empty page means the cursor is exhausted; the manager then releases it.
Failures are fatal to the run and are never retried here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from slingshot_common import SlingshotError

from .records import DocumentRecord
from .spec import PagingMode

if TYPE_CHECKING:
    from collections.abc import Iterator
    from .spec import MigrationSpec
    from .store import DocumentStore, ScrollPage

logger = logging.getLogger(__name__)


class CursorState(Enum):
    INIT = "init"
    OPEN = "open"
    FETCH = "fetch"
    MORE = "more"
    EXHAUSTED = "exhausted"
    CLOSED = "closed"
    FAILED = "failed"


@dataclass
class ScrollState:
    """Cursor bookkeeping, owned by the ScrollCursorManager that created it."""

    ttl: str
    token: str | None = None
    state: CursorState = CursorState.INIT
    total: int | None = None
    pages_fetched: int = 0
    pending: list[dict] | None = field(default=None, repr=False)

    @property
    def exhausted(self) -> bool:
        return self.state in (CursorState.EXHAUSTED, CursorState.CLOSED)


@dataclass
class Page:
    """A page of source records."""

    records: list[DocumentRecord]
    number: int
    has_more: bool
    total: int | None = None

    def __len__(self) -> int:
        return len(self.records)


class ScrollCursorManager:
    """Opens and advances a paging cursor over the source index."""

    def __init__(self, store: DocumentStore, spec: MigrationSpec):
        self.store = store
        self.spec = spec

    @property
    def mode(self) -> PagingMode:
        return self.spec.paging.mode

    def open(self) -> ScrollState:
        """Open the cursor.

        In cursor mode this runs the filter query with the page size and
        time-to-live; the first page is held until the first :meth:`next`.
        In offset mode nothing is fetched yet.
        """
        state = ScrollState(ttl=self.spec.paging.scroll_ttl)
        if self.mode is PagingMode.OFFSET:
            state.state = CursorState.OPEN
            return state

        source = self.spec.source
        try:
            first = self.store.open_scroll(
                source.index,
                source.shape_tag,
                self.spec.filter_query,
                self.spec.page_size,
                state.ttl,
            )
        except SlingshotError:
            state.state = CursorState.FAILED
            raise

        state.token = first.scroll_id
        state.total = first.total
        state.pending = first.hits
        state.state = CursorState.OPEN
        logger.debug(
            f"Opened scroll on {source} (size={self.spec.page_size}, ttl={state.ttl}, "
            f"total={state.total})"
        )
        return state

    def next(self, state: ScrollState) -> Page:
        """Fetch the next page.

        Returns:
            The page; ``has_more`` is False once the source is exhausted, in
            which case the records list is empty (cursor mode) or holds the
            single requested page (offset mode)
        """
        if state.exhausted:
            return Page(records=[], number=state.pages_fetched, has_more=False)
        if state.state not in (CursorState.OPEN, CursorState.MORE):
            raise RuntimeError(f"Cannot fetch from a cursor in state '{state.state.value}'")

        state.state = CursorState.FETCH
        try:
            if self.mode is PagingMode.OFFSET:
                hits = self._fetch_offset_page()
            else:
                hits = self._fetch_scroll_page(state)
        except SlingshotError:
            state.state = CursorState.FAILED
            self._release_after_failure(state)
            raise

        records = [DocumentRecord.from_hit(hit) for hit in hits]
        state.pages_fetched += 1

        if self.mode is PagingMode.OFFSET:
            # one bounded page per invocation
            state.state = CursorState.EXHAUSTED
            logger.debug(f"Fetched offset page {self.spec.paging.batch_number} ({len(records)} docs)")
            return Page(records=records, number=state.pages_fetched, has_more=False)

        if not records:
            state.state = CursorState.EXHAUSTED
            logger.debug(f"Scroll exhausted after {state.pages_fetched - 1} page(s)")
            self.close(state)
            return Page(records=[], number=state.pages_fetched, has_more=False)

        state.state = CursorState.MORE
        logger.debug(f"Fetched page {state.pages_fetched} ({len(records)} docs)")
        return Page(records=records, number=state.pages_fetched, has_more=True, total=state.total)

    def pages(self) -> Iterator[Page]:
        """Iterate over the non-empty pages of the source."""
        state = self.open()
        try:
            while True:
                page = self.next(state)
                if page.records:
                    yield page
                if not page.has_more:
                    break
        finally:
            # generator abandoned early: release the server-side cursor
            if not state.exhausted and state.state is not CursorState.FAILED:
                self.close(state)

    def close(self, state: ScrollState) -> None:
        """Release the cursor."""
        if state.state is CursorState.CLOSED:
            return
        token, state.token = state.token, None
        state.pending = None
        state.state = CursorState.CLOSED
        if token and self.mode is PagingMode.CURSOR:
            self.store.clear_scroll(token)

    def _fetch_scroll_page(self, state: ScrollState) -> list[dict]:
        if state.pending is not None:
            hits, state.pending = state.pending, None
            return hits
        if not state.token:
            return []
        page: ScrollPage = self.store.scroll(state.token, state.ttl)
        state.token = page.scroll_id or state.token
        return page.hits

    def _fetch_offset_page(self) -> list[dict]:
        paging = self.spec.paging
        source = self.spec.source
        return self.store.search_page(
            source.index,
            source.shape_tag,
            self.spec.filter_query,
            paging.batch_number * paging.batch_size,
            paging.batch_size,
        )

    def _release_after_failure(self, state: ScrollState) -> None:
        token, state.token = state.token, None
        if not token or self.mode is not PagingMode.CURSOR:
            return
        try:
            self.store.clear_scroll(token)
        except SlingshotError as e:
            logger.warning(f"Could not release scroll cursor after failure: {e}")
