"""In-memory document store implementation.

Useful for dry runs of a transform against a handful of documents, and as
the store behind the engine's tests. Queries support ``match_all``,
``term``, ``terms`` and ``ids``; anything else is rejected.
"""

from __future__ import annotations

import copy
import threading
import uuid
from collections import OrderedDict
from typing import Any

from ..exceptions import CursorExpiredError, StoreOperationError
from ..store import DocumentStore, ScrollPage


class MemoryDocumentStore(DocumentStore):
    """Dictionary-backed store holding indices, mappings and aliases."""

    name = "memory"

    def __init__(self, config: dict[str, Any] | None = None):
        self.config = config or {}
        self._indices: dict[str, OrderedDict[str, dict[str, Any]]] = {}
        self._mappings: dict[str, dict[str, Any]] = {}
        self._aliases: dict[str, set[str]] = {}
        self._scrolls: dict[str, tuple[int, list[dict[str, Any]]]] = {}
        self._lock = threading.RLock()
        self.calls: list[str] = []

    @classmethod
    def from_config(cls, config: dict) -> MemoryDocumentStore:
        """Create from config dictionary."""
        return cls(config)

    # Convenience helpers used to seed and inspect the store

    def seed(self, index: str, documents: dict[str, dict[str, Any]]) -> None:
        """Create ``index`` if needed and put ``documents`` (id -> source) in it."""
        with self._lock:
            docs = self._indices.setdefault(index, OrderedDict())
            for doc_id, source in documents.items():
                docs[str(doc_id)] = copy.deepcopy(source)

    def documents(self, index: str) -> dict[str, dict[str, Any]]:
        """Copy of the documents stored in ``index``."""
        with self._lock:
            return copy.deepcopy(dict(self._indices.get(self._resolve(index), {})))

    def count(self, index: str) -> int:
        with self._lock:
            return len(self._indices.get(self._resolve(index), {}))

    # DocumentStore

    def open_scroll(self, index, shape_tag, query, size, ttl) -> ScrollPage:
        self.calls.append("open_scroll")
        with self._lock:
            hits = self._search(index, query)
            scroll_id = uuid.uuid4().hex
            self._scrolls[scroll_id] = (size, hits[size:])
            return ScrollPage(hits=hits[:size], scroll_id=scroll_id, total=len(hits))

    def scroll(self, scroll_id, ttl) -> ScrollPage:
        self.calls.append("scroll")
        with self._lock:
            if scroll_id not in self._scrolls:
                raise CursorExpiredError(scroll_id)
            size, remaining = self._scrolls[scroll_id]
            page = remaining[:size]
            self._scrolls[scroll_id] = (size, remaining[size:])
            return ScrollPage(hits=page, scroll_id=scroll_id)

    def clear_scroll(self, scroll_id) -> None:
        self.calls.append("clear_scroll")
        with self._lock:
            self._scrolls.pop(scroll_id, None)

    def open_scrolls(self) -> int:
        """Number of cursors not yet released."""
        return len(self._scrolls)

    def search_page(self, index, shape_tag, query, offset, limit) -> list[dict[str, Any]]:
        self.calls.append("search_page")
        with self._lock:
            return self._search(index, query)[offset:offset + limit]

    def bulk(self, index, shape_tag, operations) -> dict[str, Any]:
        self.calls.append("bulk")
        with self._lock:
            items = []
            position = 0
            while position < len(operations):
                header = operations[position]
                action, meta = next(iter(header.items()))
                position += 1
                payload = None
                if action != "delete":
                    payload = operations[position]
                    position += 1
                items.append({action: self._apply(action, meta.get("_index", index), meta, payload)})
            errors = any("error" in next(iter(item.values())) for item in items)
            return {"errors": errors, "items": items}

    def get_mapping(self, index, shape_tag) -> dict[str, Any]:
        self.calls.append("get_mapping")
        with self._lock:
            return copy.deepcopy(self._mappings.get(self._resolve(index), {}))

    def put_mapping(self, index, shape_tag, mapping) -> bool:
        self.calls.append("put_mapping")
        with self._lock:
            name = self._resolve(index)
            if name not in self._indices:
                raise StoreOperationError("put_mapping", f"no such index [{index}]", status=404)
            self._mappings[name] = copy.deepcopy(mapping)
            return True

    def index_exists(self, index) -> bool:
        self.calls.append("index_exists")
        with self._lock:
            return index in self._indices or bool(self._aliases.get(index))

    def create_index(self, index, body=None) -> bool:
        self.calls.append("create_index")
        with self._lock:
            if index in self._indices:
                raise StoreOperationError("create_index", f"index [{index}] already exists", status=400)
            self._indices[index] = OrderedDict()
            mappings = (body or {}).get("mappings")
            if mappings:
                self._mappings[index] = copy.deepcopy(mappings)
            return True

    def get_alias(self, alias) -> set[str]:
        self.calls.append("get_alias")
        with self._lock:
            return set(self._aliases.get(alias, set()))

    def add_alias(self, index, alias) -> bool:
        self.calls.append("add_alias")
        with self._lock:
            if index not in self._indices:
                raise StoreOperationError("add_alias", f"no such index [{index}]", status=404)
            self._aliases.setdefault(alias, set()).add(index)
            return True

    def remove_alias(self, index, alias) -> bool:
        self.calls.append("remove_alias")
        with self._lock:
            holders = self._aliases.get(alias, set())
            if index not in holders:
                raise StoreOperationError(
                    "remove_alias", f"alias [{alias}] missing on [{index}]", status=404
                )
            holders.discard(index)
            return True

    # Internals

    def _resolve(self, index: str) -> str:
        holders = self._aliases.get(index)
        if index not in self._indices and holders and len(holders) == 1:
            return next(iter(holders))
        return index

    def _search(self, index: str, query: dict[str, Any] | None) -> list[dict[str, Any]]:
        name = self._resolve(index)
        if name not in self._indices:
            raise StoreOperationError("search", f"no such index [{index}]", status=404)
        return [
            {"_index": name, "_id": doc_id, "_source": copy.deepcopy(source)}
            for doc_id, source in self._indices[name].items()
            if self._matches(query, doc_id, source)
        ]

    def _matches(self, query: dict[str, Any] | None, doc_id: str, source: dict[str, Any]) -> bool:
        if not query or "match_all" in query:
            return True
        if "ids" in query:
            return doc_id in {str(v) for v in query["ids"].get("values", [])}
        if "term" in query:
            field, value = next(iter(query["term"].items()))
            if isinstance(value, dict):
                value = value.get("value")
            return source.get(field) == value
        if "terms" in query:
            field, values = next(iter(query["terms"].items()))
            return source.get(field) in values
        raise StoreOperationError("search", f"unsupported query for memory store: {list(query)}")

    def _apply(
        self, action: str, index: str, meta: dict[str, Any], payload: dict[str, Any] | None
    ) -> dict[str, Any]:
        name = self._resolve(index)
        doc_id = str(meta.get("_id") or uuid.uuid4().hex)
        result: dict[str, Any] = {"_index": name, "_id": doc_id}
        docs = self._indices.get(name)
        if docs is None:
            return {**result, "status": 404,
                    "error": {"type": "index_not_found_exception", "reason": f"no such index [{index}]"}}

        if action == "index":
            result["status"] = 200 if doc_id in docs else 201
            docs[doc_id] = copy.deepcopy(payload or {})
        elif action == "create":
            if doc_id in docs:
                return {**result, "status": 409, "error": {
                    "type": "version_conflict_engine_exception",
                    "reason": f"[{doc_id}]: version conflict, document already exists"}}
            docs[doc_id] = copy.deepcopy(payload or {})
            result["status"] = 201
        elif action == "update":
            if doc_id not in docs:
                return {**result, "status": 404, "error": {
                    "type": "document_missing_exception", "reason": f"[{doc_id}]: document missing"}}
            docs[doc_id].update(copy.deepcopy((payload or {}).get("doc", {})))
            result["status"] = 200
        elif action == "delete":
            result["status"] = 200 if docs.pop(doc_id, None) is not None else 404
        else:
            return {**result, "status": 400,
                    "error": {"type": "illegal_argument_exception", "reason": f"unknown action {action}"}}
        return result
