"""Tests for bulk batching."""

from unittest.mock import Mock

import pytest

from slingshot_migrate import (
    BatchAccumulator,
    BulkBatch,
    BulkConfig,
    BulkResult,
    BulkWriteError,
    EndpointSpec,
    Many,
    Single,
    Skip,
    StoreConnectionError,
)
from slingshot_migrate.backends import MemoryDocumentStore
from slingshot_migrate.spec import BulkAction

TARGET = EndpointSpec("target", "_doc")


def accumulator(store, size=None, action=BulkAction.INDEX):
    return BatchAccumulator(store, TARGET, BulkConfig(action, size))


class TestBulkBatch:
    """Test BulkBatch."""

    def test_operations_interleave_headers_and_payloads(self):
        """Test the bulk body layout; delete has no payload."""
        batch = BulkBatch(TARGET)
        batch.append({"index": {"_index": "target", "_id": "1"}}, {"a": 1})
        batch.append({"delete": {"_index": "target", "_id": "2"}}, None)

        assert len(batch) == 2
        assert batch.ids() == ["1", "2"]
        assert batch.to_operations() == [
            {"index": {"_index": "target", "_id": "1"}},
            {"a": 1},
            {"delete": {"_index": "target", "_id": "2"}},
        ]

    def test_empty_batch_is_falsy(self):
        assert not BulkBatch(TARGET)


class TestBulkResult:
    """Test parsing bulk responses."""

    def test_all_applied(self):
        """Test a response without errors."""
        response = {"errors": False, "items": [{"index": {"_id": "1", "status": 201}}]}
        result = BulkResult.from_response(response, ["1"])

        assert result.applied == 1
        assert not result.has_errors
        assert result.error("target") is None

    def test_item_failures(self):
        """Test failed items are reported with id, status and reason."""
        response = {
            "errors": True,
            "items": [
                {"index": {"_id": "1", "status": 201}},
                {"index": {"_id": "2", "status": 400, "error": {
                    "type": "mapper_parsing_exception", "reason": "failed to parse [price]"}}},
                {"index": {"status": 429, "error": "rejected"}},
            ],
        }
        result = BulkResult.from_response(response, ["1", "2", "3"])

        assert result.requested == 3
        assert result.applied == 1
        assert [e.doc_id for e in result.errors] == ["2", "3"]
        assert result.errors[0].reason == "mapper_parsing_exception: failed to parse [price]"
        assert result.errors[1].to_dict() == {"doc_id": "3", "status": 429, "reason": "rejected"}

        error = result.error("target")
        assert isinstance(error, BulkWriteError)
        assert error.index == "target"
        assert "2 bulk item(s) failed on 'target': 2, 3" in str(error)

    def test_errors_without_items(self):
        """Test every id is reported when the response carries no item status."""
        result = BulkResult.from_response({"errors": True, "items": []}, ["a", "b", "c"])

        assert result.applied == 0
        assert [e.doc_id for e in result.errors] == ["a", "b", "c"]
        assert {e.reason for e in result.errors} == {"no item status in bulk response"}

    def test_short_item_list(self):
        """Test ids past the end of the item list count as failures."""
        response = {"errors": True, "items": [{"index": {"_id": "a", "status": 200}}]}
        result = BulkResult.from_response(response, ["a", "b"])

        assert result.applied == 1
        assert [e.to_dict() for e in result.errors] == [
            {"doc_id": "b", "status": None, "reason": "no item status in bulk response"}
        ]


class TestBatchAccumulator:
    """Test BatchAccumulator."""

    def test_flushes_at_max_batch_size(self, store):
        """Test a flush is triggered exactly when the batch is full."""
        acc = accumulator(store, size=2)

        assert acc.add(Single({"n": 1}), "1") == []
        flushed = acc.add(Single({"n": 2}), "2")

        assert len(flushed) == 1
        assert flushed[0].applied == 2
        assert acc.pending == 0
        assert store.count("target") == 2

    def test_many_flushes_mid_expansion(self, store):
        """Test a Many larger than the batch never overfills it."""
        sizes = []
        original_bulk = store.bulk

        def bulk(index, shape_tag, operations):
            sizes.append(len(operations) // 2)
            return original_bulk(index, shape_tag, operations)

        store.bulk = bulk
        acc = accumulator(store, size=3)

        flushed = acc.add(Many([({"k": i}, f"x-{i}") for i in range(7)]), "x")
        acc.drain()

        assert len(flushed) == 2
        assert sizes == [3, 3, 1]
        assert store.count("target") == 7

    def test_skip_adds_nothing(self, store):
        """Test Skip leaves the batch empty."""
        acc = accumulator(store, size=1)
        assert acc.add(Skip(), "1") == []
        assert acc.pending == 0
        assert acc.drain() is None
        assert "bulk" not in store.calls

    def test_unbounded_batch_only_flushes_on_drain(self, store):
        """Test no max size means no automatic flush."""
        acc = accumulator(store)
        for i in range(50):
            assert acc.add(Single({"n": i}), str(i)) == []

        result = acc.drain()
        assert result.applied == 50
        assert acc.flush_count == 1

    def test_flush_empty_batch(self, store):
        """Test flushing nothing does not call the store."""
        result = accumulator(store).flush()
        assert result.requested == 0
        assert "bulk" not in store.calls

    def test_create_conflicts_are_item_errors(self, store):
        """Test create on an existing id fails that item only."""
        store.seed("target", {"1": {"n": 1}})
        acc = accumulator(store, action=BulkAction.CREATE)
        acc.add(Single({"n": 1}), "1")
        acc.add(Single({"n": 2}), "2")

        result = acc.drain()

        assert result.applied == 1
        assert result.errors[0].doc_id == "1"
        assert result.errors[0].status == 409

    def test_update_wraps_document(self, store):
        """Test the update action sends partial documents."""
        store.seed("target", {"1": {"n": 1, "name": "one"}})
        acc = accumulator(store, action=BulkAction.UPDATE)
        acc.add(Single({"name": "uno"}), "1")
        acc.drain()

        assert store.documents("target")["1"] == {"n": 1, "name": "uno"}

    def test_delete_sends_headers_only(self):
        """Test the delete action has no payload."""
        store = Mock(spec=MemoryDocumentStore)
        store.bulk.return_value = {"errors": False, "items": []}
        acc = accumulator(store, action=BulkAction.DELETE)
        acc.add(Single({"ignored": True}), "1")
        acc.drain()

        store.bulk.assert_called_once_with(
            "target", "_doc", [{"delete": {"_index": "target", "_id": "1"}}]
        )

    def test_connection_failure_propagates(self):
        """Test a transport failure on bulk is not swallowed."""
        store = Mock(spec=MemoryDocumentStore)
        store.bulk.side_effect = StoreConnectionError("bulk", "timed out")
        acc = accumulator(store, size=1)

        with pytest.raises(StoreConnectionError):
            acc.add(Single({"n": 1}), "1")
