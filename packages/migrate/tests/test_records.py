"""Tests for source records and transform results."""

import pytest

from slingshot_migrate import DocumentRecord, Many, Single, Skip, TransformResult


class TestDocumentRecord:
    """Test DocumentRecord."""

    def test_from_hit(self):
        """Test building a record from a search hit."""
        hit = {"_index": "sale", "_id": 42, "_source": {"price": 10}, "_score": 1.0}
        record = DocumentRecord.from_hit(hit)

        assert record.id == "42"
        assert record.index == "sale"
        assert record.get("price") == 10
        assert record.get("missing", "default") == "default"
        assert "price" in record
        assert record.metadata == {"_score": 1.0}

    def test_from_hit_without_source(self):
        """Test a hit with no _source yields empty fields."""
        record = DocumentRecord.from_hit({"_id": "a"})
        assert record.fields == {}
        assert record.to_dict() == {}

    def test_to_dict_is_a_private_copy(self):
        """Test mutating the copy leaves the record untouched."""
        record = DocumentRecord("1", {"tags": ["a"], "nested": {"x": 1}})

        doc = record.to_dict()
        doc["tags"].append("b")
        doc["nested"]["x"] = 2

        assert record.get("tags") == ["a"]
        assert record.get("nested") == {"x": 1}


class TestTransformResults:
    """Test Skip, Single and Many."""

    def test_skip_has_no_operations(self):
        """Test Skip contributes zero writes."""
        assert Skip().operations("1") == []
        assert Skip("draft").reason == "draft"
        assert isinstance(Skip(), TransformResult)

    def test_single_defaults_to_source_id(self):
        """Test Single falls back to the source identifier."""
        assert Single({"a": 1}).operations("7") == [({"a": 1}, "7")]

    def test_single_with_explicit_id(self):
        """Test Single keeps its own identifier."""
        assert Single({"a": 1}, id=99).operations("7") == [({"a": 1}, "99")]

    def test_many_keeps_order_and_ids(self):
        """Test Many expands in order with per-item identifiers."""
        result = Many([({"m": "fr"}, "1-fr"), Single({"m": "de"}, "1-de"), ({"m": "it"}, None)])

        assert len(result) == 3
        assert result.operations("1") == [
            ({"m": "fr"}, "1-fr"),
            ({"m": "de"}, "1-de"),
            ({"m": "it"}, "1"),
        ]

    def test_empty_many(self):
        """Test an empty Many behaves like Skip."""
        assert Many([]).operations("1") == []

    @pytest.mark.parametrize("document", ["oops", ["a", "b"], None, 42])
    def test_single_requires_a_mapping(self, document):
        with pytest.raises(TypeError, match="must be a mapping"):
            Single(document)

    @pytest.mark.parametrize("item", [
        {"title": "x", "ref": "y"},
        ({"m": "fr"},),
        ({"m": "fr"}, "1-fr", "extra"),
        "1-fr",
    ])
    def test_many_rejects_malformed_items(self, item):
        """Test items must be Single values or (document, id) pairs."""
        with pytest.raises(TypeError, match="Single or \\(document, id\\) pairs"):
            Many([item])

    def test_many_pair_with_non_mapping_document(self):
        with pytest.raises(TypeError, match="must be a mapping"):
            Many([("title", "ref")])

    def test_base_class_is_abstract(self):
        """Test the base class does not expand."""
        with pytest.raises(NotImplementedError):
            TransformResult().operations("1")
