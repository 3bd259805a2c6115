"""Pytest configuration for slingshot_migrate tests."""

import sys
from pathlib import Path

import pytest

# Add the package source to path for testing
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from slingshot_migrate import MigrationSpec
from slingshot_migrate.backends import MemoryDocumentStore


def _docs(count, start=0):
    return {str(i): {"n": i, "name": f"doc-{i}"} for i in range(start, start + count)}


@pytest.fixture
def make_docs():
    """Factory for documents ``{"n": i, "name": "doc-i"}`` keyed by ``str(i)``."""
    return _docs


@pytest.fixture
def store():
    """Memory store with an empty ``target`` index."""
    memory = MemoryDocumentStore()
    memory.create_index("target")
    return memory


@pytest.fixture
def seeded_store(store):
    """Memory store with 10 documents in ``source`` and an empty ``target``."""
    store.seed("source", _docs(10))
    return store


@pytest.fixture
def make_spec():
    """Factory for migration specs from ``source`` to ``target``."""

    def factory(**overrides):
        data = {
            "source": {"index": "source", "type": "_doc"},
            "target": {"index": "target", "type": "_doc"},
        }
        data.update(overrides)
        return MigrationSpec.from_dict(data)

    return factory
