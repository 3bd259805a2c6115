"""Document store backend implementations."""

from .elasticsearch import ElasticsearchStore, ElasticsearchStoreConfig
from .memory import MemoryDocumentStore

BACKENDS = {
    "elasticsearch": ElasticsearchStore,
    "es": ElasticsearchStore,  # Alias
    "memory": MemoryDocumentStore,
    "mem": MemoryDocumentStore,  # Alias
}

__all__ = [
    "BACKENDS",
    "ElasticsearchStore",
    "ElasticsearchStoreConfig",
    "MemoryDocumentStore",
]
