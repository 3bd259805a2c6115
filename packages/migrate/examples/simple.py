#!/usr/bin/env python3
"""
Simple Migration Example - Copy and Enrich an Index

This example demonstrates:
1. Building a MigrationSpec from a dictionary
2. Enriching every document with a transform
3. Running the migration on a single cluster
4. Reading the run statistics

Requirements:
    pip install slingshot
    A running Elasticsearch on http://localhost:9200 with a ``sale`` index
"""

import logging

from slingshot_migrate import MigrationOrchestrator, MigrationSpec, Single
from slingshot_migrate.backends import ElasticsearchStore


def enrich(record):
    """Add the ``gar`` and ``DT`` fields and drop ``foo``."""
    doc = record.to_dict()
    doc["gar"] = "default"
    doc["DT"] = doc.get("created_at")
    doc.pop("foo", None)
    return Single(doc)


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s - %(levelname)s: %(message)s")

    spec = MigrationSpec.from_dict({
        "source": {"index": "sale", "type": "details", "size": 50},
        "target": {"index": "sale_v2", "type": "details"},
        "bulk": {"action": "index", "batch_size": 500},
        "mappings": {
            "properties": {
                "gar": {"type": "keyword"},
                "DT": {"type": "date"},
            }
        },
    })

    with ElasticsearchStore({"hosts": ["http://localhost:9200"]}) as store:
        if not store.index_exists(spec.target.index):
            store.create_index(spec.target.index)
        stats = MigrationOrchestrator(store).run(spec, enrich)

    print(stats)
    if stats.has_errors:
        for error in stats.errors[:10]:
            print(f"  {error['doc_id']}: {error['reason']}")


if __name__ == "__main__":
    main()
