#!/usr/bin/env python3
"""
Split Migration Example - One Target Document per Business Unit

Each ``sale`` document holds a ``bus`` list with one entry per business
unit. This migration writes one document per business unit to the target
index, each under its own identifier, and drops the ``br`` unit.

This example demonstrates:
1. Returning ``Many`` from a transform
2. Separate source and target clusters
3. Dry running the same transform on the memory store first

Requirements:
    pip install slingshot
"""

import logging

from slingshot_migrate import Many, MigrationOrchestrator, MigrationSpec, Skip, connect_stores
from slingshot_migrate.backends import MemoryDocumentStore

# Identifier offset of each business unit
BU_OFFSETS = {
    "fr": 0, "uk": 100000, "it": 200000, "es": 300000, "pl": 400000,
    "ch": 500000, "be": 600000, "nl": 700000, "de": 800000,
}

SPEC = {
    "source": {"index": "sale", "type": "details"},
    "target": {"index": "foo", "type": "bar"},
    "bulk": {"action": "index", "batch_size": 500},
}


def split_by_business_unit(record):
    """One document per business unit, ``id + offset`` as identifier."""
    doc = record.to_dict()
    items = []
    for sub_doc in doc.get("bus", []):
        bu = sub_doc["bu"]
        if bu not in BU_OFFSETS:
            continue
        new_id = int(doc["id"]) + BU_OFFSETS[bu]
        sub_doc = {**sub_doc, "oldId": sub_doc.get("id"), "id": new_id}
        items.append(({"id": new_id, "bus": sub_doc}, str(new_id)))
    if not items:
        return Skip("no business unit to migrate")
    return Many(items)


def dry_run():
    """Run the split against a few documents held in memory."""
    store = MemoryDocumentStore()
    store.seed("sale", {
        "1": {"id": 1, "bus": [{"bu": "fr", "id": 11}, {"bu": "de", "id": 12}, {"bu": "br", "id": 13}]},
        "2": {"id": 2, "bus": [{"bu": "br", "id": 21}]},
    })
    store.create_index("foo")

    stats = MigrationOrchestrator(store).run(MigrationSpec.from_dict(SPEC), split_by_business_unit)

    print(stats)
    for doc_id, doc in sorted(store.documents("foo").items()):
        print(f"  {doc_id}: {doc}")


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s - %(levelname)s: %(message)s")

    print("Dry run on the memory store")
    dry_run()

    source, target = connect_stores({
        "source": "http://pprod-provider:9200",
        "target": "http://localhost:9200",
    })
    try:
        stats = MigrationOrchestrator(source, target).run(
            MigrationSpec.from_dict(SPEC), split_by_business_unit
        )
        print(stats)
    finally:
        source.close()
        target.close()


if __name__ == "__main__":
    main()
