#!/usr/bin/env python3
"""
Filtered Copy Example - Copy Unpublished Sales to Another Cluster

This example demonstrates:
1. Filtering the source with a query
2. Copying between two clusters with ``identity``
3. Making a criteria rewrite re-runnable with ``versioned``

Requirements:
    pip install slingshot
"""

import logging

from slingshot_migrate import MigrationOrchestrator, MigrationSpec, Single, connect_stores
from slingshot_migrate.transforms import identity, versioned

UNPUBLISHED = {
    "nested": {
        "path": "bus",
        "query": {"bool": {"must_not": {"match": {"bus.active": "published"}}}},
    }
}


def rename_criteria(record):
    """Rewrite ``_c.de`` criteria keys to ``_c_de``."""
    doc = record.to_dict()
    doc["criteria"] = {key.replace(".", "_"): value for key, value in doc.get("criteria", {}).items()}
    return Single(doc)


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s - %(levelname)s: %(message)s")

    source, target = connect_stores({
        "source": "http://recette-provider:9200",
        "target": "http://localhost:9200",
    })
    try:
        # 1. plain copy of unpublished sales
        copy_spec = MigrationSpec.from_dict({
            "source": {"index": "sale", "type": "details", "size": 50},
            "target": {"index": "sale", "type": "details"},
            "bulk": {"batch_size": 500},
            "query": UNPUBLISHED,
        })
        print(MigrationOrchestrator(source, target).run(copy_spec, identity))

        # 2. in-place criteria rewrite on the target, safe to run twice
        rewrite_spec = MigrationSpec.from_dict({
            "source": {"index": "sale", "type": "details"},
            "target": {"index": "sale", "type": "details"},
            "bulk": {"batch_size": 500},
        })
        rewrite = versioned({"code": 1, "label": "Rename _c.de criteria to _c_de"}, rename_criteria)
        print(MigrationOrchestrator(target).run(rewrite_spec, rewrite))
    finally:
        source.close()
        target.close()


if __name__ == "__main__":
    main()
