"""Load a curriculum dataset and print an integrity snapshot as JSON."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import List, Optional

from curriculum_engine.catalog import courses_by_subject
from curriculum_engine.config import get_settings
from curriculum_engine.graph_store import EdgeOrder, MalformedDatasetError, load_graph_store
from curriculum_engine.logging_config import configure_logging
from curriculum_engine.models import END_NODE_ID, START_NODE_ID

LOGGER = logging.getLogger("curriculum_engine.verify_dataset")


def main(argv: Optional[List[str]] = None) -> int:
    settings = get_settings()
    configure_logging(settings)
    args = sys.argv[1:] if argv is None else argv
    dataset_path = args[0] if args else settings.dataset_path
    if not dataset_path:
        LOGGER.error("Usage: verify_dataset.py <dataset.json> (or set CURRICULUM_DATASET_PATH)")
        return 2
    try:
        store = load_graph_store(dataset_path, edge_order=EdgeOrder(settings.edge_order))
    except MalformedDatasetError as exc:
        LOGGER.error("Dataset rejected: %s", exc)
        return 1

    payload = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "path": str(dataset_path),
        "nodes": store.node_count,
        "edges": store.edge_count,
        "sentinels": {
            START_NODE_ID: START_NODE_ID in store,
            END_NODE_ID: END_NODE_ID in store,
        },
        "cyclic_nodes": sorted(store.cyclic_node_ids),
        "subjects": {
            subject.value: {
                "units": len(store.nodes_by_subject(subject)),
                "courses": len(courses_by_subject(store, subject)),
                "entry_units": [node.id for node in store.entry_nodes(subject)],
            }
            for subject in store.subjects()
        },
    }
    print(json.dumps(payload))
    return 0


if __name__ == "__main__":
    sys.exit(main())
