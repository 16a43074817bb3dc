"""Process-wide holder for the active curriculum graph."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from threading import RLock
from typing import Optional, Union

from .config import get_settings
from .graph_store import EdgeOrder, GraphStore, load_graph_store
from .telemetry import GRAPH_STORE_SWAPPED, emit_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _RegistryEntry:
    store: GraphStore
    source: Optional[str]
    installed_at: datetime


class GraphRegistry:
    """Holds one GraphStore reference; reloads build a new store and swap it in."""

    def __init__(self) -> None:
        self._entry: Optional[_RegistryEntry] = None
        self._lock = RLock()

    def get(self) -> GraphStore:
        entry = self._entry
        if entry is not None:
            return entry.store
        with self._lock:
            if self._entry is None:
                dataset_path = get_settings().dataset_path
                if not dataset_path:
                    raise RuntimeError(
                        "No curriculum dataset configured; set CURRICULUM_DATASET_PATH or call install()."
                    )
                self._install(self._build(dataset_path), source=dataset_path)
            return self._entry.store  # type: ignore[union-attr]

    def install(self, store: GraphStore, *, source: Optional[str] = None) -> GraphStore:
        with self._lock:
            self._install(store, source=source)
        return store

    def reload(self, path: Optional[Union[str, Path]] = None) -> GraphStore:
        """Build a fresh store from disk; the previous one stays active if loading fails."""
        dataset_path = str(path) if path is not None else get_settings().dataset_path
        if not dataset_path:
            raise RuntimeError("No curriculum dataset path provided for reload.")
        store = self._build(dataset_path)
        return self.install(store, source=dataset_path)

    def installed_at(self) -> Optional[datetime]:
        entry = self._entry
        return entry.installed_at if entry else None

    def clear(self) -> None:
        with self._lock:
            self._entry = None

    @staticmethod
    def _build(dataset_path: Union[str, Path]) -> GraphStore:
        return load_graph_store(dataset_path, edge_order=EdgeOrder(get_settings().edge_order))

    def _install(self, store: GraphStore, *, source: Optional[str]) -> None:
        previous = self._entry
        self._entry = _RegistryEntry(store=store, source=source, installed_at=datetime.now(timezone.utc))
        if previous is not None:
            logger.info("Swapped curriculum graph (%d -> %d nodes)", previous.store.node_count, store.node_count)
            emit_event(
                GRAPH_STORE_SWAPPED,
                source=source,
                previous_node_count=previous.store.node_count,
                node_count=store.node_count,
            )


graph_registry = GraphRegistry()


def get_graph_store() -> GraphStore:
    return graph_registry.get()


__all__ = ["GraphRegistry", "get_graph_store", "graph_registry"]
