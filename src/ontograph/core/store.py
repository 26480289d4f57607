"""
In-memory graph registry.

GraphStore keeps the current version of every graph by id. Graph values are
immutable, so the store only swaps references: ``update`` reads the current
graph, applies a copy-on-write function from ``ontograph.core.graph`` and
stores the result, all under one lock so concurrent writers are serialised.
"""

import logging
from threading import RLock
from typing import Any, Callable, Dict, List, Optional

from .exceptions import GraphNotFoundError
from .models import Graph

logger = logging.getLogger(__name__)


class GraphStore:
    """
    Thread-safe registry of graphs keyed by id.

    Attributes:
        _graphs (Dict[str, Graph]): Current graph per id
        _lock (RLock): Lock guarding ``_graphs``
    """

    def __init__(self):
        self._graphs: Dict[str, Graph] = {}
        self._lock = RLock()

    def save(self, graph: Graph) -> Graph:
        """Store a graph, replacing any previous version with the same id."""
        with self._lock:
            self._graphs[graph.id] = graph
        logger.debug(f"Saved graph {graph.id}")
        return graph

    def find(self, graph_id: str) -> Optional[Graph]:
        """Get a graph by id, or None."""
        with self._lock:
            return self._graphs.get(graph_id)

    def get(self, graph_id: str) -> Graph:
        """
        Get a graph by id.

        Raises:
            GraphNotFoundError: If no graph with this id is stored
        """
        graph = self.find(graph_id)
        if graph is None:
            raise GraphNotFoundError(f"Graph '{graph_id}' not found")
        return graph

    def delete(self, graph_id: str) -> bool:
        """Remove a graph. Returns False when the id was unknown."""
        with self._lock:
            removed = self._graphs.pop(graph_id, None) is not None
        if removed:
            logger.debug(f"Deleted graph {graph_id}")
        return removed

    def list_graphs(self) -> List[Graph]:
        """Get every stored graph in insertion order."""
        with self._lock:
            return list(self._graphs.values())

    def update(self, graph_id: str, fn: Callable[..., Graph], *args: Any, **kwargs: Any) -> Graph:
        """
        Apply a copy-on-write function to a stored graph.

        Example:
            >>> store.update(graph.id, add_node, GraphNode(id="a", type="concept"))

        Raises:
            GraphNotFoundError: If no graph with this id is stored
        """
        with self._lock:
            updated = fn(self.get(graph_id), *args, **kwargs)
            if updated.id != graph_id:
                raise ValueError(f"Update of graph {graph_id} returned graph {updated.id}")
            self._graphs[graph_id] = updated
            return updated

    def __contains__(self, graph_id: object) -> bool:
        with self._lock:
            return graph_id in self._graphs

    def __len__(self) -> int:
        with self._lock:
            return len(self._graphs)
