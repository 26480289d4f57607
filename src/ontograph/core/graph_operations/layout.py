"""Graph layout functionality.

Layouts compute 2D coordinates for visualisation and write them into the
``x`` / ``y`` properties of every node. The force-directed strategy is a
plain O(iterations * n^2) simulation; other strategies (for example a
Barnes-Hut approximation for large graphs) can be plugged in by implementing
``LayoutStrategy``.
"""

import logging
import math
import random
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from ...config import LayoutConfig
from ..models import Graph, utc_now

logger = logging.getLogger(__name__)

Position = Tuple[float, float]


class LayoutStrategy(ABC):
    """Interface for layout algorithms."""

    name: str = "layout"

    @abstractmethod
    def compute_positions(self, graph: Graph) -> Dict[str, Position]:
        """Compute a position for every node of the graph."""

    def layout_properties(self) -> Dict[str, object]:
        """Describe the layout in the graph's ``layout`` property."""
        return {"type": self.name}

    def apply(self, graph: Graph) -> Graph:
        """
        Apply the layout to a graph.

        Returns:
            A new graph whose nodes carry ``x`` and ``y`` properties and whose
            properties carry a ``layout`` description
        """
        positions = self.compute_positions(graph)
        nodes = tuple(
            replace(
                node,
                properties={
                    **node.properties,
                    "x": positions[node.id][0],
                    "y": positions[node.id][1],
                },
            )
            for node in graph.nodes
        )
        now = utc_now()
        layout = {**self.layout_properties(), "applied": now.isoformat()}
        return replace(
            graph,
            nodes=nodes,
            properties={**graph.properties, "layout": layout},
            updated_at=max(now, graph.created_at),
        )


class ForceDirectedLayout(LayoutStrategy):
    """
    Force-directed layout with pairwise repulsion and edge springs.

    Each iteration:
    - every node pair repels with magnitude |node_charge| / d^2 (a positive
      charge attracts instead)
    - every edge pulls its endpoints together with magnitude d / spring_length
    - each node moves by its net force, clamped per axis to max_displacement,
      then is clamped to the canvas
    """

    name = "force-directed"

    def __init__(self, config: Optional[LayoutConfig] = None):
        self.config = config or LayoutConfig()

    def _initial_positions(self, graph: Graph) -> Dict[str, List[float]]:
        rng = random.Random(self.config.seed)
        return {
            node.id: [rng.random() * self.config.width, rng.random() * self.config.height]
            for node in graph.nodes
        }

    def _step(self, graph: Graph, positions: Dict[str, List[float]]) -> None:
        config = self.config
        forces = {node_id: [0.0, 0.0] for node_id in positions}
        node_ids = list(positions)

        for i, first in enumerate(node_ids):
            x1, y1 = positions[first]
            for second in node_ids[i + 1 :]:
                x2, y2 = positions[second]
                dx, dy = x2 - x1, y2 - y1
                distance = math.hypot(dx, dy) or 0.1
                force = config.node_charge / (distance * distance)
                fx, fy = force * dx / distance, force * dy / distance
                # negative charge pushes first away from second
                forces[first][0] += fx
                forces[first][1] += fy
                forces[second][0] -= fx
                forces[second][1] -= fy

        for edge in graph.edges:
            if edge.source not in positions or edge.target not in positions:
                continue
            sx, sy = positions[edge.source]
            tx, ty = positions[edge.target]
            dx, dy = tx - sx, ty - sy
            distance = math.hypot(dx, dy) or 0.1
            force = distance / config.spring_length
            fx, fy = force * dx / distance, force * dy / distance
            forces[edge.source][0] += fx
            forces[edge.source][1] += fy
            forces[edge.target][0] -= fx
            forces[edge.target][1] -= fy

        limit = config.max_displacement
        for node_id, position in positions.items():
            fx, fy = forces[node_id]
            position[0] += max(-limit, min(limit, fx))
            position[1] += max(-limit, min(limit, fy))
            position[0] = max(0.0, min(config.width, position[0]))
            position[1] = max(0.0, min(config.height, position[1]))

    def compute_positions(self, graph: Graph) -> Dict[str, Position]:
        positions = self._initial_positions(graph)
        for _ in range(self.config.iterations):
            self._step(graph, positions)
        logger.debug(
            f"Force-directed layout of {len(positions)} nodes after "
            f"{self.config.iterations} iterations"
        )
        return {node_id: (x, y) for node_id, (x, y) in positions.items()}

    def layout_properties(self) -> Dict[str, object]:
        return {
            "type": self.name,
            "width": self.config.width,
            "height": self.config.height,
            "iterations": self.config.iterations,
        }


def apply_force_directed_layout(
    graph: Graph,
    width: float = 800,
    height: float = 600,
    iterations: int = 100,
    node_charge: float = -50,
    seed: Optional[int] = None,
) -> Graph:
    """Lay out a graph with the force-directed strategy."""
    config = LayoutConfig(
        width=width,
        height=height,
        iterations=iterations,
        node_charge=node_charge,
        seed=seed,
    )
    return ForceDirectedLayout(config).apply(graph)
