"""
Engine configuration for ontograph.

Configuration objects are plain classes with keyword defaults. They can be
passed to the components that use them (OntologyTraversal, ForceDirectedLayout,
ContextIndex) or built from ``ONTOGRAPH_*`` environment variables with
``EngineConfig.from_env``:

    ONTOGRAPH_MAX_DEPTH           traversal depth limit
    ONTOGRAPH_LAYOUT_WIDTH        layout canvas width
    ONTOGRAPH_LAYOUT_HEIGHT       layout canvas height
    ONTOGRAPH_LAYOUT_ITERATIONS   force-directed iterations
    ONTOGRAPH_LAYOUT_SEED         random seed for initial positions
    ONTOGRAPH_CONTEXT_TTL         default lifetime of temporary contexts (seconds)
"""

import os
from typing import Mapping, Optional, Sequence

from .core.exceptions import ConfigurationError

CAUSAL_RELATION_TYPES = ("causes", "leads_to", "results_in")
INHERITANCE_RELATION_TYPES = ("is_a", "instance_of", "subclass_of")


class TraversalConfig:
    """
    Configuration for ontology traversals.

    Attributes:
        max_depth: Default depth limit for causal and hierarchy traversals
        causal_types: Relation types followed by causal traces
        inheritance_types: Relation types followed by inheritance resolution
    """

    def __init__(
        self,
        max_depth: int = 10,
        causal_types: Sequence[str] = CAUSAL_RELATION_TYPES,
        inheritance_types: Sequence[str] = INHERITANCE_RELATION_TYPES,
    ):
        if max_depth < 0:
            raise ConfigurationError(f"max_depth must be non-negative, got {max_depth}")
        self.max_depth = max_depth
        self.causal_types = tuple(causal_types)
        self.inheritance_types = tuple(inheritance_types)


class LayoutConfig:
    """
    Configuration for force-directed layout.

    Attributes:
        width: Canvas width
        height: Canvas height
        iterations: Number of simulation steps
        node_charge: Pairwise charge; negative values push nodes apart
        spring_length: Divisor of the spring attraction along edges
        max_displacement: Per-step, per-axis movement limit
        seed: Seed for the initial random positions, None for nondeterministic
    """

    def __init__(
        self,
        width: float = 800,
        height: float = 600,
        iterations: int = 100,
        node_charge: float = -50,
        spring_length: float = 30,
        max_displacement: float = 10,
        seed: Optional[int] = None,
    ):
        if width <= 0 or height <= 0:
            raise ConfigurationError(f"Layout canvas must be positive, got {width}x{height}")
        if iterations < 0:
            raise ConfigurationError(f"iterations must be non-negative, got {iterations}")
        self.width = width
        self.height = height
        self.iterations = iterations
        self.node_charge = node_charge
        self.spring_length = spring_length
        self.max_displacement = max_displacement
        self.seed = seed


class EngineConfig:
    """
    Top-level configuration bundle.

    Attributes:
        traversal: Traversal settings
        layout: Layout settings
        temporary_context_ttl: Default lifetime in seconds of temporary contexts
    """

    def __init__(
        self,
        traversal: Optional[TraversalConfig] = None,
        layout: Optional[LayoutConfig] = None,
        temporary_context_ttl: int = 3600,
    ):
        self.traversal = traversal or TraversalConfig()
        self.layout = layout or LayoutConfig()
        self.temporary_context_ttl = temporary_context_ttl

    @staticmethod
    def _int(environ: Mapping[str, str], name: str) -> Optional[int]:
        raw = environ.get(name)
        if raw is None or raw == "":
            return None
        try:
            return int(raw)
        except ValueError as e:
            raise ConfigurationError(f"{name} must be an integer, got '{raw}'") from e

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """Create configuration from environment variables."""
        environ = os.environ if environ is None else environ

        traversal_kwargs = {}
        if (max_depth := cls._int(environ, "ONTOGRAPH_MAX_DEPTH")) is not None:
            traversal_kwargs["max_depth"] = max_depth

        layout_kwargs = {}
        for name, key in (
            ("ONTOGRAPH_LAYOUT_WIDTH", "width"),
            ("ONTOGRAPH_LAYOUT_HEIGHT", "height"),
            ("ONTOGRAPH_LAYOUT_ITERATIONS", "iterations"),
            ("ONTOGRAPH_LAYOUT_SEED", "seed"),
        ):
            if (value := cls._int(environ, name)) is not None:
                layout_kwargs[key] = value

        config = cls(
            traversal=TraversalConfig(**traversal_kwargs),
            layout=LayoutConfig(**layout_kwargs),
        )
        if (ttl := cls._int(environ, "ONTOGRAPH_CONTEXT_TTL")) is not None:
            config.temporary_context_ttl = ttl
        return config
