"""
Validation package for ontograph.

This package provides validation utilities for ensuring data integrity
and type safety of graph values and their wire representations.
"""

from .base import DataclassRule, ValidationResult, validate_dataclass
from .integrity import GraphIntegrityValidator
from .schema import GRAPH_DOCUMENT_SCHEMA, GraphSchemaValidator

__all__ = [
    "ValidationResult",
    "DataclassRule",
    "validate_dataclass",
    "GraphIntegrityValidator",
    "GraphSchemaValidator",
    "GRAPH_DOCUMENT_SCHEMA",
]
