"""
JSON schema validation for serialized graphs.

This module holds the JSON schema of the graph wire document and a validator
that checks parsed JSON against it before it is turned back into a Graph value:

    {id, name, description?,
     nodes: [{id, type, label?, properties, metadata?}],
     edges: [{id, source, target, type, label?, properties, metadata?, directed}],
     directed, multigraph, properties, metadata?, createdAt, updatedAt}

Timestamps travel as ISO-8601 strings.
"""

from typing import Any, Dict

from jsonschema import ValidationError as JsonSchemaError
from jsonschema import validate as json_validate

from .base import ValidationResult

_NODE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "id": {"type": "string"},
        "type": {"type": "string"},
        "label": {"type": ["string", "null"]},
        "properties": {"type": "object"},
        "metadata": {"type": ["object", "null"]},
    },
    "required": ["id", "type"],
}

_EDGE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "id": {"type": "string"},
        "source": {"type": "string"},
        "target": {"type": "string"},
        "type": {"type": "string"},
        "label": {"type": ["string", "null"]},
        "properties": {"type": "object"},
        "metadata": {"type": ["object", "null"]},
        "directed": {"type": "boolean"},
    },
    "required": ["id", "source", "target", "type"],
}

GRAPH_DOCUMENT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "id": {"type": "string"},
        "name": {"type": "string"},
        "description": {"type": ["string", "null"]},
        "nodes": {"type": "array", "items": _NODE_SCHEMA},
        "edges": {"type": "array", "items": _EDGE_SCHEMA},
        "directed": {"type": "boolean"},
        "multigraph": {"type": "boolean"},
        "properties": {"type": "object"},
        "metadata": {"type": ["object", "null"]},
        "createdAt": {"type": "string"},
        "updatedAt": {"type": "string"},
    },
    "required": ["id", "name", "createdAt", "updatedAt"],
}


class GraphSchemaValidator:
    """
    JSON Schema-based validator for graph documents.

    Attributes:
        schema (Dict[str, Any]): JSON schema applied to every document
    """

    def __init__(self, schema: Dict[str, Any] = GRAPH_DOCUMENT_SCHEMA):
        self.schema = schema

    def validate_document(self, document: Any) -> ValidationResult:
        """
        Validate a parsed JSON document against the graph schema.

        Args:
            document: Result of ``json.loads`` on a serialized graph

        Returns:
            ValidationResult containing validation details and any errors
        """
        errors = []
        try:
            json_validate(instance=document, schema=self.schema)
        except JsonSchemaError as e:
            location = "/".join(str(part) for part in e.absolute_path) or "<root>"
            errors.append(f"Schema validation failed at {location}: {e.message}")

        return ValidationResult(
            is_valid=len(errors) == 0,
            errors=errors,
            warnings=[],
            context={"schema": "graph"},
        )
