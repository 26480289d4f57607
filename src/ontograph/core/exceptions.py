"""
Custom exceptions for the ontograph engine.

This module defines the hierarchy of custom exceptions used throughout the engine
to handle various error conditions in a structured and meaningful way. Each exception
type corresponds to a specific category of errors that may occur during graph or
context operations.

Client-side failures (bad input, unknown ids, protected resources) derive from
ValidationError, ResourceNotFoundError and ProtectedResourceError. Failures raised
by a context executor are wrapped in OperationExecutionError.
"""

from typing import Optional


class ValidationError(Exception):
    """
    Raised when data validation fails.

    This exception is raised when input data fails to meet the structural
    requirements of the graph or of a wire format.

    Examples:
        * Edge endpoint missing from the graph
        * Duplicate edge in a non-multigraph
        * Merging an empty list of graphs
        * Malformed JSON or CSV input
    """

    def __str__(self) -> str:
        """Format validation error message."""
        return f"Validation Error: {super().__str__()}"


class MissingEndpointError(ValidationError):
    """
    Raised when an edge references a node that is not in the graph.

    Attributes:
        edge_id: Id of the rejected edge
        node_id: The endpoint id that could not be resolved
    """

    def __init__(self, message: str, edge_id: Optional[str] = None, node_id: Optional[str] = None):
        super().__init__(message)
        self.edge_id = edge_id
        self.node_id = node_id


class DuplicateEdgeError(ValidationError):
    """
    Raised when a non-multigraph already holds an edge with the same
    (source, target, type) triple.
    """


class GraphOperationError(Exception):
    """
    Raised when graph operations fail.

    This exception is raised when operations on the graph structure
    encounter errors that are not caused by caller input.

    Examples:
        * Layout strategy failures
        * Graph integrity violations detected after the fact
    """

    def __str__(self) -> str:
        """Format graph operation error message."""
        return f"Graph Operation Error: {super().__str__()}"


class ResourceNotFoundError(Exception):
    """
    Raised when a requested resource is not found.

    This exception is raised when attempting to access or operate on a
    resource that does not exist.

    Examples:
        * Graph not found
        * Node not found
        * Context not found
    """


class GraphNotFoundError(ResourceNotFoundError):
    """Raised when a graph id is unknown to the graph store."""


class NodeNotFoundError(ResourceNotFoundError):
    """
    Raised when a requested node is not found.

    Examples:
        * Node lookup by non-existent ID
        * Adjacency query for a missing node
    """


class EdgeNotFoundError(ResourceNotFoundError):
    """
    Raised when a requested edge is not found.

    Examples:
        * Edge lookup by non-existent ID
    """


class ContextNotFoundError(ResourceNotFoundError):
    """Raised when a context id is unknown to the context index."""


class ProtectedResourceError(Exception):
    """
    Raised when attempting to mutate or delete a protected resource.

    The system context created by every ContextIndex is protected; any
    update, membership change or deletion against it raises this error.
    """


class OperationExecutionError(Exception):
    """
    Raised when a context-type executor fails.

    The original exception message is preserved as the message of this error
    and the original exception is chained as ``__cause__``.

    Attributes:
        operation: Name of the operation that failed
        context_id: Id of the context the operation ran in
    """

    def __init__(self, message: str, operation: str = "", context_id: str = ""):
        super().__init__(message)
        self.operation = operation
        self.context_id = context_id


class ConfigurationError(Exception):
    """
    Raised when configuration is invalid.

    Examples:
        * Non-numeric environment override
        * Negative traversal depth
    """
