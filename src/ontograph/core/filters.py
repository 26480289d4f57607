"""
Property filter evaluation for nodes, edges and contexts.

A property filter maps property names to either a plain value (equality) or
an operator document:

    {"age": {"$gte": 18, "$lt": 65}, "tags": {"$containsAny": ["a", "b"]}}

Supported operators: $eq, $ne, $gt, $gte, $lt, $lte, $in, $nin, $exists,
$contains, $containsAll, $containsAny, $startsWith, $endsWith.

Filters are total functions: malformed operands and unknown operators make the
predicate fail (unknown operators are logged) but never raise.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

PropertyAccessor = Callable[[Any], Optional[Mapping[str, Any]]]

_SEQUENCE_TYPES = (list, tuple, set, frozenset)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _equals(left: Any, right: Any) -> bool:
    """Equality that keeps booleans distinct from 0 and 1."""
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


def _contains(container: Any, item: Any) -> bool:
    return any(_equals(member, item) for member in container)


def _is_operator_document(spec: Any) -> bool:
    return isinstance(spec, Mapping) and any(
        isinstance(key, str) and key.startswith("$") for key in spec
    )


def _evaluate_operator(value: Any, op: str, operand: Any) -> bool:
    """Evaluate a single operator against a non-null property value."""
    if op == "$eq":
        return _equals(value, operand)
    if op == "$ne":
        return not _equals(value, operand)
    if op in ("$gt", "$gte", "$lt", "$lte"):
        if not (_is_number(value) and _is_number(operand)):
            return False
        if op == "$gt":
            return value > operand
        if op == "$gte":
            return value >= operand
        if op == "$lt":
            return value < operand
        return value <= operand
    if op == "$in":
        return isinstance(operand, _SEQUENCE_TYPES) and _contains(operand, value)
    if op == "$nin":
        return isinstance(operand, _SEQUENCE_TYPES) and not _contains(operand, value)
    if op == "$exists":
        return bool(operand)
    if op == "$contains":
        if isinstance(value, str):
            return isinstance(operand, str) and operand in value
        if isinstance(value, _SEQUENCE_TYPES):
            return _contains(value, operand)
        return False
    if op in ("$containsAll", "$containsAny"):
        if not (isinstance(value, _SEQUENCE_TYPES) and isinstance(operand, _SEQUENCE_TYPES)):
            return False
        check = all if op == "$containsAll" else any
        return check(_contains(value, item) for item in operand)
    if op == "$startsWith":
        return isinstance(value, str) and isinstance(operand, str) and value.startswith(operand)
    if op == "$endsWith":
        return isinstance(value, str) and isinstance(operand, str) and value.endswith(operand)

    logger.warning(f"Unknown query operator: {op}")
    return False


def matches_property_filter(value: Any, spec: Any) -> bool:
    """
    Check if a property value matches a filter value.

    Args:
        value: The property value to check (``None`` when the property is absent)
        spec: Plain value for equality, or an operator document

    Returns:
        True if the property matches the filter, False otherwise
    """
    if value is None:
        if _is_operator_document(spec):
            if "$exists" in spec:
                return not spec["$exists"]
            if "$eq" in spec:
                return spec["$eq"] is None
            if "$ne" in spec:
                return spec["$ne"] is not None
        return spec is None

    if _is_operator_document(spec):
        for op, operand in spec.items():
            if not (isinstance(op, str) and op.startswith("$")):
                continue
            if not _evaluate_operator(value, op, operand):
                return False
        return True

    return _equals(value, spec)


def default_properties(item: Any) -> Optional[Mapping[str, Any]]:
    """Property accessor for objects exposing a ``properties`` attribute."""
    return getattr(item, "properties", None)


def matches_filters(properties: Optional[Mapping[str, Any]], filters: Dict[str, Any]) -> bool:
    """
    Check if a property map matches all given filters.

    Args:
        properties: Property map of the item, or None when it has none
        filters: Dictionary of property names and filter values

    Returns:
        True if every filter matches, False otherwise
    """
    if properties is None:
        return False
    return all(matches_property_filter(properties.get(key), spec) for key, spec in filters.items())


def filter_by_properties(
    items: Iterable[T],
    filters: Optional[Dict[str, Any]],
    accessor: PropertyAccessor = default_properties,
) -> List[T]:
    """
    Filter items by property filters.

    Args:
        items: Items to filter
        filters: Property filters to apply; ``None`` or empty keeps every item
        accessor: Function returning the property map of an item

    Returns:
        Items whose property maps match every filter, in input order
    """
    if not filters:
        return list(items)
    return [item for item in items if matches_filters(accessor(item), filters)]


def paginate(items: List[T], offset: Optional[int] = None, limit: Optional[int] = None) -> List[T]:
    """
    Slice a result list.

    Raises:
        ValueError: If offset is negative or limit is smaller than one
    """
    if offset is None and limit is None:
        return items
    offset = offset or 0
    if offset < 0:
        raise ValueError("Offset must be non-negative")
    if limit is not None and limit < 1:
        raise ValueError("Limit must be positive")
    end = offset + limit if limit is not None else None
    return items[offset:end]
