"""Tests for property filter evaluation."""

import logging

import pytest

from ontograph.core.filters import (
    filter_by_properties,
    matches_filters,
    matches_property_filter,
    paginate,
)
from ontograph.core.models import GraphNode


def test_plain_value_is_equality():
    """A plain filter value matches by equality."""
    assert matches_property_filter("red", "red")
    assert not matches_property_filter("red", "blue")


def test_booleans_are_not_numbers():
    """True does not equal 1 and False does not equal 0."""
    assert not matches_property_filter(True, 1)
    assert not matches_property_filter(0, False)
    assert matches_property_filter(True, {"$eq": True})
    assert not matches_property_filter(1, {"$in": [True]})


def test_comparison_operators():
    """Comparison operators apply to numbers only."""
    assert matches_property_filter(30, {"$gte": 18, "$lt": 65})
    assert not matches_property_filter(70, {"$gte": 18, "$lt": 65})
    assert matches_property_filter(5, {"$gt": 4.5})
    assert matches_property_filter(5, {"$lte": 5})
    assert not matches_property_filter("30", {"$gt": 18})
    assert not matches_property_filter(True, {"$gt": 0})


def test_membership_operators():
    """$in and $nin check the value against a list operand."""
    assert matches_property_filter("b", {"$in": ["a", "b"]})
    assert not matches_property_filter("c", {"$in": ["a", "b"]})
    assert matches_property_filter("c", {"$nin": ["a", "b"]})
    assert not matches_property_filter("a", {"$in": "abc"})


def test_contains_operators():
    """Containment works on strings and sequences."""
    assert matches_property_filter("hello world", {"$contains": "lo w"})
    assert matches_property_filter(["a", "b"], {"$contains": "a"})
    assert not matches_property_filter(5, {"$contains": 5})
    assert matches_property_filter(["a", "b", "c"], {"$containsAll": ["a", "c"]})
    assert not matches_property_filter(["a", "b"], {"$containsAll": ["a", "z"]})
    assert matches_property_filter(["a", "b"], {"$containsAny": ["z", "b"]})
    assert not matches_property_filter(["a", "b"], {"$containsAny": ["y", "z"]})


def test_string_prefix_and_suffix():
    """$startsWith and $endsWith apply to strings."""
    assert matches_property_filter("ontology", {"$startsWith": "onto"})
    assert matches_property_filter("ontology", {"$endsWith": "logy"})
    assert not matches_property_filter(["onto"], {"$startsWith": "onto"})


def test_missing_property():
    """An absent property only matches filters that expect absence."""
    assert matches_property_filter(None, {"$exists": False})
    assert not matches_property_filter(None, {"$exists": True})
    assert matches_property_filter(None, {"$eq": None})
    assert matches_property_filter(None, {"$ne": "x"})
    assert matches_property_filter(None, None)
    assert not matches_property_filter(None, "x")
    assert not matches_property_filter(None, {"$gt": 1})


def test_exists_on_present_value():
    """$exists on a present value follows its operand."""
    assert matches_property_filter(0, {"$exists": True})
    assert not matches_property_filter(0, {"$exists": False})


def test_unknown_operator_fails_and_logs(caplog):
    """Unknown operators never match and are logged."""
    with caplog.at_level(logging.WARNING):
        assert not matches_property_filter(1, {"$near": 1})
    assert "Unknown query operator: $near" in caplog.text


def test_dict_without_operators_is_equality():
    """A dict filter with no $ keys is compared by equality."""
    assert matches_property_filter({"a": 1}, {"a": 1})
    assert not matches_property_filter({"a": 1}, {"a": 2})


def test_matches_filters_requires_every_filter():
    """All filters must match."""
    properties = {"age": 30, "role": "admin"}
    assert matches_filters(properties, {"age": {"$gt": 18}, "role": "admin"})
    assert not matches_filters(properties, {"age": {"$gt": 18}, "role": "user"})
    assert not matches_filters(None, {"age": 30})


def test_filter_by_properties_keeps_order():
    """Filtering keeps input order and an empty filter keeps everything."""
    nodes = [
        GraphNode(id="a", type="person", properties={"age": 40}),
        GraphNode(id="b", type="person", properties={"age": 10}),
        GraphNode(id="c", type="person", properties={"age": 25}),
    ]
    assert [n.id for n in filter_by_properties(nodes, {"age": {"$gte": 18}})] == ["a", "c"]
    assert filter_by_properties(nodes, None) == nodes
    assert filter_by_properties(nodes, {}) == nodes


def test_filter_by_properties_custom_accessor():
    """A custom accessor selects the property map."""
    items = [{"props": {"x": 1}}, {"props": {"x": 2}}]
    result = filter_by_properties(items, {"x": 2}, accessor=lambda item: item["props"])
    assert result == [{"props": {"x": 2}}]


def test_paginate():
    """Pagination slices with offset and limit."""
    items = list(range(10))
    assert paginate(items) == items
    assert paginate(items, offset=2, limit=3) == [2, 3, 4]
    assert paginate(items, limit=2) == [0, 1]
    assert paginate(items, offset=8) == [8, 9]
    with pytest.raises(ValueError):
        paginate(items, offset=-1)
    with pytest.raises(ValueError):
        paginate(items, limit=0)
