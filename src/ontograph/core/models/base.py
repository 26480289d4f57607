"""
Core domain models base module for ontograph.

This module provides common helpers used across the graph model types:
timestamp and identifier factories plus shared validation functions.
"""

import uuid
from datetime import datetime, timezone

from ...utils.validation.base import validate_dataclass


def utc_now() -> datetime:
    """Current instant as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Generate a random identifier for graphs, nodes and edges."""
    return str(uuid.uuid4())


def validate_non_empty(name: str, value: str) -> None:
    """Validate that a string field is not blank."""
    if isinstance(value, str) and not value.strip():
        raise ValueError(f"{name} must be a non-empty string")


def validate_date_order(created_at: datetime, updated_at: datetime) -> None:
    """Validate that updated_at is not before created_at."""
    if updated_at < created_at:
        raise ValueError("updated_at cannot be before created_at")


__all__ = [
    "utc_now",
    "new_id",
    "validate_dataclass",
    "validate_non_empty",
    "validate_date_order",
]
