"""
Base validation components for ontograph.

This module provides the runtime type check applied to the engine's model
dataclasses. ``validate_dataclass`` wraps a dataclass ``__post_init__`` so that
every constructed instance (including copies made with ``dataclasses.replace``)
is checked against its type hints.

Supported annotations:
- Plain classes, enums and ``datetime``
- ``Optional[...]`` / ``Union[...]``
- ``List[...]``, ``Dict[..., ...]``, fixed and variadic ``Tuple[...]``
- ``Any``
"""

from dataclasses import dataclass
from datetime import datetime
from typing import (
    Any,
    Dict,
    List,
    Optional,
    Type,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)


@dataclass
class ValidationResult:
    """
    Container for validation results.

    Attributes:
        is_valid (bool): Whether the validation passed successfully
        errors (List[str]): List of validation error messages
        warnings (List[str]): List of validation warning messages
        context (Optional[Dict[str, Any]]): Additional context about the validation
    """

    is_valid: bool
    errors: List[str]
    warnings: List[str]
    context: Optional[Dict[str, Any]] = None


class DataclassRule:
    """
    Rule for validating dataclass fields against their type hints.

    Attributes:
        dataclass_type: The dataclass type to validate against
        type_hints: Resolved type hints of the dataclass
    """

    def __init__(self, dataclass_type: Type, error_message: str = ""):
        self.error_message = error_message or f"Invalid value for {dataclass_type.__name__}"
        self.dataclass_type = dataclass_type
        self.type_hints = get_type_hints(dataclass_type)

    def _validate_type(self, value: Any, expected_type: Any) -> bool:
        """Validate a value against its expected type."""
        if expected_type is Any:
            return True

        origin = get_origin(expected_type)

        if origin is Union:
            return any(self._validate_type(value, arg) for arg in get_args(expected_type))

        if expected_type is type(None):
            return value is None

        if value is None:
            return False

        if expected_type is datetime:
            return isinstance(value, datetime)

        if expected_type is float:
            # ints are accepted where floats are declared
            return isinstance(value, (int, float)) and not isinstance(value, bool)

        if origin is list:
            if not isinstance(value, list):
                return False
            args = get_args(expected_type)
            if not args:
                return True
            return all(self._validate_type(item, args[0]) for item in value)

        if origin is dict:
            if not isinstance(value, dict):
                return False
            args = get_args(expected_type)
            if len(args) != 2:
                return True
            key_type, val_type = args
            return all(
                self._validate_type(k, key_type) and self._validate_type(v, val_type)
                for k, v in value.items()
            )

        if origin is tuple:
            if not isinstance(value, tuple):
                return False
            args = get_args(expected_type)
            if not args:
                return True
            if len(args) == 2 and args[1] is Ellipsis:
                return all(self._validate_type(item, args[0]) for item in value)
            if len(args) != len(value):
                return False
            return all(self._validate_type(val, typ) for val, typ in zip(value, args))

        if origin is not None:
            try:
                return isinstance(value, origin)
            except TypeError:
                return True

        try:
            return isinstance(value, expected_type)
        except TypeError:
            return True

    def invalid_fields(self, value: Any) -> List[str]:
        """Return the names of fields whose values do not match their hints."""
        return [
            field_name
            for field_name, field_type in self.type_hints.items()
            if not self._validate_type(getattr(value, field_name), field_type)
        ]

    def validate(self, value: Any) -> bool:
        """
        Validate a dataclass instance.

        Args:
            value: Dataclass instance to validate

        Returns:
            bool: True if validation passes, False otherwise
        """
        if not isinstance(value, self.dataclass_type):
            return False
        return not self.invalid_fields(value)


def validate_dataclass(cls: Type[Any]) -> Type[Any]:
    """
    Decorator that adds runtime type checking to dataclass fields.

    The class's own ``__post_init__`` runs first so it can normalise fields;
    type hints are resolved lazily on first construction.

    Example:
        >>> @validate_dataclass
        ... @dataclass(frozen=True)
        ... class Example:
        ...     name: str
        ...     count: int
    """
    original_post_init = getattr(cls, "__post_init__", None)
    rules: Dict[str, DataclassRule] = {}

    def validated_post_init(self):
        """Validate all fields after initialization."""
        if original_post_init:
            original_post_init(self)

        rule = rules.get("rule")
        if rule is None:
            rule = rules["rule"] = DataclassRule(cls)
        invalid = rule.invalid_fields(self)
        if invalid:
            raise TypeError(f"Invalid field types in {cls.__name__}: {', '.join(invalid)}")

    cls.__post_init__ = validated_post_init
    return cls
