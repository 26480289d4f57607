"""
Context-type operation executors.

ContextIndex.execute_operation dispatches to the executor registered for the
context's type, falling back to GenericExecutor. Executors are plain objects
with an ``execute(context, operation, params)`` method returning a result
dict; any exception they raise is recorded by the index and re-raised as
OperationExecutionError.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List

from .models import Context

logger = logging.getLogger(__name__)


class ContextExecutor(ABC):
    """Interface for operations executed inside a context."""

    @abstractmethod
    def execute(self, context: Context, operation: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Run ``operation`` with ``params`` in ``context``."""


class GenericExecutor(ContextExecutor):
    """Echoes the parameters back as the operation result."""

    def execute(self, context: Context, operation: str, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"operation": operation, "result": params}


class EvaluationExecutor(ContextExecutor):
    """
    Checks parameters against the numeric rules of an evaluation context.

    Rules live in ``context.properties["rules"]``. A numeric rule ``min_<key>``
    requires ``params[key] >= value``, ``max_<key>`` requires
    ``params[key] <= value`` and a plain ``<key>`` is a minimum threshold on
    ``params[key]``. Rules whose parameter is absent or not numeric are not
    checked.
    """

    @staticmethod
    def _is_number(value: Any) -> bool:
        return isinstance(value, (int, float)) and not isinstance(value, bool)

    def execute(self, context: Context, operation: str, params: Dict[str, Any]) -> Dict[str, Any]:
        rules = context.properties.get("rules") or {}
        checked: List[str] = []
        failures: List[str] = []

        for rule, threshold in rules.items():
            if not self._is_number(threshold):
                continue
            if rule.startswith("max_"):
                key, check = rule[4:], lambda value, limit: value <= limit
            elif rule.startswith("min_"):
                key, check = rule[4:], lambda value, limit: value >= limit
            else:
                key, check = rule, lambda value, limit: value >= limit
            value = params.get(key)
            if not self._is_number(value):
                continue
            checked.append(rule)
            if not check(value, threshold):
                failures.append(f"{key}={value} violates {rule}={threshold}")

        return {
            "operation": operation,
            "valid": not failures,
            "rules": rules,
            "checked": checked,
            "failures": failures,
        }


class VisualizationExecutor(ContextExecutor):
    """Produces render options: the context's view options overlaid by params."""

    def execute(self, context: Context, operation: str, params: Dict[str, Any]) -> Dict[str, Any]:
        view_options = context.properties.get("view_options") or {}
        return {"operation": operation, "render_options": {**view_options, **params}}


class DomainExecutor(ContextExecutor):
    """Runs an operation inside the context's domain."""

    def execute(self, context: Context, operation: str, params: Dict[str, Any]) -> Dict[str, Any]:
        domain = context.domain or "unknown"
        logger.debug(f"Executing {operation} in domain {domain}")
        return {
            "operation": operation,
            "domain": domain,
            "result": f"{operation} executed in domain {domain}",
        }


def default_executors() -> Dict[str, ContextExecutor]:
    """Executors registered by every new ContextIndex, keyed by context type."""
    return {
        "evaluation": EvaluationExecutor(),
        "visualization": VisualizationExecutor(),
        "domain": DomainExecutor(),
    }
