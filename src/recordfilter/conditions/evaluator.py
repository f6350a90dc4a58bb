"""Evaluate a single condition against one candidate record.

Missing values never raise: an absent field (or ``None``) becomes ``''`` for
string operators and ``0`` for numeric ones, so absence is compared as a
concrete empty value.  Numeric operators fail closed: if either side cannot
be read as a float the condition is False.
"""
from __future__ import annotations

import math
import re
from typing import Any

from .model import Condition, ContextField, Operator, Record

_MISSING = object()
_NUMBER_PREFIX_RE = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


def resolve_field(record: Record | None, path: str) -> Any:
    """Look up ``path`` in ``record``.

    An exact key wins; otherwise a dotted path (``owner.name``) is walked
    through nested mappings.  Returns ``None`` when nothing is found.
    """
    if record is None:
        return None
    if path in record:
        return record[path]
    node: Any = record
    for part in path.split("."):
        if not hasattr(node, "get"):
            return None
        node = node.get(part, _MISSING)
        if node is _MISSING:
            return None
    return node


def to_number(value: Any) -> float | None:
    """Parse ``value`` as a float, or return None if it is not numeric.

    Strings are read up to the end of their leading number, so
    ``"400000 EUR"`` is 400000.  Integers too large for a float become
    signed infinity.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return math.inf if value > 0 else -math.inf
    else:
        m = _NUMBER_PREFIX_RE.match(str(value))
        if m is None:
            return None
        number = float(m.group())
    if math.isnan(number):
        return None
    return number


def to_text(value: Any) -> str:
    """String coercion used by the equality and containment operators."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class ConditionEvaluator:
    """Stateless evaluator for :class:`Condition` objects.

    Usage::

        evaluator = ConditionEvaluator()
        cond = Condition(1, "price", Operator.LESS_THAN, LiteralValue(500000))
        evaluator.evaluate(cond, {"price": 400000})  # True
    """

    def comparison_value(self, condition: Condition, context: Record | None) -> Any:
        source = condition.source
        if isinstance(source, ContextField):
            return resolve_field(context, source.path)
        return source.value

    def evaluate(
        self,
        condition: Condition,
        candidate: Record,
        context: Record | None = None,
    ) -> bool:
        field_value = resolve_field(candidate, condition.target_field)
        compare_value = self.comparison_value(condition, context)
        result = self._apply(condition.operator, field_value, compare_value)
        return result != condition.negate

    def _apply(self, op: Operator, left: Any, right: Any) -> bool:
        if op.is_numeric:
            lhs = to_number(0 if left is None else left)
            rhs = to_number(0 if right is None else right)
            if lhs is None or rhs is None:
                return False
            if op is Operator.LESS_THAN:
                return lhs < rhs
            return lhs > rhs

        lhs_text = to_text("" if left is None else left)
        rhs_text = to_text("" if right is None else right)
        if op is Operator.EQUAL_TO:
            return lhs_text == rhs_text
        if op is Operator.NOT_EQUAL_TO:
            return lhs_text != rhs_text
        if op is Operator.CONTAINS:
            return rhs_text in lhs_text
        if op is Operator.NOT_CONTAINS:
            return rhs_text not in lhs_text
        raise ValueError(f"Unsupported operator: {op!r}")


def evaluate(condition: Condition, candidate: Record, context: Record | None = None) -> bool:
    """Module-level shortcut for :meth:`ConditionEvaluator.evaluate`."""
    return _default.evaluate(condition, candidate, context)


_default = ConditionEvaluator()
