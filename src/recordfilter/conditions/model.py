"""Condition data model: operators, comparison sources, logic modes.

A :class:`Condition` is one field-comparison rule.  Its ``index`` is the
1-based position used by custom logic strings, so within a condition set the
indices must form ``1..N`` with no gaps or duplicates.  Callers that delete a
condition are expected to renumber the rest (see ``codec.remove_condition``).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Sequence, Union

Record = Mapping[str, Any]
RecordId = int


class ConditionIndexError(ValueError):
    """Condition indices are not a permutation of ``1..N``."""


class Operator(str, Enum):
    LESS_THAN = "lessThan"
    GREATER_THAN = "greaterThan"
    EQUAL_TO = "equalTo"
    CONTAINS = "contains"
    NOT_CONTAINS = "notContains"
    NOT_EQUAL_TO = "notEqualTo"

    @property
    def label(self) -> str:
        """Display label shown in filter builders (e.g. ``Less Than``)."""
        return _OPERATOR_LABELS[self]

    @property
    def is_numeric(self) -> bool:
        return self in (Operator.LESS_THAN, Operator.GREATER_THAN)

    @classmethod
    def parse(cls, raw: str) -> "Operator":
        """Accept a wire value (``notEqualTo``) or a label (``Not Equal To``)."""
        text = raw.strip()
        for op in cls:
            if text == op.value or text.lower() == op.label.lower():
                return op
        raise ValueError(f"Unknown operator: {raw!r}")


_OPERATOR_LABELS: dict[Operator, str] = {
    Operator.LESS_THAN: "Less Than",
    Operator.GREATER_THAN: "Greater Than",
    Operator.EQUAL_TO: "Equal To",
    Operator.CONTAINS: "Contains",
    Operator.NOT_CONTAINS: "Not Contains",
    Operator.NOT_EQUAL_TO: "Not Equal To",
}


class LogicMode(str, Enum):
    """How per-condition results are combined."""

    ALL = "all"
    ANY = "any"
    CUSTOM = "custom"
    RELATED = "related"
    NONE = "none"

    @property
    def label(self) -> str:
        return _MODE_LABELS[self]

    @classmethod
    def from_code(cls, raw: str) -> "LogicMode":
        """Resolve a stored code (``custom``) or a UI label (``Related List``)."""
        text = raw.strip().lower()
        for mode in cls:
            if text == mode.value or text == mode.label.lower():
                return mode
        raise ValueError(f"Unknown logic mode: {raw!r}")


_MODE_LABELS: dict[LogicMode, str] = {
    LogicMode.ALL: "All Condition Are Met",
    LogicMode.ANY: "Any Condition Is Met",
    LogicMode.CUSTOM: "Custom Logic Is Met",
    LogicMode.RELATED: "Related List",
    LogicMode.NONE: "None",
}


# ---------------------------------------------------------------------------
# Comparison sources
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LiteralValue:
    """A constant comparison value."""

    value: Any


@dataclass(frozen=True)
class ContextField:
    """A comparison value read from the context record at evaluation time."""

    path: str


ComparisonSource = Union[LiteralValue, ContextField]


@dataclass(frozen=True)
class Condition:
    """One comparison rule.

    Attributes:
        index:         1-based position, referenced by custom logic strings.
        target_field:  Attribute path on the candidate record.
        operator:      Comparison to apply.
        source:        Literal value or context-record field to compare with.
        negate:        Invert the operator result.
    """

    index: int
    target_field: str
    operator: Operator
    source: ComparisonSource = field(default_factory=lambda: LiteralValue(""))
    negate: bool = False

    def describe(self) -> str:
        if isinstance(self.source, ContextField):
            rhs = f"@{self.source.path}"
        else:
            rhs = repr(self.source.value)
        prefix = "NOT " if self.negate else ""
        return f"{self.index}: {prefix}{self.target_field} {self.operator.label} {rhs}"


def check_indices(conditions: Sequence[Condition]) -> None:
    """Raise :class:`ConditionIndexError` unless indices are exactly ``1..N``."""
    indices = sorted(c.index for c in conditions)
    expected = list(range(1, len(conditions) + 1))
    if indices != expected:
        raise ConditionIndexError(
            f"Condition indices must be 1..{len(conditions)} without gaps "
            f"or duplicates, got {indices}"
        )
