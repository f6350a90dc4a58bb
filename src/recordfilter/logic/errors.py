"""Validation errors reported (never raised) for custom logic strings."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    EMPTY_OR_MALFORMED = "EmptyOrMalformedExpression"
    INDEX_OUT_OF_RANGE = "IndexOutOfRange"
    INCOMPLETE_COVERAGE = "IncompleteCoverage"
    UNBALANCED_PARENTHESES = "UnbalancedParentheses"
    OPERATOR_PLACEMENT = "OperatorPlacementError"


@dataclass(frozen=True)
class ValidationError:
    """A user-facing problem with a custom logic expression.

    Attributes:
        kind:      Which validation stage rejected the expression.
        message:   Human-readable text suitable for a toast or input hint.
        position:  Character offset of the offending token, when known.
        indices:   Condition indices involved (out of range or missing).
    """

    kind: ErrorKind
    message: str
    position: int | None = None
    indices: tuple[int, ...] = ()

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class LogicConsistencyError(RuntimeError):
    """A postfix sequence did not reduce to exactly one set.

    The parser guarantees well-formed postfix output, so this signals a bug
    in the caller or the parser rather than bad user input.
    """
