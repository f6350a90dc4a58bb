"""Result container returned by every filter call."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from ..conditions.model import LogicMode
from ..logic.errors import ValidationError


@dataclass(frozen=True)
class EvaluationResult:
    """Filtered records plus diagnostics.

    Attributes:
        matched:                Records that passed, in input order.
        per_condition_matches:  Condition index -> positions of the candidates
                                it matched.  Empty for None and Related modes.
        errors:                 Validation problems; a non-empty list means the
                                filter was not applied.
        mode:                   The logic mode that produced this result.
        postfix:                Postfix form of the custom expression, if any.
    """

    matched: list[Mapping[str, Any]]
    per_condition_matches: dict[int, frozenset[int]] = field(default_factory=dict)
    errors: list[ValidationError] = field(default_factory=list)
    mode: LogicMode = LogicMode.NONE
    postfix: str = ""

    @property
    def ok(self) -> bool:
        return not self.errors

    def __len__(self) -> int:
        return len(self.matched)
