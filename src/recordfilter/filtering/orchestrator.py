"""Top-level filter entry point: selects a logic mode and drives the engine.

The orchestrator is stateless: each call builds one match-set per condition,
combines them for the requested mode and returns a fresh
:class:`EvaluationResult`.  A rejected custom expression never hides
records: the full candidate list comes back together with the error.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Sequence

from ..conditions.evaluator import ConditionEvaluator, resolve_field, to_text
from ..conditions.model import Condition, LogicMode, Record, check_indices
from ..config import settings
from ..logic.combiner import LogicCombiner
from ..logic.parser import parse
from .result import EvaluationResult

logger = logging.getLogger(__name__)


class FilterOrchestrator:
    """Filter a candidate collection against a condition set.

    Usage::

        orchestrator = FilterOrchestrator()
        result = orchestrator.filter(
            listings,
            conditions,
            LogicMode.CUSTOM,
            context=inquiry,
            custom_expression="1 AND (2 OR 3)",
        )
        if not result.ok:
            show_error(result.errors[0].message)
        display(result.matched)
    """

    def __init__(
        self,
        evaluator: ConditionEvaluator | None = None,
        combiner: LogicCombiner | None = None,
        related_field: str | None = None,
    ) -> None:
        self._evaluator = evaluator or ConditionEvaluator()
        self._combiner = combiner or LogicCombiner()
        self.related_field = related_field or settings.related_field

    def match_sets(
        self,
        candidates: Sequence[Record],
        conditions: Sequence[Condition],
        context: Record | None = None,
    ) -> dict[int, frozenset[int]]:
        """Map each condition index to the positions of the candidates it matches."""
        sets: dict[int, frozenset[int]] = {}
        for cond in conditions:
            sets[cond.index] = frozenset(
                pos for pos, record in enumerate(candidates)
                if self._evaluator.evaluate(cond, record, context)
            )
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("Condition %s matched %d/%d", cond.describe(),
                             len(sets[cond.index]), len(candidates))
        return sets

    def _is_related(self, record: Record, anchor: Any) -> bool:
        # Compared as text so a "42" anchor matches a numeric 42 key
        key = resolve_field(record, self.related_field)
        return key is not None and to_text(key) == to_text(anchor)

    def filter(
        self,
        candidates: Iterable[Record],
        conditions: Sequence[Condition],
        mode: LogicMode | str,
        context: Record | None = None,
        custom_expression: str | None = None,
        related_anchor_id: Any = None,
    ) -> EvaluationResult:
        """Apply ``conditions`` to ``candidates`` under ``mode``.

        Raises:
            ConditionIndexError: condition indices are not exactly ``1..N``.
            ValueError: unknown mode, or Related mode without an anchor id.
        """
        records = list(candidates)
        if not isinstance(mode, LogicMode):
            mode = LogicMode.from_code(mode)

        if mode is LogicMode.NONE:
            return EvaluationResult(matched=records, mode=mode)

        if mode is LogicMode.RELATED:
            if related_anchor_id is None:
                raise ValueError("Related mode requires related_anchor_id")
            matched = [r for r in records if self._is_related(r, related_anchor_id)]
            return EvaluationResult(matched=matched, mode=mode)

        check_indices(conditions)
        if not conditions:
            logger.debug("No conditions for %s mode; returning all candidates", mode.value)
            return EvaluationResult(matched=records, mode=mode)

        sets = self.match_sets(records, conditions, context)

        if mode is LogicMode.ALL:
            keep = self._combiner.combine_all(sets, range(len(records)))
            postfix = ""
        elif mode is LogicMode.ANY:
            keep = self._combiner.combine_any(sets)
            postfix = ""
        else:
            parsed = parse(custom_expression, len(conditions))
            if parsed.error is not None:
                return EvaluationResult(
                    matched=records,
                    per_condition_matches=sets,
                    errors=[parsed.error],
                    mode=mode,
                )
            keep = self._combiner.combine_rpn(parsed.rpn, sets)
            postfix = parsed.postfix()

        matched = [r for pos, r in enumerate(records) if pos in keep]
        logger.debug("%s mode kept %d of %d candidates", mode.value, len(matched), len(records))
        return EvaluationResult(
            matched=matched,
            per_condition_matches=sets,
            mode=mode,
            postfix=postfix,
        )


def filter_records(
    candidates: Iterable[Record],
    conditions: Sequence[Condition],
    mode: LogicMode | str,
    context: Record | None = None,
    custom_expression: str | None = None,
    related_anchor_id: Any = None,
) -> EvaluationResult:
    """Module-level shortcut using a default :class:`FilterOrchestrator`."""
    return FilterOrchestrator().filter(
        candidates, conditions, mode,
        context=context,
        custom_expression=custom_expression,
        related_anchor_id=related_anchor_id,
    )
