"""Combine per-condition match-sets with set algebra.

Each condition contributes the set of record ids it matched.  ``AND`` is
intersection and ``OR`` is union, so sub-expressions never re-scan the
candidate collection.
"""
from __future__ import annotations

import logging
from typing import AbstractSet, Iterable, Mapping, Sequence

from .errors import LogicConsistencyError
from .parser import Token, TokenKind

logger = logging.getLogger(__name__)

MatchSets = Mapping[int, AbstractSet[int]]


def combine_all(matches: MatchSets, universe: Iterable[int]) -> frozenset[int]:
    """Intersection of every match-set; no conditions yields ``universe``."""
    result = frozenset(universe)
    for ids in matches.values():
        result = result.intersection(ids)
    return result


def combine_any(matches: MatchSets) -> frozenset[int]:
    """Union of every match-set; no conditions yields the empty set."""
    result: frozenset[int] = frozenset()
    for ids in matches.values():
        result = result.union(ids)
    return result


def combine_rpn(rpn: Sequence[Token], matches: MatchSets) -> frozenset[int]:
    """Reduce a postfix token sequence to a single set of record ids.

    Raises:
        LogicConsistencyError: the sequence references an unknown index,
            underflows the stack, or leaves other than one set behind.
    """
    stack: list[frozenset[int]] = []
    for tok in rpn:
        if tok.kind is TokenKind.INDEX:
            if tok.index not in matches:
                raise LogicConsistencyError(f"No match-set for condition {tok.index}")
            stack.append(frozenset(matches[tok.index]))
        elif tok.is_operator:
            if len(stack) < 2:
                raise LogicConsistencyError(
                    f"Insufficient operands for {tok.kind.value} at position {tok.position}"
                )
            right = stack.pop()
            left = stack.pop()
            stack.append(left & right if tok.kind is TokenKind.AND else left | right)
        else:
            raise LogicConsistencyError(f"Parenthesis token in postfix sequence: {tok!s}")

    if len(stack) != 1:
        raise LogicConsistencyError(
            f"Postfix sequence left {len(stack)} sets on the stack, expected 1"
        )
    logger.debug("RPN reduced to %d ids", len(stack[0]))
    return stack[0]


class LogicCombiner:
    """Object wrapper over the combine functions, for injection into callers."""

    def combine_all(self, matches: MatchSets, universe: Iterable[int]) -> frozenset[int]:
        return combine_all(matches, universe)

    def combine_any(self, matches: MatchSets) -> frozenset[int]:
        return combine_any(matches)

    def combine_rpn(self, rpn: Sequence[Token], matches: MatchSets) -> frozenset[int]:
        return combine_rpn(rpn, matches)
