"""Custom logic expression parser.

Turns strings such as ``1 AND (2 OR 3)`` into a postfix (RPN) token list.
Only condition indices, ``AND``, ``OR`` and parentheses are accepted, and the
text is never executed.  Validation runs in fixed stages and stops at the
first failure:

1. shape         : allowed characters, at least two indices and an operator
2. tokenization  : ``AND``/``OR`` (any case), ``(``, ``)``, digit runs
3. index range   : every index in ``[1, condition_count]``
4. coverage      : every index ``1..condition_count`` referenced
5. balance       : parentheses never close below zero and end at zero
6. grammar       : operator placement, adjacent operands, empty groups
7. conversion    : shunting-yard, ``AND`` binds tighter than ``OR``
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from .errors import ErrorKind, ValidationError

logger = logging.getLogger(__name__)

_ALLOWED_RE = re.compile(r"(?:\d|\s|[()]|AND|OR)+", re.IGNORECASE | re.ASCII)
_INDEX_RE = re.compile(r"\d+", re.ASCII)
_KEYWORD_RE = re.compile(r"AND|OR", re.IGNORECASE)
_TOKEN_RE = re.compile(r"\s*(?:(\d+)|(AND|OR)|(\()|(\)))", re.IGNORECASE | re.ASCII)

PRECEDENCE: dict[str, int] = {"AND": 2, "OR": 1}


class TokenKind(str, Enum):
    INDEX = "index"
    AND = "AND"
    OR = "OR"
    LPAREN = "("
    RPAREN = ")"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    position: int = 0

    @property
    def is_operator(self) -> bool:
        return self.kind in (TokenKind.AND, TokenKind.OR)

    @property
    def index(self) -> int:
        if self.kind is not TokenKind.INDEX:
            raise TypeError(f"{self.kind.value} token has no index")
        return int(self.text)

    def __str__(self) -> str:
        return self.text if self.kind is TokenKind.INDEX else self.kind.value


@dataclass(frozen=True)
class ParseResult:
    """Outcome of :func:`parse`: exactly one of ``rpn`` / ``error`` is set."""

    rpn: tuple[Token, ...] = ()
    error: ValidationError | None = None
    tokens: tuple[Token, ...] = field(default=(), repr=False)

    @property
    def ok(self) -> bool:
        return self.error is None

    def postfix(self) -> str:
        return " ".join(str(t) for t in self.rpn)


class ExpressionSyntaxError(Exception):
    """Internal carrier for a :class:`ValidationError` between stages."""

    def __init__(self, error: ValidationError) -> None:
        super().__init__(str(error))
        self.error = error


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------

def _fail(kind: ErrorKind, message: str, **kwargs) -> ExpressionSyntaxError:
    return ExpressionSyntaxError(ValidationError(kind, message, **kwargs))


def check_shape(expression: str) -> None:
    text = expression.strip()
    if not text:
        raise _fail(ErrorKind.EMPTY_OR_MALFORMED, "Custom logic expression cannot be empty.")
    if not _ALLOWED_RE.fullmatch(text):
        raise _fail(
            ErrorKind.EMPTY_OR_MALFORMED,
            "Invalid condition syntax. Use numbers, AND, OR, spaces, and parentheses only.",
        )
    # A single bare index is rejected; the minimum is "<n> AND|OR <m>"
    if len(_INDEX_RE.findall(text)) < 2 or not _KEYWORD_RE.search(text):
        raise _fail(
            ErrorKind.EMPTY_OR_MALFORMED,
            "Custom logic must join at least two condition indices with AND or OR.",
        )


def tokenize(expression: str) -> list[Token]:
    """Split ``expression`` into tokens; whitespace is dropped."""
    tokens: list[Token] = []
    pos = 0
    end = len(expression.rstrip())
    while pos < end:
        m = _TOKEN_RE.match(expression, pos)
        if m is None:
            raise _fail(
                ErrorKind.EMPTY_OR_MALFORMED,
                f"Unexpected character {expression[pos]!r} at position {pos}.",
                position=pos,
            )
        number, keyword, lparen, _ = m.groups()
        start = m.start(m.lastindex)
        if number is not None:
            tokens.append(Token(TokenKind.INDEX, number, start))
        elif keyword is not None:
            kind = TokenKind(keyword.upper())
            tokens.append(Token(kind, kind.value, start))
        elif lparen is not None:
            tokens.append(Token(TokenKind.LPAREN, "(", start))
        else:
            tokens.append(Token(TokenKind.RPAREN, ")", start))
        pos = m.end()
    return tokens


def check_range(tokens: list[Token], condition_count: int) -> None:
    bad = sorted({t.index for t in tokens if t.kind is TokenKind.INDEX
                  and not 1 <= t.index <= condition_count})
    if bad:
        first = next(t for t in tokens if t.kind is TokenKind.INDEX and t.index == bad[0])
        raise _fail(
            ErrorKind.INDEX_OUT_OF_RANGE,
            f"Condition uses invalid index. Use indices from 1 to {condition_count}.",
            position=first.position,
            indices=tuple(bad),
        )


def check_coverage(tokens: list[Token], condition_count: int) -> None:
    used = {t.index for t in tokens if t.kind is TokenKind.INDEX}
    missing = sorted(set(range(1, condition_count + 1)) - used)
    if missing:
        raise _fail(
            ErrorKind.INCOMPLETE_COVERAGE,
            "Condition must include all indices. Missing indices: "
            + ", ".join(str(i) for i in missing) + ".",
            indices=tuple(missing),
        )


def check_balance(tokens: list[Token]) -> None:
    depth = 0
    for tok in tokens:
        if tok.kind is TokenKind.LPAREN:
            depth += 1
        elif tok.kind is TokenKind.RPAREN:
            depth -= 1
            if depth < 0:
                raise _fail(
                    ErrorKind.UNBALANCED_PARENTHESES,
                    "Unbalanced parentheses in custom logic expression.",
                    position=tok.position,
                )
    if depth != 0:
        raise _fail(
            ErrorKind.UNBALANCED_PARENTHESES,
            "Unbalanced parentheses in custom logic expression.",
        )


def check_grammar(tokens: list[Token]) -> None:
    """Operators sit between operands; operands never touch each other."""
    for i, tok in enumerate(tokens):
        prev = tokens[i - 1] if i > 0 else None
        nxt = tokens[i + 1] if i + 1 < len(tokens) else None
        if tok.is_operator:
            if prev is None or nxt is None:
                raise _fail(
                    ErrorKind.OPERATOR_PLACEMENT,
                    f"Operator {tok.kind.value} cannot be at the start or end of the expression.",
                    position=tok.position,
                )
            if prev.kind not in (TokenKind.INDEX, TokenKind.RPAREN) or \
                    nxt.kind not in (TokenKind.INDEX, TokenKind.LPAREN):
                raise _fail(
                    ErrorKind.OPERATOR_PLACEMENT,
                    f"Operator {tok.kind.value} must be between numbers or parenthesized expressions.",
                    position=tok.position,
                )
        elif tok.kind in (TokenKind.INDEX, TokenKind.LPAREN):
            # An operand may not directly follow another operand
            if prev is not None and prev.kind in (TokenKind.INDEX, TokenKind.RPAREN):
                raise _fail(
                    ErrorKind.EMPTY_OR_MALFORMED,
                    f"Missing AND/OR before {tok.text!r} at position {tok.position}.",
                    position=tok.position,
                )
        elif prev is not None and prev.kind is TokenKind.LPAREN:
            raise _fail(
                ErrorKind.EMPTY_OR_MALFORMED,
                f"Empty parentheses at position {prev.position}.",
                position=prev.position,
            )


def to_postfix(tokens: list[Token]) -> list[Token]:
    """Shunting-yard conversion; both operators are left-associative."""
    output: list[Token] = []
    stack: list[Token] = []
    for tok in tokens:
        if tok.is_operator:
            while stack and stack[-1].is_operator and \
                    PRECEDENCE[stack[-1].kind.value] >= PRECEDENCE[tok.kind.value]:
                output.append(stack.pop())
            stack.append(tok)
        elif tok.kind is TokenKind.LPAREN:
            stack.append(tok)
        elif tok.kind is TokenKind.RPAREN:
            while stack[-1].kind is not TokenKind.LPAREN:
                output.append(stack.pop())
            stack.pop()
        else:
            output.append(tok)
    while stack:
        output.append(stack.pop())
    return output


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------

def parse(expression: str | None, condition_count: int) -> ParseResult:
    """Validate ``expression`` against ``condition_count`` conditions.

    Returns a :class:`ParseResult` carrying either the postfix token list or
    the first :class:`ValidationError`.  Raises ``ValueError`` only for a
    negative ``condition_count``.
    """
    if condition_count < 0:
        raise ValueError(f"condition_count must be >= 0, got {condition_count}")
    text = expression or ""
    tokens: list[Token] = []
    try:
        check_shape(text)
        tokens = tokenize(text)
        check_range(tokens, condition_count)
        check_coverage(tokens, condition_count)
        check_balance(tokens)
        check_grammar(tokens)
    except ExpressionSyntaxError as exc:
        logger.warning("Rejected custom logic %r: %s", text, exc.error)
        return ParseResult(error=exc.error, tokens=tuple(tokens))

    rpn = to_postfix(tokens)
    logger.debug("Parsed %r -> %s", text, " ".join(str(t) for t in rpn))
    return ParseResult(rpn=tuple(rpn), tokens=tuple(tokens))


def validate_expression(expression: str | None, condition_count: int) -> list[ValidationError]:
    """Return the validation errors for ``expression`` (empty list when valid)."""
    result = parse(expression, condition_count)
    return [] if result.error is None else [result.error]


def default_expression(condition_count: int) -> str:
    """Conjunction of every index, e.g. ``1 AND 2 AND 3``."""
    return " AND ".join(str(i) for i in range(1, condition_count + 1))


def reconcile_expression(expression: str, old_count: int, new_count: int) -> str:
    """Clear a saved expression once the condition count changes.

    Indices are renumbered after a deletion, so an expression written for the
    old numbering can silently point at different conditions.
    """
    if old_count != new_count:
        if expression.strip():
            logger.info(
                "Clearing custom logic %r: condition count changed %d -> %d",
                expression, old_count, new_count,
            )
        return ""
    return expression
