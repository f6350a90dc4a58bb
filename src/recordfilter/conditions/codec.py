"""Decode and encode condition definitions.

Two shapes are understood:

* stored mapping strings, ``Object:field:operator:valueField`` entries joined
  by ``;``: ``valueField`` names a field on the context record;
* plain dicts (e.g. loaded from JSON) with ``field``, ``operator`` and
  either ``value`` or ``context_field`` keys.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Iterable, Mapping, Sequence

from ..config import settings
from .model import Condition, ContextField, LiteralValue, Operator

logger = logging.getLogger(__name__)

ENTRY_SEP = ";"
PART_SEP = ":"
CONTEXT_PREFIX = "@"


class ConditionFormatError(ValueError):
    """A stored condition definition could not be decoded."""


def decode_mappings(
    raw: str,
    object_name: str,
    lowercase: bool | None = None,
) -> list[Condition]:
    """Decode the conditions that target ``object_name``.

    Entries for other objects are skipped and the kept conditions are
    numbered ``1..N`` in their stored order.

    Raises:
        ConditionFormatError: an entry does not have four parts or names an
            unknown operator.
    """
    if lowercase is None:
        lowercase = settings.lowercase_fields
    conditions: list[Condition] = []
    for entry in (e.strip() for e in raw.split(ENTRY_SEP)):
        if not entry:
            continue
        parts = entry.split(PART_SEP)
        if len(parts) != 4:
            raise ConditionFormatError(
                f"Expected Object:field:operator:valueField, got {entry!r}"
            )
        obj, target, op_raw, value_field = (p.strip() for p in parts)
        if obj != object_name:
            logger.debug("Skipping mapping for %s: %s", obj, entry)
            continue
        try:
            op = Operator.parse(op_raw)
        except ValueError as exc:
            raise ConditionFormatError(str(exc)) from exc
        if lowercase:
            target, value_field = target.lower(), value_field.lower()
        conditions.append(Condition(
            index=len(conditions) + 1,
            target_field=target,
            operator=op,
            source=ContextField(value_field),
        ))
    return conditions


def encode_mappings(conditions: Sequence[Condition], object_name: str) -> str:
    """Inverse of :func:`decode_mappings` for context-bound conditions."""
    entries = []
    for cond in sorted(conditions, key=lambda c: c.index):
        if not isinstance(cond.source, ContextField):
            raise ConditionFormatError(
                f"Condition {cond.index} compares with a literal; "
                "stored mappings only hold context fields"
            )
        entries.append(PART_SEP.join(
            (object_name, cond.target_field, cond.operator.value, cond.source.path)
        ))
    return ENTRY_SEP.join(entries)


def parse_condition(spec: str, index: int) -> Condition:
    """Parse a ``field:operator:value`` shorthand (``@name`` binds to context).

    A leading ``!`` on the operator sets ``negate``.  The value may itself
    contain ``:``.
    """
    parts = spec.split(PART_SEP, 2)
    if len(parts) != 3:
        raise ConditionFormatError(f"Expected field:operator:value, got {spec!r}")
    target, op_raw, value = parts
    negate = op_raw.startswith("!")
    try:
        op = Operator.parse(op_raw.lstrip("!"))
    except ValueError as exc:
        raise ConditionFormatError(str(exc)) from exc
    source = (ContextField(value[1:]) if value.startswith(CONTEXT_PREFIX)
              else LiteralValue(value))
    return Condition(index, target.strip(), op, source, negate)


def condition_from_dict(data: Mapping[str, Any], index: int | None = None) -> Condition:
    """Build a condition from a dict.

    Keys: ``field``, ``operator``, one of ``value`` / ``context_field``, and
    optionally ``index`` and ``negate``.
    """
    try:
        target = data["field"]
        op = Operator.parse(str(data["operator"]))
    except KeyError as exc:
        raise ConditionFormatError(f"Condition is missing {exc.args[0]!r}: {data!r}") from exc
    except ValueError as exc:
        raise ConditionFormatError(str(exc)) from exc

    if "context_field" in data:
        source: ContextField | LiteralValue = ContextField(str(data["context_field"]))
    else:
        source = LiteralValue(data.get("value"))
    idx = data.get("index", index)
    if idx is None:
        raise ConditionFormatError(f"Condition has no index: {data!r}")
    return Condition(int(idx), str(target), op, source, bool(data.get("negate", False)))


def conditions_from_dicts(items: Iterable[Mapping[str, Any]]) -> list[Condition]:
    """Decode a list of dicts; missing indices default to list position."""
    return [condition_from_dict(item, pos) for pos, item in enumerate(items, start=1)]


def condition_to_dict(cond: Condition) -> dict[str, Any]:
    data: dict[str, Any] = {
        "index": cond.index,
        "field": cond.target_field,
        "operator": cond.operator.value,
    }
    if isinstance(cond.source, ContextField):
        data["context_field"] = cond.source.path
    else:
        data["value"] = cond.source.value
    if cond.negate:
        data["negate"] = True
    return data


# ---------------------------------------------------------------------------
# Editing helpers
# ---------------------------------------------------------------------------

def renumber(conditions: Sequence[Condition]) -> list[Condition]:
    """Return the conditions ordered by index and renumbered ``1..N``."""
    ordered = sorted(conditions, key=lambda c: c.index)
    return [replace(c, index=pos) for pos, c in enumerate(ordered, start=1)]


def remove_condition(conditions: Sequence[Condition], index: int) -> list[Condition]:
    """Drop the condition with ``index`` and close the gap.

    Any custom expression written against the old numbering is stale
    afterwards; pass it through ``logic.parser.reconcile_expression``.
    """
    if not any(c.index == index for c in conditions):
        raise KeyError(f"No condition with index {index}")
    return renumber([c for c in conditions if c.index != index])
