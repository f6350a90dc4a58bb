"""Rich-powered table rendering for filter results."""
from __future__ import annotations

from typing import Any, Mapping, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from ..conditions.model import Condition
from ..filtering.result import EvaluationResult

_console = Console()


def print_records_table(
    records: Sequence[Mapping[str, Any]],
    fields: list[str] | None = None,
    title: str = "Matched Records",
    max_rows: int = 100,
    console: Console | None = None,
) -> None:
    """Render records as a Rich table.

    Args:
        records:   Records to display, in order.
        fields:    Columns to display. Defaults to the union of keys, in the
                   order they first appear.
        title:     Table title shown in the header.
        max_rows:  Hard cap: long lists are truncated with a notice.
    """
    out = console or _console
    if not records:
        out.print("[yellow]No records to display.[/yellow]")
        return

    cols = fields or list(dict.fromkeys(k for r in records for k in r))
    table = Table(title=title, box=box.ROUNDED, show_lines=False)
    for col in cols:
        table.add_column(col, overflow="fold", max_width=60)

    for record in records[:max_rows]:
        table.add_row(*[str(record.get(c, "")) for c in cols])

    out.print(table)
    if len(records) > max_rows:
        out.print(
            f"[dim]... and {len(records) - max_rows} more rows (use --limit to adjust)[/dim]"
        )


def print_conditions_table(
    conditions: Sequence[Condition],
    result: EvaluationResult,
    total: int,
    title: str = "Conditions",
    console: Console | None = None,
) -> None:
    """Render each condition with the number of candidates it matched."""
    out = console or _console
    table = Table(title=title, box=box.SIMPLE_HEAVY)
    table.add_column("#", style="dim", width=4)
    table.add_column("Condition")
    table.add_column("Matched", justify="right", style="cyan")

    for cond in sorted(conditions, key=lambda c: c.index):
        ids = result.per_condition_matches.get(cond.index)
        count = "-" if ids is None else f"{len(ids)}/{total}"
        table.add_row(str(cond.index), cond.describe().split(": ", 1)[1], count)

    out.print(table)


def print_errors(result: EvaluationResult, console: Console | None = None) -> None:
    out = console or _console
    for err in result.errors:
        out.print(f"[red]{err.kind.value}[/red]: {err.message}")
    if result.errors:
        out.print("[yellow]Filter not applied; showing all records.[/yellow]")
