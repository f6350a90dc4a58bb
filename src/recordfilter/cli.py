"""recordfilter CLI: entry point.

Commands:
    recordfilter filter <records.json>   Filter records with conditions
    recordfilter check  <expression>     Validate a custom logic string
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

import click
from rich.console import Console

from .conditions.codec import ConditionFormatError, decode_mappings, parse_condition
from .conditions.model import Condition, ConditionIndexError, LogicMode
from .config import settings
from .filtering.orchestrator import FilterOrchestrator
from .logic.parser import default_expression, parse

console = Console()
err_console = Console(stderr=True)

# ── Helpers ─────────────────────────────────────────────────────────────────


def _load_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"{path.name} is not valid JSON: {exc}") from exc


def _load_records(path: Path) -> list[dict[str, Any]]:
    data = _load_json(path)
    if isinstance(data, dict):
        data = data.get("records", [data])
    if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
        raise click.ClickException(f"{path.name} must hold a list of JSON objects")
    return data


def _build_conditions(
    specs: tuple[str, ...],
    mappings: str,
    object_name: str,
) -> list[Condition]:
    try:
        if mappings:
            if not object_name:
                raise click.BadParameter("--object is required with --mappings")
            return decode_mappings(mappings, object_name)
        return [parse_condition(s, i) for i, s in enumerate(specs, start=1)]
    except ConditionFormatError as exc:
        raise click.BadParameter(str(exc)) from exc


# ── CLI root ─────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version="1.0.0", prog_name="recordfilter")
@click.option("--verbose", "-v", count=True, help="Increase log verbosity (-v info, -vv debug).")
def main(verbose: int) -> None:
    """recordfilter: condition and custom-logic record filtering."""
    level = {0: settings.log_level.upper(), 1: "INFO"}.get(verbose, "DEBUG")
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


# ── filter ───────────────────────────────────────────────────────────────────


@main.command("filter")
@click.argument("file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--condition", "-c", "specs", multiple=True,
    help="field:operator:value (prefix value with @ to read it from the context record).",
)
@click.option("--mappings", default="", help="Stored Object:field:operator:valueField;... string.")
@click.option("--object", "object_name", default="", help="Object name to select from --mappings.")
@click.option(
    "--mode", "-m", default=None,
    type=click.Choice([m.value for m in LogicMode], case_sensitive=False),
    help="Logic mode (default from RECORDFILTER_DEFAULT_MODE).",
)
@click.option("--logic", "-l", default="", help='Custom logic, e.g. "1 AND (2 OR 3)".')
@click.option("--context", "context_file", type=click.Path(exists=True, path_type=Path),
              help="JSON file with the context record.")
@click.option("--anchor", default=None, help="Anchor id for related mode (matched against the key as text).")
@click.option(
    "--output", "-o", "output_fmt", default="table",
    type=click.Choice(["table", "json"], case_sensitive=False),
    show_default=True,
)
@click.option("--limit", "-n", default=0, type=int, help="Max records to display (0 = all).")
def filter_cmd(
    file: Path,
    specs: tuple[str, ...],
    mappings: str,
    object_name: str,
    mode: str | None,
    logic: str,
    context_file: Path | None,
    anchor: str | None,
    output_fmt: str,
    limit: int,
) -> None:
    """Filter a JSON list of records.

    \b
    Examples:
      recordfilter filter listings.json -c "price:lessThan:500000" -c "city:equalTo:Rome"
      recordfilter filter listings.json -c "price:lessThan:@budget" --context inquiry.json
      recordfilter filter listings.json -c ... -c ... -c ... -m custom -l "1 AND (2 OR 3)"
      recordfilter filter inquiries.json -m related --anchor a0X5g000001
    """
    from .visualization.tables import print_conditions_table, print_errors, print_records_table

    records = _load_records(file)
    conditions = _build_conditions(specs, mappings, object_name)
    context = _load_json(context_file) if context_file else None
    logic_mode = LogicMode.from_code(mode or settings.default_mode)

    if logic_mode is LogicMode.CUSTOM and not logic.strip():
        logic = default_expression(len(conditions))
        err_console.print(f"[dim]No --logic given; using {logic!r}[/dim]")

    try:
        result = FilterOrchestrator().filter(
            records, conditions, logic_mode,
            context=context,
            custom_expression=logic,
            related_anchor_id=anchor,
        )
    except (ConditionIndexError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc

    print_errors(result, console=err_console)
    shown = result.matched[:limit] if limit else result.matched

    if output_fmt == "json":
        for record in shown:
            click.echo(json.dumps(record, default=str))
    else:
        if conditions and logic_mode not in (LogicMode.NONE, LogicMode.RELATED):
            print_conditions_table(conditions, result, total=len(records), console=console)
        print_records_table(
            shown,
            title=f"{file.name} ({logic_mode.label})",
            max_rows=settings.max_rows,
            console=console,
        )

    err_console.print(
        f"[dim]{len(result.matched)} of {len(records)} records matched[/dim]"
    )
    if result.errors:
        sys.exit(2)


# ── check ────────────────────────────────────────────────────────────────────


@main.command()
@click.argument("expression")
@click.option("--count", "-n", "count", required=True, type=int, help="Number of conditions.")
def check(expression: str, count: int) -> None:
    """Validate a custom logic expression and print its postfix form.

    \b
    Examples:
      recordfilter check "1 AND (2 OR 3)" --count 3
    """
    if count < 0:
        raise click.BadParameter("--count must be >= 0")
    result = parse(expression, count)
    if result.error is not None:
        err_console.print(f"[red]{result.error.kind.value}[/red]: {result.error.message}")
        sys.exit(1)
    console.print(f"[green]OK[/green] {result.postfix()}")


if __name__ == "__main__":
    main()
