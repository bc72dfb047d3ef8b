"""Command-line interface for ledgercalc."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from ledgercalc import __version__
from ledgercalc.formulas.errors import FormulaError


@click.group()
@click.version_option(version=__version__, prog_name="ledgercalc")
def main() -> None:
    """ledgercalc -- evaluate accounting template formulas."""


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def _build_engine(
    config_path: str | None, log_dir: str | None, auto_eval: bool | None = None
):
    from ledgercalc.config import load_engine_config
    from ledgercalc.formulas import FormulaEngine
    from ledgercalc.logging import EventType, emit_info, set_log_dir

    path = Path(config_path) if config_path else Path.cwd()
    try:
        config = load_engine_config(path, log_dir=log_dir, auto_eval=auto_eval)
        engine = FormulaEngine(config)
    except FormulaError as e:
        raise click.ClickException(str(e))

    if config.log_dir:
        set_log_dir(config.log_dir)
        emit_info(
            EventType.formula_config_loaded,
            f"Configuration loaded from {path}",
            {"config_path": str(path), **config.model_dump(exclude={"shortcuts"})},
        )
    return engine


def _load_functions(functions_path: str | None):
    if functions_path is None:
        return None
    from ledgercalc.lookups import load_lookup_table

    try:
        return load_lookup_table(Path(functions_path))
    except FormulaError as e:
        raise click.ClickException(str(e))


def _format_event(evt: dict) -> str:
    ts = evt.get("ts", "")
    lvl = evt.get("level", "").upper()
    etype = evt.get("event_type", "")
    msg = evt.get("message", "")
    err = evt.get("error_code")
    line = f"[{ts}] {lvl:7s} {etype}: {msg}"
    if err:
        line += f"  ({err})"
    return line


# ---------------------------------------------------------------------------
# Eval
# ---------------------------------------------------------------------------


@main.command("eval")
@click.argument("formula")
@click.option("--functions", "functions_path", default=None, type=click.Path(exists=True, dir_okay=False), help="YAML lookup table of functions.")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True), help="ledgercalc.yaml, or a directory holding it.")
@click.option("--log-dir", default=None, type=click.Path(file_okay=False), help="Append events to DIR/events.ndjson.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--strict", is_flag=True, help="Exit with status 1 when diagnostics are reported.")
@click.option("--auto-eval/--no-auto-eval", default=None, help="Reduce arithmetic everywhere, or only inside %EVAL(). Overrides the config file.")
def eval_cmd(
    formula: str,
    functions_path: str | None,
    config_path: str | None,
    log_dir: str | None,
    as_json: bool,
    strict: bool,
    auto_eval: bool | None,
) -> None:
    """Evaluate FORMULA and print the result.

    Only text starting with '=' is evaluated; anything else is echoed.
    """
    engine = _build_engine(config_path, log_dir, auto_eval)
    functions = _load_functions(functions_path)

    result, diagnostics = engine.evaluate(formula, functions)

    if as_json:
        click.echo(json.dumps({"result": result, "diagnostics": diagnostics}, indent=2))
    else:
        click.echo(result)
        for message in diagnostics:
            click.echo(f"  Warning: {message}", err=True)

    if strict and diagnostics:
        sys.exit(1)


# ---------------------------------------------------------------------------
# Functions
# ---------------------------------------------------------------------------


@main.command("functions")
@click.option("--functions", "functions_path", required=True, type=click.Path(exists=True, dir_okay=False), help="YAML lookup table of functions.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def functions_cmd(functions_path: str, as_json: bool) -> None:
    """List the functions of a lookup table."""
    table = _load_functions(functions_path)

    if as_json:
        data = {
            "functions": [
                {
                    "name": d.name,
                    "arity": d.arity_label,
                    "min_args": d.min_args,
                    "max_args": d.max_args,
                    "description": d.description,
                }
                for d in table
            ],
            "shortcuts": table.shortcuts,
        }
        click.echo(json.dumps(data, indent=2, default=str))
        return

    if not len(table):
        click.echo("No functions defined.")
        return
    for d in table:
        line = f"  %{d.name}  arity={d.arity_label}"
        if d.description:
            line += f"  {d.description}"
        click.echo(line)
    for letter, target in sorted(table.shortcuts.items()):
        if target in table:
            click.echo(f"  %{letter}<n> -> %{target}(<n>)")


# ---------------------------------------------------------------------------
# Logs
# ---------------------------------------------------------------------------


@main.command("logs")
@click.option("--log-dir", required=True, type=click.Path(exists=True, file_okay=False), help="Directory holding events.ndjson.")
@click.option("--level", default=None, type=click.Choice(["info", "warning"]), help="Filter by level.")
@click.option("--type", "event_type", default=None, help="Filter by event type.")
@click.option("--code", "error_code", default=None, help="Filter by diagnostic code.")
@click.option("--limit", default=100, type=int, help="Maximum events to show.")
def logs_cmd(
    log_dir: str,
    level: str | None,
    event_type: str | None,
    error_code: str | None,
    limit: int,
) -> None:
    """Show the structured event log, most recent first."""
    from ledgercalc.logging.sink import EventSink

    sink = EventSink(Path(log_dir))
    events = sink.read_global(
        level=level,
        event_type=event_type,
        error_code=error_code,
        limit=limit,
    )

    if not events:
        click.echo("No events found.")
        return

    for evt in events:
        click.echo(_format_event(evt))


if __name__ == "__main__":
    main()
