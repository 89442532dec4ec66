"""Typer CLI for cassio: parse, detect and sources commands."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from result import Err

from cassio.config import Config
from cassio.data.detection import detect_tool
from cassio.data.parser import parse_session_file, parse_session_lines
from cassio.models.session import Tool

app = typer.Typer(
    name="cassio",
    help="Normalize Claude Code, Codex and OpenCode session logs.",
    no_args_is_help=True,
)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def parse(
    path: Annotated[
        Path | None,
        typer.Argument(help="Session file or OpenCode session directory (omit for stdin)"),
    ] = None,
    tool: Annotated[
        Tool | None,
        typer.Option("--tool", help="Skip detection and use this tool's parser"),
    ] = None,
    indent: Annotated[int, typer.Option("--indent", help="JSON indent (0 for one line)")] = 2,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log skipped records")] = False,
) -> None:
    """Parse one session and print it as JSON."""
    _configure_logging(verbose)
    if path is None:
        result = parse_session_lines(typer.get_text_stream("stdin"), tool=tool)
    else:
        result = parse_session_file(path, tool=tool)

    if isinstance(result, Err):
        typer.echo(str(result.err_value), err=True)
        raise typer.Exit(code=1)
    typer.echo(result.ok_value.model_dump_json(indent=indent or None))


@app.command()
def detect(path: Annotated[Path, typer.Argument(help="Session file or directory")]) -> None:
    """Print which tool produced a session file."""
    result = detect_tool(path)
    if isinstance(result, Err):
        typer.echo(str(result.err_value), err=True)
        raise typer.Exit(code=1)
    typer.echo(result.ok_value.value)


@app.command()
def sources(
    home: Annotated[
        Path | None,
        typer.Option("--home", help="Home directory to look under"),
    ] = None,
) -> None:
    """List default log directories that exist on this machine."""
    config = Config(home=home) if home is not None else Config()
    found = config.existing_sources()
    if not found:
        typer.echo("No session sources found.")
        return
    for tool, source_dir in found:
        typer.echo(f"{tool.value}\t{source_dir}")
