"""
logging_utils.py

Small output helpers shared by the CLI and the pipeline.

Like the rest of the project these helpers avoid a logging framework. All
output goes through `typer.echo` so it plays well with Typer's CliRunner in
tests and stays plain for users.
"""

import json
from typing import Any, Dict

import typer


def log_verbose(message: str, verbose: bool) -> None:
    """
    Print a high‑level progress message when verbose mode is enabled.

    Parameters
    ----------
    message : str
        Short, plain‑English description of what the pipeline is doing
        (e.g., "Downloading abc123").

    verbose : bool
        When False, this function does nothing.
    """
    if verbose:
        typer.echo(message)


def log_debug(label: str, payload: Any, debug: bool) -> None:
    """Pretty‑print a JSON‑serializable payload under a label in debug mode."""
    if debug:
        typer.echo(f"{label}:")
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def print_summary(title: str, summary: Dict[str, Any]) -> None:
    typer.echo(f"\n=== {title} ===")
    for key, value in summary.items():
        typer.echo(f"{key}: {value}")
