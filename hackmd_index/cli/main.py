"""
Root entrypoint for the hackmd-index CLI.

The tool runs up to two phases, in this order:

    Update phase (--update --team <name>)
        Prompt for HackMD credentials, download every note of the team,
        and replace the JSON database at --database.

    Index phase (--meilisearch <url>)
        Read the JSON database at --database and add or replace its notes
        in a Meilisearch index.

Examples:

    hackmd-index --update --team my-team --database hackmd.json
    hackmd-index --database hackmd.json --meilisearch http://localhost:7700
    hackmd-index -u -t my-team -m http://localhost:7700
"""

# ---------------------------------------------------------------------------
# Imports (must be at top to satisfy flake8 E402)
# ---------------------------------------------------------------------------
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
import typer

from hackmd_index.config import (
    DEFAULT_DATABASE,
    Settings,
    check_base_url,
    load_settings,
)
from hackmd_index.credentials import PromptCredentialSource
from hackmd_index.errors import ArgumentError, HackMDIndexError
from hackmd_index.hackmd import HackMDClient
from hackmd_index.logging_utils import print_summary
from hackmd_index.pipeline import index_database, update_database
from hackmd_index.search import MeilisearchClient
from hackmd_index.types import CredentialSource

# Load environment variables so envvar-backed options see `.env` values.
load_dotenv()

cli = typer.Typer(
    add_completion=False,
    help=(
        "Download a HackMD team into a JSON database and index it in "
        "Meilisearch.\n\n"
        "  Update: hackmd-index --update --team <team> --database <file>\n\n"
        "  Index:  hackmd-index --database <file> --meilisearch <url>"
    ),
)


# ---------------------------------------------------------------------------
# Dependency factories
# ---------------------------------------------------------------------------
# The CLI is responsible for dependency creation; the pipeline receives the
# clients and only uses them. Tests replace these factories.
# ---------------------------------------------------------------------------
def make_note_source(settings: Settings) -> HackMDClient:
    return HackMDClient(server_url=settings.server_url, timeout=settings.http_timeout)


def make_document_sink(
    url: str, settings: Settings, index_uid: str, wait: bool
) -> MeilisearchClient:
    return MeilisearchClient(
        url,
        api_key=settings.meilisearch_api_key,
        index_uid=index_uid,
        timeout=settings.http_timeout,
        wait=wait,
    )


def make_credential_source() -> CredentialSource:
    return PromptCredentialSource()


# ---------------------------------------------------------------------------
# Argument validation (runs before any prompt or network call)
# ---------------------------------------------------------------------------
def validate_arguments(
    update: bool,
    team: Optional[str],
    database: str,
    meilisearch: Optional[str],
) -> None:
    if not database:
        raise ArgumentError("Missing required argument: --database")

    if update and not team:
        raise ArgumentError("Missing required argument: --team")

    if not update and not meilisearch:
        raise ArgumentError(
            "Nothing to do: pass --update (with --team) and/or --meilisearch."
        )

    if meilisearch:
        check_base_url(meilisearch, "--meilisearch")


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------
@cli.command()
def hackmd_index_command(
    update: bool = typer.Option(
        False,
        "--update",
        "-u",
        help="Download the team's notes and replace the database.",
    ),
    team: Optional[str] = typer.Option(
        None,
        "--team",
        "-t",
        help="Name of the HackMD team (required with --update).",
    ),
    database: str = typer.Option(
        DEFAULT_DATABASE,
        "--database",
        "-d",
        envvar="HACKMD_DATABASE",
        help="Path to the JSON database.",
        show_default=True,
    ),
    meilisearch: Optional[str] = typer.Option(
        None,
        "--meilisearch",
        "-m",
        help="Meilisearch base URL; indexes the database when given.",
    ),
    index: Optional[str] = typer.Option(
        None,
        "--index",
        help="Meilisearch index uid (default: MEILISEARCH_INDEX or 'pages').",
    ),
    batch_size: Optional[int] = typer.Option(
        None,
        "--batch-size",
        min=1,
        help="Documents per ingestion call (default: all in one call).",
    ),
    wait: bool = typer.Option(
        False,
        "--wait",
        help="Wait for Meilisearch to finish processing each batch.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Show high‑level progress logs.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Show payload‑level debug output.",
    ),
) -> None:
    """
    Update the HackMD database and/or push it into Meilisearch.
    """
    try:
        validate_arguments(update, team, database, meilisearch)
        settings = load_settings()
    except ArgumentError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2)

    database_path = Path(database)

    try:
        if update:
            run_update(settings, team or "", database_path, verbose=verbose)

        if meilisearch:
            run_index(
                settings,
                meilisearch,
                database_path,
                index_uid=index or settings.meilisearch_index,
                batch_size=batch_size,
                wait=wait,
                verbose=verbose,
                debug=debug,
            )
    except HackMDIndexError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


def run_update(
    settings: Settings,
    team: str,
    database_path: Path,
    verbose: bool = False,
) -> None:
    typer.echo("Building HackMD database...")

    source = make_note_source(settings)
    try:
        report = update_database(
            source,
            make_credential_source(),
            team,
            database_path,
            verbose=verbose,
        )
    finally:
        source.close()

    typer.echo(f"Dumped HackMD database to {database_path}")
    print_summary("Update Summary", report.to_summary_dict())


def run_index(
    settings: Settings,
    url: str,
    database_path: Path,
    index_uid: str,
    batch_size: Optional[int] = None,
    wait: bool = False,
    verbose: bool = False,
    debug: bool = False,
) -> None:
    typer.echo(f"Indexing {database_path} into {url} (index '{index_uid}')...")

    sink = make_document_sink(url, settings, index_uid, wait)
    try:
        report = index_database(
            sink,
            database_path,
            batch_size=batch_size,
            verbose=verbose,
            debug=debug,
        )
    finally:
        sink.close()

    print_summary("Index Summary", report.to_summary_dict())


# ---------------------------------------------------------------------------
# Entry point for `python -m hackmd_index.cli.main`
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    cli()
