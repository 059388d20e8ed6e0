"""
Update and index orchestration.

This module defines the two phases of the tool:

    update_database()  → log in, list the team, download every note,
                         write the JSON database in one replacement
    index_database()   → read the JSON database, project the notes into
                         documents, submit them to the search engine

Both phases are linear and depend only on the Protocols in
hackmd_index/types.py, so tests can drive them with in-memory fakes.

Neither phase recovers from errors. A failure while downloading any note
aborts the update before the database is touched, which leaves a previous
database file exactly as it was.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

from hackmd_index.database import read_database, write_database
from hackmd_index.errors import ArgumentError
from hackmd_index.logging_utils import log_debug, log_verbose
from hackmd_index.pipeline.documents import build_documents
from hackmd_index.types import (
    CredentialSource,
    DocumentSink,
    IndexDocument,
    Note,
    NoteSource,
)


# ============================================================================
# REPORTS
# ============================================================================
class UpdateReport:
    """Counters for one update run, printed by the CLI."""

    def __init__(self, team: str, database_path: Path) -> None:
        self.team = team
        self.database_path = database_path
        self.notes_listed = 0
        self.notes_downloaded = 0

    def to_summary_dict(self) -> Dict[str, Any]:
        return {
            "team": self.team,
            "notes_listed": self.notes_listed,
            "notes_downloaded": self.notes_downloaded,
            "database_path": str(self.database_path),
        }


class IndexReport:
    """Counters for one index run, printed by the CLI."""

    def __init__(self, database_path: Path) -> None:
        self.database_path = database_path
        self.documents_submitted = 0
        self.batches = 0
        self.task_uids: List[int] = []

    def to_summary_dict(self) -> Dict[str, Any]:
        return {
            "database_path": str(self.database_path),
            "documents_submitted": self.documents_submitted,
            "batches": self.batches,
            "task_uids": self.task_uids,
        }


# ============================================================================
# UPDATE PHASE
# ============================================================================
def download_team_notes(
    source: NoteSource,
    team: str,
    report: Optional[UpdateReport] = None,
    verbose: bool = False,
) -> List[Note]:
    """
    Download every note of `team`, preserving the listing order.

    The source must already be logged in. Any exception from the source
    propagates unchanged.
    """
    summaries = source.list_notes(team)
    log_verbose(f"Found {len(summaries)} notes in team '{team}'.", verbose)
    if report is not None:
        report.notes_listed = len(summaries)

    notes: List[Note] = []
    for summary in summaries:
        log_verbose(f"Downloading {summary['id']}", verbose)
        content = source.fetch_content(summary["id"])
        notes.append(
            Note(
                id=summary["id"],
                title=summary["title"],
                content=content,
                updatedAt=summary["updatedAt"],
            )
        )
        if report is not None:
            report.notes_downloaded += 1

    return notes


def update_database(
    source: NoteSource,
    credentials: CredentialSource,
    team: str,
    database_path: Path,
    verbose: bool = False,
) -> UpdateReport:
    """
    Run the update phase: authenticate, download the team, write the database.

    The database is written only after every note has been downloaded.
    """
    if not team:
        raise ArgumentError("Missing required argument: --team")

    report = UpdateReport(team=team, database_path=Path(database_path))

    log_verbose("Logging in to HackMD...", verbose)
    source.login(credentials.get_credentials())

    notes = download_team_notes(source, team, report=report, verbose=verbose)

    log_verbose(f"Writing database to {database_path}", verbose)
    write_database(Path(database_path), notes)

    return report


# ============================================================================
# INDEX PHASE
# ============================================================================
def _batches(
    documents: List[IndexDocument], batch_size: Optional[int]
) -> List[List[IndexDocument]]:
    if not batch_size:
        return [documents]
    return [
        documents[start : start + batch_size]
        for start in range(0, len(documents), batch_size)
    ]


def index_database(
    sink: DocumentSink,
    database_path: Path,
    batch_size: Optional[int] = None,
    verbose: bool = False,
    debug: bool = False,
) -> IndexReport:
    """
    Run the index phase: read the database and submit its documents.

    By default all documents go out in a single ingestion call. With
    `batch_size`, they are split into consecutive batches of at most that
    many documents. An empty database submits nothing.
    """
    if batch_size is not None and batch_size < 1:
        raise ArgumentError("--batch-size must be a positive integer")

    report = IndexReport(database_path=Path(database_path))

    log_verbose(f"Loading database from {database_path}", verbose)
    notes = read_database(Path(database_path))
    documents = build_documents(notes)

    if not documents:
        log_verbose("Database is empty; nothing to index.", verbose)
        return report

    for batch in _batches(documents, batch_size):
        log_verbose(f"Submitting {len(batch)} documents", verbose)
        log_debug("Document ids", [doc["id"] for doc in batch], debug)

        task_uid = sink.add_documents(batch)

        report.batches += 1
        report.documents_submitted += len(batch)
        if task_uid is not None:
            report.task_uids.append(task_uid)

    return report
