"""
hackmd_index/types.py

Centralized type definitions for hackmd_index.

This module defines the records that flow through the update and index
phases, and the Protocols that describe the three external capabilities the
pipeline depends on:

    • CredentialSource  → where the email/password pair comes from
    • NoteSource        → the note service (HackMD)
    • DocumentSink      → the search engine (Meilisearch)

The pipeline only ever talks to these Protocols, so tests can inject fakes
without network access or interactive prompts.
"""

from typing import List, NamedTuple, Optional, Protocol, TypedDict


# ---------------------------------------------------------------------------
# NoteSummary
# ---------------------------------------------------------------------------
# One entry of the team listing, before content has been downloaded.
# `updatedAt` carries HackMD's `lastchangeAt` value unchanged.
# ---------------------------------------------------------------------------
class NoteSummary(TypedDict):
    id: str
    title: str
    updatedAt: Optional[str]


# ---------------------------------------------------------------------------
# Note
# ---------------------------------------------------------------------------
# A fully downloaded note, as persisted in the JSON database.
#
# Field names are the contract between write_database() and read_database().
# ---------------------------------------------------------------------------
class Note(TypedDict):
    id: str
    title: str
    content: str
    updatedAt: Optional[str]


# ---------------------------------------------------------------------------
# IndexDocument
# ---------------------------------------------------------------------------
# The projection of a Note submitted to Meilisearch. `id` is the primary key,
# so re-submitting the same document replaces it instead of duplicating it.
# ---------------------------------------------------------------------------
class IndexDocument(TypedDict):
    id: str
    title: str
    content: str
    updatedAt: Optional[str]


class Credentials(NamedTuple):
    email: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(email={self.email!r}, password='***')"


# ---------------------------------------------------------------------------
# CredentialSource
# ---------------------------------------------------------------------------
class CredentialSource(Protocol):
    def get_credentials(self) -> Credentials:
        """Return the email/password pair used to log in."""
        ...


# ---------------------------------------------------------------------------
# NoteSource
# ---------------------------------------------------------------------------
# Structural interface for the note service. HackMDClient implements it;
# tests use in-memory fakes.
# ---------------------------------------------------------------------------
class NoteSource(Protocol):
    def login(self, credentials: Credentials) -> None:
        """Open an authenticated session or raise AuthenticationError."""
        ...

    def list_notes(self, team: str) -> List[NoteSummary]:
        """Return the notes of a team, in the order the service lists them."""
        ...

    def fetch_content(self, note_id: str) -> str:
        """Return the markdown body of a single note."""
        ...


# ---------------------------------------------------------------------------
# DocumentSink
# ---------------------------------------------------------------------------
class DocumentSink(Protocol):
    def add_documents(self, documents: List[IndexDocument]) -> Optional[int]:
        """
        Add or replace documents in the index.

        Returns the engine's task identifier when it provides one.
        """
        ...
