"""
Public pipeline API surface.

External callers (CLI, tests) should import from here rather than reaching
into submodules directly.
"""

from .documents import build_documents, note_to_document
from .orchestrator import (
    IndexReport,
    UpdateReport,
    download_team_notes,
    index_database,
    update_database,
)

__all__ = [
    "build_documents",
    "note_to_document",
    "download_team_notes",
    "update_database",
    "index_database",
    "UpdateReport",
    "IndexReport",
]
