"""Projection of database notes into search documents."""

from typing import Iterable, List

from hackmd_index.types import IndexDocument, Note


def note_to_document(note: Note) -> IndexDocument:
    return IndexDocument(
        id=note["id"],
        title=note.get("title") or "",
        content=note.get("content") or "",
        updatedAt=note.get("updatedAt"),
    )


def build_documents(notes: Iterable[Note]) -> List[IndexDocument]:
    return [note_to_document(note) for note in notes]
