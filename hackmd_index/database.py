"""
Local JSON database.

The database is a single JSON file holding an array of Note objects:

    [
      {"id": "...", "title": "...", "content": "...", "updatedAt": "..."},
      ...
    ]

It is written by the update phase and read by the index phase. Every write
replaces the whole file: the notes are serialized to a temporary file next to
the target and moved into place with os.replace(), so readers only ever see
the previous complete file or the new complete file.
"""

import json
import os
import stat
import tempfile
from pathlib import Path
from typing import Any, List, Sequence

from hackmd_index.errors import DatabaseError
from hackmd_index.types import Note


def write_database(path: Path, notes: Sequence[Note]) -> None:
    """
    Serialize notes to `path`, replacing any existing file.

    Raises
    ------
    DatabaseError
        If the directory or the file cannot be written.
    """
    path = Path(path)
    payload = [dict(note) for note in notes]

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
        )
    except OSError as e:
        raise DatabaseError(f"Unable to create database file {path}: {e}") from e

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
        # mkstemp creates 0600; keep the mode a plain open() would give.
        os.chmod(tmp_name, _target_mode(path))
        os.replace(tmp_name, path)
    except OSError as e:
        _discard(tmp_name)
        raise DatabaseError(f"Unable to write database {path}: {e}") from e
    except BaseException:
        _discard(tmp_name)
        raise


def read_database(path: Path) -> List[Note]:
    """
    Load the notes stored at `path`.

    Raises
    ------
    DatabaseError
        If the file is missing or unreadable, is not valid JSON, or does not
        contain an array of note objects.
    """
    path = Path(path)

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DatabaseError(f"Unable to read database {path}: {e}") from e

    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise DatabaseError(f"Invalid JSON in database {path}: {e}") from e

    if not isinstance(raw, list):
        raise DatabaseError(f"Database {path} must contain a JSON array of notes.")

    return [_to_note(entry, index, path) for index, entry in enumerate(raw)]


def _to_note(entry: Any, index: int, path: Path) -> Note:
    if not isinstance(entry, dict) or "id" not in entry:
        raise DatabaseError(
            f"Entry {index} in database {path} is not a note object with an id."
        )

    updated_at = entry.get("updatedAt")
    return Note(
        id=str(entry["id"]),
        title=entry.get("title") or "",
        content=entry.get("content") or "",
        updatedAt=None if updated_at is None else str(updated_at),
    )


def _target_mode(path: Path) -> int:
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        pass

    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def _discard(tmp_name: str) -> None:
    try:
        os.unlink(tmp_name)
    except FileNotFoundError:
        pass
