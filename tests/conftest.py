"""
Shared pytest configuration for the hackmd_index test suite.

This file centralizes reusable testing utilities so that:
    • pipeline tests run against deterministic in-memory fakes
    • HTTP client tests run against httpx.MockTransport servers
    • CLI tests use a fresh Typer CliRunner

No test touches the network or prompts a real terminal.
"""

import json
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs

import httpx
import pytest
from typer.testing import CliRunner

from hackmd_index.credentials import StaticCredentialSource
from hackmd_index.errors import AuthenticationError, NetworkError
from hackmd_index.types import Credentials

HACKMD_URL = "https://hackmd.test"
MEILISEARCH_URL = "http://meilisearch.test:7700"

EMAIL = "alice@example.com"
PASSWORD = "correct horse"
CSRF_TOKEN = "tok-123"


# ============================================================================
# SHARED TEST INFRASTRUCTURE
# ============================================================================


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provides a fresh Typer CliRunner instance for CLI tests."""
    return CliRunner()


@pytest.fixture
def credentials() -> StaticCredentialSource:
    return StaticCredentialSource(EMAIL, PASSWORD)


@pytest.fixture
def team_notes() -> List[Dict[str, Any]]:
    """Two-note team used by the end-to-end scenarios."""
    return [
        {
            "id": "a1",
            "title": "Intro",
            "lastchangeAt": "2024-01-01T12:00:00.000Z",
            "content": "# Intro\n\nWelcome to the team.",
        },
        {
            "id": "a2",
            "title": "Specs",
            "lastchangeAt": "2024-01-02T09:30:00.000Z",
            "content": "# Specs\n\n- item one\n- item two",
        },
    ]


@pytest.fixture
def write_json(tmp_path):
    """Write a JSON payload to a file under tmp_path and return its path."""

    def _writer(name: str, payload: Any):
        path = tmp_path / name
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _writer


# ============================================================================
# IN-MEMORY FAKES FOR THE PIPELINE PROTOCOLS
# ============================================================================


class FakeNoteSource:
    """
    NoteSource fake.

    Records every call so tests can assert on sequencing. A note id listed
    in `failing_ids` raises NetworkError when its content is fetched.
    """

    def __init__(
        self,
        notes: List[Dict[str, Any]],
        password: str = PASSWORD,
        failing_ids: Optional[List[str]] = None,
    ) -> None:
        self.notes = notes
        self.password = password
        self.failing_ids = set(failing_ids or [])
        self.calls: List[tuple] = []
        self.logged_in = False

    def login(self, credentials: Credentials) -> None:
        self.calls.append(("login", credentials.email))
        if credentials.password != self.password:
            raise AuthenticationError("Login failure (HTTP 401).")
        self.logged_in = True

    def list_notes(self, team: str):
        self.calls.append(("list_notes", team))
        return [
            {"id": n["id"], "title": n["title"], "updatedAt": n.get("lastchangeAt")}
            for n in self.notes
        ]

    def fetch_content(self, note_id: str) -> str:
        self.calls.append(("fetch_content", note_id))
        if note_id in self.failing_ids:
            raise NetworkError(f"GET /{note_id}/download returned HTTP 500")
        for note in self.notes:
            if note["id"] == note_id:
                return note["content"]
        raise NetworkError(f"GET /{note_id}/download returned HTTP 404")


class FakeDocumentSink:
    """
    DocumentSink fake with upsert-by-id semantics.

    `batches` records every add_documents() call; `documents` holds the
    resulting index contents keyed by id.
    """

    def __init__(self) -> None:
        self.batches: List[List[Dict[str, Any]]] = []
        self.documents: Dict[str, Dict[str, Any]] = {}

    def add_documents(self, documents):
        self.batches.append(list(documents))
        for doc in documents:
            self.documents[doc["id"]] = dict(doc)
        return len(self.batches)


@pytest.fixture
def fake_source(team_notes) -> FakeNoteSource:
    return FakeNoteSource(team_notes)


@pytest.fixture
def fake_sink() -> FakeDocumentSink:
    return FakeDocumentSink()


# ============================================================================
# MOCK HTTP SERVERS
# ============================================================================


class FakeHackMDServer:
    """Routes HackMD web requests for an httpx.MockTransport."""

    def __init__(self, notes: List[Dict[str, Any]], team: str = "my-team") -> None:
        self.notes = notes
        self.team = team
        self.requests: List[httpx.Request] = []
        self.fail_download: Optional[str] = None
        self.serve_csrf = True
        self.session_cookie = "hackmd-session"

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "GET" and path == "/":
            meta = (
                f'<meta name="csrf-token" content="{CSRF_TOKEN}">'
                if self.serve_csrf
                else ""
            )
            return httpx.Response(200, html=f"<html><head>{meta}</head></html>")

        if request.method == "POST" and path == "/login":
            form = parse_qs(request.content.decode())
            ok = (
                request.headers.get("X-XSRF-Token") == CSRF_TOKEN
                and form.get("email") == [EMAIL]
                and form.get("password") == [PASSWORD]
            )
            # HackMD redirects back to the site either way; only a good login
            # sets the session cookie.
            if not ok:
                return httpx.Response(302, headers={"Location": "/"})
            return httpx.Response(
                302,
                headers={
                    "Location": "/",
                    "Set-Cookie": f"connect.sid={self.session_cookie}; Path=/",
                },
            )

        if request.method == "GET" and path == "/me":
            if self._has_session(request):
                return httpx.Response(200, json={"status": "ok", "email": EMAIL})
            return httpx.Response(200, json={"status": "forbidden"})

        if not self._has_session(request):
            return httpx.Response(403, text="Forbidden")

        if request.method == "GET" and path == f"/api/overview/team/{self.team}":
            listing = [
                {"id": n["id"], "title": n["title"], "lastchangeAt": n["lastchangeAt"]}
                for n in self.notes
            ]
            return httpx.Response(200, json=listing)

        if request.method == "GET" and path.endswith("/download"):
            note_id = path.strip("/").split("/")[0]
            if note_id == self.fail_download:
                return httpx.Response(500, text="boom")
            for note in self.notes:
                if note["id"] == note_id:
                    return httpx.Response(200, text=note["content"])

        return httpx.Response(404, text="Not found")

    def _has_session(self, request: httpx.Request) -> bool:
        return f"connect.sid={self.session_cookie}" in request.headers.get("cookie", "")

    def client(self) -> httpx.Client:
        return httpx.Client(
            base_url=HACKMD_URL,
            transport=httpx.MockTransport(self.handler),
            follow_redirects=True,
        )


class FakeMeilisearchServer:
    """
    Minimal in-memory Meilisearch for an httpx.MockTransport.

    Tasks complete immediately with `task_status` (default "succeeded").
    """

    def __init__(self, existing_indexes: Optional[List[str]] = None) -> None:
        self.indexes = set(existing_indexes or [])
        self.documents: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.tasks: Dict[int, Dict[str, Any]] = {}
        self.requests: List[httpx.Request] = []
        self.document_posts: List[List[Dict[str, Any]]] = []
        self.task_status = "succeeded"
        self.healthy = True

    def _enqueue(self, kind: str, index_uid: str, status: str) -> httpx.Response:
        uid = len(self.tasks)
        task: Dict[str, Any] = {
            "uid": uid,
            "indexUid": index_uid,
            "type": kind,
            "status": status,
        }
        if status == "failed":
            task["error"] = {"message": "invalid document", "code": "invalid_document"}
        self.tasks[uid] = task
        return httpx.Response(
            202,
            json={"taskUid": uid, "indexUid": index_uid, "status": "enqueued", "type": kind},
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        parts = path.strip("/").split("/")

        if path == "/health":
            if not self.healthy:
                return httpx.Response(503, json={"message": "unavailable"})
            return httpx.Response(200, json={"status": "available"})

        if request.method == "POST" and path == "/indexes":
            body = json.loads(request.content)
            self.indexes.add(body["uid"])
            self.documents.setdefault(body["uid"], {})
            return self._enqueue("indexCreation", body["uid"], "succeeded")

        if parts[0] == "indexes" and len(parts) == 2 and request.method == "GET":
            if parts[1] in self.indexes:
                return httpx.Response(200, json={"uid": parts[1], "primaryKey": "id"})
            return httpx.Response(
                404,
                json={"message": f"Index `{parts[1]}` not found.", "code": "index_not_found"},
            )

        if parts[0] == "indexes" and len(parts) == 3 and parts[2] == "documents":
            if request.method != "POST":
                return httpx.Response(405)
            if request.url.params.get("primaryKey") != "id":
                return httpx.Response(400, json={"message": "missing primaryKey"})
            docs = json.loads(request.content)
            self.document_posts.append(docs)
            store = self.documents.setdefault(parts[1], {})
            if self.task_status == "succeeded":
                for doc in docs:
                    store[doc["id"]] = doc
            return self._enqueue("documentAdditionOrUpdate", parts[1], self.task_status)

        if parts[0] == "tasks" and len(parts) == 2:
            task = self.tasks.get(int(parts[1]))
            if task is None:
                return httpx.Response(404, json={"message": "task not found"})
            return httpx.Response(200, json=task)

        return httpx.Response(404, json={"message": "not found"})

    def client(self) -> httpx.Client:
        return httpx.Client(
            base_url=MEILISEARCH_URL,
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def hackmd_server(team_notes) -> FakeHackMDServer:
    return FakeHackMDServer(team_notes)


@pytest.fixture
def meilisearch_server() -> FakeMeilisearchServer:
    return FakeMeilisearchServer()
