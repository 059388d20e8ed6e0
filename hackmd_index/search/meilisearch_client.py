"""
Meilisearch document sink.

A thin httpx-based client for the handful of Meilisearch endpoints the index
phase needs:

    GET  /health                       → instance is up
    GET  /indexes/<uid>                → does the index exist?
    POST /indexes                      → create it (asynchronous task)
    POST /indexes/<uid>/documents      → add or replace documents (task)
    GET  /tasks/<taskUid>              → task status

Documents are added with `primaryKey=id`, so submitting the same database
twice replaces documents instead of duplicating them.

The client never retries. Any HTTP error status or transport failure is
raised as NetworkError.
"""

import time
from typing import Any, Dict, List, Optional

import httpx

from hackmd_index.config import (
    DEFAULT_MEILISEARCH_API_KEY,
    DEFAULT_MEILISEARCH_INDEX,
    DEFAULT_TIMEOUT,
)
from hackmd_index.errors import NetworkError
from hackmd_index.types import IndexDocument

PRIMARY_KEY = "id"
TERMINAL_TASK_STATUSES = {"succeeded", "failed", "canceled"}


class MeilisearchClient:
    """
    DocumentSink implementation for a Meilisearch instance.

    The index is resolved lazily on the first add_documents() call: the
    instance health is checked, then the index is created (and its creation
    task awaited) if it does not exist yet.
    """

    def __init__(
        self,
        url: str,
        api_key: Optional[str] = DEFAULT_MEILISEARCH_API_KEY,
        index_uid: str = DEFAULT_MEILISEARCH_INDEX,
        timeout: float = DEFAULT_TIMEOUT,
        wait: bool = False,
        poll_interval: float = 0.5,
        task_timeout: float = 60.0,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        if http_client is None:
            headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
            http_client = httpx.Client(base_url=url, headers=headers, timeout=timeout)

        self._http = http_client
        self.index_uid = index_uid
        self.wait = wait
        self.poll_interval = poll_interval
        self.task_timeout = task_timeout
        self._index_ready = False

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "MeilisearchClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # -----------------------------------------------------------------------
    # Internal helper: send a request and decode the JSON body
    # -----------------------------------------------------------------------

    def _call(
        self,
        method: str,
        url: str,
        allowed: tuple = (),
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            response = self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise NetworkError(f"Meilisearch {method} {url} failed: {e}") from e

        if response.is_error and response.status_code not in allowed:
            raise NetworkError(
                f"Meilisearch {method} {url} returned HTTP "
                f"{response.status_code}: {_error_message(response)}"
            )
        return response

    def _call_json(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        response = self._call(method, url, **kwargs)
        try:
            payload = response.json()
        except ValueError as e:
            raise NetworkError(
                f"Meilisearch {method} {url} did not return JSON "
                f"(is {self._http.base_url} a Meilisearch instance?)"
            ) from e

        if not isinstance(payload, dict):
            raise NetworkError(
                f"Meilisearch {method} {url} returned an unexpected payload: {payload!r}"
            )
        return payload

    # -----------------------------------------------------------------------
    # Instance and index management
    # -----------------------------------------------------------------------

    def health(self) -> Dict[str, Any]:
        return self._call_json("GET", "/health")

    def ensure_index(self) -> None:
        """Create the index with primary key `id` unless it already exists."""
        response = self._call("GET", f"/indexes/{self.index_uid}", allowed=(404,))
        if response.status_code != 404:
            return

        created = self._call_json(
            "POST",
            "/indexes",
            json={"uid": self.index_uid, "primaryKey": PRIMARY_KEY},
        )

        # Creation is asynchronous; documents must not race ahead of it.
        self.wait_for_task(_task_uid(created))

    def wait_for_task(self, task_uid: int) -> Dict[str, Any]:
        """
        Poll a task until it reaches a terminal status.

        Raises
        ------
        NetworkError
            If the task fails, is canceled, or does not finish within
            `task_timeout` seconds.
        """
        deadline = time.monotonic() + self.task_timeout

        while True:
            task = self._call_json("GET", f"/tasks/{task_uid}")
            status = task.get("status")

            if status in TERMINAL_TASK_STATUSES:
                if status != "succeeded":
                    error = task.get("error")
                    if not isinstance(error, dict):
                        error = {}
                    raise NetworkError(
                        f"Meilisearch task {task_uid} {status}: "
                        f"{error.get('message', 'no details')}"
                    )
                return task

            if time.monotonic() >= deadline:
                raise NetworkError(
                    f"Meilisearch task {task_uid} did not finish within "
                    f"{self.task_timeout} seconds (status: {status})"
                )
            time.sleep(self.poll_interval)

    # -----------------------------------------------------------------------
    # DocumentSink
    # -----------------------------------------------------------------------

    def add_documents(self, documents: List[IndexDocument]) -> Optional[int]:
        """Add or replace documents, returning the enqueued task uid."""
        if not self._index_ready:
            self.health()
            self.ensure_index()
            self._index_ready = True

        enqueued = self._call_json(
            "POST",
            f"/indexes/{self.index_uid}/documents",
            params={"primaryKey": PRIMARY_KEY},
            json=list(documents),
        )

        task_uid = _task_uid(enqueued)
        if self.wait:
            self.wait_for_task(task_uid)
        return task_uid


def _task_uid(payload: Dict[str, Any]) -> int:
    # Meilisearch >= 1.0 reports `taskUid`; older releases used `uid`.
    for key in ("taskUid", "uid"):
        if isinstance(payload.get(key), int):
            return payload[key]
    raise NetworkError(f"Meilisearch response has no task uid: {payload!r}")


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and "message" in body:
        return str(body["message"])
    return response.text
