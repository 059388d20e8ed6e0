"""
HackMD web client.

HackMD does not offer a token-based API for team workspaces that works with a
plain email/password account, so this client drives the same endpoints the
web application uses:

    GET  /                              → HTML page carrying the CSRF token
    POST /login                         → form login, sets the session cookie
    GET  /me                            → {"status": "ok"} once signed in
    GET  /api/overview/team/<team>      → JSON listing of the team's notes
    GET  /<note id>/download            → markdown body of one note

The session lives in the httpx cookie jar for as long as the client is open.
Nothing is written to disk.
"""

import re
from urllib.parse import quote
from typing import Any, List, Optional

import httpx

from hackmd_index.config import DEFAULT_SERVER_URL, DEFAULT_TIMEOUT
from hackmd_index.errors import AuthenticationError, NetworkError
from hackmd_index.types import Credentials, NoteSummary

# See: https://hackmd.io/@ystl/BkqNtYvrP
CSRF_TOKEN_PATTERN = re.compile(r'"csrf-token" content="([^"]+)"')


def extract_csrf_token(html: str) -> str:
    """Return the CSRF token embedded in a HackMD page, or raise."""
    match = CSRF_TOKEN_PATTERN.search(html)
    if match is None:
        raise AuthenticationError("No CSRF token found on the HackMD login page.")
    return match.group(1)


class HackMDClient:
    """
    NoteSource implementation backed by the HackMD web endpoints.

    Parameters
    ----------
    server_url : str
        Base URL of the HackMD instance.
    timeout : float
        Per-request timeout in seconds.
    http_client : httpx.Client, optional
        Pre-built client (tests pass one with an httpx.MockTransport). When
        given, `server_url` and `timeout` are ignored.
    """

    def __init__(
        self,
        server_url: str = DEFAULT_SERVER_URL,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        if http_client is None:
            http_client = httpx.Client(
                base_url=server_url,
                timeout=timeout,
                follow_redirects=True,
            )
        self._http = http_client
        self.csrf_token: Optional[str] = None

    # -----------------------------------------------------------------------
    # Context management
    # -----------------------------------------------------------------------

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "HackMDClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # -----------------------------------------------------------------------
    # Internal helper: send a request, mapping transport errors
    # -----------------------------------------------------------------------

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise NetworkError(f"{method} {url} failed: {e}") from e

    def _get_ok(self, url: str) -> httpx.Response:
        response = self._request("GET", url)
        if response.is_error:
            raise NetworkError(
                f"GET {url} returned HTTP {response.status_code}"
            )
        return response

    # -----------------------------------------------------------------------
    # Authentication
    # -----------------------------------------------------------------------

    def fetch_csrf_token(self) -> str:
        response = self._get_ok("/")
        self.csrf_token = extract_csrf_token(response.text)
        return self.csrf_token

    def login(self, credentials: Credentials) -> None:
        """
        Log in with an email/password pair.

        Raises
        ------
        AuthenticationError
            If no CSRF token can be found or HackMD rejects the login.
        NetworkError
            If HackMD cannot be reached.
        """
        token = self.fetch_csrf_token()

        response = self._request(
            "POST",
            "/login",
            headers={"X-XSRF-Token": token},
            data={"email": credentials.email, "password": credentials.password},
        )

        if not response.is_success:
            raise AuthenticationError(
                f"Login failure (HTTP {response.status_code})."
            )

        # A rejected login is a redirect back to the site, not an error status.
        self.verify_session()

    def verify_session(self) -> None:
        """Raise AuthenticationError unless `/me` reports a signed-in user."""
        response = self._request("GET", "/me")

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if (
            response.is_error
            or not isinstance(payload, dict)
            or payload.get("status") != "ok"
        ):
            raise AuthenticationError(
                "Login failure: HackMD did not accept the email or password."
            )

    # -----------------------------------------------------------------------
    # Listing and download
    # -----------------------------------------------------------------------

    def list_notes(self, team: str) -> List[NoteSummary]:
        """Return the team's notes in the order HackMD lists them."""
        url = f"/api/overview/team/{quote(team, safe='')}"
        response = self._get_ok(url)

        try:
            payload = response.json()
        except ValueError as e:
            raise NetworkError(f"GET {url} did not return JSON") from e

        if not isinstance(payload, list):
            raise NetworkError(f"GET {url} did not return a list of notes")

        return [_to_summary(entry, url) for entry in payload]

    def fetch_content(self, note_id: str) -> str:
        return self._get_ok(f"/{quote(note_id, safe='')}/download").text


def _to_summary(entry: Any, url: str) -> NoteSummary:
    if not isinstance(entry, dict) or "id" not in entry:
        raise NetworkError(f"GET {url} returned a note without an id: {entry!r}")

    updated_at = entry.get("lastchangeAt")
    return NoteSummary(
        id=str(entry["id"]),
        title=entry.get("title") or "",
        updatedAt=None if updated_at is None else str(updated_at),
    )
