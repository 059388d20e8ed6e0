# hackmd_index/config.py

import os
from dataclasses import dataclass

import httpx

from hackmd_index.errors import ArgumentError

DEFAULT_SERVER_URL = "https://hackmd.io"
DEFAULT_DATABASE = "hackmd.json"
DEFAULT_TIMEOUT = 30.0
DEFAULT_MEILISEARCH_API_KEY = "masterKey"
DEFAULT_MEILISEARCH_INDEX = "pages"


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, read from the environment."""

    server_url: str = DEFAULT_SERVER_URL
    http_timeout: float = DEFAULT_TIMEOUT
    meilisearch_api_key: str = DEFAULT_MEILISEARCH_API_KEY
    meilisearch_index: str = DEFAULT_MEILISEARCH_INDEX


def load_settings() -> Settings:
    """
    Build Settings from the process environment.

    `.env` is loaded once by the CLI module at import time, so its values
    are already in `os.environ` here.
    """
    raw_timeout = os.getenv("HACKMD_HTTP_TIMEOUT", str(DEFAULT_TIMEOUT))
    try:
        timeout = float(raw_timeout)
    except ValueError as e:
        raise ArgumentError(
            f"HACKMD_HTTP_TIMEOUT must be a number of seconds, got {raw_timeout!r}"
        ) from e

    return Settings(
        server_url=check_base_url(
            os.getenv("HACKMD_SERVER_URL", DEFAULT_SERVER_URL), "HACKMD_SERVER_URL"
        ),
        http_timeout=timeout,
        meilisearch_api_key=os.getenv(
            "MEILISEARCH_API_KEY", DEFAULT_MEILISEARCH_API_KEY
        ),
        meilisearch_index=os.getenv("MEILISEARCH_INDEX", DEFAULT_MEILISEARCH_INDEX),
    )


def check_base_url(value: str, name: str) -> str:
    """Return `value` if it is an absolute http(s) URL, else raise ArgumentError."""
    try:
        url = httpx.URL(value)
    except httpx.InvalidURL as e:
        raise ArgumentError(f"{name} is not a valid URL ({value!r}): {e}") from e

    if url.scheme not in ("http", "https") or not url.host:
        raise ArgumentError(
            f"{name} must be an http:// or https:// URL, got {value!r}"
        )
    return value
