"""Catalog client protocol and helpers shared by the concrete clients."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Protocol

import httpx

from artifactlens.discovery.types import Catalog, SearchResponse


class CatalogClient(Protocol):
    """The calls the discovery engine needs from an external catalog.

    ``search_by_author`` returns a response with ``not_found=True`` when
    the author/organization does not exist.  Network and server failures
    raise :class:`~artifactlens.discovery.errors.CatalogError`.
    """

    catalog: Catalog

    def search_by_author(self, name: str) -> SearchResponse: ...

    def search_by_keyword(self, query: str) -> SearchResponse: ...

    def extract_author(self, url: str) -> str | None: ...

    def close(self) -> None: ...


def clean_handle(name: str, allowed: str = "a-z0-9-") -> str:
    """Turn a company name into a plausible catalog handle.

    Lowercases, replaces disallowed characters with hyphens, collapses
    repeated hyphens and trims them from both ends.
    """
    text = re.sub(rf"[^{allowed}]", "-", name.lower())
    text = re.sub(r"-+", "-", text)
    return text.strip("-")


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp as returned by catalog APIs."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def make_http_client(
    base_url: str,
    *,
    user_agent: str,
    timeout: float,
    token: str = "",
    accept: str = "application/json",
) -> httpx.Client:
    """Create an httpx client with the headers every catalog call carries."""
    headers = {"Accept": accept, "User-Agent": user_agent}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return httpx.Client(
        base_url=base_url,
        headers=headers,
        timeout=timeout,
        follow_redirects=True,
    )
