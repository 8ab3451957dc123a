"""Hugging Face model hub catalog.

Author lookup: ``GET /api/models?author=<author>``.
Keyword search: ``GET /api/models?search=<query>``.
A token is optional; it raises the rate limit but anonymous calls work.
"""

from __future__ import annotations

import re
from typing import Any

import httpx
import structlog

from artifactlens.catalogs.base import clean_handle, make_http_client, parse_timestamp
from artifactlens.config import Settings
from artifactlens.discovery.errors import CatalogError
from artifactlens.discovery.ratelimit import parse_rate_limit_header
from artifactlens.discovery.types import Catalog, CandidateArtifact, SearchResponse

logger = structlog.get_logger(__name__)

AUTHOR_PAGE_SIZE = 50
SEARCH_PAGE_SIZE = 20
HUB_URL = "https://huggingface.co"

_RATE_LIMIT_HEADERS = ("x-ratelimit-remaining", "ratelimit-remaining")
_PROFILE_URL = re.compile(r"https?://(?:www\.)?huggingface\.co/([^/?#]+)", re.IGNORECASE)

# Hub pages that look like profiles but are not
_RESERVED_PATHS = frozenset({
    "models", "datasets", "spaces", "docs", "blog", "pricing", "join", "login",
    "settings", "organizations", "papers", "collections",
})


def normalize_model(raw: dict[str, Any]) -> CandidateArtifact:
    """Map a hub model payload onto a candidate artifact."""
    model_id = raw.get("id") or raw.get("modelId") or ""
    author, _, model_name = model_id.partition("/")
    if not model_name:
        author, model_name = raw.get("author", ""), model_id

    return CandidateArtifact(
        catalog=Catalog.HUGGINGFACE,
        external_id=model_id,
        owner=raw.get("author") or author,
        name=model_name,
        popularity=raw.get("downloads") or 0,
        secondary_popularity=raw.get("likes") or 0,
        private=bool(raw.get("private", False)),
        # "gated" is False or the gating mode ("auto", "manual")
        gated=bool(raw.get("gated", False)),
        disabled=bool(raw.get("disabled", False)),
        last_activity=parse_timestamp(raw.get("lastModified") or raw.get("createdAt")),
        tags=tuple(raw.get("tags") or ()),
        url=f"{HUB_URL}/{model_id}",
        description=raw.get("pipeline_tag"),
    )


class HuggingFaceCatalog:
    catalog = Catalog.HUGGINGFACE

    def __init__(self, settings: Settings, client: httpx.Client | None = None) -> None:
        if not settings.huggingface_token:
            logger.warning("huggingface_token_missing", detail="using anonymous rate limit")
        self._client = client or make_http_client(
            settings.huggingface_api_url,
            user_agent=settings.user_agent,
            timeout=settings.http_timeout,
            token=settings.huggingface_token,
        )

    def close(self) -> None:
        self._client.close()

    def _list_models(self, params: dict[str, Any], what: str) -> SearchResponse:
        try:
            resp = self._client.get("/models", params=params)
        except httpx.HTTPError as exc:
            raise CatalogError(self.catalog.value, f"{what} failed: {exc}") from exc

        remaining = parse_rate_limit_header(resp.headers, *_RATE_LIMIT_HEADERS)
        if resp.status_code == 404:
            return SearchResponse(rate_limit_remaining=remaining, not_found=True)
        if resp.status_code >= 400:
            raise CatalogError(
                self.catalog.value,
                f"{what} returned {resp.status_code}",
                status_code=resp.status_code,
            )

        models = [normalize_model(m) for m in resp.json()]
        return SearchResponse(candidates=tuple(models), rate_limit_remaining=remaining)

    def search_by_author(self, name: str) -> SearchResponse:
        """List models published under the hub author named like *name*."""
        author = clean_handle(name, allowed="a-z0-9_-")
        if not author:
            return SearchResponse(not_found=True)
        response = self._list_models(
            {"author": author, "limit": AUTHOR_PAGE_SIZE, "full": "true"},
            f"author lookup for {author}",
        )
        if not response.candidates:
            logger.debug("huggingface_author_empty", author=author)
        return response

    def search_by_keyword(self, query: str) -> SearchResponse:
        return self._list_models(
            {"search": query, "limit": SEARCH_PAGE_SIZE, "full": "true"},
            f"model search for {query!r}",
        )

    def extract_author(self, url: str) -> str | None:
        """Return the hub author a ``huggingface.co/<author>`` URL points at."""
        match = _PROFILE_URL.match(url)
        if not match or match.group(1).lower() in _RESERVED_PATHS:
            return None
        return match.group(1)
