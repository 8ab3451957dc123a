"""GitHub repository catalog.

Organization lookup: ``GET /orgs/{org}/repos``.
Keyword search: ``GET /search/repositories`` (name and description).
Rate limit: 5,000 authenticated requests per hour, reported in the
``x-ratelimit-remaining`` response header.  Unauthenticated search is too
constrained to be useful, so without a token every search returns nothing.
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

SEARCH_PAGE_SIZE = 10

# https://acme.github.io/..., https://github.com/acme or https://github.com/orgs/acme
_PAGES_URL = re.compile(r"https?://([^./]+)\.github\.io", re.IGNORECASE)
_PROFILE_URL = re.compile(
    r"https?://(?:www\.)?github\.com/(?:orgs/)?([^/?#]+)", re.IGNORECASE
)

# Site pages that look like profiles but are not
_RESERVED_PATHS = frozenset({
    "about", "apps", "collections", "customer-stories", "enterprise", "events",
    "explore", "features", "issues", "login", "marketplace", "notifications",
    "orgs", "pricing", "pulls", "search", "security", "settings", "signup",
    "site", "sponsors", "topics", "trending",
})


def normalize_repository(raw: dict[str, Any]) -> CandidateArtifact:
    """Map a GitHub repository payload onto a candidate artifact."""
    owner = raw.get("owner")
    if isinstance(owner, dict):
        owner = owner.get("login", "")

    tags = list(raw.get("topics") or [])
    if raw.get("language"):
        tags.append(raw["language"].lower())

    return CandidateArtifact(
        catalog=Catalog.GITHUB,
        external_id=str(raw["id"]),
        owner=owner or "",
        name=raw.get("name", ""),
        popularity=raw.get("stargazers_count") or raw.get("stars_count") or 0,
        secondary_popularity=raw.get("forks_count") or 0,
        private=bool(raw.get("private", False)),
        disabled=bool(raw.get("archived", False) or raw.get("disabled", False)),
        last_activity=parse_timestamp(raw.get("pushed_at") or raw.get("updated_at")),
        tags=tuple(tags),
        url=raw.get("html_url"),
        description=raw.get("description"),
    )


class GitHubCatalog:
    catalog = Catalog.GITHUB

    def __init__(self, settings: Settings, client: httpx.Client | None = None) -> None:
        self._token = settings.github_token
        if not self._token:
            logger.warning("github_token_missing", detail="discovery will return no results")
        self._client = client or make_http_client(
            settings.github_api_url,
            user_agent=settings.user_agent,
            timeout=settings.http_timeout,
            token=self._token,
            accept="application/vnd.github+json",
        )

    def close(self) -> None:
        self._client.close()

    def _get(self, path: str, params: dict[str, Any] | None = None) -> httpx.Response:
        try:
            return self._client.get(path, params=params)
        except httpx.HTTPError as exc:
            raise CatalogError(self.catalog.value, f"request to {path} failed: {exc}") from exc

    def search_by_author(self, name: str) -> SearchResponse:
        """List the repositories of the GitHub organization named like *name*."""
        if not self._token:
            return SearchResponse()

        org = clean_handle(name)
        if not org:
            return SearchResponse(not_found=True)

        resp = self._get(f"/orgs/{org}/repos", params={"per_page": 100})
        remaining = parse_rate_limit_header(resp.headers, "x-ratelimit-remaining")

        if resp.status_code == 404:
            logger.debug("github_org_not_found", org=org)
            return SearchResponse(rate_limit_remaining=remaining, not_found=True)
        if resp.status_code >= 400:
            raise CatalogError(
                self.catalog.value,
                f"organization lookup for {org} returned {resp.status_code}",
                status_code=resp.status_code,
            )

        repos = [normalize_repository(r) for r in resp.json()]
        return SearchResponse(candidates=tuple(repos), rate_limit_remaining=remaining)

    def search_by_keyword(self, query: str) -> SearchResponse:
        """Search repositories whose name or description mentions *query*."""
        if not self._token:
            return SearchResponse()

        resp = self._get(
            "/search/repositories",
            params={
                "q": f"{query} in:name,description",
                "sort": "stars",
                "per_page": SEARCH_PAGE_SIZE,
            },
        )
        remaining = parse_rate_limit_header(resp.headers, "x-ratelimit-remaining")

        if resp.status_code >= 400:
            raise CatalogError(
                self.catalog.value,
                f"repository search for {query!r} returned {resp.status_code}",
                status_code=resp.status_code,
            )

        items = resp.json().get("items", [])
        repos = [normalize_repository(r) for r in items]
        return SearchResponse(candidates=tuple(repos), rate_limit_remaining=remaining)

    def extract_author(self, url: str) -> str | None:
        """Return the GitHub user/org a Pages or profile URL points at."""
        pages = _PAGES_URL.match(url)
        if pages:
            return pages.group(1)
        match = _PROFILE_URL.match(url)
        if not match or match.group(1).lower() in _RESERVED_PATHS:
            return None
        return match.group(1)
