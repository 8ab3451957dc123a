"""Candidate search strategies.

Each strategy asks a catalog client for raw candidates and tags them with
the method that found them.  A catalog failure never escapes a strategy: it
becomes an issue string and zero candidates, and discovery moves on to the
next strategy.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from artifactlens.discovery.errors import CatalogError
from artifactlens.discovery.types import CandidateArtifact, DiscoveryMethod, Entity, SearchResponse

if TYPE_CHECKING:
    from artifactlens.catalogs.base import CatalogClient

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StrategyOutcome:
    method: DiscoveryMethod
    candidates: tuple[CandidateArtifact, ...] = ()
    rate_limit_remaining: int | None = None
    not_found: bool = False
    issues: tuple[str, ...] = field(default_factory=tuple)


def _run(
    method: DiscoveryMethod,
    call: Callable[[], SearchResponse],
    target: str,
) -> StrategyOutcome:
    try:
        response = call()
    except CatalogError as exc:
        logger.warning("strategy_failed", method=method.value, target=target, error=str(exc))
        return StrategyOutcome(method=method, issues=(f"{method.value} strategy failed: {exc}",))

    candidates = tuple(c.tagged(method) for c in response.candidates)
    logger.debug(
        "strategy_complete",
        method=method.value,
        target=target,
        found=len(candidates),
        not_found=response.not_found,
    )
    return StrategyOutcome(
        method=method,
        candidates=candidates,
        rate_limit_remaining=response.rate_limit_remaining,
        not_found=response.not_found,
    )


def search_by_author(
    client: CatalogClient,
    name: str,
    method: DiscoveryMethod = DiscoveryMethod.ORGANIZATION,
) -> StrategyOutcome:
    """Exact organization/author lookup.  A missing author is an empty result."""
    return _run(method, lambda: client.search_by_author(name), name)


def search_by_keyword(client: CatalogClient, query: str) -> StrategyOutcome:
    """Free-text search: more recall, less precision."""
    return _run(DiscoveryMethod.SEARCH, lambda: client.search_by_keyword(query), query)


def search_from_known_url(client: CatalogClient, url: str) -> StrategyOutcome:
    """Look up the author a catalog URL (e.g. a profile page) points at."""
    author = client.extract_author(url)
    if author is None:
        return StrategyOutcome(method=DiscoveryMethod.WEBSITE)
    return _run(DiscoveryMethod.WEBSITE, lambda: client.search_by_author(author), url)


def slug_differs(entity: Entity) -> bool:
    """True when the slug would name a different catalog namespace than the name."""
    if not entity.slug:
        return False
    compact_name = "".join(entity.name.lower().split())
    return entity.slug.lower() != compact_name


def catalog_url(entity: Entity, client: CatalogClient) -> str | None:
    """Return the entity's website when it points into *client*'s catalog."""
    if entity.website_url and client.extract_author(entity.website_url):
        return entity.website_url
    return None
