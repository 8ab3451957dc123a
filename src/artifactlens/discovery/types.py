"""Shared data types for catalog discovery."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any


class Catalog(str, Enum):
    GITHUB = "github"
    HUGGINGFACE = "huggingface"


class DiscoveryMethod(str, Enum):
    """Search strategy that produced a candidate."""

    ORGANIZATION = "organization"
    SLUG = "slug"
    SEARCH = "search"
    WEBSITE = "website"


# Direct namespace lookups; everything else is indirect discovery
DIRECT_METHODS = frozenset({DiscoveryMethod.ORGANIZATION, DiscoveryMethod.SLUG})


class ConfidenceTier(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class Entity:
    """A company that needs catalog discovery."""

    id: str
    name: str
    slug: str | None = None
    website_url: str | None = None


@dataclass(frozen=True)
class CandidateArtifact:
    """A repository or model returned by a catalog search, not yet trusted.

    ``popularity`` is the catalog's primary engagement metric (stars,
    downloads) and ``secondary_popularity`` its secondary one (forks, likes).
    ``disabled`` covers both disabled and archived artifacts.
    """

    catalog: Catalog
    external_id: str
    owner: str
    name: str
    popularity: int = 0
    secondary_popularity: int = 0
    private: bool = False
    gated: bool = False
    disabled: bool = False
    last_activity: datetime | None = None
    tags: tuple[str, ...] = ()
    url: str | None = None
    description: str | None = None
    discovery_method: DiscoveryMethod | None = None

    @property
    def identifier(self) -> str:
        return f"{self.catalog.value}:{self.external_id}"

    def tagged(self, method: DiscoveryMethod) -> CandidateArtifact:
        """Return a copy recording which strategy found this candidate."""
        return replace(self, discovery_method=method)

    def to_payload(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "owner": self.owner,
            "name": self.name,
            "popularity": self.popularity,
            "secondaryPopularity": self.secondary_popularity,
            "url": self.url,
            "discoveryMethod": (
                self.discovery_method.value if self.discovery_method else None
            ),
        }


@dataclass(frozen=True)
class SearchResponse:
    """Outcome of a single catalog call.

    ``not_found`` distinguishes a missing author/organization (a normal,
    empty result) from a successful search that matched nothing.
    """

    candidates: tuple[CandidateArtifact, ...] = ()
    rate_limit_remaining: int | None = None
    not_found: bool = False


@dataclass(frozen=True)
class Association:
    entity_id: str
    artifact_id: str
    is_primary: bool
    discovery_method: DiscoveryMethod
    confidence_score: float
    note: str


@dataclass
class DiscoveryResult:
    """Per-entity discovery outcome, returned inside the batch report.

    ``search_methods`` lists every strategy that was attempted, in order.
    ``failed`` marks an entity whose discovery was cut short by an
    unexpected error; its candidates are reported but never stored.
    """

    entity_id: str
    entity_name: str
    search_methods: list[DiscoveryMethod] = field(default_factory=list)
    candidates: list[CandidateArtifact] = field(default_factory=list)
    associations_stored: int = 0
    confidence: ConfidenceTier = ConfidenceTier.LOW
    issues: list[str] = field(default_factory=list)
    failed: bool = False

    def to_payload(self) -> dict[str, Any]:
        return {
            "entityId": self.entity_id,
            "entityName": self.entity_name,
            "searchMethods": [m.value for m in self.search_methods],
            "candidatesFound": [c.to_payload() for c in self.candidates],
            "associationsStored": self.associations_stored,
            "confidence": self.confidence.value,
            "issues": list(self.issues),
        }


@dataclass
class BatchReport:
    catalog: Catalog
    success: bool = False
    entities_processed: int = 0
    total_candidates_found: int = 0
    total_associations_stored: int = 0
    results: list[DiscoveryResult] = field(default_factory=list)
    processing_time_ms: int = 0
    rate_limit_remaining: int | None = None
    stopped_early: bool = False

    def add(self, result: DiscoveryResult) -> None:
        self.results.append(result)

    def finalize(self, processing_time_ms: int, rate_limit_remaining: int | None) -> None:
        """Compute totals by summing per-entity results."""
        self.entities_processed = len(self.results)
        self.total_candidates_found = sum(len(r.candidates) for r in self.results)
        self.total_associations_stored = sum(r.associations_stored for r in self.results)
        self.processing_time_ms = processing_time_ms
        self.rate_limit_remaining = rate_limit_remaining
        self.success = True

    def to_payload(self) -> dict[str, Any]:
        """Render the batch trigger payload."""
        return {
            "success": self.success,
            "entitiesProcessed": self.entities_processed,
            "totalCandidatesFound": self.total_candidates_found,
            "totalAssociationsStored": self.total_associations_stored,
            "results": [r.to_payload() for r in self.results],
            "processingTimeMs": self.processing_time_ms,
            "rateLimitRemaining": self.rate_limit_remaining,
        }
