"""Shared fixtures for discovery tests.

Catalog and database collaborators are replaced by small in-memory fakes
that honour the same contracts (not-found responses, upsert semantics).
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import datetime, timezone

import pytest

from artifactlens.discovery.errors import CatalogError, PersistenceWriteError
from artifactlens.discovery.types import (
    Association,
    BatchReport,
    Catalog,
    CandidateArtifact,
    DiscoveryMethod,
    Entity,
    SearchResponse,
)

NOW = datetime(2026, 10, 19, tzinfo=timezone.utc)

_PROFILE_URL = re.compile(r"https?://(?:([^./]+)\.github\.io|github\.com/([^/?#]+))")


class FakeCatalog:
    """Catalog client answering from canned responses keyed by the query string."""

    def __init__(
        self,
        by_author: dict[str, list[CandidateArtifact]] | None = None,
        by_keyword: dict[str, list[CandidateArtifact]] | None = None,
        *,
        remaining: Callable[[str], int | None] | None = None,
        failing: set[str] | None = None,
        exploding: set[str] | None = None,
        catalog: Catalog = Catalog.GITHUB,
    ) -> None:
        self.catalog = catalog
        self.by_author = by_author or {}
        self.by_keyword = by_keyword or {}
        self.remaining = remaining or (lambda query: None)
        self.failing = failing or set()
        self.exploding = exploding or set()
        self.calls: list[tuple[str, str]] = []

    def _check(self, query: str) -> None:
        if query in self.failing:
            raise CatalogError(self.catalog.value, f"server error for {query}", status_code=502)
        if query in self.exploding:
            raise ValueError(f"malformed payload for {query}")

    def search_by_author(self, name: str) -> SearchResponse:
        self.calls.append(("author", name))
        self._check(name)
        if name not in self.by_author:
            return SearchResponse(rate_limit_remaining=self.remaining(name), not_found=True)
        return SearchResponse(
            candidates=tuple(self.by_author[name]),
            rate_limit_remaining=self.remaining(name),
        )

    def search_by_keyword(self, query: str) -> SearchResponse:
        self.calls.append(("keyword", query))
        self._check(query)
        return SearchResponse(
            candidates=tuple(self.by_keyword.get(query, [])),
            rate_limit_remaining=self.remaining(query),
        )

    def extract_author(self, url: str) -> str | None:
        match = _PROFILE_URL.match(url)
        if not match:
            return None
        return match.group(1) or match.group(2)


class InMemoryGateway:
    """Persistence gateway with the same upsert semantics as the SQL one.

    Primaries are tracked per catalog, like the partial unique index on
    ``(company_id, catalog)``.
    """

    def __init__(
        self,
        entities: list[Entity] | None = None,
        *,
        relist: bool = False,
        failing_identifiers: set[str] | None = None,
    ) -> None:
        self.entities = list(entities or [])
        self.relist = relist
        self.failing_identifiers = failing_identifiers or set()
        self.artifacts: dict[str, str] = {}
        self.artifact_catalogs: dict[str, Catalog] = {}
        self.associations: dict[tuple[str, str], Association] = {}
        self.sync_logs: list[tuple[BatchReport, str | None]] = []

    def _has_associations(self, entity_id: str) -> bool:
        return any(key[0] == entity_id for key in self.associations)

    def list_entities_needing_discovery(self, limit: int) -> list[Entity]:
        pending = [
            e for e in self.entities if self.relist or not self._has_associations(e.id)
        ]
        return pending[:limit]

    def count_entities_needing_discovery(self) -> int:
        return len([e for e in self.entities if not self._has_associations(e.id)])

    def upsert_artifact(self, candidate: CandidateArtifact) -> str:
        if candidate.identifier in self.failing_identifiers:
            raise PersistenceWriteError(f"artifact {candidate.identifier}: disk full")
        artifact_id = self.artifacts.setdefault(
            candidate.identifier, f"art-{len(self.artifacts) + 1}"
        )
        self.artifact_catalogs[artifact_id] = candidate.catalog
        return artifact_id

    def upsert_association(
        self,
        entity_id: str,
        artifact_id: str,
        *,
        is_primary: bool,
        discovery_method: DiscoveryMethod,
        confidence_score: float,
        note: str,
    ) -> bool:
        key = (entity_id, artifact_id)
        if key in self.associations:
            return False
        catalog = self.artifact_catalogs[artifact_id]
        has_primary = any(
            a.is_primary and self.artifact_catalogs[aid] is catalog
            for (eid, aid), a in self.associations.items()
            if eid == entity_id
        )
        self.associations[key] = Association(
            entity_id=entity_id,
            artifact_id=artifact_id,
            is_primary=is_primary and not has_primary,
            discovery_method=discovery_method,
            confidence_score=confidence_score,
            note=note,
        )
        return True

    def record_sync_log(self, report: BatchReport, error: str | None = None) -> None:
        self.sync_logs.append((report, error))

    def primaries(self, entity_id: str, catalog: Catalog | None = None) -> list[Association]:
        return [
            a
            for (eid, aid), a in self.associations.items()
            if eid == entity_id
            and a.is_primary
            and (catalog is None or self.artifact_catalogs[aid] is catalog)
        ]


@pytest.fixture()
def make_candidate() -> Callable[..., CandidateArtifact]:
    """Factory for candidate artifacts with sensible defaults."""
    counter = iter(range(1, 10_000))

    def _make(owner: str, name: str = "project", **kwargs) -> CandidateArtifact:
        kwargs.setdefault("external_id", str(next(counter)))
        kwargs.setdefault("catalog", Catalog.GITHUB)
        kwargs.setdefault("last_activity", NOW)
        return CandidateArtifact(owner=owner, name=name, **kwargs)

    return _make


@pytest.fixture()
def acme() -> Entity:
    return Entity(id="company-acme", name="Acme AI")
