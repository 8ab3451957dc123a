"""Batch discovery orchestrator.

Runs the per-company pipeline (search → ownership → quality → merge →
persist) over a page of companies that have no catalog associations yet.

Companies are processed one at a time: the shared constraint is the
catalog's rate limit, so pacing between companies is part of correctness.
Quota is read from the most recent response and threaded through the loop
as a plain value; when it drops below the safety floor the batch stops and
keeps whatever was already stored.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog

from artifactlens.discovery.errors import PersistenceWriteError
from artifactlens.discovery.merge import merge_new_candidates
from artifactlens.discovery.ownership import filter_owned
from artifactlens.discovery.quality import apply_quality_filter
from artifactlens.discovery.ratelimit import IntervalRateLimiter, observe_rate_limit, quota_exhausted
from artifactlens.discovery.scoring import assign_confidence_tier, score_confidence
from artifactlens.discovery.strategies import (
    StrategyOutcome,
    catalog_url,
    search_by_author,
    search_by_keyword,
    search_from_known_url,
    slug_differs,
)
from artifactlens.discovery.thresholds import DiscoveryThresholds
from artifactlens.discovery.types import (
    Association,
    BatchReport,
    CandidateArtifact,
    ConfidenceTier,
    DiscoveryMethod,
    DiscoveryResult,
    Entity,
)
from artifactlens.discovery.variations import generate_name_variations

if TYPE_CHECKING:
    from artifactlens.catalogs.base import CatalogClient
    from artifactlens.discovery.persistence import PersistenceGateway

logger = structlog.get_logger(__name__)

DEFAULT_MAX_BATCH_LIMIT = 20
NO_VALIDATED_ISSUE = "No artifacts passed ownership validation"


# ---------------------------------------------------------------------------
# Per-company pipeline
# ---------------------------------------------------------------------------

def collect_candidates(
    entity: Entity,
    client: CatalogClient,
    thresholds: DiscoveryThresholds,
    rate_limit_remaining: int | None = None,
    *,
    now: datetime | None = None,
) -> tuple[DiscoveryResult, int | None]:
    """Run every applicable strategy for *entity* and keep the trusted candidates.

    Strategy priority: organization lookup by name, lookup by slug (when it
    names a different namespace), keyword search (only while no strategy has
    returned anything, accepted or not), then the author behind a catalog
    URL on the company website.  Each strategy's output is validated,
    filtered and deduplicated against what earlier strategies accepted
    before it joins the result.

    An unexpected error stops the remaining strategies.  It is recorded on
    the result (``failed``) and the quota observed so far is still returned.
    """
    result = DiscoveryResult(entity_id=entity.id, entity_name=entity.name)
    variations = generate_name_variations(entity.name, entity.slug)
    now = now or datetime.now(timezone.utc)
    remaining = rate_limit_remaining
    found_any = False

    def absorb(outcome: StrategyOutcome) -> None:
        nonlocal remaining, found_any
        remaining = observe_rate_limit(remaining, outcome.rate_limit_remaining)
        result.search_methods.append(outcome.method)
        result.issues.extend(outcome.issues)
        found_any = found_any or bool(outcome.candidates)
        owned = filter_owned(
            outcome.candidates, variations, similarity_threshold=thresholds.similarity
        )
        kept = apply_quality_filter(owned, thresholds, now=now)
        fresh = merge_new_candidates(result.candidates, kept)
        logger.debug(
            "strategy_validated",
            entity=entity.name,
            method=outcome.method.value,
            raw=len(outcome.candidates),
            owned=len(owned),
            kept=len(fresh),
        )
        result.candidates.extend(fresh)

    try:
        absorb(search_by_author(client, entity.name, DiscoveryMethod.ORGANIZATION))

        if slug_differs(entity):
            absorb(search_by_author(client, entity.slug, DiscoveryMethod.SLUG))

        if not found_any:
            absorb(search_by_keyword(client, entity.name))

        url = catalog_url(entity, client)
        if url is not None:
            absorb(search_from_known_url(client, url))
    except Exception as exc:
        logger.exception("entity_strategies_failed", entity=entity.name, entity_id=entity.id)
        result.failed = True
        result.issues.append(str(exc) or type(exc).__name__)

    return result, remaining


def build_association(
    entity_id: str,
    artifact_id: str,
    candidate: CandidateArtifact,
    thresholds: DiscoveryThresholds,
    *,
    is_primary: bool,
) -> Association:
    method = candidate.discovery_method or DiscoveryMethod.SEARCH
    return Association(
        entity_id=entity_id,
        artifact_id=artifact_id,
        is_primary=is_primary,
        discovery_method=method,
        confidence_score=score_confidence(candidate, thresholds),
        note=f"Discovered via {method.value} search",
    )


def persist_candidates(
    gateway: PersistenceGateway,
    entity_id: str,
    candidates: list[CandidateArtifact],
    thresholds: DiscoveryThresholds,
) -> tuple[int, list[str]]:
    """Store each candidate and its association.

    The first candidate that is stored successfully is offered as primary;
    the gateway keeps an existing primary in place.  A failed write is
    recorded and does not stop the remaining candidates.

    Returns the number of newly created associations and any issues.
    """
    created = 0
    issues: list[str] = []
    primary_offered = False

    for candidate in candidates:
        try:
            artifact_id = gateway.upsert_artifact(candidate)
            association = build_association(
                entity_id, artifact_id, candidate, thresholds, is_primary=not primary_offered
            )
            is_new = gateway.upsert_association(
                association.entity_id,
                association.artifact_id,
                is_primary=association.is_primary,
                discovery_method=association.discovery_method,
                confidence_score=association.confidence_score,
                note=association.note,
            )
        except PersistenceWriteError as exc:
            logger.error(
                "association_write_failed",
                entity_id=entity_id,
                identifier=candidate.identifier,
                error=str(exc),
            )
            issues.append(f"Failed to store {candidate.identifier}: {exc}")
            continue

        primary_offered = True
        if is_new:
            created += 1

    return created, issues


def discover_for_entity(
    entity: Entity,
    client: CatalogClient,
    gateway: PersistenceGateway,
    thresholds: DiscoveryThresholds,
    rate_limit_remaining: int | None = None,
    *,
    now: datetime | None = None,
) -> tuple[DiscoveryResult, int | None]:
    """Discover, validate and store catalog artifacts for one company.

    Never raises: failures end up in the result's ``issues`` with tier
    ``low``, and the returned quota is the last one observed.
    """
    logger.debug("entity_discovery_started", entity=entity.name, entity_id=entity.id)
    result, remaining = collect_candidates(
        entity, client, thresholds, rate_limit_remaining, now=now
    )

    if result.failed:
        result.confidence = ConfidenceTier.LOW
        return result, remaining

    if not result.candidates:
        result.confidence = ConfidenceTier.LOW
        result.issues.append(NO_VALIDATED_ISSUE)
        logger.info("entity_no_validated_artifacts", entity=entity.name)
        return result, remaining

    try:
        stored, issues = persist_candidates(gateway, entity.id, result.candidates, thresholds)
    except Exception as exc:
        logger.exception("entity_persist_failed", entity=entity.name, entity_id=entity.id)
        result.failed = True
        result.confidence = ConfidenceTier.LOW
        result.issues.append(str(exc) or type(exc).__name__)
        return result, remaining

    result.associations_stored = stored
    result.issues.extend(issues)
    accepted_methods = list(dict.fromkeys(
        c.discovery_method for c in result.candidates if c.discovery_method is not None
    ))
    result.confidence = assign_confidence_tier(
        accepted_methods, len(result.candidates), thresholds.high_tier_count
    )
    logger.info(
        "entity_discovery_complete",
        entity=entity.name,
        validated=len(result.candidates),
        stored=stored,
        methods=[m.value for m in result.search_methods],
        confidence=result.confidence.value,
    )
    return result, remaining


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------

def run_discovery_batch(
    gateway: PersistenceGateway,
    client: CatalogClient,
    *,
    limit: int = 10,
    thresholds: DiscoveryThresholds | None = None,
    limiter: IntervalRateLimiter | None = None,
    max_batch_limit: int = DEFAULT_MAX_BATCH_LIMIT,
    clock: Callable[[], float] = time.monotonic,
) -> BatchReport:
    """Run discovery for up to *limit* companies that have no associations yet.

    Parameters
    ----------
    gateway:
        Source of companies and sink for artifacts/associations.
    client:
        Catalog to search (GitHub, Hugging Face).
    limit:
        Requested page size, clamped to ``[0, max_batch_limit]``.
    thresholds:
        Matching and pacing heuristics; defaults are used when omitted.
    limiter:
        Pacing between companies.  Defaults to no delay.
    clock:
        Monotonic clock used for ``processing_time_ms``.

    Returns
    -------
    BatchReport
        Per-company results plus totals.  Per-company failures are recorded
        in that company's ``issues``; they never abort the batch.
    """
    thresholds = thresholds or DiscoveryThresholds()
    limiter = limiter or IntervalRateLimiter(0.0)
    started = clock()
    report = BatchReport(catalog=client.catalog)
    remaining: int | None = None

    page_size = max(0, min(limit, max_batch_limit))
    entities = gateway.list_entities_needing_discovery(page_size) if page_size else []
    logger.info(
        "discovery_batch_started",
        catalog=client.catalog.value,
        requested=limit,
        entities=len(entities),
    )

    for entity in entities:
        if quota_exhausted(remaining, thresholds.rate_limit_floor):
            logger.warning(
                "rate_limit_low_stopping",
                catalog=client.catalog.value,
                remaining=remaining,
                floor=thresholds.rate_limit_floor,
            )
            report.stopped_early = True
            break

        limiter.wait()
        try:
            result, remaining = discover_for_entity(
                entity, client, gateway, thresholds, remaining
            )
        except Exception as exc:
            logger.exception("entity_discovery_failed", entity=entity.name, entity_id=entity.id)
            result = DiscoveryResult(
                entity_id=entity.id,
                entity_name=entity.name,
                confidence=ConfidenceTier.LOW,
                issues=[str(exc) or type(exc).__name__],
            )
        report.add(result)

    report.finalize(
        processing_time_ms=int((clock() - started) * 1000),
        rate_limit_remaining=remaining,
    )

    try:
        gateway.record_sync_log(report)
    except PersistenceWriteError as exc:
        logger.error("sync_log_write_failed", error=str(exc))

    logger.info(
        "discovery_batch_complete",
        catalog=client.catalog.value,
        entities_processed=report.entities_processed,
        total_candidates_found=report.total_candidates_found,
        total_associations_stored=report.total_associations_stored,
        rate_limit_remaining=report.rate_limit_remaining,
        stopped_early=report.stopped_early,
        processing_time_ms=report.processing_time_ms,
    )
    return report
