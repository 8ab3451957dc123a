"""Secondary quality filters for candidates that already passed ownership.

Rejections here mean "ours, but not worth associating".  Every rule pairs
a weak signal (private, stale) with low engagement, except disabled or
archived artifacts, which are always dropped.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta, timezone

import structlog

from artifactlens.discovery.thresholds import DiscoveryThresholds
from artifactlens.discovery.types import CandidateArtifact

logger = structlog.get_logger(__name__)


def quality_rejection_reason(
    candidate: CandidateArtifact,
    thresholds: DiscoveryThresholds,
    *,
    now: datetime | None = None,
) -> str | None:
    """Return why *candidate* fails the quality filter, or ``None`` if it passes."""
    if candidate.private and candidate.popularity < thresholds.private_popularity_floor:
        return "private with low engagement"

    if candidate.disabled:
        return "disabled or archived"

    if candidate.last_activity is not None:
        now = now or datetime.now(timezone.utc)
        last_activity = candidate.last_activity
        if last_activity.tzinfo is None:
            last_activity = last_activity.replace(tzinfo=timezone.utc)
        stale = now - last_activity > timedelta(days=thresholds.stale_after_days)
        if (
            stale
            and candidate.popularity < thresholds.stale_popularity_floor
            and candidate.secondary_popularity < thresholds.stale_secondary_floor
        ):
            return "stale with low engagement"

    return None


def apply_quality_filter(
    candidates: Sequence[CandidateArtifact],
    thresholds: DiscoveryThresholds,
    *,
    now: datetime | None = None,
) -> list[CandidateArtifact]:
    """Drop low-quality candidates and order the rest by popularity, highest first.

    The ordering decides which artifact becomes the company's primary one.
    """
    survivors: list[CandidateArtifact] = []
    for candidate in candidates:
        reason = quality_rejection_reason(candidate, thresholds, now=now)
        if reason is not None:
            logger.debug(
                "quality_rejected", identifier=candidate.identifier, reason=reason
            )
            continue
        survivors.append(candidate)

    return sorted(survivors, key=lambda c: c.popularity, reverse=True)
