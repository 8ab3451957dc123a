"""Association confidence scores and per-company confidence tiers."""

from __future__ import annotations

from collections.abc import Sequence

from artifactlens.discovery.thresholds import DiscoveryThresholds
from artifactlens.discovery.types import CandidateArtifact, ConfidenceTier, DiscoveryMethod

BASE_CONFIDENCE: dict[DiscoveryMethod, float] = {
    DiscoveryMethod.ORGANIZATION: 0.95,
    DiscoveryMethod.SLUG: 0.90,
    DiscoveryMethod.WEBSITE: 0.85,
    DiscoveryMethod.SEARCH: 0.70,
}
UNTAGGED_CONFIDENCE = 0.5
SIGNAL_BONUS = 0.05


def score_confidence(
    candidate: CandidateArtifact,
    thresholds: DiscoveryThresholds | None = None,
) -> float:
    """Confidence in [0, 1] that *candidate* belongs to the company.

    The discovery method sets the base; each engagement signal adds a small
    bonus (popular, widely liked/forked, tagged, publicly accessible).
    """
    thresholds = thresholds or DiscoveryThresholds()
    if candidate.discovery_method is None:
        confidence = UNTAGGED_CONFIDENCE
    else:
        confidence = BASE_CONFIDENCE[candidate.discovery_method]

    if candidate.popularity > thresholds.confidence_popularity_bonus:
        confidence += SIGNAL_BONUS
    if candidate.secondary_popularity > thresholds.confidence_secondary_bonus:
        confidence += SIGNAL_BONUS
    if candidate.tags:
        confidence += SIGNAL_BONUS
    if not candidate.private and not candidate.gated:
        confidence += SIGNAL_BONUS

    return round(max(0.0, min(confidence, 1.0)), 4)


def assign_confidence_tier(
    search_methods: Sequence[DiscoveryMethod],
    validated_count: int,
    high_count: int,
) -> ConfidenceTier:
    """Summarise how much a company's discovery result can be trusted."""
    if validated_count == 0:
        return ConfidenceTier.LOW
    if DiscoveryMethod.ORGANIZATION in search_methods or validated_count > high_count:
        return ConfidenceTier.HIGH
    return ConfidenceTier.MEDIUM
