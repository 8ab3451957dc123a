"""Heuristic constants for ownership matching, quality filtering and scoring.

The values have no derivation beyond field experience; they are kept as
named, overridable configuration.
"""

from __future__ import annotations

from dataclasses import dataclass

from artifactlens.config import Settings
from artifactlens.discovery.types import Catalog


@dataclass(frozen=True)
class DiscoveryThresholds:
    similarity: float = 0.8
    stale_after_days: int = 365
    stale_popularity_floor: int = 100
    stale_secondary_floor: int = 5
    private_popularity_floor: int = 5
    confidence_popularity_bonus: int = 1000
    confidence_secondary_bonus: int = 10
    high_tier_count: int = 3
    rate_limit_floor: int = 5


def thresholds_from_settings(settings: Settings, catalog: Catalog) -> DiscoveryThresholds:
    """Build the thresholds for *catalog* from application settings."""
    if catalog is Catalog.GITHUB:
        high_tier_count = settings.github_high_tier_count
        rate_limit_floor = settings.github_rate_limit_floor
    else:
        high_tier_count = settings.huggingface_high_tier_count
        rate_limit_floor = settings.huggingface_rate_limit_floor

    return DiscoveryThresholds(
        similarity=settings.similarity_threshold,
        stale_after_days=settings.stale_after_days,
        stale_popularity_floor=settings.stale_popularity_floor,
        stale_secondary_floor=settings.stale_secondary_floor,
        private_popularity_floor=settings.private_popularity_floor,
        confidence_popularity_bonus=settings.confidence_popularity_bonus,
        confidence_secondary_bonus=settings.confidence_secondary_bonus,
        high_tier_count=high_tier_count,
        rate_limit_floor=rate_limit_floor,
    )
