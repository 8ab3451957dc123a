"""Catalog discovery: find, validate and store the artifacts a company owns."""

from __future__ import annotations

from artifactlens.discovery.merge import merge_new_candidates
from artifactlens.discovery.orchestrator import (
    collect_candidates,
    discover_for_entity,
    persist_candidates,
    run_discovery_batch,
)
from artifactlens.discovery.ownership import (
    author_matches,
    filter_owned,
    name_matches,
    validate_ownership,
)
from artifactlens.discovery.quality import apply_quality_filter, quality_rejection_reason
from artifactlens.discovery.scoring import assign_confidence_tier, score_confidence
from artifactlens.discovery.similarity import levenshtein_distance, similarity
from artifactlens.discovery.types import (
    Association,
    BatchReport,
    CandidateArtifact,
    Catalog,
    ConfidenceTier,
    DiscoveryMethod,
    DiscoveryResult,
    Entity,
    SearchResponse,
)
from artifactlens.discovery.variations import generate_name_variations

__all__ = [
    "Association",
    "BatchReport",
    "CandidateArtifact",
    "Catalog",
    "ConfidenceTier",
    "DiscoveryMethod",
    "DiscoveryResult",
    "Entity",
    "SearchResponse",
    "apply_quality_filter",
    "assign_confidence_tier",
    "author_matches",
    "collect_candidates",
    "discover_for_entity",
    "filter_owned",
    "generate_name_variations",
    "levenshtein_distance",
    "merge_new_candidates",
    "name_matches",
    "persist_candidates",
    "quality_rejection_reason",
    "run_discovery_batch",
    "score_confidence",
    "similarity",
    "validate_ownership",
]
