"""Strategy-aware ownership validation.

This is the stage that keeps false positives out.  A direct lookup of an
organization already targeted the company's namespace, so only the owner
needs confirming.  Keyword search and website extraction can surface
unrelated owners, so they accept either an owner match or an artifact name
that carries the company name.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from artifactlens.discovery.similarity import similarity
from artifactlens.discovery.types import DIRECT_METHODS, CandidateArtifact, DiscoveryMethod

logger = structlog.get_logger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.8


@dataclass(frozen=True)
class OwnershipDecision:
    accepted: bool
    reason: str
    author_match: bool = False
    name_match: bool = False


def author_matches(
    author: str,
    variations: Sequence[str],
    *,
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> bool:
    """Return True if a catalog owner plausibly is one of the company *variations*.

    Checks, per variation: exact equality, variation inside the owner
    (``replicate`` in ``replicate-labs``), owner inside the variation
    (``modal`` in ``modal labs``), then edit-distance similarity.
    """
    owner = author.lower()
    for variation in variations:
        if owner == variation:
            return True
        if len(variation) > 3 and variation in owner:
            return True
        if len(owner) > 3 and owner in variation:
            return True
        if similarity(owner, variation) > similarity_threshold:
            return True
    return False


def name_matches(name: str, variations: Sequence[str]) -> bool:
    """Return True if an artifact's display name carries a company variation."""
    lowered = name.lower()
    for variation in variations:
        if len(variation) > 2 and lowered.startswith(variation):
            return True
        if len(variation) > 3 and variation in lowered:
            return True
    return False


def validate_ownership(
    candidate: CandidateArtifact,
    variations: Sequence[str],
    *,
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> OwnershipDecision:
    """Decide whether *candidate* belongs to the company behind *variations*.

    Candidates without a discovery method are judged as keyword-search
    results.
    """
    method = candidate.discovery_method or DiscoveryMethod.SEARCH
    owner_ok = author_matches(
        candidate.owner, variations, similarity_threshold=similarity_threshold
    )

    if method in DIRECT_METHODS:
        if owner_ok:
            return OwnershipDecision(True, f"{method.value} lookup with owner match", True)
        return OwnershipDecision(
            False, f"{method.value} lookup but owner '{candidate.owner}' does not match"
        )

    if owner_ok:
        return OwnershipDecision(True, f"{method.value} with owner match", True)

    if name_matches(candidate.name, variations):
        return OwnershipDecision(
            True, f"{method.value} with name match", author_match=False, name_match=True
        )

    return OwnershipDecision(
        False, f"{method.value} with neither owner nor name match"
    )


def filter_owned(
    candidates: Sequence[CandidateArtifact],
    variations: Sequence[str],
    *,
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> list[CandidateArtifact]:
    """Keep the candidates that pass :func:`validate_ownership`.

    Every decision is logged at debug level so rejected matches can be
    audited after a batch run.
    """
    accepted: list[CandidateArtifact] = []
    for candidate in candidates:
        decision = validate_ownership(
            candidate, variations, similarity_threshold=similarity_threshold
        )
        logger.debug(
            "ownership_accepted" if decision.accepted else "ownership_rejected",
            identifier=candidate.identifier,
            owner=candidate.owner,
            reason=decision.reason,
        )
        if decision.accepted:
            accepted.append(candidate)
    return accepted
