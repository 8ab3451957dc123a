"""Cross-strategy deduplication of accepted candidates."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from artifactlens.discovery.types import CandidateArtifact


def merge_new_candidates(
    accepted: Sequence[CandidateArtifact],
    incoming: Iterable[CandidateArtifact],
) -> list[CandidateArtifact]:
    """Return the *incoming* candidates whose identifiers are not yet accepted.

    Earlier strategies win: a repository found by organization lookup keeps
    that provenance even if keyword search finds it again.  Repeats inside
    *incoming* are dropped too.
    """
    seen = {c.identifier for c in accepted}
    fresh: list[CandidateArtifact] = []
    for candidate in incoming:
        if candidate.identifier in seen:
            continue
        seen.add(candidate.identifier)
        fresh.append(candidate)
    return fresh
