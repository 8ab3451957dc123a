"""Persistence gateway for companies, catalog artifacts and associations.

All database interaction uses raw SQL via psycopg3.  Writes are upserts so a
repeated discovery run never duplicates an association, and association
writes for one company and catalog are serialised with a transaction-scoped
advisory lock so two runs can never both mark a primary artifact.  A company
has at most one primary artifact per catalog: one repository, one model.

The PostgreSQL gateway expects an autocommit connection: each write runs in
its own ``conn.transaction()`` block and is committed as soon as it succeeds,
so a failure later in the batch does not lose completed work.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Protocol

import psycopg
import structlog

from artifactlens.db import execute_query, execute_returning
from artifactlens.discovery.errors import PersistenceWriteError
from artifactlens.discovery.types import (
    BatchReport,
    Catalog,
    CandidateArtifact,
    DiscoveryMethod,
    Entity,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = structlog.get_logger(__name__)


class PersistenceGateway(Protocol):
    """The narrow read/write contract the discovery engine relies on."""

    def list_entities_needing_discovery(self, limit: int) -> Sequence[Entity]: ...

    def count_entities_needing_discovery(self) -> int: ...

    def upsert_artifact(self, candidate: CandidateArtifact) -> str: ...

    def upsert_association(
        self,
        entity_id: str,
        artifact_id: str,
        *,
        is_primary: bool,
        discovery_method: DiscoveryMethod,
        confidence_score: float,
        note: str,
    ) -> bool: ...

    def record_sync_log(self, report: BatchReport, error: str | None = None) -> None: ...


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS catalog_artifacts (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    catalog TEXT NOT NULL,
    external_id TEXT NOT NULL,
    owner TEXT NOT NULL,
    name TEXT NOT NULL,
    popularity INTEGER NOT NULL DEFAULT 0,
    secondary_popularity INTEGER NOT NULL DEFAULT 0,
    private BOOLEAN NOT NULL DEFAULT false,
    gated BOOLEAN NOT NULL DEFAULT false,
    disabled BOOLEAN NOT NULL DEFAULT false,
    last_activity_at TIMESTAMPTZ,
    tags JSONB NOT NULL DEFAULT '[]'::jsonb,
    url TEXT,
    description TEXT,
    last_synced_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    UNIQUE (catalog, external_id)
);

CREATE TABLE IF NOT EXISTS company_artifacts (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    company_id UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
    artifact_id UUID NOT NULL REFERENCES catalog_artifacts(id) ON DELETE CASCADE,
    catalog TEXT NOT NULL,
    is_primary BOOLEAN NOT NULL DEFAULT false,
    discovery_method TEXT NOT NULL
        CHECK (discovery_method IN ('manual', 'organization', 'slug', 'search', 'website')),
    confidence_score NUMERIC(3, 2) NOT NULL
        CHECK (confidence_score >= 0 AND confidence_score <= 1),
    notes TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    UNIQUE (company_id, artifact_id)
);

CREATE UNIQUE INDEX IF NOT EXISTS company_artifacts_one_primary
    ON company_artifacts (company_id, catalog) WHERE is_primary;

CREATE TABLE IF NOT EXISTS discovery_sync_logs (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    catalog TEXT NOT NULL,
    status TEXT NOT NULL CHECK (status IN ('completed', 'partial', 'failed')),
    entities_processed INTEGER NOT NULL DEFAULT 0,
    candidates_found INTEGER NOT NULL DEFAULT 0,
    associations_stored INTEGER NOT NULL DEFAULT 0,
    rate_limit_remaining INTEGER,
    duration_ms INTEGER,
    error_message TEXT,
    completed_at TIMESTAMPTZ NOT NULL DEFAULT now()
);
"""


def ensure_schema(conn: psycopg.Connection) -> None:
    """Create the discovery tables if they do not exist.

    ``companies`` is owned elsewhere and must already exist.
    """
    with conn.cursor() as cur:
        cur.execute(SCHEMA_SQL)


def sync_status(report: BatchReport, error: str | None = None) -> str:
    if error is not None or not report.success:
        return "failed"
    if report.stopped_early:
        return "partial"
    return "completed"


# ---------------------------------------------------------------------------
# PostgreSQL gateway
# ---------------------------------------------------------------------------

_NEEDS_DISCOVERY = """
    FROM companies c
    WHERE NOT EXISTS (
        SELECT 1
        FROM company_artifacts ca
        WHERE ca.company_id = c.id AND ca.catalog = %s
    )
"""


class PostgresGateway:
    """Gateway backed by the shared PostgreSQL database, scoped to one catalog."""

    def __init__(self, conn: psycopg.Connection, catalog: Catalog) -> None:
        self._conn = conn
        self._catalog = catalog

    def list_entities_needing_discovery(self, limit: int) -> list[Entity]:
        """Return up to *limit* companies without any artifact from this catalog."""
        rows = execute_query(
            self._conn,
            f"""
            SELECT c.id::text AS id, c.name, c.slug, c.website_url
            {_NEEDS_DISCOVERY}
            ORDER BY c.name
            LIMIT %s
            """,
            (self._catalog.value, limit),
        )
        return [
            Entity(
                id=r["id"],
                name=r["name"],
                slug=r.get("slug"),
                website_url=r.get("website_url"),
            )
            for r in rows
        ]

    def count_entities_needing_discovery(self) -> int:
        rows = execute_query(
            self._conn,
            f"SELECT count(*) AS n {_NEEDS_DISCOVERY}",
            (self._catalog.value,),
        )
        return int(rows[0]["n"]) if rows else 0

    def upsert_artifact(self, candidate: CandidateArtifact) -> str:
        """Insert or refresh a catalog artifact and return its UUID."""
        try:
            with self._conn.transaction():
                row = execute_returning(
                    self._conn,
                    """
                    INSERT INTO catalog_artifacts (
                        catalog, external_id, owner, name, popularity,
                        secondary_popularity, private, gated, disabled,
                        last_activity_at, tags, url, description, last_synced_at
                    ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s::jsonb, %s, %s, now())
                    ON CONFLICT (catalog, external_id) DO UPDATE SET
                        owner = EXCLUDED.owner,
                        name = EXCLUDED.name,
                        popularity = EXCLUDED.popularity,
                        secondary_popularity = EXCLUDED.secondary_popularity,
                        private = EXCLUDED.private,
                        gated = EXCLUDED.gated,
                        disabled = EXCLUDED.disabled,
                        last_activity_at = EXCLUDED.last_activity_at,
                        tags = EXCLUDED.tags,
                        url = EXCLUDED.url,
                        description = EXCLUDED.description,
                        last_synced_at = now()
                    RETURNING id::text AS id
                    """,
                    (
                        candidate.catalog.value,
                        candidate.external_id,
                        candidate.owner,
                        candidate.name,
                        candidate.popularity,
                        candidate.secondary_popularity,
                        candidate.private,
                        candidate.gated,
                        candidate.disabled,
                        candidate.last_activity,
                        json.dumps(list(candidate.tags)),
                        candidate.url,
                        candidate.description,
                    ),
                )
        except psycopg.Error as exc:
            raise PersistenceWriteError(f"artifact {candidate.identifier}: {exc}") from exc

        if row is None:
            msg = f"artifact {candidate.identifier}: upsert returned no id"
            raise PersistenceWriteError(msg)
        return row["id"]

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
        """Link a company to an artifact; return True if the link is new.

        An existing link is left untouched, and ``is_primary`` is only
        honoured when the company has no primary artifact in this catalog yet.
        """
        try:
            with self._conn.transaction():
                execute_query(
                    self._conn,
                    "SELECT pg_advisory_xact_lock(hashtext(%s))",
                    (f"{entity_id}:{self._catalog.value}",),
                )
                row = execute_returning(
                    self._conn,
                    """
                    INSERT INTO company_artifacts (
                        company_id, artifact_id, catalog, is_primary,
                        discovery_method, confidence_score, notes
                    ) VALUES (
                        %s, %s, %s,
                        %s AND NOT EXISTS (
                            SELECT 1 FROM company_artifacts
                            WHERE company_id = %s AND catalog = %s AND is_primary
                        ),
                        %s, %s, %s
                    )
                    ON CONFLICT (company_id, artifact_id) DO NOTHING
                    RETURNING id::text AS id
                    """,
                    (
                        entity_id,
                        artifact_id,
                        self._catalog.value,
                        is_primary,
                        entity_id,
                        self._catalog.value,
                        discovery_method.value,
                        confidence_score,
                        note,
                    ),
                )
        except psycopg.Error as exc:
            raise PersistenceWriteError(f"association {entity_id}/{artifact_id}: {exc}") from exc

        return row is not None

    def record_sync_log(self, report: BatchReport, error: str | None = None) -> None:
        try:
            with self._conn.transaction():
                execute_query(
                    self._conn,
                    """
                    INSERT INTO discovery_sync_logs (
                        catalog, status, entities_processed, candidates_found,
                        associations_stored, rate_limit_remaining, duration_ms,
                        error_message
                    ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                    """,
                    (
                        self._catalog.value,
                        sync_status(report, error),
                        report.entities_processed,
                        report.total_candidates_found,
                        report.total_associations_stored,
                        report.rate_limit_remaining,
                        report.processing_time_ms,
                        error,
                    ),
                )
        except psycopg.Error as exc:
            raise PersistenceWriteError(f"sync log: {exc}") from exc
