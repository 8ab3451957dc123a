"""Tests for the PostgreSQL persistence gateway."""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import psycopg
import pytest

from artifactlens.discovery.errors import PersistenceWriteError
from artifactlens.discovery.persistence import (
    SCHEMA_SQL,
    PostgresGateway,
    ensure_schema,
    sync_status,
)
from artifactlens.discovery.types import BatchReport, Catalog, DiscoveryMethod, Entity

MODULE = "artifactlens.discovery.persistence"


@pytest.fixture()
def mock_conn() -> MagicMock:
    return MagicMock()


class TestListEntities:
    @patch(f"{MODULE}.execute_query")
    def test_returns_entities(self, mock_eq: MagicMock, mock_conn: MagicMock):
        mock_eq.return_value = [
            {"id": "u1", "name": "Acme AI", "slug": "acme", "website_url": None},
        ]
        gateway = PostgresGateway(mock_conn, Catalog.HUGGINGFACE)

        entities = gateway.list_entities_needing_discovery(5)

        assert entities == [Entity(id="u1", name="Acme AI", slug="acme")]
        sql, params = mock_eq.call_args.args[1], mock_eq.call_args.args[2]
        assert params == ("huggingface", 5)
        assert "NOT EXISTS" in sql

    @patch(f"{MODULE}.execute_query")
    def test_count(self, mock_eq: MagicMock, mock_conn: MagicMock):
        mock_eq.return_value = [{"n": 7}]
        assert PostgresGateway(mock_conn, Catalog.GITHUB).count_entities_needing_discovery() == 7

    @patch(f"{MODULE}.execute_query", return_value=[])
    def test_count_empty(self, mock_eq: MagicMock, mock_conn: MagicMock):
        assert PostgresGateway(mock_conn, Catalog.GITHUB).count_entities_needing_discovery() == 0


class TestUpsertArtifact:
    @patch(f"{MODULE}.execute_returning")
    def test_returns_id(self, mock_er: MagicMock, mock_conn: MagicMock, make_candidate):
        mock_er.return_value = {"id": "art-uuid"}
        candidate = make_candidate("acme-ai", "core", tags=("python",))

        artifact_id = PostgresGateway(mock_conn, Catalog.GITHUB).upsert_artifact(candidate)

        assert artifact_id == "art-uuid"
        sql, params = mock_er.call_args.args[1], mock_er.call_args.args[2]
        assert "ON CONFLICT (catalog, external_id) DO UPDATE" in sql
        assert params[0] == "github"
        assert json.loads(params[10]) == ["python"]
        mock_conn.transaction.assert_called_once()

    @patch(f"{MODULE}.execute_returning")
    def test_database_error_wrapped(self, mock_er: MagicMock, mock_conn: MagicMock, make_candidate):
        mock_er.side_effect = psycopg.OperationalError("connection lost")

        with pytest.raises(PersistenceWriteError):
            PostgresGateway(mock_conn, Catalog.GITHUB).upsert_artifact(make_candidate("acme"))

    @patch(f"{MODULE}.execute_returning", return_value=None)
    def test_missing_id_is_an_error(self, mock_er: MagicMock, mock_conn: MagicMock, make_candidate):
        with pytest.raises(PersistenceWriteError):
            PostgresGateway(mock_conn, Catalog.GITHUB).upsert_artifact(make_candidate("acme"))


class TestUpsertAssociation:
    def _call(self, gateway: PostgresGateway) -> bool:
        return gateway.upsert_association(
            "c1",
            "a1",
            is_primary=True,
            discovery_method=DiscoveryMethod.ORGANIZATION,
            confidence_score=0.95,
            note="Discovered via organization search",
        )

    @patch(f"{MODULE}.execute_returning", return_value={"id": "link"})
    @patch(f"{MODULE}.execute_query")
    def test_new_link(self, mock_eq: MagicMock, mock_er: MagicMock, mock_conn: MagicMock):
        assert self._call(PostgresGateway(mock_conn, Catalog.GITHUB)) is True

        lock_sql, lock_params = mock_eq.call_args.args[1], mock_eq.call_args.args[2]
        assert "pg_advisory_xact_lock" in lock_sql
        assert lock_params == ("c1:github",)
        sql, params = mock_er.call_args.args[1], mock_er.call_args.args[2]
        assert "ON CONFLICT (company_id, artifact_id) DO NOTHING" in sql
        assert "company_id = %s AND catalog = %s AND is_primary" in sql
        assert params == ("c1", "a1", "github", True, "c1", "github", "organization", 0.95,
                          "Discovered via organization search")

    @patch(f"{MODULE}.execute_returning", return_value={"id": "link"})
    @patch(f"{MODULE}.execute_query")
    def test_primary_guard_scoped_to_catalog(
        self, mock_eq: MagicMock, mock_er: MagicMock, mock_conn: MagicMock
    ):
        self._call(PostgresGateway(mock_conn, Catalog.HUGGINGFACE))

        params = mock_er.call_args.args[2]
        assert params[2] == params[5] == "huggingface"
        assert mock_eq.call_args.args[2] == ("c1:huggingface",)

    @patch(f"{MODULE}.execute_returning", return_value=None)
    @patch(f"{MODULE}.execute_query")
    def test_existing_link(self, mock_eq: MagicMock, mock_er: MagicMock, mock_conn: MagicMock):
        assert self._call(PostgresGateway(mock_conn, Catalog.GITHUB)) is False

    @patch(f"{MODULE}.execute_query")
    def test_lock_failure_wrapped(self, mock_eq: MagicMock, mock_conn: MagicMock):
        mock_eq.side_effect = psycopg.OperationalError("deadlock")
        with pytest.raises(PersistenceWriteError):
            self._call(PostgresGateway(mock_conn, Catalog.GITHUB))


class TestSyncLog:
    def test_status(self):
        report = BatchReport(catalog=Catalog.GITHUB)
        assert sync_status(report) == "failed"
        report.finalize(processing_time_ms=10, rate_limit_remaining=None)
        assert sync_status(report) == "completed"
        assert sync_status(report, error="boom") == "failed"
        report.stopped_early = True
        assert sync_status(report) == "partial"

    @patch(f"{MODULE}.execute_query")
    def test_record(self, mock_eq: MagicMock, mock_conn: MagicMock):
        report = BatchReport(catalog=Catalog.GITHUB, stopped_early=True)
        report.finalize(processing_time_ms=1500, rate_limit_remaining=3)

        PostgresGateway(mock_conn, Catalog.GITHUB).record_sync_log(report)

        params = mock_eq.call_args.args[2]
        assert params == ("github", "partial", 0, 0, 0, 3, 1500, None)

    @patch(f"{MODULE}.execute_query")
    def test_record_failure_wrapped(self, mock_eq: MagicMock, mock_conn: MagicMock):
        mock_eq.side_effect = psycopg.OperationalError("read only")
        report = BatchReport(catalog=Catalog.GITHUB)
        with pytest.raises(PersistenceWriteError):
            PostgresGateway(mock_conn, Catalog.GITHUB).record_sync_log(report)


class TestEnsureSchema:
    def test_executes_schema(self, mock_conn: MagicMock):
        ensure_schema(mock_conn)
        cursor = mock_conn.cursor.return_value.__enter__.return_value
        cursor.execute.assert_called_once_with(SCHEMA_SQL)

    def test_one_primary_per_company_and_catalog(self):
        assert "ON company_artifacts (company_id, catalog) WHERE is_primary" in SCHEMA_SQL
