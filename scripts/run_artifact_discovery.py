#!/usr/bin/env python3
"""CLI script to discover GitHub repositories or Hugging Face models for companies."""

from __future__ import annotations

import json

import structlog
import typer

from artifactlens.config import get_settings
from artifactlens.db import get_connection
from artifactlens.discovery.persistence import PostgresGateway, ensure_schema
from artifactlens.discovery.pipeline import run_catalog_discovery
from artifactlens.discovery.types import Catalog

logger = structlog.get_logger(__name__)
app = typer.Typer()


@app.command()
def main(
    catalog: Catalog = typer.Option(
        Catalog.GITHUB, "--catalog", case_sensitive=False, help="Catalog to search"
    ),
    limit: int = typer.Option(5, help="Maximum companies to process in this batch"),
    status: bool = typer.Option(
        False, "--status", help="Only report how many companies still need discovery"
    ),
    init_schema: bool = typer.Option(
        False, "--init-schema", help="Create the discovery tables before running"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the batch report as JSON"),
) -> None:
    """Find, validate and store catalog artifacts for companies that have none."""
    settings = get_settings()
    conn = get_connection(settings)
    conn.autocommit = True

    try:
        if init_schema:
            ensure_schema(conn)
            logger.info("discovery_schema_ready")

        if status:
            pending = PostgresGateway(conn, catalog).count_entities_needing_discovery()
            logger.info("companies_needing_discovery", catalog=catalog.value, count=pending)
            typer.echo(pending)
            return

        report = run_catalog_discovery(conn, settings, catalog, limit=limit)
        if as_json:
            typer.echo(json.dumps(report.to_payload(), indent=2))
        logger.info(
            "artifact_discovery_complete",
            catalog=catalog.value,
            entities_processed=report.entities_processed,
            total_candidates_found=report.total_candidates_found,
            total_associations_stored=report.total_associations_stored,
            rate_limit_remaining=report.rate_limit_remaining,
            stopped_early=report.stopped_early,
        )
    finally:
        conn.close()


if __name__ == "__main__":
    app()
