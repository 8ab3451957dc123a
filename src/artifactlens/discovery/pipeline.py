"""Wiring for a discovery run against one catalog.

Builds the catalog client, gateway, pacing and thresholds from settings,
then hands off to :func:`~artifactlens.discovery.orchestrator.run_discovery_batch`.
"""

from __future__ import annotations

from typing import Any

import structlog

from artifactlens.catalogs import make_catalog
from artifactlens.config import Settings
from artifactlens.discovery.orchestrator import run_discovery_batch
from artifactlens.discovery.persistence import PostgresGateway
from artifactlens.discovery.ratelimit import IntervalRateLimiter
from artifactlens.discovery.thresholds import thresholds_from_settings
from artifactlens.discovery.types import BatchReport, Catalog

logger = structlog.get_logger(__name__)


def entity_delay(settings: Settings, catalog: Catalog) -> float:
    """Seconds to wait between companies for *catalog*."""
    if catalog is Catalog.GITHUB:
        return settings.github_entity_delay_s
    return settings.huggingface_entity_delay_s


def run_catalog_discovery(
    conn: Any,
    settings: Settings,
    catalog: Catalog,
    limit: int = 5,
) -> BatchReport:
    """Discover artifacts in *catalog* for companies that have none yet.

    Parameters
    ----------
    conn:
        Autocommit database connection.
    settings:
        App settings with catalog tokens and heuristics.
    catalog:
        Which catalog to search.
    limit:
        Maximum number of companies to process (clamped to
        ``settings.max_batch_limit``).
    """
    delay = entity_delay(settings, catalog)
    logger.info("catalog_discovery_started", catalog=catalog.value, limit=limit, delay_s=delay)

    client = make_catalog(catalog, settings)
    gateway = PostgresGateway(conn, catalog)
    try:
        return run_discovery_batch(
            gateway,
            client,
            limit=limit,
            thresholds=thresholds_from_settings(settings, catalog),
            limiter=IntervalRateLimiter(delay),
            max_batch_limit=settings.max_batch_limit,
        )
    finally:
        client.close()
