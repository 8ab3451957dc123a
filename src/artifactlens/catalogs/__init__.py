"""Catalog clients for GitHub and the Hugging Face model hub."""

from __future__ import annotations

from artifactlens.catalogs.base import CatalogClient
from artifactlens.catalogs.github import GitHubCatalog
from artifactlens.catalogs.huggingface import HuggingFaceCatalog
from artifactlens.config import Settings
from artifactlens.discovery.types import Catalog


def make_catalog(catalog: Catalog, settings: Settings) -> CatalogClient:
    """Construct the client for *catalog*."""
    if catalog is Catalog.GITHUB:
        return GitHubCatalog(settings)
    if catalog is Catalog.HUGGINGFACE:
        return HuggingFaceCatalog(settings)
    msg = f"Unsupported catalog: {catalog!r}"
    raise ValueError(msg)


__all__ = [
    "CatalogClient",
    "GitHubCatalog",
    "HuggingFaceCatalog",
    "make_catalog",
]
