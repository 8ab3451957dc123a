"""Exceptions raised by the discovery engine.

Expected outcomes (author not found, candidate rejected) are returned as
values; these types cover faults only.
"""

from __future__ import annotations


class DiscoveryError(Exception):
    """Base class for discovery faults."""


class CatalogError(DiscoveryError):
    """A catalog API call failed at the network or server level."""

    def __init__(self, catalog: str, message: str, status_code: int | None = None) -> None:
        super().__init__(f"{catalog}: {message}")
        self.catalog = catalog
        self.status_code = status_code


class PersistenceWriteError(DiscoveryError):
    """Storing an artifact or association failed."""
