"""Catalog store implementations.

    - SQLiteCatalogProvider — aiosqlite-backed catalog at ``data/skate-mag.db``.
"""

from src.providers.catalog.sqlite_catalog_provider import SQLiteCatalogProvider

__all__ = ["SQLiteCatalogProvider"]
