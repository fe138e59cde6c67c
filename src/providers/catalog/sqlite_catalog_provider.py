"""SQLite-backed magazine catalog.

Persists magazines, pages, the seven entity tables and provenance rows to
a local SQLite database at ``data/skate-mag.db``.  Uses ``aiosqlite`` for
async I/O; every public method opens its own connection with foreign keys
enabled.

Entity tables carry ``UNIQUE(name)`` so get-or-create is an
``INSERT … ON CONFLICT(name) DO NOTHING`` followed by a lookup, and
``magazine_appearances`` carries ``UNIQUE(magazine_id, entity_type,
entity_id)`` so an entity appears at most once per issue.
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from enum import Enum
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from src.interfaces.catalog_provider import ICatalogProvider
from src.models.catalog import (
    Appearance,
    AppearanceContext,
    Completeness,
    EntityType,
    Magazine,
    MagazinePage,
    MagazineStatus,
    TrickMention,
)
from src.models.curation import CleanupReport, DuplicateCandidate, GeocodeTarget, MergeResult
from src.models.pages import PageResult
from src.utils.errors import CatalogError
from src.utils.text_normalizer import normalize_trick_name

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/skate-mag.db")

_NOW_SQL = "strftime('%Y-%m-%dT%H:%M:%fZ', 'now')"

_CREATE_TABLES_SQL = [
    f"""\
CREATE TABLE IF NOT EXISTS magazines (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    title         TEXT    NOT NULL,
    volume        INTEGER,
    issue         INTEGER,
    year          INTEGER NOT NULL,
    month         INTEGER CHECK (month BETWEEN 1 AND 12),
    cover_image   TEXT,
    pdf_path      TEXT,
    status        TEXT    NOT NULL DEFAULT 'pending'
                  CHECK (status IN ('pending', 'processing', 'review', 'published')),
    completeness  TEXT    NOT NULL DEFAULT 'metadata'
                  CHECK (completeness IN ('full', 'metadata')),
    page_count    INTEGER,
    created_at    TEXT    NOT NULL DEFAULT ({_NOW_SQL}),
    updated_at    TEXT    NOT NULL DEFAULT ({_NOW_SQL})
);
""",
    """\
CREATE TABLE IF NOT EXISTS magazine_pages (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    magazine_id   INTEGER NOT NULL REFERENCES magazines(id) ON DELETE CASCADE,
    page_number   INTEGER NOT NULL,
    image_path    TEXT,
    text_content  TEXT,
    UNIQUE (magazine_id, page_number)
);
""",
    f"""\
CREATE TABLE IF NOT EXISTS skaters (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    name                TEXT    NOT NULL UNIQUE,
    aliases             TEXT    NOT NULL DEFAULT '[]',
    hometown            TEXT,
    stance              TEXT    CHECK (stance IN ('regular', 'goofy', 'unknown')),
    active_years_start  INTEGER,
    active_years_end    INTEGER,
    created_at          TEXT    NOT NULL DEFAULT ({_NOW_SQL})
);
""",
    f"""\
CREATE TABLE IF NOT EXISTS locations (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    name           TEXT    NOT NULL UNIQUE,
    type           TEXT,
    street_name    TEXT,
    street_number  TEXT,
    address        TEXT,
    zipcode        TEXT,
    neighborhood   TEXT,
    city           TEXT,
    state          TEXT,
    country        TEXT    DEFAULT 'USA',
    latitude       REAL,
    longitude      REAL,
    aliases        TEXT    NOT NULL DEFAULT '[]',
    created_at     TEXT    NOT NULL DEFAULT ({_NOW_SQL})
);
""",
    f"""\
CREATE TABLE IF NOT EXISTS spots (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    name         TEXT    NOT NULL UNIQUE,
    aliases      TEXT    NOT NULL DEFAULT '[]',
    city         TEXT,
    state        TEXT,
    country      TEXT    DEFAULT 'USA',
    type         TEXT,
    status       TEXT    DEFAULT 'unknown'
                 CHECK (status IN ('active', 'demolished', 'skatestoped', 'unknown')),
    latitude     REAL,
    longitude    REAL,
    location_id  INTEGER REFERENCES locations(id),
    phone        TEXT,
    created_at   TEXT    NOT NULL DEFAULT ({_NOW_SQL})
);
""",
    f"""\
CREATE TABLE IF NOT EXISTS photographers (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    name        TEXT    NOT NULL UNIQUE,
    aliases     TEXT    NOT NULL DEFAULT '[]',
    created_at  TEXT    NOT NULL DEFAULT ({_NOW_SQL})
);
""",
    f"""\
CREATE TABLE IF NOT EXISTS brands (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    name                TEXT    NOT NULL UNIQUE,
    aliases             TEXT    NOT NULL DEFAULT '[]',
    category            TEXT,
    active_years_start  INTEGER,
    active_years_end    INTEGER,
    created_at          TEXT    NOT NULL DEFAULT ({_NOW_SQL})
);
""",
    f"""\
CREATE TABLE IF NOT EXISTS events (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    name        TEXT    NOT NULL UNIQUE,
    date        TEXT,
    location    TEXT,
    spot_id     INTEGER REFERENCES spots(id),
    created_at  TEXT    NOT NULL DEFAULT ({_NOW_SQL})
);
""",
    f"""\
CREATE TABLE IF NOT EXISTS tricks (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    name        TEXT    NOT NULL UNIQUE,
    created_at  TEXT    NOT NULL DEFAULT ({_NOW_SQL})
);
""",
    f"""\
CREATE TABLE IF NOT EXISTS trick_mentions (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    magazine_id       INTEGER NOT NULL REFERENCES magazines(id) ON DELETE CASCADE,
    trick_id          INTEGER NOT NULL REFERENCES tricks(id) ON DELETE CASCADE,
    skater_id         INTEGER REFERENCES skaters(id),
    spot_id           INTEGER REFERENCES spots(id),
    page_number       INTEGER,
    notes             TEXT,
    confidence_score  REAL,
    verified          INTEGER NOT NULL DEFAULT 0,
    created_at        TEXT    NOT NULL DEFAULT ({_NOW_SQL})
);
""",
    f"""\
CREATE TABLE IF NOT EXISTS magazine_appearances (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    magazine_id       INTEGER NOT NULL REFERENCES magazines(id) ON DELETE CASCADE,
    entity_type       TEXT    NOT NULL
                      CHECK (entity_type IN ('skater', 'spot', 'photographer', 'brand',
                                             'event', 'trick', 'location')),
    entity_id         INTEGER NOT NULL,
    page_numbers      TEXT    NOT NULL DEFAULT '[]',
    context           TEXT,
    confidence_score  REAL,
    verified          INTEGER NOT NULL DEFAULT 0,
    created_at        TEXT    NOT NULL DEFAULT ({_NOW_SQL}),
    UNIQUE (magazine_id, entity_type, entity_id)
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_pages_magazine ON magazine_pages(magazine_id);",
    "CREATE INDEX IF NOT EXISTS idx_appearances_entity ON magazine_appearances(entity_type, entity_id);",
    "CREATE INDEX IF NOT EXISTS idx_trick_mentions_magazine ON trick_mentions(magazine_id);",
    "CREATE INDEX IF NOT EXISTS idx_spots_location ON spots(location_id);",
]

_MAGAZINE_COLUMNS = (
    "id, title, volume, issue, year, month, cover_image, pdf_path, status, "
    "completeness, page_count, created_at, updated_at"
)

_INSERT_MAGAZINE_SQL = """\
INSERT INTO magazines (title, volume, issue, year, month, pdf_path, completeness)
VALUES (?, ?, ?, ?, ?, ?, ?);
"""

_SELECT_MAGAZINE_SQL = f"SELECT {_MAGAZINE_COLUMNS} FROM magazines WHERE id = ?;"

_LIST_MAGAZINES_SQL = f"""\
SELECT {_MAGAZINE_COLUMNS}
FROM magazines
{{where}}
ORDER BY year, volume, issue, id;
"""

_UPDATE_STATUS_SQL = f"""\
UPDATE magazines SET status = ?, updated_at = {_NOW_SQL} WHERE id = ?;
"""

_MARK_PROCESSED_SQL = f"""\
UPDATE magazines
SET status = 'review', cover_image = ?, completeness = 'full', page_count = ?,
    updated_at = {_NOW_SQL}
WHERE id = ?;
"""

_INSERT_PAGE_SQL = """\
INSERT INTO magazine_pages (magazine_id, page_number, image_path, text_content)
VALUES (?, ?, ?, ?);
"""

_SELECT_PAGES_SQL = """\
SELECT id, magazine_id, page_number, image_path, text_content
FROM magazine_pages
WHERE magazine_id = ?
ORDER BY page_number;
"""

_SELECT_APPEARANCE_SQL = """\
SELECT id, magazine_id, entity_type, entity_id, page_numbers, context,
       confidence_score, verified
FROM magazine_appearances
"""

_UPSERT_APPEARANCE_SQL = """\
INSERT INTO magazine_appearances
    (magazine_id, entity_type, entity_id, page_numbers, context, confidence_score, verified)
VALUES (?, ?, ?, ?, ?, ?, 0)
ON CONFLICT(magazine_id, entity_type, entity_id) DO NOTHING;
"""

_SELECT_TRICK_MENTIONS_SQL = """\
SELECT id, magazine_id, trick_id, skater_id, spot_id, page_number, notes,
       confidence_score, verified
FROM trick_mentions
WHERE magazine_id = ?
ORDER BY page_number, id;
"""

_ENTITY_TABLES: dict[EntityType, str] = {
    EntityType.SKATER: "skaters",
    EntityType.SPOT: "spots",
    EntityType.PHOTOGRAPHER: "photographers",
    EntityType.BRAND: "brands",
    EntityType.TRICK: "tricks",
    EntityType.EVENT: "events",
    EntityType.LOCATION: "locations",
}

# Columns get_or_create_entity may set besides ``name``.
_ENTITY_COLUMNS: dict[EntityType, frozenset[str]] = {
    EntityType.SKATER: frozenset({"hometown", "stance"}),
    EntityType.SPOT: frozenset({"city", "state", "country", "type", "phone"}),
    EntityType.PHOTOGRAPHER: frozenset(),
    EntityType.BRAND: frozenset({"category"}),
    EntityType.TRICK: frozenset(),
    EntityType.EVENT: frozenset({"date", "location", "spot_id"}),
    EntityType.LOCATION: frozenset({
        "type", "street_name", "street_number", "address", "zipcode",
        "neighborhood", "city", "state", "country",
    }),
}

# Foreign keys (table, column) that must follow an entity when it is merged.
_MERGE_REWRITES: dict[EntityType, list[tuple[str, str]]] = {
    EntityType.SKATER: [("trick_mentions", "skater_id")],
    EntityType.SPOT: [("trick_mentions", "spot_id"), ("events", "spot_id")],
    EntityType.PHOTOGRAPHER: [],
    EntityType.BRAND: [],
    EntityType.TRICK: [("trick_mentions", "trick_id")],
    EntityType.EVENT: [],
    EntityType.LOCATION: [("spots", "location_id")],
}

_GEOCODE_COLUMNS: dict[EntityType, str] = {
    EntityType.LOCATION: (
        "id, name, address, street_name, street_number, neighborhood, city, "
        "state, country, zipcode"
    ),
    EntityType.SPOT: "id, name, city, state, country",
}


def _db_value(value: Any) -> Any:
    """Store enum members by value."""
    return value.value if isinstance(value, Enum) else value


def _unused_ids_sql(table: str) -> str:
    return (
        f"SELECT id FROM {table} WHERE id NOT IN "
        "(SELECT entity_id FROM magazine_appearances WHERE entity_type = ?)"
    )


class SQLiteCatalogProvider(ICatalogProvider):
    """SQLite-backed catalog persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            await db.execute("PRAGMA foreign_keys = ON;")
            yield db

    async def initialize(self) -> None:
        """Create every catalog table and index if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._connect() as db:
            for table_sql in _CREATE_TABLES_SQL:
                await db.execute(table_sql)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("catalog_db_initialized", path=str(self._db_path))

    # ------------------------------------------------------------------
    # Magazines
    # ------------------------------------------------------------------

    async def create_magazine(
        self,
        title: str,
        year: int,
        volume: int | None = None,
        issue: int | None = None,
        month: int | None = None,
        pdf_path: str | None = None,
        completeness: Completeness = Completeness.METADATA,
    ) -> Magazine:
        async with self._connect() as db:
            try:
                cursor = await db.execute(
                    _INSERT_MAGAZINE_SQL,
                    (title, volume, issue, year, month, pdf_path, completeness.value),
                )
            except sqlite3.IntegrityError as exc:
                raise CatalogError(f"Invalid magazine data: {exc}") from exc
            magazine_id = cursor.lastrowid
            await db.commit()
            cursor = await db.execute(_SELECT_MAGAZINE_SQL, (magazine_id,))
            row = await cursor.fetchone()

        magazine = Magazine(**dict(row))
        logger.info("magazine_created", magazine_id=magazine.id, title=title, year=year)
        return magazine

    async def get_magazine(self, magazine_id: int) -> Magazine | None:
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_MAGAZINE_SQL, (magazine_id,))
            row = await cursor.fetchone()
        return Magazine(**dict(row)) if row else None

    async def list_magazines(self, status: MagazineStatus | None = None) -> list[Magazine]:
        where, params = ("", ())
        if status is not None:
            where, params = ("WHERE status = ?", (status.value,))
        async with self._connect() as db:
            cursor = await db.execute(_LIST_MAGAZINES_SQL.format(where=where), params)
            rows = await cursor.fetchall()
        return [Magazine(**dict(row)) for row in rows]

    async def set_magazine_status(self, magazine_id: int, status: MagazineStatus) -> bool:
        async with self._connect() as db:
            cursor = await db.execute(_UPDATE_STATUS_SQL, (status.value, magazine_id))
            await db.commit()
            updated = cursor.rowcount > 0
        logger.info(
            "magazine_status_set",
            magazine_id=magazine_id,
            status=status.value,
            updated=updated,
        )
        return updated

    async def mark_pages_processed(
        self, magazine_id: int, cover_image: str | None, page_count: int,
    ) -> None:
        async with self._connect() as db:
            await db.execute(_MARK_PROCESSED_SQL, (cover_image, page_count, magazine_id))
            await db.commit()

    async def delete_magazine(self, magazine_id: int) -> bool:
        # Pages, appearances and trick mentions go with it (ON DELETE CASCADE).
        async with self._connect() as db:
            cursor = await db.execute("DELETE FROM magazines WHERE id = ?;", (magazine_id,))
            await db.commit()
            deleted = cursor.rowcount > 0
        logger.info("magazine_deleted", magazine_id=magazine_id, deleted=deleted)
        return deleted

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    async def replace_pages(self, magazine_id: int, pages: list[PageResult]) -> int:
        async with self._connect() as db:
            await db.execute("DELETE FROM magazine_pages WHERE magazine_id = ?;", (magazine_id,))
            await db.executemany(
                _INSERT_PAGE_SQL,
                [(magazine_id, p.page_number, p.image_path, p.text) for p in pages],
            )
            await db.commit()
        logger.info("pages_replaced", magazine_id=magazine_id, page_count=len(pages))
        return len(pages)

    async def get_pages(self, magazine_id: int) -> list[MagazinePage]:
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_PAGES_SQL, (magazine_id,))
            rows = await cursor.fetchall()
        return [MagazinePage(**dict(row)) for row in rows]

    async def update_page_text(self, magazine_id: int, page_number: int, text: str) -> bool:
        async with self._connect() as db:
            cursor = await db.execute(
                "UPDATE magazine_pages SET text_content = ? WHERE magazine_id = ? AND page_number = ?;",
                (text, magazine_id, page_number),
            )
            await db.commit()
            return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Entities
    # ------------------------------------------------------------------

    async def get_or_create_entity(
        self,
        entity_type: EntityType,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> int:
        table = _ENTITY_TABLES[entity_type]
        if entity_type == EntityType.TRICK:
            name = normalize_trick_name(name)

        # None values are left out so column defaults (country = 'USA') apply.
        attrs = {k: _db_value(v) for k, v in (attributes or {}).items() if v is not None}
        unknown = set(attrs) - _ENTITY_COLUMNS[entity_type]
        if unknown:
            raise ValueError(f"Unknown {entity_type.value} attributes: {sorted(unknown)}")

        columns = ["name", *attrs]
        placeholders = ", ".join("?" for _ in columns)
        insert_sql = (
            f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders}) "
            "ON CONFLICT(name) DO NOTHING;"
        )

        async with self._connect() as db:
            cursor = await db.execute(insert_sql, (name, *attrs.values()))
            created = cursor.rowcount > 0
            cursor = await db.execute(f"SELECT id FROM {table} WHERE name = ?;", (name,))
            row = await cursor.fetchone()
            await db.commit()

        if created:
            logger.debug("entity_created", entity_type=entity_type.value, name=name, id=row["id"])
        return row["id"]

    async def find_entity_id(self, entity_type: EntityType, name: str) -> int | None:
        table = _ENTITY_TABLES[entity_type]
        if entity_type == EntityType.TRICK:
            name = normalize_trick_name(name)
        async with self._connect() as db:
            cursor = await db.execute(f"SELECT id FROM {table} WHERE name = ?;", (name,))
            row = await cursor.fetchone()
        return row["id"] if row else None

    async def attach_spot_address(
        self,
        spot_id: int,
        address_name: str,
        location_attributes: dict[str, Any],
        phone: str | None = None,
    ) -> int | None:
        async with self._connect() as db:
            cursor = await db.execute("SELECT location_id FROM spots WHERE id = ?;", (spot_id,))
            row = await cursor.fetchone()
        if row is None:
            raise CatalogError(f"Spot {spot_id} not found")
        if row["location_id"] is not None:
            return None

        attrs = {"type": "address", "country": "USA", **location_attributes}
        location_id = await self.get_or_create_entity(EntityType.LOCATION, address_name, attrs)

        async with self._connect() as db:
            await db.execute(
                "UPDATE spots SET location_id = ?, phone = COALESCE(?, phone) WHERE id = ?;",
                (location_id, phone, spot_id),
            )
            await db.commit()
        logger.debug("spot_address_linked", spot_id=spot_id, location_id=location_id)
        return location_id

    async def rename_entity(self, entity_type: EntityType, entity_id: int, new_name: str) -> bool:
        table = _ENTITY_TABLES[entity_type]
        new_name = new_name.strip()
        if entity_type == EntityType.TRICK:
            new_name = normalize_trick_name(new_name)
        if not new_name:
            raise CatalogError("Entity name cannot be empty")

        async with self._connect() as db:
            try:
                cursor = await db.execute(
                    f"UPDATE {table} SET name = ? WHERE id = ?;", (new_name, entity_id)
                )
            except sqlite3.IntegrityError as exc:
                raise CatalogError(
                    f"A {entity_type.value} named {new_name!r} already exists; merge instead"
                ) from exc
            await db.commit()
            renamed = cursor.rowcount > 0

        logger.info(
            "entity_renamed",
            entity_type=entity_type.value,
            entity_id=entity_id,
            new_name=new_name,
            renamed=renamed,
        )
        return renamed

    async def list_entities(self, entity_type: EntityType) -> list[DuplicateCandidate]:
        table = _ENTITY_TABLES[entity_type]
        query = f"""\
SELECT e.id, e.name, COUNT(a.id) AS appearance_count
FROM {table} e
LEFT JOIN magazine_appearances a
    ON a.entity_type = ? AND a.entity_id = e.id
GROUP BY e.id
ORDER BY e.name, e.id;
"""
        async with self._connect() as db:
            cursor = await db.execute(query, (entity_type.value,))
            rows = await cursor.fetchall()
        return [DuplicateCandidate(**dict(row)) for row in rows]

    async def merge_entities(
        self, entity_type: EntityType, keep_id: int, merge_ids: list[int],
    ) -> MergeResult:
        if keep_id in merge_ids:
            raise ValueError("keep_id must not be one of merge_ids")

        table = _ENTITY_TABLES[entity_type]
        moved = 0
        combined = 0
        merged: list[int] = []

        async with self._connect() as db:
            cursor = await db.execute(f"SELECT id FROM {table} WHERE id = ?;", (keep_id,))
            if await cursor.fetchone() is None:
                raise CatalogError(f"{entity_type.value} {keep_id} not found")

            try:
                for merge_id in merge_ids:
                    m, c = await self._move_appearances(db, entity_type, merge_id, keep_id)
                    moved += m
                    combined += c

                    for ref_table, column in _MERGE_REWRITES[entity_type]:
                        await db.execute(
                            f"UPDATE {ref_table} SET {column} = ? WHERE {column} = ?;",
                            (keep_id, merge_id),
                        )

                    cursor = await db.execute(f"DELETE FROM {table} WHERE id = ?;", (merge_id,))
                    if cursor.rowcount > 0:
                        merged.append(merge_id)
                await db.commit()
            except sqlite3.Error as exc:
                await db.rollback()
                raise CatalogError(f"Merge of {entity_type.value} failed: {exc}") from exc

        logger.info(
            "entities_merged",
            entity_type=entity_type.value,
            keep_id=keep_id,
            merged_ids=merged,
            appearances_moved=moved,
            appearances_combined=combined,
        )
        return MergeResult(
            entity_type=entity_type,
            keep_id=keep_id,
            merged_ids=merged,
            appearances_moved=moved,
            appearances_combined=combined,
        )

    @staticmethod
    async def _move_appearances(
        db: aiosqlite.Connection, entity_type: EntityType, from_id: int, to_id: int,
    ) -> tuple[int, int]:
        """Repoint *from_id*'s appearances at *to_id*.

        Where *to_id* already appears in the same issue the two rows are
        combined (page union, highest confidence, verified if either was).
        """
        moved = 0
        combined = 0
        cursor = await db.execute(
            _SELECT_APPEARANCE_SQL + "WHERE entity_type = ? AND entity_id = ?;",
            (entity_type.value, from_id),
        )
        for row in await cursor.fetchall():
            cursor = await db.execute(
                _SELECT_APPEARANCE_SQL
                + "WHERE magazine_id = ? AND entity_type = ? AND entity_id = ?;",
                (row["magazine_id"], entity_type.value, to_id),
            )
            existing = await cursor.fetchone()
            if existing is None:
                await db.execute(
                    "UPDATE magazine_appearances SET entity_id = ? WHERE id = ?;",
                    (to_id, row["id"]),
                )
                moved += 1
                continue

            pages = sorted(
                set(json.loads(existing["page_numbers"])) | set(json.loads(row["page_numbers"]))
            )
            confidence = max(
                (s for s in (existing["confidence_score"], row["confidence_score"]) if s is not None),
                default=None,
            )
            await db.execute(
                """\
UPDATE magazine_appearances
SET page_numbers = ?, confidence_score = ?, verified = ?,
    context = COALESCE(context, ?)
WHERE id = ?;
""",
                (
                    json.dumps(pages),
                    confidence,
                    int(bool(existing["verified"]) or bool(row["verified"])),
                    row["context"],
                    existing["id"],
                ),
            )
            await db.execute("DELETE FROM magazine_appearances WHERE id = ?;", (row["id"],))
            combined += 1
        return moved, combined

    async def delete_unused_entities(self) -> CleanupReport:
        deleted: dict[EntityType, int] = {}

        async with self._connect() as db:
            # Trick mentions pointing at an unused skater, spot or trick go first.
            cursor = await db.execute(
                f"""\
DELETE FROM trick_mentions
WHERE skater_id IN ({_unused_ids_sql('skaters')})
   OR spot_id IN ({_unused_ids_sql('spots')})
   OR trick_id IN ({_unused_ids_sql('tricks')});
""",
                (EntityType.SKATER.value, EntityType.SPOT.value, EntityType.TRICK.value),
            )
            mentions_deleted = cursor.rowcount

            await db.execute(
                f"UPDATE events SET spot_id = NULL WHERE spot_id IN ({_unused_ids_sql('spots')});",
                (EntityType.SPOT.value,),
            )

            cursor = await db.execute(
                f"DELETE FROM spots WHERE id IN ({_unused_ids_sql('spots')});",
                (EntityType.SPOT.value,),
            )
            deleted[EntityType.SPOT] = cursor.rowcount

            # Locations still linked from a surviving spot are kept.
            cursor = await db.execute(
                f"""\
DELETE FROM locations
WHERE id IN ({_unused_ids_sql('locations')})
  AND id NOT IN (SELECT location_id FROM spots WHERE location_id IS NOT NULL);
""",
                (EntityType.LOCATION.value,),
            )
            deleted[EntityType.LOCATION] = cursor.rowcount

            for entity_type in (
                EntityType.SKATER,
                EntityType.PHOTOGRAPHER,
                EntityType.BRAND,
                EntityType.EVENT,
                EntityType.TRICK,
            ):
                table = _ENTITY_TABLES[entity_type]
                cursor = await db.execute(
                    f"DELETE FROM {table} WHERE id IN ({_unused_ids_sql(table)});",
                    (entity_type.value,),
                )
                deleted[entity_type] = cursor.rowcount

            await db.commit()

        report = CleanupReport(deleted=deleted, trick_mentions_deleted=mentions_deleted)
        logger.info(
            "unused_entities_deleted",
            total=report.total,
            trick_mentions=mentions_deleted,
            **{_ENTITY_TABLES[entity_type]: count for entity_type, count in deleted.items()},
        )
        return report

    # ------------------------------------------------------------------
    # Provenance
    # ------------------------------------------------------------------

    async def upsert_appearance(
        self,
        magazine_id: int,
        entity_type: EntityType,
        entity_id: int,
        page_numbers: list[int],
        context: AppearanceContext | None,
        confidence_score: float,
    ) -> int:
        pages = sorted(set(page_numbers))
        context_value = context.value if context is not None else None

        # The INSERT opens the write transaction, so the page union below
        # cannot interleave with another writer.
        async with self._connect() as db:
            cursor = await db.execute(
                _UPSERT_APPEARANCE_SQL,
                (
                    magazine_id,
                    entity_type.value,
                    entity_id,
                    json.dumps(pages),
                    context_value,
                    confidence_score,
                ),
            )
            if cursor.rowcount > 0:
                appearance_id = cursor.lastrowid
            else:
                cursor = await db.execute(
                    _SELECT_APPEARANCE_SQL
                    + "WHERE magazine_id = ? AND entity_type = ? AND entity_id = ?;",
                    (magazine_id, entity_type.value, entity_id),
                )
                existing = await cursor.fetchone()
                merged = sorted(set(json.loads(existing["page_numbers"])) | set(pages))
                await db.execute(
                    "UPDATE magazine_appearances SET page_numbers = ? WHERE id = ?;",
                    (json.dumps(merged), existing["id"]),
                )
                appearance_id = existing["id"]
            await db.commit()

        return appearance_id

    async def list_appearances(
        self, magazine_id: int, verified: bool | None = None,
    ) -> list[Appearance]:
        query = _SELECT_APPEARANCE_SQL + "WHERE magazine_id = ?"
        params: tuple[Any, ...] = (magazine_id,)
        if verified is not None:
            query += " AND verified = ?"
            params += (int(verified),)
        query += " ORDER BY entity_type, id;"

        async with self._connect() as db:
            cursor = await db.execute(query, params)
            rows = await cursor.fetchall()

        appearances: list[Appearance] = []
        for row in rows:
            data = dict(row)
            data["page_numbers"] = json.loads(data["page_numbers"]) if data["page_numbers"] else []
            data["verified"] = bool(data["verified"])
            appearances.append(Appearance(**data))
        return appearances

    async def add_trick_mention(
        self,
        magazine_id: int,
        trick_id: int,
        page_number: int | None,
        skater_id: int | None = None,
        spot_id: int | None = None,
        confidence_score: float | None = None,
    ) -> int:
        async with self._connect() as db:
            cursor = await db.execute(
                """\
INSERT INTO trick_mentions
    (magazine_id, trick_id, skater_id, spot_id, page_number, confidence_score, verified)
VALUES (?, ?, ?, ?, ?, ?, 0);
""",
                (magazine_id, trick_id, skater_id, spot_id, page_number, confidence_score),
            )
            await db.commit()
            return cursor.lastrowid

    async def list_trick_mentions(self, magazine_id: int) -> list[TrickMention]:
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_TRICK_MENTIONS_SQL, (magazine_id,))
            rows = await cursor.fetchall()
        mentions: list[TrickMention] = []
        for row in rows:
            data = dict(row)
            data["verified"] = bool(data["verified"])
            mentions.append(TrickMention(**data))
        return mentions

    async def clear_extraction(self, magazine_id: int) -> tuple[int, int]:
        async with self._connect() as db:
            cursor = await db.execute(
                "DELETE FROM magazine_appearances WHERE magazine_id = ?;", (magazine_id,)
            )
            appearances = cursor.rowcount
            cursor = await db.execute(
                "DELETE FROM trick_mentions WHERE magazine_id = ?;", (magazine_id,)
            )
            mentions = cursor.rowcount
            await db.commit()

        logger.info(
            "extraction_cleared",
            magazine_id=magazine_id,
            appearances=appearances,
            trick_mentions=mentions,
        )
        return appearances, mentions

    async def set_appearance_verified(self, appearance_id: int, verified: bool = True) -> bool:
        async with self._connect() as db:
            cursor = await db.execute(
                "UPDATE magazine_appearances SET verified = ? WHERE id = ?;",
                (int(verified), appearance_id),
            )
            await db.commit()
            return cursor.rowcount > 0

    async def delete_appearance(self, appearance_id: int) -> bool:
        async with self._connect() as db:
            cursor = await db.execute(
                "DELETE FROM magazine_appearances WHERE id = ?;", (appearance_id,)
            )
            await db.commit()
            return cursor.rowcount > 0

    async def verify_all_appearances(self, magazine_id: int) -> int:
        async with self._connect() as db:
            cursor = await db.execute(
                "UPDATE magazine_appearances SET verified = 1 WHERE magazine_id = ? AND verified = 0;",
                (magazine_id,),
            )
            await db.commit()
            return cursor.rowcount

    # ------------------------------------------------------------------
    # Geocoding
    # ------------------------------------------------------------------

    async def list_geocode_targets(self, entity_type: EntityType) -> list[GeocodeTarget]:
        if entity_type not in _GEOCODE_COLUMNS:
            raise ValueError(f"{entity_type.value} entities have no coordinates")
        table = _ENTITY_TABLES[entity_type]
        query = (
            f"SELECT {_GEOCODE_COLUMNS[entity_type]} FROM {table} "
            "WHERE latitude IS NULL ORDER BY id;"
        )
        async with self._connect() as db:
            cursor = await db.execute(query)
            rows = await cursor.fetchall()
        return [GeocodeTarget(entity_type=entity_type, **dict(row)) for row in rows]

    async def set_coordinates(
        self, entity_type: EntityType, entity_id: int, latitude: float, longitude: float,
    ) -> None:
        if entity_type not in _GEOCODE_COLUMNS:
            raise ValueError(f"{entity_type.value} entities have no coordinates")
        table = _ENTITY_TABLES[entity_type]
        async with self._connect() as db:
            await db.execute(
                f"UPDATE {table} SET latitude = ?, longitude = ? WHERE id = ?;",
                (latitude, longitude, entity_id),
            )
            await db.commit()
