"""Plugin repository for database operations."""

import json
import logging
import sqlite3
from datetime import datetime
from typing import Optional

from marketplace.db.database import Database
from marketplace.exceptions import ConflictError
from marketplace.models.plugin import (
    Plugin,
    PluginFilters,
    PluginVersion,
    Review,
    SortOrder,
    utcnow,
)

logger = logging.getLogger(__name__)

_ORDER_BY = {
    SortOrder.NEWEST: "p.created_at DESC, p.rowid DESC",
    SortOrder.POPULAR: "p.download_count DESC, p.created_at DESC",
    SortOrder.PRICE_LOW: "p.price ASC, p.created_at DESC",
    SortOrder.PRICE_HIGH: "p.price DESC, p.created_at DESC",
    SortOrder.RATING: "p.average_rating DESC, p.created_at DESC",
}

_SELECT_PLUGIN = """
SELECT p.*, u.username AS author_name
FROM plugins p
LEFT JOIN users u ON u.id = p.author_id
"""


class PluginRepository:
    """Repository for plugins and their owned versions and reviews.

    Versions and reviews are stored in child tables keyed by
    ``(plugin_id, position)`` and are only reachable through their plugin.

    Attributes:
        db: Database instance.
    """

    def __init__(self, db: Database) -> None:
        """Initialize the repository.

        Args:
            db: Database instance.
        """
        self.db = db

    async def create(self, plugin: Plugin) -> Plugin:
        """Create a plugin together with its initial versions.

        Args:
            plugin: Plugin to create.

        Returns:
            Created plugin.
        """
        query = """
        INSERT INTO plugins (
            id, author_id, name, description, category, price, features,
            requirements, thumbnail_url, average_rating, download_count,
            featured, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """
        async with self.db.transaction() as conn:
            await conn.execute(
                query,
                (
                    plugin.id,
                    plugin.author_id,
                    plugin.name,
                    plugin.description,
                    plugin.category,
                    plugin.price,
                    json.dumps(plugin.features),
                    plugin.requirements,
                    plugin.thumbnail_url,
                    plugin.average_rating,
                    plugin.download_count,
                    plugin.featured,
                    plugin.created_at.isoformat(),
                    plugin.updated_at.isoformat(),
                ),
            )
            for position, version in enumerate(plugin.versions):
                version.position = position
                await conn.execute(
                    """
                    INSERT INTO plugin_versions (
                        plugin_id, position, version_number, file_path,
                        minecraft_version, changelog, checksum_sha256,
                        size_bytes, release_date, download_count
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    self._version_params(plugin.id, position, version),
                )

        logger.info(f"Created plugin: {plugin.id} ({plugin.name})")
        return plugin

    @staticmethod
    def _version_params(plugin_id: str, position: int, version: PluginVersion) -> tuple:
        return (
            plugin_id,
            position,
            version.version_number,
            version.file_path,
            version.minecraft_version,
            version.changelog,
            version.checksum_sha256,
            version.size_bytes,
            version.release_date.isoformat(),
            version.download_count,
        )

    def _row_to_plugin(self, row) -> Plugin:
        """Convert a database row to a Plugin object without children.

        Args:
            row: Database row.

        Returns:
            Plugin object.
        """
        return Plugin(
            id=row["id"],
            author_id=row["author_id"],
            name=row["name"],
            description=row["description"],
            category=row["category"],
            price=row["price"],
            features=json.loads(row["features"]) if row["features"] else [],
            requirements=row["requirements"],
            thumbnail_url=row["thumbnail_url"],
            average_rating=row["average_rating"] or 0.0,
            download_count=row["download_count"],
            featured=bool(row["featured"]),
            author_name=row["author_name"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    @staticmethod
    def _row_to_version(row) -> PluginVersion:
        return PluginVersion(
            version_number=row["version_number"],
            file_path=row["file_path"],
            minecraft_version=row["minecraft_version"],
            changelog=row["changelog"],
            checksum_sha256=row["checksum_sha256"],
            size_bytes=row["size_bytes"],
            release_date=datetime.fromisoformat(row["release_date"]),
            download_count=row["download_count"],
            position=row["position"],
        )

    @staticmethod
    def _row_to_review(row) -> Review:
        return Review(
            user_id=row["user_id"],
            rating=row["rating"],
            comment=row["comment"],
            helpful_count=row["helpful_count"],
            position=row["position"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    async def _load_children(self, conn, plugin: Plugin) -> Plugin:
        """Attach versions and reviews to a plugin.

        Args:
            conn: Connection held by the caller's snapshot.
            plugin: Plugin loaded from its row.

        Returns:
            The same plugin with versions and reviews in position order.
        """
        versions = await conn.execute_fetchall(
            "SELECT * FROM plugin_versions WHERE plugin_id = ? ORDER BY position",
            (plugin.id,),
        )
        reviews = await conn.execute_fetchall(
            "SELECT * FROM plugin_reviews WHERE plugin_id = ? ORDER BY position",
            (plugin.id,),
        )
        plugin.versions = [self._row_to_version(row) for row in versions]
        plugin.reviews = [self._row_to_review(row) for row in reviews]
        return plugin

    async def get_by_id(self, plugin_id: str) -> Optional[Plugin]:
        """Get a plugin with its versions and reviews.

        Args:
            plugin_id: Plugin ID.

        Returns:
            Plugin or None if not found.
        """
        async with self.db.snapshot() as conn:
            rows = await conn.execute_fetchall(f"{_SELECT_PLUGIN} WHERE p.id = ?", (plugin_id,))
            if not rows:
                return None
            return await self._load_children(conn, self._row_to_plugin(rows[0]))

    @staticmethod
    def _where(filters: PluginFilters) -> tuple[str, list]:
        """Build the WHERE clause for listing filters."""
        clause = " WHERE 1=1"
        params: list = []

        if filters.category:
            clause += " AND p.category = ?"
            params.append(filters.category)

        if filters.featured is not None:
            clause += " AND p.featured = ?"
            params.append(filters.featured)

        if filters.search:
            clause += " AND (instr(lower(p.name), lower(?)) > 0 OR instr(lower(p.description), lower(?)) > 0)"
            params.extend([filters.search, filters.search])

        return clause, params

    async def list_plugins(
        self,
        filters: PluginFilters,
        sort: SortOrder = SortOrder.NEWEST,
        page: int = 1,
        per_page: int = 12,
    ) -> list[Plugin]:
        """List plugins with filters, sorting and pagination.

        Args:
            filters: Listing filters.
            sort: Sort order.
            page: Page number (1-indexed).
            per_page: Items per page.

        Returns:
            List of plugins.
        """
        where, params = self._where(filters)
        query = f"{_SELECT_PLUGIN}{where} ORDER BY {_ORDER_BY[sort]} LIMIT ? OFFSET ?"
        params.extend([per_page, (page - 1) * per_page])

        async with self.db.snapshot() as conn:
            rows = await conn.execute_fetchall(query, tuple(params))
            return [await self._load_children(conn, self._row_to_plugin(row)) for row in rows]

    async def count(self, filters: PluginFilters) -> int:
        """Count plugins matching filters.

        Args:
            filters: Listing filters.

        Returns:
            Total count of matching plugins.
        """
        where, params = self._where(filters)
        row = await self.db.fetch_one(f"SELECT COUNT(*) FROM plugins p{where}", tuple(params))
        return row[0] if row else 0

    async def list_by_author(self, author_id: str) -> list[Plugin]:
        """List an author's plugins, newest first.

        Args:
            author_id: Author's user ID.

        Returns:
            List of plugins.
        """
        async with self.db.snapshot() as conn:
            rows = await conn.execute_fetchall(
                f"{_SELECT_PLUGIN} WHERE p.author_id = ? ORDER BY {_ORDER_BY[SortOrder.NEWEST]}",
                (author_id,),
            )
            return [await self._load_children(conn, self._row_to_plugin(row)) for row in rows]

    async def update(self, plugin_id: str, data: dict) -> Optional[Plugin]:
        """Update plugin fields.

        Args:
            plugin_id: Plugin ID.
            data: Fields to update.

        Returns:
            Updated plugin or None.
        """
        if not data:
            return await self.get_by_id(plugin_id)

        set_clauses = []
        params = []
        for key, value in data.items():
            if key == "features":
                value = json.dumps(value)
            set_clauses.append(f"{key} = ?")
            params.append(value)

        set_clauses.append("updated_at = ?")
        params.append(utcnow().isoformat())
        params.append(plugin_id)

        query = f"UPDATE plugins SET {', '.join(set_clauses)} WHERE id = ?"
        async with self.db.transaction() as conn:
            await conn.execute(query, tuple(params))

        return await self.get_by_id(plugin_id)

    async def append_version(self, plugin_id: str, version: PluginVersion) -> PluginVersion:
        """Append a version after the current latest one.

        The next position is computed inside the INSERT so concurrent
        appends cannot reuse a position.

        Args:
            plugin_id: Plugin ID.
            version: Version to append.

        Returns:
            Appended version with its position set.
        """
        async with self.db.transaction() as conn:
            await conn.execute(
                """
                INSERT INTO plugin_versions (
                    plugin_id, position, version_number, file_path,
                    minecraft_version, changelog, checksum_sha256,
                    size_bytes, release_date, download_count
                )
                SELECT ?, COALESCE(MAX(position), -1) + 1, ?, ?, ?, ?, ?, ?, ?, 0
                FROM plugin_versions WHERE plugin_id = ?
                """,
                (
                    plugin_id,
                    version.version_number,
                    version.file_path,
                    version.minecraft_version,
                    version.changelog,
                    version.checksum_sha256,
                    version.size_bytes,
                    version.release_date.isoformat(),
                    plugin_id,
                ),
            )
            cursor = await conn.execute(
                "SELECT MAX(position) FROM plugin_versions WHERE plugin_id = ?",
                (plugin_id,),
            )
            row = await cursor.fetchone()
            await conn.execute(
                "UPDATE plugins SET updated_at = ? WHERE id = ?",
                (utcnow().isoformat(), plugin_id),
            )

        version.position = row[0]
        version.download_count = 0
        logger.info(f"Added version {version.version_number} to plugin {plugin_id}")
        return version

    async def add_review(self, plugin_id: str, review: Review) -> Review:
        """Add a review and recompute the plugin's average rating.

        Both statements run in one transaction.

        Args:
            plugin_id: Plugin ID.
            review: Review to add.

        Returns:
            Added review.

        Raises:
            ConflictError: If the user already reviewed the plugin.
        """
        try:
            async with self.db.transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO plugin_reviews (
                        plugin_id, position, user_id, rating, comment,
                        helpful_count, created_at, updated_at
                    )
                    SELECT ?, COALESCE(MAX(position), -1) + 1, ?, ?, ?, ?, ?, ?
                    FROM plugin_reviews WHERE plugin_id = ?
                    """,
                    (
                        plugin_id,
                        review.user_id,
                        review.rating,
                        review.comment,
                        review.helpful_count,
                        review.created_at.isoformat(),
                        review.updated_at.isoformat(),
                        plugin_id,
                    ),
                )
                await conn.execute(
                    """
                    UPDATE plugins SET
                        average_rating = COALESCE(
                            (SELECT AVG(rating) FROM plugin_reviews WHERE plugin_id = ?), 0
                        ),
                        updated_at = ?
                    WHERE id = ?
                    """,
                    (plugin_id, utcnow().isoformat(), plugin_id),
                )
        except sqlite3.IntegrityError as e:
            raise ConflictError("You have already reviewed this plugin") from e

        logger.info(f"Added review by {review.user_id} to plugin {plugin_id}")
        return review

    async def increment_downloads(self, plugin_id: str, position: int) -> None:
        """Increment the version and plugin download counters.

        Args:
            plugin_id: Plugin ID.
            position: Position of the downloaded version.
        """
        async with self.db.transaction() as conn:
            await conn.execute(
                "UPDATE plugin_versions SET download_count = download_count + 1 "
                "WHERE plugin_id = ? AND position = ?",
                (plugin_id, position),
            )
            await conn.execute(
                "UPDATE plugins SET download_count = download_count + 1 WHERE id = ?",
                (plugin_id,),
            )

    async def set_featured(self, plugin_id: str, featured: bool) -> bool:
        """Set the featured flag.

        Args:
            plugin_id: Plugin ID.
            featured: New flag value.

        Returns:
            True if the plugin exists.
        """
        async with self.db.transaction() as conn:
            cursor = await conn.execute(
                "UPDATE plugins SET featured = ? WHERE id = ?",
                (featured, plugin_id),
            )
        return cursor.rowcount > 0
