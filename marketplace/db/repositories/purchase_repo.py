"""Purchase ledger repository for database operations."""

import logging
import sqlite3
import uuid
from datetime import datetime
from typing import Optional

from marketplace.db.database import Database
from marketplace.exceptions import ConflictError
from marketplace.models.purchase import Purchase

logger = logging.getLogger(__name__)


class PurchaseRepository:
    """Repository for purchase records.

    Attributes:
        db: Database instance.
    """

    def __init__(self, db: Database) -> None:
        """Initialize the repository.

        Args:
            db: Database instance.
        """
        self.db = db

    async def create(self, purchase: Purchase) -> Purchase:
        """Record a purchase.

        Args:
            purchase: Purchase to record.

        Returns:
            Recorded purchase.

        Raises:
            ConflictError: If the user already owns the plugin.
        """
        if not purchase.id:
            purchase.id = uuid.uuid4().hex

        query = """
        INSERT INTO purchases (
            id, user_id, plugin_id, price, transaction_id, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?)
        """
        try:
            async with self.db.transaction() as conn:
                await conn.execute(
                    query,
                    (
                        purchase.id,
                        purchase.user_id,
                        purchase.plugin_id,
                        purchase.price,
                        purchase.transaction_id,
                        purchase.created_at.isoformat(),
                        purchase.updated_at.isoformat(),
                    ),
                )
        except sqlite3.IntegrityError as e:
            raise ConflictError("You have already purchased this plugin") from e

        logger.info(
            f"Recorded purchase {purchase.transaction_id}: "
            f"user {purchase.user_id} -> plugin {purchase.plugin_id}"
        )
        return purchase

    @staticmethod
    def _row_to_purchase(row) -> Purchase:
        return Purchase(
            id=row["id"],
            user_id=row["user_id"],
            plugin_id=row["plugin_id"],
            price=row["price"],
            transaction_id=row["transaction_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    async def get(self, user_id: str, plugin_id: str) -> Optional[Purchase]:
        """Get the purchase of a plugin by a user.

        Args:
            user_id: Buyer's user ID.
            plugin_id: Plugin ID.

        Returns:
            Purchase or None.
        """
        row = await self.db.fetch_one(
            "SELECT * FROM purchases WHERE user_id = ? AND plugin_id = ?",
            (user_id, plugin_id),
        )
        return self._row_to_purchase(row) if row else None

    async def list_for_plugin(self, user_id: str, plugin_id: str) -> list[Purchase]:
        """List a user's purchase records for one plugin.

        Args:
            user_id: Buyer's user ID.
            plugin_id: Plugin ID.

        Returns:
            List of purchases (at most one).
        """
        rows = await self.db.fetch_all(
            "SELECT * FROM purchases WHERE user_id = ? AND plugin_id = ?",
            (user_id, plugin_id),
        )
        return [self._row_to_purchase(row) for row in rows]

    async def list_by_user(self, user_id: str) -> list[Purchase]:
        """List a user's purchases, newest first.

        Args:
            user_id: Buyer's user ID.

        Returns:
            List of purchases.
        """
        rows = await self.db.fetch_all(
            "SELECT * FROM purchases WHERE user_id = ? ORDER BY created_at DESC, rowid DESC",
            (user_id,),
        )
        return [self._row_to_purchase(row) for row in rows]
