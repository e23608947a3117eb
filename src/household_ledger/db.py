"""SQLite cache of the last computed member balances."""

import sqlite3
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from .models import MemberBalance


class Database:
    """SQLite database manager."""

    def __init__(self, db_path: Path):
        """Initialize database connection."""
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path))
        self.conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        cursor = self.conn.cursor()

        # One row per member of the most recent refresh; amounts stored as
        # text to keep Decimal precision
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS balance_snapshots (
                household_id TEXT NOT NULL,
                member_id TEXT NOT NULL,
                display_name TEXT NOT NULL,
                balance TEXT NOT NULL,
                computed_at TIMESTAMP NOT NULL,
                PRIMARY KEY (household_id, member_id)
            )
        """
        )

        self.conn.commit()

    def close(self):
        """Close database connection."""
        self.conn.close()

    # ========================================================================
    # Balance snapshot operations
    # ========================================================================

    def save_member_balances(
        self,
        household_id: str,
        balances: list[MemberBalance],
        computed_at: datetime,
    ):
        """Replace the cached balances of a household with a new snapshot."""
        with self.conn:
            self.conn.execute(
                "DELETE FROM balance_snapshots WHERE household_id = ?",
                (household_id,),
            )
            self.conn.executemany(
                """
                INSERT INTO balance_snapshots (
                    household_id, member_id, display_name, balance, computed_at
                ) VALUES (?, ?, ?, ?, ?)
                """,
                [
                    (
                        household_id,
                        entry.member_id,
                        entry.display_name,
                        str(entry.balance),
                        computed_at.isoformat(),
                    )
                    for entry in balances
                ],
            )

    def get_member_balances(self, household_id: str) -> list[MemberBalance]:
        """Get the cached balances of a household, sorted by display name."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT household_id, member_id, display_name, balance
            FROM balance_snapshots
            WHERE household_id = ?
            ORDER BY display_name
            """,
            (household_id,),
        )
        return [
            MemberBalance(
                household_id=row["household_id"],
                member_id=row["member_id"],
                display_name=row["display_name"],
                balance=Decimal(row["balance"]),
            )
            for row in cursor.fetchall()
        ]

    def get_last_computed_at(self, household_id: str) -> datetime | None:
        """Get when the cached balances of a household were computed."""
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT MAX(computed_at) AS computed_at FROM balance_snapshots "
            "WHERE household_id = ?",
            (household_id,),
        )
        row = cursor.fetchone()
        if row["computed_at"] is None:
            return None
        return datetime.fromisoformat(row["computed_at"])
