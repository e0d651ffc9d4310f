"""SQLite database operations for group-ledger."""

import sqlite3
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

from .models import Expense, Group, Invite, Participant, Split, SplitMode


class Database:
    """SQLite database manager."""

    def __init__(self, db_path: Path):
        """Initialize database connection."""
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path))
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        cursor = self.conn.cursor()

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS groups (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                owner_account_id TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS participants (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                group_id INTEGER NOT NULL REFERENCES groups(id) ON DELETE CASCADE,
                name TEXT NOT NULL,
                email TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'pending',
                color TEXT NOT NULL,
                avatar TEXT NOT NULL DEFAULT '',
                account_id TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE (group_id, email)
            )
        """
        )

        # Amounts are stored as TEXT to keep Decimal values exact
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS expenses (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                group_id INTEGER NOT NULL REFERENCES groups(id) ON DELETE CASCADE,
                description TEXT NOT NULL,
                category TEXT NOT NULL,
                amount TEXT NOT NULL,
                expense_date DATE NOT NULL,
                payer_id INTEGER NOT NULL,
                split_mode TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS expense_splits (
                expense_id INTEGER NOT NULL REFERENCES expenses(id) ON DELETE CASCADE,
                position INTEGER NOT NULL,
                participant_id INTEGER NOT NULL,
                amount TEXT NOT NULL,
                PRIMARY KEY (expense_id, position)
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS invites (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                group_id INTEGER NOT NULL REFERENCES groups(id) ON DELETE CASCADE,
                participant_id INTEGER NOT NULL,
                email TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'pending',
                token TEXT NOT NULL UNIQUE,
                invited_by_account_id TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        self.conn.commit()

    def close(self):
        """Close database connection."""
        self.conn.close()

    # ========================================================================
    # Group operations
    # ========================================================================

    def create_group(self, name: str, owner_account_id: str) -> Group:
        """Insert a group and return it."""
        now = datetime.now()
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT INTO groups (name, owner_account_id, created_at, updated_at)
            VALUES (?, ?, ?, ?)
            """,
            (name, owner_account_id, now.isoformat(), now.isoformat()),
        )
        self.conn.commit()
        row_id = cursor.lastrowid
        if row_id is None:
            raise RuntimeError("Failed to insert group")
        return Group(
            id=row_id,
            name=name,
            owner_account_id=owner_account_id,
            created_at=now,
            updated_at=now,
        )

    def get_group(self, group_id: int) -> Group | None:
        """Get a group by ID."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT id, name, owner_account_id, created_at, updated_at
            FROM groups
            WHERE id = ?
            """,
            (group_id,),
        )
        row = cursor.fetchone()
        return self._row_to_group(row) if row else None

    def get_groups_for_account(self, account_id: str) -> list[Group]:
        """Groups owned by the account or where it is a linked participant."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT DISTINCT g.id, g.name, g.owner_account_id,
                   g.created_at, g.updated_at
            FROM groups g
            LEFT JOIN participants p ON p.group_id = g.id
            WHERE g.owner_account_id = ? OR p.account_id = ?
            ORDER BY g.created_at DESC, g.id DESC
            """,
            (account_id, account_id),
        )
        return [self._row_to_group(row) for row in cursor.fetchall()]

    def update_group_name(self, group_id: int, name: str):
        """Rename a group."""
        self.conn.execute(
            "UPDATE groups SET name = ?, updated_at = ? WHERE id = ?",
            (name, datetime.now().isoformat(), group_id),
        )
        self.conn.commit()

    def delete_group(self, group_id: int):
        """Delete a group along with its participants, expenses and invites."""
        self.conn.execute("DELETE FROM groups WHERE id = ?", (group_id,))
        self.conn.commit()

    @staticmethod
    def _row_to_group(row: sqlite3.Row) -> Group:
        return Group(
            id=row["id"],
            name=row["name"],
            owner_account_id=row["owner_account_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    # ========================================================================
    # Participant operations
    # ========================================================================

    def create_participant(
        self,
        group_id: int,
        name: str,
        email: str,
        color: str,
        avatar: str = "",
        account_id: str | None = None,
    ) -> Participant:
        """Insert a participant. Linked participants start out active."""
        now = datetime.now()
        email = email.strip().lower()
        status = "active" if account_id else "pending"
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT INTO participants (
                group_id, name, email, status, color, avatar,
                account_id, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (group_id, name, email, status, color, avatar, account_id, now.isoformat()),
        )
        self.conn.commit()
        row_id = cursor.lastrowid
        if row_id is None:
            raise RuntimeError("Failed to insert participant")
        return Participant(
            id=row_id,
            group_id=group_id,
            name=name,
            email=email,
            status=status,
            color=color,
            avatar=avatar,
            account_id=account_id,
            created_at=now,
        )

    def get_participant(self, participant_id: int) -> Participant | None:
        """Get a participant by ID."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT id, group_id, name, email, status, color, avatar,
                   account_id, created_at
            FROM participants
            WHERE id = ?
            """,
            (participant_id,),
        )
        row = cursor.fetchone()
        return self._row_to_participant(row) if row else None

    def get_participants(self, group_id: int) -> list[Participant]:
        """Get a group's participants in the order they joined."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT id, group_id, name, email, status, color, avatar,
                   account_id, created_at
            FROM participants
            WHERE group_id = ?
            ORDER BY id
            """,
            (group_id,),
        )
        return [self._row_to_participant(row) for row in cursor.fetchall()]

    def find_participant_by_email(self, group_id: int, email: str) -> Participant | None:
        """Find a participant in a group by e-mail."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT id, group_id, name, email, status, color, avatar,
                   account_id, created_at
            FROM participants
            WHERE group_id = ? AND email = ?
            """,
            (group_id, email.strip().lower()),
        )
        row = cursor.fetchone()
        return self._row_to_participant(row) if row else None

    def update_participant(self, participant: Participant):
        """Persist a participant's mutable fields."""
        self.conn.execute(
            """
            UPDATE participants
            SET name = ?, color = ?, avatar = ?, status = ?, account_id = ?
            WHERE id = ?
            """,
            (
                participant.name,
                participant.color,
                participant.avatar,
                participant.status,
                participant.account_id,
                participant.id,
            ),
        )
        self.conn.commit()

    def delete_participant(self, participant_id: int):
        """Delete a participant and their invites."""
        self.conn.execute("DELETE FROM invites WHERE participant_id = ?", (participant_id,))
        self.conn.execute("DELETE FROM participants WHERE id = ?", (participant_id,))
        self.conn.commit()

    @staticmethod
    def _row_to_participant(row: sqlite3.Row) -> Participant:
        return Participant(
            id=row["id"],
            group_id=row["group_id"],
            name=row["name"],
            email=row["email"],
            status=row["status"],
            color=row["color"],
            avatar=row["avatar"],
            account_id=row["account_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    # ========================================================================
    # Expense operations
    # ========================================================================

    def create_expense(
        self,
        group_id: int,
        description: str,
        category: str,
        amount: Decimal,
        expense_date: date,
        payer_id: int,
        split_mode: SplitMode,
        splits: list[Split],
    ) -> Expense:
        """Insert an expense with its splits."""
        now = datetime.now()
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT INTO expenses (
                group_id, description, category, amount, expense_date,
                payer_id, split_mode, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                group_id,
                description,
                category,
                str(amount),
                expense_date.isoformat(),
                payer_id,
                split_mode,
                now.isoformat(),
                now.isoformat(),
            ),
        )
        row_id = cursor.lastrowid
        if row_id is None:
            raise RuntimeError("Failed to insert expense")
        self._insert_splits(row_id, splits)
        self.conn.commit()

        return Expense(
            id=row_id,
            group_id=group_id,
            description=description,
            category=category,
            amount=amount,
            date=expense_date,
            payer_id=payer_id,
            split_mode=split_mode,
            splits=splits,
            created_at=now,
            updated_at=now,
        )

    def update_expense(self, expense: Expense):
        """Rewrite an expense and replace its splits."""
        self.conn.execute(
            """
            UPDATE expenses
            SET description = ?, category = ?, amount = ?, expense_date = ?,
                payer_id = ?, split_mode = ?, updated_at = ?
            WHERE id = ?
            """,
            (
                expense.description,
                expense.category,
                str(expense.amount),
                expense.date.isoformat(),
                expense.payer_id,
                expense.split_mode,
                expense.updated_at.isoformat(),
                expense.id,
            ),
        )
        self.conn.execute("DELETE FROM expense_splits WHERE expense_id = ?", (expense.id,))
        self._insert_splits(expense.id, expense.splits)
        self.conn.commit()

    def _insert_splits(self, expense_id: int, splits: list[Split]):
        self.conn.executemany(
            """
            INSERT INTO expense_splits (expense_id, position, participant_id, amount)
            VALUES (?, ?, ?, ?)
            """,
            [
                (expense_id, position, split.participant_id, str(split.amount))
                for position, split in enumerate(splits)
            ],
        )

    def get_expense(self, expense_id: int) -> Expense | None:
        """Get an expense with its splits."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT id, group_id, description, category, amount, expense_date,
                   payer_id, split_mode, created_at, updated_at
            FROM expenses
            WHERE id = ?
            """,
            (expense_id,),
        )
        row = cursor.fetchone()
        if not row:
            return None
        return self._row_to_expense(row, self._get_splits([expense_id])[expense_id])

    def get_expenses(self, group_ids: list[int]) -> list[Expense]:
        """Get every expense in the given groups, newest date first."""
        if not group_ids:
            return []

        placeholders = ", ".join("?" for _ in group_ids)
        cursor = self.conn.cursor()
        cursor.execute(
            f"""
            SELECT id, group_id, description, category, amount, expense_date,
                   payer_id, split_mode, created_at, updated_at
            FROM expenses
            WHERE group_id IN ({placeholders})
            ORDER BY expense_date DESC, id DESC
            """,
            group_ids,
        )
        rows = cursor.fetchall()
        splits_by_expense = self._get_splits([row["id"] for row in rows])
        return [self._row_to_expense(row, splits_by_expense[row["id"]]) for row in rows]

    def _get_splits(self, expense_ids: list[int]) -> dict[int, list[Split]]:
        splits: dict[int, list[Split]] = {expense_id: [] for expense_id in expense_ids}
        if not expense_ids:
            return splits

        placeholders = ", ".join("?" for _ in expense_ids)
        cursor = self.conn.cursor()
        cursor.execute(
            f"""
            SELECT expense_id, participant_id, amount
            FROM expense_splits
            WHERE expense_id IN ({placeholders})
            ORDER BY expense_id, position
            """,
            expense_ids,
        )
        for row in cursor.fetchall():
            splits[row["expense_id"]].append(
                Split(participant_id=row["participant_id"], amount=Decimal(row["amount"]))
            )
        return splits

    def delete_expense(self, expense_id: int):
        """Delete an expense and its splits."""
        self.conn.execute("DELETE FROM expenses WHERE id = ?", (expense_id,))
        self.conn.commit()

    def delete_expenses(self, expense_ids: list[int]):
        """Delete several expenses in one transaction."""
        self.conn.executemany(
            "DELETE FROM expenses WHERE id = ?", [(expense_id,) for expense_id in expense_ids]
        )
        self.conn.commit()

    @staticmethod
    def _row_to_expense(row: sqlite3.Row, splits: list[Split]) -> Expense:
        return Expense(
            id=row["id"],
            group_id=row["group_id"],
            description=row["description"],
            category=row["category"],
            amount=Decimal(row["amount"]),
            date=date.fromisoformat(row["expense_date"]),
            payer_id=row["payer_id"],
            split_mode=row["split_mode"],
            splits=splits,
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def get_expense_categories(self, group_id: int) -> list[str]:
        """Distinct categories already used in a group."""
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT DISTINCT category FROM expenses WHERE group_id = ? ORDER BY category",
            (group_id,),
        )
        return [row["category"] for row in cursor.fetchall()]

    # ========================================================================
    # Invite operations
    # ========================================================================

    def save_invite(self, invite: Invite) -> int:
        """Save an invite record."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT INTO invites (
                group_id, participant_id, email, status, token,
                invited_by_account_id, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                invite.group_id,
                invite.participant_id,
                invite.email,
                invite.status,
                invite.token,
                invite.invited_by_account_id,
                invite.created_at.isoformat(),
            ),
        )
        self.conn.commit()
        row_id = cursor.lastrowid
        if row_id is None:
            raise RuntimeError("Failed to insert invite")
        return row_id

    def get_invite_by_token(self, token: str) -> Invite | None:
        """Get an invite by its token."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT id, group_id, participant_id, email, status, token,
                   invited_by_account_id, created_at
            FROM invites
            WHERE token = ?
            """,
            (token,),
        )
        row = cursor.fetchone()
        if not row:
            return None

        return Invite(
            id=row["id"],
            group_id=row["group_id"],
            participant_id=row["participant_id"],
            email=row["email"],
            status=row["status"],
            token=row["token"],
            invited_by_account_id=row["invited_by_account_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def mark_invite_accepted(self, invite_id: int):
        """Mark an invite as accepted."""
        self.conn.execute("UPDATE invites SET status = 'accepted' WHERE id = ?", (invite_id,))
        self.conn.commit()
