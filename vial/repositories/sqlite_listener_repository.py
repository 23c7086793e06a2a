# Copyright 2025 thestill.me
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
SQLite implementation of listener repository.

Design principles:
- Raw SQL with parameter binding (no ORM)
- Follows the same patterns as SqliteEpisodeRepository
- Thread-safe via connection-per-operation
"""

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from structlog import get_logger

from ..models.listener import Listener, ListenerStatus
from ..utils.exceptions import EmailAlreadyRegisteredError
from .listener_repository import ListenerRepository

logger = get_logger(__name__)

LISTENER_COLUMNS = """
    id, name, email, password_hash, username, bio, favorite_topic, avatar_id, avatar_url,
    notifications, newsletter, episodes_completed, total_time, status,
    join_date, last_login, login_count, created_at, updated_at
"""


class SqliteListenerRepository(ListenerRepository):
    """
    SQLite-based listener repository.

    Thread-safety: Uses context manager for per-operation connections.
    """

    def __init__(self, db_path: str):
        """
        Initialize SQLite listener repository.

        Args:
            db_path: Path to SQLite database file (e.g., "./data/vial.db")
        """
        self.db_path = Path(db_path)
        self._ensure_database_exists()
        logger.info(f"Initialized SQLite listener repository: {self.db_path}")

    def _ensure_database_exists(self):
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._get_connection() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS listeners (
                    id TEXT PRIMARY KEY NOT NULL,
                    name TEXT NOT NULL,
                    email TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL,
                    username TEXT NULL,
                    bio TEXT NOT NULL DEFAULT '',
                    favorite_topic TEXT NOT NULL DEFAULT '',
                    avatar_id INTEGER NOT NULL DEFAULT 1,
                    avatar_url TEXT NULL,
                    notifications INTEGER NOT NULL DEFAULT 1,
                    newsletter INTEGER NOT NULL DEFAULT 1,
                    episodes_completed INTEGER NOT NULL DEFAULT 0,
                    total_time INTEGER NOT NULL DEFAULT 0,
                    status TEXT NOT NULL DEFAULT 'active',
                    join_date TIMESTAMP NOT NULL,
                    last_login TIMESTAMP NULL,
                    login_count INTEGER NOT NULL DEFAULT 0,
                    created_at TIMESTAMP NOT NULL,
                    updated_at TIMESTAMP NOT NULL,
                    CHECK (length(email) > 0),
                    CHECK (status IN ('active', 'inactive'))
                );

                CREATE INDEX IF NOT EXISTS idx_listeners_status ON listeners(status);
                CREATE INDEX IF NOT EXISTS idx_listeners_created_at ON listeners(created_at DESC);
                """
            )

    @contextmanager
    def _get_connection(self) -> sqlite3.Connection:
        """
        Get database connection with proper setup.

        Features:
        - Row factory for dict-like access
        - Automatic commit/rollback
        """
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row

        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get_by_id(self, listener_id: str) -> Optional[Listener]:
        """Get listener by internal UUID (primary key)."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                f"SELECT {LISTENER_COLUMNS} FROM listeners WHERE id = ?",
                (listener_id,),
            )

            row = cursor.fetchone()
            return self._row_to_listener(row) if row else None

    def get_by_email(self, email: str) -> Optional[Listener]:
        """Get listener by email address."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                f"SELECT {LISTENER_COLUMNS} FROM listeners WHERE email = ?",
                (email.strip().lower(),),
            )

            row = cursor.fetchone()
            return self._row_to_listener(row) if row else None

    def list(self, status: Optional[ListenerStatus] = None, search: Optional[str] = None) -> List[Listener]:
        clauses = []
        params: List[Any] = []

        if status:
            clauses.append("status = ?")
            params.append(ListenerStatus(status).value)
        if search:
            pattern = f"%{search.lower()}%"
            clauses.append("(lower(name) LIKE ? OR email LIKE ? OR lower(COALESCE(username, '')) LIKE ?)")
            params.extend([pattern, pattern, pattern])

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with self._get_connection() as conn:
            cursor = conn.execute(
                f"SELECT {LISTENER_COLUMNS} FROM listeners {where} ORDER BY created_at DESC",
                params,
            )
            return [self._row_to_listener(row) for row in cursor.fetchall()]

    def count(self, status: Optional[ListenerStatus] = None) -> int:
        with self._get_connection() as conn:
            if status:
                cursor = conn.execute(
                    "SELECT COUNT(*) FROM listeners WHERE status = ?",
                    (ListenerStatus(status).value,),
                )
            else:
                cursor = conn.execute("SELECT COUNT(*) FROM listeners")
            return cursor.fetchone()[0]

    def create(self, listener: Listener) -> Listener:
        try:
            with self._get_connection() as conn:
                conn.execute(
                    f"""
                    INSERT INTO listeners ({LISTENER_COLUMNS})
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        listener.id,
                        listener.name,
                        listener.email,
                        listener.password_hash,
                        listener.username,
                        listener.bio,
                        listener.favorite_topic,
                        listener.avatar_id,
                        listener.avatar_url,
                        int(listener.notifications),
                        int(listener.newsletter),
                        listener.episodes_completed,
                        listener.total_time,
                        listener.status.value,
                        listener.join_date.isoformat(),
                        listener.last_login.isoformat() if listener.last_login else None,
                        listener.login_count,
                        listener.created_at.isoformat(),
                        listener.updated_at.isoformat(),
                    ),
                )
        except sqlite3.IntegrityError as e:
            if "listeners.email" in str(e):
                raise EmailAlreadyRegisteredError("Email already registered", email=listener.email) from e
            raise

        logger.debug(f"Created listener: {listener.email}")
        return listener

    def update(self, listener_id: str, updates: Dict[str, Any]) -> bool:
        valid_fields = {
            "name",
            "username",
            "bio",
            "favorite_topic",
            "avatar_id",
            "avatar_url",
            "notifications",
            "newsletter",
            "episodes_completed",
            "total_time",
            "status",
        }

        update_fields = {k: v for k, v in updates.items() if k in valid_fields}
        if not update_fields:
            return False

        for flag in ("notifications", "newsletter"):
            if flag in update_fields:
                update_fields[flag] = int(bool(update_fields[flag]))
        if "status" in update_fields:
            update_fields["status"] = ListenerStatus(update_fields["status"]).value

        set_clause = ", ".join(f"{field} = ?" for field in update_fields.keys())
        now = datetime.now(timezone.utc)

        with self._get_connection() as conn:
            cursor = conn.execute(
                f"UPDATE listeners SET {set_clause}, updated_at = ? WHERE id = ?",
                list(update_fields.values()) + [now.isoformat(), listener_id],
            )

            updated = cursor.rowcount > 0
            if updated:
                logger.debug(f"Updated listener {listener_id}: {list(update_fields.keys())}")
            return updated

    def record_login(self, listener_id: str) -> bool:
        """Update last_login and login_count for a listener."""
        now = datetime.now(timezone.utc)

        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE listeners
                SET last_login = ?, login_count = login_count + 1, updated_at = ?
                WHERE id = ?
                """,
                (now.isoformat(), now.isoformat(), listener_id),
            )

            updated = cursor.rowcount > 0
            if updated:
                logger.debug(f"Recorded login for listener {listener_id}")
            return updated

    def delete(self, listener_id: str) -> bool:
        """Delete listener by ID."""
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM listeners WHERE id = ?", (listener_id,))

            deleted = cursor.rowcount > 0
            if deleted:
                logger.info(f"Deleted listener: {listener_id}")
            return deleted

    def _row_to_listener(self, row: sqlite3.Row) -> Listener:
        """Convert database row to Listener model."""
        return Listener(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            password_hash=row["password_hash"],
            username=row["username"],
            bio=row["bio"],
            favorite_topic=row["favorite_topic"],
            avatar_id=row["avatar_id"],
            avatar_url=row["avatar_url"],
            notifications=bool(row["notifications"]),
            newsletter=bool(row["newsletter"]),
            episodes_completed=row["episodes_completed"],
            total_time=row["total_time"],
            status=ListenerStatus(row["status"]),
            join_date=datetime.fromisoformat(row["join_date"]),
            last_login=datetime.fromisoformat(row["last_login"]) if row["last_login"] else None,
            login_count=row["login_count"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
