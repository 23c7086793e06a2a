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
SQLite implementation of the episode repository.

Design principles:
- Raw SQL with parameter binding (no ORM)
- Thread-safe via connection-per-operation
- The change stamp is advanced in the same transaction as the write it records
"""

import sqlite3
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from structlog import get_logger

from ..models.episode import AudioReference, Episode, EpisodeStatus
from .episode_repository import EpisodeRepository

logger = get_logger(__name__)

EPISODE_COLUMNS = """
    id, created_at, updated_at, title, description, topic, duration, upload_date,
    status, is_public, publish_date, publish_time, listens, cover_image,
    audio_url, audio_provider_id, audio_file_name, audio_size, audio_duration, audio_format
"""

AUDIO_COLUMNS = (
    "audio_url",
    "audio_provider_id",
    "audio_file_name",
    "audio_size",
    "audio_duration",
    "audio_format",
)


def _now_ms() -> int:
    return int(time.time() * 1000)


class SqliteEpisodeRepository(EpisodeRepository):
    """
    SQLite-based episode repository.

    Thread-safety: Uses context manager for per-operation connections.
    """

    def __init__(self, db_path: str):
        """
        Initialize SQLite repository.

        Args:
            db_path: Path to SQLite database file (e.g., "./data/vial.db")
        """
        self.db_path = Path(db_path)
        self._ensure_database_exists()
        logger.info(f"Initialized SQLite episode repository: {self.db_path}")

    def _ensure_database_exists(self):
        """Create database and schema if not exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._get_connection() as conn:
            conn.execute("PRAGMA journal_mode = WAL")
            conn.execute("PRAGMA synchronous = NORMAL")
            self._create_schema(conn)

            logger.debug("Episode schema initialized")

    def _create_schema(self, conn: sqlite3.Connection):
        conn.executescript(
            """
            -- ========================================================================
            -- EPISODES TABLE
            -- ========================================================================
            CREATE TABLE IF NOT EXISTS episodes (
                id TEXT PRIMARY KEY NOT NULL,
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP NOT NULL,
                title TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                topic TEXT NOT NULL,
                duration TEXT NOT NULL,
                upload_date TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'draft',
                is_public INTEGER NOT NULL DEFAULT 0,
                publish_date TEXT NULL,
                publish_time TEXT NULL,
                listens INTEGER NOT NULL DEFAULT 0,
                cover_image TEXT NULL,
                audio_url TEXT NULL,
                audio_provider_id TEXT NULL,
                audio_file_name TEXT NULL,
                audio_size INTEGER NULL,
                audio_duration REAL NULL,
                audio_format TEXT NULL,
                CHECK (length(title) >= 3),
                CHECK (status IN ('draft', 'scheduled', 'published')),
                CHECK (listens >= 0)
            );

            CREATE INDEX IF NOT EXISTS idx_episodes_status ON episodes(status);
            CREATE INDEX IF NOT EXISTS idx_episodes_upload_date ON episodes(upload_date DESC, created_at DESC);

            -- Listener feed: published AND public
            CREATE INDEX IF NOT EXISTS idx_episodes_listed
                ON episodes(upload_date DESC)
                WHERE status = 'published' AND is_public = 1;

            -- ========================================================================
            -- CHANGE STAMP (single row)
            -- ========================================================================
            CREATE TABLE IF NOT EXISTS episode_changes (
                id INTEGER PRIMARY KEY CHECK (id = 1),
                last_modified_ms INTEGER NOT NULL
            );
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

    def _touch(self, conn: sqlite3.Connection) -> None:
        """Advance the change stamp to max(previous + 1, now)."""
        conn.execute(
            """
            INSERT INTO episode_changes (id, last_modified_ms) VALUES (1, ?)
            ON CONFLICT(id) DO UPDATE SET
                last_modified_ms = MAX(episode_changes.last_modified_ms + 1, excluded.last_modified_ms)
            """,
            (_now_ms(),),
        )

    # ============================================================================
    # Queries
    # ============================================================================

    def get(self, episode_id: str) -> Optional[Episode]:
        with self._get_connection() as conn:
            cursor = conn.execute(
                f"SELECT {EPISODE_COLUMNS} FROM episodes WHERE id = ?",
                (episode_id,),
            )
            row = cursor.fetchone()
            return self._row_to_episode(row) if row else None

    def list(
        self,
        status: Optional[EpisodeStatus] = None,
        topic: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Episode]:
        clauses = []
        params: List[Any] = []

        if status:
            clauses.append("status = ?")
            params.append(EpisodeStatus(status).value)
        if topic:
            clauses.append("topic = ?")
            params.append(topic)
        if search:
            pattern = f"%{search.lower()}%"
            clauses.append("(lower(title) LIKE ? OR lower(description) LIKE ? OR lower(topic) LIKE ?)")
            params.extend([pattern, pattern, pattern])

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with self._get_connection() as conn:
            cursor = conn.execute(
                f"""
                SELECT {EPISODE_COLUMNS} FROM episodes
                {where}
                ORDER BY upload_date DESC, created_at DESC
                """,
                params,
            )
            return [self._row_to_episode(row) for row in cursor.fetchall()]

    def list_public(self, topic: Optional[str] = None) -> List[Episode]:
        params: List[Any] = []
        topic_clause = ""
        if topic:
            topic_clause = "AND topic = ?"
            params.append(topic)

        with self._get_connection() as conn:
            cursor = conn.execute(
                f"""
                SELECT {EPISODE_COLUMNS} FROM episodes
                WHERE status = 'published' AND is_public = 1 {topic_clause}
                ORDER BY upload_date DESC, created_at DESC
                """,
                params,
            )
            return [self._row_to_episode(row) for row in cursor.fetchall()]

    def find_by_status(self, status: EpisodeStatus) -> List[Episode]:
        with self._get_connection() as conn:
            cursor = conn.execute(
                f"SELECT {EPISODE_COLUMNS} FROM episodes WHERE status = ? ORDER BY created_at",
                (EpisodeStatus(status).value,),
            )
            return [self._row_to_episode(row) for row in cursor.fetchall()]

    def count_by_status(self) -> Dict[str, int]:
        counts = {status.value: 0 for status in EpisodeStatus}
        with self._get_connection() as conn:
            for row in conn.execute("SELECT status, COUNT(*) AS total FROM episodes GROUP BY status"):
                counts[row["status"]] = row["total"]
            hidden = conn.execute(
                "SELECT COUNT(*) FROM episodes WHERE status = 'published' AND is_public = 0"
            ).fetchone()[0]
        counts["hidden"] = hidden
        return counts

    def total_listens(self) -> int:
        with self._get_connection() as conn:
            return conn.execute("SELECT COALESCE(SUM(listens), 0) FROM episodes").fetchone()[0]

    def last_modified(self) -> int:
        with self._get_connection() as conn:
            row = conn.execute("SELECT last_modified_ms FROM episode_changes WHERE id = 1").fetchone()
            return row["last_modified_ms"] if row else 0

    # ============================================================================
    # Mutations
    # ============================================================================

    def save(self, episode: Episode) -> Episode:
        audio_values = self._audio_values(episode.audio)

        with self._get_connection() as conn:
            conn.execute(
                f"""
                INSERT INTO episodes ({EPISODE_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    episode.id,
                    episode.created_at.isoformat(),
                    episode.updated_at.isoformat(),
                    episode.title,
                    episode.description,
                    episode.topic,
                    episode.duration,
                    episode.upload_date,
                    episode.status.value,
                    int(episode.is_public),
                    episode.publish_date,
                    episode.publish_time,
                    episode.listens,
                    episode.cover_image,
                    *audio_values,
                ),
            )
            self._touch(conn)

            logger.debug(f"Saved episode: {episode.id}")
            return episode

    def update(self, episode_id: str, updates: Dict[str, Any]) -> bool:
        """
        Update specific episode fields.

        Side effects: updated_at and the change stamp are set here.
        """
        valid_fields = {
            "title",
            "description",
            "topic",
            "duration",
            "status",
            "is_public",
            "publish_date",
            "publish_time",
            "listens",
            "cover_image",
        }

        update_fields = {k: v for k, v in updates.items() if k in valid_fields}
        if "status" in update_fields and update_fields["status"] is not None:
            update_fields["status"] = EpisodeStatus(update_fields["status"]).value
        if "is_public" in update_fields:
            update_fields["is_public"] = int(bool(update_fields["is_public"]))
        if "audio" in updates:
            update_fields.update(zip(AUDIO_COLUMNS, self._audio_values(updates["audio"])))

        if not update_fields:
            return False

        set_clause = ", ".join(f"{field} = ?" for field in update_fields.keys())
        values = list(update_fields.values())
        now = datetime.now(timezone.utc)

        with self._get_connection() as conn:
            cursor = conn.execute(
                f"""
                UPDATE episodes
                SET {set_clause}, updated_at = ?
                WHERE id = ?
                """,
                values + [now.isoformat(), episode_id],
            )

            updated = cursor.rowcount > 0
            if updated:
                self._touch(conn)
                logger.debug(f"Updated episode {episode_id}: {list(update_fields.keys())}")
            return updated

    def increment_listens(self, episode_id: str) -> Optional[int]:
        now = datetime.now(timezone.utc)

        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE episodes
                SET listens = listens + 1, updated_at = ?
                WHERE id = ? AND status = 'published' AND is_public = 1
                """,
                (now.isoformat(), episode_id),
            )
            if cursor.rowcount == 0:
                return None

            self._touch(conn)
            return conn.execute("SELECT listens FROM episodes WHERE id = ?", (episode_id,)).fetchone()[0]

    def mark_published(self, episode_id: str) -> bool:
        now = datetime.now(timezone.utc)

        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE episodes
                SET status = 'published', is_public = 1, updated_at = ?
                WHERE id = ? AND status = 'scheduled'
                """,
                (now.isoformat(), episode_id),
            )

            published = cursor.rowcount > 0
            if published:
                self._touch(conn)
            return published

    def delete(self, episode_id: str) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM episodes WHERE id = ?", (episode_id,))

            deleted = cursor.rowcount > 0
            if deleted:
                self._touch(conn)
                logger.info(f"Deleted episode: {episode_id}")
            return deleted

    # ============================================================================
    # Row mapping
    # ============================================================================

    @staticmethod
    def _audio_values(audio: Optional[AudioReference]) -> tuple:
        if audio is None:
            return (None,) * len(AUDIO_COLUMNS)
        return (audio.url, audio.provider_id, audio.file_name, audio.size, audio.duration, audio.format)

    def _row_to_episode(self, row: sqlite3.Row) -> Episode:
        """Convert database row to Episode model."""
        audio = None
        if row["audio_url"]:
            audio = AudioReference(
                url=row["audio_url"],
                provider_id=row["audio_provider_id"] or "",
                file_name=row["audio_file_name"] or "",
                size=row["audio_size"] or 0,
                duration=row["audio_duration"],
                format=row["audio_format"],
            )

        return Episode(
            id=row["id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            title=row["title"],
            description=row["description"],
            topic=row["topic"],
            duration=row["duration"],
            upload_date=row["upload_date"],
            status=EpisodeStatus(row["status"]),
            is_public=bool(row["is_public"]),
            publish_date=row["publish_date"],
            publish_time=row["publish_time"],
            listens=row["listens"],
            cover_image=row["cover_image"],
            audio=audio,
        )
