"""SQLite-backed daily readiness trend.

Keeps at most one score per calendar day and only the most recent
``retention_days`` days. Writers are serialised; the last write for a
day wins.
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Callable, List, Optional, Union

from .models import TrendEntry

logger = logging.getLogger(__name__)


class TrendStore:
    """Date-keyed readiness history."""

    def __init__(
        self,
        db_path: Union[str, Path] = "readiness_trend.db",
        retention_days: int = 7,
        today: Callable[[], date] = date.today,
    ):
        self.db_path = Path(db_path)
        self.retention_days = retention_days
        self._today = today
        self._write_lock = threading.Lock()
        self._init_db()

    def _init_db(self):
        """Initialize the trend table."""
        with self._get_connection() as conn:
            conn.executescript("""
                -- One readiness score per local calendar day (YYYY-MM-DD)
                CREATE TABLE IF NOT EXISTS readiness_trend (
                    day TEXT PRIMARY KEY,
                    score INTEGER NOT NULL
                );
            """)

    @contextmanager
    def _get_connection(self):
        """Get database connection with context manager."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def record_today(self, score: int) -> None:
        """Upsert today's score, then prune to the retention window."""
        self.record(score, self._today())

    def record(self, score: int, day: Optional[date] = None) -> None:
        """Upsert the score for ``day`` (default today), then prune."""
        day = day or self._today()
        with self._write_lock, self._get_connection() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO readiness_trend (day, score) VALUES (?, ?)",
                (day.isoformat(), int(score)),
            )
            conn.execute(
                """
                DELETE FROM readiness_trend
                WHERE day NOT IN (
                    SELECT day FROM readiness_trend ORDER BY day DESC LIMIT ?
                )
                """,
                (self.retention_days,),
            )
        logger.info(f"Recorded readiness {score} for {day.isoformat()}")

    def entries(self) -> List[TrendEntry]:
        """Stored entries in ascending date order."""
        with self._get_connection() as conn:
            rows = conn.execute(
                """
                SELECT day, score FROM (
                    SELECT day, score FROM readiness_trend ORDER BY day DESC LIMIT ?
                ) ORDER BY day ASC
                """,
                (self.retention_days,),
            ).fetchall()
        return [TrendEntry(day=date.fromisoformat(row["day"]), score=row["score"]) for row in rows]

    def load_trend(self) -> List[int]:
        """Up to ``retention_days`` real scores, oldest first.

        Never padded; see ``insights.display_trend`` for chart-ready points.
        """
        return [entry.score for entry in self.entries()]

    def get(self, day: date) -> Optional[int]:
        """Stored score for a day, if any."""
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT score FROM readiness_trend WHERE day = ?", (day.isoformat(),)
            ).fetchone()
        return row["score"] if row else None
