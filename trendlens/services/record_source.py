"""
Trend record sources.

The analyzer only needs a read-only query surface:

    fetch_records(platform, window) -> List[TrendRecord]

An empty window yields an empty list, never an error.

Implementations:
- InMemoryRecordSource: a fixed list of records (tests, demos)
- SQLiteRecordSource: `trend_data` table in a SQLite file, thread-safe writes
"""

import json
import logging
import os
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Iterable, List, Optional, Protocol

from trendlens.models.schemas import Platform, TrendRecord
from trendlens.models.time_window import TimeWindow, WindowSpan

logger = logging.getLogger(__name__)


class TrendRecordSource(Protocol):
    """Read-only access to trend records bucketed by window."""

    def fetch_records(self, platform: Optional[Platform], window: TimeWindow) -> List[TrendRecord]:
        ...


def fetch_span(
    source: TrendRecordSource,
    platform: Optional[Platform],
    span: WindowSpan
) -> List[TrendRecord]:
    """Records of every window in a span, oldest window first."""
    records: List[TrendRecord] = []
    for window in span.windows:
        records.extend(source.fetch_records(platform, window))
    return records


class InMemoryRecordSource:
    """Serves records from a list held in memory."""

    def __init__(self, records: Iterable[TrendRecord] = ()):
        self._records: List[TrendRecord] = list(records)

    def add_records(self, records: Iterable[TrendRecord]) -> int:
        added = list(records)
        self._records.extend(added)
        return len(added)

    def fetch_records(self, platform: Optional[Platform], window: TimeWindow) -> List[TrendRecord]:
        return [
            record for record in self._records
            if (platform is None or record.platform == platform) and window.matches(record)
        ]

    def count(self) -> int:
        return len(self._records)


class SQLiteRecordSource:
    """
    Trend records stored in SQLite.

    Features:
    - Indexed lookups by week and month bucket
    - Optional platform filter
    - Thread-safe inserts
    """

    def __init__(self, db_path: str):
        self._db_path = db_path
        self._lock = threading.Lock()

        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        self._init_db()
        logger.info(f"SQLiteRecordSource initialized: {db_path}")

    @contextmanager
    def _get_connection(self):
        """Database connection context manager."""
        conn = sqlite3.connect(self._db_path, timeout=30.0)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _init_db(self):
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS trend_data (
                    id TEXT PRIMARY KEY,
                    platform TEXT NOT NULL,
                    category TEXT,
                    title TEXT DEFAULT '',
                    hashtags TEXT NOT NULL DEFAULT '[]',
                    views INTEGER DEFAULT 0,
                    likes INTEGER DEFAULT 0,
                    comments INTEGER DEFAULT 0,
                    timestamp TEXT NOT NULL,
                    week_number INTEGER NOT NULL,
                    month_number INTEGER NOT NULL,
                    year INTEGER NOT NULL
                )
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_week_number
                ON trend_data(week_number, timestamp)
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_month
                ON trend_data(year, month_number)
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_platform
                ON trend_data(platform)
            """)
            conn.commit()

    def add_records(self, records: Iterable[TrendRecord]) -> int:
        """Insert or replace records; returns how many were written."""
        rows = [
            (
                r.id, r.platform.value, r.category, r.title, json.dumps(r.hashtags),
                r.views, r.likes, r.comments, r.timestamp.isoformat(),
                r.week_number, r.month_number, r.year,
            )
            for r in records
        ]
        with self._lock:
            with self._get_connection() as conn:
                conn.executemany("""
                    INSERT OR REPLACE INTO trend_data (
                        id, platform, category, title, hashtags, views, likes, comments,
                        timestamp, week_number, month_number, year
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, rows)
                conn.commit()
        logger.info(f"Stored {len(rows)} trend records")
        return len(rows)

    def fetch_records(self, platform: Optional[Platform], window: TimeWindow) -> List[TrendRecord]:
        if window.kind == "week":
            # ISO weeks straddle calendar years, so the stored year is not filtered on
            query = "SELECT * FROM trend_data WHERE week_number = ?"
            params: List[object] = [window.number]
        else:
            query = "SELECT * FROM trend_data WHERE year = ? AND month_number = ?"
            params = [window.year, window.number]
        query += " AND substr(timestamp, 1, 10) BETWEEN ? AND ?"
        params.extend([window.start_date.isoformat(), window.end_date.isoformat()])
        if platform is not None:
            query += " AND platform = ?"
            params.append(platform.value)
        query += " ORDER BY views DESC, id"

        with self._get_connection() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_record(row) for row in rows]

    def count(self) -> int:
        with self._get_connection() as conn:
            return conn.execute("SELECT COUNT(*) FROM trend_data").fetchone()[0]

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> TrendRecord:
        return TrendRecord(
            id=row["id"],
            platform=row["platform"],
            category=row["category"],
            title=row["title"] or "",
            hashtags=json.loads(row["hashtags"] or "[]"),
            views=row["views"],
            likes=row["likes"],
            comments=row["comments"],
            timestamp=datetime.fromisoformat(row["timestamp"]),
            week_number=row["week_number"],
            month_number=row["month_number"],
            year=row["year"],
        )
