"""SQLite snapshot store."""
from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional

from .config import CONFIG
from .schemas import Snapshot

logger = logging.getLogger(__name__)

_DB_PATH = CONFIG.resolved_database_path
_DB_PATH.parent.mkdir(parents=True, exist_ok=True)

# Snapshot collection -> table holding one JSON payload per record.
COLLECTION_TABLES: Dict[str, str] = {
    "events": "care_events",
    "growth_entries": "growth_entries",
    "milestones": "milestones",
    "words": "vocabulary_words",
}


def _ensure_column(conn: sqlite3.Connection, table: str, column: str, ddl: str) -> None:
    cursor = conn.execute(f"PRAGMA table_info({table})")
    existing = {row[1] for row in cursor.fetchall()}
    if column not in existing:
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {ddl}")


@contextmanager
def get_connection() -> Iterator[sqlite3.Connection]:
    _DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(_DB_PATH)
    try:
        yield conn
    finally:
        conn.close()


def initialize_db() -> None:
    with get_connection() as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS care_events (
                id TEXT PRIMARY KEY,
                category TEXT NOT NULL,
                timestamp TEXT NOT NULL,
                payload TEXT NOT NULL
            );
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS growth_entries (
                id TEXT PRIMARY KEY,
                source_event_id TEXT,
                date TEXT NOT NULL,
                payload TEXT NOT NULL
            );
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS milestones (
                id TEXT PRIMARY KEY,
                payload TEXT NOT NULL
            );
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS vocabulary_words (
                id TEXT PRIMARY KEY,
                payload TEXT NOT NULL
            );
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS subject_profile (
                id INTEGER PRIMARY KEY CHECK (id = 1),
                payload TEXT NOT NULL
            );
            """
        )
        for table in [*COLLECTION_TABLES.values(), "subject_profile"]:
            _ensure_column(conn, table, "saved_at", "TEXT")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_care_events_timestamp ON care_events (timestamp)")
        conn.commit()


def _dump(model: Any) -> str:
    return json.dumps(model.model_dump(mode="json"), ensure_ascii=False)


def save_snapshot(snapshot: Snapshot) -> None:
    """Replace the stored snapshot with ``snapshot`` in a single transaction."""
    saved_at = datetime.now(tz=timezone.utc).isoformat()
    with get_connection() as conn:
        with conn:
            for table in [*COLLECTION_TABLES.values(), "subject_profile"]:
                conn.execute(f"DELETE FROM {table}")
            conn.executemany(
                "INSERT INTO care_events (id, category, timestamp, payload, saved_at) VALUES (?, ?, ?, ?, ?)",
                [
                    (event.id, event.category.value, event.timestamp.isoformat(), _dump(event), saved_at)
                    for event in snapshot.events
                ],
            )
            conn.executemany(
                "INSERT INTO growth_entries (id, source_event_id, date, payload, saved_at) VALUES (?, ?, ?, ?, ?)",
                [
                    (entry.id, entry.source_event_id, entry.date.isoformat(), _dump(entry), saved_at)
                    for entry in snapshot.growth_entries
                ],
            )
            conn.executemany(
                "INSERT INTO milestones (id, payload, saved_at) VALUES (?, ?, ?)",
                [(milestone.id, _dump(milestone), saved_at) for milestone in snapshot.milestones],
            )
            conn.executemany(
                "INSERT INTO vocabulary_words (id, payload, saved_at) VALUES (?, ?, ?)",
                [(word.id, _dump(word), saved_at) for word in snapshot.words],
            )
            conn.execute(
                "INSERT INTO subject_profile (id, payload, saved_at) VALUES (1, ?, ?)",
                (_dump(snapshot.profile), saved_at),
            )
    logger.debug(
        "snapshot saved",
        extra={"events": len(snapshot.events), "growth_entries": len(snapshot.growth_entries)},
    )


def _load_payload(raw: str, table: str, record_id: Any) -> Optional[Any]:
    try:
        return json.loads(raw)
    except (TypeError, json.JSONDecodeError):
        logger.warning("skipping unreadable row", extra={"table": table, "record_id": record_id})
        return None


def load_snapshot_payload() -> Dict[str, Any]:
    """Raw snapshot dict for ``Tracker.from_snapshot``; unreadable rows are skipped."""
    payload: Dict[str, Any] = {"profile": None}
    with get_connection() as conn:
        for key, table in COLLECTION_TABLES.items():
            order = "timestamp DESC" if table == "care_events" else "rowid"
            rows = conn.execute(f"SELECT id, payload FROM {table} ORDER BY {order}").fetchall()
            records: List[Any] = []
            for record_id, raw in rows:
                data = _load_payload(raw, table, record_id)
                if data is not None:
                    records.append(data)
            payload[key] = records
        row = conn.execute("SELECT payload FROM subject_profile WHERE id = 1").fetchone()
    if row is not None:
        payload["profile"] = _load_payload(row[0], "subject_profile", 1)
    return payload
