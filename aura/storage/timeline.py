"""
Aura Timeline — append-only SQLite store of context snapshots and
capacity forecasts, kept for later analytics.

Writes are advisory: the engine logs and ignores any failure here.
"""

from __future__ import annotations

import hashlib
import json
import sqlite3
import time
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from ..inference.models import ContextSnapshot


@dataclass
class SnapshotEntry:
    id: Optional[int]
    timestamp: float
    session_id: str
    pattern_key: str
    overall_optimality: float
    context_quality_score: float
    snapshot_json: str
    context_hash: str


@dataclass
class ForecastEntry:
    id: Optional[int]
    timestamp: float
    session_id: str
    model_version: str
    predicted_context: str
    predicted_optimality: float
    composite_score: float
    prediction_horizon: int = 60      # minutes ahead


def snapshot_hash(snapshot: ContextSnapshot) -> str:
    payload = json.dumps(asdict(snapshot), sort_keys=True)
    return hashlib.sha256(payload.encode()).hexdigest()


class AuraTimeline:
    """SQLite-backed store; one short-lived connection per call."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._init_db()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def save_context_snapshot(self, snapshot: ContextSnapshot, session_id: str) -> Optional[int]:
        """Insert a snapshot; an identical snapshot already stored is skipped (returns None)."""
        with self._conn() as conn:
            cur = conn.execute(
                """
                INSERT OR IGNORE INTO context_snapshots
                    (timestamp, session_id, pattern_key, overall_optimality,
                     context_quality_score, snapshot_json, context_hash)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    snapshot.timestamp,
                    session_id,
                    snapshot.pattern_key,
                    snapshot.overall_optimality,
                    snapshot.context_quality_score,
                    json.dumps(asdict(snapshot)),
                    snapshot_hash(snapshot),
                ),
            )
            return cur.lastrowid if cur.rowcount else None

    def save_cognitive_forecast(self, entry: ForecastEntry) -> int:
        with self._conn() as conn:
            cur = conn.execute(
                """
                INSERT INTO cognitive_forecasts
                    (timestamp, session_id, model_version, predicted_context,
                     predicted_optimality, composite_score, prediction_horizon)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.timestamp,
                    entry.session_id,
                    entry.model_version,
                    entry.predicted_context,
                    entry.predicted_optimality,
                    entry.composite_score,
                    entry.prediction_horizon,
                ),
            )
            return cur.lastrowid  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def query_snapshots(
        self,
        since: Optional[float] = None,
        until: Optional[float] = None,
        limit: int = 200,
    ) -> List[SnapshotEntry]:
        where, params = _time_range(since, until)
        params.append(limit)
        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT id, timestamp, session_id, pattern_key, overall_optimality, "
                f"context_quality_score, snapshot_json, context_hash "
                f"FROM context_snapshots {where} ORDER BY timestamp DESC LIMIT ?",
                params,
            ).fetchall()
        return [SnapshotEntry(*row) for row in rows]

    def query_forecasts(
        self,
        since: Optional[float] = None,
        until: Optional[float] = None,
        limit: int = 200,
    ) -> List[ForecastEntry]:
        where, params = _time_range(since, until)
        params.append(limit)
        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT id, timestamp, session_id, model_version, predicted_context, "
                f"predicted_optimality, composite_score, prediction_horizon "
                f"FROM cognitive_forecasts {where} ORDER BY timestamp DESC LIMIT ?",
                params,
            ).fetchall()
        return [ForecastEntry(*row) for row in rows]

    def context_distribution(
        self,
        since: Optional[float] = None,
        until: Optional[float] = None,
    ) -> Dict[str, float]:
        """Fraction of stored forecasts per predicted context (sums to 1.0)."""
        where, params = _time_range(since, until)
        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT predicted_context, COUNT(*) FROM cognitive_forecasts {where} "
                f"GROUP BY predicted_context",
                params,
            ).fetchall()
        total = sum(count for _, count in rows)
        if total == 0:
            return {}
        return {ctx: round(count / total, 4) for ctx, count in rows}

    def recent_scores(self, window_s: int = 3600) -> List[float]:
        entries = self.query_forecasts(since=time.time() - window_s, limit=1000)
        return [e.composite_score for e in reversed(entries)]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS context_snapshots (
                    id                    INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp             REAL    NOT NULL,
                    session_id            TEXT    NOT NULL,
                    pattern_key           TEXT    NOT NULL,
                    overall_optimality    REAL    NOT NULL DEFAULT 0.5,
                    context_quality_score REAL    NOT NULL DEFAULT 0.5,
                    snapshot_json         TEXT    NOT NULL DEFAULT '{}',
                    context_hash          TEXT    NOT NULL UNIQUE
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS cognitive_forecasts (
                    id                   INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp            REAL    NOT NULL,
                    session_id           TEXT    NOT NULL,
                    model_version        TEXT    NOT NULL,
                    predicted_context    TEXT    NOT NULL,
                    predicted_optimality REAL    NOT NULL,
                    composite_score      REAL    NOT NULL,
                    prediction_horizon   INTEGER NOT NULL DEFAULT 60
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_snap_ts ON context_snapshots(timestamp)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_fc_ts ON cognitive_forecasts(timestamp)")

    @contextmanager
    def _conn(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()


def _time_range(since: Optional[float], until: Optional[float]):
    clauses = []
    params: list = []
    if since is not None:
        clauses.append("timestamp >= ?")
        params.append(since)
    if until is not None:
        clauses.append("timestamp <= ?")
        params.append(until)
    where = ("WHERE " + " AND ".join(clauses)) if clauses else ""
    return where, params
