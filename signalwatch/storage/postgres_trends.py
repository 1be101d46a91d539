"""Postgres-backed metric snapshots and trends (both append-only)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import psycopg

from signalwatch.analytics.metrics import MetricSnapshot
from signalwatch.analytics.trends import Trend


class PostgresTrendStore:
    def __init__(self, pg_dsn: str):
        self.pg_dsn = pg_dsn

    def create_signal_metric(self, snapshot: MetricSnapshot) -> int:
        with psycopg.connect(self.pg_dsn, autocommit=True) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO signal_metrics (
                      scope_type, scope_id, period, current_count, prev_count, delta_percent, captured_at
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s)
                    RETURNING id
                    """,
                    (
                        snapshot.scope_type,
                        snapshot.scope_id,
                        snapshot.period,
                        snapshot.current_count,
                        snapshot.prev_count,
                        snapshot.delta_percent,
                        snapshot.captured_at,
                    ),
                )
                return int(cur.fetchone()[0])

    def create_trend(self, trend: Trend) -> int:
        with psycopg.connect(self.pg_dsn, autocommit=True) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO trends (
                      scope_type, scope_id, themes, signal_types, time_window, direction,
                      magnitude, confidence, explanation, created_at
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, COALESCE(%s, now()))
                    RETURNING id
                    """,
                    (
                        trend.scope_type,
                        trend.scope_id,
                        list(trend.themes),
                        list(trend.signal_types),
                        trend.time_window,
                        trend.direction,
                        trend.magnitude,
                        trend.confidence,
                        trend.explanation,
                        trend.created_at,
                    ),
                )
                return int(cur.fetchone()[0])

    def get_recent_trends(self, *, limit: int = 20, scope_type: Optional[str] = None) -> List[Dict[str, Any]]:
        limit = max(1, min(int(limit), 200))
        where = ["1=1"]
        params: List[Any] = []
        if scope_type:
            where.append("scope_type = %s")
            params.append(scope_type)
        params.append(limit)
        with psycopg.connect(self.pg_dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    SELECT id, scope_type, scope_id, themes, signal_types, time_window, direction,
                           magnitude, confidence, explanation, created_at
                    FROM trends
                    WHERE {" AND ".join(where)}
                    ORDER BY created_at DESC, id DESC
                    LIMIT %s
                    """,
                    params,
                )
                rows = cur.fetchall()
        out: List[Dict[str, Any]] = []
        for (tid, st, sid, themes, types, window, direction, magnitude, confidence, explanation, created_at) in rows:
            dt = created_at.astimezone(timezone.utc) if isinstance(created_at, datetime) else None
            out.append(
                {
                    "id": int(tid),
                    "scope_type": st,
                    "scope_id": sid,
                    "themes": list(themes or []),
                    "signal_types": list(types or []),
                    "time_window": window,
                    "direction": direction,
                    "magnitude": float(magnitude) if magnitude is not None else None,
                    "confidence": int(confidence),
                    "explanation": explanation,
                    "created_at": dt.isoformat().replace("+00:00", "Z") if dt else None,
                }
            )
        return out
