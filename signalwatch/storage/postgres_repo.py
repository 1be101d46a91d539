"""Postgres repository for signals and monitoring runs.

Lightweight psycopg + SQL; every method opens its own autocommit
connection so batches for different companies can run side by side.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import psycopg
from psycopg.types.json import Jsonb

from signalwatch.ingestion.signal_types import CandidateSignal, RecentSignal, StoredSignal
from signalwatch.scoring.priority import PriorityResult


class PostgresRepo:
    def __init__(self, pg_dsn: str):
        self.pg_dsn = pg_dsn

    def get_signal_by_hash(self, fingerprint: str) -> Optional[RecentSignal]:
        with psycopg.connect(self.pg_dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT id, title, source_url FROM signals WHERE hash = %s",
                    (fingerprint,),
                )
                row = cur.fetchone()
        if not row:
            return None
        return RecentSignal(id=int(row[0]), title=row[1], source_url=row[2])

    def get_recent_signals_for_company(self, company_id: int, since: datetime) -> List[RecentSignal]:
        """Newest first, the order near-duplicate checks walk the window in."""
        with psycopg.connect(self.pg_dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT id, title, source_url
                    FROM signals
                    WHERE company_id = %s AND created_at >= %s
                    ORDER BY created_at DESC, id DESC
                    """,
                    (company_id, since),
                )
                rows = cur.fetchall()
        return [RecentSignal(id=int(r[0]), title=r[1], source_url=r[2]) for r in rows]

    def insert_signal(
        self,
        candidate: CandidateSignal,
        *,
        fingerprint: str,
        novelty_score: int,
        priority: PriorityResult,
        recommended_format: str,
    ) -> Optional[int]:
        """Insert one signal; None when the fingerprint already exists."""
        with psycopg.connect(self.pg_dsn, autocommit=True) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO signals (
                      hash, company_id, type, title, summary, source_url, source_name, citations,
                      published_at, gathered_at, needs_date_review, sentiment, relevance_score,
                      novelty_score, priority_score, priority_label, priority_reason,
                      recommended_format, themes, entities
                    )
                    VALUES (
                      %(hash)s, %(company_id)s, %(type)s, %(title)s, %(summary)s, %(source_url)s, %(source_name)s, %(citations)s,
                      %(published_at)s, %(gathered_at)s, %(needs_date_review)s, %(sentiment)s, %(relevance_score)s,
                      %(novelty_score)s, %(priority_score)s, %(priority_label)s, %(priority_reason)s,
                      %(recommended_format)s, %(themes)s, %(entities)s
                    )
                    ON CONFLICT (hash) DO NOTHING
                    RETURNING id
                    """,
                    {
                        "hash": fingerprint,
                        "company_id": candidate.company_id,
                        "type": candidate.type or "news",
                        "title": candidate.title,
                        "summary": candidate.summary,
                        "source_url": candidate.source_url,
                        "source_name": candidate.source_name,
                        "citations": Jsonb(list(candidate.citations or [])),
                        "published_at": candidate.published_at,
                        "gathered_at": candidate.gathered_at,
                        "needs_date_review": candidate.needs_date_review,
                        "sentiment": candidate.sentiment,
                        "relevance_score": candidate.relevance_score,
                        "novelty_score": novelty_score,
                        "priority_score": priority.score,
                        "priority_label": priority.label,
                        "priority_reason": priority.reason,
                        "recommended_format": recommended_format,
                        "themes": list(candidate.themes or []),
                        "entities": Jsonb(candidate.entities) if candidate.entities is not None else None,
                    },
                )
                row = cur.fetchone()
        return int(row[0]) if row else None

    def get_signal_population(self) -> List[StoredSignal]:
        """Every signal with its company's industry (metrics/trends input)."""
        with psycopg.connect(self.pg_dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT s.id, s.company_id, s.type, s.title, s.published_at, s.created_at,
                           c.industry, s.themes, s.needs_date_review
                    FROM signals s
                    LEFT JOIN companies c ON c.id = s.company_id
                    """
                )
                rows = cur.fetchall()
        return [
            StoredSignal(
                id=int(r[0]),
                company_id=int(r[1]),
                type=r[2] or "news",
                title=r[3] or "",
                published_at=r[4],
                created_at=r[5],
                industry=r[6],
                themes=list(r[7] or []),
                needs_date_review=bool(r[8]),
            )
            for r in rows
        ]

    def get_signals_pending_entity_links(self, limit: int = 200) -> List[Tuple[int, str, Dict[str, Any]]]:
        """(signal_id, company_name, entities_json) for signals with entities but no links yet."""
        with psycopg.connect(self.pg_dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT s.id, c.name, s.entities
                    FROM signals s
                    JOIN companies c ON c.id = s.company_id
                    WHERE s.entities IS NOT NULL
                      AND NOT EXISTS (SELECT 1 FROM signal_entities se WHERE se.signal_id = s.id)
                    ORDER BY s.created_at DESC
                    LIMIT %s
                    """,
                    (int(limit),),
                )
                rows = cur.fetchall()
        return [(int(r[0]), r[1], r[2]) for r in rows]

    def record_monitor_run(self, progress) -> int:
        """Persist a finished ``MonitorProgress``; returns the run id."""
        with psycopg.connect(self.pg_dsn, autocommit=True) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO monitor_runs (
                      started_at, finished_at, companies_total, companies_processed, signals_found,
                      signals_created, duplicates_skipped, near_duplicates_skipped, status
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING id
                    """,
                    (
                        progress.started_at,
                        progress.finished_at,
                        progress.companies_total,
                        progress.companies_processed,
                        progress.signals_found,
                        progress.signals_created,
                        progress.duplicates_skipped,
                        progress.near_duplicates_skipped,
                        progress.status,
                    ),
                )
                return int(cur.fetchone()[0])
