"""Postgres schema management for signalwatch.

Schema creation is idempotent (CREATE IF NOT EXISTS), so every worker can
call ``ensure_postgres_schema`` on startup.
"""

from __future__ import annotations

from typing import Iterable, Optional

import psycopg


SCHEMA_STATEMENTS: list[str] = [
    # Monitored companies
    """
    CREATE TABLE IF NOT EXISTS companies (
      id BIGSERIAL PRIMARY KEY,
      name TEXT NOT NULL,
      industry TEXT,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """,
    # Signals (hash is the fingerprint; unique index is the cross-process dedupe backstop)
    """
    CREATE TABLE IF NOT EXISTS signals (
      id BIGSERIAL PRIMARY KEY,
      hash TEXT NOT NULL UNIQUE,
      company_id BIGINT NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
      type TEXT NOT NULL DEFAULT 'news',
      title TEXT NOT NULL,
      summary TEXT,
      source_url TEXT,
      source_name TEXT,
      citations JSONB,
      published_at TIMESTAMPTZ,
      gathered_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      needs_date_review BOOLEAN NOT NULL DEFAULT FALSE,
      sentiment TEXT,
      relevance_score REAL,
      novelty_score INTEGER,
      priority_score INTEGER,
      priority_label TEXT,
      priority_reason TEXT,
      recommended_format TEXT,
      themes TEXT[] NOT NULL DEFAULT '{}',
      entities JSONB,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_signals_company_created ON signals (company_id, created_at DESC);",
    "CREATE INDEX IF NOT EXISTS idx_signals_published_at ON signals (published_at DESC);",
    # Entity graph
    """
    CREATE TABLE IF NOT EXISTS entities (
      id BIGSERIAL PRIMARY KEY,
      name TEXT NOT NULL,
      type TEXT NOT NULL,
      canonical_key TEXT NOT NULL UNIQUE,
      description TEXT,
      metadata JSONB,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS entity_aliases (
      id BIGSERIAL PRIMARY KEY,
      entity_id BIGINT NOT NULL REFERENCES entities(id) ON DELETE CASCADE,
      alias TEXT NOT NULL,
      alias_key TEXT NOT NULL UNIQUE,
      source TEXT,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS signal_entities (
      id BIGSERIAL PRIMARY KEY,
      signal_id BIGINT NOT NULL REFERENCES signals(id) ON DELETE CASCADE,
      entity_id BIGINT NOT NULL REFERENCES entities(id) ON DELETE CASCADE,
      role TEXT NOT NULL,
      confidence INTEGER,
      surface TEXT,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      UNIQUE (signal_id, entity_id, role)
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_signal_entities_entity ON signal_entities (entity_id);",
    # Metric snapshots (append-only time series)
    """
    CREATE TABLE IF NOT EXISTS signal_metrics (
      id BIGSERIAL PRIMARY KEY,
      scope_type TEXT NOT NULL, -- industry|theme
      scope_id TEXT NOT NULL,
      period TEXT NOT NULL, -- 7d|30d
      current_count INTEGER NOT NULL,
      prev_count INTEGER,
      delta_percent REAL,
      captured_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_signal_metrics_scope ON signal_metrics (scope_type, scope_id, captured_at DESC);",
    # Trends (append-only, one row per scope per run)
    """
    CREATE TABLE IF NOT EXISTS trends (
      id BIGSERIAL PRIMARY KEY,
      scope_type TEXT NOT NULL,
      scope_id TEXT NOT NULL,
      themes TEXT[] NOT NULL DEFAULT '{}',
      signal_types TEXT[] NOT NULL DEFAULT '{}',
      time_window TEXT NOT NULL DEFAULT '30d',
      direction TEXT NOT NULL, -- up|down|flat|emerging
      magnitude REAL,
      confidence INTEGER NOT NULL,
      explanation TEXT NOT NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_trends_created_at ON trends (created_at DESC);",
    # Monitoring runs
    """
    CREATE TABLE IF NOT EXISTS monitor_runs (
      id BIGSERIAL PRIMARY KEY,
      started_at TIMESTAMPTZ NOT NULL,
      finished_at TIMESTAMPTZ,
      companies_total INTEGER NOT NULL DEFAULT 0,
      companies_processed INTEGER NOT NULL DEFAULT 0,
      signals_found INTEGER NOT NULL DEFAULT 0,
      signals_created INTEGER NOT NULL DEFAULT 0,
      duplicates_skipped INTEGER NOT NULL DEFAULT 0,
      near_duplicates_skipped INTEGER NOT NULL DEFAULT 0,
      status TEXT NOT NULL -- completed|stopped
    );
    """,
]


def ensure_postgres_schema(pg_dsn: str, *, statements: Optional[Iterable[str]] = None) -> None:
    """Ensure Postgres schema exists."""
    stmts = list(statements) if statements is not None else SCHEMA_STATEMENTS
    with psycopg.connect(pg_dsn, autocommit=True) as conn:
        with conn.cursor() as cur:
            for s in stmts:
                cur.execute(s)
