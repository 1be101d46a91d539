#!/usr/bin/env python3
"""Admit discovered candidate signals (JSON lines) into Postgres.

Each company's candidates are fingerprinted, checked for exact and near
duplicates, scored and stored in order. SIGINT/SIGTERM request a stop
that takes effect between candidates.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys

from signalwatch.config import load_settings
from signalwatch.ingestion.jsonl import read_candidates
from signalwatch.monitoring.batch import run_monitoring
from signalwatch.monitoring.progress import StopFlag
from signalwatch.storage.postgres_repo import PostgresRepo
from signalwatch.storage.postgres_schema import ensure_postgres_schema


def main() -> int:
    settings = load_settings()
    parser = argparse.ArgumentParser(description="Admit candidate signals from a JSON lines file")
    parser.add_argument("path", nargs="?", default="-", help="JSON lines file ('-' = stdin)")
    parser.add_argument("--pg-dsn", default=settings.pg_dsn, help="Postgres DSN")
    parser.add_argument("--lookback-days", type=int, default=settings.dedupe_lookback_days, help="Near-duplicate window")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    ensure_postgres_schema(args.pg_dsn)

    if args.path == "-":
        batches = read_candidates(sys.stdin)
    else:
        with open(args.path, "r", encoding="utf-8") as f:
            batches = read_candidates(f)

    stop = StopFlag()
    signal.signal(signal.SIGINT, lambda *_: stop.request_stop())
    signal.signal(signal.SIGTERM, lambda *_: stop.request_stop())

    outcome = run_monitoring(
        PostgresRepo(args.pg_dsn),
        batches,
        stop,
        lookback_days=max(1, args.lookback_days),
    )
    p = outcome.progress
    print(
        f"[admit] status={p.status} companies={p.companies_processed}/{p.companies_total} "
        f"found={p.signals_found} created={p.signals_created} "
        f"duplicates={p.duplicates_skipped} near_duplicates={p.near_duplicates_skipped}"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
