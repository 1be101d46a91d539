#!/usr/bin/env python3
"""Link stored signals to canonical entities.

Picks signals that carry an AI entity list but have no signal_entities
rows yet, upserts every mentioned entity and records the links.
"""

from __future__ import annotations

import argparse
import logging

from signalwatch.config import load_settings
from signalwatch.graph.entities import link_signal_to_entities
from signalwatch.storage.postgres_graph import PostgresGraphStore
from signalwatch.storage.postgres_repo import PostgresRepo
from signalwatch.storage.postgres_schema import ensure_postgres_schema


def main() -> int:
    settings = load_settings()
    parser = argparse.ArgumentParser(description="Link pending signals to entities")
    parser.add_argument("--pg-dsn", default=settings.pg_dsn, help="Postgres DSN")
    parser.add_argument("--limit", type=int, default=200, help="Max signals per run")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    ensure_postgres_schema(args.pg_dsn)

    repo = PostgresRepo(args.pg_dsn)
    graph = PostgresGraphStore(args.pg_dsn)

    signals = linked = errors = 0
    for signal_id, company_name, entities_json in repo.get_signals_pending_entity_links(max(1, args.limit)):
        result = link_signal_to_entities(graph, signal_id, company_name, entities_json)
        signals += 1
        linked += result.linked
        errors += result.errors

    print(f"[entities] signals={signals} links={linked} errors={errors}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
