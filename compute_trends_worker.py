#!/usr/bin/env python3
"""Capture signal metrics and generate industry/theme trends into Postgres.

TRENDS_MODE=once (default) runs both jobs once. TRENDS_MODE=scheduled
captures metrics daily and generates trends weekly.
"""

from __future__ import annotations

import logging
import time

import schedule

from signalwatch.analytics.explanations import OpenAITrendExplainer
from signalwatch.analytics.metrics import capture_signal_metrics
from signalwatch.analytics.trends import generate_trends
from signalwatch.config import Settings, load_settings
from signalwatch.storage.postgres_repo import PostgresRepo
from signalwatch.storage.postgres_schema import ensure_postgres_schema
from signalwatch.storage.postgres_trends import PostgresTrendStore

logger = logging.getLogger(__name__)


def run_metrics(settings: Settings) -> None:
    result = capture_signal_metrics(
        PostgresRepo(settings.pg_dsn),
        PostgresTrendStore(settings.pg_dsn),
        freshness_window_days=settings.freshness_window_days,
    )
    print(f"[metrics] scopes={result.scopes_processed} snapshots={result.snapshots_created}")


def run_trends(settings: Settings) -> None:
    explainer = None
    if settings.openai_api_key:
        explainer = OpenAITrendExplainer(settings.openai_api_key, model=settings.openai_model)
    else:
        logger.info("OPENAI_API_KEY not set; trend explanations use the templated fallback")
    result = generate_trends(
        PostgresRepo(settings.pg_dsn),
        PostgresTrendStore(settings.pg_dsn),
        explainer=explainer,
        freshness_window_days=settings.freshness_window_days,
    )
    print(f"[trends] generated={result.trends_generated} errors={result.errors} skipped={len(result.skipped)}")


def run_scheduled(settings: Settings) -> None:
    schedule.every().day.at("02:00").do(run_metrics, settings)
    schedule.every().monday.at("03:00").do(run_trends, settings)
    while True:
        schedule.run_pending()
        time.sleep(30)


def main() -> int:
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    settings = load_settings()
    ensure_postgres_schema(settings.pg_dsn)

    if settings.scheduled:
        run_scheduled(settings)
        return 0

    run_metrics(settings)
    run_trends(settings)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
