"""Environment-driven settings shared by the workers."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


DEFAULT_PG_DSN = "dbname=signalwatch user=signalwatch password=signalwatch host=localhost port=5432"


@dataclass(frozen=True)
class Settings:
    pg_dsn: str = DEFAULT_PG_DSN
    freshness_window_days: int = 60
    dedupe_lookback_days: int = 14
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    trends_mode: str = "once"

    @property
    def scheduled(self) -> bool:
        return self.trends_mode in ("scheduled", "daemon")


def _positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid {name}={raw!r}, using {default}")
        return default
    if value <= 0:
        logger.warning(f"Non-positive {name}={value}, using {default}")
        return default
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Read settings from ``env`` (default: .env merged into os.environ)."""
    if env is None:
        load_dotenv()
        env = os.environ
    return Settings(
        pg_dsn=env.get("PG_DSN") or DEFAULT_PG_DSN,
        freshness_window_days=_positive_int(env, "FRESHNESS_WINDOW_DAYS", 60),
        dedupe_lookback_days=_positive_int(env, "DEDUPE_LOOKBACK_DAYS", 14),
        openai_api_key=(env.get("OPENAI_API_KEY") or "").strip(),
        openai_model=(env.get("OPENAI_MODEL") or "gpt-4o-mini").strip(),
        trends_mode=(env.get("TRENDS_MODE") or "once").lower().strip(),
    )
