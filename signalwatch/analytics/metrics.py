"""Rolling signal counts per industry/theme (daily metrics snapshot).

Windows, relative to ``now``:
- 7d:      published_at >= now - 7d
- 30d:     published_at >= now - 30d
- prev30d: now - 60d <= published_at < now - 30d

Only fresh signals count: dated, not flagged for date review, and published
within the freshness window.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from signalwatch.ingestion.signal_types import StoredSignal

logger = logging.getLogger(__name__)


DEFAULT_FRESHNESS_WINDOW_DAYS = 60
UNKNOWN_INDUSTRY = "Unknown"

SCOPE_INDUSTRY = "industry"
SCOPE_THEME = "theme"


def _utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _now(now: Optional[datetime]) -> datetime:
    return _utc(now) if now is not None else datetime.now(timezone.utc)


def filter_fresh_signals(
    signals: Iterable[StoredSignal],
    *,
    freshness_window_days: int = DEFAULT_FRESHNESS_WINDOW_DAYS,
    now: Optional[datetime] = None,
) -> List[StoredSignal]:
    cutoff = _now(now) - timedelta(days=freshness_window_days)
    out: List[StoredSignal] = []
    for s in signals:
        if s.needs_date_review:
            continue
        if s.published_at is None:
            continue
        if _utc(s.published_at) < cutoff:
            continue
        out.append(s)
    return out


@dataclass
class ScopeCounts:
    scope_type: str
    scope_id: str
    count_7d: int = 0
    count_30d: int = 0
    count_prev_30d: int = 0
    # all fresh signals in scope
    type_distribution: Dict[str, int] = field(default_factory=dict)
    theme_distribution: Dict[str, int] = field(default_factory=dict)
    # last 30 days only
    types_30d: Dict[str, int] = field(default_factory=dict)
    themes_30d: Dict[str, int] = field(default_factory=dict)

    def add(self, signal: StoredSignal, *, in_7d: bool, in_30d: bool, in_prev_30d: bool) -> None:
        if in_7d:
            self.count_7d += 1
        if in_30d:
            self.count_30d += 1
        if in_prev_30d:
            self.count_prev_30d += 1
        _bump(self.type_distribution, signal.type)
        for theme in signal.themes:
            _bump(self.theme_distribution, theme)
        if in_30d:
            _bump(self.types_30d, signal.type)
            for theme in signal.themes:
                _bump(self.themes_30d, theme)


def _bump(dist: Dict[str, int], key: str) -> None:
    dist[key] = dist.get(key, 0) + 1


def aggregate_scopes(
    signals: Iterable[StoredSignal],
    *,
    now: Optional[datetime] = None,
) -> Dict[Tuple[str, str], ScopeCounts]:
    """Accumulate window counts per (scope_type, scope_id).

    Industries come first, then themes, each in first-seen order.
    """
    ref = _now(now)
    d7 = ref - timedelta(days=7)
    d30 = ref - timedelta(days=30)
    d60 = ref - timedelta(days=60)

    industries: Dict[Tuple[str, str], ScopeCounts] = {}
    themes: Dict[Tuple[str, str], ScopeCounts] = {}
    for s in signals:
        if s.published_at is None:
            continue
        when = _utc(s.published_at)
        flags = dict(in_7d=when >= d7, in_30d=when >= d30, in_prev_30d=d60 <= when < d30)

        industry = s.industry or UNKNOWN_INDUSTRY
        key = (SCOPE_INDUSTRY, industry)
        industries.setdefault(key, ScopeCounts(SCOPE_INDUSTRY, industry)).add(s, **flags)

        for theme in dict.fromkeys(s.themes):
            key = (SCOPE_THEME, theme)
            themes.setdefault(key, ScopeCounts(SCOPE_THEME, theme)).add(s, **flags)

    return {**industries, **themes}


def delta_percent(current: int, previous: Optional[int]) -> Optional[float]:
    if not previous or previous <= 0:
        return None
    return round((current - previous) / previous * 100.0, 2)


@dataclass(frozen=True)
class MetricSnapshot:
    scope_type: str
    scope_id: str
    period: str
    current_count: int
    prev_count: Optional[int]
    delta_percent: Optional[float]
    captured_at: datetime


def build_snapshots(counts: ScopeCounts, captured_at: datetime) -> List[MetricSnapshot]:
    """A 7d snapshot (no baseline) and a 30d snapshot compared with prev30d."""
    return [
        MetricSnapshot(counts.scope_type, counts.scope_id, "7d", counts.count_7d, None, None, captured_at),
        MetricSnapshot(
            counts.scope_type,
            counts.scope_id,
            "30d",
            counts.count_30d,
            counts.count_prev_30d,
            delta_percent(counts.count_30d, counts.count_prev_30d),
            captured_at,
        ),
    ]


@dataclass(frozen=True)
class MetricsRunResult:
    scopes_processed: int
    snapshots_created: int
    industries_processed: int
    themes_processed: int


def capture_signal_metrics(
    repo,
    store,
    *,
    freshness_window_days: int = DEFAULT_FRESHNESS_WINDOW_DAYS,
    now: Optional[datetime] = None,
) -> MetricsRunResult:
    """Append two MetricSnapshot rows per industry and per theme."""
    ref = _now(now)
    population = repo.get_signal_population()
    fresh = filter_fresh_signals(population, freshness_window_days=freshness_window_days, now=ref)
    logger.info(f"[metrics] using {len(fresh)} fresh signals out of {len(population)} total")

    scopes = aggregate_scopes(fresh, now=ref)
    created = 0
    for counts in scopes.values():
        for snapshot in build_snapshots(counts, ref):
            store.create_signal_metric(snapshot)
            created += 1

    industries = sum(1 for scope_type, _ in scopes if scope_type == SCOPE_INDUSTRY)
    logger.info(f"[metrics] captured {created} snapshots for {industries} industries and {len(scopes) - industries} themes")
    return MetricsRunResult(
        scopes_processed=len(scopes),
        snapshots_created=created,
        industries_processed=industries,
        themes_processed=len(scopes) - industries,
    )
