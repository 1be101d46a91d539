"""Scope trend detection (weekly trends job).

We compare the last 30 days with the 30 days before:
- fewer than 10 signals in the window: no trend claim at all
- prior period under 25 signals: "emerging" (no percentage, confidence 60),
  so a low baseline never reads as e.g. +1100%
- otherwise delta% = (current - prev) / prev * 100; |delta| < 25 is noise,
  else up/down with confidence min(95, 50 + |delta| / 2)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Mapping, Optional

from signalwatch.analytics.explanations import Explainer, TrendContext, explain_trend
from signalwatch.analytics.metrics import (
    DEFAULT_FRESHNESS_WINDOW_DAYS,
    ScopeCounts,
    aggregate_scopes,
    filter_fresh_signals,
)
from signalwatch.scoring.bounds import clamp_int

logger = logging.getLogger(__name__)


TREND_FLOOR = 10
BASELINE_GUARDRAIL = 25
SIGNIFICANCE_PERCENT = 25.0
EMERGING_CONFIDENCE = 60
MAX_CONFIDENCE = 95
TIME_WINDOW = "30d"
TOP_N = 3

STATUS_BELOW_FLOOR = "below_floor"
STATUS_NOT_SIGNIFICANT = "not_significant"
STATUS_EMERGING = "emerging"
STATUS_DIRECTIONAL = "directional"


@dataclass(frozen=True)
class TrendDecision:
    status: str
    direction: Optional[str] = None
    magnitude: Optional[float] = None
    confidence: Optional[int] = None

    @property
    def emits_trend(self) -> bool:
        return self.status in (STATUS_EMERGING, STATUS_DIRECTIONAL)


def evaluate_scope(
    count_30d: int,
    count_prev_30d: int,
    *,
    floor: int = TREND_FLOOR,
    guardrail: int = BASELINE_GUARDRAIL,
    significance: float = SIGNIFICANCE_PERCENT,
) -> TrendDecision:
    if count_30d < floor:
        return TrendDecision(STATUS_BELOW_FLOOR)
    if count_prev_30d < guardrail:
        return TrendDecision(STATUS_EMERGING, "emerging", None, EMERGING_CONFIDENCE)

    delta = (count_30d - count_prev_30d) / count_prev_30d * 100.0
    if abs(delta) < significance:
        return TrendDecision(STATUS_NOT_SIGNIFICANT)
    direction = "up" if delta > 0 else "down"
    confidence = clamp_int(min(MAX_CONFIDENCE, 50 + abs(delta) / 2), 0, 100)
    return TrendDecision(STATUS_DIRECTIONAL, direction, round(delta, 2), confidence)


def top_keys(distribution: Mapping[str, int], n: int = TOP_N) -> List[str]:
    """Most frequent keys; ties keep first-seen order."""
    return [k for k, _ in sorted(distribution.items(), key=lambda kv: -kv[1])[:n]]


@dataclass(frozen=True)
class Trend:
    scope_type: str
    scope_id: str
    themes: List[str]
    signal_types: List[str]
    time_window: str
    direction: str
    magnitude: Optional[float]
    confidence: int
    explanation: str
    created_at: Optional[datetime] = None


def build_trend(counts: ScopeCounts, decision: TrendDecision, explainer: Optional[Explainer], created_at: datetime) -> Trend:
    themes = top_keys(counts.themes_30d)
    signal_types = top_keys(counts.types_30d)
    ctx = TrendContext(
        scope_type=counts.scope_type,
        scope_id=counts.scope_id,
        themes=themes,
        signal_types=signal_types,
        direction=decision.direction or "flat",
        magnitude=decision.magnitude,
        signal_count=counts.count_30d,
        baseline_count=counts.count_prev_30d,
        time_window=TIME_WINDOW,
    )
    return Trend(
        scope_type=counts.scope_type,
        scope_id=counts.scope_id,
        themes=themes,
        signal_types=signal_types,
        time_window=TIME_WINDOW,
        direction=ctx.direction,
        magnitude=decision.magnitude,
        confidence=decision.confidence if decision.confidence is not None else EMERGING_CONFIDENCE,
        explanation=explain_trend(explainer, ctx),
        created_at=created_at,
    )


@dataclass
class TrendRunResult:
    trends_generated: int = 0
    errors: int = 0
    # "scope_type:scope_id" -> below_floor | not_significant
    skipped: Dict[str, str] = field(default_factory=dict)
    trends: List[Trend] = field(default_factory=list)
    stopped: bool = False


def generate_trends(
    repo,
    store,
    *,
    explainer: Optional[Explainer] = None,
    freshness_window_days: int = DEFAULT_FRESHNESS_WINDOW_DAYS,
    now: Optional[datetime] = None,
    should_stop: Optional[Callable[[], bool]] = None,
) -> TrendRunResult:
    """Persist one Trend per qualifying scope; a failing scope is logged and skipped."""
    ref = now if now is not None else datetime.now(timezone.utc)
    population = repo.get_signal_population()
    fresh = filter_fresh_signals(population, freshness_window_days=freshness_window_days, now=ref)
    logger.info(f"[trends] using {len(fresh)} fresh signals out of {len(population)} total")

    result = TrendRunResult()
    for (scope_type, scope_id), counts in aggregate_scopes(fresh, now=ref).items():
        if should_stop is not None and should_stop():
            logger.info("[trends] stop requested, ending run early")
            result.stopped = True
            break
        label = f"{scope_type}:{scope_id}"
        try:
            decision = evaluate_scope(counts.count_30d, counts.count_prev_30d)
            if not decision.emits_trend:
                result.skipped[label] = decision.status
                continue
            trend = build_trend(counts, decision, explainer, ref)
            store.create_trend(trend)
            result.trends.append(trend)
            result.trends_generated += 1
            if trend.direction == "emerging":
                logger.info(f"[trends] emerging trend for {label}: {counts.count_30d} signals")
            else:
                logger.info(f"[trends] {trend.direction} trend for {label}: {abs(trend.magnitude or 0):.0f}%")
        except Exception as e:
            logger.error(f"[trends] error generating trend for {label}: {e}")
            result.errors += 1

    logger.info(f"[trends] generated {result.trends_generated} trends ({result.errors} errors)")
    return result
