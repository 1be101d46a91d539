"""Signal priority scoring and editorial format recommendation.

Deterministic scoring for:
- editorial priority (0-100 score, high/medium/low label)
- the recommended handling format (ignore/brief/news/analysis)

Every factor that contributes to a score is listed in ``reason`` so an editor
can reproduce the number from the inputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Optional

from signalwatch.scoring.bounds import clamp_int, round_half_up


# -----------------------------
# Type weights (v1)
# -----------------------------
TYPE_WEIGHTS: Mapping[str, int] = {
    "regulatory": 20,
    "acquisition": 20,
    "earnings": 15,
    "funding": 10,
    "executive_change": 10,
    "product_launch": 5,
    "partnership": 5,
    "press_release": 5,
    "news": 0,
    "other": 0,
    "job_posting": 0,
    "website_change": 0,
    "social_media": 0,
}

BASELINE = 50
DEFAULT_RELEVANCE = 0.5
DEFAULT_NOVELTY = 50

HIGH_THRESHOLD = 70
MEDIUM_THRESHOLD = 40


@dataclass(frozen=True)
class PriorityResult:
    score: int
    label: str
    reason: str


def priority_label(score: int) -> str:
    if score >= HIGH_THRESHOLD:
        return "high"
    if score >= MEDIUM_THRESHOLD:
        return "medium"
    return "low"


def _signed(n: int) -> str:
    return f"+{n}" if n >= 0 else str(n)


def compute_priority_score(
    *,
    signal_type: str,
    sentiment: Optional[str] = None,
    citations_count: int = 0,
    relevance_score: Optional[float] = None,
    novelty_score: Optional[int] = None,
    type_weights: Optional[Mapping[str, int]] = None,
) -> PriorityResult:
    weights = TYPE_WEIGHTS if type_weights is None else type_weights
    score = BASELINE
    factors: List[str] = []

    type_weight = int(weights.get(signal_type, 0))
    if type_weight:
        score += type_weight
        factors.append(f"type:{signal_type}({_signed(type_weight)})")

    if sentiment == "negative":
        score += 10
        factors.append("sentiment:negative(+10)")
    elif sentiment == "positive":
        score += 2
        factors.append("sentiment:positive(+2)")

    relevance = DEFAULT_RELEVANCE if relevance_score is None else max(0.0, min(1.0, float(relevance_score)))
    relevance_boost = round_half_up(relevance * 20)
    score += relevance_boost
    factors.append(f"relevance:{round_half_up(relevance * 100)}%({_signed(relevance_boost)})")

    novelty = DEFAULT_NOVELTY if novelty_score is None else novelty_score
    if novelty <= 20:
        score -= 25
        factors.append("novelty:low(-25)")
    elif novelty <= 40:
        score -= 10
        factors.append("novelty:moderate(-10)")
    elif novelty >= 80:
        score += 5
        factors.append("novelty:high(+5)")

    if citations_count >= 3:
        score += 5
        factors.append("citations:3+(+5)")
    elif citations_count <= 0:
        score -= 5
        factors.append("citations:none(-5)")

    final = clamp_int(score)
    return PriorityResult(score=final, label=priority_label(final), reason=", ".join(factors))


# -----------------------------
# Format recommendation
# -----------------------------
HIGH_IMPACT_TYPES = {"regulatory", "earnings", "acquisition", "executive_change"}


@dataclass(frozen=True)
class FormatRecommendation:
    format: str
    reason: str


def get_recommended_format(
    priority: str,
    signal_type: str,
    sentiment: Optional[str] = None,
    relevance_score: Optional[float] = None,
    novelty_score: Optional[int] = None,
) -> FormatRecommendation:
    novelty = DEFAULT_NOVELTY if novelty_score is None else novelty_score
    relevance = DEFAULT_RELEVANCE if relevance_score is None else relevance_score

    if novelty <= 20:
        return FormatRecommendation("ignore", "Low novelty score indicates repeated coverage")
    if priority == "high" and signal_type in HIGH_IMPACT_TYPES:
        return FormatRecommendation("news", f"High priority {signal_type} signal warrants full news coverage")
    if priority == "high" and sentiment == "negative":
        return FormatRecommendation("analysis", "High priority negative signal requires analysis")
    if priority == "medium" and relevance >= 0.75:
        return FormatRecommendation("brief", "Medium priority with high relevance suits brief format")
    return FormatRecommendation("brief", "Standard signal suitable for brief format")
