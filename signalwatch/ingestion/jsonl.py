"""Parse discovered candidate signals from JSON lines.

One object per line, e.g.::

    {"company_id": 42, "title": "...", "source_url": "...", "published_at": "2024-05-01T10:00:00Z",
     "type": "funding", "sentiment": "positive", "relevance_score": 0.8, "citations": ["..."]}

An unparseable ``published_at`` is dropped and the signal is flagged for
date review instead of guessing a date.
"""

from __future__ import annotations

import json
import logging
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from signalwatch.ingestion.signal_types import CandidateSignal

logger = logging.getLogger(__name__)

SENTIMENTS = {"positive", "negative", "neutral"}


def parse_datetime(value: Any) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    try:
        dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if isinstance(v, str) and v.strip()]


def _float_or_none(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def candidate_from_dict(data: Dict[str, Any], *, now: Optional[datetime] = None) -> CandidateSignal:
    """Build a CandidateSignal; raises ValueError when title or company_id is missing."""
    title = str(data.get("title") or "").strip()
    if not title:
        raise ValueError("candidate has no title")
    try:
        company_id = int(data["company_id"])
    except (KeyError, TypeError, ValueError):
        raise ValueError(f"candidate {title!r} has no valid company_id")

    raw_published = data.get("published_at")
    published_at = parse_datetime(raw_published)
    needs_review = bool(data.get("needs_date_review")) or (raw_published not in (None, "") and published_at is None)

    sentiment = data.get("sentiment")
    if sentiment not in SENTIMENTS:
        sentiment = None

    entities = data.get("entities")
    return CandidateSignal(
        title=title,
        company_id=company_id,
        gathered_at=parse_datetime(data.get("gathered_at")) or now or datetime.now(timezone.utc),
        type=str(data.get("type") or "news").strip().lower(),
        source_url=(data.get("source_url") or None),
        citations=_str_list(data.get("citations")),
        published_at=published_at,
        sentiment=sentiment,
        relevance_score=_float_or_none(data.get("relevance_score")),
        summary=data.get("summary"),
        source_name=data.get("source_name"),
        themes=tuple(_str_list(data.get("themes"))),
        entities=entities if isinstance(entities, dict) else None,
        needs_date_review=needs_review,
    )


def read_candidates(lines: Iterable[str], *, now: Optional[datetime] = None) -> List[Tuple[int, List[CandidateSignal]]]:
    """Group candidates by company, keeping first-seen company and line order.

    Blank lines are ignored; malformed lines are logged and skipped.
    """
    grouped: "OrderedDict[int, List[CandidateSignal]]" = OrderedDict()
    for lineno, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            data = json.loads(line)
            if not isinstance(data, dict):
                raise ValueError("expected a JSON object")
            candidate = candidate_from_dict(data, now=now)
        except ValueError as e:
            logger.warning(f"Skipping line {lineno}: {e}")
            continue
        grouped.setdefault(candidate.company_id, []).append(candidate)
    return list(grouped.items())
