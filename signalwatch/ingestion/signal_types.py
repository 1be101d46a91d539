"""Shared signal data types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence


@dataclass(frozen=True)
class CandidateSignal:
    """A discovered news item for one company, not yet persisted.

    Produced by a discovery collaborator (AI search, RSS, Feedly); the
    enrichment fields (sentiment, relevance_score) come from the AI layer
    and are never computed here.
    """

    title: str
    company_id: int
    gathered_at: datetime
    type: str = "news"
    source_url: Optional[str] = None
    citations: Optional[Sequence[str]] = None
    published_at: Optional[datetime] = None
    sentiment: Optional[str] = None
    relevance_score: Optional[float] = None
    summary: Optional[str] = None
    source_name: Optional[str] = None
    themes: Sequence[str] = ()
    entities: Optional[Dict[str, Any]] = None
    needs_date_review: bool = False


@dataclass(frozen=True)
class RecentSignal:
    """Minimal view of a stored signal used as a dedup/novelty candidate."""

    id: int
    title: str
    source_url: Optional[str] = None


@dataclass(frozen=True)
class StoredSignal:
    """Persisted signal as seen by the metrics/trend jobs."""

    id: int
    company_id: int
    type: str
    title: str
    published_at: Optional[datetime]
    created_at: datetime
    industry: Optional[str] = None
    themes: List[str] = field(default_factory=list)
    needs_date_review: bool = False
