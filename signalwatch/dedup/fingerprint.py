"""Stable content fingerprint for exact-duplicate suppression."""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from typing import Optional, Sequence

from signalwatch.dedup.text import normalize_title
from signalwatch.ingestion.url_utils import canonicalize_url


def utc_day(dt: datetime) -> str:
    """UTC calendar day (YYYY-MM-DD); naive datetimes are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).date().isoformat()


def _first_citation(citations: Optional[Sequence[str]]) -> str:
    for c in citations or ():
        canon = canonicalize_url(c)
        if canon:
            return canon
    return ""


def generate_stable_hash(
    company_id: int,
    source_url: Optional[str],
    citations: Optional[Sequence[str]],
    title: str,
    published_at: Optional[datetime],
    gathered_at: datetime,
) -> str:
    """sha256 of ``company_id|canonical url (or normalized title)|day``.

    Pure: depends only on its arguments. The day comes from published_at
    when known, else gathered_at.
    """
    key = canonicalize_url(source_url) or _first_citation(citations) or normalize_title(title)
    day = utc_day(published_at or gathered_at)
    base = f"{company_id}|{key}|{day}"
    return hashlib.sha256(base.encode("utf-8")).hexdigest()
