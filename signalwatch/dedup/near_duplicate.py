"""Near-duplicate detection and novelty scoring against a recent window.

Both compare title token sets with Jaccard similarity. The detector gates
insertion; novelty only feeds priority scoring.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from signalwatch.dedup.text import jaccard_similarity, normalize_title, tokenize_for_jaccard
from signalwatch.ingestion.signal_types import RecentSignal
from signalwatch.ingestion.url_utils import host_from_url
from signalwatch.scoring.bounds import clamp, clamp_int


# Tunable; informally tuned, not derived.
NEAR_DUPLICATE_THRESHOLD = 0.85
SAME_HOST_THRESHOLD = 0.75

METHOD_EXACT_HASH = "exact_hash"
METHOD_NEAR_JACCARD = "near_jaccard"
METHOD_NONE = "none"


@dataclass(frozen=True)
class DuplicateVerdict:
    is_near_duplicate: bool
    matched_id: Optional[int] = None
    similarity: Optional[float] = None
    method: str = METHOD_NONE


NOT_DUPLICATE = DuplicateVerdict(is_near_duplicate=False)

CandidateWindow = Tuple[RecentSignal, ...]


def extend_window(window: Sequence[RecentSignal], accepted: RecentSignal) -> CandidateWindow:
    """Return a new window with ``accepted`` appended; the input is untouched."""
    return tuple(window) + (accepted,)


def check_near_duplicate(
    title: str,
    source_url: Optional[str],
    candidates: Iterable[RecentSignal],
    *,
    threshold: float = NEAR_DUPLICATE_THRESHOLD,
    same_host_threshold: float = SAME_HOST_THRESHOLD,
) -> DuplicateVerdict:
    """First matching candidate (in list order) wins.

    1. identical non-empty normalized titles
    2. token Jaccard >= threshold
    3. same publisher host and Jaccard >= same_host_threshold
    """
    norm = normalize_title(title)
    tokens = tokenize_for_jaccard(title)
    host = host_from_url(source_url)

    for c in candidates:
        if norm and norm == normalize_title(c.title):
            return DuplicateVerdict(True, c.id, 1.0, METHOD_NEAR_JACCARD)

        sim = clamp(jaccard_similarity(tokens, tokenize_for_jaccard(c.title)), 0.0, 1.0)
        if sim >= threshold:
            return DuplicateVerdict(True, c.id, sim, METHOD_NEAR_JACCARD)

        c_host = host_from_url(c.source_url)
        if host and c_host and host == c_host and sim >= same_host_threshold:
            return DuplicateVerdict(True, c.id, sim, METHOD_NEAR_JACCARD)

    return NOT_DUPLICATE


def max_similarity(title: str, candidates: Iterable[RecentSignal]) -> float:
    tokens = tokenize_for_jaccard(title)
    best = 0.0
    for c in candidates:
        best = max(best, jaccard_similarity(tokens, tokenize_for_jaccard(c.title)))
    return clamp(best, 0.0, 1.0)


def compute_novelty_score(title: str, candidates: Sequence[RecentSignal]) -> int:
    """0-100; 100 when there is nothing recent to compare against."""
    if not candidates:
        return 100
    return clamp_int((1.0 - max_similarity(title, candidates)) * 100)
