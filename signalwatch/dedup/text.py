"""Title normalization and token-set similarity."""

from __future__ import annotations

import re
from typing import AbstractSet, Iterable, Optional, Set


STOPWORDS = {
    "the", "a", "an", "and", "or", "of", "to", "in", "for", "on", "with",
    "from", "by", "at", "as", "is", "are", "was", "were", "be", "been",
    "being", "have", "has", "had", "do", "does", "did", "will", "would",
    "could", "should", "may", "might", "must", "shall", "can", "need",
    "this", "that", "these", "those", "it", "its",
}

# Headline noise shared by unrelated press releases.
BOILERPLATE_TOKENS = {
    "inc", "llc", "ltd", "co", "corp", "corporation", "company",
    "reports", "announces", "launches", "unveils", "releases",
    "group", "holdings", "enterprises",
}


def normalize_title(title: Optional[str], *, boilerplate: Optional[Iterable[str]] = None) -> str:
    if not title:
        return ""
    drop = set(boilerplate) if boilerplate is not None else BOILERPLATE_TOKENS
    s = re.sub(r"\s+", " ", str(title).lower().strip())
    s = re.sub(r"[^\w\s-]", "", s)
    return " ".join(t for t in s.split() if t not in drop)


def tokenize_for_jaccard(
    text: Optional[str],
    *,
    stopwords: Optional[Iterable[str]] = None,
    boilerplate: Optional[Iterable[str]] = None,
) -> Set[str]:
    if not text:
        return set()
    stop = set(stopwords) if stopwords is not None else STOPWORDS
    drop = set(boilerplate) if boilerplate is not None else BOILERPLATE_TOKENS
    s = re.sub(r"[^\w\s]", " ", str(text).lower())
    return {t for t in s.split() if len(t) > 1 and t not in stop and t not in drop}


def jaccard_similarity(a: AbstractSet[str], b: AbstractSet[str]) -> float:
    """|A∩B| / |A∪B|; two empty sets are identical, one empty set matches nothing."""
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    inter = len(a & b)
    return inter / (len(a) + len(b) - inter)
