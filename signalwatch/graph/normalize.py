"""Entity name normalization into stable graph keys."""

from __future__ import annotations

import re
from typing import Iterable, Optional


COMPANY_SUFFIXES = [
    "inc",
    "incorporated",
    "llc",
    "ltd",
    "limited",
    "co",
    "corp",
    "corporation",
    "company",
    "companies",
    "group",
    "holdings",
    "holding",
    "plc",
    "gmbh",
    "ag",
    "sa",
    "nv",
    "bv",
    "pty",
    "pte",
]


def normalize_key(s: Optional[str]) -> str:
    if not s:
        return ""
    s = re.sub(r"[^\w\s]", "", str(s).lower().strip())
    return re.sub(r"\s+", " ", s).strip()


def normalize_company_suffixes(name: Optional[str], *, suffixes: Optional[Iterable[str]] = None) -> str:
    """Strip trailing legal-form suffixes: ``Acme Inc.``, ``Acme, Inc``, ``Acme (Inc)``."""
    if not name:
        return ""
    s = str(name).lower().strip()
    for suffix in suffixes if suffixes is not None else COMPANY_SUFFIXES:
        sx = re.escape(suffix.lower())
        for pattern in (rf"\s+{sx}\.?$", rf"\s*,\s*{sx}\.?$", rf"\s+\({sx}\.?\)$"):
            s = re.sub(pattern, "", s)
    return s.strip()


def canonical_key(entity_type: Optional[str], name: Optional[str]) -> str:
    """``{type}:{normalized name}``; empty when type or name is missing."""
    if not entity_type or not name:
        return ""
    if entity_type == "company":
        name = normalize_company_suffixes(name)
    return f"{entity_type}:{normalize_key(name)}"
