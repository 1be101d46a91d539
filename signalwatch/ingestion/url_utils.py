"""URL canonicalization helpers for fingerprinting/dedup.

Canonical form is scheme-less: ``host/path?query``. It is only ever used for
equality comparison and hashing, never for fetching.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit


TRACKING_PARAMS = {
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
    "gclid",
    "fbclid",
    "mc_cid",
    "mc_eid",
    "ref",
    "source",
}

# re-canonicalization passes; inputs settle within two
_MAX_PASSES = 4


def _with_scheme(url: str) -> str:
    if url.startswith("http://") or url.startswith("https://"):
        return url
    if url.startswith("//"):
        return "https:" + url
    return "https://" + url


def _strip_www(host: str) -> str:
    while host.startswith("www."):
        host = host[4:]
    return host


def _trim_tail(s: str) -> str:
    return re.sub(r"[\s/]+$", "", s)


def _manual_strip(url: str) -> str:
    s = re.sub(r"^https?://", "", url).strip()
    s = re.sub(r"^(?:www\.)+", "", s)
    return _trim_tail(s)


def _canonicalize_once(normalized: str, strip: set) -> str:
    normalized = normalized.strip().lower()
    if not normalized:
        return ""
    try:
        # urlsplit keeps ";params" in the path
        p = urlsplit(_with_scheme(normalized))
        host = _strip_www((p.hostname or "").strip())
        if not host:
            return _manual_strip(normalized)

        kept = []
        for k, v in parse_qsl(p.query, keep_blank_values=True):
            if k in strip or k.startswith("utm_"):
                continue
            kept.append((k, v))
        kept.sort()
        query = urlencode(kept)

        path = _trim_tail(p.path)
        return f"{host}{path}{'?' + query if query else ''}"
    except ValueError:
        return _manual_strip(normalized)


def canonicalize_url(url: Optional[str], *, strip_params: Optional[Iterable[str]] = None) -> str:
    """Canonicalize a URL for dedup.

    - Lowercase everything, assume https:// when the scheme is missing
    - Drop scheme, ``www.``, port, fragment, trailing slashes and whitespace
    - Keep path parameters (``/story;id=1``)
    - Strip tracking query parameters (``utm_*`` always)
    - Sort remaining query params so ordering differences compare equal

    The result is re-canonicalized until stable, so
    ``canonicalize_url(canonicalize_url(u)) == canonicalize_url(u)``.
    Never raises: unparseable input falls back to a manual strip.
    """
    if not url:
        return ""
    strip = {p.lower() for p in strip_params} if strip_params is not None else TRACKING_PARAMS
    out = _canonicalize_once(str(url), strip)
    for _ in range(_MAX_PASSES):
        again = _canonicalize_once(out, strip)
        if again == out:
            break
        out = again
    return out


def host_from_url(url: Optional[str]) -> str:
    """Lowercase hostname without ``www.``; empty string if unresolvable."""
    if not url:
        return ""
    normalized = str(url).strip().lower()
    if not normalized:
        return ""
    try:
        host = urlsplit(_with_scheme(normalized)).hostname or ""
    except ValueError:
        return ""
    return _strip_www(host.strip())
