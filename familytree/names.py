from __future__ import annotations

import re

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_name(raw: str | None) -> str:
    """Matching form of a personal name: lowercase, single spaces, trimmed.

    This is the only equality rule used when linking members by name. There is
    no phonetic or typo-tolerant folding and nothing locale-aware beyond case.
    """

    if raw is None:
        return ""
    return _WHITESPACE_RE.sub(" ", str(raw).lower()).strip()


def names_match(a: str | None, b: str | None) -> bool:
    na = normalize_name(a)
    return bool(na) and na == normalize_name(b)


def _clean_ref(raw: str | None) -> str | None:
    """Trim a free-text name reference; blank means absent."""

    if raw is None:
        return None
    s = str(raw).strip()
    return s or None


def _initials(name: str | None) -> str:
    # Avatar fallback: "ravi kumar" -> "RK", at most two letters.
    tokens = [t for t in _WHITESPACE_RE.split((name or "").strip()) if t]
    return "".join(t[0] for t in tokens)[:2].upper()
