"""Language negotiation for multi-lingual fields."""
from __future__ import annotations

from collections.abc import Iterable


def basic_language_resolver(
    accept_languages: Iterable[str],
    lang: str | None,
    available: Iterable[str],
) -> str:
    """Pick the best available language.

    Preference order: the first accepted language that is available (the
    ``*`` wildcard is skipped), then the current ``lang``, then the first
    available language. Returns ``""`` when nothing is available.
    """
    candidates = [a.lower() for a in available]
    if not candidates:
        return ""

    present = set(candidates)
    for accepted in accept_languages:
        accepted = accepted.lower()
        if accepted == "*":
            continue
        if accepted in present:
            return accepted

    current = (lang or "").lower()
    if current in present:
        return current
    return candidates[0]
