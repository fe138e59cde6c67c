"""Name normalization and string similarity for catalog entities.

Two layers of matching exist in the archive:

1. **Exact-key dedupe** during extraction — names that differ only in case
   or surrounding whitespace collapse to one entity (:func:`normalize_entity_key`).
2. **Fuzzy similarity** during curation — :func:`name_similarity` scores
   near-duplicates ("Thrasher" vs "Trasher") for a human to merge.  The
   edit distance comes from rapidfuzz's Levenshtein implementation.
"""

from __future__ import annotations

from rapidfuzz.distance import Levenshtein

# Containment matches start at this score and scale toward 1.0 with the
# length ratio of the shorter name to the longer.
_CONTAINMENT_BASE = 0.8
_CONTAINMENT_WEIGHT = 0.2


def normalize_entity_key(name: str) -> str:
    """Return the dedupe key for an entity name (trimmed, lower-cased)."""
    return name.strip().lower()


def normalize_trick_name(name: str) -> str:
    """Tricks are catalogued in lower case: "Kickflip" and "kickflip" are one trick."""
    return name.strip().lower()


def clean_optional(value: str | None) -> str | None:
    """Trim *value*; empty strings and the literal ``"null"`` become ``None``.

    LLM output frequently echoes the prompt's ``"City or null"`` placeholders
    as strings rather than JSON nulls.
    """
    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned or cleaned.lower() in {"null", "none", "n/a", "unknown"}:
        return None
    return cleaned


def name_similarity(a: str, b: str) -> float:
    """Score how alike two entity names are, in ``[0, 1]``.

    Both names are lower-cased and trimmed.  Identical names score 1.0.
    When one contains the other the score is ``0.8 + 0.2 * shorter/longer``
    so "Hawk" vs "Tony Hawk" stays a candidate.  Otherwise the score is the
    normalized Levenshtein similarity ``(len(longer) - distance) / len(longer)``.

    Parameters
    ----------
    a, b:
        The two names to compare.

    Returns
    -------
    float
        ``1.0`` for identical names.  An empty name is contained in any
        other, so it scores ``0.8`` against a non-empty one.
    """
    s1 = a.lower().strip()
    s2 = b.lower().strip()

    if s1 == s2:
        return 1.0

    longer, shorter = (s1, s2) if len(s1) >= len(s2) else (s2, s1)
    if shorter in longer:
        return _CONTAINMENT_BASE + (len(shorter) / len(longer)) * _CONTAINMENT_WEIGHT

    distance = Levenshtein.distance(longer, shorter)
    return (len(longer) - distance) / len(longer)
