from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

"""Fuzzy header -> field matcher.

Scores a CSV header against every candidate field and returns the best one.
Deterministic, no I/O, total over any string input.

Scoring per candidate (highest signal wins):
1. exact normalized equality -> 1.0 (short-circuit)
2. substring containment either direction -> shorter / longer
3. synonym table: exact 0.95, header contains synonym 0.85,
   synonym contains header 0.75
4. only when nothing above fired: share of the candidate's characters
   present in the header, scaled by 0.7
"""

__all__ = [
    "MatchResult",
    "match_field",
    "normalize_name",
    "DEFAULT_FIELD_PATTERNS",
    "DEFAULT_MATCH_THRESHOLD",
]

DEFAULT_MATCH_THRESHOLD = 0.4

EXACT_SCORE = 1.0
SYNONYM_EXACT_SCORE = 0.95
SYNONYM_IN_HEADER_SCORE = 0.85
HEADER_IN_SYNONYM_SCORE = 0.75
CHAR_OVERLAP_WEIGHT = 0.7

_STRIP_RE = re.compile(r"[\s_\-./\\()]+")

DEFAULT_FIELD_PATTERNS: dict[str, tuple[str, ...]] = {
    "FullName": ("name", "fullname", "full name", "customer", "client", "person", "username"),
    "Email": ("email", "e-mail", "mail", "emailaddress", "email address"),
    "Contact": (
        "phone", "mobile", "cell", "contact", "phonenumber", "phone number", "telephone", "tel",
    ),
    "Gender": ("gender", "sex"),
    "Qualification": ("qualification", "degree", "education", "diploma", "cert"),
    "SchoolOrCollegeName": ("school", "college", "university", "institution", "academy", "campus"),
    "LeadSource": ("source", "leadsource", "lead source", "origin", "channel", "found us"),
    "InterestedCourse": ("course", "program", "class", "training", "interested", "interest"),
    "Address": ("address", "location", "residence"),
    "City": ("city", "town", "municipality"),
    "Street": ("street", "road", "avenue", "lane", "st"),
    "State": ("state", "province", "region"),
    "ZipCode": ("zip", "zipcode", "postal", "postalcode", "post code", "pin"),
    "Country": ("country", "nation"),
    "Notes": ("note", "notes", "comment", "comments", "remark", "remarks", "additional"),
}


@dataclass(frozen=True)
class MatchResult:
    field: str | None
    confidence: float  # 0.0 - 1.0, best score even when field is None


def normalize_name(value: str) -> str:
    """Lowercase and drop whitespace, underscores, hyphens, periods, slashes, parentheses."""
    return _STRIP_RE.sub("", value.lower().strip())


def _containment_score(a: str, b: str) -> float:
    if a in b or b in a:
        shorter, longer = sorted((len(a), len(b)))
        return shorter / longer
    return 0.0


def _synonym_score(header: str, synonyms: Sequence[str]) -> float:
    best = 0.0
    for synonym in synonyms:
        pattern = normalize_name(synonym)
        if not pattern:
            continue
        if header == pattern:
            return SYNONYM_EXACT_SCORE
        if pattern in header:
            best = max(best, SYNONYM_IN_HEADER_SCORE)
        elif header in pattern:
            best = max(best, HEADER_IN_SYNONYM_SCORE)
    return best


def _char_overlap_score(header: str, field: str) -> float:
    common = sum(1 for ch in field if ch in header)
    return common / len(field) * CHAR_OVERLAP_WEIGHT


def _score_candidate(
    header: str, field: str, patterns: Mapping[str, Sequence[str]]
) -> float:
    normalized_field = normalize_name(field)
    if not normalized_field:
        return 0.0
    if header == normalized_field:
        return EXACT_SCORE

    score = max(
        _containment_score(header, normalized_field),
        _synonym_score(header, patterns.get(field, ())),
    )
    if score > 0.0:
        return score
    return _char_overlap_score(header, normalized_field)


def match_field(
    header: str,
    candidate_fields: Sequence[str],
    *,
    patterns: Mapping[str, Sequence[str]] | None = None,
    threshold: float = DEFAULT_MATCH_THRESHOLD,
) -> MatchResult:
    """Pick the candidate field that best matches ``header``.

    Parameters
    ----------
    header: raw CSV header
    candidate_fields: catalog fields, in priority order (ties -> first)
    patterns: field -> synonym list; defaults to DEFAULT_FIELD_PATTERNS
    threshold: best score must exceed this for a field to be returned

    Returns
    -------
    MatchResult with ``field=None`` when nothing clears the threshold.
    """
    if patterns is None:
        patterns = DEFAULT_FIELD_PATTERNS
    normalized_header = normalize_name(header or "")
    if not normalized_header or not candidate_fields:
        return MatchResult(field=None, confidence=0.0)

    best_field: str | None = None
    best_score = 0.0
    for field in candidate_fields:
        score = _score_candidate(normalized_header, field, patterns)
        if score == EXACT_SCORE:
            return MatchResult(field=field, confidence=EXACT_SCORE)
        # 同点は先勝ち (strict >)
        if best_field is None or score > best_score:
            best_field, best_score = field, score

    if best_score > threshold:
        return MatchResult(field=best_field, confidence=best_score)
    return MatchResult(field=None, confidence=best_score)
