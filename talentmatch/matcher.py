"""Score a résumé against a job's comma-separated skill list.

Matching is plain substring presence in the normalized résumé text, so
"java" also matches "javascript". Scores are deterministic and the module
holds no state, so it is safe to call from many threads at once.
"""
from __future__ import annotations

import re

from talentmatch.models import MatchResult

_NON_WORD_RE = re.compile(r"[^a-z0-9\s,]")
_SPACES_RE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Lower-case, blank out punctuation (commas survive), squeeze whitespace."""
    text = _NON_WORD_RE.sub(" ", (text or "").lower())
    return _SPACES_RE.sub(" ", text).strip()


def parse_skills(skills_csv: str) -> list[str]:
    """Split a skills field into lower-cased, trimmed, non-empty tokens.

    Order is kept and duplicates are NOT removed: "React, React" counts twice.
    """
    return [s.strip() for s in (skills_csv or "").lower().split(",") if s.strip()]


def _percent(part: int, whole: int) -> int:
    # round-half-up on exact integers; round() would use banker's rounding
    return (200 * part + whole) // (2 * whole)


def match_resume_to_job(resume_text: str, skills_csv: str) -> MatchResult:
    required = parse_skills(skills_csv)
    if not required:
        return MatchResult(match_score=100)

    haystack = normalize_text(resume_text)
    matched: list[str] = []
    missing: list[str] = []
    for skill in required:
        if skill in haystack:
            matched.append(skill)
        else:
            missing.append(skill)

    return MatchResult(
        match_score=_percent(len(matched), len(required)),
        matched_skills=tuple(matched),
        missing_skills=tuple(missing),
    )
