"""Rank job-seeking candidates for one job by skill match score."""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable

from talentmatch.log import get_logger
from talentmatch.matcher import match_resume_to_job
from talentmatch.models import JOB_SEEKER, Candidate, MatchResult, RankedApplicant

log = get_logger(__name__)

EligibilityCheck = Callable[[Candidate], bool]


def is_job_seeker(candidate: Candidate) -> bool:
    """Default eligibility: a stored résumé and the job-seeker role."""
    return bool(candidate.resume_text) and candidate.role == JOB_SEEKER


def rank_candidates(
    skills_csv: str,
    candidates: Iterable[Candidate],
    *,
    is_eligible: EligibilityCheck = is_job_seeker,
    max_workers: int = 1,
) -> list[RankedApplicant]:
    """Score every eligible candidate and order them best first.

    Ineligible candidates are dropped silently. Equal scores keep their input
    order, and the parallel path returns exactly what the sequential one does.
    """
    everyone = list(candidates)
    eligible = [c for c in everyone if is_eligible(c)]

    def _score(candidate: Candidate) -> MatchResult:
        return match_resume_to_job(candidate.resume_text, skills_csv)

    if max_workers > 1 and len(eligible) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            results = list(pool.map(_score, eligible))
    else:
        results = [_score(c) for c in eligible]

    ranked = [
        RankedApplicant(
            candidate_id=c.candidate_id,
            email=c.email,
            match_score=r.match_score,
            matched_skills=r.matched_skills,
        )
        for c, r in zip(eligible, results)
    ]
    # sorted() is stable, so ties keep input order
    ranked = sorted(ranked, key=lambda a: -a.match_score)
    log.info("Ranked %d candidates → %d eligible", len(everyone), len(ranked))
    return ranked
