"""Request-level operations: jobs, résumé uploads, matching, ranking, AI drafts.

Each function serves one request against the document store and raises a
``TalentMatchError`` subclass when the request cannot be served.
"""
from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone
from pathlib import Path, PurePath
from typing import Sequence

from talentmatch.config import Settings, ensure_dirs
from talentmatch.errors import InvalidRequest, JobNotFound, PayloadTooLarge, ResumeNotFound
from talentmatch.extractor import extract_text
from talentmatch.gateway import ContentGateway
from talentmatch.log import get_logger
from talentmatch.matcher import match_resume_to_job
from talentmatch.models import (
    ROLES,
    Candidate,
    GenerationContext,
    JobPosting,
    MatchResult,
    RankedApplicant,
    Recommendations,
    ResumeRecord,
    UserProfile,
)
from talentmatch.ranker import EligibilityCheck, is_job_seeker, rank_candidates
from talentmatch.store import JOBS, RESUMES, USERS, DocumentStore

log = get_logger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ── Jobs ─────────────────────────────────────────────────────────────────


def create_job(
    store: DocumentStore,
    *,
    title: str,
    recruiter_id: str,
    company: str = "",
    description: str = "",
    skills: str | None = None,
) -> JobPosting:
    if not title or not recruiter_id:
        raise InvalidRequest(user_message="Missing required job fields.")
    job = JobPosting(
        id="",
        title=title,
        company=company or "",
        description=description or "",
        skills=skills or "",
        recruiter_id=recruiter_id,
        posted_on=_now(),
    )
    job.id = store.add(JOBS, job.to_dict())
    log.info("Job posted: %s (%s) by %s", job.title, job.id, recruiter_id)
    return job


def get_job(store: DocumentStore, job_id: str) -> JobPosting:
    data = store.get(JOBS, job_id)
    if data is None:
        raise JobNotFound(f"No job with id {job_id!r}")
    return JobPosting.from_dict(job_id, data)


def list_jobs(store: DocumentStore) -> list[JobPosting]:
    return [JobPosting.from_dict(k, v) for k, v in store.query(JOBS)]


def list_recruiter_jobs(store: DocumentStore, recruiter_id: str) -> list[JobPosting]:
    docs = store.query(JOBS, lambda d: d.get("recruiterId") == recruiter_id)
    return [JobPosting.from_dict(k, v) for k, v in docs]


def delete_job(store: DocumentStore, job_id: str) -> bool:
    removed = store.delete(JOBS, job_id)
    log.info("Job %s %s", job_id, "deleted" if removed else "was already gone")
    return removed


# ── Users ────────────────────────────────────────────────────────────────


def register_user(store: DocumentStore, user_id: str, email: str, role: str) -> UserProfile:
    if not user_id or not email:
        raise InvalidRequest(user_message="User ID and email are required.")
    if role not in ROLES:
        raise InvalidRequest(f"Unknown role {role!r}", user_message=f"Role must be one of: {', '.join(ROLES)}.")
    user = UserProfile(user_id=user_id, email=email, role=role)
    store.set(USERS, user_id, user.to_dict())
    return user


def get_user(store: DocumentStore, user_id: str) -> UserProfile | None:
    data = store.get(USERS, user_id)
    return UserProfile.from_dict(user_id, data) if data is not None else None


# ── Résumés ──────────────────────────────────────────────────────────────


def _artifact_path(settings: Settings, user_id: str, filename: str) -> Path:
    extension = PurePath(filename).suffix
    # millisecond stamp plus a short random tag; same-ms uploads must not collide
    return settings.upload_dir / f"{user_id}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}{extension}"


def upload_resume(
    store: DocumentStore,
    settings: Settings,
    *,
    user_id: str,
    filename: str,
    content: bytes,
    media_type: str,
) -> ResumeRecord:
    """Save the upload, extract its text, and replace the user's résumé.

    The saved file is removed again if anything fails before the record is
    written, so rejected uploads leave nothing behind.
    """
    if not user_id or content is None:
        raise InvalidRequest(user_message="User ID or file is missing.")
    if len(content) > settings.max_upload_bytes:
        raise PayloadTooLarge(f"{len(content)} bytes exceeds {settings.max_upload_bytes}")

    ensure_dirs(settings)
    path = _artifact_path(settings, user_id, filename)
    try:
        path.write_bytes(content)
        text = extract_text(content, media_type)
        record = ResumeRecord(
            user_id=user_id,
            resume_text=text,
            uploaded_at=_now(),
            file_path=str(path),
        )
        store.set(RESUMES, user_id, record.to_dict(), merge=True)
    except Exception:
        log.error("Error processing resume upload for %s", user_id, exc_info=True)
        path.unlink(missing_ok=True)
        raise

    log.info("Resume stored for %s (%d chars, %s)", user_id, len(text), path.name)
    return record


def get_resume(store: DocumentStore, user_id: str) -> ResumeRecord | None:
    data = store.get(RESUMES, user_id)
    if data is None or not data.get("resumeText"):
        return None
    return ResumeRecord.from_dict(user_id, data)


def resume_file(store: DocumentStore, user_id: str) -> Path:
    """Path of the candidate's most recently uploaded résumé file."""
    data = store.get(RESUMES, user_id)
    if data is None:
        raise ResumeNotFound(f"No resume metadata for {user_id!r}", user_message="Resume metadata not found.")
    file_path = data.get("filePath")
    if not file_path or not Path(file_path).exists():
        raise ResumeNotFound(f"Resume file missing for {user_id!r}", user_message="File not found on server.")
    return Path(file_path)


# ── Matching and ranking ─────────────────────────────────────────────────


def score_match(store: DocumentStore, job_id: str, user_id: str) -> MatchResult:
    job = get_job(store, job_id)
    resume = get_resume(store, user_id)
    if resume is None:
        raise ResumeNotFound(f"No resume text for {user_id!r}")
    return match_resume_to_job(resume.resume_text, job.skills)


def load_candidates(store: DocumentStore) -> list[Candidate]:
    """Join every stored résumé with its user record; orphans are skipped."""
    users = {k: UserProfile.from_dict(k, v) for k, v in store.query(USERS)}
    candidates: list[Candidate] = []
    for user_id, data in store.query(RESUMES):
        user = users.get(user_id)
        if user is None:
            continue
        candidates.append(
            Candidate(
                candidate_id=user_id,
                resume_text=data.get("resumeText") or "",
                email=user.email,
                role=user.role,
            )
        )
    return candidates


def rank_applicants(
    store: DocumentStore,
    job_id: str,
    *,
    is_eligible: EligibilityCheck = is_job_seeker,
    max_workers: int = 1,
) -> list[RankedApplicant]:
    job = get_job(store, job_id)
    return rank_candidates(
        job.skills,
        load_candidates(store),
        is_eligible=is_eligible,
        max_workers=max_workers,
    )


# ── AI drafts ────────────────────────────────────────────────────────────


def _resume_text(store: DocumentStore, user_id: str) -> str:
    if not user_id:
        raise InvalidRequest(user_message="User ID is required.")
    resume = get_resume(store, user_id)
    return resume.resume_text if resume else ""


def generate_cover_letter(
    store: DocumentStore,
    gateway: ContentGateway,
    user_id: str,
    *,
    job_title: str,
    company: str = "",
    job_description: str = "",
) -> str:
    context = GenerationContext(
        resume_text=_resume_text(store, user_id),
        job_title=job_title,
        company=company,
        job_description=job_description,
    )
    return gateway.cover_letter(context)


def generate_interview_questions(
    store: DocumentStore,
    gateway: ContentGateway,
    user_id: str,
    *,
    job_title: str,
    job_description: str = "",
) -> str:
    context = GenerationContext(
        resume_text=_resume_text(store, user_id),
        job_title=job_title,
        job_description=job_description,
    )
    return gateway.interview_questions(context)


def generate_job_recommendations(
    store: DocumentStore,
    gateway: ContentGateway,
    user_id: str,
    candidate_jobs: Sequence[JobPosting],
) -> Recommendations:
    if not user_id or not candidate_jobs:
        raise InvalidRequest(user_message="User ID and available jobs are required.")
    return gateway.recommend_jobs(_resume_text(store, user_id), candidate_jobs)
