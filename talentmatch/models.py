"""Data models for jobs, résumés, users and match results."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

JOB_SEEKER = "Job Seeker"
RECRUITER = "Recruiter"
ROLES: tuple[str, ...] = (JOB_SEEKER, RECRUITER)


@dataclass
class JobPosting:
    id: str
    title: str
    company: str = ""
    description: str = ""
    skills: str = ""
    recruiter_id: str = ""
    posted_on: str = ""

    @classmethod
    def from_dict(cls, doc_id: str, data: dict[str, Any]) -> "JobPosting":
        return cls(
            id=doc_id,
            title=data.get("title", ""),
            company=data.get("company") or "",
            description=data.get("description") or "",
            skills=data.get("skills") or "",
            recruiter_id=data.get("recruiterId", ""),
            posted_on=data.get("postedOn", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "company": self.company,
            "description": self.description,
            "skills": self.skills,
            "recruiterId": self.recruiter_id,
            "postedOn": self.posted_on,
        }


@dataclass
class ResumeRecord:
    user_id: str
    resume_text: str
    uploaded_at: str = ""
    file_path: str = ""

    @classmethod
    def from_dict(cls, doc_id: str, data: dict[str, Any]) -> "ResumeRecord":
        return cls(
            user_id=data.get("userId") or doc_id,
            resume_text=data.get("resumeText") or "",
            uploaded_at=data.get("uploadedAt", ""),
            file_path=data.get("filePath") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "resumeText": self.resume_text,
            "uploadedAt": self.uploaded_at,
            "filePath": self.file_path,
        }


@dataclass
class UserProfile:
    user_id: str
    email: str
    role: str

    @classmethod
    def from_dict(cls, doc_id: str, data: dict[str, Any]) -> "UserProfile":
        return cls(user_id=doc_id, email=data.get("email", ""), role=data.get("role", ""))

    def to_dict(self) -> dict[str, Any]:
        return {"email": self.email, "role": self.role}


@dataclass(frozen=True)
class MatchResult:
    match_score: int
    matched_skills: tuple[str, ...] = ()
    missing_skills: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "matchScore": self.match_score,
            "matchedSkills": list(self.matched_skills),
            "missingSkills": list(self.missing_skills),
        }


@dataclass(frozen=True)
class Candidate:
    candidate_id: str
    resume_text: str
    email: str = ""
    role: str = ""


@dataclass(frozen=True)
class RankedApplicant:
    candidate_id: str
    email: str
    match_score: int
    matched_skills: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.candidate_id,
            "email": self.email,
            "matchScore": self.match_score,
            "matchedSkills": list(self.matched_skills),
        }


@dataclass(frozen=True)
class GenerationContext:
    resume_text: str
    job_title: str = ""
    company: str = ""
    job_description: str = ""


@dataclass
class Recommendations:
    """Recommended job ids; ``degraded`` marks unparseable model output."""

    job_ids: list[str] = field(default_factory=list)
    degraded: bool = False
    raw: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"suggestions": list(self.job_ids)}
