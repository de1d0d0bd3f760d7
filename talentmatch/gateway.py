"""Draft cover letters, interview questions and job picks with an LLM.

Talks to any OpenAI-compatible chat-completions endpoint (Gemini's by
default). Model output is untrusted: a missing résumé stops the request
before any call is made, but an unparseable recommendation list only
degrades to an empty result.
"""
from __future__ import annotations

import json
import re
from typing import Any, Sequence

import openai
from openai import OpenAI

from talentmatch.config import Settings, load_settings
from talentmatch.errors import GenerationUnavailable, ResumeRequired
from talentmatch.log import get_logger
from talentmatch.models import GenerationContext, JobPosting, Recommendations
from talentmatch.retry import retry

log = get_logger(__name__)

MAX_RECOMMENDATIONS = 3

# Worth another attempt; anything else (bad request, auth, bad content) is not.
TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    openai.APIConnectionError,
    openai.RateLimitError,
    openai.InternalServerError,
)

COVER_LETTER_PERSONA = (
    "You are a professional career coach and copywriter. Your task is to "
    "generate a concise, single-page cover letter based on the provided resume "
    "and job details. Focus only on the most relevant experience and skills "
    "that match the job description."
)

_COVER_LETTER_PROMPT = (
    'Using the following resume text, write a cover letter for the job titled '
    '"{title}" at "{company}". The job description is: "{description}". '
    'Resume Text: "{resume}". Only return the body of the letter, starting with '
    'the salutation and ending with the closing.'
)

INTERVIEW_PERSONA = (
    "You are an expert HR interviewer. Your task is to generate 5 challenging "
    "and specific behavioral interview questions (using the STAR method format) "
    "that are tailored to the candidate's resume and the job requirements. "
    "Format the output as a numbered list of questions, with no introductory text."
)

_INTERVIEW_PROMPT = (
    'Generate 5 behavioral interview questions for the job titled "{title}". '
    'The job description is: "{description}". '
    'The candidate\'s Resume Text is: "{resume}".'
)

RECOMMENDER_PERSONA = (
    "You are a job recommendation engine. Analyze the Resume Text and the list "
    "of available jobs. Select the top 3 job IDs that are the *best semantic fit* "
    "for the candidate's experience. Only use IDs from the list. Return ONLY a "
    'JSON array of the recommended job IDs, using the format: ["ID_1", "ID_2", "ID_3"].'
)

_RECOMMEND_PROMPT = (
    'Candidate Resume Text: "{resume}". '
    "Available Jobs (ID, Title, Skills): {jobs}."
)

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*(.*?)\s*```$", re.DOTALL)


def _require_resume(resume_text: str | None) -> str:
    if not resume_text or not resume_text.strip():
        raise ResumeRequired("No stored resume text for this candidate")
    return resume_text


def _job_listing(jobs: Sequence[JobPosting]) -> str:
    return "; ".join(f"ID: {j.id}, Title: {j.title}, Skills: {j.skills}" for j in jobs)


def parse_job_ids(raw: str) -> list[Any] | None:
    """Parse model text as a JSON array; None when it is not one."""
    text = raw.strip()
    fenced = _FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1)
    try:
        value = json.loads(text)
    except (ValueError, RecursionError):
        # deeply nested arrays overflow the decoder
        return None
    return value if isinstance(value, list) else None


class ContentGateway:
    """Builds prompts, calls the model, and shapes its reply."""

    def __init__(self, settings: Settings | None = None, client: Any | None = None) -> None:
        self.settings = settings or load_settings()
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            if not self.settings.llm_api_key:
                raise GenerationUnavailable("GEMINI_API_KEY is not set")
            self._client = OpenAI(
                api_key=self.settings.llm_api_key,
                base_url=self.settings.llm_base_url,
                timeout=self.settings.llm_timeout,
                max_retries=0,
            )
        return self._client

    def _complete(self, system_instruction: str, user_message: str) -> Any:
        return self.client.chat.completions.create(
            model=self.settings.llm_model,
            messages=[
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": user_message},
            ],
            max_tokens=self.settings.llm_max_tokens,
        )

    def generate(self, system_instruction: str, user_message: str) -> str:
        """Send one instruction + one message; return the first choice's text."""
        call = retry(
            max_attempts=self.settings.llm_max_attempts,
            base_delay=2.0,
            retryable=TRANSIENT_ERRORS,
        )(self._complete)
        try:
            resp = call(system_instruction, user_message)
        except openai.OpenAIError as exc:
            log.error("Model call failed: %s", exc, exc_info=True)
            raise GenerationUnavailable(f"Model call failed: {exc}") from exc

        choices = getattr(resp, "choices", None) or []
        text = ""
        if choices:
            message = getattr(choices[0], "message", None)
            text = (getattr(message, "content", None) or "").strip()
        if not text:
            log.error("Model returned no text content: %r", resp)
            raise GenerationUnavailable("Model returned no text content")
        return text

    def cover_letter(self, context: GenerationContext) -> str:
        resume = _require_resume(context.resume_text)
        prompt = _COVER_LETTER_PROMPT.format(
            title=context.job_title,
            company=context.company,
            description=context.job_description,
            resume=resume,
        )
        letter = self.generate(COVER_LETTER_PERSONA, prompt)
        log.info("Cover letter generated for %s @ %s", context.job_title, context.company)
        return letter

    def interview_questions(self, context: GenerationContext) -> str:
        resume = _require_resume(context.resume_text)
        prompt = _INTERVIEW_PROMPT.format(
            title=context.job_title,
            description=context.job_description,
            resume=resume,
        )
        questions = self.generate(INTERVIEW_PERSONA, prompt)
        log.info("Interview questions generated for %s", context.job_title)
        return questions

    def recommend_jobs(self, resume_text: str | None, jobs: Sequence[JobPosting]) -> Recommendations:
        """Pick up to three of *jobs* for the candidate.

        Malformed model output yields an empty, degraded result instead of an
        error; ids the model invents are dropped.
        """
        resume = _require_resume(resume_text)
        prompt = _RECOMMEND_PROMPT.format(resume=resume, jobs=_job_listing(jobs))
        raw = self.generate(RECOMMENDER_PERSONA, prompt)

        parsed = parse_job_ids(raw)
        if parsed is None:
            log.warning("Model returned malformed recommendations, using none: %r", raw)
            return Recommendations(job_ids=[], degraded=True, raw=raw)

        known = {j.id for j in jobs}
        picks: list[str] = []
        for item in parsed:
            if isinstance(item, str) and item in known and item not in picks:
                picks.append(item)
        dropped = len(parsed) - len(picks)
        if dropped:
            log.info("Dropped %d unknown or repeated job id(s) from recommendations", dropped)
        log.info("Recommended %d job(s)", len(picks[:MAX_RECOMMENDATIONS]))
        return Recommendations(job_ids=picks[:MAX_RECOMMENDATIONS], raw=raw)
