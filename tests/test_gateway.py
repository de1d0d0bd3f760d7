"""Tests for the AI content gateway."""
from __future__ import annotations

import httpx
import openai
import pytest

from talentmatch.errors import GenerationUnavailable, ResumeRequired
from talentmatch.gateway import (
    COVER_LETTER_PERSONA,
    INTERVIEW_PERSONA,
    RECOMMENDER_PERSONA,
    ContentGateway,
    parse_job_ids,
)
from talentmatch.models import GenerationContext, JobPosting
from tests.conftest import make_reply

_REQUEST = httpx.Request("POST", "https://example.invalid/chat/completions")

CONTEXT = GenerationContext(
    resume_text="Backend engineer, 6 years of Python and PostgreSQL.",
    job_title="Platform Engineer",
    company="Acme",
    job_description="Build internal tooling.",
)

JOBS = [
    JobPosting(id="j1", title="Data Engineer", skills="python, spark"),
    JobPosting(id="j2", title="Frontend Dev", skills="react"),
    JobPosting(id="j3", title="SRE", skills="kubernetes"),
    JobPosting(id="j4", title="DBA", skills="postgresql"),
]


def _connection_error() -> openai.APIConnectionError:
    return openai.APIConnectionError(request=_REQUEST)


def _bad_request() -> openai.BadRequestError:
    response = httpx.Response(400, request=_REQUEST)
    return openai.BadRequestError("bad request", response=response, body=None)


@pytest.fixture
def gateway(settings, fake_client, no_backoff_sleep) -> ContentGateway:
    return ContentGateway(settings, client=fake_client)


class TestPreconditions:
    @pytest.mark.parametrize("resume", ["", "   ", None])
    def test_cover_letter_without_resume_never_calls_model(self, gateway, fake_client, resume):
        with pytest.raises(ResumeRequired):
            gateway.cover_letter(GenerationContext(resume_text=resume, job_title="X"))
        assert fake_client.completions.call_count == 0

    def test_interview_without_resume_never_calls_model(self, gateway, fake_client):
        with pytest.raises(ResumeRequired):
            gateway.interview_questions(GenerationContext(resume_text=""))
        assert fake_client.completions.call_count == 0

    def test_recommendations_without_resume_never_call_model(self, gateway, fake_client):
        with pytest.raises(ResumeRequired):
            gateway.recommend_jobs("", JOBS)
        assert fake_client.completions.call_count == 0

    def test_missing_api_key_is_unavailable(self, settings):
        gateway = ContentGateway(settings.with_overrides(llm_api_key=""))
        with pytest.raises(GenerationUnavailable):
            gateway.cover_letter(CONTEXT)


class TestPrompts:
    def test_cover_letter_prompt(self, gateway, fake_client):
        fake_client.completions.queue("Dear Hiring Manager, ...")
        assert gateway.cover_letter(CONTEXT) == "Dear Hiring Manager, ..."

        (request,) = fake_client.completions.requests
        system, user = request["messages"]
        assert system == {"role": "system", "content": COVER_LETTER_PERSONA}
        assert user["role"] == "user"
        for fragment in ("Platform Engineer", "Acme", "Build internal tooling.", CONTEXT.resume_text):
            assert fragment in user["content"]
        assert request["model"] == "gemini-2.5-flash"

    def test_interview_prompt_returns_raw_text(self, gateway, fake_client):
        fake_client.completions.queue("1. Tell me about a time...\n2. Describe...")
        text = gateway.interview_questions(CONTEXT)
        assert text.startswith("1. Tell me")

        system, user = fake_client.completions.requests[0]["messages"]
        assert system["content"] == INTERVIEW_PERSONA
        assert "Generate 5 behavioral interview questions" in user["content"]
        assert "Platform Engineer" in user["content"]

    def test_recommendation_prompt_lists_jobs(self, gateway, fake_client):
        fake_client.completions.queue('["j1"]')
        gateway.recommend_jobs(CONTEXT.resume_text, JOBS)

        system, user = fake_client.completions.requests[0]["messages"]
        assert system["content"] == RECOMMENDER_PERSONA
        assert "ID: j1, Title: Data Engineer, Skills: python, spark; ID: j2" in user["content"]


class TestRecommendations:
    def test_parses_json_array(self, gateway, fake_client):
        fake_client.completions.queue('["j4", "j1", "j3"]')
        recs = gateway.recommend_jobs(CONTEXT.resume_text, JOBS)
        assert recs.job_ids == ["j4", "j1", "j3"]
        assert not recs.degraded
        assert recs.to_dict() == {"suggestions": ["j4", "j1", "j3"]}

    def test_free_text_degrades_to_empty_list(self, gateway, fake_client):
        fake_client.completions.queue("I think the Data Engineer role suits you best!")
        recs = gateway.recommend_jobs(CONTEXT.resume_text, JOBS)
        assert recs.job_ids == []
        assert recs.degraded
        assert recs.raw.startswith("I think")

    def test_json_object_is_not_list_shaped(self, gateway, fake_client):
        fake_client.completions.queue('{"ids": ["j1"]}')
        recs = gateway.recommend_jobs(CONTEXT.resume_text, JOBS)
        assert recs.job_ids == [] and recs.degraded

    def test_code_fenced_array_is_accepted(self, gateway, fake_client):
        fake_client.completions.queue('```json\n["j2", "j3"]\n```')
        assert gateway.recommend_jobs(CONTEXT.resume_text, JOBS).job_ids == ["j2", "j3"]

    def test_unknown_and_non_string_ids_are_dropped_and_capped(self, gateway, fake_client):
        fake_client.completions.queue('["j9", 4, "j1", "j1", "j2", "j3", "j4"]')
        recs = gateway.recommend_jobs(CONTEXT.resume_text, JOBS)
        assert recs.job_ids == ["j1", "j2", "j3"]
        assert not recs.degraded

    def test_malformed_output_is_not_retried(self, gateway, fake_client):
        fake_client.completions.queue("not json", '["j1"]')
        gateway.recommend_jobs(CONTEXT.resume_text, JOBS)
        assert fake_client.completions.call_count == 1


class TestFailures:
    def test_empty_text_is_unavailable(self, gateway, fake_client):
        fake_client.completions.queue("")
        with pytest.raises(GenerationUnavailable):
            gateway.cover_letter(CONTEXT)

    def test_no_choices_is_unavailable(self, gateway, fake_client):
        reply = make_reply("x")
        reply.choices = []
        fake_client.completions.queue(reply)
        with pytest.raises(GenerationUnavailable):
            gateway.interview_questions(CONTEXT)

    def test_transient_error_is_retried(self, gateway, fake_client):
        fake_client.completions.queue(_connection_error(), "Dear team")
        assert gateway.cover_letter(CONTEXT) == "Dear team"
        assert fake_client.completions.call_count == 2

    def test_retries_are_bounded(self, gateway, fake_client):
        fake_client.completions.queue(_connection_error(), _connection_error(), "never reached")
        with pytest.raises(GenerationUnavailable):
            gateway.cover_letter(CONTEXT)
        assert fake_client.completions.call_count == 2

    def test_timeouts_are_retried_then_unavailable(self, gateway, fake_client):
        fake_client.completions.queue(
            openai.APITimeoutError(request=_REQUEST),
            openai.APITimeoutError(request=_REQUEST),
            "never reached",
        )
        with pytest.raises(GenerationUnavailable):
            gateway.interview_questions(CONTEXT)
        assert fake_client.completions.call_count == 2

    def test_client_error_is_not_retried(self, gateway, fake_client):
        fake_client.completions.queue(_bad_request(), "never reached")
        with pytest.raises(GenerationUnavailable):
            gateway.recommend_jobs(CONTEXT.resume_text, JOBS)
        assert fake_client.completions.call_count == 1

    def test_user_message_hides_detail(self, gateway, fake_client):
        fake_client.completions.queue(_bad_request())
        with pytest.raises(GenerationUnavailable) as info:
            gateway.cover_letter(CONTEXT)
        assert "bad request" not in info.value.user_message


@pytest.mark.parametrize(
    "raw, expected",
    [
        ('["a", "b"]', ["a", "b"]),
        ("  []  ", []),
        ('```\n["a"]\n```', ["a"]),
        ('"a"', None),
        ("null", None),
        ("[broken", None),
        ("", None),
        ("[" * 5000, None),
    ],
)
def test_parse_job_ids(raw, expected):
    assert parse_job_ids(raw) == expected


def test_client_is_built_with_timeout_and_without_sdk_retries(settings, monkeypatch):
    seen = {}

    def fake_openai(**kwargs):
        seen.update(kwargs)
        return object()

    monkeypatch.setattr("talentmatch.gateway.OpenAI", fake_openai)
    gateway = ContentGateway(settings.with_overrides(llm_timeout=7.5))
    client = gateway.client
    assert gateway.client is client
    assert seen["timeout"] == 7.5
    assert seen["max_retries"] == 0
    assert seen["api_key"] == "test-key"
    assert seen["base_url"] == settings.llm_base_url


def test_deeply_nested_reply_degrades(gateway, fake_client):
    fake_client.completions.queue("[" * 5000)
    recs = gateway.recommend_jobs(CONTEXT.resume_text, JOBS)
    assert recs.degraded
    assert recs.job_ids == []
