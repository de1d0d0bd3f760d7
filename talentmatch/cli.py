"""Command-line entry point: post jobs, upload résumés, match, rank, draft.

Usage:
    talentmatch add-user u1 ana@example.com "Job Seeker"
    talentmatch post-job r1 "Backend Engineer" --company Acme --skills "python, sql"
    talentmatch upload u1 resume.pdf
    talentmatch applicants <job-id>
"""
from __future__ import annotations

import functools
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

import click

from talentmatch import service
from talentmatch.config import Settings, ensure_dirs, load_settings
from talentmatch.errors import InvalidRequest, TalentMatchError
from talentmatch.extractor import media_type_for
from talentmatch.gateway import ContentGateway
from talentmatch.log import get_logger, set_level
from talentmatch.models import ROLES
from talentmatch.store import JsonFileStore

log = get_logger(__name__)


@dataclass
class App:
    settings: Settings
    store: JsonFileStore


def _job_dict(job) -> dict[str, Any]:
    return {"id": job.id, **job.to_dict()}


def _emits_json(fn: Callable[..., Any]) -> Callable[..., None]:
    """Print the command's result as JSON; turn domain errors into exit code 1."""

    @functools.wraps(fn)
    @click.pass_obj
    def wrapper(app: App, **kwargs: Any) -> None:
        try:
            result = fn(app, **kwargs)
        except TalentMatchError as exc:
            log.debug("%s: %s", type(exc).__name__, exc)
            click.echo(exc.user_message, err=True)
            click.get_current_context().exit(1)
        click.echo(json.dumps(result, indent=2, ensure_ascii=False))

    return wrapper


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log debug detail to stderr")
@click.pass_context
def cli(ctx: click.Context, verbose: bool):
    """TalentMatch - résumé matching and applicant ranking."""
    if verbose:
        set_level("DEBUG")
    settings = ctx.obj if isinstance(ctx.obj, Settings) else load_settings()
    ensure_dirs(settings)
    ctx.obj = App(settings=settings, store=JsonFileStore(settings.data_dir))


@cli.command("add-user")
@click.argument("user_id")
@click.argument("email")
@click.argument("role", type=click.Choice(ROLES))
@_emits_json
def add_user(app: App, user_id: str, email: str, role: str):
    """Register a job seeker or recruiter."""
    profile = service.register_user(app.store, user_id, email, role)
    return {"id": user_id, **profile.to_dict()}


@cli.command("post-job")
@click.argument("recruiter_id")
@click.argument("title")
@click.option("--company", default="", help="Hiring company")
@click.option("--description", default="", help="Job description")
@click.option("--skills", default="", help="Comma-separated required skills")
@_emits_json
def post_job(app: App, recruiter_id: str, title: str, company: str, description: str, skills: str):
    """Post a job for a recruiter."""
    job = service.create_job(
        app.store,
        title=title,
        recruiter_id=recruiter_id,
        company=company,
        description=description,
        skills=skills,
    )
    return _job_dict(job)


@cli.command("jobs")
@click.option("--recruiter", default=None, help="Only jobs posted by this recruiter")
@_emits_json
def jobs(app: App, recruiter: str | None):
    """List posted jobs."""
    if recruiter:
        found = service.list_recruiter_jobs(app.store, recruiter)
    else:
        found = service.list_jobs(app.store)
    return [_job_dict(j) for j in found]


@cli.command("delete-job")
@click.argument("job_id")
@_emits_json
def delete_job(app: App, job_id: str):
    """Delete a job."""
    service.delete_job(app.store, job_id)
    return {"message": "Job successfully deleted."}


@cli.command("upload")
@click.argument("user_id")
@click.argument("file", type=click.Path(path_type=Path))
@click.option("--media-type", default=None, help="Override the type guessed from the extension")
@_emits_json
def upload(app: App, user_id: str, file: Path, media_type: str | None):
    """Upload a PDF, DOCX or TXT résumé."""
    media_type = media_type or media_type_for(file.name)
    try:
        content = file.read_bytes()
    except OSError as exc:
        raise InvalidRequest(str(exc), user_message=f"Cannot read {file}.") from exc
    service.upload_resume(
        app.store,
        app.settings,
        user_id=user_id,
        filename=file.name,
        content=content,
        media_type=media_type,
    )
    return {"message": "Resume uploaded and processed successfully."}


@cli.command("match")
@click.argument("job_id")
@click.argument("user_id")
@_emits_json
def match(app: App, job_id: str, user_id: str):
    """Score one candidate against one job."""
    return service.score_match(app.store, job_id, user_id).to_dict()


@cli.command("applicants")
@click.argument("job_id")
@_emits_json
def applicants(app: App, job_id: str):
    """Rank all job seekers for a job."""
    ranked = service.rank_applicants(app.store, job_id, max_workers=app.settings.rank_workers)
    return [a.to_dict() for a in ranked]


@cli.command("cover-letter")
@click.argument("user_id")
@click.argument("job_id")
@_emits_json
def cover_letter(app: App, user_id: str, job_id: str):
    """Draft a cover letter for a job."""
    job = service.get_job(app.store, job_id)
    text = service.generate_cover_letter(
        app.store,
        ContentGateway(app.settings),
        user_id,
        job_title=job.title,
        company=job.company,
        job_description=job.description,
    )
    return {"text": text}


@cli.command("interview")
@click.argument("user_id")
@click.argument("job_id")
@_emits_json
def interview(app: App, user_id: str, job_id: str):
    """Draft behavioral interview questions."""
    job = service.get_job(app.store, job_id)
    text = service.generate_interview_questions(
        app.store,
        ContentGateway(app.settings),
        user_id,
        job_title=job.title,
        job_description=job.description,
    )
    return {"text": text}


@cli.command("suggest")
@click.argument("user_id")
@_emits_json
def suggest(app: App, user_id: str):
    """Recommend up to three posted jobs."""
    recs = service.generate_job_recommendations(
        app.store, ContentGateway(app.settings), user_id, service.list_jobs(app.store)
    )
    return recs.to_dict()


if __name__ == "__main__":
    cli()
