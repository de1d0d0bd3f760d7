"""Shared fixtures: in-memory store, temp-dir settings, fake model client."""
from __future__ import annotations

import io
import os
import tempfile
import zipfile
from types import SimpleNamespace

import pytest

# Keep test runs from writing into the checkout's logs/ folder.
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="talentmatch-logs-"))

from talentmatch.config import Settings  # noqa: E402
from talentmatch.store import MemoryStore  # noqa: E402


def make_reply(text: str | None) -> SimpleNamespace:
    """Shape of an OpenAI chat-completions response with one choice."""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])


class FakeCompletions:
    """Stands in for ``client.chat.completions``; replays queued outcomes."""

    def __init__(self) -> None:
        self.outcomes: list = []
        self.requests: list[dict] = []

    def queue(self, *outcomes) -> "FakeCompletions":
        self.outcomes.extend(outcomes)
        return self

    def create(self, **kwargs):
        self.requests.append(kwargs)
        outcome = self.outcomes.pop(0) if self.outcomes else "ok"
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, SimpleNamespace):
            return outcome
        return make_reply(outcome)

    @property
    def call_count(self) -> int:
        return len(self.requests)


class FakeClient:
    def __init__(self) -> None:
        self.completions = FakeCompletions()
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        data_dir=tmp_path / "data",
        upload_dir=tmp_path / "uploads",
        llm_api_key="test-key",
        llm_max_attempts=2,
    )


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def no_backoff_sleep(monkeypatch):
    monkeypatch.setattr("talentmatch.retry.time.sleep", lambda _s: None)


def make_docx(*paragraphs: str) -> bytes:
    """Smallest DOCX package the extractor understands."""
    ns = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
    body = "".join(
        f"<w:p><w:r><w:t>{p[: len(p) // 2]}</w:t></w:r><w:r><w:t>{p[len(p) // 2:]}</w:t></w:r></w:p>"
        for p in paragraphs
    )
    xml = f'<?xml version="1.0" encoding="UTF-8"?><w:document xmlns:w="{ns}"><w:body>{body}</w:body></w:document>'
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("[Content_Types].xml", "<Types/>")
        zf.writestr("word/document.xml", xml)
    return buf.getvalue()


def make_pdf(text: str = "") -> bytes:
    """One-page PDF drawing *text* in Helvetica (blank page when empty)."""
    stream = f"BT /F1 12 Tf 72 720 Td ({text}) Tj ET".encode("latin-1") if text else b""
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R "
        b"/Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length " + str(len(stream)).encode() + b" >>\nstream\n" + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"
    xref_at = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_at}\n%%EOF\n".encode()
    return bytes(out)
