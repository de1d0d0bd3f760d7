"""Extract plain text from an uploaded résumé.

Supports PDF (via pypdf), DOCX (via stdlib zipfile + xml), and TXT. The
parser is chosen from the declared media type only; the payload is never
sniffed, so a mislabeled file fails extraction instead of being rerouted.
"""
from __future__ import annotations

import io
import zipfile
from pathlib import PurePath
from xml.etree import ElementTree

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from talentmatch.errors import ExtractionFailed, UnsupportedFormat
from talentmatch.log import get_logger

log = get_logger(__name__)

PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT = "text/plain"

_EXTENSIONS: dict[str, str] = {".pdf": PDF, ".docx": DOCX, ".txt": TEXT}

_W_NS = "{http://schemas.openxmlformats.org/wordprocessingml/2006/main}"


def _bare_type(media_type: str) -> str:
    return (media_type or "").split(";", 1)[0].strip().lower()


def media_type_for(filename: str) -> str:
    """Guess the declared media type from a file name's extension."""
    suffix = PurePath(filename).suffix.lower()
    try:
        return _EXTENSIONS[suffix]
    except KeyError:
        raise UnsupportedFormat(f"Unsupported resume format: {suffix or filename}") from None


def _extract_pdf(content: bytes) -> str:
    reader = PdfReader(io.BytesIO(content))
    return "\n".join(page.extract_text() or "" for page in reader.pages)


def _extract_docx(content: bytes) -> str:
    """Walk word/document.xml and join the text runs of each paragraph."""
    texts: list[str] = []
    with zipfile.ZipFile(io.BytesIO(content)) as zf:
        with zf.open("word/document.xml") as f:
            tree = ElementTree.parse(f)
            for para in tree.iter(f"{_W_NS}p"):
                parts = [node.text for node in para.iter(f"{_W_NS}t") if node.text]
                if parts:
                    texts.append("".join(parts))
    return "\n".join(texts)


def _extract_plain(content: bytes) -> str:
    return content.decode("utf-8", errors="replace")


_PARSERS = {
    PDF: _extract_pdf,
    DOCX: _extract_docx,
    TEXT: _extract_plain,
}


def extract_text(content: bytes, media_type: str) -> str:
    """Return the plain text of *content*, parsed according to *media_type*.

    Raises UnsupportedFormat for any type other than PDF, DOCX or plain text,
    and ExtractionFailed when the parser errors out or finds no text.
    """
    kind = _bare_type(media_type)
    parser = _PARSERS.get(kind)
    if parser is None:
        raise UnsupportedFormat(f"Unsupported media type: {media_type!r}")

    try:
        text = parser(content)
    except (PyPdfError, zipfile.BadZipFile, KeyError, ElementTree.ParseError) as exc:
        log.warning("Could not parse %d-byte %s payload: %s", len(content), kind, exc)
        raise ExtractionFailed(f"{kind} parser failed: {exc}") from exc
    except Exception as exc:
        # pypdf surfaces some corrupt streams as plain ValueError/TypeError
        log.warning("Parser crashed on %d-byte %s payload", len(content), kind, exc_info=True)
        raise ExtractionFailed(f"{kind} parser crashed: {exc}") from exc

    if not text.strip():
        raise ExtractionFailed(f"No text found in {len(content)}-byte {kind} payload")

    log.debug("Extracted %d chars from %s payload", len(text), kind)
    return text
