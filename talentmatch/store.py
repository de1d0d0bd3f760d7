"""Key-value document storage for jobs, résumés and users.

``JsonFileStore`` keeps one JSON file per collection with advisory file
locking; every write lands in a temp file that is renamed over the old one,
so readers never see half a collection. ``MemoryStore`` is the in-process
equivalent.
"""
from __future__ import annotations

import copy
import fcntl
import json
import os
import tempfile
import threading
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator

from talentmatch.log import get_logger

log = get_logger(__name__)

JOBS = "jobs"
RESUMES = "resumes"
USERS = "users"

Document = dict[str, Any]
Predicate = Callable[[Document], bool]


def new_id() -> str:
    return uuid.uuid4().hex[:20]


class DocumentStore(ABC):
    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Document | None:
        pass

    @abstractmethod
    def set(self, collection: str, doc_id: str, value: Document, merge: bool = False) -> None:
        pass

    @abstractmethod
    def query(self, collection: str, predicate: Predicate | None = None) -> list[tuple[str, Document]]:
        pass

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> bool:
        pass

    def add(self, collection: str, value: Document) -> str:
        doc_id = new_id()
        self.set(collection, doc_id, value)
        return doc_id


def _apply(docs: dict[str, Document], doc_id: str, value: Document, merge: bool) -> None:
    if merge and doc_id in docs:
        docs[doc_id] = {**docs[doc_id], **value}
    else:
        docs[doc_id] = dict(value)


class MemoryStore(DocumentStore):
    def __init__(self) -> None:
        self._data: dict[str, dict[str, Document]] = {}
        self._lock = threading.Lock()

    def get(self, collection: str, doc_id: str) -> Document | None:
        with self._lock:
            doc = self._data.get(collection, {}).get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    def set(self, collection: str, doc_id: str, value: Document, merge: bool = False) -> None:
        with self._lock:
            _apply(self._data.setdefault(collection, {}), doc_id, copy.deepcopy(value), merge)

    def query(self, collection: str, predicate: Predicate | None = None) -> list[tuple[str, Document]]:
        with self._lock:
            docs = copy.deepcopy(self._data.get(collection, {}))
        return [(k, v) for k, v in docs.items() if predicate is None or predicate(v)]

    def delete(self, collection: str, doc_id: str) -> bool:
        with self._lock:
            return self._data.get(collection, {}).pop(doc_id, None) is not None


def _lock(f, exclusive: bool = True) -> None:
    """Advisory file lock (Unix fcntl)."""
    try:
        op = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        fcntl.flock(f.fileno(), op)
    except (OSError, AttributeError):
        pass


def _unlock(f) -> None:
    try:
        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
    except (OSError, AttributeError):
        pass


class JsonFileStore(DocumentStore):
    def __init__(self, data_dir: Path) -> None:
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, collection: str) -> Path:
        return self.data_dir / f"{collection}.json"

    @contextmanager
    def _locked(self, collection: str, exclusive: bool) -> Iterator[None]:
        # Lock a sidecar file: the data file itself is replaced on every write.
        lock_path = self.data_dir / f".{collection}.lock"
        with open(lock_path, "a+", encoding="utf-8") as lf:
            _lock(lf, exclusive)
            try:
                yield
            finally:
                _unlock(lf)

    def _read(self, collection: str) -> dict[str, Document]:
        path = self._path(collection)
        if not path.exists():
            return {}
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _write(self, collection: str, docs: dict[str, Document]) -> None:
        fd, tmp = tempfile.mkstemp(dir=self.data_dir, prefix=f".{collection}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(docs, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self._path(collection))
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def get(self, collection: str, doc_id: str) -> Document | None:
        with self._locked(collection, exclusive=False):
            return self._read(collection).get(doc_id)

    def set(self, collection: str, doc_id: str, value: Document, merge: bool = False) -> None:
        with self._locked(collection, exclusive=True):
            docs = self._read(collection)
            _apply(docs, doc_id, value, merge)
            self._write(collection, docs)
        log.debug("Stored %s/%s (merge=%s)", collection, doc_id, merge)

    def query(self, collection: str, predicate: Predicate | None = None) -> list[tuple[str, Document]]:
        with self._locked(collection, exclusive=False):
            docs = self._read(collection)
        return [(k, v) for k, v in docs.items() if predicate is None or predicate(v)]

    def delete(self, collection: str, doc_id: str) -> bool:
        with self._locked(collection, exclusive=True):
            docs = self._read(collection)
            if docs.pop(doc_id, None) is None:
                return False
            self._write(collection, docs)
        log.debug("Deleted %s/%s", collection, doc_id)
        return True
