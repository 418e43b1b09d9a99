import asyncio

import pytest

from portal.core.config import settings
from portal.models.company import Company
from portal.models.file import FileCategory
from portal.services.storage import LocalObjectStore
from portal.services.upload import process_upload


class FakeUpload:
    def __init__(self, filename, content=b"", content_type="application/pdf", error=None):
        self.filename = filename
        self.content_type = content_type
        self.content = content
        self.error = error
        self.closed = False

    async def read(self):
        if self.error is not None:
            raise self.error
        return self.content

    async def close(self):
        self.closed = True


class RecordingSession:
    """Stands in for the SQLAlchemy session; ``fail_commit`` makes commit raise."""

    def __init__(self, fail_commit=False):
        self.fail_commit = fail_commit
        self.added = []
        self.committed = False
        self.rolled_back = False

    def add(self, obj):
        self.added.append(obj)

    def commit(self):
        if self.fail_commit:
            raise RuntimeError("database is locked")
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def refresh(self, obj):
        pass


def _stored_files(root):
    return [p for p in root.rglob("*") if p.is_file()]


def _run(db, storage, uploads):
    company = Company(id=1, name="Acme", email="c@acme.com")
    return asyncio.run(process_upload(db, storage, company, FileCategory.TAX, uploads, uploaded_by="a@x.com"))


def test_stores_each_file_and_commits_once(tmp_path):
    storage = LocalObjectStore(str(tmp_path))
    db = RecordingSession()
    uploads = [FakeUpload("a.pdf", b"1"), FakeUpload("notes", b"22", content_type=None), FakeUpload("", b"3")]

    outcome = _run(db, storage, uploads)

    assert [f.name for f in outcome.uploaded] == ["a.pdf", "notes"]
    assert outcome.failed == [{"name": "(unnamed)", "error": "Missing file name"}]
    assert outcome.complete is False
    assert db.committed
    assert outcome.uploaded[1].type == "application/octet-stream"
    assert all(storage.exists(f.storage_path) for f in outcome.uploaded)
    assert all(u.closed for u in uploads[:2])


def test_oversized_file_is_rejected(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "max_upload_mb", 0)
    storage = LocalObjectStore(str(tmp_path))
    db = RecordingSession()

    outcome = _run(db, storage, [FakeUpload("big.pdf", b"too big")])

    assert outcome.uploaded == []
    assert outcome.failed == [{"name": "big.pdf", "error": "File exceeds the 0 MB limit"}]
    assert not db.committed
    assert _stored_files(tmp_path) == []


def test_commit_failure_removes_stored_objects(tmp_path):
    storage = LocalObjectStore(str(tmp_path))
    db = RecordingSession(fail_commit=True)

    with pytest.raises(RuntimeError, match="database is locked"):
        _run(db, storage, [FakeUpload("a.pdf", b"1"), FakeUpload("b.pdf", b"2")])

    assert len(db.added) == 2
    assert db.rolled_back
    assert _stored_files(tmp_path) == []


def test_read_error_removes_objects_stored_earlier(tmp_path):
    storage = LocalObjectStore(str(tmp_path))
    db = RecordingSession()
    broken = FakeUpload("b.pdf", error=OSError("connection reset"))

    with pytest.raises(OSError, match="connection reset"):
        _run(db, storage, [FakeUpload("a.pdf", b"1"), broken, FakeUpload("c.pdf", b"3")])

    assert not db.committed
    assert db.rolled_back
    assert broken.closed
    assert _stored_files(tmp_path) == []
