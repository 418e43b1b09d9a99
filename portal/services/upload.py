"""
Multi-file upload pipeline.

Each file is stored and staged on its own; a rejected file is reported and
does not stop the others. Metadata rows are committed together at the end.
If the commit fails, or anything else aborts the batch, every object it
stored is removed.
"""
import logging
import mimetypes
import time
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence

from fastapi import UploadFile
from sqlalchemy.orm import Session

from portal.core.config import settings
from portal.core.exceptions import AppException, StorageError
from portal.models.company import Company
from portal.models.file import File, FileCategory
from portal.services.storage import LocalObjectStore, build_storage_key

logger = logging.getLogger(__name__)


@dataclass
class UploadOutcome:
    uploaded: List[File] = field(default_factory=list)
    failed: List[dict] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed


def _content_type(upload: UploadFile) -> str:
    if upload.content_type and upload.content_type != "application/octet-stream":
        return upload.content_type
    guessed, _ = mimetypes.guess_type(upload.filename or "")
    return guessed or "application/octet-stream"


def _discard(storage: LocalObjectStore, keys: Sequence[str]) -> None:
    for key in keys:
        try:
            storage.delete(key)
        except StorageError as e:
            logger.error(f"Orphaned stored object {key} after failed upload: {e.message}")


async def _store_all(
    db: Session,
    storage: LocalObjectStore,
    company: Company,
    category: FileCategory,
    uploads: Sequence[UploadFile],
    uploaded_by: str,
    expiry_date: Optional[date],
    outcome: UploadOutcome,
    stored_keys: List[str],
) -> None:
    max_bytes = settings.max_upload_mb * 1024 * 1024

    for upload in uploads:
        name = (upload.filename or "").strip()
        if not name:
            outcome.failed.append({"name": "(unnamed)", "error": "Missing file name"})
            continue
        try:
            data = await upload.read()
            if len(data) > max_bytes:
                raise AppException(f"File exceeds the {settings.max_upload_mb} MB limit", status_code=413)
            key = storage.save(build_storage_key(company.id, category.value, name), data)
        except AppException as e:
            logger.warning(f"Upload of {name} for company {company.id} failed: {e.message}")
            outcome.failed.append({"name": name, "error": e.message})
            continue
        finally:
            await upload.close()

        stored_keys.append(key)
        record = File(
            name=name,
            type=_content_type(upload),
            size=len(data),
            category=category,
            company_id=company.id,
            storage_path=key,
            uploaded_by=uploaded_by,
            expiry_date=expiry_date,
        )
        db.add(record)
        outcome.uploaded.append(record)

    if outcome.uploaded:
        db.commit()


async def process_upload(
    db: Session,
    storage: LocalObjectStore,
    company: Company,
    category: FileCategory,
    uploads: Sequence[UploadFile],
    uploaded_by: str,
    expiry_date: Optional[date] = None,
) -> UploadOutcome:
    started = time.time()
    outcome = UploadOutcome()
    stored_keys: List[str] = []

    try:
        await _store_all(db, storage, company, category, uploads, uploaded_by, expiry_date, outcome, stored_keys)
    except Exception:
        db.rollback()
        logger.error(
            f"Upload for company {company.id} aborted; removing {len(stored_keys)} stored object(s)",
            exc_info=True,
        )
        _discard(storage, stored_keys)
        raise

    for record in outcome.uploaded:
        db.refresh(record)

    logger.info(
        f"Upload for company {company.id}: {len(outcome.uploaded)} stored, "
        f"{len(outcome.failed)} failed in {time.time() - started:.2f}s"
    )
    return outcome
