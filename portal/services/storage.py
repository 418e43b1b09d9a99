"""
Object storage for uploaded company files.

Bytes live under ``{company_id}/{category}/{uuid}-{filename}`` inside the
configured storage root. Paths are never served directly: callers obtain a
short-lived signed token (see ``sign_storage_path``) and exchange it at
``/storage/{token}``.
"""
import logging
import uuid
from datetime import timedelta
from pathlib import Path
from typing import Optional

from werkzeug.utils import secure_filename

from portal.core.config import settings
from portal.core.exceptions import StorageError
from portal.services import auth as auth_service

logger = logging.getLogger(__name__)

DOWNLOAD_TOKEN_TYPE = "download"


def build_storage_key(company_id: int, category: str, filename: str) -> str:
    safe_name = secure_filename(filename) or "file"
    return f"{company_id}/{category}/{uuid.uuid4().hex[:12]}-{safe_name}"


class LocalObjectStore:
    def __init__(self, root: str):
        self.root = Path(root).resolve()

    def _resolve(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root not in path.parents:
            raise StorageError(f"Invalid storage path: {key}")
        return path

    def save(self, key: str, data: bytes) -> str:
        path = self._resolve(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            logger.error(f"Failed to store object {key}: {e}")
            raise StorageError(f"Could not store file: {e.strerror or e}") from e
        return key

    def path_for(self, key: str) -> Path:
        path = self._resolve(key)
        if not path.is_file():
            raise StorageError(f"Stored object missing: {key}")
        return path

    def exists(self, key: str) -> bool:
        return self._resolve(key).is_file()

    def delete(self, key: str) -> bool:
        path = self._resolve(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            logger.warning(f"Object already absent from storage: {key}")
            return False
        except OSError as e:
            logger.error(f"Failed to delete object {key}: {e}")
            raise StorageError(f"Could not delete file: {e.strerror or e}") from e


_default_store: Optional[LocalObjectStore] = None


def get_storage() -> LocalObjectStore:
    """FastAPI dependency returning the process-wide object store."""
    global _default_store
    if _default_store is None:
        _default_store = LocalObjectStore(settings.storage_dir)
    return _default_store


def sign_storage_path(storage_path: str, filename: str, expires_in: Optional[int] = None) -> str:
    seconds = expires_in or settings.signed_url_expire_seconds
    return auth_service.create_access_token(
        {"path": storage_path, "name": filename, "type": DOWNLOAD_TOKEN_TYPE},
        expires_delta=timedelta(seconds=seconds),
    )


def verify_download_token(token: str) -> Optional[dict]:
    """Returns ``{"path", "name"}`` for a valid, unexpired download token."""
    payload = auth_service.decode_access_token(token)
    if not payload or "error" in payload:
        return None
    if payload.get("type") != DOWNLOAD_TOKEN_TYPE or not payload.get("path"):
        return None
    return {"path": payload["path"], "name": payload.get("name") or Path(payload["path"]).name}
