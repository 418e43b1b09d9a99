import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from portal.core.exceptions import AccessDeniedError, StorageError
from portal.core.limiter import limiter
from portal.services.storage import LocalObjectStore, get_storage, verify_download_token

logger = logging.getLogger(__name__)

# Mounted outside the API prefix: the signed token is the only credential.
router = APIRouter(prefix="/storage", tags=["storage"])


@router.get("/{token}", name="download_stored_file")
@limiter.exempt
def download_stored_file(token: str, storage: LocalObjectStore = Depends(get_storage)):
    claims = verify_download_token(token)
    if claims is None:
        raise AccessDeniedError("Download link is invalid or has expired")

    try:
        path = storage.path_for(claims["path"])
    except StorageError as e:
        logger.warning(f"Signed download for missing object: {e.message}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not available")

    return FileResponse(path, filename=claims["name"])
