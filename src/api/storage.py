"""Document storage endpoints backed by S3.

Handles upload, delete, presigned download URLs and a bucket connection test.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, UploadFile, status
from fastapi.responses import JSONResponse

from src.storage.s3_storage import (
    BucketNotFoundError,
    S3StorageService,
    StorageError,
    get_storage_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/s3", tags=["storage"])

CONFIG_INCOMPLETE = "AWS S3 configuration is incomplete"


def _error(status_code: int, message: str, **extra: object) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


def _config_error() -> JSONResponse:
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, CONFIG_INCOMPLETE)


def _missing_key() -> JSONResponse:
    return _error(status.HTTP_400_BAD_REQUEST, "No file key provided")


async def _read_and_validate_size(file: UploadFile, max_size: int) -> bytes | JSONResponse:
    """Read file content, or return a 413 response when it is too large.

    Args:
        file: The uploaded file.
        max_size: Largest accepted size in bytes.

    Returns:
        File content as bytes, or the error response.
    """
    content = await file.read()

    if len(content) > max_size:
        size_mb = len(content) / (1024 * 1024)
        return _error(
            status.HTTP_413_CONTENT_TOO_LARGE,
            f"File size ({size_mb:.1f}MB) exceeds maximum allowed (10MB)",
        )

    return content


@router.post("/upload")
async def upload_file(
    file: UploadFile | None = None,
    storage: S3StorageService = Depends(get_storage_service),
) -> JSONResponse:
    """Upload a document to the bucket.

    Args:
        file: The uploaded document (multipart/form-data field "file").

    Returns:
        {"success": true, "key": <object key>}.

    Raises:
        400: No file provided.
        413: File exceeds 10MB limit.
        500: Storage not configured or upload failed.
    """
    if not storage.config.is_valid():
        return _config_error()

    if file is None or not file.filename:
        return _error(status.HTTP_400_BAD_REQUEST, "No file provided")

    content = await _read_and_validate_size(file, storage.config.max_upload_size)
    if isinstance(content, JSONResponse):
        return content

    try:
        key = await asyncio.to_thread(
            storage.upload, file.filename, content, file.content_type
        )
    except StorageError as e:
        logger.error(f"Error in S3 upload: {e}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))

    return JSONResponse(content={"success": True, "key": key})


@router.delete("/delete")
async def delete_file(
    key: str | None = None,
    storage: S3StorageService = Depends(get_storage_service),
) -> JSONResponse:
    """Delete a document by object key."""
    if not storage.config.is_valid():
        return _config_error()
    if not key:
        return _missing_key()

    try:
        await asyncio.to_thread(storage.delete, key)
    except StorageError as e:
        logger.error(f"Error in S3 delete: {e}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))

    return JSONResponse(content={"success": True})


@router.get("/get-url")
async def get_signed_url(
    key: str | None = None,
    storage: S3StorageService = Depends(get_storage_service),
) -> JSONResponse:
    """Return a presigned download URL for a document."""
    if not storage.config.is_valid():
        return _config_error()
    if not key:
        return _missing_key()

    try:
        url = await asyncio.to_thread(storage.get_signed_url, key)
    except StorageError as e:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e), success=False)

    return JSONResponse(content={"success": True, "url": url})


@router.get("/test-connection")
async def test_connection(
    storage: S3StorageService = Depends(get_storage_service),
) -> JSONResponse:
    """Check that the configured bucket is visible and writable."""
    if not storage.config.is_valid():
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            CONFIG_INCOMPLETE,
            success=False,
            details=storage.config.field_status(),
        )

    try:
        await asyncio.to_thread(storage.test_connection)
    except BucketNotFoundError as e:
        return _error(
            status.HTTP_404_NOT_FOUND,
            str(e),
            success=False,
            availableBuckets=e.available_buckets,
        )
    except StorageError as e:
        logger.error(f"Error testing S3 connection: {e}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e), success=False)

    return JSONResponse(content={"success": True, "message": "S3 connection successful"})
