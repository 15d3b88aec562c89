"""Object storage for uploaded business documents.

Responsibilities:
    - Timestamped upload keys under uploads/
    - Upload, delete and presigned download URLs via boto3
    - Bucket reachability check

Output keys are returned to the UI, which tracks them in the upload list.
"""

from src.storage.s3_storage import (
    BucketNotFoundError,
    S3StorageService,
    StorageConfigError,
    StorageError,
    build_upload_key,
    get_storage_service,
)

__all__ = [
    "BucketNotFoundError",
    "S3StorageService",
    "StorageConfigError",
    "StorageError",
    "build_upload_key",
    "get_storage_service",
]
