"""S3 document storage using boto3.

Uploads documents under a timestamped key, deletes them, issues presigned
download URLs and checks that the configured bucket is reachable.
"""

import logging
import time

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from src.client.config import StorageConfig, get_storage_config

logger = logging.getLogger(__name__)

UPLOAD_PREFIX = "uploads/"
PROBE_CONTENT = b"Test connection"


class StorageError(Exception):
    """Raised when an object storage operation fails."""

    pass


class StorageConfigError(StorageError):
    """Raised when storage credentials or bucket are not configured."""

    pass


class BucketNotFoundError(StorageError):
    """Raised when the configured bucket is not visible to the credentials.

    Attributes:
        available_buckets: Buckets the credentials can see.
    """

    def __init__(self, bucket: str, available_buckets: list[str]) -> None:
        super().__init__(f"Bucket '{bucket}' not found or not accessible")
        self.available_buckets = available_buckets


def _now_ms() -> int:
    return int(time.time() * 1000)


def build_upload_key(filename: str, timestamp_ms: int | None = None) -> str:
    """Build the object key for an uploaded document.

    Args:
        filename: Original file name.
        timestamp_ms: Upload time in epoch milliseconds (defaults to now).

    Returns:
        Key of the form "uploads/<epoch-ms>-<filename>".
    """
    if timestamp_ms is None:
        timestamp_ms = _now_ms()
    return f"{UPLOAD_PREFIX}{timestamp_ms}-{filename}"


class S3StorageService:
    """Service wrapping a boto3 S3 client for one bucket.

    All methods are blocking; async callers run them in a worker thread.
    """

    def __init__(self, config: StorageConfig | None = None, client=None) -> None:
        """Initialize the storage service.

        Args:
            config: Storage configuration. Loads from environment if not provided.
            client: Optional pre-built S3 client (used by tests).
        """
        self._config = config or get_storage_config()
        self._client = client

    @property
    def config(self) -> StorageConfig:
        return self._config

    def _require_config(self) -> None:
        if not self._config.is_valid():
            raise StorageConfigError("AWS S3 configuration is incomplete")

    def _get_client(self):
        self._require_config()
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=self._config.region,
                aws_access_key_id=self._config.access_key_id,
                aws_secret_access_key=self._config.secret_access_key,
            )
        return self._client

    def upload(self, filename: str, content: bytes, content_type: str | None = None) -> str:
        """Store a document in the bucket.

        Args:
            filename: Original file name.
            content: File bytes.
            content_type: MIME type recorded on the object.

        Returns:
            The object key.

        Raises:
            StorageConfigError: If storage is not configured.
            StorageError: If the file is too large or the upload fails.
        """
        client = self._get_client()

        if len(content) > self._config.max_upload_size:
            size_mb = len(content) / (1024 * 1024)
            raise StorageError(f"File size ({size_mb:.1f}MB) exceeds maximum allowed (10MB)")

        key = build_upload_key(filename)
        params = {"Bucket": self._config.bucket_name, "Key": key, "Body": content}
        if content_type:
            params["ContentType"] = content_type

        try:
            client.put_object(**params)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error uploading {filename} to S3: {e}")
            raise StorageError(f"S3 upload failed: {e}") from e

        logger.info(f"Uploaded {filename} ({len(content)} bytes) as {key}")
        return key

    def delete(self, key: str) -> None:
        """Delete an object by key."""
        client = self._get_client()
        try:
            client.delete_object(Bucket=self._config.bucket_name, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error deleting {key} from S3: {e}")
            raise StorageError(f"S3 delete failed: {e}") from e
        logger.info(f"Deleted {key}")

    def get_signed_url(self, key: str) -> str:
        """Create a presigned GET URL for an object."""
        client = self._get_client()
        try:
            return client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self._config.bucket_name, "Key": key},
                ExpiresIn=self._config.signed_url_expiry,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error generating signed URL for {key}: {e}")
            raise StorageError(f"Failed to generate signed URL: {e}") from e

    def test_connection(self) -> None:
        """Check the bucket is visible and writable.

        Lists buckets, then writes and removes a small probe object.

        Raises:
            StorageConfigError: If storage is not configured.
            BucketNotFoundError: If the bucket is not in the listing.
            StorageError: If any S3 call fails.
        """
        client = self._get_client()
        bucket = self._config.bucket_name

        try:
            buckets = client.list_buckets().get("Buckets", [])
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"S3 connection test failed: {e}") from e

        names = [b.get("Name") for b in buckets]
        if bucket not in names:
            raise BucketNotFoundError(bucket, names)

        probe_key = f"test-connection-{_now_ms()}.txt"
        try:
            client.put_object(
                Bucket=bucket,
                Key=probe_key,
                Body=PROBE_CONTENT,
                ContentType="text/plain",
            )
            client.delete_object(Bucket=bucket, Key=probe_key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"S3 connection test failed: {e}") from e

        logger.info(f"S3 connection test passed for bucket {bucket}")


# Module-level singleton instance
_storage_service: S3StorageService | None = None


def get_storage_service() -> S3StorageService:
    """Get or create the global storage service.

    Returns:
        The S3StorageService instance.
    """
    global _storage_service
    if _storage_service is None:
        _storage_service = S3StorageService()
    return _storage_service
