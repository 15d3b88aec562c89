"""Backend and storage configuration with environment variable loading.

Pydantic-based configuration for the chat backend client and the S3
document store.
"""

import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)


class ApiConfig(BaseModel):
    """Configuration for the chat backend connection.

    Attributes:
        host: Backend host and port, without scheme (e.g. "10.0.0.5:8000").
        default_api_key: API key pre-filled in the connection form.
        use_proxy: Route backend calls through the local /api/proxy route.
        proxy_base_url: Base URL of this application when proxying.
        request_timeout: Timeout for backend requests, in seconds.
        auth_api_url: Base URL of the authentication service.
    """

    host: str = Field(
        default_factory=lambda: os.getenv("API_HOST", "localhost:8000"),
        description="Chat backend host",
    )
    default_api_key: str = Field(
        default_factory=lambda: os.getenv("DEFAULT_API_KEY", ""),
        description="Default API key for the chat backend",
    )
    use_proxy: bool = Field(
        default_factory=lambda: os.getenv("APP_ENV", "production").lower() == "development",
        description="Send backend calls through the local proxy route",
    )
    proxy_base_url: str = Field(
        default_factory=lambda: os.getenv("API_BASE_URL", "http://localhost:8000"),
        description="Base URL of this application's API",
    )
    request_timeout: float = Field(
        default=15.0,
        gt=0.0,
        le=300.0,
        description="Backend request timeout in seconds",
    )
    auth_api_url: str = Field(
        default_factory=lambda: os.getenv("AUTH_API_URL", "http://localhost:8000/api"),
        description="Authentication service base URL",
    )

    @field_validator("host")
    @classmethod
    def normalize_host(cls, v: str) -> str:
        """Strip scheme and trailing slash; reject an empty host."""
        v = v.strip()
        for scheme in ("http://", "https://"):
            if v.lower().startswith(scheme):
                v = v[len(scheme):]
        v = v.rstrip("/")
        if not v:
            raise ValueError("API host required. Set API_HOST in .env")
        return v


class StorageConfig(BaseModel):
    """Configuration for S3 document storage.

    Attributes:
        region: AWS region of the bucket.
        access_key_id: AWS access key id.
        secret_access_key: AWS secret access key.
        bucket_name: Bucket receiving uploads.
        signed_url_expiry: Lifetime of presigned download URLs, in seconds.
        max_upload_size: Largest accepted upload, in bytes.
    """

    region: str = Field(default_factory=lambda: os.getenv("AWS_REGION", ""))
    access_key_id: str = Field(default_factory=lambda: os.getenv("AWS_ACCESS_KEY_ID", ""))
    secret_access_key: str = Field(
        default_factory=lambda: os.getenv("AWS_SECRET_ACCESS_KEY", "")
    )
    bucket_name: str = Field(default_factory=lambda: os.getenv("AWS_BUCKET_NAME", ""))
    signed_url_expiry: int = Field(default=3600, ge=1, le=604800)
    max_upload_size: int = Field(default=10 * 1024 * 1024, ge=1)

    def is_valid(self) -> bool:
        """Check that every credential needed to reach the bucket is set."""
        return all(
            (self.region, self.access_key_id, self.secret_access_key, self.bucket_name)
        )

    def field_status(self) -> dict[str, bool]:
        """Report which credentials are set, without exposing their values."""
        return {
            "region": bool(self.region),
            "accessKeyId": bool(self.access_key_id),
            "secretAccessKey": bool(self.secret_access_key),
            "bucketName": bool(self.bucket_name),
        }


def get_api_config() -> ApiConfig:
    """Create backend configuration from environment.

    Returns:
        Configured ApiConfig instance.

    Raises:
        ValueError: If API_HOST is set but blank.
    """
    return ApiConfig()


def get_storage_config() -> StorageConfig:
    """Create storage configuration from environment.

    Returns:
        Configured StorageConfig instance (possibly incomplete).
    """
    return StorageConfig()


def log_config_status(api_config: ApiConfig, storage_config: StorageConfig) -> None:
    """Log which parts of the configuration are present (never the values)."""
    logger.info(
        f"App configuration status: storage_configured={storage_config.is_valid()}, "
        f"api_host_configured={bool(api_config.host)}, proxy={api_config.use_proxy}"
    )
