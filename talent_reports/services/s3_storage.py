"""AWS S3 storage service for rendered report artifacts."""
import logging
from typing import Optional

import boto3
from botocore.exceptions import ClientError, NoCredentialsError

from talent_reports.config import get_settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when an artifact cannot be written to object storage."""


class S3Storage:
    """Service for AWS S3 artifact storage."""

    def __init__(self):
        self.settings = get_settings()
        self._client = None

    @property
    def client(self):
        """Lazy initialization of S3 client."""
        if self._client is None:
            self._client = boto3.client(
                "s3",
                aws_access_key_id=self.settings.aws_access_key_id or None,
                aws_secret_access_key=self.settings.aws_secret_access_key or None,
                region_name=self.settings.aws_region,
            )
        return self._client

    @property
    def bucket(self) -> str:
        """Get configured bucket name."""
        return self.settings.s3_bucket

    async def health_check(self) -> tuple[bool, Optional[str]]:
        """Check if S3 connection is healthy."""
        try:
            self.client.head_bucket(Bucket=self.bucket)
            return True, None
        except NoCredentialsError:
            return False, "No AWS credentials configured"
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code == "404":
                return False, f"Bucket '{self.bucket}' not found"
            return False, str(e)
        except Exception as e:
            return False, str(e)

    def exists(self, key: str) -> bool:
        """True when an object is stored under key."""
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return False
            raise

    def upload_document(
        self,
        key: str,
        content: bytes,
        content_type: str = "application/octet-stream",
        metadata: Optional[dict] = None,
        overwrite: bool = True,
    ) -> str:
        """Upload an artifact and return its key.

        Raises StorageError on any failure, and when ``overwrite`` is False
        and the key is already taken.
        """
        try:
            if not overwrite and self.exists(key):
                raise StorageError(f"Object already exists: {key}")

            extra_args = {"ContentType": content_type}
            if metadata:
                extra_args["Metadata"] = {k: str(v) for k, v in metadata.items()}

            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=content,
                **extra_args
            )
            logger.info(f"Uploaded document: {key}")
            return key
        except StorageError:
            raise
        except ClientError as e:
            err = e.response.get("Error", {})
            if err.get("Code") == "SignatureDoesNotMatch":
                logger.error(
                    "Failed to upload %s: %s. Check AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY "
                    "(no trailing spaces/newlines), AWS_REGION, and S3 bucket permissions.",
                    key, e,
                )
            else:
                logger.error(f"Failed to upload {key}: {e}")
            raise StorageError(f"Storage upload failed: {e}") from e
        except NoCredentialsError as e:
            logger.error(f"Failed to upload {key}: {e}")
            raise StorageError("Storage upload failed: no AWS credentials configured") from e

    def generate_presigned_url(
        self,
        key: str,
        expiration: int = 3600
    ) -> Optional[str]:
        """Generate a time-limited read URL for a stored artifact."""
        try:
            url = self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expiration
            )
            return url
        except Exception as e:
            logger.error(f"Failed to generate presigned URL for {key}: {e}")
            return None


# Singleton instance
_s3_storage: Optional[S3Storage] = None


def get_s3_storage() -> S3Storage:
    """Get or create S3 storage singleton."""
    global _s3_storage
    if _s3_storage is None:
        _s3_storage = S3Storage()
    return _s3_storage
