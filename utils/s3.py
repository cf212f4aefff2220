import logging
from io import BytesIO
from typing import Optional

from minio import Minio
from minio.error import S3Error
from urllib3.exceptions import HTTPError

from core.config import Settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    pass


class MinioStorage:
    """
    Blob storage on MinIO/S3.
    Calls are blocking; the backend client runs them in the threadpool.
    """

    def __init__(
        self,
        endpoint_url: str,
        access_key: str,
        secret_key: str,
        region: Optional[str] = None,
        secure: bool = False,
        public_base_url: Optional[str] = None,
    ):
        self.endpoint_url = endpoint_url.rstrip("/")
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None
        endpoint = endpoint_url.replace("https://", "").replace("http://", "").rstrip("/")
        self._client = Minio(
            endpoint,
            access_key=access_key,
            secret_key=secret_key,
            region=region,
            secure=secure,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "MinioStorage":
        return cls(
            settings.AWS_S3_ENDPOINT_URL,
            access_key=settings.AWS_ACCESS_KEY_ID,
            secret_key=settings.AWS_SECRET_ACCESS_KEY,
            region=settings.AWS_S3_REGION,
            secure=settings.AWS_S3_SECURE,
            public_base_url=settings.PUBLIC_STORAGE_URL,
        )

    def ensure_bucket(self, bucket_name: str) -> None:
        try:
            if not self._client.bucket_exists(bucket_name):
                self._client.make_bucket(bucket_name)
                logger.info("Created bucket %s", bucket_name)
        except (S3Error, HTTPError) as e:
            raise StorageError(f"Could not prepare bucket {bucket_name}: {e}") from e

    def put(self, bucket_name: str, path: str, data: bytes, content_type: str) -> None:
        try:
            self._client.put_object(
                bucket_name,
                path,
                BytesIO(data),
                length=len(data),
                content_type=content_type,
            )
        except (S3Error, HTTPError) as e:
            raise StorageError(f"Upload to S3 failed: {e}") from e

    def public_url(self, bucket_name: str, path: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{path}"
        return f"{self.endpoint_url}/{bucket_name}/{path}"
