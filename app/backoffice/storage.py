from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    pass


class Storage:
    def put_bytes(self, key: str, data: bytes, *, content_type: str | None = None) -> None:
        raise NotImplementedError

    def url_for(self, key: str) -> str:
        raise NotImplementedError

    def upload_file(self, data: bytes, key: str, content_type: str | None = None) -> str:
        """Store data under key (overwriting) and return its location URI."""
        logger.info("Uploading %s bytes to %s", len(data), key)
        self.put_bytes(key, data, content_type=content_type)
        return self.url_for(key)


@dataclass(frozen=True)
class LocalStorage(Storage):
    root: Path

    def _path(self, key: str) -> Path:
        safe_key = key.lstrip("/").replace("\\", "/")
        return self.root / safe_key

    def put_bytes(self, key: str, data: bytes, *, content_type: str | None = None) -> None:
        p = self._path(key)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(data)

    def url_for(self, key: str) -> str:
        return self._path(key).resolve().as_uri()


@dataclass(frozen=True)
class S3Storage(Storage):
    endpoint: str
    region: str
    bucket: str
    access_key_id: str
    secret_access_key: str

    def _client(self):
        import boto3

        return boto3.client(
            "s3",
            endpoint_url=f"https://{self.endpoint}" if self.endpoint else None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
        )

    def put_bytes(self, key: str, data: bytes, *, content_type: str | None = None) -> None:
        from botocore.exceptions import BotoCoreError, ClientError

        extra: dict[str, object] = {}
        if content_type:
            extra["ContentType"] = content_type
        try:
            self._client().put_object(Bucket=self.bucket, Key=key, Body=data, **extra)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Upload of {key} to bucket {self.bucket} failed: {e}") from e

    def url_for(self, key: str) -> str:
        key = key.lstrip("/")
        if self.endpoint:
            return f"https://{self.endpoint}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"


def storage_from_config(config: dict) -> Storage:
    backend = (config.get("STORAGE_BACKEND") or "local").strip().lower()
    if backend == "s3":
        return S3Storage(
            endpoint=(config.get("S3_ENDPOINT") or "").strip(),
            region=(config.get("S3_REGION") or "sa-east-1").strip(),
            bucket=(config.get("S3_BUCKET") or "").strip(),
            access_key_id=(config.get("S3_ACCESS_KEY_ID") or "").strip(),
            secret_access_key=(config.get("S3_SECRET_ACCESS_KEY") or "").strip(),
        )
    # default local
    root = (config.get("STORAGE_ROOT") or "").strip()
    return LocalStorage(root=Path(root) if root else Path(os.getcwd()) / "storage")
