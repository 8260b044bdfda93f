import asyncio
import logging
import posixpath
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Final
from urllib.parse import quote

import boto3
from botocore.client import Config

from filegate.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE: Final[str] = "application/octet-stream"
DEFAULT_PAGE_SIZE: Final[int] = 50
MAX_PAGE_SIZE: Final[int] = 1000
SIGNED_URL_TTL_SECONDS: Final[int] = 3600

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class ObjectSummary:
    key: str
    size: int
    last_modified: datetime | None


@dataclass(frozen=True)
class ListingPage:
    items: list[ObjectSummary]
    next_continuation_token: str | None
    is_truncated: bool


@dataclass
class ObjectDownload:
    """An opened object whose body has not been consumed yet."""

    key: str
    content_type: str
    content_length: int | None
    body: Any

    @property
    def filename(self) -> str:
        return posixpath.basename(self.key.rstrip("/")) or self.key


def clamp_page_size(raw: str | int | None) -> int:
    """Parse a ``pageSize`` query value by its leading integer, like ``12abc`` -> 12.

    Missing, non-numeric and zero values fall back to the default.
    """
    match = _LEADING_INT.match(str(raw)) if raw is not None else None
    size = int(match.group(1)) if match else 0
    if size == 0:
        return DEFAULT_PAGE_SIZE
    return max(1, min(MAX_PAGE_SIZE, size))


def attachment_disposition(filename: str) -> str:
    escaped = filename.replace("\\", "\\\\").replace('"', '\\"')
    if escaped.isascii():
        return f'attachment; filename="{escaped}"'
    fallback = escaped.encode("ascii", "replace").decode("ascii").replace("?", "_")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


class StorageService:
    """S3-compatible storage backend bound to a single bucket."""

    def __init__(self, settings: Settings | None = None, client: Any | None = None) -> None:
        self.settings = settings or get_settings()
        if client is None:
            session = boto3.session.Session()
            client = session.client(
                "s3",
                endpoint_url=str(self.settings.r2_endpoint).rstrip("/"),
                aws_access_key_id=self.settings.r2_access_key_id,
                aws_secret_access_key=self.settings.r2_secret_access_key,
                region_name=self.settings.r2_region,
                config=Config(signature_version="s3v4"),
            )
        self.client = client
        self.bucket = self.settings.r2_bucket

    async def upload_object(self, key: str, data: bytes, content_type: str | None) -> None:
        def _upload() -> None:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type or DEFAULT_CONTENT_TYPE,
            )

        await asyncio.to_thread(_upload)
        logger.info("Uploaded %s (%d bytes) to %s", key, len(data), self.bucket)

    async def list_objects(
        self,
        page_size: int = DEFAULT_PAGE_SIZE,
        continuation_token: str | None = None,
    ) -> ListingPage:
        params: dict[str, Any] = {"Bucket": self.bucket, "MaxKeys": page_size}
        if continuation_token:
            params["ContinuationToken"] = continuation_token

        resp = await asyncio.to_thread(lambda: self.client.list_objects_v2(**params))
        items = [
            ObjectSummary(
                key=obj["Key"],
                size=obj.get("Size", 0),
                last_modified=obj.get("LastModified"),
            )
            for obj in resp.get("Contents") or []
        ]
        return ListingPage(
            items=items,
            next_continuation_token=resp.get("NextContinuationToken") or None,
            is_truncated=bool(resp.get("IsTruncated")),
        )

    async def delete_objects(self, keys: list[str]) -> dict[str, Any]:
        def _delete() -> dict[str, Any]:
            return self.client.delete_objects(
                Bucket=self.bucket,
                Delete={"Objects": [{"Key": key} for key in keys]},
            )

        resp = await asyncio.to_thread(_delete)
        logger.info("Deleted batch of %d keys from %s", len(keys), self.bucket)
        return resp

    def create_presigned_get(self, key: str, expires_in: int = SIGNED_URL_TTL_SECONDS) -> str:
        return self.client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=expires_in,
        )

    async def open_object(self, key: str) -> ObjectDownload:
        resp = await asyncio.to_thread(
            lambda: self.client.get_object(Bucket=self.bucket, Key=key)
        )
        return ObjectDownload(
            key=key,
            content_type=resp.get("ContentType") or DEFAULT_CONTENT_TYPE,
            content_length=resp.get("ContentLength") or None,
            body=resp.get("Body"),
        )


_storage_service: StorageService | None = None


def get_storage_service() -> StorageService:
    global _storage_service
    if _storage_service is None:
        _storage_service = StorageService()
    return _storage_service


def reset_storage_service() -> None:
    global _storage_service
    _storage_service = None
