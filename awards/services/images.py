"""Participant image uploads to S3 compatible object storage."""
from __future__ import annotations

import logging
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from sqlalchemy.orm import Session

from awards.core.config import Settings, get_settings
from awards.services.catalog import get_participant

logger = logging.getLogger(__name__)


class ImageUploadError(RuntimeError):
    """Base exception for image upload errors."""


class UnsupportedImageTypeError(ImageUploadError):
    """Raised when the upload is not an image."""


class ImageTooLargeError(ImageUploadError):
    """Raised when the upload exceeds the configured size limit."""


class ImageStorageError(ImageUploadError):
    """Raised when object storage rejects the upload."""


@dataclass(slots=True, frozen=True)
class ImageUploadResult:
    participant_id: str
    key: str
    public_url: str


class ParticipantImageService:
    """Stores participant pictures and records their public URL."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        s3_client_factory: Callable[[], Any] | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._s3_client_factory = s3_client_factory or self._default_s3_client
        self._s3_client: Any | None = None
        self._bucket_ready = False

    def _default_s3_client(self) -> Any:
        return boto3.client(
            "s3",
            region_name=self._settings.aws_region,
            endpoint_url=self._settings.s3_endpoint_url,
        )

    def _get_s3_client(self) -> Any:
        if self._s3_client is None:
            self._s3_client = self._s3_client_factory()
        return self._s3_client

    def _ensure_bucket(self) -> None:
        if self._bucket_ready:
            return
        client = self._get_s3_client()
        bucket = self._settings.image_bucket
        try:
            client.head_bucket(Bucket=bucket)
        except ClientError:
            client.create_bucket(Bucket=bucket)
        self._bucket_ready = True

    def validate(self, *, data: bytes, content_type: str | None) -> None:
        if not content_type or not content_type.lower().startswith("image/"):
            raise UnsupportedImageTypeError("Only image files are accepted")
        if len(data) > self._settings.max_image_bytes:
            limit_mb = self._settings.max_image_bytes // (1024 * 1024)
            raise ImageTooLargeError(f"Images must be at most {limit_mb}MB")

    def build_key(self, filename: str | None, content_type: str) -> str:
        if filename and "." in filename:
            extension = filename.rsplit(".", 1)[-1].lower()
        else:
            extension = content_type.split("/", 1)[-1].lower()
        stamp = int(time.time() * 1000)
        return f"{self._settings.image_prefix}/{stamp}-{secrets.token_hex(4)}.{extension}"

    def public_url(self, key: str) -> str:
        base = self._settings.image_public_base_url
        if base:
            return f"{base.rstrip('/')}/{key}"
        endpoint = self._settings.s3_endpoint_url
        if endpoint:
            return f"{endpoint.rstrip('/')}/{self._settings.image_bucket}/{key}"
        return f"https://{self._settings.image_bucket}.s3.{self._settings.aws_region}.amazonaws.com/{key}"

    def upload(
        self,
        session: Session,
        *,
        participant_id: str,
        data: bytes,
        filename: str | None,
        content_type: str | None,
    ) -> ImageUploadResult:
        participant = get_participant(session, participant_id=participant_id)
        self.validate(data=data, content_type=content_type)
        content_type = content_type or ""
        key = self.build_key(filename, content_type)

        try:
            self._ensure_bucket()
            self._get_s3_client().put_object(
                Bucket=self._settings.image_bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                Metadata={"participant_id": participant.id},
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error(
                "participant image upload failed",
                extra={"participant_id": participant.id, "key": key, "error": str(exc)},
            )
            raise ImageStorageError("The image could not be stored") from exc

        url = self.public_url(key)
        participant.image_url = url
        session.commit()
        logger.info("participant image stored", extra={"participant_id": participant_id, "key": key})
        return ImageUploadResult(participant_id=participant_id, key=key, public_url=url)


__all__ = [
    "ImageStorageError",
    "ImageTooLargeError",
    "ImageUploadError",
    "ImageUploadResult",
    "ParticipantImageService",
    "UnsupportedImageTypeError",
]
