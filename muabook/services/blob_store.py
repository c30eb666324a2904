"""Image storage on an S3-compatible bucket."""

from __future__ import annotations

import base64
import binascii
import logging
import re
import uuid
from dataclasses import dataclass

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from muabook.core.config import Settings
from muabook.core.errors import StorageError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_FOLDER = "uploads"
DEFAULT_IMAGE_MIME = "image/jpeg"

IMAGE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}

_FOLDER_PATTERN = re.compile(r"[A-Za-z0-9_-]+")
_STEM_PATTERN = re.compile(r"[^A-Za-z0-9_-]+")


@dataclass
class PresignedUpload:
    upload_url: str
    public_url: str
    expires_in: int

    def as_dict(self) -> dict[str, str | int]:
        return {
            "presigned_url": self.upload_url,
            "public_url": self.public_url,
            "expires_in": self.expires_in,
        }


def image_extension(mime: str) -> str:
    """Return the file extension for a supported image MIME type."""

    extension = IMAGE_EXTENSIONS.get((mime or "").strip().lower())
    if extension is None:
        raise ValidationError(f"Unsupported image type: {mime!r}")
    return extension


def normalize_folder(folder: str | None) -> str:
    if folder is None or not folder.strip():
        return DEFAULT_FOLDER
    folder = folder.strip()
    if not _FOLDER_PATTERN.fullmatch(folder):
        raise ValidationError("Folder may only contain letters, digits, '-' and '_'")
    return folder


def decode_image_base64(data: str, max_bytes: int) -> tuple[str, bytes]:
    """Decode a data URL or bare base64 string into ``(mime, bytes)``.

    Bare base64 is assumed to be JPEG. Only ``image/*`` payloads up to
    ``max_bytes`` are accepted.
    """

    if not data or not data.strip():
        raise ValidationError("Image data is empty")

    text = data.strip()
    mime = DEFAULT_IMAGE_MIME
    if text.startswith("data:"):
        header, separator, text = text.partition(",")
        if not separator:
            raise ValidationError("Invalid base64 data URL format")
        mime = header[len("data:"):].split(";", 1)[0] or DEFAULT_IMAGE_MIME

    if not mime.startswith("image/"):
        raise ValidationError(f"Invalid file type: {mime}. Only images are allowed.")

    try:
        payload = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("Invalid base64 image data") from exc

    if not payload:
        raise ValidationError("Image data is empty")
    if len(payload) > max_bytes:
        raise ValidationError(f"File too large. Maximum size is {max_bytes} bytes.")
    return mime, payload


class S3BlobStore:
    """Upload images and presign direct uploads against one bucket."""

    def __init__(
        self,
        client,
        bucket: str,
        *,
        public_base_url: str,
        presign_expiration_seconds: int = 3600,
    ) -> None:
        self._client = client
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")
        self.presign_expiration_seconds = presign_expiration_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3BlobStore":
        client = boto3.client(
            "s3",
            endpoint_url=settings.s3_endpoint_url,
            region_name=settings.s3_region,
            aws_access_key_id=settings.s3_access_key_id or None,
            aws_secret_access_key=settings.s3_secret_access_key or None,
            config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
        )
        public_base = (
            settings.s3_public_base_url
            or settings.s3_endpoint_url
            or f"https://s3.{settings.s3_region}.amazonaws.com"
        )
        return cls(
            client,
            settings.s3_bucket_name,
            public_base_url=public_base,
            presign_expiration_seconds=settings.presign_expiration_seconds,
        )

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{self.bucket}/{key}"

    def upload(self, data: bytes, mime: str, folder: str | None = None) -> str:
        """Store ``data`` under a fresh key and return its public URL."""

        key = f"{normalize_folder(folder)}/{uuid.uuid4()}.{image_extension(mime)}"
        try:
            self._client.put_object(
                Bucket=self.bucket, Key=key, Body=data, ContentType=mime
            )
        except (BotoCoreError, ClientError) as exc:
            logger.exception("image upload failed", extra={"key": key})
            raise StorageError("Failed to upload image") from exc

        logger.info("image uploaded", extra={"key": key, "size": len(data)})
        return self.public_url(key)

    def presign(
        self, file_name: str, mime: str, folder: str | None = None
    ) -> PresignedUpload:
        """Return a time-limited PUT URL for a client-side upload."""

        if not mime or not mime.startswith("image/"):
            raise ValidationError("Only image uploads are allowed")
        extension = image_extension(mime)
        stem = _STEM_PATTERN.sub("-", (file_name or "").rsplit(".", 1)[0]).strip("-")
        if not stem:
            raise ValidationError("file_name is required")

        key = f"{normalize_folder(folder)}/{uuid.uuid4()}-{stem[:64]}.{extension}"
        try:
            url = self._client.generate_presigned_url(
                "put_object",
                Params={"Bucket": self.bucket, "Key": key, "ContentType": mime},
                ExpiresIn=self.presign_expiration_seconds,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.exception("presign failed", extra={"key": key})
            raise StorageError("Failed to generate upload URL") from exc

        return PresignedUpload(
            upload_url=url,
            public_url=self.public_url(key),
            expires_in=self.presign_expiration_seconds,
        )
