"""
Media binding: staged local uploads to durable objects on the media host.

The media host is any S3 compatible store. Objects are keyed
``<public_id><ext>`` and served from ``settings.media_base_url``, so the
public id of an asset can always be recovered from its URL.
"""

import json
import os
import subprocess
import uuid
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Optional
from urllib.parse import urlparse

import boto3
import boto3.exceptions
from botocore.exceptions import BotoCoreError, ClientError

from vidtube.config import settings
from vidtube.exceptions import UploadError
from vidtube.services.logging_service import app_logger

TRANSPORT_ERRORS = (BotoCoreError, ClientError, boto3.exceptions.Boto3Error)


@dataclass
class UploadedAsset:
    """A file stored on the media host."""
    url: str
    public_id: str
    duration: float = 0.0


def public_id_from_url(url: str) -> Optional[str]:
    """Last path segment of an asset URL without its extension."""
    if not url:
        return None
    segment = urlparse(url).path.rstrip("/").split("/")[-1]
    public_id = segment.split(".")[0]
    return public_id or None


def probe_duration(local_path: str) -> float:
    """
    Duration of a media file in seconds, read with ffprobe.

    Returns 0.0 when ffprobe is unavailable or cannot read the file.
    """
    try:
        result = subprocess.run(
            [
                "ffprobe", "-v", "quiet", "-print_format", "json",
                "-show_format", local_path,
            ],
            capture_output=True, text=True, timeout=30,
        )
    except (OSError, subprocess.SubprocessError) as e:
        app_logger.warning("ffprobe failed", path=local_path, error=str(e))
        return 0.0

    if result.returncode != 0:
        return 0.0
    try:
        probe = json.loads(result.stdout or "{}")
        return float(probe.get("format", {}).get("duration") or 0.0)
    except (ValueError, TypeError):
        return 0.0


def remove_local_file(local_path: Optional[str]) -> None:
    if local_path and os.path.exists(local_path):
        try:
            os.remove(local_path)
        except OSError as e:
            app_logger.warning("Could not remove staged upload", path=local_path, error=str(e))


class MediaStorage:
    """Upload, replace and delete assets on the media host."""

    def __init__(self, client: Any = None, bucket: Optional[str] = None, base_url: Optional[str] = None):
        self.client = client or boto3.client(
            "s3",
            region_name=settings.AWS_REGION,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
            endpoint_url=settings.S3_ENDPOINT_URL,
        )
        self.bucket = bucket or settings.S3_BUCKET
        self.base_url = (base_url or settings.media_base_url).rstrip("/")

    def upload_asset(self, local_path: str, probe: bool = False) -> UploadedAsset:
        """
        Upload a staged file. The local file is removed whether or not the
        upload succeeds.

        Args:
            local_path: Path of the staged file
            probe: Read the media duration before uploading

        Returns:
            The stored asset

        Raises:
            UploadError: If the file is missing or the media host rejects it
        """
        try:
            if not local_path or not os.path.exists(local_path):
                raise UploadError("Local file is missing")

            duration = probe_duration(local_path) if probe else 0.0
            public_id = uuid.uuid4().hex
            extension = os.path.splitext(local_path)[1].lower()
            key = f"{public_id}{extension}"

            try:
                self.client.upload_file(local_path, self.bucket, key)
            except TRANSPORT_ERRORS as e:
                app_logger.error("Upload to media host failed", key=key, error=str(e))
                raise UploadError(f"Error while uploading file: {e}")

            app_logger.info("Uploaded asset", key=key, bucket=self.bucket)
            return UploadedAsset(url=f"{self.base_url}/{key}", public_id=public_id, duration=duration)
        finally:
            remove_local_file(local_path)

    def delete_asset(self, url: Optional[str]) -> bool:
        """
        Delete every object stored under the public id of ``url``.

        Failures are logged and reported as False, never raised.
        """
        public_id = public_id_from_url(url)
        if not public_id:
            return False
        try:
            listing = self.client.list_objects_v2(Bucket=self.bucket, Prefix=public_id)
            deleted = False
            for item in listing.get("Contents", []):
                key = item["Key"]
                if key.split(".")[0] != public_id:
                    continue
                self.client.delete_object(Bucket=self.bucket, Key=key)
                deleted = True
            if deleted:
                app_logger.info("Deleted asset", public_id=public_id)
            return deleted
        except TRANSPORT_ERRORS as e:
            app_logger.warning("Could not delete asset from media host", public_id=public_id, error=str(e))
            return False

    def replace_asset(
        self,
        local_path: str,
        old_url: Optional[str],
        on_uploaded: Optional[Callable[[UploadedAsset], Any]] = None,
        probe: bool = False
    ) -> UploadedAsset:
        """
        Upload a new asset, then delete the one it supersedes.

        ``on_uploaded`` persists the new URL. If it fails, the new asset is
        deleted again and the old one is kept.
        """
        asset = self.upload_asset(local_path, probe=probe)
        if on_uploaded is not None:
            try:
                on_uploaded(asset)
            except Exception:
                self.delete_asset(asset.url)
                raise
        if old_url:
            self.delete_asset(old_url)
        return asset


@lru_cache()
def get_media_storage() -> MediaStorage:
    """FastAPI dependency returning the process-wide media storage."""
    return MediaStorage()
