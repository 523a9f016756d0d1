"""Upload staging: multipart files are written to a temp directory before reaching a handler."""

import os
import uuid
from typing import Generator, List, Optional

from fastapi import UploadFile

from vidtube.config import settings
from vidtube.exceptions import ValidationError
from vidtube.services.media_service import remove_local_file

CHUNK_SIZE = 1024 * 1024


class UploadStage:
    """
    Staged files of one request.

    Every file staged here is removed when the request finishes, including
    files the media binding did not get to upload.

    Reads are blocking; handlers are plain functions, so FastAPI runs them
    in its threadpool.
    """

    def __init__(self, directory: str, max_bytes: int):
        self.directory = directory
        self.max_bytes = max_bytes
        self.paths: List[str] = []

    def save(self, upload: Optional[UploadFile]) -> Optional[str]:
        """
        Write an uploaded file to the staging directory.

        Returns:
            The staged path, or None when no file was sent

        Raises:
            ValidationError: If the file exceeds the upload size limit
        """
        if upload is None or not upload.filename:
            return None

        os.makedirs(self.directory, exist_ok=True)
        extension = os.path.splitext(upload.filename)[1].lower()
        path = os.path.join(self.directory, f"{uuid.uuid4().hex}{extension}")
        self.paths.append(path)

        size = 0
        with open(path, "wb") as staged:
            while True:
                chunk = upload.file.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > self.max_bytes:
                    raise ValidationError(f"File exceeds the {settings.MAX_UPLOAD_MB} MB upload limit")
                staged.write(chunk)
        return path

    def cleanup(self) -> None:
        for path in self.paths:
            remove_local_file(path)
        self.paths = []


def get_upload_stage() -> Generator[UploadStage, None, None]:
    """FastAPI dependency yielding a per-request staging area."""
    stage = UploadStage(settings.UPLOAD_TEMP_DIR, settings.MAX_UPLOAD_MB * 1024 * 1024)
    try:
        yield stage
    finally:
        stage.cleanup()
