"""Spool multipart uploads to local temp files for the media storage"""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from videotube.config import settings
from videotube.core.exceptions import BadRequestError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_SUFFIXES = {".jpg", ".jpeg", ".png", ".gif", ".webp"}


def save_upload_to_temp(upload: Optional[UploadFile]) -> Optional[str]:
    """
    Write an uploaded image to a temp file and return its path

    Returns None when no file was sent. The media storage removes the temp
    file once it has consumed it.
    """
    if upload is None or not upload.filename:
        return None

    suffix = Path(upload.filename).suffix.lower()
    if suffix not in ALLOWED_IMAGE_SUFFIXES:
        raise BadRequestError(f"Unsupported image type '{suffix or upload.filename}'")

    max_bytes = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
    fd, path = tempfile.mkstemp(suffix=suffix, prefix="upload_")
    try:
        with os.fdopen(fd, "wb") as out:
            shutil.copyfileobj(upload.file, out)
        if os.path.getsize(path) > max_bytes:
            raise BadRequestError(f"File exceeds {settings.MAX_UPLOAD_SIZE_MB} MB limit")
    except BaseException:
        os.remove(path)
        raise

    logger.debug(f"Spooled upload {upload.filename} to {path}")
    return path


def discard_temp(*paths: Optional[str]) -> None:
    """Remove spooled files the media storage did not consume"""
    for path in paths:
        if path and os.path.exists(path):
            os.remove(path)
