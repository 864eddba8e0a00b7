"""Object storage for avatar and cover images"""

from __future__ import annotations

import logging
import os
import secrets
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from videotube.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadResult:
    """Outcome of an upload: `url` on success, `reason` on failure."""

    ok: bool
    url: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def success(cls, url: str) -> "UploadResult":
        return cls(ok=True, url=url)

    @classmethod
    def failure(cls, reason: str) -> "UploadResult":
        return cls(ok=False, reason=reason)


class MediaStorage(Protocol):
    def upload(self, local_path: Optional[str]) -> UploadResult:
        ...


class LocalMediaStorage:
    """Copies uploads under MEDIA_ROOT and serves them from MEDIA_BASE_URL.

    The local source file is always removed afterwards, whether or not the
    upload succeeded.
    """

    def __init__(self, root: Optional[str] = None, base_url: Optional[str] = None):
        self.root = Path(root or settings.get_media_root())
        self.base_url = (base_url if base_url is not None else settings.MEDIA_BASE_URL).rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    def upload(self, local_path: Optional[str]) -> UploadResult:
        if not local_path:
            return UploadResult.failure("No file provided")

        source = Path(local_path)
        try:
            if not source.is_file() or source.stat().st_size == 0:
                return UploadResult.failure("File is missing or empty")

            name = f"{secrets.token_hex(16)}{source.suffix.lower()}"
            shutil.copyfile(source, self.root / name)
        except OSError as exc:
            logger.error(f"Media upload failed for {source.name}: {exc}")
            return UploadResult.failure("Upload failed")
        finally:
            _remove_quietly(source)

        logger.info(f"Stored media file {name}")
        return UploadResult.success(f"{self.base_url}/{name}")


def _remove_quietly(path: Path) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning(f"Could not remove temporary upload {path}: {exc}")


media_storage = LocalMediaStorage()
