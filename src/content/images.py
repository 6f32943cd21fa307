"""Photo storage for place and event covers."""

from __future__ import annotations

import logging
import shutil
import time
from abc import ABC, abstractmethod
from pathlib import Path

from greenmap.errors import ImageUploadError

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".heic"}


class ImageStorage(ABC):
    """Somewhere to put an uploaded photo and get a URL back."""

    @abstractmethod
    def upload(self, file_path: Path, folder: str) -> str:
        """Store ``file_path`` under ``folder`` and return its public URL.

        Raises ImageUploadError on failure.
        """


class LocalImageStorage(ImageStorage):
    """Copies photos under ``<root>/photos/<folder>/`` and returns file URLs."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root) / "photos"

    def upload(self, file_path: Path, folder: str) -> str:
        source = Path(file_path)
        ext = source.suffix.lower()
        if ext not in IMAGE_EXTENSIONS:
            raise ImageUploadError(f"Not an image file: {source.name}")
        if not source.is_file():
            raise ImageUploadError(f"No such file: {source}")

        target_dir = self.root / folder
        target = target_dir / f"{int(time.time() * 1000)}{ext}"
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)
        except OSError as exc:
            raise ImageUploadError(str(exc)) from exc

        logger.info("Stored photo %s as %s", source.name, target)
        return target.resolve().as_uri()
