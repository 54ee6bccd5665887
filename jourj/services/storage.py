"""
Local file storage for uploaded documents.
Stores bytes under UPLOAD_DIR and hands back a URL the front end can open.
"""
import os
import uuid
import logging
from typing import Optional

from jourj.config import get_settings

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {
    ".txt", ".csv", ".json", ".md",
    ".pdf", ".xlsx", ".xls", ".docx", ".doc", ".pptx",
    ".jpg", ".jpeg", ".png", ".gif", ".webp",
    ".mp3", ".wav", ".mp4", ".mov", ".zip",
}


class StorageError(Exception):
    pass


class LocalFileStorage:
    def __init__(self, root: Optional[str] = None, base_url: Optional[str] = None):
        settings = get_settings()
        self.root = root or settings.UPLOAD_DIR
        self.base_url = (base_url or settings.PUBLIC_BASE_URL).rstrip("/")

    def build_path(self, event_id: int, filename: str) -> str:
        ext = os.path.splitext(filename or "file")[1].lower()
        return f"{event_id}/{uuid.uuid4().hex}{ext}"

    def absolute_path(self, path: str) -> str:
        """Resolve a stored path, refusing anything outside the storage root"""
        full = os.path.realpath(os.path.join(self.root, path))
        if not full.startswith(os.path.realpath(self.root) + os.sep):
            raise StorageError(f"Path escapes storage root: {path}")
        return full

    def save(self, path: str, content: bytes) -> str:
        full = self.absolute_path(path)
        os.makedirs(os.path.dirname(full), exist_ok=True)
        with open(full, "wb") as f:
            f.write(content)
        logger.info(f"Stored {len(content)} bytes at {path}")
        return path

    def exists(self, path: str) -> bool:
        return os.path.exists(self.absolute_path(path))

    def delete(self, path: str) -> None:
        try:
            os.remove(self.absolute_path(path))
        except FileNotFoundError:
            logger.warning(f"File already deleted: {path}")

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/api/documents/files/{path}"


def get_storage() -> LocalFileStorage:
    """FastAPI dependency; overridden in tests with a temp directory"""
    return LocalFileStorage()
