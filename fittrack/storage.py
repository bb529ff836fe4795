import logging
import mimetypes
import os
import uuid
from dataclasses import dataclass
from typing import List, Optional

logger = logging.getLogger(__name__)


class LocalStorage:
    """Object storage on the local filesystem, served under `base_url`."""

    def __init__(self, root: str, base_url: str) -> None:
        self.root = root
        self.base_url = base_url.rstrip("/")
        os.makedirs(self.root, exist_ok=True)

    def upload(self, data: bytes, content_type: Optional[str], destination: str) -> str:
        path = os.path.normpath(destination).lstrip(os.sep)
        if path.startswith(".."):
            raise ValueError(f"destination escapes storage root: {destination}")
        full = os.path.join(self.root, path)
        os.makedirs(os.path.dirname(full), exist_ok=True)
        with open(full, "wb") as f:
            f.write(data)
        logger.debug("Stored %d bytes (%s) at %s", len(data), content_type, full)
        return f"{self.base_url}/{path.replace(os.sep, '/')}"


def object_name(folder: str, filename: Optional[str], content_type: Optional[str]) -> str:
    """Unique destination path that keeps the original extension."""
    ext = os.path.splitext(filename or "")[1]
    if not ext and content_type:
        ext = mimetypes.guess_extension(content_type) or ""
    return f"{folder}/{uuid.uuid4().hex}{ext.lower()}"


@dataclass
class Upload:
    filename: Optional[str]
    content_type: Optional[str]
    data: bytes


def store_all(storage: LocalStorage, folder: str, uploads: List[Upload]) -> List[str]:
    return [storage.upload(u.data, u.content_type, object_name(folder, u.filename, u.content_type)) for u in uploads]
