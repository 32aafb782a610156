"""Local directory blob store for chat attachments."""

import os
import logging
from typing import Optional
import uuid
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "./uploads")


class FileStore:
    """Stores opaque blobs on disk, keyed by a generated storage ID."""

    def __init__(self, root: Optional[str] = None):
        self.root = root or UPLOAD_DIR

    def _path(self, storage_id: str) -> str:
        # Storage IDs are generated here; reject anything that could escape root
        if not storage_id or os.path.basename(storage_id) != storage_id:
            raise ValueError(f"Invalid storage id: {storage_id!r}")
        return os.path.join(self.root, storage_id)

    def save(self, data: bytes) -> str:
        """Write a blob and return its storage ID."""
        os.makedirs(self.root, exist_ok=True)
        storage_id = uuid.uuid4().hex
        with open(self._path(storage_id), "wb") as f:
            f.write(data)
        logger.debug(f"Stored blob {storage_id} ({len(data)} bytes)")
        return storage_id

    def read(self, storage_id: str) -> bytes:
        with open(self._path(storage_id), "rb") as f:
            return f.read()

    def delete(self, storage_id: str) -> bool:
        """Remove a blob. Returns False if it did not exist."""
        path = self._path(storage_id)
        if not os.path.exists(path):
            return False
        os.remove(path)
        return True
