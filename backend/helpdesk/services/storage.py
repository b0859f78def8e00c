# =============================================================================
# HELPDESK API - FILE STORAGE
# =============================================================================
# Storage collaborator for attachments and data entry images.
#   upload(data, original_name, destination) -> {"filename": ...}
#   remove(filename)
#   url_for(filename)
# LocalStorage writes under UPLOAD_DIR, served by the app at /uploads.
# =============================================================================

import logging
import os
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Optional

from ..config import config

logger = logging.getLogger(__name__)


class StorageBackend(ABC):
    """Interface of the storage collaborator."""

    @abstractmethod
    def upload(self, data: bytes, original_name: str, destination: str) -> Dict[str, str]:
        """Store data under destination; returns {"filename": stored name}."""
        pass

    @abstractmethod
    def remove(self, filename: str) -> None:
        pass

    @abstractmethod
    def url_for(self, filename: str) -> str:
        pass


class LocalStorage(StorageBackend):
    """
    Files on local disk.

    The returned filename is the path relative to the upload root
    (e.g. 'tickets/20260101120000_ab12cd34.pdf'); it is the opaque value
    persisted as stored_name.
    """

    def __init__(self, base_dir: Optional[str] = None, base_url: Optional[str] = None):
        self.base_dir = os.path.abspath(base_dir or config.UPLOAD_DIR)
        self.base_url = (base_url or config.PUBLIC_BASE_URL).rstrip('/')

    def _path(self, filename: str) -> str:
        path = os.path.abspath(os.path.join(self.base_dir, filename))
        if os.path.commonpath([path, self.base_dir]) != self.base_dir:
            raise ValueError(f"Invalid storage filename: {filename}")
        return path

    def upload(self, data: bytes, original_name: str, destination: str) -> Dict[str, str]:
        """
        Write data under destination with a unique name.

        Raises:
            OSError: if the file cannot be written
        """
        ext = os.path.splitext(original_name or '')[1].lower()
        unique_name = f"{datetime.now().strftime('%Y%m%d%H%M%S')}_{uuid.uuid4().hex[:8]}{ext}"
        filename = f"{destination.strip('/')}/{unique_name}" if destination else unique_name

        path = self._path(filename)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'wb') as f:
            f.write(data)

        logger.debug(f"Stored {original_name} as {filename} ({len(data)} bytes)")
        return {"filename": filename}

    def remove(self, filename: str) -> None:
        """
        Delete a stored file.

        Raises:
            OSError: if the file cannot be removed (missing files included)
        """
        os.remove(self._path(filename))

    def url_for(self, filename: str) -> str:
        return f"{self.base_url}/{filename}"
