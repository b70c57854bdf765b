"""Storage uploads and removals."""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional

from ..models.errors import INVALID_STORAGE_KEY, ValidationError
from ..models.result import Result
from .base import AsyncBaseResource

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9\-.]")

GENERATIVE_PREFIX = "generative-layers"
GENERATIVE_ROOT = "generative-source"


def sanitize_file_name(name: str) -> str:
    """Spaces become hyphens, then anything outside ``[A-Za-z0-9-.]`` is dropped.

    >>> sanitize_file_name("My Photo!!.PNG")
    'My-Photo.PNG'
    """
    return _UNSAFE_FILENAME_CHARS.sub("", name.replace(" ", "-"))


def is_valid_key(key: str) -> bool:
    """A storage key is ``prefix/fileId/fileName``: at least three segments."""
    return len(key.split("/")) >= 3


class StorageResource(AsyncBaseResource):
    """Signed upload URLs and file deletion."""

    async def upload(
        self,
        name: str = "Mint-demo",
        mime_type: str = "image/png",
        kind: str = "image",
        folder: str = "folder",
        project_id: str = "",
    ) -> Result[Any]:
        """Request an upload URL for a file.

        Non-image kinds (generative layers) are placed under the project's
        layer prefix with the vendor's file id generation disabled.

        Returns:
            The ``data`` member of the vendor response on success
        """
        body: Dict[str, Any] = {
            "name": sanitize_file_name(name),
            "type": mime_type,
        }
        if kind != "image":
            body.update(
                {
                    "prefix": f"{GENERATIVE_PREFIX}/{project_id}",
                    "skip_file_id_generation": True,
                    "root_directory": GENERATIVE_ROOT,
                }
            )

        result = await self._post("storage/upload-url", body)
        return result.map(lambda payload: payload.get("data") if isinstance(payload, dict) else None)

    async def remove(self, key: Optional[str] = "") -> Result[Any]:
        """Delete a stored file by its ``prefix/fileId/fileName`` key."""
        if not key or not is_valid_key(key):
            return Result.err(ValidationError(INVALID_STORAGE_KEY, field="key", code="INVALID_KEY"))

        segments = key.split("/")
        file_id, file_name = segments[1], segments[2]
        logger.info("Removing storage file %s/%s", file_id, file_name)
        return await self._delete(f"storage/{file_id}/{file_name}")


__all__ = ["StorageResource", "is_valid_key", "sanitize_file_name"]
