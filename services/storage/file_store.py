"""
Upload file storage

Files are written under UPLOAD_DIR/<bucket>/<uuid>.<ext>.
Stored paths are generated here only; user-supplied file names never
become paths.
"""

from __future__ import annotations

import os
import uuid
from pathlib import Path


def get_upload_dir() -> Path:
    """Upload root directory"""
    return Path(os.environ.get("UPLOAD_DIR", "artifacts/uploads"))


def file_extension(file_name: str | None, default: str = "pdf") -> str:
    """
    Lower-case extension without the dot

    "Schedule.PDF" -> "pdf", "notes" -> default
    """
    if not file_name or "." not in file_name:
        return default
    ext = file_name.rsplit(".", 1)[-1].strip().lower()
    return ext or default


class FileStore:
    """Local file storage for uploaded documents"""

    def __init__(self, root: Path | None = None):
        self.root = Path(root) if root is not None else get_upload_dir()

    def save(self, bucket: str, file_name: str | None, data: bytes) -> str:
        """
        Save bytes, return the stored path relative to the root

        Args:
            bucket: folder name ("policies", "wordings")
            file_name: original name (extension only is used)
            data: file content

        Returns:
            "policies/<uuid>.pdf"
        """
        relative = f"{bucket}/{uuid.uuid4()}.{file_extension(file_name)}"
        target = self.root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        return relative

    def path_for(self, relative: str) -> Path:
        """Absolute path of a stored file"""
        return self.root / relative
