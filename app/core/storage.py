"""Local file storage for uploaded OMR sheets and answer keys."""

import logging
import os
import tempfile
from pathlib import Path, PurePosixPath

from app.core.config import settings
from app.core.exceptions import StorageError

logger = logging.getLogger(__name__)

OMR_CATEGORY = "omr"
ANSWER_KEY_CATEGORY = "answer-keys"

OMR_PREFIX = "omr"
ANSWER_KEY_PREFIX = "answer_key"


def stored_file_name(prefix: str, key: str, extension: str) -> str:
    """Deterministic name: one physical file per key and category."""
    return f"{prefix}_{key}{extension.lower()}"


class FileStorage:
    """
    Stores files under ``UPLOAD_DIR/<category>/`` and hands out paths relative
    to the upload root, which is what the database records keep.
    """

    def __init__(self, root: Path | None = None):
        self.root = Path(root) if root is not None else Path(settings.UPLOAD_DIR)

    def resolve(self, relative_path: str) -> Path:
        """Absolute path for a stored relative path; refuses to leave the root."""
        root = self.root.resolve()
        candidate = (root / PurePosixPath(relative_path.lstrip("/"))).resolve()
        if root != candidate and root not in candidate.parents:
            raise StorageError("Invalid stored file path", details={"path": relative_path})
        return candidate

    def exists(self, relative_path: str | None) -> bool:
        if not relative_path:
            return False
        return self.resolve(relative_path).is_file()

    def save(self, category: str, file_name: str, content: bytes) -> str:
        """
        Write content to ``<category>/<file_name>``.

        Data goes to a temporary file in the target directory first and is then
        renamed over the canonical path, so a crash never leaves a partial file
        at the canonical name.
        """
        relative_path = f"{category}/{file_name}"
        target = self.resolve(relative_path)
        directory = target.parent
        tmp_name = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                dir=directory,
                prefix=".upload-",
                suffix=".part",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(content)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, target)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.error(f"[STORAGE] Failed to write {relative_path}: {e}")
            raise StorageError("Failed to store uploaded file", details={"path": relative_path})

        logger.debug(f"[STORAGE] Wrote {len(content)} bytes to {relative_path}")
        return relative_path

    def delete(self, relative_path: str | None) -> bool:
        """Delete a stored file. Returns False when there was nothing to delete."""
        if not relative_path:
            return False
        path = self.resolve(relative_path)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(f"[STORAGE] Failed to delete {relative_path}: {e}")
            raise StorageError("Failed to delete stored file", details={"path": relative_path})
        logger.debug(f"[STORAGE] Deleted {relative_path}")
        return True
