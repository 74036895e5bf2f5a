# src/storage/file_manager.py

"""All-or-nothing file writes for tracker artifacts."""

import logging
import os
import tempfile
from pathlib import Path

from src.exceptions import PersistenceError

logger = logging.getLogger("flight_tracker.storage")


class FileManager:
    """Writes whole documents via write-to-temp-then-rename.

    A reader of the target path sees either the old document or the
    new one, never a partially written file.
    """

    @staticmethod
    def write_atomic(path: Path, content: str) -> Path:
        """Replace *path* with *content* atomically.

        Raises:
            PersistenceError: If the directory or file cannot be written.
        """
        tmp_name: str | None = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as exc:
            raise PersistenceError(path, str(exc)) from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.debug("Could not remove temp file %s", tmp_name)

        logger.debug("Wrote %d characters to %s", len(content), path)
        return path

    @staticmethod
    def write_readme(path: Path, content: str) -> Path:
        """Overwrite the rendered README wholesale."""
        FileManager.write_atomic(path, content)
        logger.info("README updated at %s", path)
        return path
