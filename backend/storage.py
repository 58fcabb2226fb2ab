"""File storage — the on-disk side of a session.

Handles are plain file names relative to the storage root. Deletion is
best-effort: a missing file or an OS error never propagates.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

TEMP_PREFIX = ".incoming-"


class FileStorage:
    def __init__(self, root: Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, handle: str) -> Path:
        return self.root / handle

    def exists(self, handle: str) -> bool:
        return self.path_for(handle).is_file()

    def delete(self, handle: str) -> bool:
        """Remove the file behind ``handle``. Returns True if something was deleted."""
        path = self.path_for(handle)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning("Could not delete %s: %s", path, e)
            return False
        return True

    def handles(self) -> list[str]:
        """Stored files on disk, excluding uploads still being written."""
        if not self.root.exists():
            return []
        return [
            entry.name
            for entry in self.root.iterdir()
            if entry.is_file() and not entry.name.startswith(TEMP_PREFIX)
        ]
