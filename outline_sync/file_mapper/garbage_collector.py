"""Mark-and-sweep removal of stale files after a download pass."""

import logging
import os
from typing import Iterable, List

logger = logging.getLogger(__name__)


class GarbageCollector:
    """Deletes local paths that the current download pass did not write.

    The written paths are the "mark" set. Everything else under the
    collection root is swept: files are deleted, directories only once
    they are empty. Failures to delete an entry are logged and skipped,
    so cleanup never raises.
    """

    @staticmethod
    def cleanup(root: str, written_paths: Iterable[str]) -> int:
        """Delete every path under root that is not in written_paths.

        Args:
            root: Collection directory to sweep (not deleted itself)
            written_paths: Absolute paths written during the pass

        Returns:
            Number of files and directories actually deleted
        """
        root = os.path.abspath(root)
        if not os.path.isdir(root):
            logger.debug(f"Cleanup skipped: {root} does not exist")
            return 0

        keep = {os.path.normpath(os.path.abspath(p)) for p in written_paths}
        deleted = 0

        # Deepest first so a directory is considered after its contents
        for path in sorted(_walk(root), key=lambda p: p.count(os.sep), reverse=True):
            if path in keep:
                continue
            try:
                if os.path.isdir(path) and not os.path.islink(path):
                    if os.listdir(path):
                        logger.debug(f"Keeping non-empty directory {path}")
                        continue
                    os.rmdir(path)
                else:
                    os.remove(path)
            except OSError as e:
                logger.warning(f"Could not delete {path}: {e}")
                continue
            logger.info(f"Deleted {path}")
            deleted += 1

        return deleted


def _walk(root: str) -> List[str]:
    """List every file and directory below root (root excluded)."""
    paths = []
    for current, dirs, files in os.walk(root, onerror=lambda e: logger.debug(str(e))):
        for name in dirs + files:
            paths.append(os.path.normpath(os.path.join(current, name)))
    return paths
