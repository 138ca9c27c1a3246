"""Directory scanner: finds candidate audio files under the media root."""

import logging
import os
from collections.abc import Iterator
from pathlib import Path

from localify.domain.exceptions import ScanRootUnreadableError
from localify.domain.value_objects import is_audio_file
from localify.infrastructure.observability.error_formatting import (
    describe_oserror,
    format_oserror_message,
)

logger = logging.getLogger(__name__)


# Hey future me - this is a plain BLOCKING walk. The indexing engine calls it through
# asyncio.to_thread(), never directly from the event loop. Symlinked directories ARE followed
# (people symlink whole NAS folders into the media dir) but each real directory is visited once,
# keyed by (st_dev, st_ino), so a link pointing back up the tree can't loop forever.
class DirectoryScanner:
    """Recursive, cycle-safe walk of a media directory filtered by audio extension."""

    def ensure_readable_root(self, root: str | Path) -> None:
        """Verify the media root exists, is a directory and can be listed.

        Raises:
            ScanRootUnreadableError: If any of the checks fail
        """
        root_str = os.fspath(root)
        if not os.path.exists(root_str):
            raise ScanRootUnreadableError(root_str, "path does not exist")
        if not os.path.isdir(root_str):
            raise ScanRootUnreadableError(root_str, "not a directory")
        try:
            with os.scandir(root_str) as entries:
                next(entries, None)
        except OSError as e:
            raise ScanRootUnreadableError(root_str, describe_oserror(e)) from e

    def scan(self, root: str | Path) -> Iterator[str]:
        """Yield absolute paths of audio files under root.

        Sibling directories and files are visited in sorted order, so an unchanged tree
        always produces the same sequence. Entries that can't be read are logged and skipped.

        Args:
            root: Media root directory

        Yields:
            Absolute file paths (not symlink-resolved)
        """
        root_path = os.path.abspath(os.fspath(root))
        visited: set[tuple[int, int]] = set()
        files_seen = 0
        audio_files = 0

        for dirpath, dirnames, filenames in os.walk(
            root_path, onerror=self._on_walk_error, followlinks=True
        ):
            try:
                stat = os.stat(dirpath)
            except OSError as e:
                logger.warning(format_oserror_message(e, "read directory", dirpath))
                dirnames[:] = []
                continue

            key = (stat.st_dev, stat.st_ino)
            if key in visited:
                logger.debug(f"Directory already visited (symlink cycle?), skipping: {dirpath}")
                dirnames[:] = []
                continue
            visited.add(key)

            # os.walk descends into dirnames in list order, sorting in place fixes the order
            dirnames.sort()

            for filename in sorted(filenames):
                files_seen += 1
                if not is_audio_file(filename):
                    continue
                full_path = os.path.join(dirpath, filename)
                # Broken symlinks, sockets and fifos also land in filenames
                if not os.path.isfile(full_path):
                    logger.debug(f"Skipping non-regular file: {full_path}")
                    continue
                audio_files += 1
                yield full_path

        logger.debug(
            f"Scan of {root_path} finished: {files_seen} files seen, {audio_files} audio files"
        )

    @staticmethod
    def _on_walk_error(error: OSError) -> None:
        logger.warning(format_oserror_message(error, "read directory", error.filename))
