"""
A path-addressed byte store rooted at a directory on the local filesystem.

One store is created per partition: the writable DATA partition holding the
content cache, and the read-only GAME partition consulted by the sound
packager.
"""

import asyncio
import fnmatch
import logging
import os
import uuid
from contextlib import suppress
from pathlib import Path, PurePosixPath

import aiofiles
import aiofiles.os

from http_content.exceptions import StorageError

log = logging.getLogger(__name__)


class LocalStore:
    """
    Async byte store with exists/time/read/write/delete/list operations.

    Every path argument is a '/'-separated path relative to the store root.
    Writes land in a temporary sibling first and are moved into place with
    ``os.replace``, so a concurrent reader sees either the old or the new body.
    """

    def __init__(self, root: Path, name: str = "DATA", read_only: bool = False):
        self.root = Path(root)
        self.name = name
        self.read_only = read_only
        if not read_only:
            self.root.mkdir(parents=True, exist_ok=True)

    def __repr__(self) -> str:
        return f"LocalStore(name={self.name!r}, root='{self.root}')"

    def resolve(self, relative_path: str) -> Path:
        """Maps a store path to an absolute filesystem path inside the root."""
        parts = PurePosixPath(relative_path.replace("\\", "/")).parts
        if any(part == ".." for part in parts) or relative_path.startswith(("/", "\\")):
            raise StorageError(f"Path '{relative_path}' escapes the {self.name} store.")
        return self.root.joinpath(*parts)

    def exists(self, relative_path: str) -> bool:
        return self.resolve(relative_path).is_file()

    def is_dir(self, relative_path: str) -> bool:
        return self.resolve(relative_path).is_dir()

    def last_modified(self, relative_path: str) -> float | None:
        """Returns the last-write timestamp, or None if the file is missing."""
        try:
            return self.resolve(relative_path).stat().st_mtime
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Cannot stat '{relative_path}': {e}") from e

    def size(self, relative_path: str) -> int:
        try:
            return self.resolve(relative_path).stat().st_size
        except OSError:
            return 0

    def create_dir(self, relative_path: str) -> None:
        """Creates a directory (and parents). Existing directories are fine."""
        self._check_writable()
        try:
            self.resolve(relative_path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create directory '{relative_path}': {e}") from e

    async def read(self, relative_path: str) -> bytes:
        """Reads a whole file. Raises StorageError if it is missing or unreadable."""
        path = self.resolve(relative_path)
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except FileNotFoundError as e:
            raise StorageError(f"'{relative_path}' not found in {self.name}.") from e
        except OSError as e:
            raise StorageError(f"Cannot read '{relative_path}': {e}") from e

    async def write(self, relative_path: str, data: bytes) -> None:
        """Writes a whole file atomically, creating the parent directory if needed."""
        self._check_writable()
        path = self.resolve(relative_path)
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            await asyncio.to_thread(path.parent.mkdir, parents=True, exist_ok=True)
            async with aiofiles.open(tmp_path, "wb") as f:
                await f.write(data)
            await aiofiles.os.replace(tmp_path, path)
        except OSError as e:
            with suppress(OSError):
                await aiofiles.os.remove(tmp_path)
            raise StorageError(f"Cannot write '{relative_path}': {e}") from e

    def delete(self, relative_path: str) -> bool:
        """Deletes a file. Returns False if it was not there."""
        self._check_writable()
        try:
            self.resolve(relative_path).unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Cannot delete '{relative_path}': {e}") from e

    def rename(self, source: str, destination: str) -> None:
        """Moves a file within the store, replacing any existing destination."""
        self._check_writable()
        try:
            os.replace(self.resolve(source), self.resolve(destination))
        except OSError as e:
            raise StorageError(f"Cannot move '{source}' to '{destination}': {e}") from e

    def list_entries(
        self, folder: str = "", pattern: str = "*"
    ) -> tuple[list[str], list[str]]:
        """
        Lists the direct children of a folder.

        Returns:
            A tuple of (file names, sub-folder names), both sorted. A missing
            folder yields two empty lists.
        """
        directory = self.resolve(folder) if folder else self.root
        files: list[str] = []
        folders: list[str] = []
        try:
            with os.scandir(directory) as entries:
                for entry in entries:
                    if not fnmatch.fnmatch(entry.name, pattern):
                        continue
                    if entry.is_dir(follow_symlinks=False):
                        folders.append(entry.name)
                    elif entry.is_file(follow_symlinks=False):
                        files.append(entry.name)
        except FileNotFoundError:
            return [], []
        except OSError as e:
            raise StorageError(f"Cannot list '{folder or self.root}': {e}") from e
        return sorted(files), sorted(folders)

    def _check_writable(self) -> None:
        if self.read_only:
            raise StorageError(f"The {self.name} store is read-only.")
