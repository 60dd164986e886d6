"""
The read-only GAME namespace: a game directory overlaid with mounted containers.
"""

import asyncio
import logging
from pathlib import Path

from http_content.exceptions import CorruptContainerError, StorageError

from .container import ContainerReader
from .store import LocalStore

log = logging.getLogger(__name__)


def _normalize(path: str) -> str:
    return path.replace("\\", "/").lstrip("/").lower()


class ContentNamespace:
    """
    Resolves namespace paths against the GAME store first, then against the
    files of every mounted container. Later mounts shadow earlier ones.
    """

    def __init__(self, game_store: LocalStore):
        self.game_store = game_store
        self._containers: dict[Path, ContainerReader] = {}
        self._files: dict[str, Path] = {}

    def exists(self, path: str) -> bool:
        name = _normalize(path)
        if name in self._files:
            return True
        try:
            return self.game_store.exists(name)
        except StorageError:
            return False

    async def read(self, path: str) -> bytes:
        name = _normalize(path)
        if (container_path := self._files.get(name)) is not None:
            return self._containers[container_path].read_entry(name)
        return await self.game_store.read(name)

    async def mount(self, container_path: Path) -> bool:
        """
        Makes a container's files addressable in the namespace.

        Returns:
            True on success, False if the container is missing or corrupt.
        """
        container_path = Path(container_path).resolve()
        try:
            reader = await asyncio.to_thread(ContainerReader.open, container_path)
        except CorruptContainerError as e:
            log.warning(f"Failed to mount '{container_path.name}': {e}")
            return False

        self.unmount(container_path)
        self._containers[container_path] = reader
        for name in reader.entries:
            self._files[name] = container_path
        log.debug(
            f"Mounted '{container_path.name}' ({len(reader.entries)} files, "
            f"title '{reader.title}')."
        )
        return True

    def unmount(self, container_path: Path) -> None:
        container_path = Path(container_path).resolve()
        if self._containers.pop(container_path, None) is None:
            return
        self._files = {
            name: owner for name, owner in self._files.items() if owner != container_path
        }

    def is_mounted(self, container_path: Path) -> bool:
        return Path(container_path).resolve() in self._containers

    def mounted_files(self) -> list[str]:
        return sorted(self._files)
