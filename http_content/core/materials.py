"""
Builds material objects from downloaded images and memoizes them for the
lifetime of the process.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from http_content.exceptions import MaterialConversionError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Material:
    """An image decoded into something renderable, plus its material flags."""

    path: Path
    parameters: tuple[str, ...]
    width: int
    height: int
    mode: str

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def has_flag(self, flag: str) -> bool:
        return flag.lower() in self.parameters


def parse_parameters(parameters: str | None) -> tuple[str, ...]:
    """Splits a flag string such as 'smooth mips' into lower-cased flags."""
    return tuple(flag.lower() for flag in (parameters or "").split())


def load_material(path: Path, parameters: str | None = None) -> Material:
    """
    Decodes an image file into a Material.

    Raises:
        MaterialConversionError: If the file is missing or not a decodable image.
    """
    try:
        with Image.open(path) as image:
            image.load()
            return Material(
                path=Path(path),
                parameters=parse_parameters(parameters),
                width=image.width,
                height=image.height,
                mode=image.mode,
            )
    except (UnidentifiedImageError, OSError) as e:
        log.debug(f"Could not decode '{path}' as an image: {e}")
        raise MaterialConversionError("image cannot be converted to material") from e


class MaterialCache:
    """
    Process-wide memoization of materials keyed by '<path>;<parameters>'.

    Entries are never evicted and are not subject to the disk cache TTL. Two
    concurrent builds of the same key both succeed and the last one is kept;
    both materials are equal since they come from the same inputs.
    """

    def __init__(self):
        self._materials: dict[str, Material] = {}

    @staticmethod
    def key(path: Path, parameters: str | None) -> str:
        return f"{path};{parameters or ''}"

    def __len__(self) -> int:
        return len(self._materials)

    def __contains__(self, key: str) -> bool:
        return key in self._materials

    def get(self, path: Path, parameters: str | None = None) -> Material | None:
        return self._materials.get(self.key(path, parameters))

    async def get_or_load(self, path: Path, parameters: str | None = None) -> Material:
        key = self.key(path, parameters)
        if (material := self._materials.get(key)) is not None:
            return material
        material = await asyncio.to_thread(load_material, path, parameters)
        self._materials[key] = material
        return material

    def clear(self) -> None:
        self._materials.clear()
