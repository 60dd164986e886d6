"""
Reads and writes GMA-style archive containers.

Layout (little endian):
    b"GMAD", version (u8), steam id (u64), timestamp (u64),
    required content (NUL-terminated strings, ended by an empty string),
    title, description, author (NUL-terminated strings), addon version (i32),
    file table [index (u32), name (str), size (i64), crc32 (u32)] ended by index 0,
    file bodies in table order, crc32 of everything before it (u32).
"""

import json
import logging
import struct
import time
import zlib
from dataclasses import dataclass, field
from pathlib import Path

from http_content.exceptions import CorruptContainerError

log = logging.getLogger(__name__)

GMA_MAGIC = b"GMAD"
GMA_VERSION = 3
DEFAULT_AUTHOR = "http-content"


@dataclass(frozen=True)
class ContainerEntry:
    """One file inside a container."""

    name: str
    size: int
    crc: int
    offset: int


def _normalize_name(name: str) -> str:
    return name.replace("\\", "/").lstrip("/").lower()


def _pack_cstr(value: str) -> bytes:
    return value.encode("utf-8") + b"\0"


class ContainerWriter:
    """
    Collects files in memory and serializes them into a container.

    Usage:
        writer = ContainerWriter()
        writer.set_title("beep.wav")
        writer.add_entry("sound/http_content/beep.wav", body)
        data = writer.close()
    """

    def __init__(self, author: str = DEFAULT_AUTHOR, description: str = ""):
        self.title = ""
        self.author = author
        self.description = description
        self._entries: list[tuple[str, bytes]] = []
        self._closed = False

    def set_title(self, title: str) -> None:
        self.title = title

    def add_entry(self, inner_path: str, data: bytes) -> None:
        if self._closed:
            raise ValueError("Cannot add entries to a closed container.")
        name = _normalize_name(inner_path)
        if not name:
            raise ValueError("Container entries need a non-empty path.")
        self._entries.append((name, bytes(data)))

    def close(self) -> bytes:
        """Finishes the container and returns its serialized bytes."""
        self._closed = True
        description = json.dumps(
            {"description": self.description, "type": "sound", "tags": []}
        )

        buf = bytearray()
        buf += GMA_MAGIC
        buf += struct.pack("<BQQ", GMA_VERSION, 0, int(time.time()))
        buf += b"\0"  # no required content
        buf += _pack_cstr(self.title)
        buf += _pack_cstr(description)
        buf += _pack_cstr(self.author)
        buf += struct.pack("<i", 1)

        for index, (name, data) in enumerate(self._entries, start=1):
            buf += struct.pack("<I", index)
            buf += _pack_cstr(name)
            buf += struct.pack("<qI", len(data), zlib.crc32(data))
        buf += struct.pack("<I", 0)

        for _, data in self._entries:
            buf += data

        buf += struct.pack("<I", zlib.crc32(buf))
        return bytes(buf)


@dataclass
class ContainerReader:
    """A parsed container held in memory."""

    title: str
    description: str
    author: str
    timestamp: int
    entries: dict[str, ContainerEntry] = field(default_factory=dict)
    _data: bytes = field(default=b"", repr=False)

    @classmethod
    def from_bytes(cls, data: bytes) -> "ContainerReader":
        """
        Parses a serialized container.

        Raises:
            CorruptContainerError: On a bad magic, truncation or checksum mismatch.
        """
        try:
            return cls._parse(data)
        except (struct.error, ValueError, UnicodeDecodeError) as e:
            raise CorruptContainerError(f"Malformed container: {e}") from e

    @classmethod
    def open(cls, path: Path) -> "ContainerReader":
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            raise CorruptContainerError(f"Cannot read container '{path}': {e}") from e
        return cls.from_bytes(data)

    @classmethod
    def _parse(cls, data: bytes) -> "ContainerReader":
        if data[:4] != GMA_MAGIC:
            raise CorruptContainerError("Not a GMA container (bad magic).")

        version, _steam_id, timestamp = struct.unpack_from("<BQQ", data, 4)
        if version > GMA_VERSION:
            raise CorruptContainerError(f"Unsupported container version {version}.")
        pos = 4 + struct.calcsize("<BQQ")

        def read_cstr() -> str:
            nonlocal pos
            end = data.index(b"\0", pos)
            value = data[pos:end].decode("utf-8")
            pos = end + 1
            return value

        if version > 1:
            while read_cstr():
                pass
        title = read_cstr()
        description = read_cstr()
        author = read_cstr()
        pos += 4  # addon version

        table: list[tuple[str, int, int]] = []
        while True:
            (index,) = struct.unpack_from("<I", data, pos)
            pos += 4
            if index == 0:
                break
            name = read_cstr()
            size, crc = struct.unpack_from("<qI", data, pos)
            pos += struct.calcsize("<qI")
            table.append((name, size, crc))

        entries: dict[str, ContainerEntry] = {}
        for name, size, crc in table:
            if pos + size > len(data):
                raise CorruptContainerError(f"Entry '{name}' is truncated.")
            if zlib.crc32(data[pos : pos + size]) != crc:
                raise CorruptContainerError(f"Checksum mismatch for entry '{name}'.")
            entries[name] = ContainerEntry(name=name, size=size, crc=crc, offset=pos)
            pos += size

        if len(data) >= pos + 4:
            (expected,) = struct.unpack_from("<I", data, pos)
            if expected and zlib.crc32(data[:pos]) != expected:
                raise CorruptContainerError("Container checksum mismatch.")

        try:
            description = json.loads(description).get("description", description)
        except (json.JSONDecodeError, AttributeError):
            pass

        return cls(
            title=title,
            description=description,
            author=author,
            timestamp=timestamp,
            entries=entries,
            _data=data,
        )

    def read_entry(self, name: str) -> bytes:
        entry = self.entries.get(_normalize_name(name))
        if entry is None:
            raise KeyError(name)
        return self._data[entry.offset : entry.offset + entry.size]
