# jet/archive/container.py
from __future__ import annotations
import io
import logging
import tarfile
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator

from jet.core.errors import ArchiveCorrupt, DuplicateEntryName, EntryNotFound
from jet.core.paths import RESERVED_PREFIX

logger = logging.getLogger(__name__)

__all__ = [
    "DESCRIPTION_ENTRY", "MANIFEST_ENTRY", "RESERVED_NAMES", "isReservedName",
    "ArchiveEntry", "ArchiveWriter", "ArchiveReader",
]

DESCRIPTION_ENTRY = "@jetfuel.xml"
MANIFEST_ENTRY = "@manifest"
RESERVED_NAMES = frozenset({DESCRIPTION_ENTRY, MANIFEST_ENTRY})



def isReservedName(name: str) -> bool:
    """Every top-level name starting with "@" belongs to the archive format, known or not."""
    return name.startswith(RESERVED_PREFIX)



def _tarInfo(name: str, size: int) -> tarfile.TarInfo:
    # Fixed metadata so identical inputs produce identical archives
    info = tarfile.TarInfo(name=name)
    info.size = size
    info.mode = 0o644
    info.mtime = 0
    info.uid = info.gid = 0
    info.uname = info.gname = ""
    info.type = tarfile.REGTYPE
    return info



class ArchiveWriter:
    """
    Appends named byte entries to a tar stream. The target only needs write().

        with ArchiveWriter(stream) as writer:
            writer.put("@manifest", data)
    """
    def __init__(self, stream: BinaryIO) -> None:
        self._tar = tarfile.open(fileobj=stream, mode="w|", format=tarfile.PAX_FORMAT)
        self._names: set[str] = set()
        self._finished = False

    def _claim(self, name: str) -> None:
        if self._finished:
            raise RuntimeError("ArchiveWriter is already finished")
        if name in self._names:
            raise DuplicateEntryName(name)
        self._names.add(name)

    def put(self, name: str, data: bytes) -> None:
        self._claim(name)
        self._tar.addfile(_tarInfo(name, len(data)), io.BytesIO(data))
        logger.debug("Wrote entry %s (%d bytes)", name, len(data))

    def putFile(self, name: str, path: str | Path) -> int:
        """Streams a file from disk into the archive; returns its size."""
        self._claim(name)
        path = Path(path)
        with path.open("rb") as file:
            size = path.stat().st_size
            self._tar.addfile(_tarInfo(name, size), file)
        logger.debug("Wrote entry %s from %s (%d bytes)", name, path, size)
        return size

    @property
    def names(self) -> list[str]:
        return sorted(self._names)

    def finish(self) -> None:
        if self._finished:
            return
        self._finished = True
        self._tar.close()

    def __enter__(self) -> "ArchiveWriter":
        return self

    def __exit__(self, excType, exc, tb) -> None:
        if excType is None:
            self.finish()



@dataclass(slots=True)
class ArchiveEntry:
    """One container entry. `stream` is only readable until the reader advances."""
    name: str
    size: int
    stream: BinaryIO

    def read(self) -> bytes:
        try:
            data = self.stream.read()
        except (tarfile.TarError, EOFError, OSError) as err:
            raise ArchiveCorrupt(f"Failed to read entry '{self.name}': {err}") from err
        if len(data) != self.size:
            raise ArchiveCorrupt(f"Entry '{self.name}' is truncated ({len(data)} of {self.size} bytes)")
        return data



class ArchiveReader:
    """
    Single-pass reader over a (possibly non-seekable) tar stream.

    Entries are discovered one by one; callers wanting a particular entry must
    match names as they stream past.
    """
    def __init__(self, stream: BinaryIO) -> None:
        try:
            self._tar = tarfile.open(fileobj=stream, mode="r|")
        except (tarfile.TarError, EOFError) as err:
            raise ArchiveCorrupt(f"Not a readable archive stream: {err}") from err
        self._started = False

    def entries(self) -> Iterator[ArchiveEntry]:
        if self._started:
            raise RuntimeError("ArchiveReader is single-pass; open the stream again to re-read")
        self._started = True
        iterator = iter(self._tar)
        while True:
            try:
                member = next(iterator)
            except StopIteration:
                return
            except (tarfile.TarError, EOFError) as err:
                raise ArchiveCorrupt(f"Archive stream is corrupt: {err}") from err
            if not member.isfile():
                logger.debug("Skipping non-file entry %s", member.name)
                continue
            fileobj = self._tar.extractfile(member)
            if fileobj is None:
                continue
            yield ArchiveEntry(name=member.name, size=member.size, stream=fileobj)

    def names(self) -> Iterator[str]:
        for entry in self.entries():
            yield entry.name

    def read(self, name: str) -> bytes:
        for entry in self.entries():
            if entry.name == name:
                return entry.read()
        raise EntryNotFound(name)

    def close(self) -> None:
        self._tar.close()

    def __enter__(self) -> "ArchiveReader":
        return self

    def __exit__(self, excType, exc, tb) -> None:
        self.close()
