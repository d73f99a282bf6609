# jet/archive/jetpack.py
from __future__ import annotations
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import BinaryIO, Iterator

from jet.core.errors import CompileError, EntryNotFound, MalformedArchive
from jet.manifest.codec import decodeManifest, encodeManifest
from jet.manifest.model import Manifest
from .compression import Codec, unwrapReader, wrapWriter
from .container import (
    DESCRIPTION_ENTRY,
    MANIFEST_ENTRY,
    RESERVED_NAMES,
    ArchiveEntry,
    ArchiveReader,
    ArchiveWriter,
    isReservedName,
)

logger = logging.getLogger(__name__)

__all__ = ["writeJetArchive", "openJetArchive", "readDescription", "JetArchiveReader"]



def writeJetArchive(
    stream: BinaryIO,
    manifest: Manifest,
    descriptionBytes: bytes,
    inlineSources: Mapping[str, str | Path],
    *,
    codec: str | Codec = Codec.NONE,
) -> list[str]:
    """
    Writes a complete archive: @manifest, @jetfuel.xml, then every inline entry
    in manifest order. Returns the entry names written.

    `inlineSources` maps each inline destination path to the file holding its bytes.
    """
    target = wrapWriter(stream, codec)
    try:
        with ArchiveWriter(target) as writer:
            writer.put(MANIFEST_ENTRY, encodeManifest(manifest))
            writer.put(DESCRIPTION_ENTRY, bytes(descriptionBytes))
            for entry in manifest.inline:
                source = inlineSources.get(entry.path)
                if source is None:
                    raise CompileError(f"No source file for inline entry '{entry.path}'")
                size = writer.putFile(entry.path, source)
                if size != entry.size:
                    raise CompileError(f"'{source}' changed size since it was compiled ({entry.size} -> {size} bytes)")
            names = [MANIFEST_ENTRY, DESCRIPTION_ENTRY, *(entry.path for entry in manifest.inline)]
    finally:
        target.close()

    logger.info("Wrote archive '%s' with %d entries", manifest.project.name, len(names))
    return names



class JetArchiveReader:
    """
    Archive opened for a single forward pass.

    The manifest is decoded on open. fileEntries() then streams the ordinary
    entries; the verbatim description is captured into `description` as it
    streams past.
    """
    def __init__(self, stream: BinaryIO, codec: str | Codec = Codec.NONE) -> None:
        self._reader = ArchiveReader(unwrapReader(stream, codec))
        self._entries = self._reader.entries()
        first = next(self._entries, None)
        if first is None:
            raise MalformedArchive("Archive is empty (no @manifest entry)")
        if first.name != MANIFEST_ENTRY:
            raise MalformedArchive(f"First archive entry must be '{MANIFEST_ENTRY}', found '{first.name}'")
        self.manifest: Manifest = decodeManifest(first.read())
        self.description: bytes | None = None

    def fileEntries(self) -> Iterator[ArchiveEntry]:
        for entry in self._entries:
            if entry.name == DESCRIPTION_ENTRY and self.description is None:
                self.description = entry.read()
                continue
            if entry.name in RESERVED_NAMES:
                raise MalformedArchive(f"Reserved entry '{entry.name}' appears more than once")
            if isReservedName(entry.name):
                logger.warning("Archive entry %s uses the reserved prefix but is not known to this version; skipped", entry.name)
                continue
            yield entry

    def close(self) -> None:
        self._reader.close()

    def __enter__(self) -> "JetArchiveReader":
        return self

    def __exit__(self, excType, exc, tb) -> None:
        self.close()



def openJetArchive(stream: BinaryIO, codec: str | Codec = Codec.NONE) -> JetArchiveReader:
    return JetArchiveReader(stream, codec)



def readDescription(stream: BinaryIO, codec: str | Codec = Codec.NONE) -> bytes:
    """
    Returns the verbatim @jetfuel.xml bytes. The manifest is skipped, not decoded,
    so this works on archives whose manifest this version cannot read.
    """
    with ArchiveReader(unwrapReader(stream, codec)) as reader:
        for entry in reader.entries():
            if entry.name == DESCRIPTION_ENTRY:
                return entry.read()
    raise EntryNotFound(DESCRIPTION_ENTRY)
