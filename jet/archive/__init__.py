from .compression import Codec, codecForPath, parseCodec, unwrapReader, wrapWriter
from .container import (
    DESCRIPTION_ENTRY,
    MANIFEST_ENTRY,
    ArchiveEntry,
    ArchiveReader,
    ArchiveWriter,
    isReservedName,
)
from .jetpack import JetArchiveReader, openJetArchive, readDescription, writeJetArchive

__all__ = [
    "Codec",
    "codecForPath",
    "parseCodec",
    "unwrapReader",
    "wrapWriter",
    "DESCRIPTION_ENTRY",
    "MANIFEST_ENTRY",
    "ArchiveEntry",
    "ArchiveReader",
    "ArchiveWriter",
    "isReservedName",
    "JetArchiveReader",
    "openJetArchive",
    "readDescription",
    "writeJetArchive",
]
