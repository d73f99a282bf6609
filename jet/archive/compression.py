# jet/archive/compression.py
from __future__ import annotations
import io
import logging
import zlib
from enum import Enum
from pathlib import Path
from typing import BinaryIO

from jet.core.errors import ArchiveCorrupt, UnknownCodec

logger = logging.getLogger(__name__)

__all__ = [
    "Codec", "EXTENSIONS", "parseCodec", "codecForPath",
    "ZlibWriter", "ZlibReader", "wrapWriter", "unwrapReader",
]

_CHUNK = 64 * 1024



class Codec(str, Enum):
    """
    Whole-stream transform applied around the archive container.

    The stream does not record which codec produced it; readers must be told.
    """
    NONE = "none"
    ZLIB = "zlib"



EXTENSIONS: dict[str, Codec] = {
    ".jpk": Codec.NONE,
    ".jpz": Codec.ZLIB,
}



def parseCodec(value: str | Codec) -> Codec:
    if isinstance(value, Codec):
        return value
    try:
        return Codec(str(value).strip().lower())
    except ValueError:
        raise UnknownCodec(f"Unknown compression '{value}' (expected one of: {', '.join(c.value for c in Codec)})") from None



def codecForPath(path: str | Path, explicit: str | Codec | None = None) -> Codec:
    """
    Codec to use for an archive path: the explicit choice when given, otherwise
    inferred from the extension (.jpk none, .jpz zlib). Unknown extensions assume none.
    """
    if explicit is not None:
        return parseCodec(explicit)
    suffix = Path(path).suffix.lower()
    if not suffix:
        return Codec.NONE
    codec = EXTENSIONS.get(suffix)
    if codec is None:
        logger.warning("Unknown compression of source file (extension: %s); assuming none", suffix)
        return Codec.NONE
    return codec



class ZlibWriter(io.RawIOBase):
    """Write-only zlib stream. close() flushes the trailer but leaves the target open."""
    def __init__(self, target: BinaryIO, level: int = 6) -> None:
        super().__init__()
        self._target = target
        self._compressor = zlib.compressobj(level)

    def writable(self) -> bool:
        return True

    def write(self, data) -> int:
        view = memoryview(data)
        out = self._compressor.compress(view)
        if out:
            self._target.write(out)
        return view.nbytes

    def close(self) -> None:
        if not self.closed:
            self._target.write(self._compressor.flush())
            self._target.flush()
        super().close()



class ZlibReader(io.RawIOBase):
    """Read-only zlib stream over a non-seekable source."""
    def __init__(self, source: BinaryIO) -> None:
        super().__init__()
        self._source = source
        self._decompressor = zlib.decompressobj()
        self._buffer = b""
        self._sourceDone = False

    def readable(self) -> bool:
        return True

    def _fill(self) -> None:
        while not self._buffer and not self._sourceDone:
            if self._decompressor.eof:
                # Data after the zlib trailer is ignored
                self._sourceDone = True
                return
            chunk = self._decompressor.unconsumed_tail or self._source.read(_CHUNK)
            try:
                if not chunk:
                    self._sourceDone = True
                    self._buffer = self._decompressor.flush()
                    if not self._decompressor.eof:
                        raise ArchiveCorrupt("Compressed stream ended early (truncated, or not zlib)")
                    return
                self._buffer = self._decompressor.decompress(chunk, _CHUNK)
            except zlib.error as err:
                raise ArchiveCorrupt(f"Stream is not valid zlib data: {err}") from err

    def readinto(self, buf) -> int:
        self._fill()
        size = min(len(buf), len(self._buffer))
        buf[:size] = self._buffer[:size]
        self._buffer = self._buffer[size:]
        return size



def wrapWriter(stream: BinaryIO, codec: str | Codec) -> BinaryIO:
    """Returns a writable stream; closing it finishes the transform (not `stream`)."""
    codec = parseCodec(codec)
    if codec is Codec.ZLIB:
        return io.BufferedWriter(ZlibWriter(stream), buffer_size=_CHUNK)
    return _Passthrough(stream)



def unwrapReader(stream: BinaryIO, codec: str | Codec) -> BinaryIO:
    codec = parseCodec(codec)
    if codec is Codec.ZLIB:
        return io.BufferedReader(ZlibReader(stream), buffer_size=_CHUNK)
    return stream



class _Passthrough(io.RawIOBase):
    """Identity writer whose close() flushes but does not close the target."""
    def __init__(self, target: BinaryIO) -> None:
        super().__init__()
        self._target = target

    def writable(self) -> bool:
        return True

    def write(self, data) -> int:
        return self._target.write(data)

    def close(self) -> None:
        if not self.closed:
            self._target.flush()
        super().close()
