# jet/core/fsutils.py
from __future__ import annotations

import hashlib
import os
import shutil
from contextlib import contextmanager
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import BinaryIO, Callable, Iterator

__all__ = ["atomicWriteBytes", "atomicCopyFile", "atomicWriteStream", "atomicOpen"]

_CHUNK = 1024 * 1024



def _tempBeside(path: Path):
    # Temp file in the same directory so os.replace() never crosses filesystems
    path.parent.mkdir(parents=True, exist_ok=True)
    return NamedTemporaryFile(mode="wb", dir=path.parent, prefix=f".{path.name}.", suffix=".part", delete=False)



def _commit(tmp, path: Path, fill: Callable[[BinaryIO], None], mode: int) -> Path:
    tmpPath = Path(tmp.name)
    try:
        with tmp:
            fill(tmp)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.chmod(tmpPath, mode)
        os.replace(tmpPath, path)
    except BaseException:
        tmpPath.unlink(missing_ok=True)
        raise
    return path



def atomicWriteBytes(path: Path, data: bytes, *, mode: int = 0o644) -> Path:
    """
    Writes `data` to a temp file beside `path`, then renames it into place.
    Readers see either the old file or the complete new one, never a partial write.
    """
    path = Path(path)
    return _commit(_tempBeside(path), path, lambda out: out.write(data), mode)



def atomicCopyFile(source: Path, path: Path, *, mode: int = 0o644) -> Path:
    """Copies `source` to `path` with the same temp-then-rename discipline."""
    path = Path(path)

    def fill(out: BinaryIO) -> None:
        with Path(source).open("rb") as src:
            shutil.copyfileobj(src, out, _CHUNK)

    return _commit(_tempBeside(path), path, fill, mode)



def atomicWriteStream(
    path: Path,
    stream: BinaryIO,
    *,
    verify: Callable[[str, int], None] | None = None,
    mode: int = 0o644,
) -> tuple[str, int]:
    """
    Copies `stream` to `path` atomically, hashing on the way.

    `verify(sha512Hex, size)` runs before the rename; if it raises, the
    temp file is removed and `path` is left untouched. Returns (sha512Hex, size).
    """
    path = Path(path)
    sha = hashlib.sha512()
    total = 0

    def fill(out: BinaryIO) -> None:
        nonlocal total
        for chunk in iter(lambda: stream.read(_CHUNK), b""):
            sha.update(chunk)
            total += len(chunk)
            out.write(chunk)
        if verify is not None:
            verify(sha.hexdigest(), total)

    _commit(_tempBeside(path), path, fill, mode)
    return sha.hexdigest(), total



@contextmanager
def atomicOpen(path: Path, *, mode: int = 0o644) -> Iterator[BinaryIO]:
    """
    Yields a writable binary file; `path` appears only if the block completes.

        with atomicOpen(out) as file:
            writeSomething(file)
    """
    path = Path(path)
    tmp = _tempBeside(path)
    tmpPath = Path(tmp.name)
    try:
        with tmp:
            yield tmp
            tmp.flush()
            os.fsync(tmp.fileno())
        os.chmod(tmpPath, mode)
        os.replace(tmpPath, path)
    except BaseException:
        tmpPath.unlink(missing_ok=True)
        raise
