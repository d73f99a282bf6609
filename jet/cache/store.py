# jet/cache/store.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from jet.core.errors import HashMismatch
from jet.core.fsutils import atomicWriteBytes
from jet.core.hashing import isSha512Hex, sha512Hex

logger = logging.getLogger(__name__)

__all__ = ["CacheObject", "ContentCache"]



@dataclass(frozen=True, slots=True)
class CacheObject:
    sha512: str
    size: int
    path: Path



class ContentCache:
    """
    Content-addressed store of remote payloads, keyed by SHA-512 hex.

    Layout: <root>/objects/<first 2 hex chars>/<full hex>. An object only ever
    appears under the name its bytes hash to, so a present object needs no
    re-verification.
    """
    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).expanduser()
        self._objects = self._root / "objects"

    def location(self) -> Path:
        return self._root

    def _objectPath(self, sha512: str) -> Path:
        if not isSha512Hex(sha512):
            raise ValueError(f"Not a lowercase SHA-512 hex digest: '{sha512}'")
        return self._objects / sha512[:2] / sha512

    def lookup(self, sha512: str) -> Path | None:
        path = self._objectPath(sha512)
        return path if path.is_file() else None

    def store(self, sha512: str, data: bytes) -> Path:
        """
        Stores `data` under `sha512` after verifying it hashes to that key.
        Raises HashMismatch (and writes nothing) otherwise. Idempotent.
        """
        path = self._objectPath(sha512)
        actual = sha512Hex(data)
        if actual != sha512:
            raise HashMismatch(sha512, actual)
        # Concurrent stores of one key race harmlessly: both renames carry identical bytes
        atomicWriteBytes(path, data)
        logger.debug("Stored cache object %s (%d bytes)", sha512[:16], len(data))
        return path

    def objects(self) -> Iterator[CacheObject]:
        if not self._objects.is_dir():
            return
        for shard in sorted(self._objects.iterdir()):
            if not shard.is_dir():
                continue
            for path in sorted(shard.iterdir()):
                name = path.name
                if not (isSha512Hex(name) and name[:2] == shard.name and path.is_file()):
                    continue # temp files of in-flight stores, strays
                yield CacheObject(sha512=name, size=path.stat().st_size, path=path)

    def clear(self) -> int:
        """Removes every object. Returns how many were removed."""
        removed = 0
        for obj in list(self.objects()):
            obj.path.unlink(missing_ok=True)
            removed += 1
        if self._objects.is_dir():
            for shard in self._objects.iterdir():
                if shard.is_dir() and not any(shard.iterdir()):
                    shard.rmdir()
        logger.info("Cleared %d cache object(s) from %s", removed, self._root)
        return removed
