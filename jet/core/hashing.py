# jet/core/hashing.py
from __future__ import annotations

import hashlib
import re
from pathlib import Path

__all__ = ["SHA512_HEX_LEN", "sha512Hex", "sha512File", "isSha512Hex", "normalizeSha512"]

SHA512_HEX_LEN = 128

_HEX_RE = re.compile(r"^[0-9a-f]{128}$")



def sha512Hex(data: bytes) -> str:
    return hashlib.sha512(data).hexdigest()



def sha512File(path: str | Path) -> tuple[str, int]:
    """Returns (hex digest, byte length) of a file, read in chunks."""
    sha = hashlib.sha512()
    size = 0
    with Path(path).open("rb") as file:
        for chunk in iter(lambda: file.read(65536), b""):
            sha.update(chunk)
            size += len(chunk)
    return sha.hexdigest(), size



def isSha512Hex(value: object) -> bool:
    return isinstance(value, str) and bool(_HEX_RE.match(value))



def normalizeSha512(value: str) -> str:
    """
    Accepts "sha512:<hex>" or bare hex in any case; returns bare lowercase hex.
    Raises ValueError when the result is not a SHA-512 digest.
    """
    text = str(value).strip()
    if text.lower().startswith("sha512:"):
        text = text[len("sha512:"):]
    text = text.lower()
    if not _HEX_RE.match(text):
        raise ValueError(f"Not a SHA-512 hex digest: '{value}'")
    return text
