# jet/core/paths.py
from __future__ import annotations
from pathlib import Path, PurePosixPath

__all__ = ["RESERVED_PREFIX", "normalizeRelPath", "resolveSafe"]

# Names starting with this prefix belong to the archive itself (@manifest, @jetfuel.xml)
RESERVED_PREFIX = "@"



def normalizeRelPath(value: str, *, what: str = "path") -> str:
    """
    Returns the canonical POSIX form of a destination-relative path.
    Raises ValueError for empty, absolute, traversing or reserved paths.
    """
    raw = str(value).replace("\\", "/")
    path = PurePosixPath(raw)
    if not raw.strip() or not path.parts or str(path) == ".":
        raise ValueError(f"{what} must be non-empty")
    if path.is_absolute() or (len(raw) > 1 and raw[1] == ":"):
        raise ValueError(f"{what} must be relative, got '{value}'")
    # PurePosixPath collapses "a/./b" silently, so inspect the raw segments
    if any(part in (".", "..") for part in raw.split("/")):
        raise ValueError(f"{what} must not contain '.' or '..' segments, got '{value}'")
    if path.parts[0].startswith(RESERVED_PREFIX):
        raise ValueError(f"{what} must not start with reserved prefix '{RESERVED_PREFIX}', got '{value}'")
    return str(path)



def resolveSafe(root: Path, requested: str) -> Path:
    """
    Returns a path under `root` for `requested`, rejecting traversal.
    Raises ValueError if the path leaves root.
    """
    if not isinstance(root, Path):
        root = Path(root)

    raw = root.joinpath(normalizeRelPath(requested))
    resolved = raw.resolve(strict=False) # Don't raise if file doesn't exist yet
    rootResolved = root.resolve(strict=False)

    # Must remain inside the output root, even through pre-existing symlinks
    if not resolved.is_relative_to(rootResolved):
        raise ValueError(f"Path '{requested}' points outside of '{root}'")
    return raw
