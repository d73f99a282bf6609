# jet/cache/paths.py
from __future__ import annotations
import logging
import os
import platform
import tempfile
from collections.abc import Mapping
from pathlib import Path

from jet.config.settings import JetSettings

logger = logging.getLogger(__name__)

__all__ = ["CACHE_DIR_NAME", "platformCacheDir", "defaultCacheRoot"]

CACHE_DIR_NAME = "jet-cache"

# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #

def _isWindows() -> bool:
    return platform.system().lower().startswith("win")

def _isMac() -> bool:
    return platform.system() == "Darwin"

def platformCacheDir(environ: Mapping[str, str] | None = None) -> Path | None:
    """
    Per-user cache directory of the platform, or None when it cannot be determined.
      Windows: %LOCALAPPDATA%
      macOS:   ~/Library/Caches
      other:   $XDG_CACHE_HOME or ~/.cache
    """
    env = environ if environ is not None else os.environ
    try:
        if _isWindows():
            local = env.get("LOCALAPPDATA")
            return Path(local).expanduser() if local else None
        if _isMac():
            return Path.home() / "Library" / "Caches"
        xdgCache = env.get("XDG_CACHE_HOME")
        return Path(xdgCache).expanduser() if xdgCache else Path.home() / ".cache"
    except RuntimeError:
        # Path.home() fails when no home directory can be determined
        return None

# ------------------------------------------------------------------ #
# Public API
# ------------------------------------------------------------------ #

def defaultCacheRoot(settings: JetSettings | None = None, environ: Mapping[str, str] | None = None) -> Path:
    """
    Resolves the cache root once, for the caller to hand to ContentCache:
      $JET_CACHE_DIR ← settings.cacheDir ← <platform cache dir>/jet-cache ← <tempdir>/jet-cache
    """
    env = environ if environ is not None else os.environ

    explicit = env.get("JET_CACHE_DIR")
    if explicit:
        return Path(explicit).expanduser()
    if settings is not None and settings.cacheDir:
        return Path(settings.cacheDir).expanduser()

    base = platformCacheDir(env)
    if base is None:
        base = Path(tempfile.gettempdir())
        logger.warning("No platform cache directory found; using %s", base)
    return base / CACHE_DIR_NAME
