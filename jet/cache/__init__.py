from .paths import CACHE_DIR_NAME, defaultCacheRoot, platformCacheDir
from .store import CacheObject, ContentCache

__all__ = ["CACHE_DIR_NAME", "defaultCacheRoot", "platformCacheDir", "CacheObject", "ContentCache"]
