import io
import sys
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from jet.archive.compression import Codec
from jet.archive.jetpack import writeJetArchive
from jet.cache.store import ContentCache
from jet.core.errors import FetchFailure



def pytest_configure(config: pytest.Config) -> None:
    if sys.flags.optimize:
        raise RuntimeError("Assertions are disabled (optimize > 0)")



class FakeFetcher:
    """In-memory Fetcher: serves `payloads` by URL, fails every URL in `failing`."""

    def __init__(self, payloads: dict[str, bytes] | None = None, failing=(), retryAfter: float | None = None):
        self.payloads = dict(payloads or {})
        self.failing = set(failing)
        self.retryAfter = retryAfter
        self.calls: list[str] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, excType, exc, tb):
        return None

    async def fetch(self, url: str) -> bytes:
        self.calls.append(url)
        if url in self.failing:
            raise FetchFailure(url, "HTTP 503", retryAfter=self.retryAfter)
        if url not in self.payloads:
            raise FetchFailure(url, "HTTP 404", retryable=False)
        return self.payloads[url]



@pytest.fixture
def fakeFetcher():
    return FakeFetcher



@pytest.fixture
def cache(tmp_path: Path) -> ContentCache:
    return ContentCache(tmp_path / "cache")



@pytest.fixture
def buildArchive(tmp_path: Path):
    """
    Returns build(manifest, inlineData, description=..., codec=...) -> bytes.
    `inlineData` maps inline paths to their bytes; they are staged on disk first.
    """
    staging = tmp_path / "staging"

    def build(manifest, inlineData: dict[str, bytes], description: bytes = b"<jet/>", codec=Codec.NONE) -> bytes:
        sources: dict[str, Path] = {}
        for path, data in inlineData.items():
            source = staging / path
            source.parent.mkdir(parents=True, exist_ok=True)
            source.write_bytes(data)
            sources[path] = source
        buf = io.BytesIO()
        writeJetArchive(buf, manifest, description, sources, codec=codec)
        return buf.getvalue()

    return build
