# jet/commands.py
"""
Operations behind the CLI subcommands. Each takes explicit paths and settings
and returns a value; printing and exit codes belong to jet.cli.
"""
from __future__ import annotations
import logging
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator

from jet.archive.compression import Codec, codecForPath
from jet.archive.jetpack import writeJetArchive
from jet.cache.paths import defaultCacheRoot
from jet.cache.store import ContentCache
from jet.config.settings import JetSettings
from jet.core.fsutils import atomicOpen
from jet.core.logging import setLogContext
from jet.description.fabric import BytesGetter, resolveFabricServer
from jet.description.modrinth import JsonGetter, resolveModrinth
from jet.description.xml_reader import DEFAULT_DESCRIPTION_NAME, loadBuildDescription
from jet.expand.engine import ExpansionEngine
from jet.expand.fetch import Fetcher, HttpFetcher
from jet.expand.report import ExpansionReport
from jet.expand.unpack import peek, unpack
from jet.manifest.compiler import compileWithSources
from jet.manifest.model import Manifest

logger = logging.getLogger(__name__)

__all__ = [
    "STDIO",
    "CacheSummary",
    "openCache",
    "packArchive",
    "expandArchive",
    "unpackArchive",
    "peekArchive",
    "showCache",
    "clearCache",
]

# Archive path meaning stdin/stdout
STDIO = "-"



@dataclass(frozen=True, slots=True)
class CacheSummary:
    location: Path
    objects: int
    totalBytes: int



def openCache(settings: JetSettings | None = None) -> ContentCache:
    return ContentCache(defaultCacheRoot(settings))



def _resolveCodec(path: str | Path, codec: str | Codec | None) -> Codec:
    if str(path) == STDIO:
        return codecForPath("", codec)
    return codecForPath(path, codec)



@contextmanager
def _openSource(path: str | Path) -> Iterator[BinaryIO]:
    if str(path) == STDIO:
        yield sys.stdin.buffer
        return
    with Path(path).open("rb") as file:
        yield file



async def packArchive(
    source: str | Path,
    output: str | Path,
    *,
    codec: str | Codec | None = None,
    settings: JetSettings | None = None,
    descriptionPath: str | Path | None = None,
    getJson: JsonGetter | None = None,
    getBytes: BytesGetter | None = None,
) -> Manifest:
    """
    Compiles a build description and writes the archive to `output` ("-" for stdout).

    `source` is the directory inline files are read from. The description
    defaults to `<source>/jetfuel.xml` but may live anywhere. Passing a
    description file as `source` packs relative to that file's directory.
    """
    settings = settings or JetSettings()
    source = Path(source)
    if descriptionPath is not None:
        descriptionPath = Path(descriptionPath)
        sourceDir = source
    elif source.is_dir():
        descriptionPath = source / DEFAULT_DESCRIPTION_NAME
        sourceDir = source
    else:
        descriptionPath = source
        sourceDir = source.parent
    setLogContext(op="pack")

    description, rawBytes = loadBuildDescription(descriptionPath)
    description = await resolveModrinth(description, settings, getJson=getJson)
    description = await resolveFabricServer(description, settings, getBytes=getBytes)
    compiled = compileWithSources(description, sourceDir)
    resolved = _resolveCodec(output, codec)

    if str(output) == STDIO:
        writeJetArchive(sys.stdout.buffer, compiled.manifest, rawBytes, compiled.inlineSources, codec=resolved)
        sys.stdout.buffer.flush()
    else:
        with atomicOpen(Path(output)) as file:
            writeJetArchive(file, compiled.manifest, rawBytes, compiled.inlineSources, codec=resolved)
        logger.info("Packed %s -> %s (%s)", descriptionPath, output, resolved.value)
    return compiled.manifest



async def expandArchive(
    archive: str | Path,
    outDir: str | Path,
    *,
    codec: str | Codec | None = None,
    settings: JetSettings | None = None,
    cache: ContentCache | None = None,
    fetcher: Fetcher | None = None,
) -> ExpansionReport:
    settings = settings or JetSettings()
    cache = cache or openCache(settings)
    setLogContext(op="expand", archive=str(archive))
    if fetcher is None:
        async with HttpFetcher(settings.fetch) as httpFetcher:
            return await _expandWith(archive, outDir, codec, settings, cache, httpFetcher)
    return await _expandWith(archive, outDir, codec, settings, cache, fetcher)



async def _expandWith(archive, outDir, codec, settings: JetSettings, cache: ContentCache, fetcher: Fetcher) -> ExpansionReport:
    engine = ExpansionEngine(cache, fetcher, settings)
    with _openSource(archive) as stream:
        return await engine.expand(stream, outDir, codec=_resolveCodec(archive, codec))



def unpackArchive(archive: str | Path, outDir: str | Path, *, codec: str | Codec | None = None) -> ExpansionReport:
    setLogContext(op="unpack", archive=str(archive))
    with _openSource(archive) as stream:
        return unpack(stream, outDir, codec=_resolveCodec(archive, codec))



def peekArchive(archive: str | Path, *, codec: str | Codec | None = None) -> str:
    setLogContext(op="peek", archive=str(archive))
    with _openSource(archive) as stream:
        return peek(stream, codec=_resolveCodec(archive, codec)).decode("utf-8", errors="replace")



def showCache(cache: ContentCache) -> CacheSummary:
    count = 0
    total = 0
    for obj in cache.objects():
        count += 1
        total += obj.size
    return CacheSummary(location=cache.location(), objects=count, totalBytes=total)



def clearCache(cache: ContentCache) -> int:
    """Removes every cached object. Confirmation is the caller's job."""
    setLogContext(op="cache-clear")
    return cache.clear()
