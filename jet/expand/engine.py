# jet/expand/engine.py
from __future__ import annotations
import asyncio
import logging
import threading
from enum import Enum
from pathlib import Path
from typing import Awaitable, BinaryIO

from jet.archive.compression import Codec
from jet.archive.jetpack import JetArchiveReader, openJetArchive
from jet.cache.store import ContentCache
from jet.config.settings import JetSettings
from jet.core.errors import (
    DestinationError,
    EntryError,
    ExpansionCancelled,
    FetchFailure,
    HashMismatch,
    IntegrityFailure,
    OutputRootError,
)
from jet.core.fsutils import atomicCopyFile
from jet.core.logging import setLogContext
from jet.manifest.model import RemoteEntry
from .fetch import Fetcher, RetryPolicy
from .inline import destinationFor, extractInline
from .launch import writeLaunchScript
from .report import EntryFailure, ExpansionReport

logger = logging.getLogger(__name__)

__all__ = ["EngineState", "ExpansionEngine"]



class EngineState(str, Enum):
    INIT = "init"
    MANIFEST_LOADED = "manifest-loaded"
    PROCESSING = "processing"
    FINALIZED = "finalized"



class ExpansionEngine:
    """
    Expands one archive into a directory.

    Inline entries stream out of the container in a worker thread while remote
    entries are fetched (or copied from the cache) on a bounded pool of asyncio
    tasks; launch scripts are generated meanwhile. Per-entry failures end up in
    the report, fatal errors raise.

    One engine expands one archive.
    """
    def __init__(
        self,
        cache: ContentCache,
        fetcher: Fetcher,
        settings: JetSettings | None = None,
        *,
        retryPolicy: RetryPolicy | None = None,
    ) -> None:
        self._cache = cache
        self._fetcher = fetcher
        self._settings = settings or JetSettings()
        self._retry = retryPolicy or RetryPolicy.fromSettings(self._settings.fetch)
        self._state = EngineState.INIT
        self._cancelEvent = threading.Event()
        self._hits = 0
        self._misses = 0

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def cancelled(self) -> bool:
        return self._cancelEvent.is_set()

    def cancel(self) -> None:
        """Stops starting new work. In-flight fetches and the current file finish."""
        if not self._cancelEvent.is_set():
            logger.info("Expansion cancelled; no new entries will be started")
        self._cancelEvent.set()

    # ----- Remote -----

    async def _fetchWithRetry(self, entry: RemoteEntry) -> bytes:
        attempt = 0
        while True:
            if self.cancelled:
                raise ExpansionCancelled(entry.path, "not fetched (cancelled)")
            try:
                return await self._fetcher.fetch(entry.url)
            except FetchFailure as err:
                failure = err
            except EntryError:
                raise
            except Exception as err:
                # Any other error out of a fetch capability is still a failed, retryable fetch
                logger.debug("Fetcher raised %s for %s", type(err).__name__, entry.url, exc_info=True)
                failure = FetchFailure(entry.url, f"{type(err).__name__}: {err}")

            attempt += 1
            if not failure.retryable or attempt >= self._retry.attempts:
                raise FetchFailure(
                    entry.path,
                    f"{failure.message} from {entry.url} (after {attempt} attempt(s))",
                    retryAfter=failure.retryAfter,
                    retryable=failure.retryable,
                ) from failure
            delay = self._retry.delaySeconds(attempt - 1, failure.retryAfter)
            logger.info("Fetch of %s failed (%s), retry %d in %.1fs", entry.path, failure.message, attempt, delay)
            await asyncio.sleep(delay)

    async def _remote(self, entry: RemoteEntry, root: Path, slots: asyncio.Semaphore) -> None:
        async with slots:
            if self.cancelled:
                raise ExpansionCancelled(entry.path, "not fetched (cancelled)")
            setLogContext(entry=entry.path)
            target = destinationFor(root, entry.path)

            cached = self._cache.lookup(entry.sha512)
            if cached is not None:
                self._hits += 1
                logger.debug("Cache hit for %s", entry.path)
            else:
                self._misses += 1
                data = await self._fetchWithRetry(entry)
                if entry.size is not None and len(data) != entry.size:
                    raise IntegrityFailure(entry.path, f"expected {entry.size} bytes, downloaded {len(data)}")
                try:
                    cached = await asyncio.to_thread(self._cache.store, entry.sha512, data)
                except HashMismatch as err:
                    raise IntegrityFailure(
                        entry.path, f"downloaded bytes hash to {err.actual[:16]}..., expected {err.expected[:16]}..."
                    ) from err
                except OSError as err:
                    raise DestinationError(entry.path, f"cannot write cache object: {err}") from err
                logger.info("Fetched %s (%d bytes)", entry.path, len(data))

            try:
                await asyncio.to_thread(atomicCopyFile, cached, target)
            except OSError as err:
                raise DestinationError(entry.path, str(err)) from err

    # ----- Driver -----

    @staticmethod
    async def _guard(path: str, work: Awaitable[None]) -> tuple[str, EntryError | None]:
        try:
            await work
        except EntryError as err:
            return path, err
        return path, None

    def _prepareRoot(self, outDir: Path) -> Path:
        try:
            outDir.mkdir(parents=True, exist_ok=True)
        except OSError as err:
            raise OutputRootError(f"Cannot create output directory '{outDir}': {err}") from err
        if not outDir.is_dir():
            raise OutputRootError(f"Output path '{outDir}' is not a directory")
        return outDir

    async def _process(self, archive: JetArchiveReader, root: Path) -> dict[str, EntryError | None]:
        manifest = archive.manifest
        outcomes: dict[str, EntryError | None] = {}
        slots = asyncio.Semaphore(self._settings.fetch.workers)
        inlineTask = asyncio.ensure_future(
            asyncio.to_thread(extractInline, archive, root, shouldStop=self._cancelEvent.is_set)
        )
        remoteTasks = [
            asyncio.ensure_future(self._guard(entry.path, self._remote(entry, root, slots)))
            for entry in manifest.remote
        ]

        try:
            for entry in manifest.launch:
                if self.cancelled:
                    outcomes[entry.path] = ExpansionCancelled(entry.path, "not generated (cancelled)")
                    continue
                try:
                    await asyncio.to_thread(writeLaunchScript, root, destinationFor(root, entry.path), entry)
                    outcomes[entry.path] = None
                except EntryError as err:
                    outcomes[entry.path] = err

            inlineOutcomes, *remoteOutcomes = await asyncio.gather(inlineTask, *remoteTasks)
        except BaseException:
            # Fatal error or outer cancellation: abandon what is still running
            self._cancelEvent.set()
            for task in (inlineTask, *remoteTasks):
                task.cancel()
            await asyncio.gather(inlineTask, *remoteTasks, return_exceptions=True)
            raise

        outcomes.update(inlineOutcomes)
        for path, error in remoteOutcomes:
            outcomes[path] = error
        return outcomes

    async def expand(self, stream: BinaryIO, outDir: str | Path, *, codec: str | Codec = Codec.NONE) -> ExpansionReport:
        if self._state is not EngineState.INIT:
            raise RuntimeError("ExpansionEngine instances expand a single archive")
        setLogContext(op="expand")

        archive: JetArchiveReader = await asyncio.to_thread(openJetArchive, stream, codec)
        try:
            manifest = archive.manifest
            root = self._prepareRoot(Path(outDir))
            self._state = EngineState.MANIFEST_LOADED
            logger.info(
                "Expanding '%s' into %s: %d inline, %d remote, %d launch",
                manifest.project.name, root, len(manifest.inline), len(manifest.remote), len(manifest.launch),
            )
            self._state = EngineState.PROCESSING
            outcomes = await self._process(archive, root)
        finally:
            archive.close()

        report = ExpansionReport(cacheHits=self._hits, cacheMisses=self._misses)
        for path in manifest.paths():
            error = outcomes.get(path)
            if error is None:
                report.written.append(path)
            else:
                report.failures.append(EntryFailure.fromError(error))
                logger.warning("Entry %s failed (%s): %s", path, error.kind, error.message)

        self._state = EngineState.FINALIZED
        logger.info("Expansion of '%s' finished: %s", manifest.project.name, report.summary().splitlines()[0])
        return report
