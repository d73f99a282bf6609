# jet/expand/inline.py
from __future__ import annotations
import logging
import tarfile
from pathlib import Path
from typing import Callable

from jet.archive.jetpack import JetArchiveReader
from jet.core.errors import (
    ArchiveCorrupt,
    DestinationError,
    EntryError,
    ExpansionCancelled,
    InconsistentArchive,
)
from jet.core.fsutils import atomicWriteStream
from jet.core.paths import resolveSafe

logger = logging.getLogger(__name__)

__all__ = ["destinationFor", "extractInline"]



def destinationFor(root: Path, path: str) -> Path:
    try:
        return resolveSafe(root, path)
    except ValueError as err:
        raise DestinationError(path, str(err)) from err



def extractInline(
    archive: JetArchiveReader,
    root: Path,
    *,
    shouldStop: Callable[[], bool] | None = None,
) -> dict[str, EntryError | None]:
    """
    Streams the archive's ordinary entries to `root`, checking each against the
    manifest's size and hash before it is renamed into place.

    Returns {path: None (written) | EntryError}. Raises InconsistentArchive when
    the container disagrees with the manifest; blocking, run it in a thread.
    """
    expected = {entry.path: entry for entry in archive.manifest.inline}
    outcomes: dict[str, EntryError | None] = {}
    stopped = False

    for member in archive.fileEntries():
        entry = expected.get(member.name)
        if entry is None:
            logger.warning("Archive entry %s is not listed in the manifest; skipped", member.name)
            continue
        if member.name in outcomes:
            raise InconsistentArchive(f"Inline entry '{member.name}' appears twice in the archive")
        if shouldStop is not None and shouldStop():
            stopped = True
            break
        if member.size != entry.size:
            raise InconsistentArchive(
                f"Inline entry '{entry.path}' holds {member.size} bytes, manifest says {entry.size}"
            )

        def verify(digest: str, size: int, entry=entry) -> None:
            if size != entry.size or digest != entry.sha512:
                raise InconsistentArchive(f"Inline entry '{entry.path}' does not match its manifest hash")

        try:
            target = destinationFor(root, entry.path)
            atomicWriteStream(target, member.stream, verify=verify)
        except DestinationError as err:
            outcomes[entry.path] = err
            continue
        except (tarfile.TarError, EOFError) as err:
            raise ArchiveCorrupt(f"Archive stream broke inside '{entry.path}': {err}") from err
        except OSError as err:
            outcomes[entry.path] = DestinationError(entry.path, str(err))
            continue
        outcomes[entry.path] = None
        logger.debug("Extracted %s (%d bytes)", entry.path, entry.size)

    missing = [path for path in expected if path not in outcomes]
    if missing and not stopped:
        raise InconsistentArchive(f"Archive is missing inline entries listed in its manifest: {', '.join(missing)}")
    for path in missing:
        outcomes[path] = ExpansionCancelled(path, "not extracted (cancelled)")
    return outcomes
