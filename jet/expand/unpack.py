# jet/expand/unpack.py
from __future__ import annotations
import logging
from pathlib import Path
from typing import BinaryIO

from jet.archive.compression import Codec
from jet.archive.container import DESCRIPTION_ENTRY
from jet.archive.jetpack import openJetArchive, readDescription
from jet.core.errors import OutputRootError
from jet.core.fsutils import atomicWriteBytes
from jet.manifest.codec import renderManifest
from .inline import extractInline
from .report import EntryFailure, ExpansionReport

logger = logging.getLogger(__name__)

__all__ = ["MANIFEST_RENDERING", "unpack", "peek"]

MANIFEST_RENDERING = "@manifest.json"



def unpack(stream: BinaryIO, outDir: str | Path, *, codec: str | Codec = Codec.NONE) -> ExpansionReport:
    """
    Writes the archive's inline files, the verbatim @jetfuel.xml and a readable
    @manifest.json to `outDir`. Nothing is fetched and no launch script is generated.
    """
    root = Path(outDir)
    with openJetArchive(stream, codec) as archive:
        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as err:
            raise OutputRootError(f"Cannot create output directory '{root}': {err}") from err

        outcomes = extractInline(archive, root)
        atomicWriteBytes(root / MANIFEST_RENDERING, renderManifest(archive.manifest).encode("utf-8"))
        if archive.description is not None:
            atomicWriteBytes(root / DESCRIPTION_ENTRY, archive.description)
        else:
            logger.warning("Archive has no %s entry", DESCRIPTION_ENTRY)

    report = ExpansionReport()
    for entry in archive.manifest.inline:
        error = outcomes.get(entry.path)
        if error is None:
            report.written.append(entry.path)
        else:
            report.failures.append(EntryFailure.fromError(error))
    logger.info("Unpacked %d inline file(s) into %s", len(report.written), root)
    return report



def peek(stream: BinaryIO, *, codec: str | Codec = Codec.NONE) -> bytes:
    """
    The verbatim build description stored in the archive. The manifest is not
    decoded, so the description may disagree with what expand would do.
    """
    return readDescription(stream, codec)
