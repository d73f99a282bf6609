# jet/core/errors.py
from __future__ import annotations

__all__ = [
    "JetError",
    "FatalError",
    "EntryError",
    "DescriptionError",
    "CompileError",
    "MalformedManifest",
    "DuplicateEntryName",
    "EntryNotFound",
    "ArchiveCorrupt",
    "MalformedArchive",
    "InconsistentArchive",
    "UnknownCodec",
    "OutputRootError",
    "HashMismatch",
    "FetchFailure",
    "IntegrityFailure",
    "LaunchGenerationError",
    "ExpansionCancelled",
    "DestinationError",
]



class JetError(Exception):
    """Base class for every error jet raises on purpose."""
    pass



class FatalError(JetError):
    """Aborts the whole operation. Nothing beyond what is already written is claimed."""
    pass



class EntryError(JetError):
    """
    Recoverable failure of a single manifest entry.

    `kind` is the short label shown in the end-of-run failure summary.
    """
    kind = "error"

    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message



# ----- Build description / compiler -----

class DescriptionError(FatalError):
    """Build description (jetfuel.xml) could not be read into the model."""
    pass



class CompileError(FatalError):
    """Build description cannot be compiled into a valid Manifest."""
    pass



class MalformedManifest(FatalError):
    """Binary manifest is absent, truncated, of unknown version or violates Manifest invariants."""
    pass



# ----- Container -----

class DuplicateEntryName(JetError):
    def __init__(self, name: str):
        super().__init__(f"Entry '{name}' was already written to this archive")
        self.name = name



class EntryNotFound(FatalError):
    def __init__(self, name: str):
        super().__init__(f"Archive has no entry named '{name}'")
        self.name = name



class ArchiveCorrupt(FatalError):
    """Container stream could not be read (wrong codec, truncation, garbage)."""
    pass



class MalformedArchive(FatalError):
    """Container is readable but its reserved entries are missing or misplaced."""
    pass



class InconsistentArchive(FatalError):
    """Manifest promised an inline entry the container does not hold (or holds different bytes)."""
    pass



class UnknownCodec(FatalError):
    pass



class OutputRootError(FatalError):
    pass



# ----- Cache -----

class HashMismatch(JetError):
    """Bytes handed to the cache do not hash to the key they were stored under."""
    def __init__(self, expected: str, actual: str):
        super().__init__(f"Refusing to store object: expected sha512 {expected[:16]}..., got {actual[:16]}...")
        self.expected = expected
        self.actual = actual



# ----- Per-entry (expansion) -----

class FetchFailure(EntryError):
    kind = "fetch"

    def __init__(self, path: str, message: str, *, retryAfter: float | None = None, retryable: bool = True):
        super().__init__(path, message)
        self.retryAfter = retryAfter
        self.retryable = retryable



class IntegrityFailure(EntryError):
    kind = "integrity"



class LaunchGenerationError(EntryError):
    kind = "launch"



class ExpansionCancelled(EntryError):
    kind = "cancelled"



class DestinationError(EntryError):
    """Destination path could not be written (I/O error, or it resolves outside the output root)."""
    kind = "destination"
