# jet/expand/report.py
from __future__ import annotations
from dataclasses import dataclass, field

from jet.core.errors import EntryError

__all__ = ["EntryFailure", "ExpansionReport"]



@dataclass(frozen=True, slots=True)
class EntryFailure:
    path: str
    kind: str
    message: str

    @classmethod
    def fromError(cls, err: EntryError) -> "EntryFailure":
        return cls(path=err.path, kind=err.kind, message=err.message)



@dataclass(slots=True)
class ExpansionReport:
    """Outcome of one expansion (or unpack). Failures are listed in manifest order."""
    written: list[str] = field(default_factory=list)
    failures: list[EntryFailure] = field(default_factory=list)
    cacheHits: int = 0
    cacheMisses: int = 0

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def exitCode(self) -> int:
        return 0 if self.ok else 1

    def summary(self) -> str:
        text = f"{len(self.written)} written, {len(self.failures)} failed (cache: {self.cacheHits} hit, {self.cacheMisses} miss)"
        if self.failures:
            lines = [f"  [{failure.kind}] {failure.path}: {failure.message}" for failure in self.failures]
            text += "\n" + "\n".join(lines)
        return text
