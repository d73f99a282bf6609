# jet/manifest/model.py
from __future__ import annotations
from enum import Enum
from typing import Iterator

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from jet.core.hashing import isSha512Hex
from jet.core.paths import normalizeRelPath
from jet.description.model import LaunchOptions, ProjectInfo

__all__ = [
    "FORMAT_VERSION", "LaunchPlatform",
    "InlineEntry", "RemoteEntry", "LaunchEntry", "Manifest",
]

FORMAT_VERSION = 1



class LaunchPlatform(str, Enum):
    SH = "sh"
    BAT = "bat"



class _Entry(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    path: str

    @field_validator("path")
    @classmethod
    def checkPath(cls, value: str) -> str:
        normalized = normalizeRelPath(value, what="destination path")
        if normalized != value:
            raise ValueError(f"destination path must be normalized ('{normalized}'), got '{value}'")
        return value



def _checkHash(value: str) -> str:
    if not isSha512Hex(value):
        raise ValueError("sha512 must be 128 lowercase hex characters")
    return value



class InlineEntry(_Entry):
    """File whose bytes ship inside the archive under the same name as `path`."""
    size: int = Field(ge=0)
    sha512: str

    @field_validator("sha512")
    @classmethod
    def checkSha512(cls, value: str) -> str:
        return _checkHash(value)



class RemoteEntry(_Entry):
    """File fetched from `url` at expansion time; `sha512` is the cache key and the integrity check."""
    url: str = Field(min_length=1)
    sha512: str
    size: int | None = Field(None, ge=0)

    @field_validator("sha512")
    @classmethod
    def checkSha512(cls, value: str) -> str:
        return _checkHash(value)



class LaunchEntry(_Entry):
    """Launch script generated fresh on every expansion."""
    platform: LaunchPlatform
    options: LaunchOptions = Field(default_factory=LaunchOptions)



class Manifest(BaseModel):
    """
    Compiled form of a build description, embedded in every archive as @manifest.

    Immutable. A Manifest that exists is valid: every destination path is
    relative, normalized, non-reserved and unique across all entry kinds.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    formatVersion: int = FORMAT_VERSION
    project: ProjectInfo
    inline: tuple[InlineEntry, ...] = ()
    remote: tuple[RemoteEntry, ...] = ()
    launch: tuple[LaunchEntry, ...] = ()

    @model_validator(mode="after")
    def checkUniquePaths(self) -> "Manifest":
        seen: set[str] = set()
        for entry in self.entries():
            if entry.path in seen:
                raise ValueError(f"duplicate destination path '{entry.path}'")
            seen.add(entry.path)
        return self

    def entries(self) -> Iterator[InlineEntry | RemoteEntry | LaunchEntry]:
        """All entries in stored order: inline, remote, launch."""
        yield from self.inline
        yield from self.remote
        yield from self.launch

    def paths(self) -> list[str]:
        return [entry.path for entry in self.entries()]
