# jet/manifest/compiler.py
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from pydantic import ValidationError

from jet.core.errors import CompileError
from jet.core.hashing import normalizeSha512, sha512File
from jet.core.paths import normalizeRelPath
from jet.description.model import (
    BuildDescription,
    DirectoryDecl,
    FabricServerDecl,
    FileDecl,
    ModrinthDecl,
    RemoteDecl,
    RunScriptDecl,
    ScriptType,
)
from .model import InlineEntry, LaunchEntry, LaunchPlatform, Manifest, RemoteEntry

logger = logging.getLogger(__name__)

__all__ = ["CompiledSources", "compileManifest", "compileWithSources"]



@dataclass(slots=True)
class CompiledSources:
    """Manifest plus where each inline entry's bytes live on disk at pack time."""
    manifest: Manifest
    inlineSources: dict[str, Path] = field(default_factory=dict)



@dataclass(slots=True)
class _Collector:
    inline: list[InlineEntry] = field(default_factory=list)
    remote: list[RemoteEntry] = field(default_factory=list)
    launch: list[LaunchEntry] = field(default_factory=list)
    sources: dict[str, Path] = field(default_factory=dict)



def _dest(prefix: PurePosixPath, name: str) -> str:
    try:
        return normalizeRelPath(str(prefix / name.replace("\\", "/")), what="destination path")
    except ValueError as err:
        raise CompileError(str(err)) from err



def _scriptTargets(decl: RunScriptDecl) -> list[tuple[str, LaunchPlatform]]:
    if decl.scriptType is ScriptType.BASH:
        return [(decl.name, LaunchPlatform.SH)]
    if decl.scriptType is ScriptType.BATCH:
        return [(decl.name, LaunchPlatform.BAT)]
    return [
        (decl.name.replace("%", "sh"), LaunchPlatform.SH),
        (decl.name.replace("%", "bat"), LaunchPlatform.BAT),
    ]



def _walk(contents, prefix: PurePosixPath, sourceBase: Path, out: _Collector) -> None:
    for decl in contents:
        if isinstance(decl, DirectoryDecl):
            _dest(prefix, decl.name)
            _walk(decl.contents, prefix / decl.name, sourceBase / decl.name, out)

        elif isinstance(decl, FileDecl):
            dest = _dest(prefix, decl.name)
            source = sourceBase / (decl.source if decl.source else decl.name)
            if not source.is_file():
                raise CompileError(f"Inline file '{dest}' has no source file at '{source}'")
            try:
                digest, size = sha512File(source)
            except OSError as err:
                raise CompileError(f"Failed to read '{source}': {err}") from err
            out.inline.append(InlineEntry(path=dest, size=size, sha512=digest))
            out.sources[dest] = source

        elif isinstance(decl, RemoteDecl):
            dest = _dest(prefix, decl.name)
            try:
                digest = normalizeSha512(decl.sha512)
            except ValueError as err:
                raise CompileError(f"Remote file '{dest}': {err}") from err
            out.remote.append(RemoteEntry(path=dest, url=decl.url, sha512=digest, size=decl.size))

        elif isinstance(decl, RunScriptDecl):
            for name, platform in _scriptTargets(decl):
                out.launch.append(LaunchEntry(path=_dest(prefix, name), platform=platform, options=decl.options))

        elif isinstance(decl, ModrinthDecl):
            raise CompileError(
                f"Modrinth declaration {decl.project} {decl.version} was not resolved before compiling"
            )

        elif isinstance(decl, FabricServerDecl):
            raise CompileError(f"Fabric server {decl.jarName} was not resolved before compiling")

        else:
            raise CompileError(f"Unsupported declaration: {decl!r}")



def compileWithSources(description: BuildDescription, sourceDir: str | Path) -> CompiledSources:
    """
    Compiles a build description against the directory holding its inline files.

    Entry order follows declaration order within each entry kind, so the same
    description and the same files always yield the same Manifest.
    """
    out = _Collector()
    _walk(description.contents, PurePosixPath(), Path(sourceDir), out)
    try:
        manifest = Manifest(
            project=description.project,
            inline=tuple(out.inline),
            remote=tuple(out.remote),
            launch=tuple(out.launch),
        )
    except ValidationError as err:
        raise CompileError(f"Build description '{description.project.name}' is invalid: {err}") from err

    logger.info(
        "Compiled manifest for '%s': %d inline, %d remote, %d launch",
        description.project.name, len(manifest.inline), len(manifest.remote), len(manifest.launch),
    )
    return CompiledSources(manifest=manifest, inlineSources=out.sources)



def compileManifest(description: BuildDescription, sourceDir: str | Path) -> Manifest:
    return compileWithSources(description, sourceDir).manifest
