# jet/description/model.py
from __future__ import annotations
import logging
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

__all__ = [
    "GC_PRESETS", "DEFAULT_GC_PRESET", "gcPresetOptions",
    "ScriptType", "LaunchOptions", "ProjectInfo",
    "FileDecl", "RemoteDecl", "ModrinthDecl", "FabricServerDecl", "RunScriptDecl", "DirectoryDecl",
    "Decl", "BuildDescription",
]



GC_PRESETS: dict[str, str] = {
    "none": "",
    "zgc": "-XX:+UseZGC -XX:AllocatePrefetchStyle=1 -XX:-ZProactive",
    "brucethemoose-server": (
        "-XX:+UseG1GC -XX:MaxGCPauseMillis=130 -XX:+UnlockExperimentalVMOptions -XX:+DisableExplicitGC "
        "-XX:+AlwaysPreTouch -XX:G1NewSizePercent=28 -XX:G1HeapRegionSize=16M -XX:G1ReservePercent=20 "
        "-XX:G1MixedGCCountTarget=3 -XX:InitiatingHeapOccupancyPercent=10 -XX:G1MixedGCLiveThresholdPercent=90 "
        "-XX:G1RSetUpdatingPauseTimePercent=0 -XX:SurvivorRatio=32 -XX:MaxTenuringThreshold=1 "
        "-XX:G1SATBBufferEnqueueingThresholdPercent=30 -XX:G1ConcMarkStepDurationMillis=5 "
        "-XX:G1ConcRSHotCardLimit=16 -XX:G1ConcRefinementServiceIntervalMillis=150"
    ),
    "aikar": (
        "-XX:+UseG1GC -XX:+ParallelRefProcEnabled -XX:MaxGCPauseMillis=200 -XX:+UnlockExperimentalVMOptions "
        "-XX:+DisableExplicitGC -XX:+AlwaysPreTouch -XX:G1NewSizePercent=30 -XX:G1MaxNewSizePercent=40 "
        "-XX:G1HeapRegionSize=8M -XX:G1ReservePercent=20 -XX:G1HeapWastePercent=5 -XX:G1MixedGCCountTarget=4 "
        "-XX:InitiatingHeapOccupancyPercent=15 -XX:G1MixedGCLiveThresholdPercent=90 "
        "-XX:G1RSetUpdatingPauseTimePercent=5 -XX:SurvivorRatio=32 -XX:+PerfDisableSharedMem "
        "-XX:MaxTenuringThreshold=1 -Dusing.aikars.flags=https://mcflags.emc.gs -Daikars.new.flags=true"
    ),
}

DEFAULT_GC_PRESET = "brucethemoose-server"



def gcPresetOptions(preset: str) -> str:
    """JVM GC flags for a named preset; unknown presets fall back to the default one."""
    if preset in GC_PRESETS:
        return GC_PRESETS[preset]
    logger.warning("GC preset does not exist: %s (using %s)", preset, DEFAULT_GC_PRESET)
    return GC_PRESETS[DEFAULT_GC_PRESET]



class ScriptType(str, Enum):
    BASH = "bash"
    BATCH = "batch"
    BOTH = "both"



class LaunchOptions(BaseModel):
    """Parameters substituted into the launch script templates."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    javaMem: str = "4G"
    javaGcOpts: str = Field(default_factory=lambda: GC_PRESETS[DEFAULT_GC_PRESET])
    javaExtraOpts: tuple[str, ...] = ()
    serverJar: str = "server.jar"



class ProjectInfo(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    description: str = ""
    version: str = ""
    authors: tuple[str, ...] = ()



class FileDecl(BaseModel):
    """File packed inline. `source` is relative to the enclosing directory; defaults to `name`."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["file"] = "file"
    name: str
    source: str | None = None



class RemoteDecl(BaseModel):
    """File fetched at expansion time and verified against its SHA-512."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["remote"] = "remote"
    name: str
    url: str
    sha512: str
    size: int | None = Field(None, ge=0)



class ModrinthDecl(BaseModel):
    """Modrinth project version; resolved into RemoteDecls before compiling."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["modrinth"] = "modrinth"
    project: str
    version: str



class FabricServerDecl(BaseModel):
    """Fabric server launcher jar; resolved into a RemoteDecl before compiling."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["fabric-server"] = "fabric-server"
    minecraft: str
    loader: str
    installer: str

    @property
    def jarName(self) -> str:
        return f"fabric-server.{self.minecraft}.{self.loader}.{self.installer}.jar"



class RunScriptDecl(BaseModel):
    """
    Launch script generated at expansion time. With ScriptType.BOTH, '%' in the
    name is replaced by "sh" and "bat" to produce two scripts.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["run-script"] = "run-script"
    name: str
    scriptType: ScriptType = ScriptType.BOTH
    options: LaunchOptions = Field(default_factory=LaunchOptions)



class DirectoryDecl(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["directory"] = "directory"
    name: str
    contents: tuple["Decl", ...] = ()



Decl = Annotated[
    Union[FileDecl, RemoteDecl, ModrinthDecl, FabricServerDecl, RunScriptDecl, DirectoryDecl],
    Field(discriminator="kind"),
]

DirectoryDecl.model_rebuild()



class BuildDescription(BaseModel):
    """Parsed, in-memory form of a jetfuel.xml build description."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    project: ProjectInfo
    contents: tuple[Decl, ...] = ()
