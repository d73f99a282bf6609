# jet/description/__init__.py
from .model import (
    BuildDescription,
    DirectoryDecl,
    FabricServerDecl,
    FileDecl,
    LaunchOptions,
    ModrinthDecl,
    ProjectInfo,
    RemoteDecl,
    RunScriptDecl,
    ScriptType,
)
from .xml_reader import DEFAULT_DESCRIPTION_NAME, loadBuildDescription, readBuildDescription

__all__ = [
    "BuildDescription",
    "DirectoryDecl",
    "FabricServerDecl",
    "FileDecl",
    "LaunchOptions",
    "ModrinthDecl",
    "ProjectInfo",
    "RemoteDecl",
    "RunScriptDecl",
    "ScriptType",
    "DEFAULT_DESCRIPTION_NAME",
    "loadBuildDescription",
    "readBuildDescription",
]
