# jet/manifest/__init__.py
from .model import FORMAT_VERSION, InlineEntry, LaunchEntry, LaunchPlatform, Manifest, RemoteEntry
from .compiler import CompiledSources, compileManifest, compileWithSources
from .codec import decodeManifest, encodeManifest, renderManifest

__all__ = [
    "FORMAT_VERSION",
    "InlineEntry",
    "LaunchEntry",
    "LaunchPlatform",
    "Manifest",
    "RemoteEntry",
    "CompiledSources",
    "compileManifest",
    "compileWithSources",
    "decodeManifest",
    "encodeManifest",
    "renderManifest",
]
