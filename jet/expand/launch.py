# jet/expand/launch.py
from __future__ import annotations
import logging
from pathlib import Path

from jet.core.errors import LaunchGenerationError
from jet.core.fsutils import atomicWriteBytes
from jet.description.model import LaunchOptions
from jet.manifest.model import LaunchEntry, LaunchPlatform

logger = logging.getLogger(__name__)

__all__ = ["SH_TEMPLATE", "BAT_TEMPLATE", "renderLaunchScript", "writeLaunchScript"]

SH_TEMPLATE = """#!/bin/sh
# Generated by jet. Regenerated on every expansion; edits will be lost.
cd "$(dirname "$0")" || exit 1
exec java -Xms$$JAVA_MEM$$ -Xmx$$JAVA_MEM$$ $$JAVA_GC_OPTS$$ $$JAVA_EXTRA_OPTS$$ -jar "$$SERVER_JAR$$" nogui "$@"
"""

BAT_TEMPLATE = """@echo off
rem Generated by jet. Regenerated on every expansion; edits will be lost.
cd /d "%~dp0"
java -Xms$$JAVA_MEM$$ -Xmx$$JAVA_MEM$$ $$JAVA_GC_OPTS$$ $$JAVA_EXTRA_OPTS$$ -jar "$$SERVER_JAR$$" nogui %*
"""

_TEMPLATES = {
    LaunchPlatform.SH: SH_TEMPLATE,
    LaunchPlatform.BAT: BAT_TEMPLATE,
}



def _fields(options: LaunchOptions) -> dict[str, str]:
    return {
        "JAVA_MEM": options.javaMem,
        "JAVA_GC_OPTS": options.javaGcOpts,
        "JAVA_EXTRA_OPTS": " ".join(options.javaExtraOpts),
        "SERVER_JAR": options.serverJar,
    }



def renderLaunchScript(entry: LaunchEntry) -> str:
    """Substitutes $$NAME$$ placeholders; bat scripts get CRLF line endings."""
    text = _TEMPLATES[entry.platform]
    for key, value in _fields(entry.options).items():
        if "\n" in value or "\r" in value:
            raise LaunchGenerationError(entry.path, f"option {key} contains a line break")
        placeholder = f"$${key}$$"
        if not value:
            text = text.replace(placeholder + " ", "")
        text = text.replace(placeholder, value)
    if entry.platform is LaunchPlatform.BAT:
        text = text.replace("\n", "\r\n")
    return text



def writeLaunchScript(root: Path, target: Path, entry: LaunchEntry) -> Path:
    """Renders `entry` and writes it to `target`; sh scripts are made executable."""
    text = renderLaunchScript(entry)
    mode = 0o755 if entry.platform is LaunchPlatform.SH else 0o644
    try:
        atomicWriteBytes(target, text.encode("utf-8"), mode=mode)
    except OSError as err:
        raise LaunchGenerationError(entry.path, f"failed to write script: {err}") from err
    logger.debug("Generated %s launch script %s", entry.platform.value, target.relative_to(root))
    return target
