# jet/config/settings.py
from __future__ import annotations
import copy
import logging
import os
import platform
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .providers import ConfigProvider, DictProvider, EnvProvider, FileProvider

logger = logging.getLogger(__name__)

__all__ = [
    "FetchSettings", "LoggingSettings", "ModrinthSettings", "FabricSettings", "JetSettings",
    "VERSION", "DEFAULTS", "ENV_KEYS", "mergeDeep", "defaultConfigPath", "loadSettings",
]

VERSION = "0.1.0"



class FetchSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    attempts: int = Field(3, ge=1)
    backoffBaseMs: int = Field(500, ge=0)
    backoffMaxMs: int = Field(8_000, ge=0)
    timeoutMs: int = Field(60_000, ge=1)
    workers: int = Field(4, ge=1)
    userAgent: str = f"jet/{VERSION}"



class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: str = "INFO"
    file: str | None = None
    json_: bool = Field(False, alias="json")



class ModrinthSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    apiBase: str = "https://api.modrinth.com/v2"



class FabricSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    metaBase: str = "https://meta.fabricmc.net/v2"



class JetSettings(BaseModel):
    """Validated, merged view of every config layer."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    cacheDir: str | None = None
    fetch: FetchSettings = Field(default_factory=FetchSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    modrinth: ModrinthSettings = Field(default_factory=ModrinthSettings)
    fabric: FabricSettings = Field(default_factory=FabricSettings)



DEFAULTS: dict[str, Any] = JetSettings().model_dump(by_alias=True)

ENV_KEYS: dict[str, str] = {
    "JET_CACHE_DIR": "cacheDir",
    "JET_FETCH_ATTEMPTS": "fetch.attempts",
    "JET_FETCH_WORKERS": "fetch.workers",
    "JET_FETCH_TIMEOUT_MS": "fetch.timeoutMs",
    "JET_LOG_LEVEL": "logging.level",
    "JET_LOG_FILE": "logging.file",
}



def mergeDeep(left: Any, right: Any) -> Any:
    """
    Deep merge: dicts recurse, anything else on the right replaces the left.
    """
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        out: dict[str, Any] = {**left}
        for key, rightValue in right.items():
            out[key] = mergeDeep(out.get(key), rightValue) if key in out else copy.deepcopy(rightValue)
        return out
    return copy.deepcopy(right)



def defaultConfigPath(environ: Mapping[str, str] | None = None) -> Path:
    """
    $JET_CONFIG, otherwise the platform config dir:
      Windows: %APPDATA%/jet/config.json5
      other:   $XDG_CONFIG_HOME/jet/config.json5 (~/.config/jet/config.json5)
    """
    env = environ if environ is not None else os.environ
    explicit = env.get("JET_CONFIG")
    if explicit:
        return Path(explicit).expanduser()
    if platform.system() == "Windows":
        roaming = env.get("APPDATA")
        if roaming:
            return Path(roaming).expanduser() / "jet" / "config.json5"
    xdgCfg = env.get("XDG_CONFIG_HOME")
    base = Path(xdgCfg).expanduser() if xdgCfg else Path.home() / ".config"
    return base / "jet" / "config.json5"



def loadSettings(
    configPath: str | Path | None = None,
    *,
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    providers: Sequence[ConfigProvider] | None = None,
) -> JetSettings:
    """
    Builds JetSettings from layers, lowest priority first:
      shipped defaults ← config file (json5) ← JET_* env vars ← explicit overrides

    Passing `providers` replaces the file/env layers entirely (tests, embedding).
    """
    if providers is None:
        path = Path(configPath) if configPath is not None else defaultConfigPath(environ)
        providers = [FileProvider(path), EnvProvider(ENV_KEYS, environ)]

    layers: list[ConfigProvider] = [DictProvider(DEFAULTS), *providers]
    if overrides:
        layers.append(DictProvider(overrides))

    merged: dict[str, Any] = {}
    for provider in layers:
        merged = mergeDeep(merged, provider.to_dict())

    settings = JetSettings.model_validate(merged)
    logger.debug("Settings loaded from %d layers", len(layers))
    return settings
