# jet/config/providers.py
from __future__ import annotations
import copy
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol, cast

import json5

logger = logging.getLogger(__name__)

__all__ = [
    "ConfigProvider", "DictProvider", "FileProvider", "EnvProvider",
    "getByPath", "setByPath",
]



def getByPath(obj: Mapping[str, Any], path: str, default: Any | None = None) -> Any:
    """Dotted-path lookup ("fetch.attempts") through nested mappings."""
    current: Any = obj
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return default
        current = current[part]
    return current



def setByPath(obj: dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    current = obj
    for part in parts[:-1]:
        nxt = current.get(part)
        if not isinstance(nxt, dict):
            nxt = {}
            current[part] = nxt
        current = nxt
    current[parts[-1]] = value



class ConfigProvider(Protocol):
    def get(self, key: str) -> Any | None: ...
    def to_dict(self) -> dict[str, Any]: ...



# ----------------------------------------------
#       Read-only dict (shipped defaults)
# ----------------------------------------------

class DictProvider:
    """
    Read-only mapping (e.g., shipped defaults or explicit overrides).
    """
    def __init__(self, data: Mapping[str, Any]) -> None:
        if not isinstance(data, Mapping):
            raise TypeError(f"{type(self).__name__}: 'data' must be a Mapping, not '{type(data).__name__}'")
        self.data = data

    def get(self, key: str) -> Any | None:
        return getByPath(self.data, key, None)

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(dict(self.data))



# ----------------------------------------------
#          File-backed provider JSON/JSON5
# ----------------------------------------------

class FileProvider:
    """
    Read-only configuration provider backed by a .json or .json5 file.

    Behavior:
        • Missing file → empty dict
        • Parse error → logs warning and starts empty dict
        • Non-object JSON → raises TypeError
    """
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._data: dict[str, Any] = {}
        self._load()

    def _load(self) -> None:
        self._data.clear()

        if not self.path.exists():
            logger.debug("%s: '%s' is missing → starting as empty dict", type(self).__name__, self.path)
            return

        if not self.path.is_file():
            raise IsADirectoryError(f"{type(self).__name__}: '{self.path}' exists but is not a file")

        try:
            parsed = json5.loads(self.path.read_text(encoding="utf-8"))
        except Exception as err:
            logger.warning("%s: parse failed for '%s': %s", type(self).__name__, self.path, err)
            parsed = {}

        if parsed is None:
            parsed = {}

        if not isinstance(parsed, Mapping):
            raise TypeError(f"{type(self).__name__}: file content must be a JSON object, not '{type(parsed).__name__}'")

        self._data = dict(parsed)

    def get(self, key: str) -> Any | None:
        return getByPath(self._data, key, None)

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)



# ----------------------------------------------
#        Environment variables (JET_*)
# ----------------------------------------------

class EnvProvider:
    """
    Maps selected environment variables onto dotted config keys.

    Example:
        EnvProvider({"JET_FETCH_WORKERS": "fetch.workers"})
    Values are parsed as JSON5 scalars when possible ("8" → 8, "true" → True),
    otherwise kept as strings.
    """
    def __init__(self, mapping: Mapping[str, str], environ: Mapping[str, str] | None = None) -> None:
        self.mapping = dict(mapping)
        self.environ = environ if environ is not None else os.environ

    @staticmethod
    def _parse(raw: str) -> Any:
        try:
            value = json5.loads(raw)
        except Exception:
            return raw
        # Only accept scalars; "[1]" style values stay literal strings
        if isinstance(value, (bool, int, float)):
            return value
        return raw

    def get(self, key: str) -> Any | None:
        return getByPath(self.to_dict(), key, None)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for envName, key in self.mapping.items():
            raw = self.environ.get(envName)
            if raw is None or raw == "":
                continue
            setByPath(out, key, self._parse(cast(str, raw)))
        return out
