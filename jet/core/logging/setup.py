# jet/core/logging/setup.py
from __future__ import annotations
import logging
import logging.handlers
from pathlib import Path

from .formatters import DevFormatter, JsonFormatter

__all__ = [
    "NO_PROPAGATE",
    "configureLogging",
]



# Libraries that are far too chatty at DEBUG
NO_PROPAGATE = [
    "asyncio",
    "httpcore.connection", "httpcore.http11", "httpcore.http2",
    "hpack",
]



def configureLogging(level: str | int = "INFO", *, logFile: str | Path | None = None, jsonConsole: bool = False):
    """
    Initiate the global logging configuration.

      - Console logs on stderr (DevFormatter, or JSON lines when jsonConsole)
      - Optional JSON-lines file log with rotation
    """
    if isinstance(level, str):
        rootLevel = getattr(logging, level.strip().upper(), logging.INFO)
    else:
        rootLevel = int(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(rootLevel)

    for name in NO_PROPAGATE:
        logging.getLogger(name).propagate = False

    consoleHandler = logging.StreamHandler()
    consoleHandler.setLevel(rootLevel)
    consoleHandler.setFormatter(JsonFormatter() if jsonConsole else DevFormatter())
    root.addHandler(consoleHandler)

    if logFile:
        logPath = Path(logFile)
        logPath.parent.mkdir(parents=True, exist_ok=True)
        fileHandler = logging.handlers.RotatingFileHandler(
            logPath,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8"
        )
        fileHandler.setLevel(rootLevel)
        fileHandler.setFormatter(JsonFormatter())
        root.addHandler(fileHandler)

    # Per-logger tweaks (reduce noise)
    logging.getLogger("httpx").setLevel(logging.WARNING)
