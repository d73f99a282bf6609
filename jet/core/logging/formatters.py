# jet/core/logging/formatters.py
from __future__ import annotations

import json
import logging
from typing import Any

from .context import getLogContext

__all__ = ["JsonFormatter", "DevFormatter"]

# Context keys shown by DevFormatter, in order
_DEV_CONTEXT_KEYS = ("op", "entry")



class JsonFormatter(logging.Formatter):
    """One JSON object per line; used for --log-file and json console output."""
    def _excInfo(self, record: logging.LogRecord) -> dict[str, Any]:
        excType, excValue, _ = record.exc_info
        try:
            return {
                "type": getattr(excType, "__name__", "Error"),
                "message": str(excValue),
                "stack": self.formatException(record.exc_info),
            }
        except Exception:
            return {"type": "Error", "message": "format failed", "stack": None}

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": int(record.created * 1000),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
            "ctx": getLogContext() or {},
            "thread": record.threadName,
        }
        if record.exc_info:
            payload["exc"] = self._excInfo(record)
        return json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)



class DevFormatter(logging.Formatter):
    """Console lines: `LEVEL: [logger] message [op/entry]`."""
    def format(self, record: logging.LogRecord) -> str:
        ctx = getLogContext() or {}
        tags = [str(ctx[key]) for key in _DEV_CONTEXT_KEYS if ctx.get(key)]
        ctxStr = f" [{'/'.join(tags)}]" if tags else ""

        msg = record.getMessage()
        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)
        if record.stack_info:
            msg += "\n" + str(record.stack_info)
        return f"{record.levelname}: [{record.name}] {msg}{ctxStr}"
