# src/hiremind_backend/app/core/logging.py
from __future__ import annotations
import logging
import os

_FMT = "%(asctime)s.%(msecs)03d %(levelname)-8s %(name)s %(message)s"
_DATEFMT = "%Y-%m-%dT%H:%M:%S"


def level_from_env(var: str = "LOG_LEVEL", default: str = "INFO") -> int:
    """
    Resolve a level name like "debug" / "WARNING" from the environment.
    Unknown names fall back to `default`.
    """
    name = (os.getenv(var, default) or default).strip().upper()
    level = logging.getLevelName(name)
    if isinstance(level, int):
        return level
    return logging.getLevelName(default)


def setup_logging() -> None:
    """
    Configure root logging once. Idempotent.
    When something else already installed handlers (pytest, uvicorn) only the level is applied.
    """
    root = logging.getLogger()
    level = level_from_env()
    root.setLevel(level)
    if root.handlers:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=_FMT, datefmt=_DATEFMT))
    root.addHandler(handler)
