"""Logging setup shared by every helios component."""

from __future__ import annotations

import logging
import os

_ROOT_NAME = "helios"
_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_configured = False


def _configure_root() -> logging.Logger:
    global _configured
    root = logging.getLogger(_ROOT_NAME)
    if not _configured:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
        level = (os.environ.get("HELIOS_LOG_LEVEL") or "INFO").upper()
        root.setLevel(getattr(logging, level, logging.INFO))
        root.propagate = False
        _configured = True
    return root


def get_logger(name: str) -> logging.Logger:
    """Return a child of the ``helios`` logger, configuring it on first use."""
    _configure_root()
    return logging.getLogger(f"{_ROOT_NAME}.{name}")
