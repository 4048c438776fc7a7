"""Key-value store implementations for calibration records and one-time flags."""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Dict, Optional

from common.interface import KeyValueStore
from common.logger import get_logger

__all__ = ["MemoryStore", "JsonFileStore"]

logger = get_logger("store")


class MemoryStore(KeyValueStore):
    """Thread-safe in-process store."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._lock = threading.Lock()
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = str(value)

    def clear(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def snapshot(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._data)


class JsonFileStore(KeyValueStore):
    """
    Store backed by a single JSON object on disk. Every write rewrites the
    file through a temporary sibling so a crash never leaves it half written.
    """

    def __init__(self, path: os.PathLike | str) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self, quarantine: bool = False) -> Dict[str, str]:
        """Load the file; an unreadable one reads as empty.

        With ``quarantine`` (before a rewrite) an unreadable file is first
        renamed to ``<name>.corrupt`` so its contents are never overwritten.
        """
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning(f"Could not read {self.path}: {exc}")
            data = None
        if isinstance(data, dict):
            return {str(k): str(v) for k, v in data.items()}
        if data is not None:
            logger.warning(f"Ignoring {self.path}: expected a JSON object")
        if quarantine:
            os.replace(self.path, self.corrupt_path)
            logger.warning(f"Moved unreadable {self.path} to {self.corrupt_path}")
        return {}

    @property
    def corrupt_path(self) -> Path:
        return self.path.with_suffix(self.path.suffix + ".corrupt")

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp, self.path)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read(quarantine=True)
            data[key] = str(value)
            self._write(data)

    def clear(self, key: str) -> None:
        with self._lock:
            data = self._read(quarantine=True)
            if key in data:
                del data[key]
                self._write(data)
