from __future__ import annotations

import os
import re
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol


class DurableStore(Protocol):
    """Synchronous key/value persistence used for the session snapshot."""

    def load(self, key: str) -> Optional[bytes]: ...

    def save(self, key: str, data: bytes) -> None: ...


class MemoryKV:
    """Process-local store; nothing survives a restart. Used by tests and ephemeral runs."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data: Dict[str, bytes] = {}

    def load(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._data.get(key)

    def save(self, key: str, data: bytes) -> None:
        with self._lock:
            self._data[key] = bytes(data)


_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class FileKV:
    """One JSON file per key under a root directory.

    Writes go to a sibling temp file and are moved into place, so a crash
    mid-write leaves the previous value intact.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root).expanduser()
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not _KEY_RE.match(key or "") or key in {".", ".."}:
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.root / f"{key}.json"

    def load(self, key: str) -> Optional[bytes]:
        p = self._path(key)
        if not p.exists():
            return None
        return p.read_bytes()

    def save(self, key: str, data: bytes) -> None:
        p = self._path(key)
        tmp = p.with_name(f".{p.name}.{os.getpid()}.tmp")
        with open(tmp, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, p)
