import json
import logging
import os
import tempfile
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)

_SUFFIX = ".json"


class BlobStore(Protocol):
    def read(self, key: str) -> Optional[Any]: ...
    def write(self, key: str, value: Any) -> None: ...
    def list(self, prefix: str = "") -> list[str]: ...
    def delete(self, key: str) -> bool: ...


class FileBlobStore:
    """JSON documents on disk, one file per key.

    Responsibility: locate, read, and write blobs under `base_dir`. Keys may
    contain `/`, which maps to sub-directories. It does NOT know what the
    documents mean.
    """

    def __init__(self, *, base_dir: str):
        self.base_dir = base_dir

    def _resolve_path(self, key: str) -> str:
        parts = key.split("/")
        if not key or any(p in ("", ".", "..") for p in parts):
            raise ValueError(f"Invalid blob key: {key!r}")
        return os.path.join(self.base_dir, *parts) + _SUFFIX

    def read(self, key: str) -> Optional[Any]:
        """Return the decoded blob for `key`, or None if missing/unreadable."""
        path = self._resolve_path(key)
        if not os.path.isfile(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Could not read blob %s: %s", key, e)
            return None

    def write(self, key: str, value: Any) -> None:
        """Atomically replace the blob for `key`."""
        path = self._resolve_path(key)
        directory = os.path.dirname(path)
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-", suffix=_SUFFIX)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(value, f, indent=2, default=str)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def list(self, prefix: str = "") -> list[str]:
        """Return sorted keys starting with `prefix`."""
        if not os.path.isdir(self.base_dir):
            return []
        keys = []
        for root, _dirs, files in os.walk(self.base_dir):
            for fname in files:
                if not fname.endswith(_SUFFIX) or fname.startswith(".tmp-"):
                    continue
                rel = os.path.relpath(os.path.join(root, fname), self.base_dir)
                key = rel[: -len(_SUFFIX)].replace(os.sep, "/")
                if key.startswith(prefix):
                    keys.append(key)
        return sorted(keys)

    def delete(self, key: str) -> bool:
        path = self._resolve_path(key)
        try:
            os.remove(path)
            return True
        except FileNotFoundError:
            return False
