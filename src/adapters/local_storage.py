"""Local filesystem adapter.

Implements the core PersistencePort on plain files.
"""

from __future__ import annotations

import os
import tempfile
from typing import List


class LocalFileStorage:
    """Thin filesystem wrapper that satisfies the PersistencePort contract."""

    def read_bytes(self, path: str) -> bytes:
        with open(path, "rb") as handle:
            return handle.read()

    def write_bytes(self, path: str, data: bytes) -> None:
        """Write via a temp file in the same directory, then rename into place.

        Readers never observe a half-written snapshot.
        """

        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def list_names(self, directory: str) -> List[str]:
        """Return regular file names in ``directory``; missing directories are empty."""

        if not os.path.isdir(directory):
            return []
        return sorted(
            name
            for name in os.listdir(directory)
            if not name.startswith(".tmp-") and os.path.isfile(os.path.join(directory, name))
        )

    def modified_at(self, path: str) -> float:
        return os.stat(path).st_mtime
