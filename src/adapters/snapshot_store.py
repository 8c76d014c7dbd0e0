"""JSON snapshot store adapter.

Implements the core SnapshotStorePort on top of any PersistencePort and owns
the file-naming policy:

- ``audit-results-<slug>-<timestamp>.json``: one file per run
- ``latest-<slug>.json``: copy of the newest run, the default diff baseline
"""

from __future__ import annotations

import logging
import os
import re
from typing import Optional

from core.models import Snapshot
from core.ports import PersistencePort
from core.snapshot_codec import SnapshotFormatError, decode_snapshot, encode_snapshot

LOGGER = logging.getLogger(__name__)

SNAPSHOT_PREFIX = "audit-results-"
LATEST_PREFIX = "latest-"
SNAPSHOT_SUFFIX = ".json"


def file_timestamp(timestamp: str) -> str:
    """Make an ISO timestamp safe for file names (``:`` and ``.`` become ``-``)."""

    return re.sub(r"[:.]", "-", timestamp.replace("+00:00", "Z"))


class JsonSnapshotStore:
    """Snapshot persistence in a results directory."""

    def __init__(self, storage: PersistencePort, results_dir: str) -> None:
        self._storage = storage
        self._results_dir = results_dir

    @property
    def results_dir(self) -> str:
        return self._results_dir

    def snapshot_name(self, site_id: str, timestamp: str) -> str:
        return f"{SNAPSHOT_PREFIX}{site_id}-{file_timestamp(timestamp)}{SNAPSHOT_SUFFIX}"

    def latest_name(self, site_id: str) -> str:
        return f"{LATEST_PREFIX}{site_id}{SNAPSHOT_SUFFIX}"

    def _path(self, name: str) -> str:
        return os.path.join(self._results_dir, name)

    def load(self, name: str) -> Optional[Snapshot]:
        """Return the named snapshot, or None when missing or malformed."""

        path = self._path(name)
        try:
            data = self._storage.read_bytes(path)
        except FileNotFoundError:
            return None
        except OSError:
            LOGGER.warning("Could not read snapshot %s", path, exc_info=True)
            return None

        try:
            return decode_snapshot(data)
        except SnapshotFormatError as exc:
            LOGGER.warning("Ignoring malformed snapshot %s: %s", path, exc)
            return None

    def get(self, site_id: str) -> Optional[Snapshot]:
        return self.load(self.latest_name(site_id))

    def put(self, site_id: str, snapshot: Snapshot) -> str:
        """Write the run's snapshot, then replace the latest pointer with it."""

        data = encode_snapshot(snapshot)
        name = self.snapshot_name(site_id, snapshot.timestamp)
        self._storage.write_bytes(self._path(name), data)
        self._storage.write_bytes(self._path(self.latest_name(site_id)), data)
        return name
