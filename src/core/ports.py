"""Ports (interfaces) used by the core engine.

Ports define the minimal contracts for persistence so that aggregation,
diffing, and history can be reused with different backends and unit-tested
without real files.
"""

from __future__ import annotations

from typing import List, Optional, Protocol

from core.models import Snapshot


class PersistencePort(Protocol):
    """Raw byte storage addressed by path."""

    def read_bytes(self, path: str) -> bytes:
        ...

    def write_bytes(self, path: str, data: bytes) -> None:
        ...

    def list_names(self, directory: str) -> List[str]:
        """Return file names in ``directory``; a missing directory is empty."""
        ...

    def modified_at(self, path: str) -> float:
        """Return the last modification time of ``path`` as a POSIX timestamp."""
        ...


class SnapshotStorePort(Protocol):
    """Snapshot operations required by the audit engine."""

    def get(self, site_id: str) -> Optional[Snapshot]:
        """Return the latest snapshot for a site, if any."""
        ...

    def load(self, name: str) -> Optional[Snapshot]:
        """Return a specific previously persisted snapshot, if it exists."""
        ...

    def put(self, site_id: str, snapshot: Snapshot) -> str:
        """Persist a snapshot and make it the site's latest; return its name."""
        ...
