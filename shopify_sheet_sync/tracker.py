"""Persisted watermark and run lease for incremental syncing."""

import json
import logging
import threading
import time
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from .models import SyncState
from .sources import SheetSource


logger = logging.getLogger(__name__)

WATERMARK_KEY = "lastProcessedRow"
LEASE_KEY = "syncLease"


class SyncInProgressError(Exception):
    """Another pass holds a live lease."""
    pass


class StateStore(ABC):
    """Key-value storage that survives across invocations."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    @abstractmethod
    def compare_and_set(self, key: str, expected: Optional[Any], value: Optional[Any]) -> bool:
        """Set key to value only if it currently equals expected.

        A value of None deletes the key. Returns True when the swap happened.
        """
        pass


class MemoryStateStore(StateStore):
    """Process-local store."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self.data: Dict[str, Any] = dict(data or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        return self.data.get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self.data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self.data.pop(key, None)

    def compare_and_set(self, key: str, expected: Optional[Any], value: Optional[Any]) -> bool:
        with self._lock:
            if self.data.get(key) != expected:
                return False
            if value is None:
                self.data.pop(key, None)
            else:
                self.data[key] = value
            return True


class JsonStateStore(StateStore):
    """Store backed by a JSON file on disk."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}

        with open(self.path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _save(self, data: Dict[str, Any]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        tmp_path.replace(self.path)

    def get(self, key: str) -> Optional[Any]:
        return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._save(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key in data:
                del data[key]
                self._save(data)

    def compare_and_set(self, key: str, expected: Optional[Any], value: Optional[Any]) -> bool:
        with self._lock:
            data = self._load()
            if data.get(key) != expected:
                return False
            if value is None:
                data.pop(key, None)
            else:
                data[key] = value
            self._save(data)
            return True


class SyncTracker:
    """Tracks the last processed sheet row across sync passes."""

    def __init__(self, store: StateStore, source: SheetSource, lease_ttl: int = 900):
        self.store = store
        self.source = source
        self.lease_ttl = lease_ttl

    def load(self) -> Optional[SyncState]:
        """Current watermark, or None if tracking was never initialized."""
        value = self.store.get(WATERMARK_KEY)
        if value is None:
            return None
        return SyncState(last_processed_row=int(value))

    def initialize(self) -> SyncState:
        """Start tracking at the current end of the table if not tracking yet.

        Rows present before tracking began are never processed.
        """
        state = self.load()
        if state is not None:
            return state

        last_row = self.source.last_data_row()
        self.store.set(WATERMARK_KEY, last_row)
        logger.info("Initialized tracking at row %d", last_row)
        return SyncState(last_processed_row=last_row)

    def reset(self) -> SyncState:
        """Skip any backlog by moving the watermark to the current end of the table."""
        last_row = self.source.last_data_row()
        self.store.set(WATERMARK_KEY, last_row)
        logger.info("Tracking reset. Will only process rows after row %d", last_row)
        return SyncState(last_processed_row=last_row)

    def advance(self, new_value: int) -> SyncState:
        """Record that every row up to new_value has been attempted."""
        current = self.load()
        if current is not None and new_value < current.last_processed_row:
            raise ValueError(
                f"Watermark cannot move backwards ({current.last_processed_row} -> {new_value})"
            )

        self.store.set(WATERMARK_KEY, new_value)
        return SyncState(last_processed_row=new_value)

    def current_lease(self) -> Optional[Dict[str, Any]]:
        """The stored lease, if any."""
        return self.store.get(LEASE_KEY)

    def acquire_lease(self, owner: Optional[str] = None) -> str:
        """Take the run lease, replacing an expired one. Returns the owner id."""
        owner = owner or uuid.uuid4().hex
        existing = self.current_lease()

        if existing and existing.get("expires_at", 0) > time.time():
            raise SyncInProgressError(
                f"Sync already in progress (lease held by {existing.get('owner')})"
            )

        lease = {"owner": owner, "expires_at": time.time() + self.lease_ttl}
        if not self.store.compare_and_set(LEASE_KEY, existing, lease):
            raise SyncInProgressError("Sync lease was taken by another run")

        if existing:
            logger.warning("Took over expired lease from %s", existing.get("owner"))
        return owner

    def release_lease(self, owner: str) -> None:
        """Release the lease if this owner still holds it."""
        existing = self.current_lease()
        if not existing or existing.get("owner") != owner:
            logger.warning("Lease no longer held by %s, not releasing", owner)
            return
        self.store.compare_and_set(LEASE_KEY, existing, None)

    @contextmanager
    def lease(self) -> Iterator[str]:
        """Hold the run lease for the duration of a block."""
        owner = self.acquire_lease()
        try:
            yield owner
        finally:
            self.release_lease(owner)
