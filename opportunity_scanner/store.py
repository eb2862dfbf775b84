"""
Ephemeral storage for rendered reports.

A report is stored under its analysis id and can be retrieved exactly once:
``take()`` returns the bytes and removes the entry. A second take, or a take
for an unknown or expired id, returns None.
"""

import logging
import threading
import time
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

from pymongo import ASCENDING
from pymongo.collection import Collection

logger = logging.getLogger(__name__)


def new_analysis_id() -> str:
    """Collision-resistant id for one pipeline run."""
    return uuid.uuid4().hex


class ReportStore(ABC):
    """Insert / retrieve-once / evict mapping from analysis id to a report."""

    @abstractmethod
    def put(self, analysis_id: str, data: bytes) -> None:
        """Store report bytes under ``analysis_id``."""

    @abstractmethod
    def take(self, analysis_id: str) -> Optional[bytes]:
        """Return and remove the report, or None when it is not available."""

    @abstractmethod
    def evict(self, analysis_id: str) -> bool:
        """Remove the report without reading it. Returns True if one was removed."""

    @abstractmethod
    def __contains__(self, analysis_id: str) -> bool:
        ...


class InMemoryReportStore(ReportStore):
    """Process-local store with optional time-to-live."""

    def __init__(self, ttl_seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[bytes, float]] = {}
        self._lock = threading.Lock()

    def put(self, analysis_id: str, data: bytes) -> None:
        purged = self.purge_expired()
        if purged:
            logger.info("Dropped %d expired reports that were never downloaded", purged)
        with self._lock:
            self._entries[analysis_id] = (data, self._clock())
        logger.debug("Stored report %s (%d bytes)", analysis_id, len(data))

    def take(self, analysis_id: str) -> Optional[bytes]:
        with self._lock:
            entry = self._entries.pop(analysis_id, None)
        if entry is None:
            return None
        data, stored_at = entry
        if self._expired(stored_at):
            logger.info("Report %s expired before retrieval", analysis_id)
            return None
        return data

    def evict(self, analysis_id: str) -> bool:
        with self._lock:
            return self._entries.pop(analysis_id, None) is not None

    def purge_expired(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        with self._lock:
            expired = [key for key, (_, stored_at) in self._entries.items() if self._expired(stored_at)]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def __contains__(self, analysis_id: str) -> bool:
        entry = self._entries.get(analysis_id)
        return entry is not None and not self._expired(entry[1])

    def __len__(self) -> int:
        return len(self._entries)

    def _expired(self, stored_at: float) -> bool:
        return self.ttl_seconds is not None and self._clock() - stored_at > self.ttl_seconds


class FileReportStore(ReportStore):
    """Writes reports to an output directory; the id maps to the file location."""

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._locations: Dict[str, Path] = {}
        self._lock = threading.Lock()

    def location(self, analysis_id: str) -> Optional[Path]:
        return self._locations.get(analysis_id)

    def put(self, analysis_id: str, data: bytes) -> None:
        path = self.output_dir / f"report_{analysis_id}.pdf"
        path.write_bytes(data)
        with self._lock:
            self._locations[analysis_id] = path
        logger.debug("Stored report %s at %s", analysis_id, path)

    def take(self, analysis_id: str) -> Optional[bytes]:
        with self._lock:
            path = self._locations.pop(analysis_id, None)
        if path is None:
            return None
        if not path.exists():
            logger.warning("Report file for %s is missing: %s", analysis_id, path)
            return None
        data = path.read_bytes()
        path.unlink(missing_ok=True)
        return data

    def evict(self, analysis_id: str) -> bool:
        with self._lock:
            path = self._locations.pop(analysis_id, None)
        if path is None:
            return False
        path.unlink(missing_ok=True)
        return True

    def __contains__(self, analysis_id: str) -> bool:
        path = self._locations.get(analysis_id)
        return path is not None and path.exists()


class MongoReportStore(ReportStore):
    """
    MongoDB-backed store for multi-process deployments.

    ``find_one_and_delete`` makes retrieval a single atomic operation, so a
    report is handed out at most once even across workers.
    """

    COLLECTION_NAME = "generated_reports"

    def __init__(self, collection: Collection, ttl_seconds: Optional[int] = None):
        self.collection = collection
        self.ttl_seconds = ttl_seconds
        self._ensure_indexes()

    def _ensure_indexes(self):
        self.collection.create_index([("analysis_id", ASCENDING)], unique=True, name="analysis_id_idx")
        if self.ttl_seconds:
            self.collection.create_index(
                [("created_at", ASCENDING)],
                expireAfterSeconds=int(self.ttl_seconds),
                name="created_at_ttl_idx"
            )

    def put(self, analysis_id: str, data: bytes) -> None:
        self.collection.update_one(
            {"analysis_id": analysis_id},
            {"$set": {
                "analysis_id": analysis_id,
                "data": data,
                "created_at": datetime.now(timezone.utc),
            }},
            upsert=True
        )

    def take(self, analysis_id: str) -> Optional[bytes]:
        doc = self.collection.find_one_and_delete({"analysis_id": analysis_id})
        if not doc:
            return None
        return bytes(doc["data"])

    def evict(self, analysis_id: str) -> bool:
        result = self.collection.delete_one({"analysis_id": analysis_id})
        return result.deleted_count > 0

    def __contains__(self, analysis_id: str) -> bool:
        return self.collection.count_documents({"analysis_id": analysis_id}, limit=1) > 0
