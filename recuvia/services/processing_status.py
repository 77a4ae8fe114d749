from collections import OrderedDict
from typing import Dict, Any, Optional
import logging
import threading
import time

from recuvia.config import settings

logger = logging.getLogger(__name__)

PROCESSING = "processing"
COMPLETE = "complete"
ERROR = "error"


class ProcessingStatusStore:
    """
    In-memory progress hints for uploads, keyed by item id.

    Not authoritative: the items table is the source of truth. The map is
    bounded and evicts the oldest entries first.
    """

    def __init__(self, max_entries: Optional[int] = None):
        self.max_entries = max_entries or settings.processing_status_max_entries
        self._entries: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
        self._lock = threading.Lock()

    def _set(self, item_id: str, status: str, message: str) -> Dict[str, Any]:
        entry = {
            "status": status,
            "message": message,
            "timestamp": int(time.time() * 1000)
        }
        with self._lock:
            self._entries[item_id] = entry
            self._entries.move_to_end(item_id)
            while len(self._entries) > self.max_entries:
                evicted_id, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted processing status for {evicted_id}")
        return entry

    def start(self, item_id: str, message: str = "Starting upload process") -> Dict[str, Any]:
        return self._set(item_id, PROCESSING, message)

    def complete(self, item_id: str, message: str = "Successfully processed and stored") -> Dict[str, Any]:
        return self._set(item_id, COMPLETE, message)

    def fail(self, item_id: str, message: str) -> Dict[str, Any]:
        return self._set(item_id, ERROR, message or "Unknown server error")

    def get(self, item_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            entry = self._entries.get(item_id)
            return dict(entry) if entry else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# Global store instance
processing_status_store = ProcessingStatusStore()
