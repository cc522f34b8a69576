"""Fire-and-forget search analytics sink."""

import logging
import queue
import threading
from typing import Optional

from schemas.discovery import SearchLogEntry

logger = logging.getLogger(__name__)


class SearchLogger:
    """
    Non-blocking search log sink backed by a bounded queue and one worker thread.

    `log()` never blocks and never raises. When the queue is full the entry is
    dropped. Write errors in the worker are logged and discarded.
    """

    def __init__(self, store, max_queue_size: int = 256, start: bool = True):
        """
        Initialize search logger.

        Args:
            store: Object with `log_search_query(entry)` (e.g. SQLiteDiscoveryStore)
            max_queue_size: Entries held before new ones are dropped
            start: Start the worker thread immediately
        """
        self.store = store
        self._queue: queue.Queue = queue.Queue(maxsize=max_queue_size)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.dropped = 0
        if start:
            self.start()

    def start(self) -> None:
        """Start the worker thread if not already running."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="search-log-writer", daemon=True)
        self._thread.start()

    def log(self, entry: SearchLogEntry) -> None:
        """Enqueue an entry without waiting."""
        try:
            self._queue.put_nowait(entry)
        except queue.Full:
            self.dropped += 1
            logger.warning(f"Search log queue full, dropping entry for '{entry.normalized_query}'")

    def _run(self):
        while not self._stop.is_set() or not self._queue.empty():
            try:
                entry = self._queue.get(timeout=0.1)
            except queue.Empty:
                continue
            try:
                self._write(entry)
            finally:
                self._queue.task_done()

    def _write(self, entry: SearchLogEntry):
        try:
            self.store.log_search_query(entry)
        except Exception as e:
            logger.error(f"Failed to write search log entry: {e}")

    def flush(self, timeout: float = 2.0) -> bool:
        """
        Wait until queued entries are written.

        Args:
            timeout: Seconds to wait

        Returns:
            True if the queue drained in time
        """
        if self._thread is None or not self._thread.is_alive():
            # No worker; write inline
            while True:
                try:
                    entry = self._queue.get_nowait()
                except queue.Empty:
                    return True
                self._write(entry)
                self._queue.task_done()

        done = threading.Event()

        def _wait():
            self._queue.join()
            done.set()

        threading.Thread(target=_wait, daemon=True).start()
        return done.wait(timeout)

    def close(self, timeout: float = 2.0) -> None:
        """Drain the queue and stop the worker."""
        self._stop.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        self._thread = None
