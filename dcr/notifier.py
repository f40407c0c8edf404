from __future__ import annotations

import logging
import queue
from threading import Thread

from .kube_ops import EventSink


log = logging.getLogger(__name__)

REASON_DANGLING = "DanglingContainer"


class Notifier:
    """Republishes dispatcher messages as node events from a worker thread.

    The queue is bounded; if it stays full for enqueue_timeout_s the message
    is dropped so the dispatch loop never waits on the API server.
    """

    def __init__(self, sink: EventSink, reason: str = REASON_DANGLING, maxsize: int = 256, enqueue_timeout_s: float = 5.0):
        self.sink = sink
        self.reason = reason
        self.enqueue_timeout_s = enqueue_timeout_s
        self._queue: queue.Queue[str] = queue.Queue(maxsize=maxsize)
        self._stop = False
        self._thr: Thread | None = None

    def start(self) -> None:
        if self._thr and self._thr.is_alive():
            return
        self._stop = False
        self._thr = Thread(target=self._loop, name="notifier", daemon=True)
        self._thr.start()

    def stop(self) -> None:
        self._stop = True

    def notify(self, message: str) -> bool:
        try:
            self._queue.put(message, timeout=self.enqueue_timeout_s)
            return True
        except queue.Full:
            log.error("Notification queue full, dropping: %s", message)
            return False

    def flush(self, timeout_s: float | None = None) -> bool:
        """Wait until every queued message has been handled.

        Returns False if messages were still pending after timeout_s.
        """
        q = self._queue
        with q.all_tasks_done:
            return q.all_tasks_done.wait_for(lambda: not q.unfinished_tasks, timeout_s)

    def _loop(self) -> None:
        while not self._stop:
            try:
                msg = self._queue.get(timeout=0.5)
            except queue.Empty:
                continue
            try:
                self.publish(msg)
            finally:
                self._queue.task_done()

    def publish(self, message: str) -> None:
        try:
            self.sink.send(self.reason, message)
        except Exception as e:
            log.error("Failed to publish event %r: %s: %s", message, type(e).__name__, e)
