import logging
import queue
import threading
from typing import List, Optional

from src.utils.email import MailTransport, NotificationMessage

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """
    Bounded fire-and-forget mail queue drained by a fixed set of worker threads.

    submit() never blocks the caller. Delivery errors are logged and dropped,
    nothing is retried. Messages still queued when the process exits are lost.
    """

    def __init__(self, transport: MailTransport, max_queue_size: int = 100, workers: int = 2):
        self.transport = transport
        self.workers = workers
        self._queue: "queue.Queue[Optional[NotificationMessage]]" = queue.Queue(maxsize=max_queue_size)
        self._threads: List[threading.Thread] = []

    @property
    def running(self) -> bool:
        return any(t.is_alive() for t in self._threads)

    def start(self) -> None:
        if self._threads:
            return
        for i in range(self.workers):
            thread = threading.Thread(target=self._run, name=f"notifier-{i}", daemon=True)
            thread.start()
            self._threads.append(thread)

    def submit(self, message: NotificationMessage) -> bool:
        try:
            self._queue.put_nowait(message)
        except queue.Full:
            logger.warning("Notification queue full, dropping e-mail to %s", message.to)
            return False
        return True

    def join(self) -> None:
        """Block until every message submitted so far has been attempted"""
        self._queue.join()

    def shutdown(self, timeout: float = 5.0) -> None:
        # Workers stuck on a hanging transport are abandoned, they are daemon threads
        for _ in self._threads:
            try:
                self._queue.put(None, timeout=timeout)
            except queue.Full:
                logger.warning("Notification queue still full at shutdown, pending e-mails dropped")
                break
        for thread in self._threads:
            thread.join(timeout)
        self._threads = [t for t in self._threads if t.is_alive()]

    def _run(self) -> None:
        while True:
            message = self._queue.get()
            try:
                if message is None:
                    return
                self._deliver(message)
            finally:
                self._queue.task_done()

    def _deliver(self, message: NotificationMessage) -> None:
        try:
            self.transport.send(message)
        except Exception:
            logger.exception("Failed to send e-mail to %s", message.to)
        else:
            logger.debug("Sent confirmation e-mail to %s", message.to)
