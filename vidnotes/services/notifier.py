import logging
from collections import deque
from typing import List, Optional

from vidnotes.core.config import NOTIFICATION_BUFFER_SIZE
from vidnotes.models.notification import Notification

logger = logging.getLogger(__name__)


class Notifier:
    """Per-user queue of transient, non-blocking notifications."""

    def __init__(self, user_id: str, maxlen: int = NOTIFICATION_BUFFER_SIZE):
        self.user_id = user_id
        self._queue: deque = deque(maxlen=maxlen)
        # Running count of everything ever sent, drained or not
        self._sent = 0

    def notify(self, title: str, description: Optional[str] = None, variant: str = "default") -> Notification:
        notification = Notification(title=title, description=description, variant=variant)
        self._queue.append(notification)
        self._sent += 1
        if variant == "destructive":
            logger.warning(f"🔔 [{self.user_id}] {title}: {description or ''}")
        else:
            logger.info(f"🔔 [{self.user_id}] {title}: {description or ''}")
        return notification

    def error(self, title: str, description: Optional[str] = None) -> Notification:
        return self.notify(title, description, variant="destructive")

    @property
    def latest(self) -> Optional[Notification]:
        return self._queue[-1] if self._queue else None

    def mark(self) -> int:
        return self._sent

    def since(self, mark: int) -> List[Notification]:
        """Notifications sent after ``mark`` that are still queued"""
        count = min(self._sent - mark, len(self._queue))
        if count <= 0:
            return []
        return list(self._queue)[-count:]

    def pending(self) -> List[Notification]:
        return list(self._queue)

    def drain(self) -> List[Notification]:
        """Return all queued notifications, oldest first, and empty the queue"""
        items = list(self._queue)
        self._queue.clear()
        return items
