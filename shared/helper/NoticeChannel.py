"""Shared channel for transient user-facing notices ("toasts")."""

from collections import deque

from shared.helper.HelperConfig import HelperConfig
from shared.models.notice import Notice

MAX_PENDING_NOTICES = 50


class NoticeChannel:
    """Collects notices until the presentation layer drains them.

    Destructive notices are also written to the log as warnings so that
    failures stay visible after the notice was dismissed.
    """

    def __init__(self, helper_config: HelperConfig, max_pending: int = MAX_PENDING_NOTICES):
        self.logging = helper_config.get_logger()
        self._pending: deque[Notice] = deque(maxlen=max_pending)

    def notify(self, title: str, description: str, destructive: bool = False) -> Notice:
        notice = Notice(title=title, description=description, variant="destructive" if destructive else "default")
        self._pending.append(notice)
        if destructive:
            self.logging.warning("Notice '%s': %s", title, description)
        else:
            self.logging.debug("Notice '%s': %s", title, description)
        return notice

    def peek(self) -> list[Notice]:
        return list(self._pending)

    def drain(self) -> list[Notice]:
        """Return all pending notices and clear the channel."""
        notices = list(self._pending)
        self._pending.clear()
        return notices
