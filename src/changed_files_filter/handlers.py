from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Iterable, TypedDict

from .filters import ChangedFilesFilter, Notification

logger = logging.getLogger("changed_files_filter")

Sink = Callable[[Any], Any]


class Stats(TypedDict):
    total: int
    filtered: int
    shown: int


def log_notification(notification: Notification) -> None:
    """
    Default sink: log the notification and its call stack as a warning.
    """
    message = getattr(notification, "message", None) or repr(notification)
    frames = getattr(notification, "backtrace", None) or ()
    if isinstance(frames, str):
        frames = (frames,)
    logger.warning(
        "%s\nCall stack:\n%s",
        message,
        "\n".join(f"  {frame}" for frame in frames) or "  (empty)",
    )


class FilteredNotificationHandler:
    """
    Gate notifications before they reach a sink and count the decisions.

    - An empty changed-file set disables filtering: every notification is
      forwarded.
    - Otherwise only notifications whose call stack touches a changed file
      are forwarded; the rest are counted as filtered and dropped.

    One handler may be shared by many threads (e.g. all request threads of a
    worker). The counters sit behind a single lock so ``stats()`` always
    satisfies ``total == filtered + shown``. The sink is called outside the
    lock.
    """

    def __init__(
        self,
        changed_files: Iterable[str] | str | None = (),
        sink: Sink = log_notification,
    ) -> None:
        self.filter = ChangedFilesFilter(changed_files)
        self.sink = sink
        self._lock = threading.Lock()
        self._total = 0
        self._filtered = 0

    @property
    def changed_files(self) -> tuple[str, ...]:
        return self.filter.changed_files

    def handle(self, notification: Notification) -> bool:
        show = not self.filter.changed_files or self.filter.matches(notification)

        with self._lock:
            self._total += 1
            if not show:
                self._filtered += 1

        if show:
            self.sink(notification)
        return show

    __call__ = handle

    def stats(self) -> Stats:
        with self._lock:
            total, filtered = self._total, self._filtered
        return {"total": total, "filtered": filtered, "shown": total - filtered}
