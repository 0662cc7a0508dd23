"""
Detect repeated SELECT statements inside one unit of work.

The detector wraps query execution on a Django connection and counts how
often each SELECT statement runs. Statements are compared with their
parameter placeholders, so ``SELECT ... WHERE id = %s`` executed once per
row of a previous result counts as one repeated statement: the classic N+1
pattern. When a statement reaches the threshold a `QueryNotification` is
emitted with the call stack of the triggering execution.

Example
-------
>>> handler = FilteredNotificationHandler(["app/views.py"])
>>> with QueryPatternDetector(callback=handler.handle):
...     for widget in Widget.objects.all():
...         Widget.objects.get(pk=widget.pk)
"""
from __future__ import annotations

import logging
import os
import traceback
from collections import Counter
from contextlib import ExitStack
from dataclasses import dataclass, field
from typing import Any, Callable

import django
from django.core.exceptions import ImproperlyConfigured
from django.db import DEFAULT_DB_ALIAS, connections

logger = logging.getLogger(__name__)

# Frames from these trees describe how the query ran, not who asked for it.
_IGNORED_DIRS = (
    os.path.dirname(os.path.abspath(django.__file__)) + os.sep,
    os.path.dirname(os.path.abspath(__file__)) + os.sep,
)


@dataclass(frozen=True)
class QueryNotification:
    sql: str
    count: int
    backtrace: tuple[str, ...] = field(default=())

    @property
    def message(self) -> str:
        return f"N+1 query detected: {self.count} executions of {self.sql}"


def capture_backtrace() -> tuple[str, ...]:
    """
    Return the current call stack, innermost frame first, as
    ``"path:line:in function"`` strings. Django and library frames are left
    out.
    """
    frames = []
    for frame in reversed(traceback.extract_stack()):
        filename = os.path.abspath(frame.filename)
        if filename.startswith(_IGNORED_DIRS):
            continue
        frames.append(f"{frame.filename}:{frame.lineno}:in {frame.name}")
    return tuple(frames)


def _is_select(sql: str) -> bool:
    return sql.lstrip().lstrip("(").upper().startswith("SELECT")


class QueryPatternDetector:
    """
    Context manager counting repeated SELECTs on one connection.

    Parameters
    ----------
    callback : callable, optional
        Called with each `QueryNotification` as soon as it is emitted.
        Typically ``FilteredNotificationHandler.handle``.

    threshold : int, default=2
        Number of executions of the same statement that triggers a
        notification. Each statement is reported at most once per scope.

    using : str
        Database alias to watch.
    """

    def __init__(
        self,
        callback: Callable[[QueryNotification], Any] | None = None,
        *,
        threshold: int = 2,
        using: str = DEFAULT_DB_ALIAS,
    ) -> None:
        if threshold < 2:
            raise ImproperlyConfigured(
                f"N+1 threshold must be at least 2, got {threshold!r}"
            )
        self.callback = callback
        self.threshold = threshold
        self.using = using
        self.counts: Counter[str] = Counter()
        self.notifications: list[QueryNotification] = []
        self._stack: ExitStack | None = None

    def __enter__(self) -> "QueryPatternDetector":
        self._stack = ExitStack()
        self._stack.enter_context(
            connections[self.using].execute_wrapper(self._wrapper)
        )
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        stack, self._stack = self._stack, None
        if stack is not None:
            stack.close()
        return False

    def _wrapper(self, execute, sql, params, many, context):
        if not many and _is_select(sql):
            self.record(sql)
        return execute(sql, params, many, context)

    def record(self, sql: str) -> QueryNotification | None:
        self.counts[sql] += 1
        if self.counts[sql] != self.threshold:
            return None

        notification = QueryNotification(
            sql=sql, count=self.counts[sql], backtrace=capture_backtrace()
        )
        self.notifications.append(notification)
        logger.debug("Repeated query reached threshold: %s", sql)

        if self.callback is not None:
            self.callback(notification)
        return notification
